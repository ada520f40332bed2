"""Template Selector
==================

Picks the website template for a business with one fast-model call.
Selection never fails the run: any problem yields the fixed fallback
selection, wrapped in a :class:`PhaseOutcome` that records why.
"""

import logging
import re
from typing import Any, Dict, Optional

from sitegen.services.generation.api_client import OpenRouterClient, get_api_client
from sitegen.services.generation.models import BusinessProfile, PhaseOutcome, TemplateSelection
from sitegen.services.generation.profile_analyzer import analyze_business_profile
from sitegen.services.generation.prompt_loader import PromptLoader, get_prompt_loader
from sitegen.services.generation.theme_registry import ThemeRegistry, get_theme_registry

logger = logging.getLogger(__name__)

DEFAULT_SITE_TITLE = 'Restaurant Website'

FALLBACK_SELECTION = TemplateSelection(
    theme_id='indochineluxe',
    name='Indochine Luxe',
    title=DEFAULT_SITE_TITLE,
    reasoning='Fallback template used due to selection failure.',
)

_TAG_PATTERNS = {
    'template_name': re.compile(r'<templateName>(.*?)</templateName>', re.DOTALL),
    'reasoning': re.compile(r'<reasoning>(.*?)</reasoning>', re.DOTALL),
    'title': re.compile(r'<title>(.*?)</title>', re.DOTALL),
}


def parse_template_selection(text: str) -> Optional[Dict[str, str]]:
    """Pull the three selection tags out of a model answer.

    Returns ``None`` unless all three tags are present and the template
    name is non-empty.
    """
    if not text:
        return None
    parsed: Dict[str, str] = {}
    for key, pattern in _TAG_PATTERNS.items():
        match = pattern.search(text)
        if match is None:
            return None
        parsed[key] = match.group(1).strip()
    if not parsed['template_name']:
        return None
    return parsed


def _response_text(data: Dict[str, Any]) -> str:
    try:
        content = data['choices'][0]['message']['content']
    except (KeyError, IndexError, TypeError):
        return ''
    return content if isinstance(content, str) else ''


class TemplateSelector:
    """Chooses a registry template for a business profile."""

    def __init__(self, client: Optional[OpenRouterClient] = None,
                 registry: Optional[ThemeRegistry] = None,
                 prompt_loader: Optional[PromptLoader] = None):
        self.client = client or get_api_client()
        self.registry = registry or get_theme_registry()
        self.prompts = prompt_loader or get_prompt_loader()

    def _fallback(self, reason: str) -> PhaseOutcome[TemplateSelection]:
        logger.warning(f"Template selection fell back to {FALLBACK_SELECTION.name}: {reason}")
        return PhaseOutcome.fallback(FALLBACK_SELECTION, reason)

    async def select(self, profile: BusinessProfile, model: str) -> PhaseOutcome[TemplateSelection]:
        """Select a template; never raises."""
        try:
            analysis = analyze_business_profile(profile)
            system_prompt, context_prompt = self.prompts.get_selection_prompts(profile, analysis, self.registry)
            logger.info(f"Selecting template with {model} "
                        f"(cuisine={analysis.cuisine}, tier={analysis.price_tier}, style={analysis.style})")

            success, data, status = await self.client.chat_completion(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": context_prompt},
                ],
                temperature=0.2,
                max_tokens=400,
            )
        except Exception as e:
            logger.exception("Template selection call failed")
            return self._fallback(f"selection call raised {type(e).__name__}: {e}")

        if not success:
            return self._fallback(f"selection call failed with status {status}: {data.get('error')}")

        parsed = parse_template_selection(_response_text(data))
        if parsed is None:
            return self._fallback("response is missing selection tags")

        theme = self.registry.get_by_name(parsed['template_name'])
        if theme is None:
            return self._fallback(f"unknown template '{parsed['template_name']}'")

        selection = TemplateSelection(
            theme_id=theme.id,
            name=theme.name,
            title=parsed['title'] or DEFAULT_SITE_TITLE,
            reasoning=parsed['reasoning'],
        )
        logger.info(f"Template selected: {selection.name} ({selection.theme_id})")
        return PhaseOutcome.ok(selection)
