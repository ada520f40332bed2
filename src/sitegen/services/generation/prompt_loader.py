"""Prompt Loader Service
=====================

Loads and renders the Jinja2 prompt templates under ``misc/prompts`` for
template selection and content generation. Keeps prompt wording out of the
pipeline code.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from sitegen.paths import PROMPTS_DIR, WORK_DIR
from sitegen.services.generation.models import BusinessProfile, ProfileAnalysis
from sitegen.services.generation.theme_registry import ThemeDefinition

logger = logging.getLogger(__name__)

MAX_MENU_SECTIONS = 6
MAX_MENU_ITEMS = 6
MAX_HOURS_LINES = 7
MAX_REVIEWS = 3
MAX_SELECTION_MENU_CATEGORIES = 8


class PromptLoader:
    """Loads and renders prompts for template selection and generation."""

    def __init__(self, prompts_dir: Optional[Path] = None):
        prompts_dir = prompts_dir or PROMPTS_DIR
        if not prompts_dir.exists():
            logger.error(f"Prompts directory not found at {prompts_dir}")

        # Prompts are plain text; HTML escaping would corrupt code and markup.
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(prompts_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
            undefined=StrictUndefined,
        )

    def _render(self, name: str, /, **context: Any) -> str:
        return self.jinja_env.get_template(name).render(**context).strip()

    def get_selection_prompts(self, profile: BusinessProfile, analysis: ProfileAnalysis,
                              themes: Sequence[ThemeDefinition]) -> Tuple[str, str]:
        """Get (system_prompt, context_prompt) for template selection."""
        system_prompt = self._render('selection/system.md.jinja2', themes=list(themes))
        context_prompt = self._render(
            'selection/context.md.jinja2',
            name=profile.name,
            analysis=analysis,
            tone=profile.tone,
            visual_style=profile.visual_style,
            menu_categories=list(profile.menu_categories[:MAX_SELECTION_MENU_CATEGORIES]),
        )
        return system_prompt, context_prompt

    def get_theme_prompt(self, theme: ThemeDefinition) -> str:
        return self._render('content/theme.md.jinja2', theme=theme)

    def get_business_context(self, profile: BusinessProfile) -> str:
        """Business data block for the system prompt.

        Uses crawled markdown directly when present, else the structured
        fields plus the full profile JSON.
        """
        if profile.google_maps_markdown:
            if not profile.website_markdown:
                logger.info("Generating without website analysis (graceful degradation)")
            return self._render('content/business_markdown.md.jinja2', profile=profile)
        return self._render('content/business_structured.md.jinja2', profile=profile,
                            profile_json=profile.to_json())

    def get_system_prompt(self, theme_prompt: str, business_context: str) -> str:
        return self._render('content/system.md.jinja2', work_dir=WORK_DIR,
                            theme_prompt=theme_prompt, business_context=business_context)

    def get_customization_prompt(self, profile: BusinessProfile, theme_prompt: str,
                                 read_only_paths: Sequence[str], template_name: str) -> str:
        menu = [
            (section, list(items[:MAX_MENU_ITEMS]))
            for section, items in list(profile.menu.items())[:MAX_MENU_SECTIONS]
        ]
        return self._render(
            'content/customization.md.jinja2',
            profile=profile,
            business_name=profile.name or 'Restaurant',
            theme_prompt=theme_prompt,
            read_only_paths=list(read_only_paths),
            template_name=template_name,
            hours=list(profile.hours.items())[:MAX_HOURS_LINES],
            menu=menu,
            reviews=list(profile.reviews[:MAX_REVIEWS]),
        )

    def get_from_scratch_prompt(self, profile: BusinessProfile) -> str:
        return self._render('content/from_scratch.md.jinja2', business_name=profile.name or 'Restaurant')


_loader: Optional[PromptLoader] = None


def get_prompt_loader() -> PromptLoader:
    """Get shared prompt loader instance."""
    global _loader
    if _loader is None:
        _loader = PromptLoader()
    return _loader
