"""Generation Configuration
=========================

Per-run options for a generation plus the provider → fast model table used
for template selection.
"""

from dataclasses import dataclass
from typing import Dict, Optional

DEFAULT_FAST_MODEL = 'gpt-4o-mini'

# Cheapest low-latency model per provider, used only for template selection.
FAST_MODEL_CONFIG: Dict[str, str] = {
    'OpenAI': 'gpt-4o-mini',
    'Anthropic': 'claude-haiku-4-5-20251001',
    'Google': 'gemini-1.5-flash',
    'Groq': 'llama-3.1-8b-instant',
    'OpenRouter': 'openai/gpt-4o-mini',
}


def get_fast_model(provider: Optional[str], fallback_model: Optional[str] = None) -> str:
    """Resolve the fast model for a provider.

    Unknown providers use the caller's main model when one is given.
    """
    if provider and provider in FAST_MODEL_CONFIG:
        return FAST_MODEL_CONFIG[provider]
    return fallback_model or DEFAULT_FAST_MODEL


@dataclass
class GenerationOptions:
    """Configuration for a single generation run.

    Attributes:
        model: Main generation model ID (OpenRouter style, e.g. 'anthropic/claude-sonnet-4.5')
        provider: Provider label for the main model
        fast_model: Override for the template selection model
        fast_provider: Provider label for the fast model (defaults to ``provider``)
        max_tokens: Maximum output tokens for the main model
        temperature: Sampling temperature for the main model
        timeout: Streaming timeout in seconds
        github_token: Optional token for remote template fetches
        user_id: Owner of the project, passed to persistence
    """
    model: str
    provider: str = 'OpenRouter'
    fast_model: Optional[str] = None
    fast_provider: Optional[str] = None
    max_tokens: int = 32000
    temperature: float = 0.3
    timeout: int = 600
    github_token: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def resolved_fast_model(self) -> str:
        if self.fast_model:
            return self.fast_model
        return get_fast_model(self.fast_provider or self.provider, self.model)
