"""LLM providers and prompt construction."""

from .prompts import (
    build_news_prompt,
    build_release_section_prompt,
    build_title_prompt,
    build_vscode_prompt,
    build_welcome_prompt,
    system_prompt,
)
from .providers import (
    GeminiProvider,
    ProviderError,
    SummaryProvider,
    available_providers,
    create_provider,
)

__all__ = [
    "SummaryProvider",
    "GeminiProvider",
    "ProviderError",
    "create_provider",
    "available_providers",
    "system_prompt",
    "build_release_section_prompt",
    "build_news_prompt",
    "build_welcome_prompt",
    "build_title_prompt",
    "build_vscode_prompt",
]
