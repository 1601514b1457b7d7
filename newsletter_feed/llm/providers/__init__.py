"""LLM provider implementations."""

from .base import ProviderError, SummaryProvider
from .factory import available_providers, create_provider
from .gemini import GeminiProvider

__all__ = [
    "ProviderError",
    "SummaryProvider",
    "GeminiProvider",
    "available_providers",
    "create_provider",
]
