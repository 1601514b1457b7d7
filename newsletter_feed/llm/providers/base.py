"""Abstract interface for text-generation backends."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ProviderError(RuntimeError):
    """Raised when the model backend cannot produce a response."""


class SummaryProvider(ABC):
    """Provider interface for newsletter section generation."""

    model: str

    @abstractmethod
    def generate(self, prompt: str, system: str, label: str = "") -> str:
        """Return the generated text for a prompt.

        Args:
            prompt: User prompt with the rendered source material
            system: System instruction (role and tone)
            label: Short name of the section being generated, used in logs
        """
        raise NotImplementedError
