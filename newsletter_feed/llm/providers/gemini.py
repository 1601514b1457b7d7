"""Google Gemini provider for newsletter section generation."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import LoggingConfig, ProviderConfig
from ...utils.logging import log_event, truncate_text
from .base import ProviderError, SummaryProvider


logger = logging.getLogger(__name__)


class GeminiProvider(SummaryProvider):
    """Gemini-backed provider calling the generateContent REST endpoint."""

    def __init__(
        self,
        cfg: ProviderConfig,
        api_key: str | None,
        log_cfg: LoggingConfig,
        llm_logger: logging.Logger | None = None,
    ):
        if not api_key:
            raise ValueError(
                f"Missing Google API key (set {cfg.google_api_key_env} or provider.api_key)"
            )
        self.cfg = cfg
        self.model = cfg.model
        self.api_key = api_key
        self.log_cfg = log_cfg
        self.llm_logger = llm_logger

    def generate(self, prompt: str, system: str, label: str = "") -> str:
        payload = {
            "systemInstruction": {"parts": [{"text": system}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.cfg.temperature,
                "maxOutputTokens": self.cfg.max_output_tokens,
            },
        }
        log_event(
            logger,
            f"Generating {label or 'section'} with {self.model} ({len(prompt)} prompt chars)",
            event="llm_request",
            label=label,
            model=self.model,
        )
        try:
            data = self._post(payload)
        except (httpx.HTTPError, ValueError) as exc:
            self._log_llm_response(label, "provider_error", str(exc), prompt)
            raise ProviderError(f"Gemini request failed for {label or 'section'}: {exc}") from exc

        content = _extract_text(data).strip()
        self._log_llm_response(label, "ok", content, prompt)
        return content

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.cfg.base_url}/v1beta/models/{self.cfg.model}:generateContent"
        params = {"key": self.api_key}
        with httpx.Client(timeout=self.cfg.timeout_seconds, trust_env=self.cfg.trust_env) as client:
            resp = client.post(url, params=params, json=payload)
            resp.raise_for_status()
            return resp.json()

    def _log_llm_response(self, label: str, status: str, content: str, prompt: str) -> None:
        if self.llm_logger is None:
            return
        payload = {
            "event": "llm_response",
            "status": status,
            "model": self.model,
            "label": label,
        }
        if self.log_cfg.llm_log_detail == "prompt_response":
            payload["raw_prompt"] = truncate_text(prompt)
        payload["raw_response"] = truncate_text(content)
        log_event(self.llm_logger, "LLM response", **payload)


def _extract_text(data: dict[str, Any]) -> str:
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""

    if not isinstance(parts, list):
        return ""

    non_thought_chunks: list[str] = []
    all_chunks: list[str] = []
    for part in parts:
        if not isinstance(part, dict):
            continue
        text = part.get("text")
        if not text:
            continue
        chunk = str(text)
        all_chunks.append(chunk)
        if not part.get("thought"):
            non_thought_chunks.append(chunk)

    if non_thought_chunks:
        return "".join(non_thought_chunks)
    return "".join(all_chunks)
