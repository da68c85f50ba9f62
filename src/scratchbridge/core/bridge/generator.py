"""Gemini-backed answer generator.

``generate`` never raises: every failure of the HTTP call or of the
response shape is logged and replaced by ``GENERATION_FALLBACK_TEXT`` so the
publishing step always has well-formed text to send.
"""

from __future__ import annotations

from typing import Any, Callable

import requests

from scratchbridge.core.bridge import service_utils as _service_utils
from scratchbridge.core.bridge.constants import (
    DEFAULT_GEMINI_API_TIMEOUT_SEC,
    DEFAULT_GEMINI_MODEL,
    GEMINI_API_URL_TEMPLATE,
    GEMINI_SYSTEM_PROMPT,
    GENERATION_FALLBACK_TEXT,
)
from scratchbridge.core.bridge.runtime_shared import _log_with_loguru


def build_generation_payload(prompt: str, system_prompt: str = GEMINI_SYSTEM_PROMPT) -> dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "systemInstruction": {"parts": [{"text": system_prompt}]},
    }


def extract_generated_text(payload: object) -> str:
    """Pull ``candidates[0].content.parts[0].text`` out of a response body."""
    if not isinstance(payload, dict):
        raise ValueError("response body is not an object")
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ValueError(f"unexpected response shape: {exc!r}") from exc
    if not isinstance(text, str):
        raise ValueError("generated text is not a string")
    return text


class GeminiAnswerGenerator:
    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_GEMINI_MODEL,
        timeout_sec: float = DEFAULT_GEMINI_API_TIMEOUT_SEC,
        http: Any | None = None,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout_sec = timeout_sec
        self.http = http if http is not None else requests.Session()
        self._log_fn = log

    def _log(self, message: str) -> None:
        if self._log_fn is not None:
            self._log_fn(message)
            return
        _log_with_loguru(message, log_path=None, component="generator")

    @property
    def url(self) -> str:
        return GEMINI_API_URL_TEMPLATE.format(model=self.model)

    def _request(self, prompt: str) -> str:
        res = self.http.post(
            self.url,
            json=build_generation_payload(prompt),
            headers={"Content-Type": "application/json", "x-goog-api-key": self.api_key or ""},
            timeout=self.timeout_sec,
        )
        if not res.ok:
            body = _service_utils.compact_prompt_text(res.text, max_len=100)
            raise RuntimeError(f"HTTP {res.status_code}: {body}")
        return extract_generated_text(res.json())

    def generate(self, prompt: str) -> str:
        try:
            return self._request(str(prompt))
        except Exception as exc:
            self._log(f"ERROR: AI error: {exc}")
            return GENERATION_FALLBACK_TEXT


__all__ = [
    "GeminiAnswerGenerator",
    "build_generation_payload",
    "extract_generated_text",
]
