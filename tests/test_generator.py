"""Unit tests for the Gemini answer generator."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path
from typing import Any

import requests

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from scratchbridge.core.bridge.constants import GEMINI_SYSTEM_PROMPT, GENERATION_FALLBACK_TEXT
from scratchbridge.core.bridge.generator import (
    GeminiAnswerGenerator,
    build_generation_payload,
    extract_generated_text,
)


class _FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._body = body
        self.text = text

    def json(self) -> Any:
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class _FakeHttp:
    def __init__(self, result: Any) -> None:
        self.result = result
        self.calls: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> Any:
        self.calls.append({"url": url, **kwargs})
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def _ok_body(text: Any) -> dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestGenerationPayload(unittest.TestCase):
    def test_payload_shape(self) -> None:
        payload = build_generation_payload("hello")
        self.assertEqual(payload["contents"], [{"parts": [{"text": "hello"}]}])
        self.assertEqual(payload["systemInstruction"], {"parts": [{"text": GEMINI_SYSTEM_PROMPT}]})

    def test_system_prompt_asks_for_nw_line_breaks(self) -> None:
        self.assertIn("nw", GEMINI_SYSTEM_PROMPT)
        self.assertIn("80", GEMINI_SYSTEM_PROMPT)

    def test_extract_text(self) -> None:
        self.assertEqual(extract_generated_text(_ok_body("hi")), "hi")

    def test_extract_rejects_bad_shapes(self) -> None:
        for body in ([], {}, {"candidates": []}, {"candidates": [{"content": {}}]}, _ok_body(3)):
            with self.assertRaises(ValueError, msg=repr(body)):
                extract_generated_text(body)


class TestGeminiAnswerGenerator(unittest.TestCase):
    def _generator(self, http: _FakeHttp) -> tuple[GeminiAnswerGenerator, list[str]]:
        logs: list[str] = []
        generator = GeminiAnswerGenerator(
            "test-key",
            model="gemini-test",
            timeout_sec=12.0,
            http=http,
            log=logs.append,
        )
        return generator, logs

    def test_generate_success(self) -> None:
        http = _FakeHttp(_FakeResponse(body=_ok_body("Hello!nwBye")))
        generator, logs = self._generator(http)

        self.assertEqual(generator.generate("hi there"), "Hello!nwBye")
        self.assertEqual(logs, [])
        call = http.calls[0]
        self.assertIn("/models/gemini-test:generateContent", call["url"])
        self.assertNotIn("test-key", call["url"])
        self.assertEqual(call["headers"]["x-goog-api-key"], "test-key")
        self.assertEqual(call["timeout"], 12.0)
        self.assertEqual(call["json"]["contents"][0]["parts"][0]["text"], "hi there")

    def test_http_error_returns_fallback(self) -> None:
        http = _FakeHttp(_FakeResponse(status_code=500, text="internal"))
        generator, logs = self._generator(http)

        self.assertEqual(generator.generate("q"), GENERATION_FALLBACK_TEXT)
        self.assertTrue(any("HTTP 500" in line for line in logs))

    def test_network_error_returns_fallback(self) -> None:
        for exc in (requests.ConnectionError("down"), requests.Timeout("slow"), OSError("reset")):
            generator, logs = self._generator(_FakeHttp(exc))
            self.assertEqual(generator.generate("q"), GENERATION_FALLBACK_TEXT)
            self.assertTrue(logs[0].startswith("ERROR:"))

    def test_malformed_payload_returns_fallback(self) -> None:
        for body in ({"candidates": []}, _ok_body(None), ValueError("not json"), ["x"]):
            generator, _ = self._generator(_FakeHttp(_FakeResponse(body=body)))
            self.assertEqual(generator.generate("q"), GENERATION_FALLBACK_TEXT)

    def test_fallback_contains_line_break_marker(self) -> None:
        self.assertIn("nw", GENERATION_FALLBACK_TEXT)


if __name__ == "__main__":
    unittest.main()
