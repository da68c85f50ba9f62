"""Unit tests for bridge service utility functions."""

from __future__ import annotations

import os
import sys
import tempfile
import unittest
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from scratchbridge.core.bridge import service_utils


class _EnvCase(unittest.TestCase):
    def setUp(self) -> None:
        self._env = os.environ.copy()

    def tearDown(self) -> None:
        os.environ.clear()
        os.environ.update(self._env)


class TestServiceUtilsEnv(_EnvCase):
    def test_env_int(self) -> None:
        os.environ["BRIDGE_NUM"] = "42"
        self.assertEqual(service_utils.env_int("BRIDGE_NUM", 1, minimum=1), 42)
        os.environ["BRIDGE_NUM"] = "0"
        self.assertEqual(service_utils.env_int("BRIDGE_NUM", 5, minimum=1), 1)
        os.environ["BRIDGE_NUM"] = "bad"
        self.assertEqual(service_utils.env_int("BRIDGE_NUM", 7, minimum=0), 7)

    def test_env_float(self) -> None:
        os.environ["BRIDGE_FLOAT"] = "3.14"
        self.assertEqual(service_utils.env_float("BRIDGE_FLOAT", 0.0, minimum=0.0), 3.14)
        os.environ["BRIDGE_FLOAT"] = "bad"
        self.assertEqual(service_utils.env_float("BRIDGE_FLOAT", 1.5, minimum=0.0), 1.5)

    def test_env_str(self) -> None:
        os.environ["BRIDGE_STR"] = "  value  "
        self.assertEqual(service_utils.env_str("BRIDGE_STR"), "value")
        os.environ["BRIDGE_STR"] = "   "
        self.assertEqual(service_utils.env_str("BRIDGE_STR", "fallback"), "fallback")

    def test_explicit_environ_ignores_process_env(self) -> None:
        os.environ["BRIDGE_NUM"] = "42"
        self.assertEqual(service_utils.env_int("BRIDGE_NUM", 3, environ={}), 3)
        self.assertEqual(service_utils.env_int("BRIDGE_NUM", 3, environ={"BRIDGE_NUM": "9"}), 9)


class TestServiceUtilsText(unittest.TestCase):
    def test_compact_prompt_text(self) -> None:
        self.assertEqual(service_utils.compact_prompt_text("  a \n b  "), "a b")
        self.assertEqual(service_utils.compact_prompt_text("x" * 20, max_len=10), "xxxxxxx...")
        self.assertEqual(service_utils.compact_prompt_text(None), "")

    def test_mask_secret(self) -> None:
        self.assertEqual(service_utils.mask_secret("abcdef"), "abcd**")
        self.assertEqual(service_utils.mask_secret("abc"), "***")
        self.assertEqual(service_utils.mask_secret(""), "")


class TestExpiredLogFiles(unittest.TestCase):
    def test_only_dated_files_past_retention(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            logs_dir = Path(td)
            for name in (
                "bridge-2026-10-01.log",
                "bridge-2026-10-13.log",
                "bridge-2026-10-19.log",
                "notes.log",
                "bridge-2026-13-40.log",
                "bridge-2026-10-01.txt",
            ):
                (logs_dir / name).write_text("", encoding="utf-8")

            expired = service_utils.expired_log_files(logs_dir, 7, today=date(2026, 10, 19))

        self.assertEqual([path.name for path in expired], ["bridge-2026-10-01.log"])

    def test_missing_dir(self) -> None:
        self.assertEqual(service_utils.expired_log_files(Path("/nonexistent/bridge-logs"), 7), [])


if __name__ == "__main__":
    unittest.main()
