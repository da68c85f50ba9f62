"""Pure utility helpers for bridge service logic."""

from __future__ import annotations

import os
import re
from datetime import date, timedelta
from pathlib import Path
from typing import Mapping


def _env_raw(name: str, environ: Mapping[str, str] | None) -> str:
    source = os.environ if environ is None else environ
    return str(source.get(name, "") or "").strip()


def _coerce_float(raw: str, default: float, minimum: float) -> float:
    raw = raw.strip()
    if not raw:
        return max(minimum, default)
    try:
        return max(minimum, float(raw))
    except ValueError:
        return max(minimum, default)


def env_str(name: str, default: str = "", environ: Mapping[str, str] | None = None) -> str:
    return _env_raw(name, environ) or default


def env_int(name: str, default: int, minimum: int = 0, environ: Mapping[str, str] | None = None) -> int:
    raw = _env_raw(name, environ)
    if not raw:
        return max(minimum, default)
    try:
        return max(minimum, int(raw))
    except ValueError:
        return max(minimum, default)


def env_float(
    name: str,
    default: float,
    minimum: float = 0.0,
    environ: Mapping[str, str] | None = None,
) -> float:
    return _coerce_float(_env_raw(name, environ), default, minimum)


def compact_prompt_text(value: object, max_len: int = 240) -> str:
    text = re.sub(r"\s+", " ", str(value or "")).strip()
    if not text:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def mask_secret(value: object, visible: int = 4) -> str:
    text = str(value or "")
    if len(text) <= visible:
        return "*" * len(text)
    return text[:visible] + "*" * (len(text) - visible)


def expired_log_files(logs_dir: Path, retention_days: int, today: date | None = None) -> list[Path]:
    """Return dated ``*.log`` files older than the retention window."""
    if not logs_dir.exists():
        return []
    current = today or date.today()
    cutoff = current - timedelta(days=max(1, retention_days) - 1)
    expired: list[Path] = []
    for path in sorted(logs_dir.glob("*.log")):
        m = re.search(r"(\d{4}-\d{2}-\d{2})", path.stem)
        if not m:
            continue
        try:
            stamp = date.fromisoformat(m.group(1))
        except ValueError:
            continue
        if stamp < cutoff:
            expired.append(path)
    return expired


__all__ = [name for name in globals() if not name.startswith("__")]
