"""Shared runtime path helpers for CLI and bridge service."""

from __future__ import annotations

from pathlib import Path


def project_root() -> Path:
    """Return repository root where this file is located."""
    return Path(__file__).resolve().parents[2]


def dotenv_path() -> Path:
    return project_root() / ".env"
