from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from loguru import logger as _loguru_logger

from scratchbridge.runtime import dotenv_path, project_root

PROJECT_ROOT = project_root()

_LOGURU_FILE_SINKS: dict[str, tuple[str, int | None]] = {}


def _ensure_bridge_log_sink(log_path: Path, component: str) -> None:
    """Keep exactly one file sink per component, pointed at ``log_path``."""
    path_key = str(log_path)
    current = _LOGURU_FILE_SINKS.get(component)
    if current is not None and current[0] == path_key:
        return
    if current is not None and current[1] is not None:
        _loguru_logger.remove(current[1])
    handler_id: int | None = None
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler_id = _loguru_logger.add(
            path_key,
            level="INFO",
            format=f"[{component}] [{{time:YYYY-MM-DD HH:mm:ss}}] {{level}} {{message}}",
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )
    except OSError as exc:
        _loguru_logger.warning(f"cannot open log file {log_path}: {exc}")
    _LOGURU_FILE_SINKS[component] = (path_key, handler_id)


def _resolve_level(message_text: str, level: str) -> str:
    if message_text.startswith("ERROR:"):
        return "ERROR"
    if message_text.startswith("WARN:"):
        return "WARNING"
    if message_text.startswith("INFO:"):
        return "INFO"
    return str(level).upper()


def _log_with_loguru(
    message: str,
    *,
    log_path: Path | None,
    component: str = "bridge",
    level: str = "INFO",
) -> None:
    message_text = str(message).strip()
    if not message_text:
        return
    level_name = _resolve_level(message_text, level)
    if log_path is not None:
        _ensure_bridge_log_sink(log_path=log_path, component=component)
    _loguru_logger.log(level_name, message_text)


load_dotenv(dotenv_path(), override=False)

__all__ = [
    "PROJECT_ROOT",
    "_LOGURU_FILE_SINKS",
    "_ensure_bridge_log_sink",
    "_log_with_loguru",
    "_loguru_logger",
    "_resolve_level",
]
