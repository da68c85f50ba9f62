from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from scratchbridge.core.bridge import constants as _constants
from scratchbridge.core.bridge import service_utils as _service_utils
from scratchbridge.core.bridge.runtime_shared import PROJECT_ROOT


@dataclass(slots=True)
class BridgeServiceConfig:
    root: Path
    logs_dir: Path
    scratch_username: str
    scratch_password: str
    project_id: str
    gemini_api_key: str
    gemini_model: str
    gemini_api_timeout_sec: float
    scratch_api_timeout_sec: float
    poll_interval_sec: float
    chunk_write_delay_sec: float
    disconnected_backoff_sec: float
    error_backoff_sec: float
    connect_settle_sec: float
    log_retention_days: int

    @classmethod
    def from_env(
        cls,
        root: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> tuple["BridgeServiceConfig", list[str]]:
        base_root = Path(root or PROJECT_ROOT).resolve()
        warnings: list[str] = []

        def _str(name: str, default: str = "") -> str:
            return _service_utils.env_str(name, default, environ=environ)

        def _float(name: str, default: float, minimum: float) -> float:
            return _service_utils.env_float(name, default, minimum=minimum, environ=environ)

        logs_dir = Path(_str("LOGS_DIR", str(base_root / "logs"))).expanduser().resolve()
        project_id = _str("PROJECT_ID")
        if project_id and not project_id.isdigit():
            warnings.append(f"PROJECT_ID is not numeric: {project_id}")

        config = cls(
            root=base_root,
            logs_dir=logs_dir,
            scratch_username=_str("SCRATCH_USERNAME"),
            scratch_password=_str("SCRATCH_PASSWORD"),
            project_id=project_id,
            gemini_api_key=_str("GEMINI_API_KEY"),
            gemini_model=_str("GEMINI_MODEL", _constants.DEFAULT_GEMINI_MODEL),
            gemini_api_timeout_sec=_float(
                "GEMINI_API_TIMEOUT_SEC", _constants.DEFAULT_GEMINI_API_TIMEOUT_SEC, minimum=1.0
            ),
            scratch_api_timeout_sec=_float(
                "SCRATCH_API_TIMEOUT_SEC", _constants.DEFAULT_SCRATCH_API_TIMEOUT_SEC, minimum=1.0
            ),
            poll_interval_sec=_float(
                "BRIDGE_POLL_INTERVAL_SEC", _constants.DEFAULT_POLL_INTERVAL_SEC, minimum=0.5
            ),
            chunk_write_delay_sec=_float(
                "BRIDGE_CHUNK_WRITE_DELAY_SEC", _constants.DEFAULT_CHUNK_WRITE_DELAY_SEC, minimum=0.0
            ),
            disconnected_backoff_sec=_float(
                "BRIDGE_DISCONNECTED_BACKOFF_SEC", _constants.DEFAULT_DISCONNECTED_BACKOFF_SEC, minimum=0.5
            ),
            error_backoff_sec=_float(
                "BRIDGE_ERROR_BACKOFF_SEC", _constants.DEFAULT_ERROR_BACKOFF_SEC, minimum=0.5
            ),
            connect_settle_sec=_float(
                "BRIDGE_CONNECT_SETTLE_SEC", _constants.DEFAULT_CONNECT_SETTLE_SEC, minimum=0.0
            ),
            log_retention_days=_service_utils.env_int(
                "LOG_RETENTION_DAYS", _constants.DEFAULT_LOG_RETENTION_DAYS, minimum=1, environ=environ
            ),
        )
        return config, warnings

    def missing_required(self) -> list[str]:
        values = {
            "SCRATCH_USERNAME": self.scratch_username,
            "SCRATCH_PASSWORD": self.scratch_password,
            "PROJECT_ID": self.project_id,
            "GEMINI_API_KEY": self.gemini_api_key,
        }
        return [key for key in _constants.REQUIRED_ENV_KEYS if not values.get(key)]

    def describe(self) -> str:
        return (
            f"project={self.project_id or '-'} user={self.scratch_username or '-'} "
            f"model={self.gemini_model} api_key={_service_utils.mask_secret(self.gemini_api_key)} "
            f"poll={self.poll_interval_sec}s write_delay={self.chunk_write_delay_sec}s "
            f"settle={self.connect_settle_sec}s logs={self.logs_dir}"
        )
