"""Bridge entrypoint."""
from __future__ import annotations

from scratchbridge.core.bridge.runtime_shared import _log_with_loguru
from scratchbridge.core.bridge.service import BridgeService
from scratchbridge.core.bridge.service_config import BridgeServiceConfig


def main() -> int:
    config, warnings = BridgeServiceConfig.from_env()
    for message in warnings:
        _log_with_loguru(f"WARN: {message}", log_path=None)
    return BridgeService(config).run()


if __name__ == "__main__":
    raise SystemExit(main())
