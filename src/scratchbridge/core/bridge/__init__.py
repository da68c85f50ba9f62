"""Bridge package facade."""

from scratchbridge.core.bridge.service import BridgeContext, BridgeService, BridgeState
from scratchbridge.core.bridge.service_config import BridgeServiceConfig
from scratchbridge.core.bridge.main import main

__all__ = ["BridgeContext", "BridgeService", "BridgeServiceConfig", "BridgeState", "main"]
