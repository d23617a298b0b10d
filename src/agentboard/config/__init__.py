"""Settings: YAML-backed configuration for the blackboard and its store."""

from agentboard.config.loader import SettingsLoader
from agentboard.config.models import BoardSettings, LimitSettings, StoreSettings, TelemetrySettings

__all__ = [
    "BoardSettings",
    "LimitSettings",
    "SettingsLoader",
    "StoreSettings",
    "TelemetrySettings",
]
