"""Configuration loading and validation."""

from quorum.config.loader import load_config
from quorum.config.schema import (
    GeneralConfig,
    HistoryConfig,
    LoggingConfig,
    MonitorConfig,
    ParticipantConfig,
    ParticipantDefaults,
    QuorumConfig,
    RolesConfig,
    StrategySettings,
)

__all__ = [
    "GeneralConfig",
    "HistoryConfig",
    "LoggingConfig",
    "MonitorConfig",
    "ParticipantConfig",
    "ParticipantDefaults",
    "QuorumConfig",
    "RolesConfig",
    "StrategySettings",
    "load_config",
]
