"""Configuration module for group activity monitoring runs."""

from groupmon.config.loader import (
    ConfigValidationError,
    GroupConfig,
    LoggingConfig,
    MonitorConfig,
    SimulationConfig,
    load_config,
)

__all__ = [
    "ConfigValidationError",
    "GroupConfig",
    "LoggingConfig",
    "MonitorConfig",
    "SimulationConfig",
    "load_config",
]
