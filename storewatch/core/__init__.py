"""Core module — config and logging."""

from storewatch.core.config import (
    DatabaseConfig,
    LoggingConfig,
    MonitoringConfig,
    RedisConfig,
    Settings,
    get_settings,
    load_settings,
    reset_settings,
)
from storewatch.core.logging import setup_logging

__all__ = [
    "DatabaseConfig",
    "LoggingConfig",
    "MonitoringConfig",
    "RedisConfig",
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
