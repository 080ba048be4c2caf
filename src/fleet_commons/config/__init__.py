"""Configuration for fleet-commons: settings and logging."""

from .settings import RBACSettings, get_rbac_settings
from .logging_config import (
    LogLevel,
    LogVerbosity,
    LogFormat,
    LoggingConfig,
    setup_logging,
    get_logger,
)

__all__ = [
    "RBACSettings",
    "get_rbac_settings",
    "LogLevel",
    "LogVerbosity",
    "LogFormat",
    "LoggingConfig",
    "setup_logging",
    "get_logger",
]
