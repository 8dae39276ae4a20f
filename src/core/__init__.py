"""Core module — config, exceptions, logging."""

from src.core.config import (
    AuthConfig,
    LoggingConfig,
    ServerConfig,
    Settings,
    TelegramConfig,
    get_settings,
    load_settings,
    reset_settings,
)
from src.core.exceptions import ConfigError
from src.core.logging import setup_logging

__all__ = [
    "AuthConfig",
    "ConfigError",
    "LoggingConfig",
    "ServerConfig",
    "Settings",
    "TelegramConfig",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
