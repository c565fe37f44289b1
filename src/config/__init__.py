"""Configuration module for the notification engine."""

from .database import DatabaseSettings, get_database_settings
from .logging_config import configure_logging
from .settings import (
    CelerySettings,
    EmailSettings,
    RedisSettings,
    Settings,
    get_email_settings,
    get_settings,
)

__all__ = [
    "CelerySettings",
    "DatabaseSettings",
    "EmailSettings",
    "RedisSettings",
    "Settings",
    "configure_logging",
    "get_database_settings",
    "get_email_settings",
    "get_settings",
]
