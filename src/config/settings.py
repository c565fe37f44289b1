"""Application settings using Pydantic Settings.

Centralized configuration for the Yetwork notification engine.

Environment variables:
- APP_URL: Base URL used in links inside emails (default https://yet.lu)
- APP_REMINDER_TIMEZONE: Timezone of the daily due-date reminder run
- EMAIL_PROVIDER: sendgrid, ses, smtp, null or auto
- EMAIL_SENDGRID_API_KEY: SendGrid API key (secret, read at send time)
- REDIS_* / CELERY_*: Worker broker and scheduler settings
"""

import logging
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_APP_URL = "https://yet.lu"


class RedisSettings(BaseSettings):
    """Redis configuration for the Celery broker."""

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: Optional[str] = Field(default=None, description="Redis password")
    ssl: bool = Field(default=False, description="Use SSL for Redis connection")

    def url(self, db: int) -> str:
        """Get Redis URL for a database number."""
        auth = f":{self.password}@" if self.password else ""
        protocol = "rediss" if self.ssl else "redis"
        return f"{protocol}://{auth}{self.host}:{self.port}/{db}"


class CelerySettings(BaseSettings):
    """Celery task queue configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CELERY_",
        extra="ignore",
    )

    broker_db: int = Field(default=1, description="Redis DB for Celery broker")
    result_db: int = Field(default=2, description="Redis DB for Celery results")

    task_serializer: str = Field(default="json", description="Task serialization format")
    result_serializer: str = Field(default="json", description="Result serialization format")
    accept_content: list = Field(default=["json"], description="Accepted content types")

    task_acks_late: bool = Field(default=True, description="Acknowledge tasks after completion")
    task_reject_on_worker_lost: bool = Field(default=True, description="Requeue tasks if worker dies")
    worker_prefetch_multiplier: int = Field(default=1, description="Tasks to prefetch per worker")


class EmailSettings(BaseSettings):
    """Email delivery configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = Field(
        default="auto",
        description="Email provider: sendgrid, ses, smtp, null or auto",
    )
    from_email: str = Field(default="noreply@yet.lu", description="Sender address")
    from_name: str = Field(default="Yetwork", description="Sender display name")

    # SendGrid
    sendgrid_api_key: Optional[str] = Field(default=None, description="SendGrid API key")

    # AWS SES
    ses_region: Optional[str] = Field(default=None, description="AWS region for SES")
    aws_access_key_id: Optional[str] = Field(default=None, description="AWS access key")
    aws_secret_access_key: Optional[str] = Field(default=None, description="AWS secret key")

    # SMTP
    smtp_host: Optional[str] = Field(default=None, description="SMTP server hostname")
    smtp_port: int = Field(default=587, description="SMTP server port")
    smtp_username: Optional[str] = Field(default=None, description="SMTP username")
    smtp_password: Optional[str] = Field(default=None, description="SMTP password")
    smtp_use_tls: bool = Field(default=True, description="Use STARTTLS")
    smtp_timeout: int = Field(default=30, description="SMTP socket timeout in seconds")

    @field_validator("provider")
    @classmethod
    def normalize_provider(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("auto", "sendgrid", "ses", "smtp", "null"):
            raise ValueError(f"Unknown email provider: {value}")
        return value


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    name: str = Field(default="Yetwork", description="Product name used in emails")
    environment: str = Field(default="development", description="Environment name")

    app_url: str = Field(
        default=DEFAULT_APP_URL,
        validation_alias=AliasChoices("APP_URL", "APP_APP_URL"),
        description="Base application URL for links in emails",
    )

    # Due-date reminder job
    reminder_timezone: str = Field(
        default="Europe/Luxembourg",
        description="Timezone the daily reminder runs in",
    )
    reminder_hour: int = Field(default=8, ge=0, le=23, description="Local hour of the reminder run")
    reminder_minute: int = Field(default=0, ge=0, le=59, description="Local minute of the reminder run")
    reminder_window_days: int = Field(
        default=2,
        ge=1,
        description="Days covered by the reminder window, starting today",
    )

    @field_validator("app_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/") or DEFAULT_APP_URL

    @field_validator("reminder_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.reminder_timezone)

    # Nested settings (loaded separately)
    @property
    def email(self) -> EmailSettings:
        return EmailSettings()

    @property
    def redis(self) -> RedisSettings:
        return RedisSettings()

    @property
    def celery(self) -> CelerySettings:
        return CelerySettings()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Cached settings loaded from environment.
    """
    return Settings()


@lru_cache
def get_email_settings() -> EmailSettings:
    """Get cached email settings instance."""
    return EmailSettings()
