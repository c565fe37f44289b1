"""Document store configuration using Pydantic Settings.

The engine reads documents either from process memory (development and tests)
or from a SQL database holding one JSON document per row. SQL supports both
PostgreSQL (production) and SQLite (development).

Example environment variables:
    DB_BACKEND=sql
    DB_DRIVER=postgresql+asyncpg
    DB_HOST=localhost
    DB_PORT=5432
    DB_NAME=yetwork
    DB_USER=yetwork
    DB_PASSWORD=secret
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Document store settings, overridable with the DB_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: str = Field(default="memory", description="Document store backend: memory or sql")

    # Database driver: postgresql+asyncpg (production) or sqlite+aiosqlite (dev)
    driver: str = Field(
        default="sqlite+aiosqlite",
        description="Database driver (postgresql+asyncpg or sqlite+aiosqlite)"
    )

    # PostgreSQL settings
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="yetwork", description="Database name")
    user: str = Field(default="", description="Database user")
    password: str = Field(default="", description="Database password")

    # SQLite settings (for development/testing)
    sqlite_path: Path = Field(
        default=Path("data/documents.db"),
        description="Path to SQLite database file"
    )

    pool_size: int = Field(default=5, ge=1, le=100, description="Connections kept in the pool")
    pool_pre_ping: bool = Field(default=True, description="Test connections before using them")
    echo_sql: bool = Field(default=False, description="Log all SQL statements")
    query_timeout: int = Field(default=30, ge=1, description="Query timeout in seconds")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("memory", "sql"):
            raise ValueError(f"Unknown document store backend: {value}")
        return value

    @computed_field
    @property
    def is_sqlite(self) -> bool:
        """Check if using SQLite."""
        return "sqlite" in self.driver.lower()

    @computed_field
    @property
    def async_url(self) -> str:
        """
        Get the async database URL.

        Returns:
            Database URL for async connections.
        """
        if self.is_sqlite:
            return f"sqlite+aiosqlite:///{self.sqlite_path.absolute()}"

        auth = ""
        if self.user:
            auth = f"{self.user}"
            if self.password:
                auth += f":{self.password}"
            auth += "@"

        return f"{self.driver}://{auth}{self.host}:{self.port}/{self.name}"

    def get_connect_args(self) -> dict:
        """Get driver-specific connection arguments."""
        if self.is_sqlite:
            return {"timeout": self.query_timeout}
        return {"command_timeout": self.query_timeout}


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """
    Get cached database settings instance.

    Returns:
        DatabaseSettings: Cached settings loaded from environment.
    """
    return DatabaseSettings()
