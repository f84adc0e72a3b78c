"""Runtime settings for the FX Deal System.

Values come from ``FXD_``-prefixed environment variables or a ``.env`` file
and fall back to defaults suited to a local SQLite install:

    FXD_DATABASE_TYPE=postgres
    FXD_DATABASE_URL=postgresql://fx:secret@db/fxdeals
    FXD_USE_TRANSACTIONS=false
    FXD_ENVIRONMENT=production
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MEMORY_DATABASE = ":memory:"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DatabaseType(str, Enum):
    SQLITE = "sqlite"
    POSTGRES = "postgres"


class Settings(BaseSettings):
    """Settings for the API server, the CLI and the storage backend.

    ``log_format`` follows ``environment`` unless set explicitly: staging and
    production log JSON, development and testing log to the console.
    """

    model_config = SettingsConfigDict(
        env_prefix="FXD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "FX Deal System"
    app_version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = Field(default=False, description="Log at DEBUG regardless of log_level")

    # Storage
    database_type: DatabaseType = DatabaseType.SQLITE
    database_url: str | None = Field(
        default=None, description="PostgreSQL DSN, required when database_type=postgres"
    )
    sqlite_path: Path = Field(
        default=Path("fx_deals.db"),
        description="SQLite file, or ':memory:' for a throwaway database",
    )
    use_transactions: bool = Field(
        default=True,
        description="Save every imported deal inside its own transaction scope",
    )

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: Literal["json", "console"] | None = None
    log_file: Path | None = None

    # HTTP server
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8080, ge=1, le=65535)
    api_reload: bool = False
    api_workers: int = Field(default=1, ge=1, le=32)

    @field_validator("sqlite_path")
    @classmethod
    def expand_sqlite_path(cls, v: Path) -> Path:
        if str(v) == MEMORY_DATABASE:
            return v
        return v.expanduser()

    @model_validator(mode="after")
    def derive_log_format(self) -> "Settings":
        if self.log_format is None:
            self.log_format = (
                "json"
                if self.environment in (Environment.STAGING, Environment.PRODUCTION)
                else "console"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Settings for this process, loaded once; ``get_settings.cache_clear()`` reloads."""
    return Settings()
