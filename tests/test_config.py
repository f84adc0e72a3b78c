"""Tests for application settings."""

from pathlib import Path

import pytest

from fx_deal_system.config import (
    DatabaseType,
    Environment,
    LogLevel,
    Settings,
    get_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "FXD_ENVIRONMENT",
        "FXD_DATABASE_TYPE",
        "FXD_DATABASE_URL",
        "FXD_SQLITE_PATH",
        "FXD_LOG_LEVEL",
        "FXD_LOG_FORMAT",
        "FXD_DEBUG",
        "FXD_USE_TRANSACTIONS",
        "FXD_API_PORT",
    ):
        monkeypatch.delenv(key, raising=False)


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.app_name == "FX Deal System"
        assert settings.database_type == DatabaseType.SQLITE
        assert settings.sqlite_path == Path("fx_deals.db")
        assert settings.use_transactions is True
        assert settings.log_level == LogLevel.INFO
        assert settings.api_port == 8080

    def test_environment_variables_override_defaults(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FXD_ENVIRONMENT", "production")
        monkeypatch.setenv("FXD_API_PORT", "9090")
        monkeypatch.setenv("FXD_USE_TRANSACTIONS", "false")

        settings = Settings(_env_file=None)

        assert settings.environment == Environment.PRODUCTION
        assert settings.api_port == 9090
        assert settings.use_transactions is False

    def test_production_defaults_to_json_logs(self) -> None:
        settings = Settings(_env_file=None, environment="production")

        assert settings.log_format == "json"
        assert settings.debug is False

    def test_development_defaults_to_console(self) -> None:
        settings = Settings(_env_file=None, environment="development")

        assert settings.log_format == "console"
        assert settings.debug is False

    def test_explicit_values_beat_environment_defaults(self) -> None:
        settings = Settings(
            _env_file=None, environment="production", debug=True, log_format="console"
        )

        assert settings.debug is True
        assert settings.log_format == "console"

    def test_sqlite_path_expands_home(self) -> None:
        settings = Settings(_env_file=None, sqlite_path="~/fx/deals.db")

        assert settings.sqlite_path == Path.home() / "fx" / "deals.db"

    def test_memory_sqlite_path_is_kept(self) -> None:
        settings = Settings(_env_file=None, sqlite_path=":memory:")

        assert str(settings.sqlite_path) == ":memory:"


class TestGetSettings:
    def test_is_cached(self) -> None:
        get_settings.cache_clear()

        assert get_settings() is get_settings()

        get_settings.cache_clear()
