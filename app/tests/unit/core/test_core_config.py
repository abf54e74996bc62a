"""Tests for core.config module."""

import pytest
from pydantic import ValidationError

from core.config import (
    DEFAULT_LOCALE_SERVER_BASE_URL,
    CacheSettings,
    LocaleServerSettings,
    RefreshSettings,
    Settings,
)


@pytest.mark.unit
class TestSettings:
    """Tests for the environment driven settings."""

    def test_defaults(self, monkeypatch):
        """Unset variables fall back to the documented defaults."""
        for name in (
            "LOCALE_SERVER_BASE_URL",
            "REFRESH_MIN_SECONDS_BETWEEN_REQUESTS",
            "REFRESH_MAX_RESPONSE_TIME_MILLISECONDS",
            "REFRESH_WATCHDOG_POLL_INTERVAL_MILLISECONDS",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.locale_server.BASE_URL == DEFAULT_LOCALE_SERVER_BASE_URL
        assert settings.refresh.MIN_SECONDS_BETWEEN_REQUESTS == 86400
        assert settings.refresh.MAX_RESPONSE_TIME_MILLISECONDS == 4096
        assert settings.refresh.WATCHDOG_POLL_INTERVAL_MILLISECONDS == 256

    def test_env_aliases(self, monkeypatch):
        """Sub-settings read their prefixed environment variables."""
        monkeypatch.setenv("LOCALE_SERVER_BASE_URL", "https://locales.example.com")
        monkeypatch.setenv("LOCALE_SERVER_READ_ACCESS_PASSWORD", "pw")
        monkeypatch.setenv("REFRESH_MAX_WORKERS", "8")
        monkeypatch.setenv("LOCALIZATION_CACHE_DIRECTORY", "/tmp/cache")

        assert LocaleServerSettings().BASE_URL == "https://locales.example.com"
        assert LocaleServerSettings().READ_ACCESS_PASSWORD == "pw"
        assert RefreshSettings().MAX_WORKERS == 8
        assert CacheSettings().CACHE_DIRECTORY == "/tmp/cache"

    def test_invalid_values_rejected(self, monkeypatch):
        """Out-of-range values fail validation."""
        monkeypatch.setenv("REFRESH_MAX_WORKERS", "1")
        with pytest.raises(ValidationError):
            RefreshSettings()

    def test_is_production(self, monkeypatch):
        """An empty PREFIX means production."""
        monkeypatch.setenv("PREFIX", "")
        assert Settings().is_production is True
        monkeypatch.setenv("PREFIX", "dev-")
        assert Settings().is_production is False

    def test_explicit_sub_settings_kept(self):
        """Explicitly passed sub-settings are not rebuilt from the env."""
        cache = CacheSettings(LOCALIZATION_CONFIG_FILE_NAME="state.json")
        settings = Settings(cache=cache)
        assert settings.cache.CONFIG_FILE_NAME == "state.json"
