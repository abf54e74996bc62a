"""Tests for localization.factory module."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from core.config import Settings
from localization import (
    FileBlobStore,
    InMemoryBlobStore,
    LocalizationRegistry,
    create_bucket_settings,
    create_registry,
)
from localization.config import DEFAULT_LOCALES


@pytest.fixture
def app_settings(monkeypatch):
    """Settings built from a controlled environment."""
    monkeypatch.setenv("LOCALE_SERVER_USER_ID", "user-42")
    monkeypatch.setenv("LOCALE_SERVER_API_KEY", "key-42")
    monkeypatch.setenv("REFRESH_MIN_SECONDS_BETWEEN_REQUESTS", "3600")
    monkeypatch.setenv("LOCALIZATION_RETURN_KEY_WHEN_NOT_FOUND", "true")
    return Settings()


@pytest.mark.unit
class TestCreateBucketSettings:
    """Tests for create_bucket_settings()."""

    def test_values_come_from_settings(self, app_settings):
        """Server credentials and timings are taken from Settings."""
        bucket_settings = create_bucket_settings(
            "menu", keys=["greeting"], settings=app_settings
        )

        assert bucket_settings.bucket_id == "menu"
        assert bucket_settings.user_id == "user-42"
        assert bucket_settings.api_key == "key-42"
        assert bucket_settings.min_seconds_between_requests == 3600
        assert bucket_settings.return_key_when_not_found is True
        assert bucket_settings.locales == DEFAULT_LOCALES
        assert bucket_settings.last_fetch_config_key == "last_fetch_utc_menu"

    def test_overrides_win(self, app_settings):
        """Explicit overrides replace Settings values."""
        bucket_settings = create_bucket_settings(
            "menu",
            keys=["greeting", "greeting", "quit"],
            locales=["en_US"],
            settings=app_settings,
            min_seconds_between_requests=60,
        )

        assert bucket_settings.min_seconds_between_requests == 60
        assert bucket_settings.locales == ["en_US"]
        assert bucket_settings.keys == ["greeting", "quit"]

    @pytest.mark.parametrize(
        "bucket_id,locales",
        [
            ("", ["en_US"]),
            ("../menu", ["en_US"]),
            ("menu", []),
            ("menu", ["en_US", "en_US"]),
        ],
    )
    def test_invalid_values_rejected(self, app_settings, bucket_id, locales):
        """Invalid bucket ids and locale lists raise ValidationError."""
        with pytest.raises(ValidationError):
            create_bucket_settings(
                bucket_id, keys=["greeting"], locales=locales, settings=app_settings
            )


@pytest.mark.unit
class TestCreateRegistry:
    """Tests for create_registry()."""

    def test_uses_given_store(self, app_settings):
        """A provided store is shared by the registry."""
        store = InMemoryBlobStore()
        registry = create_registry(settings=app_settings, store=store)

        assert isinstance(registry, LocalizationRegistry)
        assert registry.store is store
        assert registry.config_record.name == app_settings.cache.CONFIG_FILE_NAME

    def test_defaults_to_file_store(self, app_settings, tmp_path):
        """Without a store a FileBlobStore is created in the cache directory."""
        registry = create_registry(settings=app_settings, cache_directory=tmp_path)

        assert isinstance(registry.store, FileBlobStore)
        assert registry.store.directory == tmp_path

    def test_uses_module_settings_by_default(self, tmp_path, app_settings):
        """The module-level settings are used when none are given."""
        with patch("localization.factory.default_settings", app_settings):
            bucket_settings = create_bucket_settings("menu", keys=[])
        assert bucket_settings.user_id == "user-42"
