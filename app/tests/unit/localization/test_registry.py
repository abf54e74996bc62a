"""Tests for localization.registry module."""

import json

import pytest

from localization import LocalizationRegistry
from tests.factories.localization import FakeTransport, make_bucket_settings


@pytest.fixture
def registry(memory_store):
    """Registry over the in-memory store, shut down after the test."""
    registry = LocalizationRegistry(memory_store)
    yield registry
    registry.shutdown(save_cache=False)


@pytest.mark.unit
class TestLocalizationRegistry:
    """Tests for LocalizationRegistry."""

    def test_create_bucket_registers_and_starts(self, registry, greeting_response):
        """create_bucket() registers the bucket and starts it."""
        transport = FakeTransport(response=greeting_response)
        bucket = registry.create_bucket(make_bucket_settings("menu"), transport=transport)

        assert "menu" in registry
        assert registry.get("menu") is bucket
        assert registry.bucket_ids == ["menu"]
        assert len(registry) == 1
        assert bucket.is_ready
        assert bucket.locale_channel is registry.locale_channel

    def test_create_bucket_without_start(self, registry):
        """start=False leaves the bucket idle."""
        transport = FakeTransport()
        bucket = registry.create_bucket(
            make_bucket_settings("menu"), transport=transport, start=False
        )
        assert not bucket.is_ready
        assert transport.call_count == 0

    def test_duplicate_bucket_id_rejected(self, registry):
        """Bucket ids are unique per registry."""
        registry.create_bucket(make_bucket_settings("menu"), transport=FakeTransport())
        with pytest.raises(ValueError):
            registry.create_bucket(
                make_bucket_settings("menu"), transport=FakeTransport()
            )

    def test_bucket_id_colliding_with_config_rejected(self, registry):
        """A bucket cannot use the config record's blob name."""
        with pytest.raises(ValueError):
            registry.create_bucket(
                make_bucket_settings("config.json"), transport=FakeTransport()
            )

    def test_set_locale_switches_matching_buckets(self, registry):
        """set_locale() applies to every bucket listing the locale."""
        menu = registry.create_bucket(
            make_bucket_settings("menu"), transport=FakeTransport()
        )
        about = registry.create_bucket(
            make_bucket_settings("about", locales=["en_US", "it_IT"]),
            transport=FakeTransport(),
        )

        assert registry.set_locale("it_IT") is True
        assert about.locale == "it_IT"
        assert menu.locale == "en_US"

        assert registry.set_locale("fr_FR") is False

    def test_buckets_share_config_record(self, registry, memory_store):
        """All buckets write their fetch times into one record."""
        for bucket_id in ("menu", "hud"):
            registry.create_bucket(
                make_bucket_settings(bucket_id), transport=FakeTransport()
            )

        saved = json.loads(memory_store.read("config.json"))
        assert "last_fetch_utc_menu" in saved
        assert "last_fetch_utc_hud" in saved

    def test_iteration(self, registry):
        """Iterating yields the registered buckets."""
        registry.create_bucket(make_bucket_settings("menu"), transport=FakeTransport())
        registry.create_bucket(make_bucket_settings("hud"), transport=FakeTransport())
        assert sorted(bucket.bucket_id for bucket in registry) == ["hud", "menu"]

    def test_remove_bucket(self, registry):
        """remove_bucket() shuts down and unregisters the bucket."""
        bucket = registry.create_bucket(
            make_bucket_settings("menu"), transport=FakeTransport()
        )

        assert registry.remove_bucket("menu") is True
        assert "menu" not in registry
        assert not bucket.is_ready
        assert registry.locale_channel.handler_count == 0
        assert registry.remove_bucket("menu") is False

    def test_shutdown_removes_all_buckets(self, memory_store):
        """shutdown() shuts down every bucket."""
        registry = LocalizationRegistry(memory_store)
        buckets = [
            registry.create_bucket(make_bucket_settings(bucket_id), transport=FakeTransport())
            for bucket_id in ("menu", "hud")
        ]

        registry.shutdown()

        assert len(registry) == 0
        assert all(not bucket.is_ready for bucket in buckets)
