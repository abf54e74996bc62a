"""Localization bucket facade.

A bucket owns one CacheStore and one RefreshCoordinator and exposes lookup,
locale switching and lifecycle operations. Lookups never block on network
I/O: a due refresh is started in the background and the lookup answers from
the current cache.

Usage:
    bucket = LocalizationBucket(settings, store=FileBlobStore("localization_cache"))
    bucket.start()

    bucket.refreshed.subscribe(redraw_labels)
    greeting = bucket.translate("greeting")

    bucket.set_locale("de_DE.UTF-8")
    bucket.shutdown()
"""

import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Tuple

from core.config import (
    DEFAULT_LOCALE_SERVER_BASE_URL,
    DEFAULT_LOCALE_SERVER_TRANSLATION_ENDPOINT,
)
from core.logging import get_module_logger
from localization.cache import CacheStore
from localization.config import BucketSettings
from localization.events import LocaleChanged, LocaleChannel
from localization.models import HealthCheckResult, RefreshOutcome
from localization.persistence import BlobStore, BucketPersistence, ConfigRecord
from localization.refresh import RefreshCoordinator
from localization.transport import LocaleServerClient, TransportClient

logger = get_module_logger()


class LocalizationBucket:
    """Named collection of translation keys and locales served from a local cache.

    Attributes:
        settings: Resolved BucketSettings.
        refreshed: Signal emitted after every refresh pass and cache load.
        connection_failed: Signal emitted when a refresh misses its deadline.
    """

    def __init__(
        self,
        settings: BucketSettings,
        store: BlobStore,
        transport: Optional[TransportClient] = None,
        config_record: Optional[ConfigRecord] = None,
        locale_channel: Optional[LocaleChannel] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize a bucket. Nothing is loaded until start() is called.

        Args:
            settings: Resolved bucket settings.
            store: BlobStore holding the cache blob (and the config record
                unless one is injected).
            transport: Optional TransportClient; defaults to a
                LocaleServerClient built from the settings.
            config_record: Optional shared ConfigRecord.
            locale_channel: Optional shared LocaleChannel.
            executor: Optional executor for refresh work.
            clock: Wall-clock source returning unix seconds.
        """
        self.settings = settings
        self._locales: Tuple[str, ...] = tuple(settings.locales)
        self._locale_index = 0
        self._ready = False

        self._cache = CacheStore()
        self._transport = transport or LocaleServerClient(
            base_url=settings.base_url,
            translation_endpoint=settings.translation_endpoint,
            api_key=settings.api_key,
            timeout=settings.request_timeout_seconds,
        )
        self._persistence = BucketPersistence(
            bucket_id=settings.bucket_id,
            store=store,
            config=config_record or ConfigRecord(store),
            locale_index_key=settings.config_id_locale_index,
            last_fetch_key=settings.last_fetch_config_key,
        )
        self._locale_channel = locale_channel or LocaleChannel()
        self._coordinator = RefreshCoordinator(
            settings=settings,
            cache=self._cache,
            transport=self._transport,
            persistence=self._persistence,
            executor=executor,
            clock=clock,
        )

        self.refreshed = self._coordinator.refreshed
        self.connection_failed = self._coordinator.connection_failed
        self._logger = logger.bind(bucket_id=settings.bucket_id)

    @property
    def bucket_id(self) -> str:
        return self.settings.bucket_id

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def locale(self) -> str:
        """Currently active locale."""
        return self._locales[self._locale_index]

    @property
    def locales(self) -> Tuple[str, ...]:
        return self._locales

    def get_locales(self) -> Tuple[str, ...]:
        """Get the configured locales, in order."""
        return self._locales

    @property
    def locale_channel(self) -> LocaleChannel:
        return self._locale_channel

    @property
    def cache(self) -> CacheStore:
        return self._cache

    @property
    def coordinator(self) -> RefreshCoordinator:
        return self._coordinator

    @property
    def refresh_needed(self) -> bool:
        return self._coordinator.is_refresh_due()

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    @property
    def translation_endpoint(self) -> str:
        return self._transport.translation_endpoint

    def start(self) -> Optional["Future[RefreshOutcome]"]:
        """Load persisted state and run the initial refresh pass.

        Returns:
            Future of the initial refresh, or None if it was suppressed.
        """
        if self._ready:
            return None

        config = self._persistence.load_bucket_config(len(self._locales))
        self._coordinator.restore_last_fetch(config.last_fetch_unix_seconds)
        self._locale_index = config.active_locale_index

        self._locale_channel.subscribe(self._on_locale_changed)
        self._locale_channel.publish(self.locale, self.bucket_id)

        self.load_cache()
        self._ready = True
        self._logger.info(
            "bucket_started",
            locale=self.locale,
            key_count=len(self.settings.keys),
            cached_key_count=len(self._cache),
            last_fetch_unix_seconds=config.last_fetch_unix_seconds,
        )

        return self.refresh()

    def shutdown(self, save_cache: Optional[bool] = None) -> None:
        """Unsubscribe, flush persisted state and stop background work.

        Args:
            save_cache: Flush the cache blob. Defaults to the bucket's
                save_cache_on_shutdown setting. The config record is always
                flushed.
        """
        self._locale_channel.unsubscribe(self._on_locale_changed)

        if not self._ready:
            self._coordinator.shutdown()
            return

        if save_cache is None:
            save_cache = self.settings.save_cache_on_shutdown
        if save_cache:
            self.save_cache()

        self._persistence.store_locale_index(self._locale_index, persist=True)
        self._coordinator.shutdown()
        self._ready = False
        self._logger.info("bucket_shut_down", saved_cache=save_cache)

    def translate(self, key: str) -> Optional[str]:
        """Get the translated value of a key for the active locale.

        Starts a background refresh when one is due; the answer always comes
        from the current cache.

        Args:
            key: Translation key. It must be in the bucket's key list to ever
                be fetched from the server.

        Returns:
            The translated value; the key itself on a miss when
            return_key_when_not_found is set; None otherwise.
        """
        if self._ready and self._coordinator.should_refresh():
            self._coordinator.request_refresh()

        value = self._cache.get(key, self.locale)
        if value is None and self.settings.return_key_when_not_found:
            return key
        return value

    def __getitem__(self, key: str) -> Optional[str]:
        return self.translate(key)

    def set_locale(self, locale: str, persist: bool = True) -> bool:
        """Switch the active locale.

        Args:
            locale: New locale; must be one of the configured locales.
            persist: Write the change to the config record.

        Returns:
            True if the locale was applied, False if it is not configured.
        """
        if locale not in self._locales:
            self._logger.warning(
                "invalid_locale", locale=locale, locales=list(self._locales)
            )
            return False

        self._locale_index = self._locales.index(locale)
        self._persistence.store_locale_index(self._locale_index, persist=persist)
        self._locale_channel.publish(locale, self.bucket_id)
        return True

    def change_server(
        self,
        base_url: str = DEFAULT_LOCALE_SERVER_BASE_URL,
        translation_endpoint: str = DEFAULT_LOCALE_SERVER_TRANSLATION_ENDPOINT,
    ) -> bool:
        """Point the bucket at another locale server and refresh from it.

        Returns:
            True if the server changed, False if it was already the target.
        """
        if (
            base_url == self._transport.base_url
            and translation_endpoint == self._transport.translation_endpoint
        ):
            return False

        self._transport.change_target(base_url, translation_endpoint)
        self._logger.info(
            "bucket_server_changed",
            base_url=base_url,
            translation_endpoint=translation_endpoint,
        )
        if self._ready:
            self._coordinator.request_refresh(force=True)
        return True

    def refresh(self, force: bool = False) -> Optional["Future[RefreshOutcome]"]:
        """Start a refresh if one is due.

        Returns:
            Future resolving to the RefreshOutcome, or None if suppressed.
        """
        if not self._ready:
            return None
        return self._coordinator.request_refresh(force=force)

    def load_cache(self) -> bool:
        """Replace the cache with the persisted blob.

        An absent or corrupt blob leaves an empty cache that the next
        refresh pass fills.

        Returns:
            True if a persisted cache was loaded.
        """
        loaded = self._persistence.load_cache()
        if loaded is None:
            self._cache.clear()
        else:
            self._cache.replace(loaded)
            self._logger.debug("bucket_cache_loaded", key_count=len(self._cache))

        self.refreshed.emit()
        return loaded is not None

    def save_cache(self) -> bool:
        """Write the cache blob now.

        Returns:
            True if the blob was written.
        """
        return self._persistence.save_cache(self._cache)

    def check_server_reachable(self) -> "Future[HealthCheckResult]":
        """Probe the locale server in the background."""
        return self._coordinator.submit(self._transport.check_health)

    def _on_locale_changed(self, event: LocaleChanged) -> None:
        if event.source_bucket_id == self.bucket_id:
            return
        if event.locale not in self._locales:
            return

        # The shared config record keeps the publisher's index, which may point
        # into a differently ordered locale list; followers never write it here.
        index = self._locales.index(event.locale)
        if index != self._locale_index:
            self._locale_index = index
            self._logger.debug(
                "bucket_followed_locale_change",
                locale=event.locale,
                source_bucket_id=event.source_bucket_id,
            )
