"""Registry owning the buckets of one application.

The registry owns the collaborators that buckets share: the locale-change
channel and the config record stored in one blob store. Buckets created
through the registry subscribe to the channel on start and unsubscribe on
shutdown, so a locale switch in one bucket is followed by every other bucket
that lists the same locale.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterator, List, Optional

from core.logging import get_module_logger
from localization.bucket import LocalizationBucket
from localization.config import BucketSettings
from localization.events import LocaleChannel
from localization.persistence import DEFAULT_CONFIG_NAME, BlobStore, ConfigRecord
from localization.transport import TransportClient

logger = get_module_logger()


class LocalizationRegistry:
    """Creates, holds and shuts down localization buckets.

    Attributes:
        store: BlobStore shared by every bucket.
        config_record: ConfigRecord shared by every bucket.
        locale_channel: LocaleChannel shared by every bucket.
    """

    def __init__(
        self,
        store: BlobStore,
        config_name: str = DEFAULT_CONFIG_NAME,
        locale_channel: Optional[LocaleChannel] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.config_record = ConfigRecord(store, name=config_name)
        self.locale_channel = locale_channel or LocaleChannel()
        self._executor = executor
        self._clock = clock
        self._buckets: Dict[str, LocalizationBucket] = {}
        self._lock = threading.Lock()

    def create_bucket(
        self,
        settings: BucketSettings,
        transport: Optional[TransportClient] = None,
        start: bool = True,
    ) -> LocalizationBucket:
        """Create and register a bucket.

        Args:
            settings: Resolved bucket settings.
            transport: Optional TransportClient for this bucket.
            start: Start the bucket immediately.

        Returns:
            The new LocalizationBucket.

        Raises:
            ValueError: If a bucket with the same id is already registered.
        """
        if settings.bucket_id == self.config_record.name:
            raise ValueError(
                f"Bucket id '{settings.bucket_id}' collides with the config record"
            )

        bucket = LocalizationBucket(
            settings,
            store=self.store,
            transport=transport,
            config_record=self.config_record,
            locale_channel=self.locale_channel,
            executor=self._executor,
            clock=self._clock,
        )

        with self._lock:
            if settings.bucket_id in self._buckets:
                raise ValueError(f"Bucket '{settings.bucket_id}' already registered")
            self._buckets[settings.bucket_id] = bucket

        logger.info("bucket_registered", bucket_id=settings.bucket_id)
        if start:
            bucket.start()
        return bucket

    def get(self, bucket_id: str) -> Optional[LocalizationBucket]:
        with self._lock:
            return self._buckets.get(bucket_id)

    @property
    def bucket_ids(self) -> List[str]:
        with self._lock:
            return list(self._buckets.keys())

    def __contains__(self, bucket_id: object) -> bool:
        with self._lock:
            return bucket_id in self._buckets

    def __iter__(self) -> Iterator[LocalizationBucket]:
        with self._lock:
            buckets = list(self._buckets.values())
        return iter(buckets)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def set_locale(self, locale: str, persist: bool = True) -> bool:
        """Switch every bucket that lists the locale.

        Returns:
            True if at least one bucket accepted the locale.
        """
        accepted = [bucket.set_locale(locale, persist=persist) for bucket in self]
        if not any(accepted):
            logger.warning("locale_not_configured_in_any_bucket", locale=locale)
        return any(accepted)

    def remove_bucket(self, bucket_id: str, save_cache: Optional[bool] = None) -> bool:
        """Shut down and unregister a bucket.

        Returns:
            True if the bucket was registered.
        """
        with self._lock:
            bucket = self._buckets.pop(bucket_id, None)
        if bucket is None:
            return False
        bucket.shutdown(save_cache=save_cache)
        logger.info("bucket_unregistered", bucket_id=bucket_id)
        return True

    def shutdown(self, save_cache: Optional[bool] = None) -> None:
        """Shut down every bucket."""
        for bucket_id in self.bucket_ids:
            self.remove_bucket(bucket_id, save_cache=save_cache)
        logger.info("registry_shut_down")
