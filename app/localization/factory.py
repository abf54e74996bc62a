"""Factory functions for creating localization components.

Builds bucket settings and registries from the application Settings so
callers only have to name a bucket, its keys and its locales.
"""

from pathlib import Path
from typing import Any, Iterable, Optional

import structlog
from core.config import Settings, settings as default_settings
from localization.config import DEFAULT_LOCALES, BucketSettings
from localization.persistence import BlobStore, FileBlobStore
from localization.registry import LocalizationRegistry

logger = structlog.get_logger()


def create_bucket_settings(
    bucket_id: str,
    keys: Iterable[str],
    locales: Optional[Iterable[str]] = None,
    settings: Optional[Settings] = None,
    **overrides: Any,
) -> BucketSettings:
    """Resolve BucketSettings from the application Settings.

    Args:
        bucket_id: Bucket identifier.
        keys: Translation keys to fetch.
        locales: Ordered locales (default: en_US, de_DE, it_IT in UTF-8).
        settings: Application Settings (default: module-level settings).
        **overrides: Any BucketSettings field to override.

    Returns:
        BucketSettings: Validated bucket settings

    Raises:
        pydantic.ValidationError: If the resolved values are invalid

    Usage:
        bucket_settings = create_bucket_settings(
            "main_menu",
            keys=["greeting", "quit"],
            locales=["en_US", "de_DE"],
            return_key_when_not_found=True,
        )
    """
    settings = settings or default_settings
    values = {
        "bucket_id": bucket_id,
        "keys": list(keys),
        "locales": list(locales) if locales is not None else list(DEFAULT_LOCALES),
        "user_id": settings.locale_server.USER_ID,
        "api_key": settings.locale_server.API_KEY,
        "read_access_password": settings.locale_server.READ_ACCESS_PASSWORD,
        "base_url": settings.locale_server.BASE_URL,
        "translation_endpoint": settings.locale_server.TRANSLATION_ENDPOINT,
        "request_timeout_seconds": settings.locale_server.REQUEST_TIMEOUT_SECONDS,
        "min_seconds_between_requests": settings.refresh.MIN_SECONDS_BETWEEN_REQUESTS,
        "max_refresh_response_time_ms": settings.refresh.MAX_RESPONSE_TIME_MILLISECONDS,
        "watchdog_poll_interval_ms": settings.refresh.WATCHDOG_POLL_INTERVAL_MILLISECONDS,
        "max_workers": settings.refresh.MAX_WORKERS,
        "return_key_when_not_found": settings.cache.RETURN_KEY_WHEN_NOT_FOUND,
        "save_cache_on_shutdown": settings.cache.SAVE_CACHE_ON_SHUTDOWN,
        "config_id_locale_index": settings.cache.CONFIG_ID_LOCALE_INDEX,
        "config_id_last_fetch_utc": settings.cache.CONFIG_ID_LAST_FETCH_UTC,
    }
    values.update(overrides)
    return BucketSettings(**values)


def create_registry(
    settings: Optional[Settings] = None,
    store: Optional[BlobStore] = None,
    cache_directory: Optional[Path] = None,
) -> LocalizationRegistry:
    """Create a LocalizationRegistry backed by a blob store.

    If no store is provided, a FileBlobStore is created in cache_directory,
    falling back to the configured cache directory.

    Args:
        settings: Application Settings (default: module-level settings).
        store: Optional BlobStore shared by all buckets.
        cache_directory: Directory for the default FileBlobStore.

    Returns:
        LocalizationRegistry: Registry ready to create buckets
    """
    settings = settings or default_settings
    if store is None:
        directory = cache_directory or Path(settings.cache.CACHE_DIRECTORY)
        store = FileBlobStore(directory)
        logger.info("localization_file_store_created", directory=str(directory))

    return LocalizationRegistry(store, config_name=settings.cache.CONFIG_FILE_NAME)
