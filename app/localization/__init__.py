"""Localization cache - client-side cache of remotely managed translations.

Fetches translated key/value strings for a configured set of locales from a
locale server, persists them locally and serves lookups without redundant
network traffic.

Main components:
- cache: CacheStore with a Brotli-compressed JSON blob codec
- persistence: BlobStore implementations, ConfigRecord, BucketPersistence
- transport: LocaleServerClient speaking the locale server's JSON protocol
- refresh: RefreshCoordinator deciding when and how to refresh
- bucket: LocalizationBucket facade (lookup, locale switch, lifecycle)
- registry: LocalizationRegistry owning shared collaborators
"""

from localization.bucket import LocalizationBucket
from localization.cache import CacheStore
from localization.config import BucketSettings
from localization.errors import (
    CacheWriteFailure,
    ConfigWriteFailure,
    DecodeError,
    LocalizationError,
    PersistenceError,
    TransportFailure,
)
from localization.events import LocaleChanged, LocaleChannel, Signal
from localization.factory import create_bucket_settings, create_registry
from localization.models import (
    BucketConfig,
    HealthCheckResult,
    RefreshOutcome,
    RefreshState,
    TranslationItem,
    TranslationRequest,
    TranslationResponse,
)
from localization.persistence import (
    BlobStore,
    BucketPersistence,
    ConfigRecord,
    FileBlobStore,
    InMemoryBlobStore,
)
from localization.refresh import RefreshCoordinator
from localization.registry import LocalizationRegistry
from localization.transport import LocaleServerClient, TransportClient

__all__ = [
    "BlobStore",
    "BucketConfig",
    "BucketPersistence",
    "BucketSettings",
    "CacheStore",
    "CacheWriteFailure",
    "ConfigRecord",
    "ConfigWriteFailure",
    "DecodeError",
    "FileBlobStore",
    "HealthCheckResult",
    "InMemoryBlobStore",
    "LocaleChanged",
    "LocaleChannel",
    "LocaleServerClient",
    "LocalizationBucket",
    "LocalizationError",
    "LocalizationRegistry",
    "PersistenceError",
    "RefreshCoordinator",
    "RefreshOutcome",
    "RefreshState",
    "Signal",
    "TransportClient",
    "TransportFailure",
    "TranslationItem",
    "TranslationRequest",
    "TranslationResponse",
    "create_bucket_settings",
    "create_registry",
]
