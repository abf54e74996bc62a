"""Persistence layer for localization buckets.

Provides a byte-oriented blob store interface (one blob per name), a shared
flat config record (str -> int, pretty-printed JSON) and the per-bucket
persistence helper used by the bucket facade and the refresh coordinator.

Write failures are best effort: they are logged and reported as a boolean,
never raised to the caller. Custom stores raising plain OSError are treated
like PersistenceError.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from core.logging import get_module_logger
from localization.cache import CacheStore
from localization.errors import (
    CacheWriteFailure,
    ConfigWriteFailure,
    DecodeError,
    PersistenceError,
)
from localization.models import BucketConfig

logger = get_module_logger()

DEFAULT_CONFIG_NAME = "config.json"


class BlobStore(Protocol):
    """Byte-oriented key-value persistence surface.

    Methods:
        read: Return the blob stored under a name, or None when absent
        write: Store a blob under a name, replacing any previous blob
    """

    def read(self, name: str) -> Optional[bytes]:
        """Return the blob stored under name, or None if there is none.

        Raises:
            PersistenceError: If the blob exists but cannot be read.
        """
        ...

    def write(self, name: str, data: bytes) -> None:
        """Store data under name.

        Raises:
            PersistenceError: If the blob cannot be written.
        """
        ...


class InMemoryBlobStore:
    """Thread-safe in-memory BlobStore for tests and ephemeral use."""

    def __init__(self, blobs: Optional[Dict[str, bytes]] = None) -> None:
        self._blobs: Dict[str, bytes] = dict(blobs or {})
        self._lock = threading.Lock()

    def read(self, name: str) -> Optional[bytes]:
        with self._lock:
            return self._blobs.get(name)

    def write(self, name: str, data: bytes) -> None:
        with self._lock:
            self._blobs[name] = bytes(data)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._blobs.keys())


class FileBlobStore:
    """BlobStore writing one file per blob inside a directory.

    The directory is created on first write. Writes go to a temporary file
    that is atomically moved into place.

    Attributes:
        directory: Directory holding the blob files.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _path(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(f"Invalid blob name: {name!r}")
        return self.directory / name

    def read(self, name: str) -> Optional[bytes]:
        path = self._path(name)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Failed to read blob {path}: {e}") from e

    def write(self, name: str, data: bytes) -> None:
        path = self._path(name)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{name}.")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to write blob {path}: {e}") from e


def encode_config(values: Dict[str, int]) -> bytes:
    """Encode a config record as pretty-printed JSON."""
    return json.dumps(values, indent=2).encode("utf-8")


def decode_config(data: bytes) -> Dict[str, int]:
    """Decode a config record.

    Args:
        data: Raw config blob.

    Returns:
        Mapping of config key to integer value.

    Raises:
        DecodeError: If the blob is not a flat JSON object of integers.
    """
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Config record is not valid JSON: {e}", source="config") from e

    if not isinstance(payload, dict):
        raise DecodeError("Config record must be a JSON object", source="config")

    for key, value in payload.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodeError(
                f"Config value for '{key}' must be an integer", source="config"
            )
    return payload


class ConfigRecord:
    """Flat str -> int config record shared by every bucket of a store.

    The record is loaded once; later load() calls are no-ops. All mutations
    and saves are serialized by one lock.

    Attributes:
        store: BlobStore holding the record.
        name: Blob name of the record.
    """

    def __init__(self, store: BlobStore, name: str = DEFAULT_CONFIG_NAME) -> None:
        self.store = store
        self.name = name
        self._values: Dict[str, int] = {}
        self._loaded = False
        self._lock = threading.RLock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> bool:
        """Load the record from the store if not loaded yet.

        Returns:
            True if the record was absent or corrupt and should be re-saved.
        """
        with self._lock:
            if self._loaded:
                return False
            self._loaded = True

            try:
                data = self.store.read(self.name)
            except (PersistenceError, OSError) as e:
                logger.warning("config_record_read_failed", name=self.name, error=str(e))
                return True

            if data is None:
                logger.info("config_record_not_found", name=self.name)
                return True

            try:
                self._values = decode_config(data)
            except DecodeError as e:
                logger.warning("config_record_corrupt", name=self.name, error=str(e))
                self._values = {}
                return True
            return False

    def get(self, key: str, default: int = 0) -> int:
        with self._lock:
            return self._values.get(key, default)

    def set(self, key: str, value: int) -> None:
        with self._lock:
            self._values[key] = int(value)

    def ensure(self, key: str, default: int = 0) -> bool:
        """Add key with a default value if missing.

        Returns:
            True if the key was added.
        """
        with self._lock:
            if key in self._values:
                return False
            self._values[key] = default
            return True

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._values)

    def save(self) -> None:
        """Write the record to the store.

        Raises:
            ConfigWriteFailure: If the store rejects the write.
        """
        with self._lock:
            data = encode_config(self._values)
            try:
                self.store.write(self.name, data)
            except (PersistenceError, OSError) as e:
                raise ConfigWriteFailure(str(e)) from e


class BucketPersistence:
    """Per-bucket view over the blob store and the shared config record.

    Attributes:
        bucket_id: Bucket identifier, also the cache blob name.
        store: BlobStore holding the cache blob.
        config: Shared ConfigRecord.
        locale_index_key: Config key of the active locale index.
        last_fetch_key: Config key of this bucket's last fetch timestamp.
    """

    def __init__(
        self,
        bucket_id: str,
        store: BlobStore,
        config: ConfigRecord,
        locale_index_key: str = "locale_index",
        last_fetch_key: Optional[str] = None,
    ) -> None:
        self.bucket_id = bucket_id
        self.store = store
        self.config = config
        self.locale_index_key = locale_index_key
        self.last_fetch_key = last_fetch_key or f"last_fetch_utc_{bucket_id}"

    def load_bucket_config(self, locale_count: int) -> BucketConfig:
        """Load the bucket's config, applying defaults and bounds.

        A persisted locale index outside the configured list is reset to 0.
        The record is re-saved whenever defaults or corrections were applied.

        Args:
            locale_count: Number of configured locales.

        Returns:
            BucketConfig with a valid locale index.
        """
        needs_save = self.config.load()
        needs_save = self.config.ensure(self.locale_index_key, 0) or needs_save
        needs_save = self.config.ensure(self.last_fetch_key, 0) or needs_save

        locale_index = self.config.get(self.locale_index_key)
        if not 0 <= locale_index < locale_count:
            logger.warning(
                "persisted_locale_index_out_of_range",
                bucket_id=self.bucket_id,
                locale_index=locale_index,
                locale_count=locale_count,
            )
            locale_index = 0
            self.config.set(self.locale_index_key, locale_index)
            needs_save = True

        last_fetch = max(self.config.get(self.last_fetch_key), 0)

        if needs_save:
            self.save_config()

        return BucketConfig(
            active_locale_index=locale_index,
            last_fetch_unix_seconds=last_fetch,
        )

    def store_locale_index(self, index: int, persist: bool = True) -> bool:
        self.config.set(self.locale_index_key, index)
        return self.save_config() if persist else True

    def store_last_fetch(self, unix_seconds: int) -> bool:
        self.config.set(self.last_fetch_key, unix_seconds)
        return self.save_config()

    def save_config(self) -> bool:
        """Write the shared config record, logging failures.

        Returns:
            True if the record was written.
        """
        try:
            self.config.save()
            return True
        except ConfigWriteFailure as e:
            logger.error(
                "config_write_failed", bucket_id=self.bucket_id, error=str(e)
            )
            return False

    def load_cache(self) -> Optional[CacheStore]:
        """Load the bucket's cache blob.

        Returns:
            Decoded CacheStore, or None when the blob is absent, unreadable
            or corrupt.
        """
        try:
            data = self.store.read(self.bucket_id)
        except (PersistenceError, OSError) as e:
            logger.warning("cache_read_failed", bucket_id=self.bucket_id, error=str(e))
            return None

        if data is None:
            logger.info("cache_blob_not_found", bucket_id=self.bucket_id)
            return None

        try:
            return CacheStore.deserialize(data)
        except DecodeError as e:
            logger.warning("cache_blob_corrupt", bucket_id=self.bucket_id, error=str(e))
            return None

    def save_cache(self, cache: CacheStore) -> bool:
        """Write the whole cache blob, logging failures.

        Returns:
            True if the blob was written.
        """
        try:
            self._write_cache(cache)
            return True
        except CacheWriteFailure as e:
            logger.error("cache_write_failed", bucket_id=self.bucket_id, error=str(e))
            return False

    def _write_cache(self, cache: CacheStore) -> None:
        data = cache.serialize()
        try:
            self.store.write(self.bucket_id, data)
        except (PersistenceError, OSError) as e:
            raise CacheWriteFailure(str(e)) from e
        logger.debug(
            "cache_blob_written",
            bucket_id=self.bucket_id,
            key_count=len(cache),
            size_bytes=len(data),
        )
