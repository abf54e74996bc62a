"""In-memory translation cache with a compact blob codec.

The cache maps translation key -> (locale -> value). Each key owns an
independently lockable entry so merges into one key never block readers or
writers of another key. Readers never take a lock: an entry's mapping is
replaced copy-on-write, so a reader sees either the pre- or the post-merge
mapping.

Blob format: UTF-8 JSON ``{key: {locale: value}}`` compressed with Brotli.
"""

import json
import threading
from typing import Dict, List, Mapping, Optional

import brotli

from core.logging import get_module_logger
from localization.errors import DecodeError

logger = get_module_logger()

BROTLI_QUALITY = 11


class _CacheEntry:
    """Translations of a single key, guarded by its own lock."""

    __slots__ = ("lock", "translations")

    def __init__(self, translations: Dict[str, str]):
        self.lock = threading.Lock()
        self.translations = translations


class CacheStore:
    """Concurrent key -> (locale -> value) translation cache.

    Invariant: a key present in the cache always maps to a non-empty
    locale mapping.
    """

    def __init__(self, data: Optional[Mapping[str, Mapping[str, str]]] = None):
        self._entries: Dict[str, _CacheEntry] = {}
        if data:
            for key, translations in data.items():
                self.merge(key, translations)

    def get(self, key: str, locale: str) -> Optional[str]:
        """Get the cached value of a key for a locale.

        Args:
            key: Translation key.
            locale: Locale identifier.

        Returns:
            The translated value, or None if the key or locale is missing.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry.translations.get(locale)

    def translations(self, key: str) -> Dict[str, str]:
        """Get a copy of every cached locale value for a key."""
        entry = self._entries.get(key)
        if entry is None:
            return {}
        return dict(entry.translations)

    def merge(self, key: str, translations: Mapping[str, str]) -> bool:
        """Upsert locale values for a key.

        Existing locale values are overwritten, other locales of the key are
        kept. Merging the same mapping twice leaves the cache unchanged.

        Args:
            key: Translation key.
            translations: Locale -> value mapping to apply.

        Returns:
            True if anything was applied, False for an empty mapping.
        """
        if not translations:
            return False

        candidate = _CacheEntry(dict(translations))
        entry = self._entries.setdefault(key, candidate)
        if entry is candidate:
            return True

        with entry.lock:
            updated = dict(entry.translations)
            updated.update(translations)
            entry.translations = updated
        return True

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def snapshot(self) -> Dict[str, Dict[str, str]]:
        """Get a plain-dict copy of the whole cache."""
        return {
            key: dict(entry.translations)
            for key, entry in list(self._entries.items())
        }

    def is_empty(self) -> bool:
        return not self._entries

    def clear(self) -> None:
        self._entries = {}

    def replace(self, other: "CacheStore") -> None:
        """Swap in the contents of another store in one step."""
        self._entries = dict(other._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def serialize(self) -> bytes:
        """Encode the cache as Brotli-compressed deterministic JSON.

        Returns:
            Compressed cache blob.
        """
        payload = json.dumps(
            self.snapshot(),
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
        ).encode("utf-8")
        return brotli.compress(payload, quality=BROTLI_QUALITY)

    @classmethod
    def deserialize(cls, data: bytes) -> "CacheStore":
        """Decode a cache blob produced by serialize().

        Args:
            data: Compressed cache blob.

        Returns:
            A new CacheStore holding the decoded translations.

        Raises:
            DecodeError: If the blob is not valid compressed cache JSON.
        """
        try:
            raw = brotli.decompress(data)
            payload = json.loads(raw.decode("utf-8"))
        except brotli.error as e:
            raise DecodeError(f"Cache blob is not valid Brotli data: {e}") from e
        except (UnicodeDecodeError, ValueError) as e:
            raise DecodeError(f"Cache blob is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise DecodeError("Cache blob must contain a JSON object")

        for key, translations in payload.items():
            if not isinstance(translations, dict):
                raise DecodeError(f"Translations of key '{key}' must be an object")
            for locale, value in translations.items():
                if not isinstance(value, str):
                    raise DecodeError(
                        f"Translation of key '{key}' for locale '{locale}' must be a string"
                    )

        store = cls(payload)
        logger.debug("cache_blob_decoded", key_count=len(store))
        return store
