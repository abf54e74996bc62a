"""Per-bucket resolved configuration record."""

from typing import List

from pydantic import BaseModel, Field, field_validator

from core.config import (
    DEFAULT_LOCALE_SERVER_BASE_URL,
    DEFAULT_LOCALE_SERVER_TRANSLATION_ENDPOINT,
)

DEFAULT_LOCALES = ["en_US.UTF-8", "de_DE.UTF-8", "it_IT.UTF-8"]


class BucketSettings(BaseModel):
    """Resolved configuration of a single localization bucket.

    A bucket is a named collection of translation keys and target locales
    pointing at one locale server and one local cache blob.

    Attributes:
        bucket_id: Unique bucket identifier, also the cache blob name.
        user_id: Locale server account user id.
        api_key: Optional API key credential (sent only when non-empty).
        read_access_password: Optional read-access password.
        base_url: Locale server base URL.
        translation_endpoint: Translation endpoint path.
        request_timeout_seconds: HTTP-level timeout for the translation call.
        min_seconds_between_requests: Staleness interval between refreshes.
        max_refresh_response_time_ms: Watchdog deadline for one refresh.
        watchdog_poll_interval_ms: How often the watchdog checks the call.
        max_workers: Worker threads available to the refresh coordinator.
        return_key_when_not_found: Return the key itself on a cache miss.
        save_cache_on_shutdown: Flush the cache blob when the bucket shuts down.
        locales: Ordered locale identifiers; the active locale indexes this list.
        keys: Translation keys fetched from the server.
        config_id_locale_index: Config record key of the active locale index.
        config_id_last_fetch_utc: Config record key prefix of the last fetch time.
    """

    bucket_id: str
    user_id: str = ""
    api_key: str = ""
    read_access_password: str = ""
    base_url: str = DEFAULT_LOCALE_SERVER_BASE_URL
    translation_endpoint: str = DEFAULT_LOCALE_SERVER_TRANSLATION_ENDPOINT
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    min_seconds_between_requests: int = Field(default=86400, ge=0)
    max_refresh_response_time_ms: int = Field(default=4096, gt=0)
    watchdog_poll_interval_ms: int = Field(default=256, gt=0)
    max_workers: int = Field(default=4, ge=2)
    return_key_when_not_found: bool = False
    save_cache_on_shutdown: bool = False
    locales: List[str] = Field(default_factory=lambda: list(DEFAULT_LOCALES))
    keys: List[str] = Field(default_factory=list)
    config_id_locale_index: str = "locale_index"
    config_id_last_fetch_utc: str = "last_fetch_utc"

    @field_validator("bucket_id")
    @classmethod
    def _validate_bucket_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("bucket_id must not be empty")
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"bucket_id must be a plain name: {v}")
        return v

    @field_validator("locales")
    @classmethod
    def _validate_locales(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("at least one locale must be configured")
        if len(set(v)) != len(v):
            raise ValueError("locales must be unique")
        return v

    @field_validator("keys")
    @classmethod
    def _dedupe_keys(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))

    @property
    def last_fetch_config_key(self) -> str:
        """Per-bucket key of the last fetch timestamp in the shared config record."""
        return f"{self.config_id_last_fetch_utc}_{self.bucket_id}"
