"""Data models for the localization cache.

Defines the persisted bucket state, the transient refresh state and the
locale server wire DTOs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RefreshState(str, Enum):
    """Transient refresh state of a bucket (never persisted)."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"


class RefreshOutcome(str, Enum):
    """How a single admitted refresh attempt ended."""

    APPLIED = "applied"  # Items merged into the cache
    NO_CHANGES = "no_changes"  # Server answered, nothing to merge
    FAILED = "failed"  # Transport failure, cache untouched
    TIMED_OUT = "timed_out"  # Watchdog deadline fired first
    CANCELLED = "cancelled"  # Coordinator shut down while waiting


@dataclass
class BucketConfig:
    """Persisted per-bucket state.

    Attributes:
        active_locale_index: Index into the bucket's configured locale list.
        last_fetch_unix_seconds: Unix timestamp of the last refresh attempt,
            0 when the bucket was never fetched.
    """

    active_locale_index: int = 0
    last_fetch_unix_seconds: int = 0

    @property
    def never_fetched(self) -> bool:
        return self.last_fetch_unix_seconds <= 0


@dataclass(frozen=True)
class HealthCheckResult:
    """Outcome of a locale server reachability probe."""

    reachable: bool
    status_code: Optional[int] = None
    body: Optional[str] = None


class TranslationRequest(BaseModel):
    """Request body for the locale server translation endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="UserId")
    read_access_password: Optional[str] = Field(
        default=None, alias="ReadAccessPassword"
    )
    last_fetch_utc: Optional[int] = Field(default=None, alias="LastFetchUTC")
    keys: List[str] = Field(default_factory=list, alias="Keys")
    locales: List[str] = Field(default_factory=list, alias="Locales")

    def to_wire(self) -> dict:
        """Serialize using the server's field names."""
        return self.model_dump(by_alias=True)


class TranslationItem(BaseModel):
    """One translation key with its values for every returned locale."""

    key: str
    translations: Optional[Dict[str, str]] = None


class ResponseError(BaseModel):
    """Error entry returned by the locale server."""

    code: int = 0
    message: str = ""


class TranslationResponse(BaseModel):
    """Response envelope of the translation endpoint.

    ``items`` and ``errors`` are mutually exclusive. Absent or empty
    ``items`` means there is nothing to merge this round.
    """

    type: Optional[str] = None
    count: int = 0
    items: Optional[List[TranslationItem]] = None
    errors: Optional[List[ResponseError]] = None

    @property
    def has_items(self) -> bool:
        return bool(self.items)
