"""Exception hierarchy for the localization cache.

None of these errors is fatal to the host application: the bucket facade
converts every one of them into a log entry plus a degraded result.
"""

from typing import Optional


class LocalizationError(Exception):
    """Base class for all localization cache errors."""

    pass


class DecodeError(LocalizationError):
    """Raised when a persisted cache or config blob cannot be decoded.

    Attributes:
        source: What was being decoded (e.g. "cache", "config").
    """

    def __init__(self, message: str, source: str = "cache"):
        super().__init__(message)
        self.source = source


class TransportFailure(LocalizationError):
    """Raised when the locale server call fails.

    Covers non-success HTTP statuses, network errors and undecodable
    response bodies.

    Attributes:
        status_code: HTTP status code, if a response was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(LocalizationError):
    """Raised when a blob store read or write fails."""

    pass


class ConfigWriteFailure(PersistenceError):
    """Raised when the shared config record cannot be written."""

    pass


class CacheWriteFailure(PersistenceError):
    """Raised when a bucket's cache blob cannot be written."""

    pass
