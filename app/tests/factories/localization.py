"""Test data factories for localization cache testing.

Provides deterministic builders and doubles for:
- TranslationResponse payloads
- BucketSettings
- A scriptable TransportClient
- Polling helper for background refresh work
"""

import threading
import time
from typing import Callable, Dict, List, Optional

from localization import (
    BucketSettings,
    HealthCheckResult,
    TranslationItem,
    TranslationRequest,
    TranslationResponse,
)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll predicate until it is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def make_translation_response(
    items: Optional[Dict[str, Dict[str, str]]] = None,
) -> TranslationResponse:
    """Create a TranslationResponse from a {key: {locale: value}} mapping."""
    items = items if items is not None else {}
    return TranslationResponse(
        type="TranslationEndpointResponseDto",
        count=len(items),
        items=[
            TranslationItem(key=key, translations=translations)
            for key, translations in items.items()
        ],
    )


def make_bucket_settings(
    bucket_id: str = "main_menu",
    locales: Optional[List[str]] = None,
    keys: Optional[List[str]] = None,
    **overrides,
) -> BucketSettings:
    """Create BucketSettings with fast watchdog timings."""
    values = {
        "bucket_id": bucket_id,
        "user_id": "user-1",
        "locales": locales or ["en_US", "de_DE"],
        "keys": keys if keys is not None else ["greeting"],
        "min_seconds_between_requests": 86400,
        "max_refresh_response_time_ms": 2000,
        "watchdog_poll_interval_ms": 10,
    }
    values.update(overrides)
    return BucketSettings(**values)


class FakeTransport:
    """TransportClient double recording every request.

    Set ``release`` to a threading.Event to make calls block until it is set,
    ``error`` to make calls raise, ``response`` to control what is returned.
    """

    def __init__(
        self,
        response: Optional[TranslationResponse] = None,
        error: Optional[Exception] = None,
        release: Optional[threading.Event] = None,
        base_url: str = "https://locales.example.com",
        translation_endpoint: str = "/api/v1/translations/translate",
    ):
        self.response = response or TranslationResponse()
        self.error = error
        self.release = release
        self.base_url = base_url
        self.translation_endpoint = translation_endpoint
        self.requests: List[TranslationRequest] = []
        self.health = HealthCheckResult(reachable=True, status_code=200, body="key")
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.requests)

    def fetch_translations(self, request, timeout=None):
        with self._lock:
            self.requests.append(request)
        if self.release is not None:
            self.release.wait(5)
        if self.error is not None:
            raise self.error
        return self.response

    def check_health(self, timeout=None):
        return self.health

    def change_target(self, base_url, translation_endpoint):
        self.base_url = base_url
        self.translation_endpoint = translation_endpoint
