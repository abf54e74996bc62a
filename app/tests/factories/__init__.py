"""Test data factories for deterministic test data generation."""

from tests.factories.localization import (
    FakeTransport,
    make_bucket_settings,
    make_translation_response,
    wait_until,
)

__all__ = [
    "FakeTransport",
    "make_bucket_settings",
    "make_translation_response",
    "wait_until",
]
