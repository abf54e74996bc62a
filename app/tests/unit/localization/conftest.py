"""Feature-level fixtures for localization cache tests.

Provides an in-memory blob store, a scriptable transport and bucket settings
matching the en_US/de_DE greeting scenario.
"""

import pytest

from localization import InMemoryBlobStore
from tests.factories.localization import (
    FakeTransport,
    make_bucket_settings,
    make_translation_response,
)


@pytest.fixture
def greeting_response():
    """Server response carrying the greeting key in two locales."""
    return make_translation_response(
        {"greeting": {"en_US": "Hello", "de_DE": "Hallo"}}
    )


@pytest.fixture
def memory_store():
    """Fresh in-memory blob store."""
    return InMemoryBlobStore()


@pytest.fixture
def bucket_settings():
    """Bucket with locales en_US/de_DE and a single greeting key."""
    return make_bucket_settings()


@pytest.fixture
def fake_transport(greeting_response):
    """Transport answering immediately with the greeting response."""
    return FakeTransport(response=greeting_response)
