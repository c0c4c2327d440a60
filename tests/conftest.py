"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before any import that builds settings, so
tests never read a developer's .env file or reach real backends.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-key")
os.environ.setdefault("LOG_FORMAT", "plain")

import pytest

from discovery_core.adapters.storage.factory import StorageBackend
from discovery_core.adapters.storage.memory import (
    InMemoryBlobStore,
    InMemoryCacheStore,
    InMemoryVenueStore,
)


@pytest.fixture
def storage() -> StorageBackend:
    return StorageBackend(
        venues=InMemoryVenueStore(),
        cache=InMemoryCacheStore(),
        blobs=InMemoryBlobStore(),
    )
