"""Storage adapters: venue records, persistent cache tier and blob storage."""

from discovery_core.adapters.storage.base import (
    AbstractBlobStore,
    AbstractCacheStore,
    AbstractVenueStore,
)
from discovery_core.adapters.storage.factory import StorageBackend, create_storage_backend

__all__ = [
    "AbstractBlobStore",
    "AbstractCacheStore",
    "AbstractVenueStore",
    "StorageBackend",
    "create_storage_backend",
]
