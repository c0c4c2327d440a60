"""Storage interfaces consumed by the cache and the sync pipeline.

Three narrow contracts instead of one client: the venue record store (the
cross-instance source of truth for venues), a key-value store backing the
persistent cache tier, and a blob store for mirrored photos.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from discovery_core.schemas.venue import VenueRecord


class AbstractVenueStore(ABC):
    """Venue records keyed by provider place id."""

    @abstractmethod
    async def upsert_venue(self, venue: VenueRecord) -> None:
        """Insert or update a venue by ``place_id``; repeating it is a no-op.

        The cached photo URL of an existing row is never overwritten.

        Raises:
            StorageAppError: If the backend rejects the write.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_venue_photo_url(self, place_id: str) -> str | None:
        """Return the owned photo URL for a venue, or None when absent."""
        raise NotImplementedError

    @abstractmethod
    async def set_venue_photo_url(self, place_id: str, url: str) -> None:
        """Point a venue at its mirrored photo."""
        raise NotImplementedError


class AbstractCacheStore(ABC):
    """Key-value store for serialized cache entries ``{"data", "timestamp"}``."""

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    async def put(self, key: str, entry: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> int:
        """Delete every entry whose key starts with ``prefix``; returns the count if known."""
        raise NotImplementedError


class AbstractBlobStore(ABC):
    """Object storage for binary assets."""

    @abstractmethod
    async def ensure_container(self, name: str, *, public: bool = True) -> None:
        """Create the container if absent; an existing container is not an error."""
        raise NotImplementedError

    @abstractmethod
    async def put_object(
        self,
        container: str,
        key: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Write (or overwrite) an object and return its public URL."""
        raise NotImplementedError
