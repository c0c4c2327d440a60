"""In-process storage backend for local development and tests.

Nothing here survives a restart. Each store mirrors the semantics of the
Supabase backend (idempotent upserts, photo URL kept across upserts,
create-if-absent containers) so services behave the same on both.
"""

from __future__ import annotations

import copy
from typing import Any

from discovery_core.adapters.storage.base import (
    AbstractBlobStore,
    AbstractCacheStore,
    AbstractVenueStore,
)
from discovery_core.core.errors import StorageAppError
from discovery_core.schemas.venue import VenueRecord


class InMemoryVenueStore(AbstractVenueStore):
    def __init__(self) -> None:
        self.venues: dict[str, VenueRecord] = {}
        self.photo_urls: dict[str, str] = {}
        self.upsert_count = 0

    async def upsert_venue(self, venue: VenueRecord) -> None:
        self.upsert_count += 1
        self.venues[venue.place_id] = venue.model_copy(deep=True)

    async def get_venue_photo_url(self, place_id: str) -> str | None:
        return self.photo_urls.get(place_id)

    async def set_venue_photo_url(self, place_id: str, url: str) -> None:
        if place_id not in self.venues:
            raise StorageAppError(
                code="venue_not_found",
                message=f"Cannot set photo for unknown venue {place_id}",
                details={"place_id": place_id},
            )
        self.photo_urls[place_id] = url


class InMemoryCacheStore(AbstractCacheStore):
    def __init__(self) -> None:
        self.entries: dict[str, dict[str, Any]] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        entry = self.entries.get(key)
        return copy.deepcopy(entry) if entry is not None else None

    async def put(self, key: str, entry: dict[str, Any]) -> None:
        self.entries[key] = copy.deepcopy(entry)

    async def delete(self, key: str) -> None:
        self.entries.pop(key, None)

    async def delete_prefix(self, prefix: str) -> int:
        doomed = [key for key in self.entries if key.startswith(prefix)]
        for key in doomed:
            del self.entries[key]
        return len(doomed)


class InMemoryBlobStore(AbstractBlobStore):
    def __init__(self, base_url: str = "memory://") -> None:
        self.base_url = base_url
        self.containers: set[str] = set()
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        self.put_count = 0

    async def ensure_container(self, name: str, *, public: bool = True) -> None:
        self.containers.add(name)

    async def put_object(
        self,
        container: str,
        key: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
    ) -> str:
        if container not in self.containers:
            raise StorageAppError(
                code="blob_container_missing",
                message=f"Container {container} does not exist",
            )
        self.put_count += 1
        self.objects[(container, key)] = (bytes(data), content_type)
        return f"{self.base_url}{container}/{key}"
