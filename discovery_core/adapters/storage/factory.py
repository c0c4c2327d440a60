"""Factory for the storage backend selected by STORAGE_BACKEND."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from discovery_core.adapters.storage.base import (
    AbstractBlobStore,
    AbstractCacheStore,
    AbstractVenueStore,
)
from discovery_core.adapters.storage.memory import (
    InMemoryBlobStore,
    InMemoryCacheStore,
    InMemoryVenueStore,
)
from discovery_core.adapters.storage.supabase import (
    SupabaseBlobStore,
    SupabaseCacheStore,
    SupabaseVenueStore,
    create_supabase_http_client,
)
from discovery_core.core.config import StorageSettings, settings
from discovery_core.core.errors import ValidationAppError


@dataclass
class StorageBackend:
    """The three stores of one backend plus the client they share (if any)."""

    venues: AbstractVenueStore
    cache: AbstractCacheStore
    blobs: AbstractBlobStore
    http_client: httpx.AsyncClient | None = None

    async def aclose(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()


def create_storage_backend(storage_settings: StorageSettings | None = None) -> StorageBackend:
    """Instantiate the configured storage backend.

    Raises:
        ValidationAppError: If the backend is unknown or its credentials are missing.
    """
    cfg = storage_settings or settings.storage
    backend = cfg.backend.lower()

    if backend == "memory":
        return StorageBackend(
            venues=InMemoryVenueStore(),
            cache=InMemoryCacheStore(),
            blobs=InMemoryBlobStore(),
        )

    if backend == "supabase":
        if not cfg.supabase_url or not cfg.supabase_service_role_key:
            raise ValidationAppError(
                code="storage_missing_credentials",
                message="Supabase backend requires STORAGE_SUPABASE_URL and STORAGE_SUPABASE_SERVICE_ROLE_KEY",
            )
        http_client = create_supabase_http_client(
            cfg.supabase_url,
            cfg.supabase_service_role_key,
            timeout_seconds=cfg.timeout_seconds,
        )
        return StorageBackend(
            venues=SupabaseVenueStore(
                http_client,
                table=cfg.venues_table,
                upsert_function=cfg.upsert_function,
            ),
            cache=SupabaseCacheStore(http_client, table=cfg.cache_table),
            blobs=SupabaseBlobStore(http_client),
            http_client=http_client,
        )

    raise ValidationAppError(
        code="storage_unknown_backend",
        message=f"Unknown storage backend: '{backend}'. Supported backends: memory, supabase",
    )
