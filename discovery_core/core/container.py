"""Service wiring shared by the HTTP app and the sync CLI.

Every stateful component (rate limiter, cache, clients) is owned by one
ServiceContainer instance instead of module globals, so tests build their
own container with fakes and state never leaks between apps.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Sequence

from fastapi import Request

from discovery_core.adapters.places.base import AbstractPlacesClient
from discovery_core.adapters.places.factory import create_places_client
from discovery_core.adapters.rate_limit.base import AbstractRateLimiter
from discovery_core.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from discovery_core.adapters.storage.factory import StorageBackend, create_storage_backend
from discovery_core.core.config import Settings, settings as default_settings
from discovery_core.schemas.venue import GeoPoint, SearchConfig
from discovery_core.services.photo_cache import PhotoCache
from discovery_core.services.poi_sync import POISyncPipeline, SyncPacing
from discovery_core.services.scheduler import Sleep
from discovery_core.utils.read_through_cache import ReadThroughCache

logger = logging.getLogger(__name__)

# Namespace of every cached provider response; dropped after each sync pass.
PLACES_CACHE_PREFIX = "places:"


class ServiceContainer:
    """Owns the collaborators for one process.

    The places client is created on first use so the app can boot (and serve
    /health) without a provider key.
    """

    def __init__(
        self,
        *,
        storage: StorageBackend,
        config: Settings | None = None,
        places: AbstractPlacesClient | None = None,
        rate_limiter: AbstractRateLimiter | None = None,
        cache: ReadThroughCache | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or default_settings
        self.storage = storage
        self._places = places
        self.rate_limiter = rate_limiter or InMemorySlidingWindowRateLimiter(
            cleanup_interval_ms=self.config.app.rate_limit_cleanup_interval_seconds * 1000,
        )
        self.cache = cache or ReadThroughCache(
            storage.cache,
            max_entries=self.config.cache.max_entries,
            persistent_prefix=self.config.cache.persistent_prefix,
        )
        self._sleep = sleep
        self._photo_cache: PhotoCache | None = None

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "ServiceContainer":
        """Build a container for the configured storage backend.

        Raises:
            ValidationAppError: If the storage backend is misconfigured.
        """
        cfg = config or default_settings
        return cls(storage=create_storage_backend(cfg.storage), config=cfg)

    @property
    def places(self) -> AbstractPlacesClient:
        """The places client.

        Raises:
            ValidationAppError: If no provider key is configured.
        """
        if self._places is None:
            self._places = create_places_client(self.config.google)
        return self._places

    @property
    def photo_cache(self) -> PhotoCache:
        if self._photo_cache is None:
            self._photo_cache = PhotoCache(
                self.storage.venues,
                self.storage.blobs,
                self.places,
                bucket=self.config.storage.photo_bucket,
                max_width=self.config.google.photo_max_width,
            )
        return self._photo_cache

    def build_pipeline(
        self,
        *,
        searches: Sequence[SearchConfig] | None = None,
        max_pages: int | None = None,
    ) -> POISyncPipeline:
        """Create a sync pipeline over this container's collaborators."""
        sync_cfg = self.config.sync
        pacing = SyncPacing.from_settings(sync_cfg)
        if max_pages is not None:
            pacing = replace(pacing, max_pages=max_pages)

        kwargs = {"searches": searches} if searches is not None else {}
        return POISyncPipeline(
            self.places,
            self.storage.venues,
            self.photo_cache,
            center=GeoPoint(lat=sync_cfg.center_lat, lng=sync_cfg.center_lng),
            radius=sync_cfg.radius_meters,
            pacing=pacing,
            sleep=self._sleep,
            **kwargs,
        )

    async def invalidate_places_cache(self) -> int:
        return await self.cache.invalidate_prefix(PLACES_CACHE_PREFIX)

    async def aclose(self) -> None:
        if self._places is not None:
            await self._places.aclose()
        await self.storage.aclose()
        logger.debug("container.closed")


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the container attached to the app."""
    return request.app.state.container
