"""Mirror provider photos into owned blob storage.

Each venue photo is fetched from the provider at most once and served from
our bucket afterwards; venues without a mirrored photo fall back to the live
provider URL. Staleness is accepted: a cached photo is never refreshed.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from discovery_core.adapters.places.base import AbstractPlacesClient
from discovery_core.adapters.storage.base import AbstractBlobStore, AbstractVenueStore
from discovery_core.core.errors import AppError

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "venue-photos"
DEFAULT_MAX_WIDTH = 400
PHOTO_CONTENT_TYPE = "image/jpeg"


class PhotoCacheOutcome(str, Enum):
    SKIPPED_NO_PHOTO = "skipped_no_photo"
    SKIPPED_ALREADY_CACHED = "skipped_already_cached"
    CACHED = "cached"
    FAILED = "failed"


def photo_object_key(owner_id: str) -> str:
    """Storage key for an owner's photo: path separators flattened, ``.jpg`` suffix."""
    return owner_id.replace("/", "_").replace("\\", "_") + ".jpg"


class PhotoCache:
    """Fetch-once photo mirroring for venue records.

    Failures never propagate: a photo that cannot be mirrored is reported as
    ``PhotoCacheOutcome.FAILED`` and retried on the next pass.
    """

    def __init__(
        self,
        venues: AbstractVenueStore,
        blobs: AbstractBlobStore,
        places: AbstractPlacesClient,
        *,
        bucket: str = DEFAULT_BUCKET,
        max_width: int = DEFAULT_MAX_WIDTH,
    ) -> None:
        self._venues = venues
        self._blobs = blobs
        self._places = places
        self._bucket = bucket
        self._max_width = max_width
        self._container_ready = False
        self._container_lock = asyncio.Lock()

    @property
    def bucket(self) -> str:
        return self._bucket

    async def ensure_container(self) -> None:
        """Create the bucket once per instance; concurrent first callers share the call."""
        if self._container_ready:
            return
        async with self._container_lock:
            if self._container_ready:
                return
            await self._blobs.ensure_container(self._bucket, public=True)
            self._container_ready = True
            logger.info("photo_cache.container_ready", extra={"bucket": self._bucket})

    async def cache_if_needed(self, owner_id: str, photo_reference: str | None) -> PhotoCacheOutcome:
        """Mirror ``photo_reference`` for ``owner_id`` unless there is nothing to do.

        Returns:
            The outcome; this method does not raise.
        """
        if not photo_reference:
            return PhotoCacheOutcome.SKIPPED_NO_PHOTO

        try:
            existing = await self._venues.get_venue_photo_url(owner_id)
            if existing:
                return PhotoCacheOutcome.SKIPPED_ALREADY_CACHED

            await self.ensure_container()
            data = await self._places.fetch_photo(photo_reference, self._max_width)
            url = await self._blobs.put_object(
                self._bucket,
                photo_object_key(owner_id),
                data,
                content_type=PHOTO_CONTENT_TYPE,
            )
            await self._venues.set_venue_photo_url(owner_id, url)
        except AppError as exc:
            logger.warning(
                "photo_cache.failed",
                extra={"place_id": owner_id, "error_code": exc.code, "error": exc.message},
            )
            return PhotoCacheOutcome.FAILED
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "photo_cache.failed",
                extra={"place_id": owner_id, "error_code": "photo_cache_unexpected", "error": str(exc)},
                exc_info=True,
            )
            return PhotoCacheOutcome.FAILED

        logger.debug("photo_cache.cached", extra={"place_id": owner_id, "bytes": len(data)})
        return PhotoCacheOutcome.CACHED
