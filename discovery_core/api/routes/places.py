"""Places endpoints: cached provider proxies and the sync trigger.

The provider key never leaves the server: searches and details are proxied
(and cached), photos are redirected to a signed provider URL.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse

from discovery_core.core.container import PLACES_CACHE_PREFIX, ServiceContainer, get_container
from discovery_core.core.errors import ValidationAppError
from discovery_core.core.rate_limit import enforce_rate_limit
from discovery_core.schemas.sync import SyncReport
from discovery_core.schemas.venue import GeoPoint, NearbyResponse
from discovery_core.services.venue_normalizer import place_to_venue

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/places",
    tags=["Places"],
    dependencies=[Depends(enforce_rate_limit)],
)

Container = Annotated[ServiceContainer, Depends(get_container)]


def nearby_cache_key(lat: float, lng: float, radius: int, keyword: str | None, place_type: str | None) -> str:
    """Cache key for a nearby search; coordinates rounded to ~11 m."""
    return f"{PLACES_CACHE_PREFIX}nearby:{lat:.4f}:{lng:.4f}:{radius}:{keyword or ''}:{place_type or ''}"


def details_cache_key(place_id: str) -> str:
    return f"{PLACES_CACHE_PREFIX}details:{place_id}"


@router.get("/nearby", response_model=NearbyResponse)
async def nearby_places(
    container: Container,
    lat: Annotated[float | None, Query(ge=-90, le=90)] = None,
    lng: Annotated[float | None, Query(ge=-180, le=180)] = None,
    radius: Annotated[int, Query(ge=1, le=50_000)] = 5000,
    keyword: Annotated[str | None, Query(max_length=100)] = None,
    place_type: Annotated[str | None, Query(alias="type", max_length=50)] = None,
) -> dict[str, Any]:
    """Proxy one page of provider nearby results, normalized to venues.

    Defaults to the configured sync center when lat/lng are omitted.
    """
    center = GeoPoint(
        lat=lat if lat is not None else container.config.sync.center_lat,
        lng=lng if lng is not None else container.config.sync.center_lng,
    )
    places = container.places

    async def fill() -> dict[str, Any]:
        page = await places.search(center, radius, keyword=keyword, place_type=place_type)
        venues = []
        for raw in page.results:
            try:
                venues.append(place_to_venue(raw))
            except ValidationAppError as exc:
                logger.debug("places.nearby_result_skipped", extra={"error_code": exc.code})
        response = NearbyResponse(venues=venues, next_page_token=page.next_page_token)
        return response.model_dump(mode="json")

    key = nearby_cache_key(center.lat, center.lng, radius, keyword, place_type)
    return await container.cache.get(key, fill, container.config.cache.nearby_ttl_seconds * 1000)


@router.get("/details")
async def place_details(
    container: Container,
    place_id: Annotated[str, Query(min_length=1, max_length=300)],
) -> dict[str, Any]:
    """Return cached provider details for one place (misses are cached too)."""
    places = container.places

    async def fill() -> dict[str, Any]:
        return {"result": await places.details(place_id)}

    cached = await container.cache.get(
        details_cache_key(place_id),
        fill,
        container.config.cache.details_ttl_seconds * 1000,
    )
    if cached.get("result") is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Place not found")
    return cached


@router.get("/photo", response_class=RedirectResponse, status_code=status.HTTP_302_FOUND)
async def place_photo(
    container: Container,
    photo_reference: Annotated[str, Query(min_length=1)],
    maxwidth: Annotated[int, Query(ge=1, le=1600)] = 400,
) -> RedirectResponse:
    """Redirect to the live provider photo (fallback for venues without a mirrored photo)."""
    url = container.places.photo_url(photo_reference, maxwidth)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.post("/sync", response_model=SyncReport)
async def sync_places(container: Container) -> SyncReport:
    """Run one sync pass and drop cached provider responses.

    Returns 502 with the partial report if the pass aborts; venues upserted
    before the abort remain stored.
    """
    pipeline = container.build_pipeline()
    try:
        return await pipeline.run_pass()
    finally:
        await container.invalidate_places_cache()
