"""Google Places (legacy web service) client adapter.

Server-side only: every request carries the billable API key.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from discovery_core.adapters.places.base import PLACE_DETAILS_FIELDS, AbstractPlacesClient
from discovery_core.core.errors import PlacesAppError
from discovery_core.schemas.venue import GeoPoint, SearchPage

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://maps.googleapis.com/maps/api/place"
_OK_STATUSES = {"OK", "ZERO_RESULTS"}
_NO_RESULT_STATUSES = {"ZERO_RESULTS", "NOT_FOUND"}


class GooglePlacesClient(AbstractPlacesClient):
    """Client for Nearby Search, Place Details and Place Photo endpoints.

    Uses a shared ``httpx.AsyncClient``; pass one in to control transport
    and lifetime (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Google Maps Platform key.
            base_url: Places web service base URL.
            timeout_seconds: Per-request timeout in seconds.
            http_client: Optional preconfigured async HTTP client.
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _get_json(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}/{endpoint}/json"
        try:
            response = await self._http.get(url, params={**params, "key": self._api_key})
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise PlacesAppError(
                code="places_http_error",
                message=f"Places {endpoint} returned HTTP {exc.response.status_code}",
                details={"http_status": exc.response.status_code},
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise PlacesAppError(
                code="places_unavailable",
                message=f"Places {endpoint} request failed: {exc}",
            ) from exc

    async def search(
        self,
        center: GeoPoint,
        radius: int,
        *,
        keyword: str | None = None,
        place_type: str | None = None,
        page_token: str | None = None,
    ) -> SearchPage:
        params: dict[str, Any] = {
            "location": f"{center.lat},{center.lng}",
            "radius": radius,
        }
        if keyword:
            params["keyword"] = keyword
        if place_type:
            params["type"] = place_type
        if page_token:
            params["pagetoken"] = page_token

        payload = await self._get_json("nearbysearch", params)
        status = payload.get("status")
        if status not in _OK_STATUSES:
            logger.error(
                "places.search_failed",
                extra={"provider_status": status, "error_message": payload.get("error_message")},
            )
            raise PlacesAppError(
                code="places_search_failed",
                message=payload.get("error_message") or f"Nearby search failed with status {status}",
                details={"provider_status": str(status)},
            )

        return SearchPage(
            results=list(payload.get("results") or []),
            next_page_token=payload.get("next_page_token") or None,
        )

    async def details(self, place_id: str, *, fields: str = PLACE_DETAILS_FIELDS) -> dict[str, Any] | None:
        if not place_id:
            raise ValueError("place_id must be a non-empty string")

        payload = await self._get_json("details", {"place_id": place_id, "fields": fields})
        status = payload.get("status")
        if status in _NO_RESULT_STATUSES:
            return None
        if status != "OK":
            raise PlacesAppError(
                code="places_details_failed",
                message=payload.get("error_message") or f"Place details failed with status {status}",
                details={"provider_status": str(status), "place_id": place_id},
            )
        return payload.get("result") or None

    def photo_url(self, photo_reference: str, max_width: int) -> str:
        query = httpx.QueryParams(
            {"maxwidth": max_width, "photo_reference": photo_reference, "key": self._api_key}
        )
        return f"{self._base_url}/photo?{query}"

    async def fetch_photo(self, photo_reference: str, max_width: int) -> bytes:
        params = {"maxwidth": max_width, "photo_reference": photo_reference, "key": self._api_key}
        try:
            response = await self._http.get(f"{self._base_url}/photo", params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise PlacesAppError(
                code="places_photo_failed",
                message=f"Photo fetch failed: HTTP {exc.response.status_code}",
                details={"http_status": exc.response.status_code},
            ) from exc
        except httpx.HTTPError as exc:
            raise PlacesAppError(
                code="places_photo_failed",
                message=f"Photo fetch failed: {exc}",
            ) from exc
        return response.content
