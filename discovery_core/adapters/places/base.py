from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from discovery_core.schemas.venue import GeoPoint, SearchPage

PLACE_DETAILS_FIELDS = (
    "name,formatted_address,geometry,photos,reviews,rating,user_ratings_total,"
    "opening_hours,website,formatted_phone_number,price_level,types"
)


class AbstractPlacesClient(ABC):
    """Interface for the upstream point-of-interest provider."""

    @abstractmethod
    async def search(
        self,
        center: GeoPoint,
        radius: int,
        *,
        keyword: str | None = None,
        place_type: str | None = None,
        page_token: str | None = None,
    ) -> SearchPage:
        """Fetch one page of places around ``center``.

        Args:
            center: Search center.
            radius: Radius in meters.
            keyword: Optional free-text keyword.
            place_type: Optional provider place type.
            page_token: Token returned by the previous page, if any.

        Returns:
            SearchPage with raw results and the next page token (if any).

        Raises:
            PlacesAppError: If the provider call fails or reports an error status.
        """
        ...

    @abstractmethod
    async def details(self, place_id: str, *, fields: str = PLACE_DETAILS_FIELDS) -> dict[str, Any] | None:
        """Fetch rich details for one place, or None when the provider has none."""
        ...

    @abstractmethod
    async def fetch_photo(self, photo_reference: str, max_width: int) -> bytes:
        """Resolve a photo reference to image bytes.

        Raises:
            PlacesAppError: If the photo endpoint fails.
        """
        ...

    @abstractmethod
    def photo_url(self, photo_reference: str, max_width: int) -> str:
        """Build the live provider URL for a photo reference (no request made)."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
