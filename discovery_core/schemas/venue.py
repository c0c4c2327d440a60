"""Pydantic schemas for venue records and provider search inputs/outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

VenueCategory = Literal["club", "restaurant", "cultural", "cafe"]


class GeoPoint(BaseModel):
    """WGS84 coordinate."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class SearchConfig(BaseModel):
    """One keyword/type query walked by the sync pass."""

    keyword: str | None = None
    place_type: str | None = Field(default=None, alias="type")

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def label(self) -> str:
        return self.keyword or self.place_type or "places"


class VenueRecord(BaseModel):
    """Normalized point of interest, keyed by the provider's place id.

    Upserting the same record twice leaves storage unchanged; the storage
    backend owns the row, the sync pass only builds transient instances.
    """

    place_id: str = Field(..., min_length=1, description="Provider place identifier (natural key).")
    name: str = Field(..., description="Display name.")
    category: VenueCategory = Field(..., description="Internal category inferred from provider types.")
    location: GeoPoint
    rating: float | None = Field(default=None, description="Provider rating (1.0-5.0).")
    price_level: str | None = Field(default=None, description="Provider price tier, stringified.")
    formatted_address: str | None = None
    phone: str | None = None
    website: str | None = None
    description: str | None = None
    google_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Raw provider payload kept for fields not modelled here.",
    )
    last_synced_at: datetime | None = None


@dataclass(frozen=True)
class SearchPage:
    """One page of raw provider results."""

    results: list[dict[str, Any]] = field(default_factory=list)
    next_page_token: str | None = None


class NearbyResponse(BaseModel):
    """Response for the nearby search proxy."""

    venues: list[VenueRecord]
    next_page_token: str | None = None
