"""Map raw provider place payloads onto VenueRecord."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from discovery_core.core.errors import ValidationAppError
from discovery_core.schemas.venue import GeoPoint, VenueCategory, VenueRecord

logger = logging.getLogger(__name__)

# Checked in order; the first matching group wins.
_CATEGORY_RULES: tuple[tuple[VenueCategory, frozenset[str]], ...] = (
    ("club", frozenset({"bar", "night_club", "casino"})),
    ("cafe", frozenset({"cafe"})),
    ("restaurant", frozenset({"restaurant", "food", "meal_takeaway", "meal_delivery"})),
    (
        "cultural",
        frozenset(
            {
                "museum",
                "art_gallery",
                "tourist_attraction",
                "aquarium",
                "zoo",
                "park",
                "place_of_worship",
            }
        ),
    ),
)
DEFAULT_CATEGORY: VenueCategory = "restaurant"


def infer_category(types: Any) -> VenueCategory:
    """Collapse provider place types into one of the four venue categories.

    Anything other than a list or tuple of types falls back to the default.
    """
    if not isinstance(types, (list, tuple)):
        return DEFAULT_CATEGORY
    normalized = {t.lower() for t in types if isinstance(t, str)}
    for category, markers in _CATEGORY_RULES:
        if normalized & markers:
            return category
    return DEFAULT_CATEGORY


def _coordinates(raw: dict[str, Any]) -> GeoPoint | None:
    geometry = raw.get("geometry")
    location = geometry.get("location") if isinstance(geometry, dict) else None
    if not isinstance(location, dict):
        return None
    lat, lng = location.get("lat"), location.get("lng")
    if lat is None or lng is None:
        return None
    try:
        return GeoPoint(lat=lat, lng=lng)
    except ValidationError:
        return None


def place_to_venue(raw: dict[str, Any], synced_at: datetime | None = None) -> VenueRecord:
    """Build a VenueRecord from one provider search or details result.

    Args:
        raw: Provider payload (kept verbatim in ``google_data``).
        synced_at: Timestamp stamped on the record as ``last_synced_at``.

    Raises:
        ValidationAppError: If the payload has no place id, no usable
            coordinates, or fields of the wrong type.
    """
    place_id = raw.get("place_id")
    if not place_id or not isinstance(place_id, str):
        raise ValidationAppError(code="venue_missing_place_id", message="Provider result has no place_id")

    location = _coordinates(raw)
    if location is None:
        raise ValidationAppError(
            code="venue_missing_location",
            message=f"Provider result {place_id} has no usable coordinates",
            details={"place_id": place_id},
        )

    price_level = raw.get("price_level")
    try:
        return VenueRecord(
            place_id=place_id,
            name=raw.get("name") or "Unknown",
            category=infer_category(raw.get("types")),
            location=location,
            rating=raw.get("rating"),
            price_level=str(price_level) if price_level is not None else None,
            formatted_address=raw.get("vicinity") or raw.get("formatted_address"),
            phone=raw.get("international_phone_number") or raw.get("formatted_phone_number"),
            website=raw.get("website"),
            description=raw.get("vicinity"),
            google_data=raw,
            last_synced_at=synced_at,
        )
    except (ValidationError, TypeError) as exc:
        raise ValidationAppError(
            code="venue_malformed",
            message=f"Provider result {place_id} has malformed fields",
            details={"place_id": place_id, "hint": str(exc).splitlines()[0]},
        ) from exc


def primary_photo_reference(raw: dict[str, Any]) -> str | None:
    photos = raw.get("photos")
    if not isinstance(photos, list) or not photos or not isinstance(photos[0], dict):
        return None
    reference = photos[0].get("photo_reference")
    return reference if isinstance(reference, str) and reference else None
