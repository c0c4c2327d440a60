"""Places provider adapters."""

from discovery_core.adapters.places.base import PLACE_DETAILS_FIELDS, AbstractPlacesClient
from discovery_core.adapters.places.factory import create_places_client
from discovery_core.adapters.places.google_places import GooglePlacesClient

__all__ = [
    "PLACE_DETAILS_FIELDS",
    "AbstractPlacesClient",
    "GooglePlacesClient",
    "create_places_client",
]
