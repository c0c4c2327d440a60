"""Factory for the places provider client."""

from discovery_core.adapters.places.base import AbstractPlacesClient
from discovery_core.adapters.places.google_places import GooglePlacesClient
from discovery_core.core.config import GooglePlacesSettings, settings
from discovery_core.core.errors import ValidationAppError


def create_places_client(google_settings: GooglePlacesSettings | None = None) -> AbstractPlacesClient:
    """Instantiate the places client from configuration.

    Raises:
        ValidationAppError: If GOOGLE_API_KEY is not configured.
    """
    cfg = google_settings or settings.google
    if not cfg.api_key:
        raise ValidationAppError(
            code="places_missing_api_key",
            message="Google Places requires the GOOGLE_API_KEY environment variable",
        )
    return GooglePlacesClient(
        cfg.api_key,
        base_url=cfg.base_url,
        timeout_seconds=cfg.timeout_seconds,
    )
