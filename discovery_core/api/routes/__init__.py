from __future__ import annotations

from discovery_core.api.routes.health import router as health_router
from discovery_core.api.routes.places import router as places_router

__all__ = ["health_router", "places_router"]
