"""Application factory for the FastAPI app.

Centralizes app construction (metadata, container, middleware, handlers,
routers) so tests can build an app around their own ServiceContainer.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from discovery_core.api.routes import health_router, places_router
from discovery_core.core.config import settings
from discovery_core.core.container import ServiceContainer
from discovery_core.core.exception_handlers import setup_exception_handlers
from discovery_core.core.logging import configure_logging
from discovery_core.core.middleware import request_id_middleware


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        container: Pre-built collaborators; built from settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    services = container or ServiceContainer.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await services.aclose()

    app = FastAPI(
        title="Discovery Core API",
        description=(
            "Ingestion and caching core of a travel discovery app: cached "
            "proxies for nearby search and place details, photo redirects, "
            "and the venue sync trigger. Per-client rate limits apply to "
            "every /v1/places route."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )
    app.state.container = services

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(places_router, prefix="/v1")
    app.include_router(health_router)

    return app
