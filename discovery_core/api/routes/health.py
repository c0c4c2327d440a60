from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from discovery_core.core.container import ServiceContainer, get_container

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe for load balancers; never rate limited."""

    return {"status": "ok"}


@router.get("/health/cache")
def cache_stats(container: Annotated[ServiceContainer, Depends(get_container)]) -> dict:
    """Read-through cache counters (no cached values are exposed)."""

    return container.cache.stats()
