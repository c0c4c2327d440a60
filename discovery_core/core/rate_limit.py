"""Rate limiting dependency for FastAPI routes.

This module wires the sliding-window limiter into the HTTP layer.

Strategy:
- Named tiers with a fixed budget per hour (see RATE_LIMITS).
- The tier is derived from the request path; unmapped paths are not limited.
- Budgets are tracked per client IP and route family.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response, status

from discovery_core.adapters.rate_limit.base import DEFAULT_WINDOW_MS
from discovery_core.core.container import ServiceContainer, get_container

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPreset:
    limit: int
    window_ms: int = DEFAULT_WINDOW_MS


RATE_LIMITS: dict[str, RateLimitPreset] = {
    "ai": RateLimitPreset(limit=10),
    "translation": RateLimitPreset(limit=50),
    "places": RateLimitPreset(limit=100),
    "chat": RateLimitPreset(limit=60),
    "mutation": RateLimitPreset(limit=30),
}

# First match wins.
_PATH_TIERS: tuple[tuple[str, str], ...] = (
    ("/v1/places/sync", "mutation"),
    ("/v1/places", "places"),
)


def tier_for_path(path: str) -> str | None:
    """Return the rate limit tier guarding ``path``, or None when unlimited."""
    for prefix, tier in _PATH_TIERS:
        if path == prefix or path.startswith(prefix + "/"):
            return tier
    return None


def client_ip(request: Request) -> str:
    """Best-effort client address: proxy headers first, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def build_rate_limit_key(ip: str, path: str) -> str:
    """Key requests by client and route family (first two path segments)."""
    segments = [segment for segment in path.split("/") if segment][:2]
    return f"ip:{ip}:/{'/'.join(segments)}"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def enforce_rate_limit(
    request: Request,
    response: Response,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> None:
    """FastAPI dependency enforcing the tier budget of the current path.

    Consumes one unit from the caller's budget when admitted and annotates the
    response with the remaining budget.

    Raises:
        HTTPException: 429 Too Many Requests when the budget is exhausted.
    """
    app_cfg = container.config.app
    if not app_cfg.rate_limit_enabled:
        return

    path = request.url.path
    tier = tier_for_path(path)
    if tier is None:
        return

    preset = RATE_LIMITS[tier]
    key = build_rate_limit_key(client_ip(request), path)
    result = container.rate_limiter.check(key, preset.limit, preset.window_ms)

    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={"tier": tier, "key_hash": _hash_limiter_key(key), "remaining": result.remaining},
        )
        if app_cfg.rate_limit_include_headers:
            response.headers["X-RateLimit-Limit"] = str(result.limit)
            response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "tier": tier,
            "key_hash": _hash_limiter_key(key),
            "limit": result.limit,
            "retry_after_s": result.retry_after_seconds,
        },
    )

    headers = {"Retry-After": str(result.retry_after_seconds)}
    if app_cfg.rate_limit_include_headers:
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = "0"

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many requests. Please try again later.",
        headers=headers,
    )
