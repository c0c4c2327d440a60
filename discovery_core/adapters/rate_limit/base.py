"""Rate limiter interfaces.

Request handlers depend on this abstraction, not on the in-memory store, so a
shared backend (e.g. Redis) can be swapped in for multi-instance deployments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

DEFAULT_WINDOW_MS = 60 * 60 * 1000


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is admitted.
        limit: Max admissions per window.
        remaining: Admissions left in the trailing window (0 when blocked).
        retry_after_seconds: Seconds until the oldest admission leaves the
            window when blocked, otherwise 0.
    """

    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, key: str, limit: int, window_ms: int = DEFAULT_WINDOW_MS) -> RateLimitResult:
        """Admit or reject one request for ``key``.

        Args:
            key: Unique identifier (e.g., ``ip:1.2.3.4:/v1/places``).
            limit: Max admissions inside any trailing ``window_ms``.
            window_ms: Window length in milliseconds.

        Returns:
            RateLimitResult describing whether it was allowed. Rejected
            calls do not consume quota.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str | None = None) -> None:
        """Forget recorded admissions for ``key`` (all keys when omitted)."""
        raise NotImplementedError
