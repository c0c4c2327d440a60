"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: each worker/instance enforces its own limits. This is a
  courtesy throttle, not a security boundary, and a restart resets counters.
- Thread-safe: sync FastAPI dependencies run in a threadpool, so shared
  state is guarded by a lock.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from typing import Callable

from discovery_core.adapters.rate_limit.base import (
    DEFAULT_WINDOW_MS,
    AbstractRateLimiter,
    RateLimitResult,
)

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_MS = 5 * 60 * 1000


def _now_ms() -> float:
    return time.time() * 1000


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting admissions inside a trailing time window.

    Each key keeps the timestamps (ms) of its admissions, oldest first, for
    the longest window it has been checked with. A check admits the request
    only if fewer than ``limit`` of them fall inside its own ``window_ms``.

    Idle keys are swept opportunistically: at most once per cleanup interval
    a check trims every key by that key's window and drops the ones left empty.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = _now_ms,
        cleanup_interval_ms: int = CLEANUP_INTERVAL_MS,
    ) -> None:
        """Initialize the limiter.

        Args:
            clock: Time source returning UNIX time in milliseconds.
            cleanup_interval_ms: Minimum spacing between global sweeps.

        Raises:
            ValueError: If cleanup_interval_ms is not positive.
        """
        if cleanup_interval_ms < 1:
            raise ValueError("cleanup_interval_ms must be >= 1")

        self._clock = clock
        self._cleanup_interval_ms = cleanup_interval_ms
        self._lock = threading.RLock()
        self._timestamps_by_key: dict[str, deque[float]] = {}
        # Longest window each key has been checked with; timestamps are kept that long.
        self._window_by_key: dict[str, int] = {}
        self._last_cleanup = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._timestamps_by_key)

    def count(self, key: str) -> int:
        """Number of admissions currently recorded for ``key``."""
        with self._lock:
            return len(self._timestamps_by_key.get(key, ()))

    @staticmethod
    def _trim(timestamps: deque[float], cutoff: float) -> None:
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    @staticmethod
    def _count_since(timestamps: deque[float], cutoff: float) -> int:
        count = 0
        for ts in reversed(timestamps):
            if ts <= cutoff:
                break
            count += 1
        return count

    def _cleanup_locked(self, now: float) -> None:
        if now - self._last_cleanup < self._cleanup_interval_ms:
            return
        self._last_cleanup = now
        for key in list(self._timestamps_by_key):
            timestamps = self._timestamps_by_key[key]
            self._trim(timestamps, now - self._window_by_key.get(key, DEFAULT_WINDOW_MS))
            if not timestamps:
                del self._timestamps_by_key[key]
                self._window_by_key.pop(key, None)
        logger.debug("rate_limit.cleanup", extra={"keys": len(self._timestamps_by_key)})

    def check(self, key: str, limit: int, window_ms: int = DEFAULT_WINDOW_MS) -> RateLimitResult:
        """Admit or reject one request for ``key``.

        Raises:
            ValueError: If key is empty or limit/window_ms are not positive.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        with self._lock:
            now = self._clock()
            self._cleanup_locked(now)

            retained_ms = max(window_ms, self._window_by_key.get(key, 0))
            self._window_by_key[key] = retained_ms
            timestamps = self._timestamps_by_key.setdefault(key, deque())
            self._trim(timestamps, now - retained_ms)
            in_window = self._count_since(timestamps, now - window_ms)

            if in_window >= limit:
                oldest_in_window = timestamps[len(timestamps) - in_window]
                retry_after_ms = oldest_in_window + window_ms - now
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    retry_after_seconds=max(1, math.ceil(retry_after_ms / 1000)),
                )

            timestamps.append(now)
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=limit - in_window - 1,
                retry_after_seconds=0,
            )

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._timestamps_by_key.clear()
                self._window_by_key.clear()
            else:
                self._timestamps_by_key.pop(key, None)
                self._window_by_key.pop(key, None)
