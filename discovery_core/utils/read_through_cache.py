"""Two-tier, single-flight read-through cache.

Wraps an arbitrary async "fill" (a provider lookup, a storage query) so that:
- fresh entries are served from the in-process tier without I/O,
- the persistent tier (shared across instances) is consulted next,
- concurrent misses for the same key share one fill instead of stampeding.

The persistent tier is best-effort: any failure there is logged and the cache
keeps working with the in-process tier only. Fill failures are never cached
and propagate to every caller waiting on that fill.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from discovery_core.adapters.storage.base import AbstractCacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _now_ms() -> float:
    return time.time() * 1000


@dataclass
class CacheEntry:
    """Cached value plus its creation time (ms). TTL is supplied per read."""

    data: Any
    timestamp: float

    def is_fresh(self, now: float, ttl_ms: float) -> bool:
        return now - self.timestamp < ttl_ms


class ReadThroughCache:
    """Deduplicating cache with an in-process tier and an optional persistent tier.

    Attributes:
        persistent: Store backing the slower, shared tier (None disables it).
        max_entries: In-process tier capacity, LRU-evicted (None for unlimited).
    """

    def __init__(
        self,
        persistent: AbstractCacheStore | None = None,
        *,
        max_entries: int | None = 1024,
        persistent_prefix: str = "sb_cache_",
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self._persistent = persistent
        self._max_entries = max_entries
        self._prefix = persistent_prefix
        self._clock = clock
        self._memory: OrderedDict[str, CacheEntry] = OrderedDict()
        self._inflight: dict[str, asyncio.Future[Any]] = {}
        # One token per in-flight fill; invalidating the key drops it, so that fill doesn't write back.
        self._fill_tokens: dict[str, object] = {}
        self._hits = 0
        self._persistent_hits = 0
        self._misses = 0
        self._coalesced = 0
        self._fills = 0
        self._fill_failures = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"ReadThroughCache(entries={len(self._memory)}, inflight={len(self._inflight)}, "
            f"hits={self._hits}, misses={self._misses}, fills={self._fills})"
        )

    async def get(self, key: str, fill: Callable[[], Awaitable[T]], ttl_ms: float) -> T:
        """Return the cached value for ``key`` or fill it exactly once.

        Args:
            key: Opaque cache key.
            fill: Zero-argument coroutine function producing the value.
            ttl_ms: Max age in milliseconds for a cached value to be served.

        Returns:
            The cached or freshly filled value.

        Raises:
            ValueError: If key is empty or ttl_ms is not positive.
            Exception: Whatever ``fill`` raised, for every caller sharing it.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if ttl_ms <= 0:
            raise ValueError("ttl_ms must be > 0")

        entry = self._memory_lookup(key, ttl_ms)
        if entry is not None:
            self._hits += 1
            logger.debug("cache.hit", extra={"cache_key": key, "tier": "memory"})
            return entry.data

        stored = await self._persistent_lookup(key, ttl_ms)
        if stored is not None:
            self._persistent_hits += 1
            self._memory_store(key, stored)
            logger.debug("cache.hit", extra={"cache_key": key, "tier": "persistent"})
            return stored.data

        # A fill may have completed while the persistent tier was being read.
        entry = self._memory_lookup(key, ttl_ms)
        if entry is not None:
            self._hits += 1
            return entry.data

        pending = self._inflight.get(key)
        if pending is not None:
            self._coalesced += 1
            logger.debug("cache.coalesced", extra={"cache_key": key})
            return await asyncio.shield(pending)

        self._misses += 1
        token = object()
        self._fill_tokens[key] = token
        task = asyncio.ensure_future(self._fill(key, fill, token))
        self._inflight[key] = task
        task.add_done_callback(lambda done: self._settle(key, done))
        return await asyncio.shield(task)

    async def invalidate(self, key: str) -> None:
        """Drop ``key`` from both tiers so the next read fills again."""
        self._memory.pop(key, None)
        self._inflight.pop(key, None)
        self._fill_tokens.pop(key, None)
        if self._persistent is None:
            return
        try:
            await self._persistent.delete(self._prefix + key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("cache.persistent_delete_failed", extra={"cache_key": key, "error": str(exc)})

    async def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with ``prefix`` from both tiers.

        Returns:
            Number of in-process entries removed.
        """
        doomed = [key for key in self._memory if key.startswith(prefix)]
        for key in doomed:
            del self._memory[key]
        for key in [key for key in self._inflight if key.startswith(prefix)]:
            del self._inflight[key]
            self._fill_tokens.pop(key, None)

        if self._persistent is not None:
            try:
                await self._persistent.delete_prefix(self._prefix + prefix)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "cache.persistent_delete_failed",
                    extra={"cache_prefix": prefix, "error": str(exc)},
                )

        logger.info("cache.invalidated_prefix", extra={"cache_prefix": prefix, "entries": len(doomed)})
        return len(doomed)

    def clear(self) -> None:
        """Drop the in-process tier and reset counters (persistent tier untouched)."""
        self._memory.clear()
        self._fill_tokens.clear()
        self._hits = self._persistent_hits = self._misses = 0
        self._coalesced = self._fills = self._fill_failures = 0

    def stats(self) -> dict[str, int | None]:
        """Return lightweight cache metrics without exposing values."""
        return {
            "entries": len(self._memory),
            "max_entries": self._max_entries,
            "inflight": len(self._inflight),
            "hits": self._hits,
            "persistent_hits": self._persistent_hits,
            "misses": self._misses,
            "coalesced": self._coalesced,
            "fills": self._fills,
            "fill_failures": self._fill_failures,
        }

    async def _fill(self, key: str, fill: Callable[[], Awaitable[T]], token: object) -> T:
        self._fills += 1
        try:
            data = await fill()
        except Exception as exc:
            self._fill_failures += 1
            logger.warning(
                "cache.fill_failed",
                extra={"cache_key": key, "error_type": type(exc).__name__, "error": str(exc)},
            )
            raise
        finally:
            current = self._fill_tokens.get(key)
            if current is token:
                del self._fill_tokens[key]

        if current is not token:
            # Key invalidated mid-fill: hand the value to waiters, don't cache it.
            return data

        entry = CacheEntry(data=data, timestamp=self._clock())
        self._memory_store(key, entry)
        await self._persistent_store(key, entry)
        return data

    def _settle(self, key: str, task: asyncio.Future[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark the exception retrieved; waiters already re-raised it.
            task.exception()

    def _memory_lookup(self, key: str, ttl_ms: float) -> CacheEntry | None:
        entry = self._memory.get(key)
        if entry is None or not entry.is_fresh(self._clock(), ttl_ms):
            return None
        self._memory.move_to_end(key)
        return entry

    def _memory_store(self, key: str, entry: CacheEntry) -> None:
        self._memory[key] = entry
        self._memory.move_to_end(key)
        if self._max_entries is None:
            return
        while len(self._memory) > self._max_entries:
            self._memory.popitem(last=False)

    async def _persistent_lookup(self, key: str, ttl_ms: float) -> CacheEntry | None:
        if self._persistent is None:
            return None
        try:
            raw = await self._persistent.get(self._prefix + key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("cache.persistent_read_failed", extra={"cache_key": key, "error": str(exc)})
            return None

        if not isinstance(raw, dict) or "data" not in raw:
            return None
        try:
            entry = CacheEntry(data=raw["data"], timestamp=float(raw["timestamp"]))
        except (KeyError, TypeError, ValueError):
            logger.warning("cache.persistent_entry_malformed", extra={"cache_key": key})
            return None
        return entry if entry.is_fresh(self._clock(), ttl_ms) else None

    async def _persistent_store(self, key: str, entry: CacheEntry) -> None:
        if self._persistent is None:
            return
        try:
            await self._persistent.put(
                self._prefix + key,
                {"data": entry.data, "timestamp": entry.timestamp},
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("cache.persistent_write_failed", extra={"cache_key": key, "error": str(exc)})
