"""TTL cache with single-flight refresh.

Values are recomputed only after their TTL expires. The lock is held for
the whole check-and-refresh, so concurrent callers that find an expired
entry wait for the one in-flight recomputation and then read its result
instead of starting their own.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast

from pydantic import BaseModel

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CacheEntry(BaseModel):
    """A cached value and when it was stored."""

    value: Any
    stored_at: float


class TTLCache:
    """Keyed TTL cache guarded by one asyncio lock.

    Args:
        ttl: Seconds a stored value stays fresh.
        clock: Monotonic time source, injectable for tests.

    Example:
        cache = TTLCache(ttl=300)
        best = await cache.get_or_refresh("best_planet", scan_planets)
    """

    def __init__(
        self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._ttl = ttl
        self._clock = clock
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    def _fresh(self, entry: CacheEntry | None) -> bool:
        return entry is not None and self._clock() - entry.stored_at < self._ttl

    async def get_or_refresh(
        self, key: str, refresh: Callable[[], Awaitable[T]]
    ) -> T:
        """Return the cached value for ``key``, recomputing it if stale.

        A failing ``refresh`` propagates and leaves the previous entry in
        place (still stale), so the next caller tries again.
        """
        async with self._lock:
            entry = self._entries.get(key)
            if self._fresh(entry):
                self._hits += 1
                logger.debug("Cache hit for %s", key)
                return cast(T, cast(CacheEntry, entry).value)

            self._misses += 1
            logger.debug("Cache miss for %s", key)
            value = await refresh()
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())
            return value

    async def invalidate(self, key: str) -> None:
        """Drop ``key`` so the next lookup recomputes it."""
        async with self._lock:
            self._entries.pop(key, None)

    @property
    def stats(self) -> dict[str, int | float]:
        """Return cache statistics."""
        return {
            "size": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / max(1, self._hits + self._misses),
        }
