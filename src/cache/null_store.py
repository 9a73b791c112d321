# src/cache/null_store.py - v1
"""Pass-through cache store (CACHE_ENABLED=false).

Every read goes to the remote source; writes and invalidations are no-ops.
"""

from __future__ import annotations

from typing import Any

from silvererp.cache.base_cache_store import BaseCacheStore, FetchFunction, T
from silvererp.cache.models import CacheStats


class NullCacheStore(BaseCacheStore):
    """Cache store that never holds anything."""

    def __init__(self) -> None:
        self._stats = CacheStats()

    @property
    def stats(self) -> CacheStats:
        return self._stats

    def get(self, key: str) -> Any | None:
        return None

    def set(self, key: str, data: Any, ttl: float | None = None) -> None:
        return None

    def invalidate(self, key: str) -> None:
        return None

    def invalidate_pattern(self, pattern: str) -> int:
        return 0

    def clear(self) -> None:
        return None

    def keys(self) -> list[str]:
        return []

    async def get_or_fetch(
        self,
        key: str,
        fetch_fn: FetchFunction[T],
        ttl: float | None = None,
    ) -> T:
        self._stats.misses += 1
        return await fetch_fn()

    async def wait_idle(self) -> None:
        return None
