# src/cache/base_cache_store.py - v2
"""Abstract cache store interface.

Management calls (get/set/invalidate/clear) are synchronous and never raise.
Only the cold path of ``get_or_fetch`` can fail, and it re-raises whatever
the fetch function raised.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, TypeVar

from silvererp.cache.models import CacheStats

T = TypeVar("T")

FetchFunction = Callable[[], Awaitable[T]]


class BaseCacheStore(ABC):
    """Unified interface for read-through cache backends."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return cached data, or None if absent or expired."""

    @abstractmethod
    def set(self, key: str, data: Any, ttl: float | None = None) -> None:
        """Store data under key, overwriting any existing entry."""

    @abstractmethod
    def invalidate(self, key: str) -> None:
        """Remove one exact key. No-op when absent."""

    @abstractmethod
    def invalidate_pattern(self, pattern: str) -> int:
        """Remove every key matching pattern. Returns the number removed."""

    @abstractmethod
    def clear(self) -> None:
        """Drop all entries."""

    @abstractmethod
    def keys(self) -> list[str]:
        """Snapshot of the keys currently held."""

    @abstractmethod
    async def get_or_fetch(
        self,
        key: str,
        fetch_fn: FetchFunction[T],
        ttl: float | None = None,
    ) -> T:
        """Read-through lookup with stale-while-revalidate."""

    @abstractmethod
    async def wait_idle(self) -> None:
        """Wait for pending background refreshes to settle."""

    @property
    @abstractmethod
    def stats(self) -> CacheStats:
        """Lifetime counters."""
