# src/cache/memory_store.py - v4
"""In-process TTL cache with stale-while-revalidate reads.

One store is shared by every service in the process. Entries expire lazily:
an expired entry is dropped the first time a read notices it, there is no
background sweep. Keys are plain strings; parameterized families share a
prefix so a whole family can be dropped with ``invalidate_pattern``.

Fetches run as tasks on the running loop and are tracked per key while in
flight. That tracking gives two things on top of a plain TTL map:

* concurrent misses on one key share a single fetch (when enabled);
* an invalidation marks matching in-flight fetches as superseded, so a
  fetch that started before a mutation never writes its result back.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from typing import Any, Callable, Literal

from silvererp.cache.base_cache_store import BaseCacheStore, FetchFunction, T
from silvererp.cache.models import CacheEntry, CacheStats

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 120.0
DEFAULT_REFRESH_RATIO = 0.75

MatchMode = Literal["prefix", "substring"]


class _Flight:
    """Bookkeeping for one fetch in progress."""

    __slots__ = ("task", "background", "superseded")

    task: asyncio.Task[Any]

    def __init__(self, background: bool) -> None:
        self.background = background
        self.superseded = False


class MemoryCacheStore(BaseCacheStore):
    """Dict-backed cache store for a single process."""

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_S,
        refresh_ratio: float = DEFAULT_REFRESH_RATIO,
        match_mode: MatchMode = "prefix",
        dedupe_inflight: bool = True,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if default_ttl <= 0:
            raise ValueError("default_ttl must be > 0")
        if not 0 < refresh_ratio <= 1:
            raise ValueError("refresh_ratio must be in (0, 1]")
        if match_mode not in ("prefix", "substring"):
            raise ValueError(f"Unsupported match mode: {match_mode!r}")

        self._default_ttl = default_ttl
        self._refresh_ratio = refresh_ratio
        self._match_mode = match_mode
        self._dedupe = dedupe_inflight
        self._clock = clock or time.monotonic

        self._entries: dict[str, CacheEntry] = {}
        # Every fetch in flight per key; more than one only without dedupe.
        self._inflight: dict[str, list[_Flight]] = {}
        self._background: set[asyncio.Task[Any]] = set()
        self._stats = CacheStats()

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    @property
    def match_mode(self) -> MatchMode:
        return self._match_mode

    @property
    def stats(self) -> CacheStats:
        return self._stats

    # --- Management ---

    def get(self, key: str) -> Any | None:
        entry = self._lookup(key)
        return None if entry is None else entry.data

    def set(self, key: str, data: Any, ttl: float | None = None) -> None:
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock(), ttl=ttl)

    def invalidate(self, key: str) -> None:
        if self._entries.pop(key, None) is not None:
            self._stats.invalidations += 1
        self._supersede(key)

    def invalidate_pattern(self, pattern: str) -> int:
        """Remove keys matching pattern. An empty pattern matches every key."""
        matched = [k for k in self._entries if self._matches(k, pattern)]
        for key in matched:
            del self._entries[key]
        for key in [k for k in self._inflight if self._matches(k, pattern)]:
            self._supersede(key)
        self._stats.invalidations += len(matched)
        return len(matched)

    def clear(self) -> None:
        self._stats.invalidations += len(self._entries)
        self._entries.clear()
        for key in list(self._inflight):
            self._supersede(key)

    def keys(self) -> list[str]:
        return list(self._entries)

    # --- Read-through ---

    async def get_or_fetch(
        self,
        key: str,
        fetch_fn: FetchFunction[T],
        ttl: float | None = None,
    ) -> T:
        entry = self._lookup(key)

        if entry is not None:
            self._stats.hits += 1
            threshold = self._refresh_ratio * entry.effective_ttl(self._default_ttl)
            if entry.age(self._clock()) > threshold:
                self._stats.stale_hits += 1
                if not (self._dedupe and key in self._inflight):
                    logger.debug("Cache STALE for %s, refreshing in background", key)
                    self._start_flight(key, fetch_fn, ttl, background=True)
            else:
                logger.debug("Cache HIT for %s", key)
            return entry.data

        self._stats.misses += 1
        flights = self._inflight.get(key) if self._dedupe else None
        if flights:
            self._stats.deduplicated += 1
            logger.debug("Cache MISS for %s, joining in-flight fetch", key)
            task = flights[0].task
        else:
            logger.debug("Cache MISS for %s", key)
            task = self._start_flight(key, fetch_fn, ttl, background=False)

        # A cancelled waiter must not cancel a fetch other waiters share.
        return await asyncio.shield(task)

    async def wait_idle(self) -> None:
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # --- Internals ---

    def _lookup(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock(), self._default_ttl):
            del self._entries[key]
            logger.debug("Cache entry expired: %s", key)
            return None
        return entry

    def _matches(self, key: str, pattern: str) -> bool:
        if self._match_mode == "prefix":
            return key.startswith(pattern)
        return pattern in key

    def _supersede(self, key: str) -> None:
        for flight in self._inflight.pop(key, ()):
            flight.superseded = True

    def _start_flight(
        self,
        key: str,
        fetch_fn: FetchFunction[Any],
        ttl: float | None,
        background: bool,
    ) -> asyncio.Task[Any]:
        flight = _Flight(background=background)
        task = asyncio.get_running_loop().create_task(
            self._run_flight(key, flight, fetch_fn, ttl),
            name=f"cache-fetch:{key}",
        )
        flight.task = task
        self._inflight.setdefault(key, []).append(flight)
        if background:
            self._background.add(task)
        task.add_done_callback(functools.partial(self._on_flight_done, key, flight))
        return task

    async def _run_flight(
        self,
        key: str,
        flight: _Flight,
        fetch_fn: FetchFunction[Any],
        ttl: float | None,
    ) -> Any:
        data = await fetch_fn()
        if flight.superseded:
            logger.debug("Discarding fetch for %s, invalidated while in flight", key)
        else:
            self.set(key, data, ttl)
            if flight.background:
                self._stats.refreshes += 1
        return data

    def _on_flight_done(self, key: str, flight: _Flight, task: asyncio.Task[Any]) -> None:
        flights = self._inflight.get(key)
        if flights is not None and flight in flights:
            flights.remove(flight)
            if not flights:
                del self._inflight[key]
        self._background.discard(task)
        if task.cancelled():
            return
        # Marks the exception retrieved; foreground waiters get it via the shield.
        exc = task.exception()
        if exc is not None and flight.background:
            self._stats.refresh_failures += 1
            logger.warning("Background refresh failed for %s: %s", key, exc)
