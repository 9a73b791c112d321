# src/cache/cache_factory.py - v3
"""Factory for cache store instantiation."""

from __future__ import annotations

from typing import Callable

from silvererp.cache.base_cache_store import BaseCacheStore
from silvererp.config.settings import Settings


def create_cache_store(
    settings: Settings | None = None,
    clock: Callable[[], float] | None = None,
) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to an in-memory store.
        clock: Monotonic time source override, in seconds.

    Returns:
        Configured BaseCacheStore implementation.
    """
    from silvererp.cache.memory_store import MemoryCacheStore

    if settings is None:
        return MemoryCacheStore(clock=clock)

    if not settings.cache_enabled:
        from silvererp.cache.null_store import NullCacheStore
        return NullCacheStore()

    if settings.cache_backend == "memory":
        return MemoryCacheStore(
            default_ttl=settings.cache_default_ttl_s,
            refresh_ratio=settings.cache_refresh_ratio,
            match_mode=settings.cache_match_mode,
            dedupe_inflight=settings.cache_dedupe_inflight,
            clock=clock,
        )

    raise ValueError(f"Unsupported cache backend: {settings.cache_backend!r}")
