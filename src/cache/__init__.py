"""Client-side read-through cache and its invalidation table."""

from silvererp.cache.base_cache_store import BaseCacheStore
from silvererp.cache.memory_store import MemoryCacheStore
from silvererp.cache.null_store import NullCacheStore

__all__ = ["BaseCacheStore", "MemoryCacheStore", "NullCacheStore"]
