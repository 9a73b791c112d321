# tests/unit/cache/test_cache_factory.py - v2
"""Tests for cache/cache_factory.py."""

from __future__ import annotations

from silvererp.cache.cache_factory import create_cache_store
from silvererp.cache.memory_store import MemoryCacheStore
from silvererp.cache.null_store import NullCacheStore
from silvererp.config.settings import Settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestCreateCacheStore:
    def test_default_is_memory(self):
        store = create_cache_store()
        assert isinstance(store, MemoryCacheStore)
        assert store.default_ttl == 120.0

    def test_disabled_returns_null_store(self):
        assert isinstance(create_cache_store(_settings(cache_enabled=False)), NullCacheStore)

    def test_memory_from_settings(self):
        store = create_cache_store(
            _settings(cache_default_ttl_s=60, cache_match_mode="substring")
        )
        assert isinstance(store, MemoryCacheStore)
        assert store.default_ttl == 60
        assert store.match_mode == "substring"

    def test_clock_is_passed_through(self):
        store = create_cache_store(_settings(), clock=lambda: 5.0)
        store.set("k", "v")
        assert store.get("k") == "v"
