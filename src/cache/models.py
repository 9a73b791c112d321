# src/cache/models.py - v2
"""Cache domain models: CacheEntry, CacheStats."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class CacheEntry(BaseModel):
    """Single cached result. Written only by the owning store."""

    data: Any = None
    timestamp: float
    ttl: float | None = None

    def effective_ttl(self, default_ttl: float) -> float:
        """Per-entry TTL, falling back to the store default."""
        return self.ttl if self.ttl is not None else default_ttl

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_expired(self, now: float, default_ttl: float) -> bool:
        return self.age(now) > self.effective_ttl(default_ttl)


class CacheStats(BaseModel):
    """Counters accumulated by a cache store over its lifetime."""

    hits: int = 0
    misses: int = 0
    stale_hits: int = 0
    refreshes: int = 0
    refresh_failures: int = 0
    invalidations: int = 0
    deduplicated: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0
