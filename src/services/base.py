# src/services/base.py - v1
"""Shared plumbing for domain services."""

from __future__ import annotations

from typing import Any, Iterable, TypeVar

from pydantic import BaseModel

from silvererp.cache.base_cache_store import BaseCacheStore
from silvererp.datastore.base_client import BaseDataClient

M = TypeVar("M", bound=BaseModel)


class BaseService:
    """A service reads through ``cache`` and writes through ``client``.

    Both are injected so tests and multi-session hosts can give each
    service set its own isolated cache.
    """

    def __init__(self, client: BaseDataClient, cache: BaseCacheStore) -> None:
        self.client = client
        self.cache = cache


def parse_rows(model: type[M], rows: Iterable[dict[str, Any]] | None) -> list[M]:
    """Validate raw backend rows into models."""
    return [model.model_validate(r) for r in rows or []]


def to_number(value: Any) -> float:
    """Backend numerics may arrive as strings or null."""
    if value is None or value == "":
        return 0.0
    return float(value)
