# src/datastore/unconfigured_client.py - v1
"""Stand-in client used when no hosted database is configured.

Every call fails with DataClientError, so cold cache reads surface a clear
error instead of an AttributeError deep inside a service.
"""

from __future__ import annotations

from typing import Any, Sequence

from silvererp.datastore.base_client import BaseDataClient
from silvererp.datastore.errors import DataClientError
from silvererp.datastore.models import Filter, OrderBy, Row


class UnconfiguredDataClient(BaseDataClient):
    """Client whose every operation raises DataClientError."""

    def __init__(self, message: str = "Missing Supabase environment variables") -> None:
        self._message = message

    def _fail(self) -> DataClientError:
        return DataClientError(self._message, code="unconfigured")

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
        order: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Row]:
        raise self._fail()

    async def select_one(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
        order: Sequence[OrderBy] = (),
    ) -> Row | None:
        raise self._fail()

    async def count(self, table: str, *, filters: Sequence[Filter] = ()) -> int:
        raise self._fail()

    async def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]:
        raise self._fail()

    async def update(
        self, table: str, values: Row, *, filters: Sequence[Filter]
    ) -> list[Row]:
        raise self._fail()

    async def delete(self, table: str, *, filters: Sequence[Filter]) -> None:
        raise self._fail()

    async def upsert(self, table: str, row: Row, *, on_conflict: str) -> Row:
        raise self._fail()

    async def rpc(self, function: str, params: dict[str, Any]) -> Any:
        raise self._fail()
