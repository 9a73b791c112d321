# src/datastore/base_client.py - v1
"""Abstract client for the hosted relational backend.

The backend owns all durable state and the atomic stored procedures
(ledger postings, stock entries, order creation, karigar settlement).
Services reach it only through this interface. Every failure surfaces
as DataClientError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from silvererp.datastore.models import Filter, OrderBy, Row


class BaseDataClient(ABC):
    """Unified interface for table reads/writes and RPC calls."""

    @abstractmethod
    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
        order: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Row]:
        """Return matching rows (possibly empty)."""

    @abstractmethod
    async def select_one(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
        order: Sequence[OrderBy] = (),
    ) -> Row | None:
        """Return the first matching row, or None when nothing matches."""

    @abstractmethod
    async def count(self, table: str, *, filters: Sequence[Filter] = ()) -> int:
        """Exact count of matching rows."""

    @abstractmethod
    async def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]:
        """Insert one or more rows, returning them as stored."""

    @abstractmethod
    async def update(
        self, table: str, values: Row, *, filters: Sequence[Filter]
    ) -> list[Row]:
        """Update matching rows, returning them as stored."""

    @abstractmethod
    async def delete(self, table: str, *, filters: Sequence[Filter]) -> None:
        """Delete matching rows."""

    @abstractmethod
    async def upsert(self, table: str, row: Row, *, on_conflict: str) -> Row:
        """Insert or update on the given conflict columns."""

    @abstractmethod
    async def rpc(self, function: str, params: dict[str, Any]) -> Any:
        """Call a stored procedure and return its payload."""

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None
