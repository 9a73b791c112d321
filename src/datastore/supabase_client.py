# src/datastore/supabase_client.py - v2
"""Supabase adapter implementing BaseDataClient.

Requires the 'supabase' package: pip install supabase.
Uses the async client; it is created on first use and reused afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from silvererp.datastore.base_client import BaseDataClient
from silvererp.datastore.errors import DataClientError
from silvererp.datastore.models import Filter, OrderBy, Row

logger = logging.getLogger(__name__)


def _apply_filters(query: Any, filters: Sequence[Filter]) -> Any:
    for f in filters:
        if f.op == "eq":
            query = query.eq(f.column, f.value)
        elif f.op == "in":
            query = query.in_(f.column, f.value)
        elif f.op == "gte":
            query = query.gte(f.column, f.value)
        elif f.op == "lte":
            query = query.lte(f.column, f.value)
        else:
            raise DataClientError(f"Unsupported filter operator: {f.op!r}")
    return query


def _apply_order(query: Any, order: Sequence[OrderBy]) -> Any:
    for o in order:
        query = query.order(o.column, desc=o.descending)
    return query


def _require_filters(operation: str, filters: Sequence[Filter]) -> None:
    if not filters:
        raise DataClientError(f"Refusing unfiltered {operation}")


class SupabaseDataClient(BaseDataClient):
    """Hosted Postgres access through supabase-py."""

    def __init__(self, url: str, key: str) -> None:
        try:
            import supabase  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "supabase package required: pip install supabase"
            ) from e

        self._url = url
        self._key = key
        self._client: Any = None
        self._lock = asyncio.Lock()

    async def _get_client(self) -> Any:
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    from supabase import acreate_client

                    self._client = await acreate_client(self._url, self._key)
                    logger.debug("Supabase client created for %s", self._url)
        return self._client

    async def _execute(self, query: Any, what: str) -> Any:
        from postgrest.exceptions import APIError

        try:
            return await query.execute()
        except APIError as e:
            logger.debug("Supabase %s failed: %s", what, e)
            raise DataClientError(
                e.message or str(e), code=e.code, details=e.details
            ) from e
        except DataClientError:
            raise
        except Exception as e:
            raise DataClientError(f"{what} failed: {e}") from e

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
        order: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Row]:
        client = await self._get_client()
        query = _apply_order(_apply_filters(client.table(table).select(columns), filters), order)
        if limit is not None:
            query = query.limit(limit)
        resp = await self._execute(query, f"select from {table}")
        return list(resp.data or [])

    async def select_one(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
        order: Sequence[OrderBy] = (),
    ) -> Row | None:
        rows = await self.select(table, columns, filters=filters, order=order, limit=1)
        return rows[0] if rows else None

    async def count(self, table: str, *, filters: Sequence[Filter] = ()) -> int:
        client = await self._get_client()
        query = _apply_filters(
            client.table(table).select("*", count="exact", head=True), filters
        )
        resp = await self._execute(query, f"count on {table}")
        return int(resp.count or 0)

    async def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]:
        client = await self._get_client()
        payload = [rows] if isinstance(rows, dict) else list(rows)
        resp = await self._execute(client.table(table).insert(payload), f"insert into {table}")
        return list(resp.data or [])

    async def update(
        self, table: str, values: Row, *, filters: Sequence[Filter]
    ) -> list[Row]:
        _require_filters(f"update on {table}", filters)
        client = await self._get_client()
        query = _apply_filters(client.table(table).update(values), filters)
        resp = await self._execute(query, f"update on {table}")
        return list(resp.data or [])

    async def delete(self, table: str, *, filters: Sequence[Filter]) -> None:
        _require_filters(f"delete on {table}", filters)
        client = await self._get_client()
        query = _apply_filters(client.table(table).delete(), filters)
        await self._execute(query, f"delete on {table}")

    async def upsert(self, table: str, row: Row, *, on_conflict: str) -> Row:
        client = await self._get_client()
        query = client.table(table).upsert(row, on_conflict=on_conflict)
        resp = await self._execute(query, f"upsert into {table}")
        data = list(resp.data or [])
        if not data:
            raise DataClientError(f"upsert into {table} returned no row")
        return data[0]

    async def rpc(self, function: str, params: dict[str, Any]) -> Any:
        client = await self._get_client()
        resp = await self._execute(client.rpc(function, params), f"rpc {function}")
        return resp.data

    async def close(self) -> None:
        self._client = None
