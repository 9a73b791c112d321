# tests/integration/services/test_int_invalidation_flow.py - v2
"""End-to-end read/mutate/read flows through the real cache store.

Uses an in-memory datastore that understands the filters, ordering and
stored procedures the services rely on, so a missing invalidation shows
up as a stale read.
"""

from __future__ import annotations

import datetime as dt
import itertools
from typing import Any, Sequence

import pytest

from silvererp.cache.memory_store import MemoryCacheStore
from silvererp.datastore.base_client import BaseDataClient
from silvererp.datastore.errors import DataClientError
from silvererp.datastore.models import Filter, OrderBy, Row
from silvererp.services.container import build_services
from silvererp.services.models import Expense, SilverRate, StockTransaction

pytestmark = pytest.mark.integration


def _resolve(row: Row, column: str) -> Any:
    value: Any = row
    for part in column.split("."):
        value = (value or {}).get(part)
    return value


def _matches(row: Row, f: Filter) -> bool:
    value = _resolve(row, f.column)
    if f.op == "eq":
        return value == f.value
    if f.op == "in":
        return value in f.value
    if f.op == "gte":
        return value is not None and value >= f.value
    if f.op == "lte":
        return value is not None and value <= f.value
    raise DataClientError(f"Unsupported filter operator: {f.op!r}")


class InMemoryDataClient(BaseDataClient):
    """Tables as lists of dicts, plus the RPCs the services call."""

    def __init__(self) -> None:
        self.tables: dict[str, list[Row]] = {}
        self.calls: list[str] = []
        self.fail_next_rpc = False
        self.fail_delete_on: str | None = None
        self._ids = itertools.count(1)

    def _next_id(self) -> str:
        return f"id{next(self._ids)}"

    def _join(self, table: str, rows: list[Row], columns: str) -> list[Row]:
        if table == "transactions" and "ledgers" in columns:
            ledgers = {lg["id"]: lg for lg in self.tables.get("ledgers", [])}
            return [{**r, "ledgers": ledgers.get(r.get("ledger_id"))} for r in rows]
        return rows

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Sequence[Filter] = (),
        order: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Row]:
        self.calls.append(f"select:{table}")
        rows = self._join(table, [dict(r) for r in self.tables.get(table, [])], columns)
        rows = [r for r in rows if all(_matches(r, f) for f in filters)]
        for o in reversed(order):
            rows.sort(key=lambda r: str(r.get(o.column) or ""), reverse=o.descending)
        return rows[:limit] if limit is not None else rows

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
        return len(await self.select(table, filters=filters))

    async def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]:
        payload = [rows] if isinstance(rows, dict) else list(rows)
        stored = [{"id": self._next_id(), **r} for r in payload]
        self.tables.setdefault(table, []).extend(stored)
        return stored

    async def update(self, table: str, values: Row, *, filters: Sequence[Filter]) -> list[Row]:
        changed = []
        for r in self.tables.get(table, []):
            if all(_matches(r, f) for f in filters):
                r.update(values)
                changed.append(r)
        return changed

    async def delete(self, table: str, *, filters: Sequence[Filter]) -> None:
        if table == self.fail_delete_on:
            raise DataClientError(f"delete on {table} failed")
        self.tables[table] = [
            r for r in self.tables.get(table, [])
            if not all(_matches(r, f) for f in filters)
        ]

    async def upsert(self, table: str, row: Row, *, on_conflict: str) -> Row:
        cols = on_conflict.split(",")
        for existing in self.tables.get(table, []):
            if all(existing.get(c) == row.get(c) for c in cols):
                existing.update(row)
                return existing
        return (await self.insert(table, row))[0]

    async def rpc(self, function: str, params: dict[str, Any]) -> Any:
        self.calls.append(f"rpc:{function}")
        if self.fail_next_rpc:
            self.fail_next_rpc = False
            raise DataClientError("rpc failed", code="P0001")
        if function == "record_ledger_payment_atomic":
            side = "credit" if params["p_type"] == "IN" else "debit"
            await self.insert("transactions", {
                "ledger_id": params["p_ledger_id"],
                "date": params["p_date"],
                side: params["p_amount"],
                "description": params["p_note"],
            })
            return {"ok": True}
        if function == "add_stock_entry_atomic":
            await self.insert("stock_transactions", {
                "date": params["p_date"],
                "type": params["p_type"],
                "item_type": params["p_item_type"],
                "quantity": params["p_quantity"],
                "weight_gm": params["p_weight_gm"],
                "created_at": params["p_date"] + "T00:00:00",
            })
            return {"ok": True}
        raise DataClientError(f"Unknown function {function}")


@pytest.fixture
def backend() -> InMemoryDataClient:
    client = InMemoryDataClient()
    client.tables["ledgers"] = [
        {"id": "L1", "name": "Ravi", "type": "ASSET"},
        {"id": "INC", "name": "Job Work Income", "type": "INCOME"},
    ]
    client.tables["silver_rates"] = [
        {"id": "r1", "rate_date": "2024-06-01", "source": "MCX", "rate_10g": 900},
    ]
    return client


@pytest.fixture
def services(backend, clock):
    from silvererp.config.settings import Settings

    settings = Settings(
        _env_file=None, supabase_url="", supabase_anon_key="", settings_user_id="u1",
    )
    return build_services(settings, client=backend, cache=MemoryCacheStore(clock=clock))


class TestPaymentFlow:
    @pytest.mark.asyncio
    async def test_statement_reflects_payment(self, services, backend):
        assert await services.accounting.get_customer_statement("Ravi") == []
        await services.rates.get_latest_rate()
        rate_reads = backend.calls.count("select:silver_rates")

        await services.accounting.record_payment("L1", 500, "Cash", payment_date=dt.date(2024, 6, 2))

        statement = await services.accounting.get_customer_statement("Ravi")
        assert [t.credit for t in statement] == [500]
        # latest_rate was not touched by the payment
        await services.rates.get_latest_rate()
        assert backend.calls.count("select:silver_rates") == rate_reads

    @pytest.mark.asyncio
    async def test_failed_payment_keeps_cached_statement(self, services, backend):
        await services.accounting.get_customer_statement("Ravi")
        backend.fail_next_rpc = True
        with pytest.raises(DataClientError):
            await services.accounting.record_payment("L1", 500, "Cash")
        reads = backend.calls.count("select:transactions")
        await services.accounting.get_customer_statement("Ravi")
        assert backend.calls.count("select:transactions") == reads

    @pytest.mark.asyncio
    async def test_pl_reflects_settlement_expense(self, services, backend):
        backend.tables["transactions"] = [{"id": "t1", "ledger_id": "INC", "date": "2024-06-01", "credit": 2000}]
        backend.tables["karigar_work_records"] = [
            {"id": "w1", "karigar_id": "k1", "amount": 300, "payment_status": "PENDING",
             "work_date": "2024-06-01", "karigars": {"name": "Ramesh"}},
        ]
        before = await services.accounting.get_pl_report()
        assert before.net_profit == 2000

        await services.karigars.settle_work_records(["w1"], dt.date(2024, 6, 30), "Cash")

        after = await services.accounting.get_pl_report()
        assert after.karigar_expenses == 300
        assert after.net_profit == 1700
        assert backend.tables["karigar_work_records"][0]["payment_status"] == "PAID"


class TestStockFlow:
    @pytest.mark.asyncio
    async def test_summary_and_history_refresh_after_entry(self, services):
        assert (await services.inventory.get_stock_summary(90000)).raw_silver == 0
        assert await services.inventory.get_stock_transactions("RAW_SILVER") == []

        await services.inventory.add_stock_transaction(StockTransaction(
            date=dt.date(2024, 6, 3), type="RAW_IN", item_type="RAW_SILVER", quantity=1000,
        ))

        summary = await services.inventory.get_stock_summary(90000)
        assert summary.raw_silver == 1000
        assert summary.total_value == pytest.approx(90000)
        assert len(await services.inventory.get_stock_transactions("RAW_SILVER")) == 1


class TestRateFlow:
    @pytest.mark.asyncio
    async def test_new_rate_replaces_latest(self, services, backend):
        assert (await services.rates.get_latest_rate()).rate_10g == 900
        await services.rates.add_silver_rate(
            SilverRate(rate_date=dt.date(2024, 6, 2), source="MCX", rate_10g=950)
        )
        latest = await services.rates.get_latest_rate()
        assert latest.rate_10g == 950
        assert latest.rate_1g == 95

    @pytest.mark.asyncio
    async def test_same_day_rate_is_upserted(self, services, backend):
        await services.rates.add_silver_rate(
            SilverRate(rate_date=dt.date(2024, 6, 1), source="MCX", rate_10g=910)
        )
        assert len(backend.tables["silver_rates"]) == 1
        assert (await services.rates.get_latest_rate()).rate_10g == 910


class TestExpenseFlow:
    @pytest.mark.asyncio
    async def test_dashboard_and_list_refresh(self, services):
        assert (await services.dashboard.get_stats()).total_expenses == 0
        assert await services.expenses.get_expenses() == []

        await services.expenses.create_expense(
            Expense(date=dt.date(2024, 6, 5), head="Rent", amount=3000)
        )

        assert (await services.dashboard.get_stats()).total_expenses == 3000
        assert len(await services.expenses.get_expenses()) == 1

    @pytest.mark.asyncio
    async def test_stale_read_served_while_refreshing(self, services, backend, clock):
        await services.expenses.get_expenses()
        # Written behind the cache's back: only a refresh can see it
        backend.tables["expenses"] = [
            {"id": "e9", "date": "2024-06-05", "head": "Rent", "amount": 10},
        ]
        clock.advance(100)
        assert await services.expenses.get_expenses() == []
        await services.cache.wait_idle()
        assert len(await services.expenses.get_expenses()) == 1


class TestOrderDeleteFlow:
    @pytest.mark.asyncio
    async def test_partial_delete_refreshes_stock_history(self, services, backend):
        backend.tables["stock_transactions"] = [
            {"id": "s1", "order_id": "o1", "date": "2024-06-01", "type": "ORDER_DEDUCTION",
             "item_type": "FINISHED_GOODS", "quantity": 2, "weight_gm": 50,
             "created_at": "2024-06-01T00:00:00"},
        ]
        backend.tables["orders"] = [{"id": "o1", "customer_name": "Ravi"}]
        assert len(await services.inventory.get_stock_transactions()) == 1

        backend.fail_delete_on = "transactions"
        with pytest.raises(DataClientError):
            await services.orders.delete_order("o1")

        # The stock movement is gone even though the order row survived.
        assert await services.inventory.get_stock_transactions() == []
        assert len(backend.tables["orders"]) == 1


class TestSettingsFlow:
    @pytest.mark.asyncio
    async def test_update_survives_cache_clear(self, services, backend):
        gst = await services.business_settings.get_settings("gst_settings")
        assert gst["defaultGstRateSale"] == 3

        await services.business_settings.update_settings("gst_settings", {"defaultGstRateSale": 5})
        services.business_settings.clear_settings_cache()

        reloaded = await services.business_settings.get_settings("gst_settings")
        assert reloaded["defaultGstRateSale"] == 5
        assert reloaded["taxCalculationMethod"] == "exclusive"
        assert len(backend.tables["settings"]) == 1

    @pytest.mark.asyncio
    async def test_settings_writes_leave_business_caches(self, services, backend):
        await services.rates.get_latest_rate()
        reads = backend.calls.count("select:silver_rates")
        await services.business_settings.reset_settings("invoice_settings")
        await services.rates.get_latest_rate()
        assert backend.calls.count("select:silver_rates") == reads
