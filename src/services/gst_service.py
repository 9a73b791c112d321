# src/services/gst_service.py - v1
"""GST report inputs: taxable sales (output tax) and ITC expenses (input tax).

Reads here are period-scoped and not cached; report screens load them once.
"""

from __future__ import annotations

import datetime as dt
from typing import Iterable, Literal

from silvererp.datastore.models import Filter, desc, eq, gte, lte
from silvererp.services.base import BaseService, parse_rows, to_number
from silvererp.services.models import Expense, GSTSummaryItem, Ledger, Order

DateLike = dt.date | str | None


def _period_filters(column: str, start: DateLike, end: DateLike) -> list[Filter]:
    filters = [eq("gst_enabled", True)]
    if start:
        filters.append(gte(column, str(start)))
    if end:
        filters.append(lte(column, str(end)))
    return filters


def calculate_gst_summary(
    items: Iterable[Order | Expense], kind: Literal["output", "input"]
) -> list[GSTSummaryItem]:
    """Group taxable value and tax by GST rate, ascending by rate."""
    summary: dict[float, GSTSummaryItem] = {}
    for item in items:
        rate = to_number(item.gst_rate)
        gst = to_number(item.gst_amount)
        if isinstance(item, Order):
            taxable = item.subtotal
            total = item.total_amount
        else:
            taxable = item.amount
            total = taxable + gst

        row = summary.setdefault(rate, GSTSummaryItem(rate=rate, type=kind))
        row.taxable_value += taxable
        row.gst_amount += gst
        row.total_amount += total

    return sorted(summary.values(), key=lambda s: s.rate)


class GSTService(BaseService):
    async def get_gst_orders(self, start: DateLike = None, end: DateLike = None) -> list[Order]:
        rows = await self.client.select(
            "orders",
            filters=_period_filters("order_date", start, end),
            order=[desc("order_date")],
        )
        return parse_rows(Order, rows)

    async def get_itc_expenses(self, start: DateLike = None, end: DateLike = None) -> list[Expense]:
        rows = await self.client.select(
            "expenses",
            filters=_period_filters("date", start, end),
            order=[desc("date")],
        )
        return parse_rows(Expense, rows)

    async def get_gst_customers(self) -> list[Ledger]:
        rows = await self.client.select("ledgers", "id, name, gst_number, state")
        return parse_rows(Ledger, rows)
