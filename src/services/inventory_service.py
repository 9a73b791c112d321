# src/services/inventory_service.py - v2
"""Stock ledger: raw silver, wastage and finished goods.

Balances are derived from the movement log in ``stock_transactions``;
entries are written through the ``add_stock_entry_atomic`` RPC, which also
posts any purchase payment.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from silvererp.cache import keys as K
from silvererp.cache.invalidation import Mutation, invalidates
from silvererp.datastore.models import asc, desc, eq
from silvererp.services.base import BaseService, parse_rows, to_number
from silvererp.services.models import (
    MetalInventory,
    Product,
    StockItemType,
    StockPayment,
    StockSummary,
    StockTransaction,
)

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS_LIMIT = 50

_RAW_IN = {"RAW_IN"}
_RAW_OUT = {"RAW_OUT", "PRODUCTION", "ADJUSTMENT"}
_FG_IN = {"PRODUCTION", "RAW_IN"}
_FG_OUT = {"ORDER_DEDUCTION", "ADJUSTMENT", "RAW_OUT"}


def summarize_stock(rows: Iterable[dict[str, Any]], silver_rate: float) -> StockSummary:
    """Fold stock movements into current balances.

    ``silver_rate`` is per kilogram; balances are in grams.
    """
    raw = wastage = fg_count = fg_weight = 0.0

    for t in rows:
        qty = to_number(t.get("quantity"))
        weight = to_number(t.get("weight_gm"))
        item_type = t.get("item_type")
        kind = t.get("type")

        if item_type == "RAW_SILVER":
            if kind in _RAW_IN:
                raw += qty
            elif kind in _RAW_OUT:
                raw -= qty
        elif item_type == "WASTAGE":
            if kind == "WASTAGE":
                wastage += qty
            elif kind == "ADJUSTMENT":
                wastage -= qty
        elif item_type == "FINISHED_GOODS":
            if kind in _FG_IN:
                fg_count += qty
                fg_weight += weight
            elif kind in _FG_OUT:
                fg_count -= qty
                fg_weight -= weight

    return StockSummary(
        raw_silver=raw,
        wastage=wastage,
        finished_goods_count=fg_count,
        finished_goods_weight=fg_weight,
        total_value=(raw + wastage + fg_weight) * (silver_rate / 1000),
    )


class InventoryService(BaseService):
    """Stock balances, movement history and stock entry."""

    async def get_stock_summary(self, silver_rate: float) -> StockSummary:
        async def fetch() -> StockSummary:
            rows = await self.client.select(
                "stock_transactions", "item_type, type, quantity, weight_gm"
            )
            return summarize_stock(rows, silver_rate)

        return await self.cache.get_or_fetch(K.stock_summary_key(silver_rate), fetch)

    async def get_stock_transactions(
        self, item_type: StockItemType | None = None
    ) -> list[StockTransaction]:
        """Most recent movements, optionally for one item type."""

        async def fetch() -> list[StockTransaction]:
            filters = [eq("item_type", item_type)] if item_type else []
            rows = await self.client.select(
                "stock_transactions",
                filters=filters,
                order=[desc("created_at")],
                limit=RECENT_TRANSACTIONS_LIMIT,
            )
            return parse_rows(StockTransaction, rows)

        return await self.cache.get_or_fetch(K.stock_transactions_key(item_type), fetch)

    async def get_finished_goods(self) -> list[Product]:
        async def fetch() -> list[Product]:
            rows = await self.client.select(
                "products", filters=[eq("is_active", True)], order=[asc("name")]
            )
            return parse_rows(Product, rows)

        return await self.cache.get_or_fetch(K.FINISHED_GOODS, fetch)

    async def get_metal_inventory(self) -> list[MetalInventory]:
        summary = await self.get_stock_summary(0)
        return [
            MetalInventory(id="raw", name="Raw Silver", weight_gm=summary.raw_silver),
            MetalInventory(id="wastage", name="Wastage Silver", weight_gm=summary.wastage),
        ]

    async def get_finished_goods_weight(self) -> float:
        summary = await self.get_stock_summary(0)
        return summary.finished_goods_weight

    @invalidates(Mutation.STOCK_TRANSACTION_ADD)
    async def add_stock_transaction(
        self,
        txn: StockTransaction,
        payment: StockPayment | None = None,
    ) -> Any:
        """Record one stock movement, with an optional purchase payment."""
        params = {
            "p_date": txn.date.isoformat(),
            "p_type": txn.type,
            "p_item_type": txn.item_type,
            "p_quantity": txn.quantity,
            "p_weight_gm": txn.weight_gm or 0,
            "p_product_id": txn.product_id,
            "p_note": txn.note or "",
            "p_source": txn.source or "",
            "p_rate_at_time": txn.rate_at_time or 0,
            "p_wastage_percent": txn.wastage_percent or 0,
            "p_payment_amount": payment.amount if payment else 0,
            "p_payment_mode": payment.mode if payment else None,
            "p_vendor_id": payment.vendor_id if payment else None,
        }
        logger.info("Adding %s %s movement of %s", txn.item_type, txn.type, txn.quantity)
        return await self.client.rpc("add_stock_entry_atomic", params)

    @invalidates(Mutation.STOCK_TRANSACTION_DELETE)
    async def delete_stock_transaction(self, transaction_id: str) -> None:
        await self.client.delete("stock_transactions", filters=[eq("id", transaction_id)])
