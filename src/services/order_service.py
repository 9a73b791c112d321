# src/services/order_service.py - v3
"""Orders for job work (client material) and own-material sales.

Creation goes through ``create_order_atomic``, which numbers the order,
posts the ledger entries and deducts finished goods in one transaction.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from silvererp.cache import keys as K
from silvererp.cache.base_cache_store import BaseCacheStore
from silvererp.cache.invalidation import Mutation, apply_invalidation, invalidates
from silvererp.datastore.base_client import BaseDataClient
from silvererp.datastore.models import Filter, desc, eq, in_
from silvererp.logging.context import operation_context
from silvererp.services.base import BaseService, parse_rows
from silvererp.services.models import NewOrder, Order, OrderItem, OrderStatus

logger = logging.getLogger(__name__)

# Rows referencing an order, deleted before the order itself.
_DEPENDENT_TABLES = ("stock_transactions", "transactions", "karigar_work_records")


class OrderService(BaseService):
    def __init__(
        self,
        client: BaseDataClient,
        cache: BaseCacheStore,
        default_gst_rate: float = 3.0,
    ) -> None:
        super().__init__(client, cache)
        self.default_gst_rate = default_gst_rate

    async def get_orders(self) -> list[Order]:
        async def fetch() -> list[Order]:
            rows = await self.client.select(
                "orders", "*, items:order_items(*)", order=[desc("created_at")]
            )
            return parse_rows(Order, rows)

        return await self.cache.get_or_fetch(K.ORDERS_LIST, fetch)

    @invalidates(Mutation.ORDER_CREATE)
    async def create_order(
        self,
        order: NewOrder,
        items: Sequence[OrderItem],
        gst_enabled: bool = False,
        gst_rate: float | None = None,
    ) -> Any:
        item_payload = [
            item.model_dump(
                mode="json", exclude_none=True, exclude={"id", "order_id", "amount"}
            )
            for item in items
        ]
        try:
            return await self.client.rpc(
                "create_order_atomic",
                {
                    "p_customer_name": order.customer_name,
                    "p_order_date": order.order_date.isoformat(),
                    "p_material_type": order.material_type,
                    "p_items": item_payload,
                    "p_gst_enabled": gst_enabled,
                    "p_gst_rate": self.default_gst_rate if gst_rate is None else gst_rate,
                },
            )
        except Exception:
            logger.error("create_order_atomic failed for %s", order.customer_name)
            raise

    async def delete_order(self, order_id: str) -> None:
        await self._delete_where(eq("order_id", order_id), eq("id", order_id))

    async def delete_orders(self, order_ids: Sequence[str]) -> None:
        """Delete several orders. An empty list does nothing."""
        if not order_ids:
            return
        await self._delete_where(in_("order_id", order_ids), in_("id", order_ids))

    async def _delete_where(self, dependent: Filter, own: Filter) -> None:
        """Delete dependent rows table by table, then the orders.

        The deletes are separate calls. If one fails after an earlier one
        went through, the caches are busted anyway before re-raising.
        """
        committed = False
        with operation_context(Mutation.ORDER_DELETE.value):
            try:
                for table in _DEPENDENT_TABLES:
                    await self.client.delete(table, filters=[dependent])
                    committed = True
                await self.client.delete("orders", filters=[own])
            except Exception as e:
                if committed:
                    logger.error("Order delete failed part way: %s", e)
                    apply_invalidation(self.cache, Mutation.ORDER_DELETE)
                raise
            apply_invalidation(self.cache, Mutation.ORDER_DELETE)

    @invalidates(Mutation.ORDER_STATUS_UPDATE)
    async def update_order_status(self, order_id: str, status: OrderStatus) -> None:
        await self.client.update("orders", {"status": status}, filters=[eq("id", order_id)])
