# src/services/catalog_service.py - v2
"""Catalogs: finished products and job-work service items.

Deletes are soft (``is_active = false``). Product edits bust the product
list and finished goods, which list the same rows. A product created with
opening stock also busts the stock caches. Job-work edits bust only their
own list.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any

from silvererp.cache import keys as K
from silvererp.cache.invalidation import Mutation, apply_invalidation, invalidates
from silvererp.datastore.errors import DataClientError
from silvererp.datastore.models import asc, eq
from silvererp.logging.context import operation_context
from silvererp.services.base import BaseService, parse_rows
from silvererp.services.errors import ServiceError
from silvererp.services.models import JobWorkItem, Product

logger = logging.getLogger(__name__)


class ProductService(BaseService):
    async def get_products(self) -> list[Product]:
        async def fetch() -> list[Product]:
            rows = await self.client.select(
                "products", filters=[eq("is_active", True)], order=[asc("name")]
            )
            return parse_rows(Product, rows)

        return await self.cache.get_or_fetch(K.PRODUCTS_LIST, fetch)

    async def add_product(self, product: Product) -> Product:
        """Create a product; opening stock is booked as a RAW_IN movement.

        Raises:
            ServiceError: If the opening stock entry fails. The product row
                itself has been created at that point.
        """
        opening_stock = product.current_stock or 0
        row = product.model_dump(mode="json", exclude_none=True, exclude={"id"})
        row["current_stock"] = 0

        with operation_context(Mutation.PRODUCT_CREATE.value):
            rows = await self.client.insert("products", row)
            if not rows:
                raise ServiceError(f"Product {product.name!r} was not created")
            created = Product.model_validate(rows[0])

            if opening_stock <= 0:
                apply_invalidation(self.cache, Mutation.PRODUCT_CREATE)
                return created

            try:
                await self.client.rpc(
                    "add_stock_entry_atomic",
                    {
                        "p_date": dt.datetime.now(dt.timezone.utc).isoformat(),
                        "p_type": "RAW_IN",
                        "p_item_type": "FINISHED_GOODS",
                        "p_quantity": opening_stock,
                        "p_weight_gm": (product.default_weight or 0) * opening_stock,
                        "p_product_id": created.id,
                        "p_note": "Opening Stock Initialization",
                        "p_source": "Catalogue",
                        "p_rate_at_time": 0,
                        "p_wastage_percent": product.wastage_percent or 0,
                    },
                )
            except DataClientError as e:
                logger.error("Opening stock failed for product %s: %s", created.id, e)
                apply_invalidation(self.cache, Mutation.PRODUCT_CREATE)
                raise ServiceError(f"Failed to add opening stock: {e.message}") from e

            apply_invalidation(self.cache, Mutation.PRODUCT_CREATE_WITH_STOCK)
            return created

    @invalidates(Mutation.PRODUCT_UPDATE)
    async def update_product(self, product_id: str, updates: dict[str, Any]) -> None:
        await self.client.update("products", updates, filters=[eq("id", product_id)])

    @invalidates(Mutation.PRODUCT_DELETE)
    async def delete_product(self, product_id: str) -> None:
        await self.client.update("products", {"is_active": False}, filters=[eq("id", product_id)])


class JobWorkService(BaseService):
    async def get_items(self) -> list[JobWorkItem]:
        async def fetch() -> list[JobWorkItem]:
            rows = await self.client.select(
                "job_work_items", filters=[eq("is_active", True)], order=[asc("name")]
            )
            return parse_rows(JobWorkItem, rows)

        return await self.cache.get_or_fetch(K.JOB_WORK_ITEMS, fetch)

    @invalidates(Mutation.JOB_WORK_CREATE)
    async def add_item(self, item: JobWorkItem) -> JobWorkItem:
        rows = await self.client.insert(
            "job_work_items", item.model_dump(mode="json", exclude_none=True, exclude={"id"})
        )
        if not rows:
            raise ServiceError(f"Job work item {item.name!r} was not created")
        return JobWorkItem.model_validate(rows[0])

    @invalidates(Mutation.JOB_WORK_UPDATE)
    async def update_item(self, item_id: str, updates: dict[str, Any]) -> None:
        await self.client.update("job_work_items", updates, filters=[eq("id", item_id)])

    @invalidates(Mutation.JOB_WORK_DELETE)
    async def delete_item(self, item_id: str) -> None:
        await self.client.update("job_work_items", {"is_active": False}, filters=[eq("id", item_id)])
