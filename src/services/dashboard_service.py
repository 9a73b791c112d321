# src/services/dashboard_service.py - v1
"""Headline figures for the dashboard."""

from __future__ import annotations

from collections import Counter

from silvererp.cache import keys as K
from silvererp.services.base import BaseService, to_number
from silvererp.services.models import DashboardStats

_OPEN_STATUSES = ("Pending", "In Progress")


class DashboardService(BaseService):
    async def get_stats(self) -> DashboardStats:
        return await self.cache.get_or_fetch(K.DASHBOARD_STATS, self._fetch_stats)

    async def _fetch_stats(self) -> DashboardStats:
        orders = await self.client.select("orders", "status, total_amount")
        expenses = await self.client.select("expenses", "amount")

        by_status = Counter(o.get("status") or "Pending" for o in orders)
        revenue = sum(
            to_number(o.get("total_amount")) for o in orders if o.get("status") != "Cancelled"
        )
        return DashboardStats(
            total_orders=len(orders),
            orders_by_status=dict(by_status),
            pending_orders=sum(by_status[s] for s in _OPEN_STATUSES),
            total_revenue=revenue,
            total_expenses=sum(to_number(e.get("amount")) for e in expenses),
        )
