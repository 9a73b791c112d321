# src/services/container.py - v2
"""Wire every service to one datastore client and one cache store.

Usage:
    services = build_services()
    report = await services.accounting.get_pl_report()
"""

from __future__ import annotations

from dataclasses import dataclass

from silvererp.cache.base_cache_store import BaseCacheStore
from silvererp.cache.cache_factory import create_cache_store
from silvererp.config.settings import Settings, load_settings
from silvererp.datastore.base_client import BaseDataClient
from silvererp.datastore.client_factory import create_data_client
from silvererp.services.accounting_service import AccountingService
from silvererp.services.catalog_service import JobWorkService, ProductService
from silvererp.services.dashboard_service import DashboardService
from silvererp.services.expense_service import ExpenseService
from silvererp.services.gst_service import GSTService
from silvererp.services.inventory_service import InventoryService
from silvererp.services.karigar_service import KarigarService
from silvererp.services.order_service import OrderService
from silvererp.services.rate_service import RateService
from silvererp.services.settings_service import SettingsService


@dataclass
class Services:
    """The service layer for one session. All members share ``cache``."""

    client: BaseDataClient
    cache: BaseCacheStore
    accounting: AccountingService
    inventory: InventoryService
    rates: RateService
    orders: OrderService
    expenses: ExpenseService
    karigars: KarigarService
    products: ProductService
    job_work: JobWorkService
    dashboard: DashboardService
    gst: GSTService
    business_settings: SettingsService

    async def close(self) -> None:
        await self.cache.wait_idle()
        await self.client.close()


def build_services(
    settings: Settings | None = None,
    client: BaseDataClient | None = None,
    cache: BaseCacheStore | None = None,
) -> Services:
    """Build the service layer.

    Args:
        settings: Application settings. Loaded from .env if None.
        client: Datastore client override (tests, alternate backends).
        cache: Cache store override, e.g. one isolated store per session.
    """
    settings = settings or load_settings()
    if client is None:
        client = create_data_client(settings)
    if cache is None:
        cache = create_cache_store(settings)

    return Services(
        client=client,
        cache=cache,
        accounting=AccountingService(client, cache),
        inventory=InventoryService(client, cache),
        rates=RateService(client, cache, rate_ttl=settings.rate_cache_ttl_s),
        orders=OrderService(client, cache, default_gst_rate=settings.default_gst_rate),
        expenses=ExpenseService(client, cache),
        karigars=KarigarService(client, cache),
        products=ProductService(client, cache),
        job_work=JobWorkService(client, cache),
        dashboard=DashboardService(client, cache),
        gst=GSTService(client, cache),
        business_settings=SettingsService(client, cache, user_id=settings.settings_user_id),
    )
