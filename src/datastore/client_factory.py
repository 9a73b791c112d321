# src/datastore/client_factory.py - v1
"""Factory: instantiate the datastore client from configuration."""

from __future__ import annotations

import logging

from silvererp.config.settings import Settings
from silvererp.datastore.base_client import BaseDataClient

logger = logging.getLogger(__name__)


def create_data_client(settings: Settings) -> BaseDataClient:
    """Create the hosted-database client, or a failing stand-in.

    Missing credentials are not fatal: the application still starts and
    each remote call raises DataClientError.
    """
    if not settings.datastore_configured:
        from silvererp.datastore.unconfigured_client import UnconfiguredDataClient

        logger.warning(
            "Missing Supabase environment variables. Remote calls are disabled. "
            "Set SUPABASE_URL and SUPABASE_ANON_KEY."
        )
        return UnconfiguredDataClient()

    from silvererp.datastore.supabase_client import SupabaseDataClient

    return SupabaseDataClient(url=settings.supabase_url, key=settings.supabase_anon_key)
