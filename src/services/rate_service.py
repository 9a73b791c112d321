# src/services/rate_service.py - v1
"""Daily silver rates (per 10 g) from MCX or a local dealer."""

from __future__ import annotations

from silvererp.cache import keys as K
from silvererp.cache.base_cache_store import BaseCacheStore
from silvererp.cache.invalidation import Mutation, invalidates
from silvererp.datastore.base_client import BaseDataClient
from silvererp.datastore.models import asc, desc, eq
from silvererp.services.base import BaseService, parse_rows
from silvererp.services.models import RateSource, SilverRate

DEFAULT_RATE_TTL_S = 300.0


class RateService(BaseService):
    def __init__(
        self,
        client: BaseDataClient,
        cache: BaseCacheStore,
        rate_ttl: float = DEFAULT_RATE_TTL_S,
    ) -> None:
        super().__init__(client, cache)
        self.rate_ttl = rate_ttl

    async def get_latest_rate(self) -> SilverRate | None:
        async def fetch() -> SilverRate | None:
            row = await self.client.select_one(
                "silver_rates", order=[desc("rate_date"), desc("created_at")]
            )
            return None if row is None else SilverRate.model_validate(row)

        return await self.cache.get_or_fetch(K.LATEST_RATE, fetch, self.rate_ttl)

    async def get_rate_history(self, source: RateSource | None = None) -> list[SilverRate]:
        async def fetch() -> list[SilverRate]:
            filters = [eq("source", source)] if source else []
            rows = await self.client.select(
                "silver_rates", filters=filters, order=[asc("rate_date")]
            )
            return parse_rows(SilverRate, rows)

        return await self.cache.get_or_fetch(K.rate_history_key(source), fetch, self.rate_ttl)

    @invalidates(Mutation.RATE_ADD)
    async def add_silver_rate(self, rate: SilverRate) -> SilverRate:
        """Insert or replace the rate for (rate_date, source)."""
        row = rate.model_dump(mode="json", exclude_none=True, exclude={"id", "rate_1g"})
        row["rate_1g"] = rate.rate_10g / 10
        stored = await self.client.upsert("silver_rates", row, on_conflict="rate_date,source")
        return SilverRate.model_validate(stored)

    @invalidates(Mutation.RATE_DELETE)
    async def delete_silver_rate(self, rate_id: str) -> None:
        await self.client.delete("silver_rates", filters=[eq("id", rate_id)])
