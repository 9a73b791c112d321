# src/services/karigar_service.py - v3
"""Karigars (artisans): roster, work records and settlement."""

from __future__ import annotations

import calendar
import datetime as dt
import logging
from typing import Any, Sequence

from silvererp.cache import keys as K
from silvererp.cache.invalidation import Mutation, apply_invalidation, invalidates
from silvererp.datastore.models import asc, desc, eq, gte, in_, lte
from silvererp.logging.context import operation_context
from silvererp.services.base import BaseService, parse_rows, to_number
from silvererp.services.errors import DeletionBlockedError, NotFoundError, ServiceError
from silvererp.services.models import Karigar, KarigarStats, KarigarWorkRecord

logger = logging.getLogger(__name__)

# The P&L splits karigar cost from general expenses on this head prefix.
SETTLEMENT_HEAD = "Karigar Payment"


def month_bounds(month: str) -> tuple[dt.date, dt.date]:
    """First and last day of a ``YYYY-MM`` month.

    Raises:
        ValueError: If month is not ``YYYY-MM``.
    """
    try:
        year, mon = (int(part) for part in month.split("-"))
    except ValueError as e:
        raise ValueError(f"Invalid month {month!r}, expected YYYY-MM") from e
    last = calendar.monthrange(year, mon)[1]
    return dt.date(year, mon, 1), dt.date(year, mon, last)


def _flatten_karigar_name(row: dict[str, Any]) -> dict[str, Any]:
    nested = row.get("karigars") or {}
    return {**row, "karigar_name": nested.get("name")}


class KarigarService(BaseService):
    async def get_karigars(self) -> list[Karigar]:
        async def fetch() -> list[Karigar]:
            rows = await self.client.select("karigars", order=[asc("name")])
            return parse_rows(Karigar, rows)

        return await self.cache.get_or_fetch(K.KARIGARS_LIST, fetch)

    @invalidates(Mutation.KARIGAR_CREATE)
    async def create_karigar(self, karigar: Karigar) -> Karigar:
        rows = await self.client.insert(
            "karigars", karigar.model_dump(mode="json", exclude_none=True, exclude={"id"})
        )
        if not rows:
            raise ServiceError(f"Karigar {karigar.name!r} was not created")
        return Karigar.model_validate(rows[0])

    @invalidates(Mutation.KARIGAR_UPDATE)
    async def update_karigar(self, karigar_id: str, updates: dict[str, Any]) -> None:
        await self.client.update("karigars", updates, filters=[eq("id", karigar_id)])

    @invalidates(Mutation.KARIGAR_DELETE)
    async def delete_karigar(self, karigar_id: str) -> None:
        """Delete a karigar with no work history.

        Raises:
            DeletionBlockedError: If work records reference the karigar.
        """
        count = await self.client.count(
            "karigar_work_records", filters=[eq("karigar_id", karigar_id)]
        )
        if count > 0:
            raise DeletionBlockedError(
                "Cannot delete Karigar with existing work records. Deactivate instead."
            )
        await self.client.delete("karigars", filters=[eq("id", karigar_id)])

    async def get_work_history(
        self, karigar_id: str | None = None, month: str | None = None
    ) -> list[KarigarWorkRecord]:
        filters = []
        if karigar_id:
            filters.append(eq("karigar_id", karigar_id))
        if month:
            first, last = month_bounds(month)
            filters += [gte("work_date", first.isoformat()), lte("work_date", last.isoformat())]
        rows = await self.client.select(
            "karigar_work_records", "*, karigars(name)",
            filters=filters, order=[desc("work_date")],
        )
        return parse_rows(KarigarWorkRecord, [_flatten_karigar_name(r) for r in rows])

    async def get_balances(self) -> dict[str, float]:
        """Unpaid work amount per karigar id."""
        rows = await self.client.select(
            "karigar_work_records", "karigar_id, amount, payment_status"
        )
        balances: dict[str, float] = {}
        for r in rows:
            if r.get("payment_status") == "PENDING":
                kid = r["karigar_id"]
                balances[kid] = balances.get(kid, 0.0) + to_number(r.get("amount"))
        return balances

    async def get_stats(self, karigar_id: str) -> KarigarStats:
        records = await self.client.select(
            "karigar_work_records", "amount",
            filters=[eq("karigar_id", karigar_id), eq("payment_status", "PENDING")],
        )
        karigar = await self.client.select_one(
            "karigars", "current_balance", filters=[eq("id", karigar_id)]
        )
        if karigar is None:
            raise NotFoundError(f"Karigar {karigar_id} not found")
        return KarigarStats(
            pending_work=sum(to_number(r.get("amount")) for r in records),
            advance=to_number(karigar.get("current_balance")),
        )

    async def settle_work_records(
        self, record_ids: Sequence[str], payment_date: dt.date, payment_mode: str
    ) -> None:
        """Pay out work records: one expense per karigar, records marked PAID.

        An empty selection does nothing.
        """
        if not record_ids:
            return
        await self._settle(list(record_ids), payment_date, payment_mode)

    async def _settle(
        self, record_ids: list[str], payment_date: dt.date, payment_mode: str
    ) -> None:
        records = await self.client.select(
            "karigar_work_records", "karigar_id, amount, karigars(name)",
            filters=[in_("id", record_ids)],
        )

        settlements: dict[str, dict[str, Any]] = {}
        for r in records:
            entry = settlements.setdefault(
                r["karigar_id"],
                {"name": (r.get("karigars") or {}).get("name") or "Unknown", "amount": 0.0},
            )
            entry["amount"] += to_number(r.get("amount"))

        expenses = [
            {
                "date": payment_date.isoformat(),
                "head": f"{SETTLEMENT_HEAD} - {s['name']}",
                "amount": s["amount"],
                "notes": f"Settlement via {payment_mode} for {len(record_ids)} work records",
                "gst_enabled": False,
            }
            for s in settlements.values()
        ]
        committed = False
        with operation_context(Mutation.KARIGAR_SETTLE.value):
            try:
                if expenses:
                    await self.client.insert("expenses", expenses)
                    committed = True
                await self.client.update(
                    "karigar_work_records",
                    {
                        "payment_status": "PAID",
                        "payment_date": payment_date.isoformat(),
                        "payment_mode": payment_mode,
                    },
                    filters=[in_("id", record_ids)],
                )
            except Exception as e:
                # Expenses are booked but the records are still PENDING.
                if committed:
                    logger.error("Settlement failed after booking expenses: %s", e)
                    apply_invalidation(self.cache, Mutation.KARIGAR_SETTLE)
                raise
            apply_invalidation(self.cache, Mutation.KARIGAR_SETTLE)
        logger.info("Settled %d work records for %d karigars", len(record_ids), len(settlements))

    @invalidates(Mutation.KARIGAR_SETTLE)
    async def record_payment(
        self,
        karigar_id: str,
        amount: float,
        mode: str,
        payment_date: dt.date,
        notes: str = "",
    ) -> Any:
        """Pay a karigar through the atomic settlement RPC."""
        return await self.client.rpc(
            "settle_karigar_payment_atomic",
            {
                "p_karigar_id": karigar_id,
                "p_amount": amount,
                "p_mode": mode,
                "p_date": payment_date.isoformat(),
                "p_notes": notes,
            },
        )
