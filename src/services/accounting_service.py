# src/services/accounting_service.py - v2
"""Ledgers, payments, customer statements and the P&L report.

Payments go through the ``record_ledger_payment_atomic`` RPC, which posts
both sides of the double entry in one transaction on the backend.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any

from silvererp.cache import keys as K
from silvererp.cache.invalidation import Mutation, invalidates
from silvererp.datastore.models import asc, desc, eq, gte, in_, lte
from silvererp.services.base import BaseService, parse_rows, to_number
from silvererp.services.errors import DeletionBlockedError, NotFoundError, ServiceError
from silvererp.services.models import (
    Ledger,
    LedgerTransaction,
    LedgerType,
    PaymentDirection,
    PLData,
)

logger = logging.getLogger(__name__)

JOB_WORK_INCOME = "Job Work Income"
PRODUCT_SALES_INCOME = "Product Sales Income"
KARIGAR_PAYMENT_HEAD = "Karigar Payment"


def compute_pl(income_rows: list[dict[str, Any]], expense_rows: list[dict[str, Any]]) -> PLData:
    """Fold income postings and expenses into a P&L.

    General expenses are counted net of GST when GST was recorded on them;
    that GST is input credit, not cost.
    """
    job_work_income = 0.0
    product_sales_income = 0.0
    for t in income_rows:
        ledger_name = (t.get("ledgers") or {}).get("name")
        if ledger_name == JOB_WORK_INCOME:
            job_work_income += to_number(t.get("credit"))
        elif ledger_name == PRODUCT_SALES_INCOME:
            product_sales_income += to_number(t.get("credit"))

    karigar_expenses = 0.0
    general_expenses = 0.0
    for e in expense_rows:
        amount = to_number(e.get("amount"))
        if str(e.get("head", "")).startswith(KARIGAR_PAYMENT_HEAD):
            karigar_expenses += amount
        elif e.get("gst_enabled") and e.get("gst_amount"):
            general_expenses += amount - to_number(e.get("gst_amount"))
        else:
            general_expenses += amount

    total_expenses = general_expenses + karigar_expenses
    return PLData(
        job_work_income=job_work_income,
        product_sales_income=product_sales_income,
        general_expenses=general_expenses,
        karigar_expenses=karigar_expenses,
        total_expenses=total_expenses,
        net_profit=(job_work_income + product_sales_income) - total_expenses,
    )


class AccountingService(BaseService):
    """Ledger reads and double-entry payment postings."""

    async def get_pl_report(self) -> PLData:
        return await self.cache.get_or_fetch(K.PL_REPORT, self._fetch_pl_report)

    async def _fetch_pl_report(self) -> PLData:
        income = await self.client.select(
            "transactions",
            "credit, ledgers!inner(name)",
            filters=[in_("ledgers.name", [JOB_WORK_INCOME, PRODUCT_SALES_INCOME])],
        )
        expenses = await self.client.select(
            "expenses", "head, amount, gst_amount, gst_enabled"
        )
        return compute_pl(income, expenses)

    async def get_customer_statement(
        self,
        name: str,
        start: dt.date | str | None = None,
        end: dt.date | str | None = None,
    ) -> list[LedgerTransaction]:
        """Transactions on one party's ledger, newest first.

        Raises:
            NotFoundError: If no ledger has that name.
        """
        key = K.customer_statement_key(name, start, end)

        async def fetch() -> list[LedgerTransaction]:
            ledger = await self.client.select_one(
                "ledgers", "id", filters=[eq("name", name)]
            )
            if ledger is None:
                raise NotFoundError(f"Customer not found or invalid name: {name!r}")

            filters = [eq("ledger_id", ledger["id"])]
            if start:
                filters.append(gte("date", str(start)))
            if end:
                filters.append(lte("date", str(end)))
            rows = await self.client.select(
                "transactions", filters=filters, order=[desc("date")]
            )
            return parse_rows(LedgerTransaction, rows)

        return await self.cache.get_or_fetch(key, fetch)

    async def get_asset_ledgers(self) -> list[Ledger]:
        """Customer ledgers, for pickers. Not cached."""
        return await self._ledgers_of_type("ASSET")

    async def get_liability_ledgers(self) -> list[Ledger]:
        """Vendor ledgers, for pickers. Not cached."""
        return await self._ledgers_of_type("LIABILITY")

    async def _ledgers_of_type(self, ledger_type: LedgerType) -> list[Ledger]:
        rows = await self.client.select(
            "ledgers", "id, name, type",
            filters=[eq("type", ledger_type)],
            order=[asc("name")],
        )
        return parse_rows(Ledger, rows)

    async def create_ledger(self, name: str, ledger_type: LedgerType) -> Ledger:
        rows = await self.client.insert("ledgers", {"name": name, "type": ledger_type})
        if not rows:
            raise ServiceError(f"Ledger {name!r} was not created")
        return Ledger.model_validate(rows[0])

    @invalidates(Mutation.PAYMENT_IN)
    async def record_payment(
        self,
        ledger_id: str,
        amount: float,
        mode: str,
        note: str = "",
        payment_date: dt.date | None = None,
    ) -> Any:
        """Money received from a customer (customer credit, cash debit)."""
        return await self._post_payment(ledger_id, amount, mode, note, payment_date, "IN")

    @invalidates(Mutation.PAYMENT_OUT)
    async def record_payment_out(
        self,
        ledger_id: str,
        amount: float,
        mode: str,
        note: str = "",
        payment_date: dt.date | None = None,
    ) -> Any:
        """Money paid to a vendor (vendor debit, cash credit)."""
        return await self._post_payment(ledger_id, amount, mode, note, payment_date, "OUT")

    async def _post_payment(
        self,
        ledger_id: str,
        amount: float,
        mode: str,
        note: str,
        payment_date: dt.date | None,
        direction: PaymentDirection,
    ) -> Any:
        if amount <= 0:
            raise ServiceError("Payment amount must be positive")
        on = payment_date or dt.date.today()
        logger.info("Recording %s payment of %.2f on ledger %s", direction, amount, ledger_id)
        return await self.client.rpc(
            "record_ledger_payment_atomic",
            {
                "p_ledger_id": ledger_id,
                "p_amount": amount,
                "p_mode": mode,
                "p_date": on.isoformat(),
                "p_note": note,
                "p_type": direction,
            },
        )

    @invalidates(Mutation.LEDGER_DELETE)
    async def delete_ledger(self, ledger_id: str) -> None:
        """Delete a ledger that has no postings.

        Raises:
            DeletionBlockedError: If the ledger still has transactions.
        """
        count = await self.client.count("transactions", filters=[eq("ledger_id", ledger_id)])
        if count > 0:
            raise DeletionBlockedError(
                "Cannot delete Ledger with existing transactions. Please clear dues first."
            )
        await self.client.delete("ledgers", filters=[eq("id", ledger_id)])
