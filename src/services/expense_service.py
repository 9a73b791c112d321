# src/services/expense_service.py - v1
"""Business expenses (rent, power, karigar settlements)."""

from __future__ import annotations

from silvererp.cache import keys as K
from silvererp.cache.invalidation import Mutation, invalidates
from silvererp.datastore.models import desc, eq
from silvererp.services.base import BaseService, parse_rows
from silvererp.services.errors import ServiceError
from silvererp.services.models import Expense


class ExpenseService(BaseService):
    async def get_expenses(self) -> list[Expense]:
        async def fetch() -> list[Expense]:
            rows = await self.client.select("expenses", order=[desc("date")])
            return parse_rows(Expense, rows)

        return await self.cache.get_or_fetch(K.EXPENSES_LIST, fetch)

    @invalidates(Mutation.EXPENSE_CREATE)
    async def create_expense(self, expense: Expense) -> Expense:
        row = expense.model_dump(mode="json", exclude_none=True, exclude={"id", "created_at"})
        rows = await self.client.insert("expenses", row)
        if not rows:
            raise ServiceError("Expense was not created")
        return Expense.model_validate(rows[0])

    @invalidates(Mutation.EXPENSE_DELETE)
    async def delete_expense(self, expense_id: str) -> None:
        await self.client.delete("expenses", filters=[eq("id", expense_id)])
