# src/cache/invalidation.py - v3
"""Mutation -> cache invalidation table.

Every service method that writes to the remote datastore is named by a
``Mutation`` and decorated with ``@invalidates``. The keys and families each
mutation busts live in ``INVALIDATION_RULES`` and nowhere else, so the
coverage can be reviewed and tested in one place.

Invalidation runs only after the remote write returned successfully. A write
that raises leaves every cache entry untouched.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from silvererp.cache import keys as K
from silvererp.cache.base_cache_store import BaseCacheStore
from silvererp.logging.context import operation_context

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Mutation(str, Enum):
    """Every mutating service operation."""

    PAYMENT_IN = "payment_in"
    PAYMENT_OUT = "payment_out"
    LEDGER_DELETE = "ledger_delete"
    ORDER_CREATE = "order_create"
    ORDER_DELETE = "order_delete"
    ORDER_STATUS_UPDATE = "order_status_update"
    STOCK_TRANSACTION_ADD = "stock_transaction_add"
    STOCK_TRANSACTION_DELETE = "stock_transaction_delete"
    RATE_ADD = "rate_add"
    RATE_DELETE = "rate_delete"
    EXPENSE_CREATE = "expense_create"
    EXPENSE_DELETE = "expense_delete"
    KARIGAR_SETTLE = "karigar_settle"
    KARIGAR_CREATE = "karigar_create"
    KARIGAR_UPDATE = "karigar_update"
    KARIGAR_DELETE = "karigar_delete"
    PRODUCT_CREATE = "product_create"
    PRODUCT_CREATE_WITH_STOCK = "product_create_with_stock"
    PRODUCT_UPDATE = "product_update"
    PRODUCT_DELETE = "product_delete"
    JOB_WORK_CREATE = "job_work_create"
    JOB_WORK_UPDATE = "job_work_update"
    JOB_WORK_DELETE = "job_work_delete"
    SETTINGS_UPDATE = "settings_update"
    SETTINGS_RESET = "settings_reset"
    FACTORY_RESET = "factory_reset"


@dataclass(frozen=True)
class InvalidationRule:
    """Exact keys and key families one mutation makes stale."""

    keys: tuple[str, ...] = ()
    prefixes: tuple[str, ...] = ()

    def __or__(self, other: InvalidationRule) -> InvalidationRule:
        return InvalidationRule(
            keys=tuple(dict.fromkeys(self.keys + other.keys)),
            prefixes=tuple(dict.fromkeys(self.prefixes + other.prefixes)),
        )


_PAYMENT = InvalidationRule(keys=(K.PL_REPORT,), prefixes=(K.CUSTOMER_STATEMENT,))

_STOCK = InvalidationRule(
    keys=(K.PL_REPORT, K.FINISHED_GOODS),
    prefixes=(K.STOCK_SUMMARY, K.STOCK_TRANSACTIONS),
)

# A stock entry may carry a purchase payment posted to the vendor ledger.
_STOCK_ADD = _STOCK | InvalidationRule(prefixes=(K.CUSTOMER_STATEMENT,))

# Orders post stock deductions and ledger entries in the same RPC.
_ORDER = _STOCK | InvalidationRule(
    keys=(K.ORDERS_LIST, K.DASHBOARD_STATS),
    prefixes=(K.CUSTOMER_STATEMENT,),
)

_RATE = InvalidationRule(
    keys=(K.LATEST_RATE,),
    prefixes=(K.RATE_HISTORY, K.STOCK_SUMMARY),
)

_EXPENSE = InvalidationRule(keys=(K.EXPENSES_LIST, K.DASHBOARD_STATS, K.PL_REPORT))

_KARIGARS = InvalidationRule(keys=(K.KARIGARS_LIST,))

# Settlement books karigar expenses, which feed the expense list and P&L.
_KARIGAR_SETTLE = _KARIGARS | _EXPENSE

# Finished goods lists the same active products as the catalog.
_PRODUCTS = InvalidationRule(keys=(K.PRODUCTS_LIST, K.FINISHED_GOODS))

_JOB_WORK = InvalidationRule(keys=(K.JOB_WORK_ITEMS,))

# The rule table is static, so one category write busts every category.
_SETTINGS = InvalidationRule(prefixes=(K.SETTINGS,))

# Wipes every business table on the backend.
_EVERYTHING = InvalidationRule(keys=K.EXACT_KEYS, prefixes=K.KEY_FAMILIES)


INVALIDATION_RULES: Mapping[Mutation, InvalidationRule] = MappingProxyType({
    Mutation.PAYMENT_IN: _PAYMENT,
    Mutation.PAYMENT_OUT: _PAYMENT,
    Mutation.LEDGER_DELETE: InvalidationRule(prefixes=(K.CUSTOMER_STATEMENT,)),
    Mutation.ORDER_CREATE: _ORDER,
    Mutation.ORDER_DELETE: _ORDER,
    Mutation.ORDER_STATUS_UPDATE: InvalidationRule(
        keys=(K.ORDERS_LIST, K.DASHBOARD_STATS)
    ),
    Mutation.STOCK_TRANSACTION_ADD: _STOCK_ADD,
    Mutation.STOCK_TRANSACTION_DELETE: _STOCK,
    Mutation.RATE_ADD: _RATE,
    Mutation.RATE_DELETE: _RATE,
    Mutation.EXPENSE_CREATE: _EXPENSE,
    Mutation.EXPENSE_DELETE: _EXPENSE,
    Mutation.KARIGAR_SETTLE: _KARIGAR_SETTLE,
    Mutation.KARIGAR_CREATE: _KARIGARS,
    Mutation.KARIGAR_UPDATE: _KARIGARS,
    Mutation.KARIGAR_DELETE: _KARIGARS,
    Mutation.PRODUCT_CREATE: _PRODUCTS,
    Mutation.PRODUCT_CREATE_WITH_STOCK: _PRODUCTS | InvalidationRule(
        prefixes=(K.STOCK_SUMMARY, K.STOCK_TRANSACTIONS),
    ),
    Mutation.PRODUCT_UPDATE: _PRODUCTS,
    Mutation.PRODUCT_DELETE: _PRODUCTS,
    Mutation.JOB_WORK_CREATE: _JOB_WORK,
    Mutation.JOB_WORK_UPDATE: _JOB_WORK,
    Mutation.JOB_WORK_DELETE: _JOB_WORK,
    Mutation.SETTINGS_UPDATE: _SETTINGS,
    Mutation.SETTINGS_RESET: _SETTINGS,
    Mutation.FACTORY_RESET: _EVERYTHING,
})


def rule_for(mutation: Mutation) -> InvalidationRule:
    """Return the rule for a mutation.

    Raises:
        KeyError: If the mutation has no registered rule.
    """
    return INVALIDATION_RULES[mutation]


def apply_invalidation(store: BaseCacheStore, mutation: Mutation) -> int:
    """Drop every key the mutation makes stale. Returns the number removed."""
    rule = rule_for(mutation)
    removed = 0
    for key in rule.keys:
        if key in store.keys():
            removed += 1
        store.invalidate(key)
    for prefix in rule.prefixes:
        removed += store.invalidate_pattern(prefix)
    logger.info(
        "Invalidated %d cache keys after %s", removed, mutation.value,
        extra={"data": {"mutation": mutation.value, "removed": removed}},
    )
    return removed


def invalidates(
    mutation: Mutation,
) -> Callable[[Callable[..., Awaitable[R]]], Callable[..., Awaitable[R]]]:
    """Decorate an async service method that mutates remote data.

    The instance must expose its cache store as ``self.cache``. The rule for
    ``mutation`` is applied once the wrapped call returns; if it raises, the
    exception propagates and no key is touched.

    Usage:
        @invalidates(Mutation.EXPENSE_CREATE)
        async def create_expense(self, expense): ...
    """
    rule_for(mutation)

    def decorator(func: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> R:
            with operation_context(mutation.value):
                result = await func(self, *args, **kwargs)
                apply_invalidation(self.cache, mutation)
            return result

        wrapper.__mutation__ = mutation  # type: ignore[attr-defined]
        return wrapper

    return decorator
