# src/cache/keys.py - v2
"""Cache key namespace shared by every service.

Exact keys name one cached result. Families name a parameterized result and
always end with ``_`` so that a family prefix never matches an exact key or
another family. Keys are built with ``build_key`` only; missing optional
parameters render as ``all`` so ``get_stock_transactions()`` and
``get_stock_transactions("RAW_SILVER")`` land on distinct keys of one family.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

SEPARATOR = "_"
ALL_PLACEHOLDER = "all"

# === Exact keys ===
PL_REPORT = "pl_report"
DASHBOARD_STATS = "dashboard_stats"
ORDERS_LIST = "orders_list"
EXPENSES_LIST = "expenses_list"
KARIGARS_LIST = "karigars_list"
PRODUCTS_LIST = "products_list"
JOB_WORK_ITEMS = "job_work_items"
FINISHED_GOODS = "finished_goods"
LATEST_RATE = "latest_rate"

# === Parameterized families ===
CUSTOMER_STATEMENT = "customer_statement_"
STOCK_SUMMARY = "stock_summary_"
STOCK_TRANSACTIONS = "stock_transactions_"
RATE_HISTORY = "rate_history_"
SETTINGS = "settings_"

EXACT_KEYS: tuple[str, ...] = (
    PL_REPORT,
    DASHBOARD_STATS,
    ORDERS_LIST,
    EXPENSES_LIST,
    KARIGARS_LIST,
    PRODUCTS_LIST,
    JOB_WORK_ITEMS,
    FINISHED_GOODS,
    LATEST_RATE,
)

KEY_FAMILIES: tuple[str, ...] = (
    CUSTOMER_STATEMENT,
    STOCK_SUMMARY,
    STOCK_TRANSACTIONS,
    RATE_HISTORY,
    SETTINGS,
)


def format_param(value: Any) -> str:
    """Render one key parameter deterministically."""
    if value is None or value == "":
        return ALL_PLACEHOLDER
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return format_param(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, Decimal):
        return format_param(float(value))
    return str(value)


def build_key(family: str, *params: Any) -> str:
    """Build a parameterized key: family prefix plus ``_``-joined params.

    Raises:
        ValueError: If family is not a registered key family.
    """
    if family not in KEY_FAMILIES:
        raise ValueError(f"Unknown cache key family: {family!r}")
    if not params:
        return f"{family}{ALL_PLACEHOLDER}"
    return family + SEPARATOR.join(format_param(p) for p in params)


def customer_statement_key(name: str, start: Any = None, end: Any = None) -> str:
    return build_key(CUSTOMER_STATEMENT, name, start, end)


def stock_summary_key(rate: float | int | Decimal) -> str:
    return build_key(STOCK_SUMMARY, rate)


def stock_transactions_key(item_type: str | None = None) -> str:
    return build_key(STOCK_TRANSACTIONS, item_type)


def rate_history_key(source: str | None = None) -> str:
    return build_key(RATE_HISTORY, source)


def settings_key(category: str) -> str:
    return build_key(SETTINGS, category)


def find_collisions(
    exact_keys: tuple[str, ...] = EXACT_KEYS,
    families: tuple[str, ...] = KEY_FAMILIES,
) -> list[tuple[str, str]]:
    """List (family, other) pairs where a family would over-match.

    Checked under substring matching, the looser of the two modes, so an
    empty result is safe for either.
    """
    collisions: list[tuple[str, str]] = []
    for family in families:
        for key in exact_keys:
            if family in key:
                collisions.append((family, key))
        for other in families:
            if other != family and family in other:
                collisions.append((family, other))
    return collisions
