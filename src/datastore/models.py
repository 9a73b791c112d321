# src/datastore/models.py - v1
"""Query building blocks passed to BaseDataClient."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

FilterOp = Literal["eq", "in", "gte", "lte"]

Row = dict[str, Any]


@dataclass(frozen=True)
class Filter:
    """One column predicate."""

    column: str
    op: FilterOp
    value: Any


@dataclass(frozen=True)
class OrderBy:
    column: str
    descending: bool = False


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def in_(column: str, values: list[Any] | tuple[Any, ...]) -> Filter:
    return Filter(column, "in", list(values))


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def asc(column: str) -> OrderBy:
    return OrderBy(column, descending=False)


def desc(column: str) -> OrderBy:
    return OrderBy(column, descending=True)
