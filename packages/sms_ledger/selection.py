"""Filtering and ordering of transaction lists for display.

:func:`select` applies a :class:`TransactionFilter` (search text, category,
date range) and :func:`order` sorts by one field. Both return new lists and
leave the input untouched.

Ordering uses Python's stable sort in both directions, so transactions with
equal keys keep their input order whether ascending or descending.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, model_validator

from .models import UNCATEGORIZED, Transaction

type SortField = Literal["code", "recipient", "amount", "datetime", "category"]
type SortDirection = Literal["asc", "desc"]

SORT_FIELDS: tuple[str, ...] = get_args(SortField.__value__)
ALL_CATEGORIES = "all"


class TransactionFilter(BaseModel):
    """Conjunction of search, category and date-range predicates.

    Empty ``search``, an empty/``"all"`` ``category`` and unset dates each
    match everything. ``date_from`` is applied from the start of that day and
    ``date_to`` through the end of that day.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    search: str = ""
    category: str | None = None
    date_from: dt.date | None = None
    date_to: dt.date | None = None

    @model_validator(mode="after")
    def _check_range(self) -> TransactionFilter:
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self

    def matches(self, tx: Transaction) -> bool:
        if self.search:
            term = self.search.casefold()
            if term not in tx.code.casefold() and term not in tx.recipient.casefold():
                return False

        wanted = (self.category or "").strip()
        if wanted and wanted.casefold() != ALL_CATEGORIES:
            if wanted == UNCATEGORIZED:
                if tx.category is not None:
                    return False
            elif tx.category != wanted:
                return False

        if self.date_from and tx.datetime < dt.datetime.combine(self.date_from, dt.time.min):
            return False
        if self.date_to and tx.datetime > dt.datetime.combine(self.date_to, dt.time.max):
            return False
        return True


def select(
    transactions: Iterable[Transaction], transaction_filter: TransactionFilter | None = None
) -> list[Transaction]:
    """Keep the transactions matching ``transaction_filter`` in input order."""

    if transaction_filter is None:
        return list(transactions)
    return [tx for tx in transactions if transaction_filter.matches(tx)]


def _sort_key(field: str) -> Callable[[Transaction], Any]:
    if field == "amount":
        return lambda tx: tx.amount
    if field == "datetime":
        return lambda tx: tx.datetime

    def _text(tx: Transaction) -> str:
        value: Any = getattr(tx, field)
        return "" if value is None else str(value).casefold()

    return _text


def order(
    transactions: Iterable[Transaction],
    field: SortField = "datetime",
    direction: SortDirection = "desc",
) -> list[Transaction]:
    """Sort by ``field``; amount and datetime compare by value, the rest as
    case-insensitive text."""

    if field not in SORT_FIELDS:
        raise ValueError(f"unknown sort field: {field!r} (expected one of {SORT_FIELDS})")
    if direction not in ("asc", "desc"):
        raise ValueError(f"unknown sort direction: {direction!r}")
    return sorted(transactions, key=_sort_key(field), reverse=direction == "desc")


@dataclass(frozen=True, slots=True)
class SortState:
    """Current ordering of a transaction view; newest first by default."""

    field: SortField = "datetime"
    direction: SortDirection = "desc"

    def toggle(self, field: SortField) -> SortState:
        """Re-selecting the current ascending field flips it to descending;
        anything else selects ``field`` ascending."""

        if field == self.field and self.direction == "asc":
            return SortState(field, "desc")
        return SortState(field, "asc")

    def apply(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        return order(transactions, self.field, self.direction)


__all__ = [
    "ALL_CATEGORIES",
    "SORT_FIELDS",
    "SortDirection",
    "SortField",
    "SortState",
    "TransactionFilter",
    "order",
    "select",
]
