"""Data models and type aliases for ``sms_ledger``.

``Transaction`` is a validated, immutable record: a parsed message that fails
validation is never materialized. The remaining types are plain result
containers produced by the aggregation, persistence and workflow layers.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Label used wherever a transaction has no category.
UNCATEGORIZED = "Uncategorized"

# The whole system works in a single implicit currency.
CURRENCY_LABEL = "KSH"


# ---------------------------------------------------------------------------
# Core record
# ---------------------------------------------------------------------------


class Transaction(BaseModel):
    """A single money-transfer notification turned into a typed record.

    ``id`` and ``import_id`` are ``None`` until the record is persisted.
    ``datetime`` is kept at minute precision; seconds are truncated.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: int | None = None
    code: str = Field(min_length=1)
    recipient: str = Field(min_length=1)
    amount: float = Field(ge=0)
    datetime: dt.datetime
    category: str | None = None
    import_id: int | None = None

    @field_validator("datetime")
    @classmethod
    def _truncate_to_minute(cls, v: dt.datetime) -> dt.datetime:
        return v.replace(second=0, microsecond=0)

    @field_validator("category")
    @classmethod
    def _blank_category_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def category_label(self) -> str:
        """Category name, or ``"Uncategorized"`` when unset."""
        return self.category or UNCATEGORIZED

    def with_category(self, category: str | None) -> Transaction:
        # Re-validate so blank names collapse to ``None`` like on construction.
        return type(self).model_validate(self.model_dump() | {"category": category})


type Transactions = Iterable[Transaction]
"""A generic iterable of transactions (materialized by each consumer)."""


# ---------------------------------------------------------------------------
# Reference data and batches
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Category:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class ImportSummary:
    """A persisted batch of transactions and its categorization progress."""

    id: int
    name: str
    total_count: int
    completed_count: int
    created_at: dt.datetime
    user_id: str | None = None

    @property
    def progress(self) -> float:
        """Fraction of transactions categorized, in ``[0, 1]``."""
        if self.total_count == 0:
            return 0.0
        return self.completed_count / self.total_count


class HistoryEntry(NamedTuple):
    """A previously categorized transaction, as seen by category inference."""

    recipient: str
    category: str | None
    created_at: dt.datetime


@dataclass(frozen=True, slots=True)
class StoredReport:
    """An archived spending analysis keyed by the import it summarizes."""

    id: int
    import_id: int
    analysis_text: str
    created_at: dt.datetime
    document_name: str | None = None
    document: bytes | None = None


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


class RecipientTotal(NamedTuple):
    recipient: str
    amount: float


@dataclass(frozen=True, slots=True)
class CategoryBucket:
    """One category's total plus its contributing transfers, largest first."""

    category: str
    amount: float
    entries: tuple[RecipientTotal, ...]


@dataclass(frozen=True, slots=True)
class TimelineDay:
    """Spending on one calendar day.

    Attributes
    ----------
    date:
        ``YYYY-MM-DD``.
    total:
        Sum of all amounts on that day.
    categories:
        ``(category, amount)`` pairs for that day, sorted by amount descending.
    """

    date: str
    total: float
    categories: tuple[tuple[str, float], ...]


@dataclass(frozen=True, slots=True)
class SpendingSummary:
    """The four reductions embedded in the analysis prompt."""

    category_totals: Mapping[str, float]
    monthly_totals: Mapping[str, float]
    top_recipients: tuple[RecipientTotal, ...]
    total_spent: float
    transaction_count: int


__all__ = [
    "CURRENCY_LABEL",
    "UNCATEGORIZED",
    "Category",
    "CategoryBucket",
    "HistoryEntry",
    "ImportSummary",
    "RecipientTotal",
    "SpendingSummary",
    "StoredReport",
    "TimelineDay",
    "Transaction",
    "Transactions",
]
