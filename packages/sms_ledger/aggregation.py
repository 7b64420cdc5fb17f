"""Pure reductions over transaction collections.

Every function materializes its input once and returns a fresh result; none
of them keeps state, so they can be recomputed on every filter change.
Amounts are accumulated as floats and only rounded by :func:`format_amount`.
A missing category is reported as ``"Uncategorized"``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .models import (
    CURRENCY_LABEL,
    CategoryBucket,
    RecipientTotal,
    SpendingSummary,
    TimelineDay,
    Transaction,
)

TOP_RECIPIENTS_DEFAULT = 10


def category_totals(transactions: Iterable[Transaction]) -> dict[str, float]:
    """Sum amounts per category label, in first-encounter order."""

    totals: dict[str, float] = {}
    for tx in transactions:
        key = tx.category_label
        totals[key] = totals.get(key, 0.0) + tx.amount
    return totals


def sorted_by_amount(totals: Mapping[str, float]) -> list[tuple[str, float]]:
    """Return ``(name, amount)`` pairs, largest first; ties keep mapping order."""

    return sorted(totals.items(), key=lambda kv: kv[1], reverse=True)


def category_breakdown(transactions: Iterable[Transaction]) -> list[CategoryBucket]:
    """Per-category totals with the transfers behind each, largest first.

    Buckets keep first-encounter order of their category.
    """

    amounts: dict[str, float] = {}
    entries: dict[str, list[RecipientTotal]] = {}
    for tx in transactions:
        key = tx.category_label
        amounts[key] = amounts.get(key, 0.0) + tx.amount
        entries.setdefault(key, []).append(RecipientTotal(tx.recipient, tx.amount))

    return [
        CategoryBucket(
            category=key,
            amount=amounts[key],
            entries=tuple(sorted(entries[key], key=lambda e: e.amount, reverse=True)),
        )
        for key in amounts
    ]


def timeline_totals(transactions: Iterable[Transaction]) -> list[TimelineDay]:
    """Group by calendar day; days ascending, each day's categories descending."""

    totals: dict[str, float] = {}
    per_category: dict[str, dict[str, float]] = {}
    for tx in transactions:
        day = tx.datetime.date().isoformat()
        totals[day] = totals.get(day, 0.0) + tx.amount
        cats = per_category.setdefault(day, {})
        cats[tx.category_label] = cats.get(tx.category_label, 0.0) + tx.amount

    return [
        TimelineDay(
            date=day,
            total=totals[day],
            categories=tuple(sorted_by_amount(per_category[day])),
        )
        for day in sorted(totals)
    ]


def monthly_totals(transactions: Iterable[Transaction]) -> dict[str, float]:
    """Sum amounts per ``YYYY-MM`` month, months ascending."""

    totals: dict[str, float] = {}
    for tx in transactions:
        month = f"{tx.datetime.year:04d}-{tx.datetime.month:02d}"
        totals[month] = totals.get(month, 0.0) + tx.amount
    return {month: totals[month] for month in sorted(totals)}


def top_recipients(
    transactions: Iterable[Transaction], *, limit: int = TOP_RECIPIENTS_DEFAULT
) -> list[RecipientTotal]:
    """Recipients ranked by total amount, truncated to ``limit``.

    Ties keep the order in which recipients were first encountered.
    """

    if limit <= 0:
        raise ValueError("limit must be a positive integer")
    totals: dict[str, float] = {}
    for tx in transactions:
        totals[tx.recipient] = totals.get(tx.recipient, 0.0) + tx.amount
    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    return [RecipientTotal(name, amount) for name, amount in ranked[:limit]]


def grand_total(transactions: Iterable[Transaction]) -> tuple[float, int]:
    """Return ``(sum of amounts, number of transactions)``."""

    total = 0.0
    count = 0
    for tx in transactions:
        total += tx.amount
        count += 1
    return total, count


def summarize(
    transactions: Iterable[Transaction], *, top_n: int = TOP_RECIPIENTS_DEFAULT
) -> SpendingSummary:
    """Compute the reductions used by the analysis prompt in one pass over a list."""

    items = list(transactions)
    total, count = grand_total(items)
    return SpendingSummary(
        category_totals=category_totals(items),
        monthly_totals=monthly_totals(items),
        top_recipients=tuple(top_recipients(items, limit=top_n)),
        total_spent=total,
        transaction_count=count,
    )


def format_amount(value: float, *, currency: str = CURRENCY_LABEL) -> str:
    """Presentation form, e.g. ``"1200.00 KSH"``."""

    return f"{value:.2f} {currency}"


__all__ = [
    "TOP_RECIPIENTS_DEFAULT",
    "category_breakdown",
    "category_totals",
    "format_amount",
    "grand_total",
    "monthly_totals",
    "sorted_by_amount",
    "summarize",
    "timeline_totals",
    "top_recipients",
]
