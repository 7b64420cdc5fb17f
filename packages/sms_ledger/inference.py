"""Category inference from previously categorized transactions.

The default strategy is last-write-wins per recipient: the most recent
categorized transaction for the exact same counterparty decides. It has no
confidence signal; callers that need one can plug in another
:class:`CategoryInferrer`.

Inference runs once per incoming transaction at import time and is not
re-applied when history changes later.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Protocol

from .logging_setup import get_logger
from .models import HistoryEntry, Transaction

_logger = get_logger("sms_ledger.inference")

type HistoryLookup = Callable[[Sequence[str]], Sequence[HistoryEntry]]
"""Collaborator returning history entries for a set of recipients."""


class CategoryInferrer(Protocol):
    def infer(self, recipient: str, history: Sequence[HistoryEntry]) -> str | None: ...


def infer_category(recipient: str, history: Iterable[HistoryEntry]) -> str | None:
    """Return the category of the newest categorized entry for ``recipient``.

    Entries for other recipients (exact match) and entries without a category
    are ignored. On equal ``created_at`` the later entry in ``history`` wins.
    """

    best: HistoryEntry | None = None
    for entry in history:
        if entry.recipient != recipient:
            continue
        if entry.category is None or not entry.category.strip():
            continue
        if best is None or entry.created_at >= best.created_at:
            best = entry
    return best.category.strip() if best is not None and best.category else None


class LastWriteWinsInferrer:
    """:class:`CategoryInferrer` backed by :func:`infer_category`."""

    def infer(self, recipient: str, history: Sequence[HistoryEntry]) -> str | None:
        return infer_category(recipient, history)


def apply_inferred_categories(
    transactions: Iterable[Transaction],
    lookup: HistoryLookup,
    *,
    inferrer: CategoryInferrer | None = None,
) -> list[Transaction]:
    """Fill in categories for uncategorized transactions from stored history.

    ``lookup`` is called once with the distinct recipients that need a
    category. When it raises, the failure is logged and the transactions are
    returned unchanged so the import can proceed uncategorized.
    """

    items = list(transactions)
    pending = list(dict.fromkeys(tx.recipient for tx in items if tx.category is None))
    if not pending:
        return items

    try:
        history = list(lookup(pending))
    except Exception as e:  # noqa: BLE001 - history is optional for an import
        _logger.warning(
            "infer:history_unavailable recipients=%d error=%s",
            len(pending),
            e.__class__.__name__,
            exc_info=True,
        )
        return items

    strategy = inferrer or LastWriteWinsInferrer()
    by_recipient: dict[str, list[HistoryEntry]] = {}
    for entry in history:
        by_recipient.setdefault(entry.recipient, []).append(entry)

    out: list[Transaction] = []
    inferred = 0
    for tx in items:
        if tx.category is None:
            guess = strategy.infer(tx.recipient, by_recipient.get(tx.recipient, []))
            if guess:
                tx = tx.with_category(guess)
                inferred += 1
        out.append(tx)

    _logger.info(
        "infer:done transactions=%d recipients=%d inferred=%d",
        len(items),
        len(pending),
        inferred,
    )
    return out


__all__ = [
    "CategoryInferrer",
    "HistoryLookup",
    "LastWriteWinsInferrer",
    "apply_inferred_categories",
    "infer_category",
]
