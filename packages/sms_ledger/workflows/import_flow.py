# ruff: noqa: I001
"""Import workflow: pasted messages → parsed batch → inferred categories → stored import."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ledger_db.client import session_scope
from sqlalchemy.exc import SQLAlchemyError

from ..errors import HistoryLookupError, NoTransactionsFound, PersistenceError
from ..formats import DEFAULT_PROVIDER
from ..inference import apply_inferred_categories
from ..logging_setup import get_logger
from ..models import HistoryEntry, ImportSummary, Transaction
from ..parsing import iter_candidate_lines, parse_batch
from ..persistence import fetch_category_history, record_import

_logger = get_logger("sms_ledger.workflows.import_flow")


@dataclass(frozen=True, slots=True)
class ImportResult:
    import_summary: ImportSummary
    transactions: list[Transaction]
    inferred_count: int


def _history_lookup(database_url: str | None, user_id: str | None):
    def _lookup(recipients: Sequence[str]) -> list[HistoryEntry]:
        try:
            with session_scope(database_url=database_url) as session:
                return fetch_category_history(session, recipients=recipients, user_id=user_id)
        except SQLAlchemyError as e:
            raise HistoryLookupError(f"Failed to read category history: {e}") from e

    return _lookup


def import_messages(
    text: str,
    *,
    name: str,
    database_url: str | None = None,
    user_id: str | None = None,
    provider: str = DEFAULT_PROVIDER,
    infer: bool = True,
) -> ImportResult:
    """Parse ``text`` and persist the resulting transactions as one import.

    Parameters
    ----------
    text:
        Pasted notifications, one per line.
    name:
        Display name of the import.
    database_url:
        Optional DB URL override. Falls back to ``DATABASE_URL`` when ``None``.
    user_id:
        Owner recorded on the import and its transactions; also scopes the
        history used for inference.
    provider:
        Registered message format.
    infer:
        When true, fill missing categories from previously categorized
        transactions of the same recipient. A failing history lookup leaves
        the batch uncategorized instead of aborting the import.

    Raises
    ------
    ValueError
        ``text`` is blank.
    NoTransactionsFound
        No line of ``text`` matched the message format.
    PersistenceError
        Storing the import failed; nothing is written.
    """

    lines = iter_candidate_lines(text)
    if not lines:
        raise ValueError("Please paste some transaction messages")

    parsed = parse_batch(text, provider=provider)
    if not parsed:
        raise NoTransactionsFound(len(lines))

    if infer:
        prepared = apply_inferred_categories(parsed, _history_lookup(database_url, user_id))
    else:
        prepared = parsed
    inferred = sum(
        1 for before, after in zip(parsed, prepared, strict=True) if before.category != after.category
    )

    try:
        with session_scope(database_url=database_url) as session:
            summary, stored = record_import(
                session, name=name, transactions=prepared, user_id=user_id
            )
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to store import {name!r}: {e}") from e

    _logger.info(
        "import_messages:done import_id=%d transactions=%d inferred=%d",
        summary.id,
        len(stored),
        inferred,
    )
    return ImportResult(import_summary=summary, transactions=stored, inferred_count=inferred)


__all__ = ["ImportResult", "import_messages"]
