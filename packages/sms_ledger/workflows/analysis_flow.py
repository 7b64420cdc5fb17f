# ruff: noqa: I001
"""Analysis workflow: stored import → filtered transactions → model analysis → report."""

from __future__ import annotations

from typing import Any

from ledger_db.client import session_scope
from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceError
from ..logging_setup import get_logger
from ..persistence import fetch_import, fetch_transactions, save_report
from ..selection import TransactionFilter, select
from ..summarize import SpendingAnalysis, analyze_spending

_logger = get_logger("sms_ledger.workflows.analysis_flow")


def analyze_import(
    import_id: int,
    *,
    database_url: str | None = None,
    transaction_filter: TransactionFilter | None = None,
    client: Any | None = None,
    model: str | None = None,
    save: bool = True,
) -> SpendingAnalysis:
    """Analyze the (optionally filtered) transactions of one import.

    The report is stored only after the model call succeeds, so a failed
    analysis leaves previously stored reports untouched.

    Raises
    ------
    ValueError
        Unknown import, or no transactions left after filtering.
    SummarizationError
        The summarization call failed.
    PersistenceError
        Reading the import or storing the report failed.
    """

    try:
        with session_scope(database_url=database_url) as session:
            if fetch_import(session, import_id=import_id) is None:
                raise ValueError(f"Unknown import: {import_id}")
            transactions = fetch_transactions(session, import_id=import_id)
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to load import {import_id}: {e}") from e

    selected = select(transactions, transaction_filter)
    analysis = analyze_spending(selected, client=client, model=model)

    if save:
        try:
            with session_scope(database_url=database_url) as session:
                report = save_report(session, import_id=import_id, analysis_text=analysis.text)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to store report for import {import_id}: {e}") from e
        _logger.info(
            "analyze_import:saved import_id=%d report_id=%d transactions=%d",
            import_id,
            report.id,
            len(selected),
        )
    return analysis


__all__ = ["analyze_import"]
