# ruff: noqa: I001
"""Persistence integration for sms_ledger.

Functions here read and write imports, transactions, categories and analysis
reports in the shared database owned by ``libs/db``. They rely on the ORM
models in ``ledger_db.models.ledger`` and take a caller-owned SQLAlchemy
``Session`` (see ``ledger_db.client.session_scope``); none of them commits.

Scope:
- Create an import batch and its transactions.
- Read imports, transactions, the category catalog and categorization history.
- Update transaction categories and keep ``completed_count`` in sync.
- Store and load analysis reports.

The owning user is always passed explicitly as ``user_id``; nothing here reads
an ambient identity.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ledger_db.models.ledger import (
    AnalysisReport,
    LedgerCategory,
    LedgerImport,
    LedgerTransaction,
)
from .logging_setup import get_logger
from .models import Category, HistoryEntry, ImportSummary, StoredReport, Transaction

_logger = get_logger("sms_ledger.persistence")


# ---------------------------
# Row -> domain mapping
# ---------------------------


def _to_import_summary(row: LedgerImport) -> ImportSummary:
    return ImportSummary(
        id=row.id,
        name=row.name,
        total_count=row.total_count,
        completed_count=row.completed_count,
        created_at=row.created_at,
        user_id=row.user_id,
    )


def _to_transaction(row: LedgerTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        code=row.code,
        recipient=row.recipient,
        amount=float(row.amount),
        datetime=row.datetime,
        category=row.category,
        import_id=row.import_id,
    )


def _to_report(row: AnalysisReport) -> StoredReport:
    return StoredReport(
        id=row.id,
        import_id=row.import_id,
        analysis_text=row.analysis_text,
        created_at=row.created_at,
        document_name=row.document_name,
        document=row.document,
    )


# ---------------------------
# Imports and transactions
# ---------------------------


def create_import(
    session: Session, *, name: str, total_count: int, user_id: str | None = None
) -> ImportSummary:
    """Insert an ``sl_imports`` row with ``completed_count = 0``."""

    name_n = " ".join(name.split())
    if not name_n:
        raise ValueError("Import name cannot be empty")
    if total_count < 0:
        raise ValueError("total_count must be >= 0")

    row = LedgerImport(name=name_n, user_id=user_id, total_count=total_count, completed_count=0)
    session.add(row)
    session.flush()
    _logger.info("persistence:create_import import_id=%d total=%d", row.id, total_count)
    return _to_import_summary(row)


def insert_transactions(
    session: Session,
    *,
    import_id: int,
    transactions: Iterable[Transaction],
    user_id: str | None = None,
) -> list[Transaction]:
    """Insert ``transactions`` under ``import_id`` and return them with ids assigned.

    Source order is preserved. The import's ``completed_count`` is refreshed
    afterwards since inserted rows may already carry a category.
    """

    rows = [
        LedgerTransaction(
            import_id=import_id,
            user_id=user_id,
            code=tx.code,
            recipient=tx.recipient,
            amount=tx.amount,
            datetime=tx.datetime,
            category=tx.category,
        )
        for tx in transactions
    ]
    session.add_all(rows)
    session.flush()
    refresh_completed_count(session, import_id=import_id)
    _logger.info("persistence:insert_transactions import_id=%d count=%d", import_id, len(rows))
    return [_to_transaction(r) for r in rows]


def record_import(
    session: Session,
    *,
    name: str,
    transactions: Sequence[Transaction],
    user_id: str | None = None,
) -> tuple[ImportSummary, list[Transaction]]:
    """Create an import for ``transactions`` and insert them in one go."""

    created = create_import(session, name=name, total_count=len(transactions), user_id=user_id)
    stored = insert_transactions(
        session, import_id=created.id, transactions=transactions, user_id=user_id
    )
    summary = fetch_import(session, import_id=created.id)
    assert summary is not None
    return summary, stored


def fetch_import(session: Session, *, import_id: int) -> ImportSummary | None:
    row = session.get(LedgerImport, import_id)
    if row is None:
        return None
    # Counts may have been updated in bulk within this session.
    session.refresh(row)
    return _to_import_summary(row)


def fetch_imports(session: Session, *, user_id: str | None = None) -> list[ImportSummary]:
    """Return imports, newest first; restricted to ``user_id`` when given."""

    stmt = select(LedgerImport).order_by(LedgerImport.created_at.desc(), LedgerImport.id.desc())
    if user_id is not None:
        stmt = stmt.where(LedgerImport.user_id == user_id)
    return [_to_import_summary(r) for r in session.execute(stmt).scalars().all()]


def fetch_transactions(session: Session, *, import_id: int) -> list[Transaction]:
    """Return an import's transactions in insertion order."""

    rows = (
        session.execute(
            select(LedgerTransaction)
            .where(LedgerTransaction.import_id == import_id)
            .order_by(LedgerTransaction.id)
        )
        .scalars()
        .all()
    )
    return [_to_transaction(r) for r in rows]


# ---------------------------
# Categories and history
# ---------------------------


def fetch_categories(session: Session) -> list[Category]:
    """Return the category catalog ordered by name (case-insensitive)."""

    rows = (
        session.execute(select(LedgerCategory).order_by(func.lower(LedgerCategory.name)))
        .scalars()
        .all()
    )
    return [Category(id=r.id, name=r.name) for r in rows]


def fetch_category_history(
    session: Session,
    *,
    recipients: Sequence[str],
    user_id: str | None = None,
) -> list[HistoryEntry]:
    """Return categorized transactions for ``recipients``, oldest first.

    Rows are ordered by ``(created_at, id)`` so that, among equal timestamps,
    the later insert comes last and wins inference.
    """

    if not recipients:
        return []
    stmt = (
        select(LedgerTransaction.recipient, LedgerTransaction.category, LedgerTransaction.created_at)
        .where(
            LedgerTransaction.recipient.in_(list(dict.fromkeys(recipients))),
            LedgerTransaction.category.is_not(None),
        )
        .order_by(LedgerTransaction.created_at, LedgerTransaction.id)
    )
    if user_id is not None:
        stmt = stmt.where(LedgerTransaction.user_id == user_id)
    return [HistoryEntry(r.recipient, r.category, r.created_at) for r in session.execute(stmt)]


def refresh_completed_count(session: Session, *, import_id: int) -> int:
    """Recompute ``completed_count`` from the import's transaction rows."""

    completed = session.execute(
        select(func.count(LedgerTransaction.id)).where(
            LedgerTransaction.import_id == import_id,
            LedgerTransaction.category.is_not(None),
        )
    ).scalar_one()
    session.execute(
        update(LedgerImport).where(LedgerImport.id == import_id).values(completed_count=completed)
    )
    return int(completed)


def update_transaction_category(
    session: Session,
    *,
    transaction_ids: Iterable[int],
    category: str | None,
) -> int:
    """Set (or clear, with ``None``) the category of the given transactions.

    A non-``None`` category must exist in the catalog; the stored name uses
    the catalog's casing. Affected imports get their ``completed_count``
    recomputed in the same transaction. Returns the number of rows updated.
    """

    ids = list(dict.fromkeys(transaction_ids))
    if not ids:
        return 0

    value: str | None = None
    if category is not None and category.strip():
        existing = (
            session.execute(
                select(LedgerCategory).where(
                    func.lower(LedgerCategory.name) == category.strip().lower()
                )
            )
            .scalars()
            .first()
        )
        if existing is None:
            raise ValueError(f"Unknown category: {category!r}")
        value = existing.name

    import_ids = (
        session.execute(
            select(LedgerTransaction.import_id).where(LedgerTransaction.id.in_(ids)).distinct()
        )
        .scalars()
        .all()
    )
    result = session.execute(
        update(LedgerTransaction)
        .where(LedgerTransaction.id.in_(ids))
        .values(category=value)
        .execution_options(synchronize_session=False)
    )
    for import_id in import_ids:
        refresh_completed_count(session, import_id=import_id)

    updated = int(result.rowcount or 0)
    _logger.info(
        "persistence:update_category rows=%d imports=%d category=%s",
        updated,
        len(import_ids),
        value,
    )
    return updated


# ---------------------------
# Reports
# ---------------------------


def save_report(
    session: Session,
    *,
    import_id: int,
    analysis_text: str,
    document: bytes | None = None,
    document_name: str | None = None,
) -> StoredReport:
    """Archive an analysis (and an optional rendered document) for an import."""

    if session.get(LedgerImport, import_id) is None:
        raise ValueError(f"Unknown import: {import_id}")
    row = AnalysisReport(
        import_id=import_id,
        analysis_text=analysis_text,
        document=document,
        document_name=document_name,
    )
    session.add(row)
    session.flush()
    _logger.info("persistence:save_report import_id=%d report_id=%d", import_id, row.id)
    return _to_report(row)


def load_report(session: Session, *, import_id: int) -> StoredReport | None:
    """Return the most recent report stored for ``import_id``."""

    row = (
        session.execute(
            select(AnalysisReport)
            .where(AnalysisReport.import_id == import_id)
            .order_by(AnalysisReport.created_at.desc(), AnalysisReport.id.desc())
        )
        .scalars()
        .first()
    )
    return _to_report(row) if row is not None else None


__all__ = [
    "create_import",
    "fetch_categories",
    "fetch_category_history",
    "fetch_import",
    "fetch_imports",
    "fetch_transactions",
    "insert_transactions",
    "load_report",
    "record_import",
    "refresh_completed_count",
    "save_report",
    "update_transaction_category",
]
