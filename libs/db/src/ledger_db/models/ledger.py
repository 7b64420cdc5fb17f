from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns; Postgres keeps BIGINT.
_PK = BigInteger().with_variant(Integer, "sqlite")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: sl_categories
# ---------------------------


class LedgerCategory(Base):
    __tablename__ = "sl_categories"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    # Transactions reference categories by name, never by id.
    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


# ---------------------------
# Batches: sl_imports
# ---------------------------


class LedgerImport(Base):
    __tablename__ = "sl_imports"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[str | None] = mapped_column(String, nullable=True)
    total_count: Mapped[int] = mapped_column(Integer, nullable=False)
    # Cached count of member transactions with a non-null category. Kept in
    # sync by ``sms_ledger.persistence.refresh_completed_count``.
    completed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        CheckConstraint("total_count >= 0", name="ck_sl_imports_total_count"),
        CheckConstraint(
            "completed_count >= 0 AND completed_count <= total_count",
            name="ck_sl_imports_completed_count",
        ),
    )


# ---------------------------
# Core: sl_transactions
# ---------------------------


class LedgerTransaction(Base):
    __tablename__ = "sl_transactions"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    import_id: Mapped[int] = mapped_column(
        _PK, ForeignKey("sl_imports.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str | None] = mapped_column(String, nullable=True)
    code: Mapped[str] = mapped_column(String, nullable=False)
    recipient: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False)
    datetime: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_sl_tx_amount_non_negative"),
        Index("ix_sl_tx_import_id", "import_id"),
        Index("ix_sl_tx_recipient", "recipient"),
    )


# ---------------------------
# Artifacts: sl_reports
# ---------------------------


class AnalysisReport(Base):
    __tablename__ = "sl_reports"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    import_id: Mapped[int] = mapped_column(
        _PK, ForeignKey("sl_imports.id", ondelete="CASCADE"), nullable=False
    )
    analysis_text: Mapped[str] = mapped_column(Text, nullable=False)
    # Opaque rendered document (e.g. a PDF); never inspected by the ledger.
    document_name: Mapped[str | None] = mapped_column(String, nullable=True)
    document: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


__all__ = [
    "Base",
    "AnalysisReport",
    "LedgerCategory",
    "LedgerImport",
    "LedgerTransaction",
]
