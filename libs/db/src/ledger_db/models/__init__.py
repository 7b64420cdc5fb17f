"""Shared SQLAlchemy models registry for the ledger database."""

from .ledger import AnalysisReport, Base, LedgerCategory, LedgerImport, LedgerTransaction

__all__ = [
    "Base",
    "AnalysisReport",
    "LedgerCategory",
    "LedgerImport",
    "LedgerTransaction",
]
