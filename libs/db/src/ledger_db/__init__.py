"""ledger_db: shared database library (SQLAlchemy) for the SMS ledger.

Public exports
--------------
- ``Base`` and ``metadata`` for schema creation
- ORM models in ``ledger_db.models.ledger`` (re-exported for convenience)
- Engine/session helpers in ``ledger_db.client``
"""

from __future__ import annotations

from .models.ledger import AnalysisReport, Base, LedgerCategory, LedgerImport, LedgerTransaction

metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "AnalysisReport",
    "LedgerCategory",
    "LedgerImport",
    "LedgerTransaction",
]
