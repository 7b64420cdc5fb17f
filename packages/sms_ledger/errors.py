"""Exception types raised by ``sms_ledger``.

Lines that fail extraction are not errors and never raise; these types cover
the user-facing "nothing parsed" case and failures of the external
collaborators (history lookup, persistence, summarization).
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger errors."""


class NoTransactionsFound(LedgerError, ValueError):
    """Non-empty input produced zero transactions."""

    def __init__(self, line_count: int) -> None:
        self.line_count = line_count
        super().__init__(f"no valid transactions found in {line_count} non-blank line(s)")


class CollaboratorError(LedgerError, RuntimeError):
    """An external collaborator failed; the dependent operation is aborted."""


class HistoryLookupError(CollaboratorError):
    """Category history could not be read."""


class PersistenceError(CollaboratorError):
    """Reading from or writing to the ledger store failed."""


class SummarizationError(CollaboratorError):
    """The summarization service failed or returned no usable text."""


__all__ = [
    "CollaboratorError",
    "HistoryLookupError",
    "LedgerError",
    "NoTransactionsFound",
    "PersistenceError",
    "SummarizationError",
]
