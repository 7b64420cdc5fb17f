"""Public interface for the ``sms_ledger`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
Workflows that touch the database or the OpenAI client live in
``sms_ledger.workflows`` and are imported from there.
"""

from .aggregation import (
    category_breakdown,
    category_totals,
    format_amount,
    grand_total,
    monthly_totals,
    summarize,
    timeline_totals,
    top_recipients,
)
from .errors import (
    CollaboratorError,
    HistoryLookupError,
    LedgerError,
    NoTransactionsFound,
    PersistenceError,
    SummarizationError,
)
from .inference import CategoryInferrer, LastWriteWinsInferrer, apply_inferred_categories, infer_category
from .models import (
    CURRENCY_LABEL,
    UNCATEGORIZED,
    Category,
    CategoryBucket,
    HistoryEntry,
    ImportSummary,
    RecipientTotal,
    SpendingSummary,
    StoredReport,
    TimelineDay,
    Transaction,
    Transactions,
)
from .parsing import parse_batch, parse_line
from .selection import SortState, TransactionFilter, order, select

__all__ = [
    # Parsing
    "parse_batch",
    "parse_line",
    # Inference
    "CategoryInferrer",
    "LastWriteWinsInferrer",
    "apply_inferred_categories",
    "infer_category",
    # Aggregation
    "category_breakdown",
    "category_totals",
    "format_amount",
    "grand_total",
    "monthly_totals",
    "summarize",
    "timeline_totals",
    "top_recipients",
    # Filter/sort
    "SortState",
    "TransactionFilter",
    "order",
    "select",
    # Errors
    "CollaboratorError",
    "HistoryLookupError",
    "LedgerError",
    "NoTransactionsFound",
    "PersistenceError",
    "SummarizationError",
    # Models
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
