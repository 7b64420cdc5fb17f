"""High-level orchestrators composing parsing, inference, persistence and
summarization behind a small importable API."""

from .analysis_flow import analyze_import
from .import_flow import ImportResult, import_messages
from .review_flow import ReviewOutcome, review_uncategorized

__all__ = [
    "ImportResult",
    "ReviewOutcome",
    "analyze_import",
    "import_messages",
    "review_uncategorized",
]
