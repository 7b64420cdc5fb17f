"""Prompt construction for the spending analysis request.

This module builds:
- The system instructions for the summarization model.
- The user prompt embedding the spending summary (totals, category
  breakdown, monthly spending, top recipients) followed by the requested
  analysis points.

Amounts are rendered with two decimals and the ``KSH`` label.
"""

from __future__ import annotations

from .aggregation import format_amount, sorted_by_amount
from .models import SpendingSummary

ANALYSIS_REQUESTS: tuple[str, ...] = (
    "Key spending patterns and trends",
    "Areas where spending could be optimized",
    "Specific recommendations for better financial management",
    "Any concerning patterns that should be addressed",
)


def build_system_instructions() -> str:
    """Return concise system instructions for the analysis task."""

    return (
        "You are a personal finance assistant. You analyze summarized mobile money "
        "spending and give clear, practical insights. Only use the figures provided; "
        "never invent transactions or amounts."
    )


def _lines(pairs) -> list[str]:
    return [f"{name}: {format_amount(amount)}" for name, amount in pairs]


def build_analysis_prompt(summary: SpendingSummary) -> str:
    """Render ``summary`` into the analysis request sent to the model.

    Categories are listed largest first; months ascending; recipients in
    ranking order.
    """

    parts: list[str] = [
        "Please analyze this financial data and provide insights and recommendations:",
        "",
        "Transaction Summary:",
        f"- Total Spent: {format_amount(summary.total_spent)}",
        f"- Number of Transactions: {summary.transaction_count}",
        "",
        "Category Breakdown:",
        *_lines(sorted_by_amount(summary.category_totals)),
        "",
        "Monthly Spending:",
        *_lines(summary.monthly_totals.items()),
        "",
        "Top Recipients:",
        *_lines(summary.top_recipients),
        "",
        "Please provide:",
        *(f"{i}. {req}" for i, req in enumerate(ANALYSIS_REQUESTS, start=1)),
        "Keep the analysis concise and actionable.",
    ]
    return "\n".join(parts)


__all__ = ["ANALYSIS_REQUESTS", "build_analysis_prompt", "build_system_instructions"]
