# ruff: noqa: I001
"""Interactive categorization of an import, one recipient at a time.

Uncategorized transactions are grouped by recipient (largest total first) and
the user picks a category per group. Each decision is persisted immediately,
so an interrupted review keeps what was already decided.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ledger_db.client import session_scope

from ..categories import create_category, list_category_names
from ..logging_setup import get_logger
from ..models import Transaction
from ..persistence import fetch_import, fetch_transactions, update_transaction_category
from ..term_ui import CreateCategoryRequest, prompt_new_category_name, select_category

_logger = get_logger("sms_ledger.workflows.review_flow")

type Chooser = Callable[[str, Sequence[Transaction], Sequence[str]], str | CreateCategoryRequest | None]
"""Receives ``(recipient, group, catalog)`` and returns the decision."""


@dataclass(frozen=True, slots=True)
class ReviewOutcome:
    import_id: int
    groups_reviewed: int
    transactions_updated: int
    categories_created: int
    completed_count: int
    total_count: int


def _group_uncategorized(transactions: Sequence[Transaction]) -> list[tuple[str, list[Transaction]]]:
    groups: dict[str, list[Transaction]] = {}
    for tx in transactions:
        if tx.category is None:
            groups.setdefault(tx.recipient, []).append(tx)
    return sorted(groups.items(), key=lambda kv: sum(t.amount for t in kv[1]), reverse=True)


def _prompt_chooser(
    recipient: str, group: Sequence[Transaction], catalog: Sequence[str]
) -> str | CreateCategoryRequest | None:
    total = sum(t.amount for t in group)
    message = f"{recipient} ({len(group)} txn, {total:.2f}) category: "
    choice = select_category(catalog, message=message, allow_create=True)
    if not isinstance(choice, CreateCategoryRequest):
        return choice
    # Let the user confirm or edit the new name; canceling skips the recipient.
    name = prompt_new_category_name(initial=choice.name)
    return CreateCategoryRequest(name) if name else None


def review_uncategorized(
    import_id: int,
    *,
    database_url: str | None = None,
    choose: Chooser | None = None,
    on_progress: Callable[[str], None] | None = None,
) -> ReviewOutcome:
    """Walk the uncategorized recipients of ``import_id`` and apply choices.

    Parameters
    ----------
    choose:
        Decision callback; defaults to the prompt_toolkit selector. Returning
        ``None`` skips the recipient; a :class:`CreateCategoryRequest` adds the
        category to the catalog before applying it.
    on_progress:
        Optional callable to receive short status lines (e.g., ``print``).
    """

    chooser = choose or _prompt_chooser

    with session_scope(database_url=database_url) as session:
        if fetch_import(session, import_id=import_id) is None:
            raise ValueError(f"Unknown import: {import_id}")
        transactions = fetch_transactions(session, import_id=import_id)
        catalog = list_category_names(session)

    groups = _group_uncategorized(transactions)
    if not groups and on_progress:
        on_progress("Nothing to categorize.")

    reviewed = updated = created = 0
    for recipient, group in groups:
        decision = chooser(recipient, group, catalog)
        reviewed += 1
        if decision is None:
            continue
        with session_scope(database_url=database_url) as session:
            if isinstance(decision, CreateCategoryRequest):
                res = create_category(session, name=decision.name)
                name = res.category.name
                if res.created:
                    created += 1
                    catalog = list_category_names(session)
            else:
                name = decision
            updated += update_transaction_category(
                session, transaction_ids=[t.id for t in group if t.id is not None], category=name
            )
        if on_progress:
            on_progress(f"{recipient} -> {name} ({len(group)} transaction(s))")

    with session_scope(database_url=database_url) as session:
        final = fetch_import(session, import_id=import_id)
    assert final is not None

    _logger.info(
        "review_uncategorized:done import_id=%d groups=%d updated=%d created=%d",
        import_id,
        reviewed,
        updated,
        created,
    )
    return ReviewOutcome(
        import_id=import_id,
        groups_reviewed=reviewed,
        transactions_updated=updated,
        categories_created=created,
        completed_count=final.completed_count,
        total_count=final.total_count,
    )


__all__ = ["Chooser", "ReviewOutcome", "review_uncategorized"]
