# ruff: noqa: I001
"""CLI for the ``sms_ledger`` package.

This module exposes callable command handlers (e.g., ``cmd_import``) and a
Typer-based console interface. Environment variables (``DATABASE_URL``,
``OPENAI_API_KEY``, ``SMS_LEDGER_MODEL``, ``SMS_LEDGER_LOG_LEVEL``) are loaded
from a local ``.env`` using ``python-dotenv`` before delegating to command
logic. Business logic lives in ``sms_ledger.workflows`` and related modules.
"""

from __future__ import annotations

import datetime as dt
import sys
from collections.abc import Sequence
from pathlib import Path

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from .aggregation import (
    category_totals,
    format_amount,
    grand_total,
    sorted_by_amount,
    timeline_totals,
    top_recipients,
)
from .errors import LedgerError
from .formats import DEFAULT_PROVIDER
from .logging_setup import configure_logging
from .models import Transaction
from .selection import SORT_FIELDS, TransactionFilter, order, select


# ---- Small module-level helpers used by CLI commands -------------------------


def _error(msg: str) -> int:
    print(f"Error: {msg}", file=sys.stderr)
    return 1


def _build_filter(
    *,
    search: str | None,
    category: str | None,
    date_from: dt.datetime | None,
    date_to: dt.datetime | None,
) -> TransactionFilter:
    return TransactionFilter(
        search=search or "",
        category=category,
        date_from=date_from.date() if date_from else None,
        date_to=date_to.date() if date_to else None,
    )


def _load_transactions(database_url: str | None, import_id: int) -> list[Transaction]:
    from ledger_db.client import session_scope
    from .persistence import fetch_import, fetch_transactions

    with session_scope(database_url=database_url) as session:
        if fetch_import(session, import_id=import_id) is None:
            raise ValueError(f"Unknown import: {import_id}")
        return fetch_transactions(session, import_id=import_id)


def _format_row(tx: Transaction) -> str:
    return (
        f"{tx.id!s:>6}  {tx.code:<12} {tx.datetime:%Y-%m-%d %H:%M}  "
        f"{format_amount(tx.amount):>16}  {tx.category_label:<20} {tx.recipient}"
    )


# ---- Command handlers ---------------------------------------------------------


def cmd_init_db(*, database_url: str | None = None) -> int:
    """Create the ledger tables on the configured database."""

    from ledger_db.client import init_schema

    try:
        init_schema(database_url=database_url)
    except (RuntimeError, SQLAlchemyError) as e:
        return _error(f"failed to initialize database: {e}")
    print("Database schema is ready.")
    return 0


def cmd_import(
    text: str,
    *,
    name: str,
    database_url: str | None = None,
    provider: str = DEFAULT_PROVIDER,
    infer: bool = True,
    user_id: str | None = None,
) -> int:
    """Parse pasted messages and store them as a new import."""

    from .workflows.import_flow import import_messages

    try:
        result = import_messages(
            text,
            name=name,
            database_url=database_url,
            user_id=user_id,
            provider=provider,
            infer=infer,
        )
    except (ValueError, LedgerError) as e:
        return _error(str(e))
    except RuntimeError as e:
        return _error(f"import failed: {e}")

    s = result.import_summary
    print(
        f"Imported {s.total_count} transaction(s) into #{s.id} '{s.name}' "
        f"({s.completed_count} categorized, {result.inferred_count} inferred from history)."
    )
    return 0


def cmd_imports(*, database_url: str | None = None, user_id: str | None = None) -> int:
    """List imports with their categorization progress."""

    from ledger_db.client import session_scope
    from .persistence import fetch_imports

    try:
        with session_scope(database_url=database_url) as session:
            items = fetch_imports(session, user_id=user_id)
    except (RuntimeError, SQLAlchemyError) as e:
        return _error(f"failed to list imports: {e}")

    if not items:
        print("No imports yet.")
        return 0
    for s in items:
        print(
            f"#{s.id:<5} {s.created_at:%Y-%m-%d %H:%M}  {s.completed_count}/{s.total_count} "
            f"categorized ({s.progress:.0%})  {s.name}"
        )
    return 0


def cmd_transactions(
    import_id: int,
    *,
    database_url: str | None = None,
    transaction_filter: TransactionFilter | None = None,
    sort: str = "datetime",
    descending: bool = True,
) -> int:
    """Print an import's transactions after filtering and sorting."""

    try:
        transactions = _load_transactions(database_url, import_id)
        rows = order(
            select(transactions, transaction_filter), sort, "desc" if descending else "asc"
        )
    except ValueError as e:
        return _error(str(e))
    except (RuntimeError, SQLAlchemyError) as e:
        return _error(f"failed to load transactions: {e}")

    for tx in rows:
        print(_format_row(tx))
    total, count = grand_total(rows)
    print(f"{count} transaction(s), total {format_amount(total)}")
    return 0


def cmd_set_category(
    transaction_ids: Sequence[int],
    *,
    category: str | None,
    database_url: str | None = None,
) -> int:
    """Set or clear the category of one or more transactions."""

    from ledger_db.client import session_scope
    from .persistence import update_transaction_category

    try:
        with session_scope(database_url=database_url) as session:
            n = update_transaction_category(
                session, transaction_ids=transaction_ids, category=category
            )
    except ValueError as e:
        return _error(str(e))
    except (RuntimeError, SQLAlchemyError) as e:
        return _error(f"failed to update category: {e}")

    if not n:
        return _error("no matching transactions")
    print(f"Updated {n} transaction(s).")
    return 0


def cmd_categories(*, database_url: str | None = None) -> int:
    from ledger_db.client import session_scope
    from .categories import list_category_names

    try:
        with session_scope(database_url=database_url) as session:
            names = list_category_names(session)
    except (RuntimeError, SQLAlchemyError) as e:
        return _error(f"failed to list categories: {e}")
    for n in names:
        print(n)
    return 0


def cmd_add_category(name: str, *, database_url: str | None = None) -> int:
    from ledger_db.client import session_scope
    from .categories import create_category

    try:
        with session_scope(database_url=database_url) as session:
            res = create_category(session, name=name)
    except ValueError as e:
        return _error(str(e))
    except (RuntimeError, SQLAlchemyError) as e:
        return _error(f"failed to create category: {e}")

    verb = "Created" if res.created else "Already exists:"
    print(f"{verb} {res.category.name}")
    return 0


def cmd_categorize(import_id: int, *, database_url: str | None = None) -> int:
    """Interactively assign categories to an import's uncategorized recipients."""

    from .workflows.review_flow import review_uncategorized

    try:
        outcome = review_uncategorized(import_id, database_url=database_url, on_progress=print)
    except ValueError as e:
        return _error(str(e))
    except (KeyboardInterrupt, EOFError):
        print("Review interrupted; decisions so far are saved.", file=sys.stderr)
        return 1
    except (RuntimeError, SQLAlchemyError) as e:
        return _error(f"review failed: {e}")

    print(
        f"Reviewed {outcome.groups_reviewed} recipient(s), updated "
        f"{outcome.transactions_updated} transaction(s). Progress: "
        f"{outcome.completed_count}/{outcome.total_count}."
    )
    return 0


def cmd_summary(
    import_id: int,
    *,
    database_url: str | None = None,
    transaction_filter: TransactionFilter | None = None,
    top: int = 10,
) -> int:
    """Print category totals, a daily timeline and top recipients."""

    try:
        rows = select(_load_transactions(database_url, import_id), transaction_filter)
        ranked = top_recipients(rows, limit=top)
    except ValueError as e:
        return _error(str(e))
    except (RuntimeError, SQLAlchemyError) as e:
        return _error(f"failed to load transactions: {e}")

    total, count = grand_total(rows)
    print(f"Total spent: {format_amount(total)} across {count} transaction(s)")
    print("")
    print("By category:")
    for name, amount in sorted_by_amount(category_totals(rows)):
        print(f"  {name:<24} {format_amount(amount):>16}")
    print("")
    print("By day:")
    for day in timeline_totals(rows):
        print(f"  {day.date}  {format_amount(day.total):>16}")
    print("")
    print("Top recipients:")
    for r in ranked:
        print(f"  {r.recipient:<40} {format_amount(r.amount):>16}")
    return 0


def cmd_analyze(
    import_id: int,
    *,
    database_url: str | None = None,
    transaction_filter: TransactionFilter | None = None,
    model: str | None = None,
    save: bool = True,
) -> int:
    """Ask the model for a spending analysis of an import and print it."""

    import os

    from .workflows.analysis_flow import analyze_import

    if not os.getenv("OPENAI_API_KEY"):
        return _error("OPENAI_API_KEY is not set in the environment.")

    try:
        analysis = analyze_import(
            import_id,
            database_url=database_url,
            transaction_filter=transaction_filter,
            model=model,
            save=save,
        )
    except (ValueError, LedgerError) as e:
        return _error(str(e))
    except RuntimeError as e:
        return _error(f"analysis failed: {e}")

    print(analysis.text)
    return 0


def cmd_report(import_id: int, *, database_url: str | None = None) -> int:
    """Print the latest stored analysis report of an import."""

    from ledger_db.client import session_scope
    from .persistence import fetch_import, load_report

    try:
        with session_scope(database_url=database_url) as session:
            if fetch_import(session, import_id=import_id) is None:
                return _error(f"Unknown import: {import_id}")
            report = load_report(session, import_id=import_id)
    except (RuntimeError, SQLAlchemyError) as e:
        return _error(f"failed to load report: {e}")
    if report is None:
        return _error(f"no report stored for import {import_id}; run 'analyze' first")
    print(f"Report {report.id} ({report.created_at:%Y-%m-%d %H:%M})")
    print(report.analysis_text)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Turn pasted M-Pesa style SMS confirmations into a categorized ledger. "
        "Loads DATABASE_URL and OPENAI_API_KEY from a local .env before running."
    ),
)

_DB_HELP = "Override DATABASE_URL (falls back to env var)."
_DATE_FORMATS = ["%Y-%m-%d"]


@app.command("init-db")
def init_db_cmd(
    database_url: str | None = typer.Option(None, help=_DB_HELP),
) -> None:
    """Create the ledger tables."""

    raise typer.Exit(cmd_init_db(database_url=database_url))


@app.command("import")
def import_cmd(
    file: Path | None = typer.Option(
        None, "--file", "-f", dir_okay=False, help="Read messages from a file (default: stdin)."
    ),
    name: str | None = typer.Option(None, help="Import name (default: file name or timestamp)."),
    provider: str = typer.Option(DEFAULT_PROVIDER, help="Message format provider."),
    infer: bool = typer.Option(True, help="Infer categories from previously categorized recipients."),
    user_id: str | None = typer.Option(None, help="Owner recorded on the import."),
    database_url: str | None = typer.Option(None, help=_DB_HELP),
) -> None:
    """Parse pasted messages and store them as a new import."""

    if file is not None:
        try:
            text = file.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise typer.Exit(_error(f"File not found: {file}")) from None
        except PermissionError:
            raise typer.Exit(_error(f"Permission denied: {file}")) from None
    else:
        text = sys.stdin.read()

    resolved_name = name or (file.stem if file is not None else None)
    if not resolved_name:
        resolved_name = f"Import {dt.datetime.now():%Y-%m-%d %H:%M}"

    raise typer.Exit(
        cmd_import(
            text,
            name=resolved_name,
            database_url=database_url,
            provider=provider,
            infer=infer,
            user_id=user_id,
        )
    )


@app.command("imports")
def imports_cmd(
    user_id: str | None = typer.Option(None, help="Only list imports of this owner."),
    database_url: str | None = typer.Option(None, help=_DB_HELP),
) -> None:
    """List imports with their categorization progress."""

    raise typer.Exit(cmd_imports(database_url=database_url, user_id=user_id))


@app.command("transactions")
def transactions_cmd(
    import_id: int = typer.Argument(..., help="Import id."),
    search: str | None = typer.Option(None, help="Substring of code or recipient."),
    category: str | None = typer.Option(None, help="Category name, 'Uncategorized' or 'all'."),
    date_from: dt.datetime | None = typer.Option(None, formats=_DATE_FORMATS),
    date_to: dt.datetime | None = typer.Option(None, formats=_DATE_FORMATS),
    sort: str = typer.Option("datetime", help=f"One of: {', '.join(SORT_FIELDS)}."),
    desc: bool = typer.Option(True, "--desc/--asc", help="Sort direction."),
    database_url: str | None = typer.Option(None, help=_DB_HELP),
) -> None:
    """Show an import's transactions."""

    try:
        flt = _build_filter(search=search, category=category, date_from=date_from, date_to=date_to)
    except ValidationError as e:
        raise typer.Exit(_error(f"invalid filter: {e.errors()[0]['msg']}")) from None
    raise typer.Exit(
        cmd_transactions(
            import_id, database_url=database_url, transaction_filter=flt, sort=sort, descending=desc
        )
    )


@app.command("set-category")
def set_category_cmd(
    transaction_ids: list[int] = typer.Argument(..., help="Transaction ids to update."),
    category: str | None = typer.Option(None, help="Catalog category name."),
    clear: bool = typer.Option(False, help="Remove the category instead."),
    database_url: str | None = typer.Option(None, help=_DB_HELP),
) -> None:
    """Set or clear the category of transactions."""

    if clear == (category is not None):
        raise typer.Exit(_error("pass exactly one of --category or --clear"))
    raise typer.Exit(
        cmd_set_category(
            transaction_ids, category=None if clear else category, database_url=database_url
        )
    )


@app.command("categories")
def categories_cmd(
    database_url: str | None = typer.Option(None, help=_DB_HELP),
) -> None:
    """List the category catalog."""

    raise typer.Exit(cmd_categories(database_url=database_url))


@app.command("add-category")
def add_category_cmd(
    name: str = typer.Argument(..., help="New category name."),
    database_url: str | None = typer.Option(None, help=_DB_HELP),
) -> None:
    """Add a category to the catalog (no-op when it already exists)."""

    raise typer.Exit(cmd_add_category(name, database_url=database_url))


@app.command("categorize")
def categorize_cmd(
    import_id: int = typer.Argument(..., help="Import id."),
    database_url: str | None = typer.Option(None, help=_DB_HELP),
) -> None:
    """Review uncategorized recipients interactively."""

    raise typer.Exit(cmd_categorize(import_id, database_url=database_url))


@app.command("summary")
def summary_cmd(
    import_id: int = typer.Argument(..., help="Import id."),
    search: str | None = typer.Option(None),
    category: str | None = typer.Option(None),
    date_from: dt.datetime | None = typer.Option(None, formats=_DATE_FORMATS),
    date_to: dt.datetime | None = typer.Option(None, formats=_DATE_FORMATS),
    top: int = typer.Option(10, min=1, help="Number of top recipients."),
    database_url: str | None = typer.Option(None, help=_DB_HELP),
) -> None:
    """Print totals per category, per day and per recipient."""

    try:
        flt = _build_filter(search=search, category=category, date_from=date_from, date_to=date_to)
    except ValidationError as e:
        raise typer.Exit(_error(f"invalid filter: {e.errors()[0]['msg']}")) from None
    raise typer.Exit(
        cmd_summary(import_id, database_url=database_url, transaction_filter=flt, top=top)
    )


@app.command("analyze")
def analyze_cmd(
    import_id: int = typer.Argument(..., help="Import id."),
    search: str | None = typer.Option(None),
    category: str | None = typer.Option(None),
    date_from: dt.datetime | None = typer.Option(None, formats=_DATE_FORMATS),
    date_to: dt.datetime | None = typer.Option(None, formats=_DATE_FORMATS),
    model: str | None = typer.Option(None, help="Override SMS_LEDGER_MODEL."),
    save: bool = typer.Option(True, help="Store the analysis as a report."),
    database_url: str | None = typer.Option(None, help=_DB_HELP),
) -> None:
    """Ask the model for a spending analysis of an import."""

    try:
        flt = _build_filter(search=search, category=category, date_from=date_from, date_to=date_to)
    except ValidationError as e:
        raise typer.Exit(_error(f"invalid filter: {e.errors()[0]['msg']}")) from None
    raise typer.Exit(
        cmd_analyze(
            import_id, database_url=database_url, transaction_filter=flt, model=model, save=save
        )
    )


@app.command("report")
def report_cmd(
    import_id: int = typer.Argument(..., help="Import id."),
    database_url: str | None = typer.Option(None, help=_DB_HELP),
) -> None:
    """Print the latest stored analysis of an import."""

    raise typer.Exit(cmd_report(import_id, database_url=database_url))


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m sms_ledger.cli`
    app()
