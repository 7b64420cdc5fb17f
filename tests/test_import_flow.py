from __future__ import annotations

from pathlib import Path

import pytest

import sms_ledger.workflows.import_flow as import_flow_mod
from ledger_db.client import session_scope
from sms_ledger.errors import NoTransactionsFound, PersistenceError
from sms_ledger.persistence import fetch_imports, fetch_transactions, update_transaction_category
from sms_ledger.workflows import import_messages

from tests.helpers.db import bootstrap_sqlite_db, seed_categories

PASTE = """
QWE123 Confirmed. Ksh1,200.00 sent to JANE DOE 0712345678 on 5/3/24 at 2:15 PM.
Failed. You do not have enough money in your M-PESA account.
RTY456 Confirmed. Ksh350.00 paid to NAIVAS SUPERMARKET. on 6/3/24 at 12:05 AM.

"""


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    url = bootstrap_sqlite_db(tmp_path / "ledger.db")
    seed_categories(database_url=url)
    return url


def test_import_messages_persists_matched_lines(db_url: str):
    result = import_messages(PASTE, name="March", database_url=db_url, user_id="u1")

    assert result.import_summary.name == "March"
    assert result.import_summary.total_count == 2
    assert result.import_summary.completed_count == 0
    assert result.inferred_count == 0
    assert [t.code for t in result.transactions] == ["QWE123", "RTY456"]

    with session_scope(database_url=db_url) as s:
        stored = fetch_transactions(s, import_id=result.import_summary.id)
    assert [t.recipient for t in stored] == ["JANE DOE 0712345678", "NAIVAS SUPERMARKET"]
    assert stored[1].datetime.hour == 0


def test_second_import_infers_categories_from_history(db_url: str):
    first = import_messages(PASTE, name="one", database_url=db_url, user_id="u1")
    with session_scope(database_url=db_url) as s:
        update_transaction_category(
            s, transaction_ids=[first.transactions[1].id], category="Shopping"
        )

    second = import_messages(PASTE, name="two", database_url=db_url, user_id="u1")

    assert second.inferred_count == 1
    assert [t.category for t in second.transactions] == [None, "Shopping"]
    assert second.import_summary.completed_count == 1

    # History is scoped to the owner.
    other = import_messages(PASTE, name="three", database_url=db_url, user_id="u2")
    assert other.inferred_count == 0


def test_import_without_inference_leaves_categories_empty(db_url: str):
    first = import_messages(PASTE, name="one", database_url=db_url)
    with session_scope(database_url=db_url) as s:
        update_transaction_category(s, transaction_ids=[first.transactions[0].id], category="Rent")

    second = import_messages(PASTE, name="two", database_url=db_url, infer=False)
    assert [t.category for t in second.transactions] == [None, None]


def test_blank_input_is_rejected(db_url: str):
    with pytest.raises(ValueError, match="paste"):
        import_messages(" \n\t\n", name="x", database_url=db_url)


def test_no_matching_lines_raises_and_writes_nothing(db_url: str):
    with pytest.raises(NoTransactionsFound) as excinfo:
        import_messages("hello world\nnot a transfer", name="x", database_url=db_url)

    assert excinfo.value.line_count == 2
    assert "no valid transactions found" in str(excinfo.value)
    with session_scope(database_url=db_url) as s:
        assert fetch_imports(s) == []


def test_history_lookup_failure_degrades_to_uncategorized(
    db_url: str, monkeypatch: pytest.MonkeyPatch
):
    def boom(*args, **kwargs):
        raise RuntimeError("history unavailable")

    monkeypatch.setattr(import_flow_mod, "fetch_category_history", boom)

    result = import_messages(PASTE, name="x", database_url=db_url)

    assert result.import_summary.total_count == 2
    assert all(t.category is None for t in result.transactions)


def test_persistence_failure_is_wrapped(tmp_path: Path):
    # Schema was never created on this database.
    url = f"sqlite+pysqlite:///{tmp_path / 'empty.db'}"

    with pytest.raises(PersistenceError):
        import_messages(PASTE, name="x", database_url=url, infer=False)
