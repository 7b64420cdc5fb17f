from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

import sms_ledger.summarize as summarize_mod
from ledger_db.client import session_scope
from sms_ledger.errors import SummarizationError
from sms_ledger.models import Transaction
from sms_ledger.persistence import load_report, save_report
from sms_ledger.prompting import build_analysis_prompt
from sms_ledger.aggregation import summarize
from sms_ledger.selection import TransactionFilter
from sms_ledger.summarize import analyze_spending
from sms_ledger.workflows import analyze_import, import_messages

from tests.helpers.db import bootstrap_sqlite_db, seed_categories
from tests.helpers.openai_stub import OpenAIStub


def _tx(code, recipient, amount, category=None, month=3):
    return Transaction(
        code=code,
        recipient=recipient,
        amount=amount,
        datetime=dt.datetime(2024, month, 5, 14, 15),
        category=category,
    )


TXS = [
    _tx("A1", "Jane", 1200, "Food"),
    _tx("B2", "Naivas", 350.5, None, month=4),
    _tx("C3", "Jane", 100, "Rent"),
]


def test_build_analysis_prompt_renders_summary_sections():
    prompt = build_analysis_prompt(summarize(TXS))

    assert prompt.startswith(
        "Please analyze this financial data and provide insights and recommendations:"
    )
    assert "- Total Spent: 1650.50 KSH" in prompt
    assert "- Number of Transactions: 3" in prompt
    cat_block = prompt.split("Category Breakdown:\n")[1].split("\n\n")[0]
    assert cat_block.splitlines() == [
        "Food: 1200.00 KSH",
        "Uncategorized: 350.50 KSH",
        "Rent: 100.00 KSH",
    ]
    assert "Monthly Spending:\n2024-03: 1300.00 KSH\n2024-04: 350.50 KSH" in prompt
    assert "Top Recipients:\nJane: 1300.00 KSH\nNaivas: 350.50 KSH" in prompt
    assert "4. Any concerning patterns that should be addressed" in prompt
    assert prompt.endswith("Keep the analysis concise and actionable.")


def test_analyze_spending_sends_one_request_and_returns_text(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SMS_LEDGER_MODEL", "test-model")
    stub = OpenAIStub("  Spend less on food.  ")

    result = analyze_spending(TXS, client=stub)

    assert result.text == "Spend less on food."
    assert result.summary.transaction_count == 3
    assert len(stub.calls) == 1
    call = stub.calls[0]
    assert call["model"] == "test-model"
    assert call["input"] == result.prompt
    assert call["instructions"]


def test_analyze_spending_reads_nested_output_shape():
    stub = OpenAIStub("Nested text", nested=True)
    assert analyze_spending(TXS, client=stub, model="m").text == "Nested text"


def test_analyze_spending_uses_default_client_factory(monkeypatch: pytest.MonkeyPatch):
    stub = OpenAIStub("ok")
    monkeypatch.setattr(summarize_mod, "_create_client", lambda: stub)

    assert analyze_spending(TXS).text == "ok"
    assert stub.calls[0]["model"] == "gpt-5"


def test_analyze_spending_rejects_empty_input():
    with pytest.raises(ValueError):
        analyze_spending([], client=OpenAIStub())


@pytest.mark.parametrize(
    "stub",
    [OpenAIStub(error=RuntimeError("rate limited")), OpenAIStub(text=None), OpenAIStub(text="  ")],
)
def test_analyze_spending_wraps_failures_without_retry(stub: OpenAIStub):
    with pytest.raises(SummarizationError):
        analyze_spending(TXS, client=stub)
    assert len(stub.calls) == 1


# ---- analysis workflow -------------------------------------------------------


PASTE = "\n".join(
    [
        "QWE123 Confirmed. Ksh1,200.00 sent to JANE DOE on 5/3/24 at 2:15 PM.",
        "RTY456 Confirmed. Ksh350.00 paid to NAIVAS. on 6/3/24 at 9:05 AM.",
    ]
)


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    url = bootstrap_sqlite_db(tmp_path / "ledger.db")
    seed_categories(database_url=url)
    return url


def test_analyze_import_filters_and_saves_report(db_url: str):
    imported = import_messages(PASTE, name="March", database_url=db_url)
    stub = OpenAIStub("Mostly transfers to Jane.")

    analysis = analyze_import(
        imported.import_summary.id,
        database_url=db_url,
        transaction_filter=TransactionFilter(search="jane"),
        client=stub,
    )

    assert analysis.summary.transaction_count == 1
    assert "- Total Spent: 1200.00 KSH" in stub.calls[0]["input"]
    with session_scope(database_url=db_url) as s:
        report = load_report(s, import_id=imported.import_summary.id)
    assert report is not None and report.analysis_text == "Mostly transfers to Jane."


def test_analyze_import_failure_keeps_previous_report(db_url: str):
    imported = import_messages(PASTE, name="March", database_url=db_url)
    import_id = imported.import_summary.id
    with session_scope(database_url=db_url) as s:
        save_report(s, import_id=import_id, analysis_text="previous")

    with pytest.raises(SummarizationError):
        analyze_import(import_id, database_url=db_url, client=OpenAIStub(error=RuntimeError("x")))

    with session_scope(database_url=db_url) as s:
        assert load_report(s, import_id=import_id).analysis_text == "previous"


def test_analyze_import_without_save_and_unknown_import(db_url: str):
    imported = import_messages(PASTE, name="March", database_url=db_url)
    import_id = imported.import_summary.id

    analyze_import(import_id, database_url=db_url, client=OpenAIStub("x"), save=False)
    with session_scope(database_url=db_url) as s:
        assert load_report(s, import_id=import_id) is None

    with pytest.raises(ValueError, match="Unknown import"):
        analyze_import(999, database_url=db_url, client=OpenAIStub())

    with pytest.raises(ValueError, match="No transactions"):
        analyze_import(
            import_id,
            database_url=db_url,
            transaction_filter=TransactionFilter(search="nobody"),
            client=OpenAIStub(),
        )
