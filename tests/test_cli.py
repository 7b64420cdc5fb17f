from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

import sms_ledger.summarize as summarize_mod
from ledger_db.client import session_scope
from sms_ledger.cli import app
from sms_ledger.persistence import fetch_imports, load_report, save_report

from tests.helpers.db import bootstrap_sqlite_db, seed_categories
from tests.helpers.openai_stub import OpenAIStub

PASTE = "\n".join(
    [
        "QWE123 Confirmed. Ksh1,200.00 sent to JANE DOE on 5/3/24 at 2:15 PM.",
        "M-PESA balance notice",
        "RTY456 Confirmed. Ksh350.00 paid to NAIVAS. on 6/3/24 at 9:05 AM.",
    ]
)

runner = CliRunner()


@pytest.fixture()
def db_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    # Keep the CLI from picking up a developer's .env
    monkeypatch.chdir(tmp_path)
    url = bootstrap_sqlite_db(tmp_path / "ledger.db")
    seed_categories(database_url=url)
    return url


def _import(db_url: str) -> int:
    result = runner.invoke(app, ["import", "--name", "March", "--database-url", db_url], input=PASTE)
    assert result.exit_code == 0, result.output
    with session_scope(database_url=db_url) as s:
        return fetch_imports(s)[0].id


def test_init_db_creates_schema(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    url = f"sqlite+pysqlite:///{tmp_path / 'fresh.db'}"

    result = runner.invoke(app, ["init-db", "--database-url", url])

    assert result.exit_code == 0
    assert "schema is ready" in result.output


def test_import_from_stdin_then_list(db_url: str):
    result = runner.invoke(app, ["import", "--name", "March", "--database-url", db_url], input=PASTE)
    assert result.exit_code == 0
    assert "Imported 2 transaction(s)" in result.output

    listed = runner.invoke(app, ["imports", "--database-url", db_url])
    assert listed.exit_code == 0
    assert "0/2 categorized" in listed.output
    assert "March" in listed.output


def test_import_from_file_uses_file_stem_as_name(db_url: str, tmp_path: Path):
    path = tmp_path / "april_messages.txt"
    path.write_text(PASTE, encoding="utf-8")

    result = runner.invoke(app, ["import", "--file", str(path), "--database-url", db_url])

    assert result.exit_code == 0
    assert "'april_messages'" in result.output


def test_import_without_matches_fails(db_url: str):
    result = runner.invoke(app, ["import", "--database-url", db_url], input="nothing here\n")
    assert result.exit_code == 1
    assert "no valid transactions found" in result.output


def test_import_missing_file_fails(db_url: str, tmp_path: Path):
    result = runner.invoke(
        app, ["import", "--file", str(tmp_path / "missing.txt"), "--database-url", db_url]
    )
    assert result.exit_code == 1


def test_transactions_filters_and_sorts(db_url: str):
    import_id = _import(db_url)

    result = runner.invoke(
        app,
        ["transactions", str(import_id), "--sort", "amount", "--asc", "--database-url", db_url],
    )
    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert "RTY456" in lines[0] and "QWE123" in lines[1]
    assert lines[-1] == "2 transaction(s), total 1550.00 KSH"

    filtered = runner.invoke(
        app, ["transactions", str(import_id), "--search", "naivas", "--database-url", db_url]
    )
    assert "1 transaction(s), total 350.00 KSH" in filtered.output

    bad = runner.invoke(
        app,
        [
            "transactions",
            str(import_id),
            "--date-from",
            "2024-03-06",
            "--date-to",
            "2024-03-01",
            "--database-url",
            db_url,
        ],
    )
    assert bad.exit_code == 1


def test_set_category_and_summary(db_url: str):
    import_id = _import(db_url)

    ok = runner.invoke(app, ["set-category", "1", "2", "--category", "food", "--database-url", db_url])
    assert ok.exit_code == 0
    assert "Updated 2 transaction(s)." in ok.output

    unknown = runner.invoke(app, ["set-category", "1", "--category", "Nope", "--database-url", db_url])
    assert unknown.exit_code == 1

    listed = runner.invoke(app, ["imports", "--database-url", db_url])
    assert "2/2 categorized" in listed.output

    summary = runner.invoke(app, ["summary", str(import_id), "--database-url", db_url])
    assert summary.exit_code == 0
    assert "Total spent: 1550.00 KSH across 2 transaction(s)" in summary.output
    assert "Food" in summary.output
    assert "2024-03-05" in summary.output and "2024-03-06" in summary.output


def test_categories_and_add_category(db_url: str):
    added = runner.invoke(app, ["add-category", "School Fees", "--database-url", db_url])
    assert added.exit_code == 0
    assert "Created School Fees" in added.output

    listed = runner.invoke(app, ["categories", "--database-url", db_url])
    assert "School Fees" in listed.output.splitlines()


def test_analyze_prints_and_saves_report(db_url: str, monkeypatch: pytest.MonkeyPatch):
    import_id = _import(db_url)
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    stub = OpenAIStub("Cut back on transfers.")
    monkeypatch.setattr(summarize_mod, "_create_client", lambda: stub)

    result = runner.invoke(app, ["analyze", str(import_id), "--database-url", db_url])

    assert result.exit_code == 0
    assert "Cut back on transfers." in result.output
    with session_scope(database_url=db_url) as s:
        assert load_report(s, import_id=import_id).analysis_text == "Cut back on transfers."


def test_analyze_requires_api_key(db_url: str, monkeypatch: pytest.MonkeyPatch):
    import_id = _import(db_url)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    result = runner.invoke(app, ["analyze", str(import_id), "--database-url", db_url])

    assert result.exit_code == 1
    assert "OPENAI_API_KEY" in result.output


def test_report_prints_latest_stored_analysis(db_url: str):
    import_id = _import(db_url)

    missing = runner.invoke(app, ["report", str(import_id), "--database-url", db_url])
    assert missing.exit_code == 1
    assert "no report stored" in missing.output

    with session_scope(database_url=db_url) as s:
        save_report(s, import_id=import_id, analysis_text="older")
        save_report(s, import_id=import_id, analysis_text="Spend less on rent.")

    result = runner.invoke(app, ["report", str(import_id), "--database-url", db_url])
    assert result.exit_code == 0
    assert result.output.splitlines()[-1] == "Spend less on rent."

    unknown = runner.invoke(app, ["report", "999", "--database-url", db_url])
    assert unknown.exit_code == 1
    assert "Unknown import" in unknown.output
