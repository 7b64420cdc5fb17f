from __future__ import annotations

import datetime as dt

import pytest

from sms_ledger.aggregation import (
    category_breakdown,
    category_totals,
    format_amount,
    grand_total,
    monthly_totals,
    sorted_by_amount,
    summarize,
    timeline_totals,
    top_recipients,
)
from sms_ledger.models import RecipientTotal, Transaction

_seq = iter(range(1, 10_000))


def _tx(
    amount: float,
    category: str | None = None,
    *,
    recipient: str = "Someone",
    when: dt.datetime = dt.datetime(2024, 3, 5, 14, 15),
) -> Transaction:
    return Transaction(
        code=f"C{next(_seq)}", recipient=recipient, amount=amount, datetime=when, category=category
    )


def test_category_totals_and_grand_total():
    txs = [_tx(10, "Food"), _tx(5, "Food"), _tx(3, None)]

    assert category_totals(txs) == {"Food": 15, "Uncategorized": 3}
    assert grand_total(txs) == (18, 3)


def test_empty_input_reductions():
    assert category_totals([]) == {}
    assert timeline_totals([]) == []
    assert top_recipients([]) == []
    assert grand_total([]) == (0.0, 0)


def test_sorted_by_amount_descending_and_stable():
    totals = {"A": 5.0, "B": 9.0, "C": 5.0}
    assert sorted_by_amount(totals) == [("B", 9.0), ("A", 5.0), ("C", 5.0)]


def test_timeline_days_ascending_with_categories_descending():
    d1 = dt.datetime(2024, 3, 2, 9, 0)
    d2 = dt.datetime(2024, 3, 1, 23, 59)
    txs = [
        _tx(4, "Food", when=d1),
        _tx(10, "Rent", when=d1),
        _tx(1, None, when=d1),
        _tx(7, "Food", when=d2),
    ]

    days = timeline_totals(txs)

    assert [d.date for d in days] == ["2024-03-01", "2024-03-02"]
    assert days[0].total == 7
    assert days[1].total == 15
    assert days[1].categories == (("Rent", 10), ("Food", 4), ("Uncategorized", 1))


def test_top_recipients_truncates_to_ten_sorted_with_stable_ties():
    txs = [_tx(float(i % 4), recipient=f"R{i}") for i in range(15)]
    txs.append(_tx(100, recipient="R3"))

    top = top_recipients(txs)

    assert len(top) == 10
    assert top[0] == RecipientTotal("R3", 103.0)
    amounts = [r.amount for r in top]
    assert amounts == sorted(amounts, reverse=True)
    # Ties keep first-encounter order: R7 and R11 both total 3.
    assert [r.recipient for r in top[1:3]] == ["R7", "R11"]


def test_top_recipients_shorter_than_limit_and_rejects_non_positive_limit():
    txs = [_tx(1, recipient="A"), _tx(2, recipient="B"), _tx(3, recipient="A")]
    assert top_recipients(txs) == [RecipientTotal("A", 4.0), RecipientTotal("B", 2.0)]
    with pytest.raises(ValueError):
        top_recipients(txs, limit=0)


def test_sums_agree_across_reductions():
    txs = [
        _tx(0.1 * i, cat, recipient=f"R{i % 3}", when=dt.datetime(2024, 1 + i % 3, 1 + i, 8, 0))
        for i, cat in enumerate(["Food", None, "Rent", "Food", None, "Transport", "Food"])
    ]
    total, count = grand_total(txs)

    assert count == len(txs)
    assert sum(category_totals(txs).values()) == pytest.approx(total)
    assert sum(d.total for d in timeline_totals(txs)) == pytest.approx(total)
    assert sum(monthly_totals(txs).values()) == pytest.approx(total)


def test_monthly_totals_ascending_months():
    txs = [
        _tx(1, when=dt.datetime(2024, 11, 3, 8, 0)),
        _tx(2, when=dt.datetime(2023, 12, 30, 8, 0)),
        _tx(3, when=dt.datetime(2024, 11, 20, 8, 0)),
    ]
    assert list(monthly_totals(txs).items()) == [("2023-12", 2), ("2024-11", 4)]


def test_category_breakdown_lists_transfers_largest_first():
    txs = [_tx(5, "Food", recipient="A"), _tx(9, "Food", recipient="B"), _tx(1, None, recipient="C")]

    buckets = category_breakdown(txs)

    assert [b.category for b in buckets] == ["Food", "Uncategorized"]
    assert buckets[0].amount == 14
    assert buckets[0].entries == (RecipientTotal("B", 9.0), RecipientTotal("A", 5.0))


def test_summarize_bundles_all_reductions():
    txs = [_tx(10, "Food", recipient="A"), _tx(5, None, recipient="B")]

    s = summarize(txs)

    assert s.total_spent == 15
    assert s.transaction_count == 2
    assert dict(s.category_totals) == {"Food": 10, "Uncategorized": 5}
    assert dict(s.monthly_totals) == {"2024-03": 15}
    assert s.top_recipients == (RecipientTotal("A", 10.0), RecipientTotal("B", 5.0))


def test_format_amount_rounds_only_for_display():
    assert format_amount(1200) == "1200.00 KSH"
    assert format_amount(0.1 + 0.2) == "0.30 KSH"
