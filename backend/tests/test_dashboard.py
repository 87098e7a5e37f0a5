"""Tests for the dashboard aggregator."""
from datetime import datetime, timezone
from types import SimpleNamespace
import pytest
from conftest import make_deposit, make_transaction
from unifypay.services.dashboard import DashboardAggregator, related_transaction, totals_by_currency
from unifypay.utils.timestamp import month_bounds

# Mid-month so local-time window edges are never close
NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
IN_MONTH = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)
LAST_MONTH = datetime(2024, 2, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def dashboard(transaction_store, deposit_store):
    return DashboardAggregator(transaction_store, deposit_store, now=NOW)


def test_month_bounds_cover_whole_month():
    start, end = month_bounds(NOW)
    assert (start.year, start.month, start.day, start.hour, start.minute) == (2024, 3, 1, 0, 0)
    assert (end.month, end.day, end.hour, end.minute, end.second) == (3, 31, 23, 59, 59)
    assert end.microsecond == 999000


def test_month_bounds_february_leap_year():
    _, end = month_bounds(datetime(2024, 2, 14, 12, tzinfo=timezone.utc))
    assert end.day == 29


def test_totals_by_currency():
    records = [
        SimpleNamespace(currency="USD", amount=10.0),
        SimpleNamespace(currency="PEN", amount=5.0),
        SimpleNamespace(currency="USD", amount=2.5),
    ]
    assert totals_by_currency(records) == {"USD": 12.5, "PEN": 5.0}


def test_totals_fall_back_to_amount_field():
    records = [SimpleNamespace(currency="EUR", amount=4.0, net=0)]
    assert totals_by_currency(records, field="net") == {"EUR": 4.0}


def test_monthly_summary_uses_occurrence_date(dashboard, transaction_store, deposit_store):
    transaction_store.add_transaction(make_transaction(amount=100.0, occurred_at=IN_MONTH))
    transaction_store.add_transaction(make_transaction(amount=40.0, currency="PEN", occurred_at=IN_MONTH))
    transaction_store.add_transaction(make_transaction(amount=999.0, occurred_at=LAST_MONTH))
    transaction_store.add_transaction(make_transaction(amount=30.0, direction="expense", occurred_at=IN_MONTH))
    deposit_store.add_deposit(make_deposit(amount=20.0, occurred_at=IN_MONTH))
    deposit_store.add_deposit(make_deposit(amount=50.0, occurred_at=LAST_MONTH))

    summary = dashboard.monthly_summary()
    assert summary["month"] == "March 2024"
    assert summary["income"]["count"] == 2
    assert summary["income"]["totals_by_currency"] == {"USD": 100.0, "PEN": 40.0}
    assert summary["expense"] == {"count": 1, "totals_by_currency": {"USD": 30.0}, "last_code": "EX001"}
    assert summary["deposits"]["count"] == 1
    assert summary["deposits"]["totals_by_currency"] == {"USD": 20.0}


def test_monthly_summary_counts_every_status(dashboard, transaction_store):
    transaction_store.add_transaction(make_transaction(status="pending", occurred_at=IN_MONTH))
    transaction_store.add_transaction(make_transaction(status="cancelled", occurred_at=IN_MONTH))
    assert dashboard.monthly_summary()["income"]["count"] == 2


def test_last_code_follows_query_order(dashboard, transaction_store):
    transaction_store.add_transaction(make_transaction(code="IN010", occurred_at=IN_MONTH))
    transaction_store.add_transaction(make_transaction(code="IN002", occurred_at=IN_MONTH))
    assert dashboard.monthly_summary()["income"]["last_code"] == "IN002"


def test_empty_month(dashboard):
    summary = dashboard.monthly_summary()
    assert summary["income"] == {"count": 0, "totals_by_currency": {}, "last_code": None}
    assert summary["period"]["start"] < summary["period"]["end"]


def test_recent_activity_uses_creation_time(dashboard, transaction_store, clock):
    # Created in order IN001..IN007; occurrence dates run the other way
    for day in range(7, 0, -1):
        transaction_store.add_transaction(
            make_transaction(occurred_at=datetime(2024, 3, day, 12, tzinfo=timezone.utc))
        )
    activity = dashboard.recent_activity()
    assert [a["code"] for a in activity["income"]] == ["IN007", "IN006", "IN005", "IN004", "IN003"]
    assert activity["expense"] == []


def test_recent_deposits_include_related_transaction(dashboard, transaction_store, deposit_store, clock):
    tx = transaction_store.add_transaction(make_transaction(direction="expense", description="Office rent"))
    deposit_store.add_deposit(make_deposit(transaction_ref=tx.id))
    deposit_store.add_deposit(make_deposit())

    deposits = dashboard.recent_activity()["deposits"]
    assert deposits[0]["code"] == "DE002"
    assert deposits[0]["related_transaction"] is None
    assert deposits[1]["related_transaction"] == {"code": "EX001", "description": "Office rent"}


def test_dangling_reference_resolves_to_none(transaction_store, deposit_store):
    tx = transaction_store.add_transaction(make_transaction())
    deposit = deposit_store.add_deposit(make_deposit(transaction_ref=tx.id))
    transaction_store.delete_transaction(tx.id)

    assert related_transaction(deposit, transaction_store) is None
    assert deposit_store.get_deposit(deposit.id).transaction_ref == tx.id


def test_general_statistics_are_all_time(dashboard, transaction_store, deposit_store):
    transaction_store.add_transaction(make_transaction(occurred_at=LAST_MONTH))
    transaction_store.add_transaction(make_transaction(direction="expense", occurred_at=IN_MONTH))
    transaction_store.add_transaction(make_transaction(direction="expense", status="pending"))
    deposit_store.add_deposit(make_deposit(occurred_at=LAST_MONTH))

    stats = dashboard.general_statistics()
    assert stats["total_income_count"] == 1
    assert stats["total_expense_count"] == 2
    assert stats["total_deposit_count"] == 1
    assert stats["last_updated"].tzinfo is not None


def test_build_has_all_sections(dashboard):
    assert set(dashboard.build()) == {"monthly_summary", "recent_activity", "general_statistics"}
