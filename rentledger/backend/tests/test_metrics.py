# backend/tests/test_metrics.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from app.domain.metrics import (
    aging_bucket,
    collection_rate,
    contract_payment_status,
    income_trend,
    outstanding_aging,
    period_table,
    portfolio_rollup,
    property_summary,
    trend_months,
)


@dataclass
class Prop:
    id: int
    name: str = "Flat"


@dataclass
class C:
    id: int
    start_date: date
    end_date: date
    expiration_day: int
    rent: Decimal
    tenant_id: int = 7
    archived: bool = False


@dataclass
class P:
    contract_id: int
    payment_number: int
    amount: Decimal
    submitted_at: datetime
    status: str = "accepted"


def _year_contract(**kw) -> C:
    base = dict(id=1, start_date=date(2026, 1, 1), end_date=date(2026, 12, 31), expiration_day=1, rent=Decimal("1000"))
    base.update(kw)
    return C(**base)


def test_full_lifecycle_summary():
    c = _year_contract()
    pays = [
        P(1, 1, Decimal("1000"), datetime(2026, 1, 1, 12)),
        P(1, 2, Decimal("1000"), datetime(2026, 2, 1, 12)),
        P(1, 3, Decimal("1000"), datetime(2026, 3, 1, 12), status="pending"),
    ]
    s = property_summary(Prop(1), c, pays, date(2026, 3, 15))
    assert s.state == "occupied"
    assert s.total_expected == Decimal("3000")
    assert s.total_income == Decimal("2000")
    assert s.collection_rate == 66.7
    assert s.days_until_end == (date(2026, 12, 31) - date(2026, 3, 15)).days


def test_lifecycle_one_payment_gives_one_third():
    c = _year_contract()
    pays = [P(1, 1, Decimal("1000"), datetime(2026, 1, 1, 12))]
    s = property_summary(Prop(1), c, pays, date(2026, 3, 15))
    assert s.total_expected == Decimal("3000")
    assert s.total_income == Decimal("1000")
    assert s.collection_rate == 33.3


def test_collection_rate_zero_when_nothing_expected():
    assert collection_rate(Decimal("0"), Decimal("0")) == 0.0
    assert collection_rate(Decimal("500"), Decimal("0")) == 0.0


def test_collection_rate_is_not_capped():
    assert collection_rate(Decimal("1500"), Decimal("1000")) == 150.0


def test_vacant_upcoming_and_expired_summaries():
    assert property_summary(Prop(1), None, [], date(2026, 3, 15)).state == "vacant"

    up = property_summary(Prop(1), _year_contract(start_date=date(2026, 4, 1)), [], date(2026, 3, 15))
    assert up.state == "upcoming"
    assert up.days_until_start == 17
    assert up.total_expected == Decimal("0")

    old = property_summary(Prop(1), _year_contract(end_date=date(2026, 2, 28)), [], date(2026, 3, 15))
    assert old.state == "vacant"
    assert old.contract_status == "expired"
    assert old.total_income == Decimal("0")
    assert old.collection_rate == 0.0


def test_portfolio_rollup_counts_states():
    today = date(2026, 3, 15)
    rows = [
        property_summary(Prop(1), _year_contract(), [P(1, 1, Decimal("1000"), datetime(2026, 1, 1))], today),
        property_summary(Prop(2), None, [], today),
    ]
    r = portfolio_rollup(rows)
    assert r.properties == 2
    assert r.state_counts == {"occupied": 1, "upcoming": 0, "vacant": 1}
    assert r.total_expected == Decimal("3000")
    assert r.collection_rate == 33.3


def test_aging_bucket_boundaries():
    assert aging_bucket(-3) == "current"
    assert aging_bucket(0) == "current"
    assert aging_bucket(1) == "days_0_7"
    assert aging_bucket(7) == "days_0_7"
    assert aging_bucket(8) == "days_8_30"
    assert aging_bucket(30) == "days_8_30"
    assert aging_bucket(31) == "days_31_plus"


def test_outstanding_aging_skips_credits():
    c = _year_contract()
    pays = [
        P(1, 1, Decimal("1200"), datetime(2026, 1, 1)),
        P(1, 2, Decimal("400"), datetime(2026, 2, 2)),
    ]
    b = outstanding_aging([c], pays, date(2026, 3, 15))
    assert b.days_31_plus == Decimal("600")  # period 2, due Feb 1
    assert b.days_8_30 == Decimal("1000")  # period 3, due Mar 1
    assert b.current == Decimal("0")
    assert b.total == Decimal("1600")


def test_trend_months_oldest_first():
    ms = trend_months(date(2026, 3, 15), 3)
    assert ms == [date(2026, 1, 1), date(2026, 2, 1), date(2026, 3, 1)]


def test_income_trend_attributes_to_due_month():
    c = _year_contract()
    pays = [
        # January rent, paid late in February
        P(1, 1, Decimal("1000"), datetime(2026, 2, 10)),
        P(1, 2, Decimal("500"), datetime(2026, 2, 10), status="pending"),
    ]
    pts = income_trend([c], pays, date(2026, 3, 15), 3)
    assert [p.month for p in pts] == ["2026-01", "2026-02", "2026-03"]
    assert pts[0].received == Decimal("1000")
    assert pts[1].received == Decimal("0")
    assert all(p.expected == Decimal("1000") for p in pts)


def test_period_table_rows():
    c = _year_contract(expiration_day=10)
    pays = [
        P(1, 1, Decimal("1000"), datetime(2026, 1, 12)),
        P(1, 2, Decimal("300"), datetime(2026, 2, 9)),
    ]
    rows = period_table(c, pays, date(2026, 3, 5))
    assert [r.period_number for r in rows] == [1, 2, 3]
    assert rows[0].status == "paid"
    assert rows[0].delay_days == 2
    assert rows[0].amount_status == "correct"
    assert rows[1].status == "partial"
    assert rows[1].overdue is True
    assert rows[1].outstanding == Decimal("700")
    assert rows[1].progress_pct == 30
    assert rows[1].amount_status == "underpaid"
    assert rows[2].is_past is False
    assert rows[2].delay_days is None


def test_contract_payment_status():
    c = _year_contract(expiration_day=5)
    assert contract_payment_status(c, [], date(2025, 12, 1)) == "upcoming"
    assert contract_payment_status(c, [], date(2026, 1, 3)) == "on_time"
    assert contract_payment_status(c, [], date(2026, 2, 3)) == "overdue"
    paid_now = [P(1, 2, Decimal("1000"), datetime(2026, 2, 1))]
    assert contract_payment_status(c, paid_now, date(2026, 2, 3)) == "paid"
