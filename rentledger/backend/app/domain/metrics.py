# backend/app/domain/metrics.py
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Iterable, Optional

from .delays import average_delay, completion_delay, round_one_decimal
from .ledger import ZERO, classify, group_by_period, is_accepted, money, payment_status, percentage, sum_accepted
from .periods import (
    as_date,
    contract_status,
    current_period_number,
    due_date,
    past_period_numbers,
    periods_up_to_current,
)


def collection_rate(income: Decimal, expected: Decimal) -> float:
    """100 * income / expected, one decimal place. Not capped; 0.0 when nothing is expected yet."""
    if expected <= ZERO:
        return 0.0
    return round_one_decimal(income * 100 / expected)


def _by_contract(payments: Iterable[Any]) -> dict[Any, list[Any]]:
    out: dict[Any, list[Any]] = defaultdict(list)
    for p in payments:
        out[p.contract_id].append(p)
    return out


# -----------------------------
# Per-property summary
# -----------------------------
@dataclass(frozen=True)
class PropertySummary:
    property_id: int
    property_name: str
    state: str  # vacant | upcoming | occupied
    contract_id: Optional[int] = None
    tenant_id: Optional[int] = None
    contract_status: Optional[str] = None
    rent: Decimal = ZERO
    total_expected: Decimal = ZERO
    total_income: Decimal = ZERO
    collection_rate: float = 0.0
    avg_delay_days: float = 0.0
    days_until_start: Optional[int] = None
    days_until_end: Optional[int] = None


def property_summary(prop: Any, contract: Optional[Any], payments: Iterable[Any], today: date) -> PropertySummary:
    base = dict(property_id=int(prop.id), property_name=str(getattr(prop, "name", "") or ""))

    if contract is None:
        return PropertySummary(state="vacant", **base)

    status = contract_status(contract, today)
    ref = dict(
        contract_id=getattr(contract, "id", None),
        tenant_id=getattr(contract, "tenant_id", None),
        contract_status=status,
        rent=money(contract.rent),
    )

    if status == "upcoming":
        return PropertySummary(
            state="upcoming",
            days_until_start=(as_date(contract.start_date) - today).days,
            **base,
            **ref,
        )

    if status == "expired":
        # Lifetime figures of finished contracts are not surfaced here.
        return PropertySummary(state="vacant", **base, **ref)

    rows = [p for p in payments if p.contract_id == contract.id]
    by_period = group_by_period(rows)
    past = past_period_numbers(contract, today)

    expected = money(contract.rent) * len(past)
    income = sum((sum_accepted(by_period.get(n, ())) for n in past), ZERO)

    return PropertySummary(
        state="occupied",
        total_expected=expected,
        total_income=income,
        collection_rate=collection_rate(income, expected),
        avg_delay_days=average_delay(contract, by_period, today),
        days_until_end=(as_date(contract.end_date) - today).days,
        **base,
        **ref,
    )


@dataclass(frozen=True)
class PortfolioRollup:
    properties: int
    state_counts: dict[str, int]
    total_expected: Decimal
    total_income: Decimal
    collection_rate: float
    avg_delay_days: float


def portfolio_rollup(summaries: Iterable[PropertySummary]) -> PortfolioRollup:
    rows = list(summaries)
    counts = {"occupied": 0, "upcoming": 0, "vacant": 0}
    for s in rows:
        counts[s.state] = counts.get(s.state, 0) + 1

    expected = sum((s.total_expected for s in rows), ZERO)
    income = sum((s.total_income for s in rows), ZERO)

    occupied = [s for s in rows if s.state == "occupied"]
    delay = 0.0
    if occupied:
        delay = round_one_decimal(sum(Decimal(str(s.avg_delay_days)) for s in occupied) / len(occupied))

    return PortfolioRollup(
        properties=len(rows),
        state_counts=counts,
        total_expected=expected,
        total_income=income,
        collection_rate=collection_rate(income, expected),
        avg_delay_days=delay,
    )


# -----------------------------
# Outstanding aging
# -----------------------------
@dataclass(frozen=True)
class AgingBuckets:
    current: Decimal = ZERO
    days_0_7: Decimal = ZERO
    days_8_30: Decimal = ZERO
    days_31_plus: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.current + self.days_0_7 + self.days_8_30 + self.days_31_plus


def aging_bucket(days_overdue: int) -> str:
    if days_overdue <= 0:
        return "current"
    if days_overdue <= 7:
        return "days_0_7"
    if days_overdue <= 30:
        return "days_8_30"
    return "days_31_plus"


def outstanding_aging(contracts: Iterable[Any], payments: Iterable[Any], today: date) -> AgingBuckets:
    """
    Bucket the positive outstanding of every period up to the current one,
    across active contracts, by days past the period's due date.
    Credits (overpaid periods) are skipped rather than netted.
    """
    buckets = {"current": ZERO, "days_0_7": ZERO, "days_8_30": ZERO, "days_31_plus": ZERO}
    by_contract = _by_contract(payments)

    for c in contracts:
        if getattr(c, "archived", False) or contract_status(c, today) != "active":
            continue
        by_period = group_by_period(by_contract.get(c.id, ()))
        rent = money(c.rent)
        for n in periods_up_to_current(c, today):
            outstanding = rent - sum_accepted(by_period.get(n, ()))
            if outstanding <= ZERO:
                continue
            key = aging_bucket((today - due_date(c, n)).days)
            buckets[key] += outstanding

    return AgingBuckets(**buckets)


# -----------------------------
# Income trend
# -----------------------------
@dataclass(frozen=True)
class TrendPoint:
    month: str  # YYYY-MM
    expected: Decimal
    received: Decimal


def _month_key(d: date) -> str:
    return f"{d.year}-{d.month:02d}"


def trend_months(today: date, n_months: int) -> list[date]:
    """
    First-of-month dates for the trailing n months, oldest first.

    Steps back 30 days at a time and snaps to the month, so a month can repeat
    or be skipped near month ends.
    """
    out = []
    for i in range(n_months):
        d = today - timedelta(days=30 * i)
        out.append(date(d.year, d.month, 1))
    return list(reversed(out))


def _overlaps_month(contract: Any, month_start: date) -> bool:
    nxt = date(month_start.year + month_start.month // 12, month_start.month % 12 + 1, 1)
    return as_date(contract.start_date) < nxt and as_date(contract.end_date) >= month_start


def income_trend(contracts: Iterable[Any], payments: Iterable[Any], today: date, n_months: int) -> list[TrendPoint]:
    """
    Expected vs received per trailing month.

    Received is attributed to the month a payment was *for* (its period's due
    month), not the month it was submitted in.
    """
    rows = [c for c in contracts if not getattr(c, "archived", False)]
    by_id = {c.id: c for c in rows}

    received_by_month: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for p in payments:
        c = by_id.get(p.contract_id)
        if c is None or not is_accepted(p):
            continue
        target = due_date(c, int(p.payment_number))
        received_by_month[_month_key(target)] += money(p.amount)

    out: list[TrendPoint] = []
    for ms in trend_months(today, n_months):
        expected = sum((money(c.rent) for c in rows if _overlaps_month(c, ms)), ZERO)
        key = _month_key(ms)
        out.append(TrendPoint(month=key, expected=expected, received=received_by_month.get(key, ZERO)))
    return out


# -----------------------------
# Per-period table
# -----------------------------
@dataclass(frozen=True)
class PeriodRow:
    period_number: int
    due_date: date
    rent: Decimal
    accepted_total: Decimal
    outstanding: Decimal
    status: str  # paid | partial | unpaid
    amount_status: str  # correct | overpaid | underpaid
    is_past: bool
    overdue: bool
    delay_days: Optional[int]
    progress_pct: int
    payments: list[Any] = field(default_factory=list)


def period_table(contract: Any, payments: Iterable[Any], today: date) -> list[PeriodRow]:
    rows = [p for p in payments if p.contract_id == contract.id]
    by_period = group_by_period(rows)
    rent = money(contract.rent)
    past = set(past_period_numbers(contract, today))

    out: list[PeriodRow] = []
    for n in periods_up_to_current(contract, today):
        period_payments = sorted(by_period.get(n, []), key=lambda p: p.submitted_at)
        total = sum_accepted(period_payments)
        status = classify(total, rent)
        due = due_date(contract, n)
        out.append(
            PeriodRow(
                period_number=n,
                due_date=due,
                rent=rent,
                accepted_total=total,
                outstanding=rent - total,
                status=status,
                amount_status=payment_status(total, rent),
                is_past=n in past,
                overdue=status != "paid" and today > due,
                delay_days=completion_delay(period_payments, rent, due, today) if n in past else None,
                progress_pct=int(round(percentage(total, rent))),
                payments=period_payments,
            )
        )
    return out


def contract_payment_status(contract: Any, payments: Iterable[Any], today: date) -> str:
    """
    upcoming | paid | overdue | on_time

    "paid" looks only at the current period; "overdue" means an earlier
    period is still short and its due date has passed.
    """
    current = current_period_number(contract, today)
    if current == 0:
        return "upcoming"

    rows = [p for p in payments if p.contract_id == contract.id]
    by_period = group_by_period(rows)
    rent = money(contract.rent)

    def paid(n: int) -> bool:
        return sum_accepted(by_period.get(n, ())) >= rent

    if paid(current):
        return "paid"

    for n in range(1, current):
        if not paid(n) and today > due_date(contract, n):
            return "overdue"
    return "on_time"
