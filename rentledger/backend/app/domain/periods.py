# backend/app/domain/periods.py
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any


def as_date(v: Any) -> date:
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    return date.fromisoformat(str(v))


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> int:
    """Clamp a day-of-month into the month's length (Feb 30 -> Feb 28/29)."""
    return min(int(day), days_in_month(year, month))


def add_months(year: int, month: int, offset: int) -> tuple[int, int]:
    idx = month + offset - 1
    return year + idx // 12, idx % 12 + 1


def due_date(contract: Any, period_number: int) -> date:
    """
    Due date of a 1-based payment period.

    Period 1 falls in the start month; each following period moves one
    calendar month forward, rolling the year over as needed. The day is the
    contract's expiration_day clamped to the month length.
    """
    start = as_date(contract.start_date)
    year, month = add_months(start.year, start.month, int(period_number) - 1)
    return date(year, month, clamp_day(year, month, contract.expiration_day))


def current_period_number(contract: Any, today: date) -> int:
    """
    0 before the contract starts, otherwise the number of calendar months
    touched since the start month (inclusive). Advances on the 1st of each
    month regardless of expiration_day, so the current period may not be due yet.
    """
    start = as_date(contract.start_date)
    if today < start:
        return 0
    return (today.year - start.year) * 12 + (today.month - start.month) + 1


def periods_up_to_current(contract: Any, today: date) -> list[int]:
    current = current_period_number(contract, today)
    return list(range(1, current + 1))


def past_period_numbers(contract: Any, today: date) -> list[int]:
    """
    Periods whose due date is on or before today.

    Every period before the current one is due in an earlier month, so only
    the current period needs a due-date check.
    """
    current = current_period_number(contract, today)
    if current == 0:
        return []
    if due_date(contract, current) <= today:
        return list(range(1, current + 1))
    return list(range(1, current))


def duration_months(contract: Any) -> int:
    start = as_date(contract.start_date)
    end = as_date(contract.end_date)
    return (end.year - start.year) * 12 + (end.month - start.month) + 1


@dataclass(frozen=True)
class UpcomingPeriod:
    period_number: int
    due_date: date
    rent: Decimal


def upcoming_periods(contract: Any, today: date) -> list[UpcomingPeriod]:
    current = current_period_number(contract, today)
    rent = Decimal(contract.rent)
    return [
        UpcomingPeriod(period_number=n, due_date=due_date(contract, n), rent=rent)
        for n in range(current + 1, duration_months(contract) + 1)
    ]


def contract_status(contract: Any, today: date) -> str:
    """upcoming | active | expired. Both ends of the date range count as active."""
    if today < as_date(contract.start_date):
        return "upcoming"
    if today > as_date(contract.end_date):
        return "expired"
    return "active"


def payment_overdue(contract: Any, today: date) -> bool:
    # Day-of-month check for the contract metrics badge; callers pass active contracts only.
    return today.day > int(contract.expiration_day)
