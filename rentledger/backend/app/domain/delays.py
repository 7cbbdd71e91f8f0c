# backend/app/domain/delays.py
from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Optional

from .ledger import ZERO, is_accepted, money
from .periods import as_date, due_date, past_period_numbers


def _days_late(on: date, due: date) -> int:
    return max(0, (on - due).days)


def _submitted_on(p: Any) -> date:
    ts = getattr(p, "submitted_at", None)
    if isinstance(ts, datetime):
        return ts.date()
    return as_date(ts)


def completion_payment(payments: Iterable[Any], rent: Decimal) -> Optional[Any]:
    """
    First accepted payment (by submission time) whose running total reaches rent.
    None while the period is not fully paid.
    """
    running = ZERO
    for p in sorted((p for p in payments if is_accepted(p)), key=lambda p: p.submitted_at):
        running += money(p.amount)
        if running >= rent:
            return p
    return None


def completion_delay(payments: Iterable[Any], rent: Any, due: date, today: date) -> int:
    """
    Days between a period's due date and the moment it was actually settled.

    - fully paid: measured to the completing payment; later top-ups are ignored
    - otherwise (no payments, or only partial): measured to today
    Never negative.
    """
    rows = list(payments)
    if not rows:
        return _days_late(today, due)

    done = completion_payment(rows, money(rent))
    if done is not None:
        return _days_late(_submitted_on(done), due)

    return _days_late(today, due)


def round_one_decimal(v: Decimal) -> float:
    # ROUND_HALF_UP: 2.25 -> 2.3, 2.35 -> 2.4
    return float(v.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def average_delay(contract: Any, payments_by_period: Mapping[int, Iterable[Any]], today: date) -> float:
    """Mean completion delay over past periods, one decimal place; 0.0 with no past periods."""
    past = past_period_numbers(contract, today)
    if not past:
        return 0.0

    total = sum(
        completion_delay(payments_by_period.get(n, ()), contract.rent, due_date(contract, n), today)
        for n in past
    )
    return round_one_decimal(Decimal(total) / Decimal(len(past)))
