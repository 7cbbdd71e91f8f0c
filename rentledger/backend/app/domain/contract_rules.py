# backend/app/domain/contract_rules.py
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .periods import as_date

# Capped at 20 so a due day never needs clamping, even in February.
EXPIRATION_DAY_MIN = 1
EXPIRATION_DAY_MAX = 20

REQUIRED_FIELDS = ("start_date", "end_date", "expiration_day", "rent", "property_id", "tenant_id")


def _to_decimal(v: Any) -> Optional[Decimal]:
    try:
        d = Decimal(str(v))
    except (InvalidOperation, ValueError):
        return None
    # NaN and Infinity parse but are not amounts
    return d if d.is_finite() else None


def validate_contract_terms(data: dict[str, Any]) -> dict[str, list[str]]:
    """
    Field-level validation of contract terms.

    Returns {field: [messages]}; empty dict means valid.
    """
    errors: dict[str, list[str]] = {}

    def add(field: str, msg: str) -> None:
        errors.setdefault(field, []).append(msg)

    for f in REQUIRED_FIELDS:
        if data.get(f) in (None, ""):
            add(f, "can't be blank")

    for f in ("property_id", "tenant_id"):
        v = data.get(f)
        if v not in (None, ""):
            try:
                int(v)
            except (TypeError, ValueError):
                add(f, "must be an integer")

    day = data.get("expiration_day")
    if day not in (None, ""):
        try:
            d = int(day)
        except (TypeError, ValueError):
            add("expiration_day", "must be an integer")
        else:
            if d < EXPIRATION_DAY_MIN or d > EXPIRATION_DAY_MAX:
                add("expiration_day", f"must be between {EXPIRATION_DAY_MIN} and {EXPIRATION_DAY_MAX}")

    rent = data.get("rent")
    if rent not in (None, ""):
        r = _to_decimal(rent)
        if r is None:
            add("rent", "must be a number")
        elif r <= 0:
            add("rent", "must be greater than 0")

    start, end = data.get("start_date"), data.get("end_date")
    if start not in (None, "") and end not in (None, ""):
        try:
            if as_date(end) <= as_date(start):
                add("end_date", "must be after start date")
        except ValueError:
            add("end_date", "must be a valid date")

    return errors
