# backend/app/domain/ledger.py
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Union

ZERO = Decimal("0")

PENDING = "pending"
ACCEPTED = "accepted"
REJECTED = "rejected"


# -----------------------------
# Review state (tagged variant)
# -----------------------------
@dataclass(frozen=True)
class Pending:
    status: str = PENDING
    rejection_reason: None = None


@dataclass(frozen=True)
class Accepted:
    status: str = ACCEPTED
    rejection_reason: None = None


@dataclass(frozen=True)
class Rejected:
    reason: str
    status: str = REJECTED

    def __post_init__(self) -> None:
        if not (self.reason or "").strip():
            raise ValueError("rejection_reason is required when rejecting a payment")

    @property
    def rejection_reason(self) -> str:
        return self.reason


Review = Union[Pending, Accepted, Rejected]


def review_from_fields(status: str, rejection_reason: str | None) -> Review:
    """
    Rebuild the review variant from the stored status/reason pair.
    Raises ValueError for combinations the variant cannot represent.
    """
    s = (status or "").strip().lower()
    if s == PENDING:
        if rejection_reason:
            raise ValueError("pending payment cannot carry a rejection_reason")
        return Pending()
    if s == ACCEPTED:
        if rejection_reason:
            raise ValueError("accepted payment cannot carry a rejection_reason")
        return Accepted()
    if s == REJECTED:
        return Rejected(reason=str(rejection_reason or ""))
    raise ValueError(f"unknown payment status: {status!r}")


# -----------------------------
# Amount helpers
# -----------------------------
def money(v: Any) -> Decimal:
    if v is None:
        return ZERO
    if isinstance(v, Decimal):
        return v
    return Decimal(str(v))


def compare_amount(a: Decimal, b: Decimal) -> str:
    """equal | greater | less"""
    if a == b:
        return "equal"
    return "greater" if a > b else "less"


def payment_status(paid: Decimal, expected: Decimal) -> str:
    """correct | overpaid | underpaid"""
    return {"equal": "correct", "greater": "overpaid", "less": "underpaid"}[compare_amount(paid, expected)]


def percentage(received: Decimal, expected: Decimal) -> float:
    """Received as a percent of expected, capped at 100.0; 0.0 when nothing is expected."""
    if expected <= ZERO:
        return 0.0
    return min(float(received / expected * 100), 100.0)


# -----------------------------
# Period aggregation
# -----------------------------
def _status_of(p: Any) -> str:
    return str(getattr(p, "status", "") or "").lower()


def is_accepted(p: Any) -> bool:
    return _status_of(p) == ACCEPTED


def payments_for_period(payments: Iterable[Any], contract_id: Any, period_number: int) -> list[Any]:
    return [
        p
        for p in payments
        if getattr(p, "contract_id", None) == contract_id and int(p.payment_number) == int(period_number)
    ]


def group_by_period(payments: Iterable[Any]) -> dict[int, list[Any]]:
    out: dict[int, list[Any]] = defaultdict(list)
    for p in payments:
        out[int(p.payment_number)].append(p)
    return dict(out)


def sum_accepted(payments: Iterable[Any]) -> Decimal:
    return sum((money(p.amount) for p in payments if is_accepted(p)), ZERO)


def accepted_total(payments: Iterable[Any], contract_id: Any, period_number: int) -> Decimal:
    """Sum of accepted amounts for one contract period. Pending and rejected never count."""
    return sum_accepted(payments_for_period(payments, contract_id, period_number))


def classify(total: Decimal, rent: Decimal) -> str:
    if total >= rent:
        return "paid"
    if total > ZERO:
        return "partial"
    return "unpaid"


def period_status(contract: Any, payments: Iterable[Any], period_number: int) -> str:
    """
    paid | partial | unpaid

    Overpayment is simply "paid"; the excess stays on that period.
    """
    return classify(accepted_total(payments, contract.id, period_number), money(contract.rent))


def outstanding_for_period(contract: Any, payments: Iterable[Any], period_number: int) -> Decimal:
    """rent - accepted; negative when the period was overpaid."""
    return money(contract.rent) - accepted_total(payments, contract.id, period_number)


def remaining_allowance(contract: Any, payments: Iterable[Any], period_number: int) -> Decimal:
    """
    How much a tenant may still submit for a period: rent minus what is
    already accepted or awaiting review. Never negative.
    """
    rows = payments_for_period(payments, contract.id, period_number)
    committed = sum((money(p.amount) for p in rows if _status_of(p) in (ACCEPTED, PENDING)), ZERO)
    return max(ZERO, money(contract.rent) - committed)
