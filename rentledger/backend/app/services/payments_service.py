# backend/app/services/payments_service.py
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal
from ..config import settings
from ..domain.audit import audit_write
from ..domain.events import EventSink, default_sink
from ..domain.ledger import Accepted, Pending, Rejected, Review, remaining_allowance
from ..models import Contract, Payment
from .results import ServiceResult

log = logging.getLogger(__name__)


def submit_payment(
    db: Session,
    scope: Principal,
    data: dict[str, Any],
    *,
    now: Optional[datetime] = None,
    sink: EventSink = default_sink,
) -> ServiceResult[Payment]:
    """
    Tenant submits a payment toward one period of one of their contracts.
    It starts pending; only the contract owner can accept or reject it.
    """
    errors: dict[str, list[str]] = {}
    try:
        amount = Decimal(str(data.get("amount", "0")))
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite():
        errors["amount"] = ["must be a number"]
    try:
        number = int(data.get("payment_number") or 0)
    except (TypeError, ValueError):
        number = None
        errors["payment_number"] = ["must be an integer"]
    contract_id = data.get("contract_id")
    if contract_id is None:
        errors["contract_id"] = ["can't be blank"]
    else:
        try:
            contract_id = int(contract_id)
        except (TypeError, ValueError):
            errors["contract_id"] = ["must be an integer"]
    if "amount" not in errors and amount <= 0:
        errors["amount"] = ["must be greater than 0"]
    if number is not None and number <= 0:
        errors["payment_number"] = ["must be greater than 0"]
    if errors:
        return ServiceResult.invalid(errors)

    contract = db.get(Contract, contract_id)
    if contract is None or contract.archived:
        return ServiceResult.not_found("contract not found")
    if contract.tenant_id != scope.user_id:
        return ServiceResult.unauthorized("contract belongs to another tenant")

    if settings.enforce_payment_allowance:
        existing = db.scalars(
            select(Payment).where(Payment.contract_id == contract.id, Payment.payment_number == number)
        ).all()
        allowance = remaining_allowance(contract, existing, number)
        if amount > allowance:
            return ServiceResult.invalid(
                {"amount": [f"exceeds remaining allowance of ${allowance.quantize(Decimal('0.01'))} for this month"]}
            )

    ts = now or datetime.utcnow()
    row = Payment(
        contract_id=contract.id,
        user_id=scope.user_id,
        payment_number=number,
        amount=amount,
        notes=data.get("notes"),
        status="pending",
        submitted_at=ts,
        updated_at=ts,
    )
    db.add(row)
    db.flush()
    audit_write(
        db,
        actor_user_id=scope.user_id,
        action="payment.submit",
        entity_type="Payment",
        entity_id=row.id,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    log.info("payment submitted", extra={"payment_id": row.id, "contract_id": contract.id})
    sink.emit(
        db,
        user_id=contract.user_id,
        actor_user_id=scope.user_id,
        event_type="payment.submitted",
        property_id=contract.property_id,
        payload={"payment_id": row.id, "contract_id": contract.id, "payment_number": number},
    )
    return ServiceResult.success(row)


def _review(
    db: Session,
    scope: Principal,
    payment_id: int,
    review: Review,
    *,
    sink: EventSink,
) -> ServiceResult[Payment]:
    row = db.get(Payment, int(payment_id))
    if row is None:
        return ServiceResult.not_found("payment not found")

    contract = db.get(Contract, row.contract_id)
    if contract is None or contract.user_id != scope.user_id:
        return ServiceResult.unauthorized("only the contract owner can review this payment")
    if not isinstance(row.review, Pending):
        # review is final for a submission; the tenant resubmits instead
        return ServiceResult.invalid({"status": [f"payment already {row.status}"]})

    before = row.model_dump()
    row.apply_review(review)
    audit_write(
        db,
        actor_user_id=scope.user_id,
        action=f"payment.{review.status}",
        entity_type="Payment",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    log.info(
        "payment %s",
        review.status,
        extra={"payment_id": row.id, "contract_id": contract.id, "user_id": scope.user_id},
    )
    sink.emit(
        db,
        user_id=contract.user_id,
        actor_user_id=scope.user_id,
        event_type=f"payment.{review.status}",
        property_id=contract.property_id,
        payload={"payment_id": row.id, "contract_id": contract.id, "payment_number": row.payment_number},
    )
    return ServiceResult.success(row)


def accept_payment(db: Session, scope: Principal, payment_id: int, *, sink: EventSink = default_sink) -> ServiceResult[Payment]:
    return _review(db, scope, payment_id, Accepted(), sink=sink)


def reject_payment(
    db: Session,
    scope: Principal,
    payment_id: int,
    reason: Optional[str],
    *,
    sink: EventSink = default_sink,
) -> ServiceResult[Payment]:
    try:
        review = Rejected(reason=str(reason or ""))
    except ValueError as e:
        return ServiceResult.invalid({"rejection_reason": [str(e)]})
    return _review(db, scope, payment_id, review, sink=sink)
