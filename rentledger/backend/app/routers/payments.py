# backend/app/routers/payments.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal, require_owner, require_tenant
from ..db import get_db
from ..models import Contract, Payment
from ..schemas import PaymentCreate, PaymentOut, PaymentReject
from ..services import payments_service
from ..services.ledger_queries import fetch_payments_for_contract
from ..services.ownership import must_get_contract, must_get_payment

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=PaymentOut)
def submit_payment(payload: PaymentCreate, db: Session = Depends(get_db), p: Principal = Depends(require_tenant)):
    return payments_service.submit_payment(db, p, payload.model_dump()).unwrap_or_http()


@router.get("", response_model=list[PaymentOut])
def list_payments(
    contract_id: Optional[int] = Query(default=None),
    limit: int = Query(default=500, ge=1, le=2000),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    if contract_id is not None:
        must_get_contract(db, p, contract_id)
        return fetch_payments_for_contract(db, p, contract_id)[:limit]

    q = select(Payment).join(Contract, Contract.id == Payment.contract_id)
    if p.is_tenant:
        q = q.where(Contract.tenant_id == p.user_id)
    else:
        q = q.where(Contract.user_id == p.user_id)
    q = q.order_by(desc(Payment.submitted_at), desc(Payment.id)).limit(limit)
    return list(db.scalars(q).all())


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(payment_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return must_get_payment(db, p, payment_id)


@router.post("/{payment_id}/accept", response_model=PaymentOut)
def accept_payment(payment_id: int, db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    return payments_service.accept_payment(db, p, payment_id).unwrap_or_http()


@router.post("/{payment_id}/reject", response_model=PaymentOut)
def reject_payment(
    payment_id: int,
    payload: PaymentReject,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_owner),
):
    return payments_service.reject_payment(db, p, payment_id, payload.rejection_reason).unwrap_or_http()
