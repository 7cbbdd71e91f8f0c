# backend/app/services/ownership.py
from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..auth import Principal
from ..models import Contract, Payment, Property
from .ledger_queries import fetch_contract, get_payment, get_property


def must_get_property(db: Session, scope: Principal, property_id: int) -> Property:
    row = get_property(db, scope, property_id)
    if not row:
        raise HTTPException(status_code=404, detail="property not found")
    return row


def must_get_contract(db: Session, scope: Principal, contract_id: int) -> Contract:
    row = fetch_contract(db, scope, contract_id)
    if not row:
        raise HTTPException(status_code=404, detail="contract not found")
    return row


def must_get_payment(db: Session, scope: Principal, payment_id: int) -> Payment:
    row = get_payment(db, scope, payment_id)
    if not row:
        raise HTTPException(status_code=404, detail="payment not found")
    return row
