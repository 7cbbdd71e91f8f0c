# backend/app/routers/contracts.py
from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal, require_owner
from ..db import get_db
from ..domain.metrics import contract_payment_status, period_table, property_summary
from ..domain.periods import payment_overdue, upcoming_periods
from ..schemas import ContractCreate, ContractMetricsOut, ContractOut, PeriodRowOut, UpcomingPeriodOut
from ..services import contracts_service
from ..services.clock import resolve_as_of
from ..services.ledger_queries import fetch_payments_for_contract, list_contracts
from ..services.ownership import must_get_contract

router = APIRouter(prefix="/contracts", tags=["contracts"])


@router.post("", response_model=ContractOut)
def create_contract(payload: ContractCreate, db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    """Creates the contract and archives any active contract on the same property."""
    return contracts_service.create_contract(db, p, payload.model_dump()).unwrap_or_http()


@router.get("", response_model=list[ContractOut])
def list_scope_contracts(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    # owners see contracts they created, tenants see contracts they rent under
    return list_contracts(db, p)


@router.get("/{contract_id}", response_model=ContractOut)
def get_contract(contract_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return must_get_contract(db, p, contract_id)


@router.patch("/{contract_id}", response_model=ContractOut)
def update_contract(
    contract_id: int,
    payload: ContractCreate,  # full-update for simplicity
    db: Session = Depends(get_db),
    p: Principal = Depends(require_owner),
):
    return contracts_service.update_contract(db, p, contract_id, payload.model_dump()).unwrap_or_http()


@router.delete("/{contract_id}")
def archive_contract(contract_id: int, db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    contracts_service.archive_contract(db, p, contract_id).unwrap_or_http()
    return {"ok": True}


@router.get("/{contract_id}/periods", response_model=list[PeriodRowOut])
def contract_periods(
    contract_id: int,
    as_of: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    """Status table for every period up to the current one."""
    contract = must_get_contract(db, p, contract_id)
    payments = fetch_payments_for_contract(db, p, contract.id)
    rows = period_table(contract, payments, resolve_as_of(as_of))
    return [PeriodRowOut.model_validate(r) for r in rows]


@router.get("/{contract_id}/upcoming", response_model=list[UpcomingPeriodOut])
def contract_upcoming(
    contract_id: int,
    as_of: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    contract = must_get_contract(db, p, contract_id)
    return [UpcomingPeriodOut.model_validate(u) for u in upcoming_periods(contract, resolve_as_of(as_of))]


@router.get("/{contract_id}/metrics", response_model=ContractMetricsOut)
def contract_metrics(
    contract_id: int,
    as_of: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    today = resolve_as_of(as_of)
    contract = must_get_contract(db, p, contract_id)
    payments = fetch_payments_for_contract(db, p, contract.id)

    summary = property_summary(contract.property, contract, payments, today)
    return ContractMetricsOut(
        **asdict(summary),
        as_of=today,
        payment_status=contract_payment_status(contract, payments, today),
        past_due_day=summary.contract_status == "active" and payment_overdue(contract, today),
    )
