# backend/app/services/ledger_queries.py
"""
Scoped reads that feed the rent-period engine.

Every lookup returns None / an empty collection when nothing is visible to
the scope; callers decide whether that is a 404.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import Principal
from ..domain.metrics import PropertySummary, property_summary
from ..models import Contract, Payment, Property


def _visible_contracts(scope: Principal):
    q = select(Contract).where(Contract.archived.is_(False))
    if scope.is_tenant:
        return q.where(Contract.tenant_id == scope.user_id)
    return q.where(Contract.user_id == scope.user_id)


def get_property(db: Session, scope: Principal, property_id: int) -> Optional[Property]:
    return db.scalar(
        select(Property).where(
            Property.id == property_id,
            Property.user_id == scope.user_id,
            Property.archived.is_(False),
        )
    )


def list_properties(db: Session, scope: Principal) -> list[Property]:
    q = (
        select(Property)
        .where(Property.user_id == scope.user_id, Property.archived.is_(False))
        .order_by(Property.id)
    )
    return list(db.scalars(q).all())


def fetch_contract(db: Session, scope: Principal, contract_id: int) -> Optional[Contract]:
    return db.scalar(_visible_contracts(scope).where(Contract.id == contract_id))


def list_contracts(db: Session, scope: Principal) -> list[Contract]:
    return list(db.scalars(_visible_contracts(scope).order_by(Contract.id)).all())


def get_contract_for_property(db: Session, scope: Principal, property_id: int) -> Optional[Contract]:
    """The single non-archived contract of an owner's property, if any."""
    return db.scalar(
        select(Contract)
        .where(
            Contract.property_id == property_id,
            Contract.user_id == scope.user_id,
            Contract.archived.is_(False),
        )
        .order_by(Contract.id.desc())
        .limit(1)
    )


def fetch_active_contracts(db: Session, scope: Principal, today: date) -> list[Contract]:
    q = _visible_contracts(scope).where(Contract.start_date <= today, Contract.end_date >= today)
    return list(db.scalars(q.order_by(Contract.id)).all())


def fetch_payments_for_contract(db: Session, scope: Principal, contract_id: int) -> list[Payment]:
    if fetch_contract(db, scope, contract_id) is None:
        return []
    q = select(Payment).where(Payment.contract_id == contract_id).order_by(Payment.submitted_at.desc(), Payment.id.desc())
    return list(db.scalars(q).all())


def fetch_payments_by_period(db: Session, scope: Principal, contract_id: int) -> dict[int, list[Payment]]:
    out: dict[int, list[Payment]] = defaultdict(list)
    for p in fetch_payments_for_contract(db, scope, contract_id):
        out[int(p.payment_number)].append(p)
    return dict(out)


def fetch_payments_for_contracts(db: Session, contract_ids: Iterable[int]) -> list[Payment]:
    """Bulk variant for dashboards; ids must already be scope-checked."""
    ids = list(contract_ids)
    if not ids:
        return []
    return list(db.scalars(select(Payment).where(Payment.contract_id.in_(ids))).all())


def get_payment(db: Session, scope: Principal, payment_id: int) -> Optional[Payment]:
    """A payment visible to the scope: the submitting tenant or the contract owner."""
    row = db.scalar(select(Payment).where(Payment.id == payment_id))
    if row is None:
        return None
    if row.user_id == scope.user_id:
        return row
    contract = db.get(Contract, row.contract_id)
    if contract is not None and contract.user_id == scope.user_id:
        return row
    return None


def property_metrics(db: Session, scope: Principal, today: date) -> list[PropertySummary]:
    """One summary per non-archived property the owner holds."""
    props = list_properties(db, scope)
    contracts = {p.id: get_contract_for_property(db, scope, p.id) for p in props}
    payments = fetch_payments_for_contracts(db, [c.id for c in contracts.values() if c is not None])

    return [property_summary(p, contracts[p.id], payments, today) for p in props]
