# backend/app/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth import Principal
from app.db import SessionLocal
from app.domain.periods import due_date, past_period_numbers
from app.models import AppUser, Contract, Property
from app.services import contracts_service, payments_service


@dataclass(frozen=True)
class SeedResult:
    owner_email: str
    tenant_email: str
    property_id: int
    contract_id: int
    payments_created: int


def _get_or_create_user(db: Session, email: str, display_name: str, role: str) -> AppUser:
    row = db.scalar(select(AppUser).where(AppUser.email == email))
    if row:
        return row
    row = AppUser(email=email, display_name=display_name, current_role=role)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _get_or_create_property(db: Session, owner: AppUser) -> Property:
    row = db.scalar(select(Property).where(Property.user_id == owner.id, Property.archived.is_(False)))
    if row:
        return row
    row = Property(user_id=owner.id, name="Demo flat", address="55 Logic Ave", area=70, rooms=3)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def seed_demo(
    *,
    owner_email: str = "owner@demo.local",
    tenant_email: str = "tenant@demo.local",
    rent: Decimal = Decimal("1000.00"),
    expiration_day: int = 5,
    start: Optional[date] = None,
    today: Optional[date] = None,
) -> SeedResult:
    """
    Owner + tenant + property, a one-year contract starting `start`
    (defaults to Jan 1 of this year), and one accepted on-time payment per
    past period. Reuses the property and its active contract on re-runs.
    """
    today = today or date.today()
    start = start or date(today.year, 1, 1)

    db = SessionLocal()
    try:
        owner = _get_or_create_user(db, owner_email, "Demo owner", "owner")
        tenant = _get_or_create_user(db, tenant_email, "Demo tenant", "tenant")
        prop = _get_or_create_property(db, owner)

        owner_scope = Principal(user_id=owner.id, email=owner.email, role="owner")
        tenant_scope = Principal(user_id=tenant.id, email=tenant.email, role="tenant")

        contract = db.scalar(
            select(Contract).where(Contract.property_id == prop.id, Contract.archived.is_(False))
        )
        created = 0
        if contract is None:
            contract = contracts_service.create_contract(
                db,
                owner_scope,
                {
                    "property_id": prop.id,
                    "tenant_id": tenant.id,
                    "start_date": start,
                    "end_date": date(start.year + 1, start.month, start.day),
                    "expiration_day": expiration_day,
                    "rent": rent,
                    "notes": "seeded",
                },
            ).unwrap_or_http()

            for n in past_period_numbers(contract, today):
                paid = payments_service.submit_payment(
                    db,
                    tenant_scope,
                    {"contract_id": contract.id, "payment_number": n, "amount": contract.rent},
                    now=datetime.combine(due_date(contract, n), time(9, 0)),
                ).unwrap_or_http()
                payments_service.accept_payment(db, owner_scope, paid.id).unwrap_or_http()
                created += 1

        return SeedResult(
            owner_email=owner.email,
            tenant_email=tenant.email,
            property_id=int(prop.id),
            contract_id=int(contract.id),
            payments_created=created,
        )
    finally:
        db.close()
