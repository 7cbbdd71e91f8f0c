# backend/app/services/contracts_service.py
from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import Principal
from ..domain.audit import audit_write
from ..domain.contract_rules import validate_contract_terms
from ..domain.events import EventSink, default_sink
from ..domain.periods import as_date, contract_status
from ..models import AppUser, Contract, Property
from .clock import business_today
from .results import ServiceResult

log = logging.getLogger(__name__)

CONTRACT_FIELDS = ("property_id", "tenant_id", "start_date", "end_date", "expiration_day", "rent", "notes")
# Fields that define what is billed; frozen once the contract starts.
RENT_TERMS = ("tenant_id", "start_date", "end_date", "expiration_day", "rent")


def _normalize(data: dict[str, Any]) -> dict[str, Any]:
    out = {k: data[k] for k in CONTRACT_FIELDS if k in data}
    if out.get("start_date") not in (None, ""):
        out["start_date"] = as_date(out["start_date"])
    if out.get("end_date") not in (None, ""):
        out["end_date"] = as_date(out["end_date"])
    if out.get("rent") not in (None, ""):
        out["rent"] = Decimal(str(out["rent"]))
    if out.get("expiration_day") not in (None, ""):
        out["expiration_day"] = int(out["expiration_day"])
    for k in ("property_id", "tenant_id"):
        if out.get(k) not in (None, ""):
            out[k] = int(out[k])
    out.setdefault("notes", "")
    return out


def _archive(db: Session, scope: Principal, contract: Contract) -> None:
    contract.archived = True
    contract.archived_by_id = scope.user_id
    contract.updated_at = datetime.utcnow()


def create_contract(
    db: Session,
    scope: Principal,
    data: dict[str, Any],
    *,
    sink: EventSink = default_sink,
) -> ServiceResult[Contract]:
    """
    Create a contract for one of the owner's properties.

    An existing active contract on the same property is archived in the same
    transaction, so the property never has zero or two active contracts.
    """
    errors = validate_contract_terms(data)
    if errors:
        return ServiceResult.invalid(errors)

    values = _normalize(data)

    prop = db.get(Property, int(values["property_id"]))
    if prop is None or prop.archived:
        return ServiceResult.not_found("property not found")
    if prop.user_id != scope.user_id:
        return ServiceResult.unauthorized("property belongs to another owner")

    if db.get(AppUser, int(values["tenant_id"])) is None:
        return ServiceResult.invalid({"tenant_id": ["does not exist"]})

    old: Optional[Contract] = db.scalar(
        select(Contract).where(
            Contract.property_id == prop.id,
            Contract.user_id == scope.user_id,
            Contract.archived.is_(False),
        )
    )

    try:
        if old is not None:
            _archive(db, scope, old)
            db.flush()
            audit_write(
                db,
                actor_user_id=scope.user_id,
                action="contract.supersede",
                entity_type="Contract",
                entity_id=old.id,
                before={"archived": False},
                after={"archived": True},
            )

        row = Contract(user_id=scope.user_id, **values)
        db.add(row)
        db.flush()

        audit_write(
            db,
            actor_user_id=scope.user_id,
            action="contract.create",
            entity_type="Contract",
            entity_id=row.id,
            after=row.model_dump(),
        )
        db.commit()
    except IntegrityError:
        # another request created a live contract for this property since our read
        db.rollback()
        log.warning("contract create lost race", extra={"property_id": values["property_id"], "user_id": scope.user_id})
        return ServiceResult.invalid({"property_id": ["property already has an active contract; retry"]})
    except Exception:
        db.rollback()
        raise

    db.refresh(row)
    log.info(
        "contract created",
        extra={"contract_id": row.id, "property_id": row.property_id, "user_id": scope.user_id},
    )

    sink.emit(
        db,
        user_id=scope.user_id,
        actor_user_id=scope.user_id,
        event_type="contract.created",
        property_id=row.property_id,
        payload={"contract_id": row.id, "tenant_id": row.tenant_id},
    )
    if old is not None:
        log.info("contract superseded", extra={"contract_id": old.id, "property_id": old.property_id})
        sink.emit(
            db,
            user_id=scope.user_id,
            actor_user_id=scope.user_id,
            event_type="contract.archived",
            property_id=old.property_id,
            payload={"contract_id": old.id, "superseded_by": row.id},
        )

    return ServiceResult.success(row)


def _owned_contract(db: Session, scope: Principal, contract_id: int) -> ServiceResult[Contract]:
    row = db.get(Contract, int(contract_id))
    if row is None or row.archived:
        return ServiceResult.not_found("contract not found")
    if row.user_id != scope.user_id:
        return ServiceResult.unauthorized("contract belongs to another owner")
    return ServiceResult.success(row)


def update_contract(
    db: Session,
    scope: Principal,
    contract_id: int,
    data: dict[str, Any],
    *,
    today: Optional[date] = None,
    sink: EventSink = default_sink,
) -> ServiceResult[Contract]:
    """
    Edit a contract. Rent terms can only change while the contract is still
    upcoming; after that only notes are editable and a new contract supersedes it.
    """
    found = _owned_contract(db, scope, contract_id)
    if not found.ok:
        return found
    row = found.value
    before = row.model_dump()

    merged = {**before, **{k: v for k, v in data.items() if k in CONTRACT_FIELDS}}
    errors = validate_contract_terms(merged)
    if errors:
        return ServiceResult.invalid(errors)

    values = _normalize(merged)
    if int(values["property_id"]) != row.property_id:
        return ServiceResult.invalid({"property_id": ["cannot be changed; create a new contract instead"]})

    if contract_status(row, today or business_today()) != "upcoming":
        changed = [k for k in RENT_TERMS if values[k] != getattr(row, k)]
        if changed:
            return ServiceResult.invalid({k: ["contract has started; create a new contract instead"] for k in changed})

    for k, v in values.items():
        setattr(row, k, v)
    row.updated_at = datetime.utcnow()

    audit_write(
        db,
        actor_user_id=scope.user_id,
        action="contract.update",
        entity_type="Contract",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    sink.emit(
        db,
        user_id=scope.user_id,
        actor_user_id=scope.user_id,
        event_type="contract.updated",
        property_id=row.property_id,
        payload={"contract_id": row.id},
    )
    return ServiceResult.success(row)


def archive_contract(
    db: Session,
    scope: Principal,
    contract_id: int,
    *,
    sink: EventSink = default_sink,
) -> ServiceResult[Contract]:
    """Deleting a contract archives it; payment history stays attached."""
    found = _owned_contract(db, scope, contract_id)
    if not found.ok:
        return found
    row = found.value

    _archive(db, scope, row)
    audit_write(
        db,
        actor_user_id=scope.user_id,
        action="contract.archive",
        entity_type="Contract",
        entity_id=row.id,
        before={"archived": False},
        after={"archived": True},
    )
    db.commit()

    sink.emit(
        db,
        user_id=scope.user_id,
        actor_user_id=scope.user_id,
        event_type="contract.archived",
        property_id=row.property_id,
        payload={"contract_id": row.id},
    )
    return ServiceResult.success(row)
