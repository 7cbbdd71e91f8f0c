# backend/app/routers/properties.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import Principal, require_owner
from ..db import get_db
from ..domain.audit import audit_write
from ..domain.events import default_sink
from ..models import Property
from ..schemas import ContractOut, PropertyCreate, PropertyOut
from ..services.ledger_queries import get_contract_for_property, list_properties
from ..services.ownership import must_get_property

router = APIRouter(prefix="/properties", tags=["properties"])


@router.post("", response_model=PropertyOut)
def create_property(payload: PropertyCreate, db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    row = Property(**payload.model_dump(), user_id=p.user_id, created_at=datetime.utcnow())
    db.add(row)
    db.flush()
    audit_write(
        db,
        actor_user_id=p.user_id,
        action="property.create",
        entity_type="Property",
        entity_id=row.id,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    default_sink.emit(
        db,
        user_id=p.user_id,
        actor_user_id=p.user_id,
        event_type="property.created",
        property_id=row.id,
        payload={"property_id": row.id},
    )
    return row


@router.get("", response_model=list[PropertyOut])
def list_owner_properties(db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    return list_properties(db, p)


@router.get("/{property_id}", response_model=PropertyOut)
def get_property(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    return must_get_property(db, p, property_id)


@router.get("/{property_id}/contract", response_model=Optional[ContractOut])
def get_property_contract(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    """The property's active contract, or null when it is vacant."""
    must_get_property(db, p, property_id)
    return get_contract_for_property(db, p, property_id)


@router.patch("/{property_id}", response_model=PropertyOut)
def update_property(
    property_id: int,
    payload: PropertyCreate,  # full-update for simplicity
    db: Session = Depends(get_db),
    p: Principal = Depends(require_owner),
):
    row = must_get_property(db, p, property_id)
    before = row.model_dump()

    for k, v in payload.model_dump().items():
        setattr(row, k, v)

    audit_write(
        db,
        actor_user_id=p.user_id,
        action="property.update",
        entity_type="Property",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    default_sink.emit(
        db,
        user_id=p.user_id,
        actor_user_id=p.user_id,
        event_type="property.updated",
        property_id=row.id,
        payload={"property_id": row.id},
    )
    return row


@router.delete("/{property_id}")
def archive_property(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    row = must_get_property(db, p, property_id)
    row.archived = True
    row.archived_by_id = p.user_id

    audit_write(
        db,
        actor_user_id=p.user_id,
        action="property.archive",
        entity_type="Property",
        entity_id=row.id,
        before={"archived": False},
        after={"archived": True},
    )
    db.commit()

    default_sink.emit(
        db,
        user_id=p.user_id,
        actor_user_id=p.user_id,
        event_type="property.archived",
        property_id=row.id,
        payload={"property_id": row.id},
    )
    return {"ok": True}
