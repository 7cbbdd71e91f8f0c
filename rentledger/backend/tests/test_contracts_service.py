# backend/tests/test_contracts_service.py
from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.models import AuditEvent, Contract, WorkflowEvent
from app.services import contracts_service
from app.services.ledger_queries import get_contract_for_property

from conftest import mk_property, mk_user


def _terms(prop, tenant, **kw):
    data = {
        "property_id": prop.id,
        "tenant_id": tenant.user_id,
        "start_date": date(2026, 1, 1),
        "end_date": date(2026, 12, 31),
        "expiration_day": 5,
        "rent": Decimal("1000.00"),
    }
    data.update(kw)
    return data


def test_new_contract_supersedes_active_one(db, owner, tenant, prop, sink):
    first = contracts_service.create_contract(db, owner, _terms(prop, tenant), sink=sink)
    assert first.ok

    second = contracts_service.create_contract(
        db, owner, _terms(prop, tenant, rent=Decimal("1100"), start_date=date(2026, 7, 1)), sink=sink
    )
    assert second.ok

    active = db.scalars(
        select(Contract).where(Contract.property_id == prop.id, Contract.archived.is_(False))
    ).all()
    assert [c.id for c in active] == [second.value.id]

    old = db.get(Contract, first.value.id)
    assert old.archived is True
    assert old.archived_by_id == owner.user_id

    assert get_contract_for_property(db, owner, prop.id).id == second.value.id
    assert sink.types == ["contract.created", "contract.created", "contract.archived"]
    assert sink.events[-1]["payload"] == {"contract_id": first.value.id, "superseded_by": second.value.id}

    actions = [a.action for a in db.scalars(select(AuditEvent).order_by(AuditEvent.id)).all()]
    assert actions == ["contract.create", "contract.supersede", "contract.create"]


def test_expiration_day_out_of_range_is_invalid(db, owner, tenant, prop, sink):
    r = contracts_service.create_contract(db, owner, _terms(prop, tenant, expiration_day=21), sink=sink)
    assert not r.ok
    assert r.error == "invalid"
    assert "expiration_day" in r.field_errors
    assert sink.events == []


def test_end_before_start_and_bad_rent_are_invalid(db, owner, tenant, prop, sink):
    r = contracts_service.create_contract(
        db, owner, _terms(prop, tenant, end_date=date(2025, 12, 1), rent=Decimal("0")), sink=sink
    )
    assert r.error == "invalid"
    assert set(r.field_errors) == {"end_date", "rent"}


def test_other_owners_property_is_unauthorized(db, owner, tenant, sink):
    other = mk_user(db, "other@t.local", "owner")
    theirs = mk_property(db, other, name="Not mine")
    r = contracts_service.create_contract(db, owner, _terms(theirs, tenant), sink=sink)
    assert r.error == "unauthorized"
    assert db.scalars(select(Contract)).all() == []


def test_missing_property_is_not_found(db, owner, tenant, prop, sink):
    r = contracts_service.create_contract(db, owner, _terms(prop, tenant, property_id=9999), sink=sink)
    assert r.error == "not_found"


def test_update_cannot_move_contract_to_another_property(db, owner, tenant, prop, sink):
    c = contracts_service.create_contract(db, owner, _terms(prop, tenant), sink=sink).value
    other = mk_property(db, owner, name="Flat B")
    r = contracts_service.update_contract(db, owner, c.id, {"property_id": other.id}, sink=sink)
    assert r.error == "invalid"
    assert r.field_errors == {"property_id": ["cannot be changed; create a new contract instead"]}


def test_started_contract_rent_terms_are_frozen(db, owner, tenant, prop, sink):
    c = contracts_service.create_contract(db, owner, _terms(prop, tenant), sink=sink).value
    today = date(2026, 3, 15)

    r = contracts_service.update_contract(db, owner, c.id, {"rent": "1500.00"}, today=today, sink=sink)
    assert r.error == "invalid"
    assert r.field_errors == {"rent": ["contract has started; create a new contract instead"]}
    assert db.get(Contract, c.id).rent == Decimal("1000.00")

    r = contracts_service.update_contract(
        db, owner, c.id, {"expiration_day": 10, "end_date": date(2027, 6, 30)}, today=today, sink=sink
    )
    assert set(r.field_errors) == {"expiration_day", "end_date"}

    # notes stay editable
    r = contracts_service.update_contract(db, owner, c.id, {"notes": "keys returned"}, today=today, sink=sink)
    assert r.ok
    assert r.value.notes == "keys returned"
    assert r.value.rent == Decimal("1000.00")


def test_upcoming_contract_terms_are_editable(db, owner, tenant, prop, sink):
    c = contracts_service.create_contract(db, owner, _terms(prop, tenant), sink=sink).value
    r = contracts_service.update_contract(
        db, owner, c.id, {"rent": "1250.00"}, today=date(2025, 12, 1), sink=sink
    )
    assert r.ok
    assert r.value.rent == Decimal("1250.00")


def test_stale_read_cannot_leave_two_live_contracts(db, owner, tenant, prop, sink, monkeypatch):
    first = contracts_service.create_contract(db, owner, _terms(prop, tenant), sink=sink).value

    # the lookup of the current contract misses it, as when a concurrent request
    # commits between our read and our insert
    monkeypatch.setattr(db, "scalar", lambda *a, **kw: None)
    r = contracts_service.create_contract(db, owner, _terms(prop, tenant, rent=Decimal("900")), sink=sink)
    monkeypatch.undo()

    assert r.error == "invalid"
    assert "property_id" in r.field_errors
    live = db.scalars(select(Contract).where(Contract.property_id == prop.id, Contract.archived.is_(False))).all()
    assert [c.id for c in live] == [first.id]


def test_schema_allows_one_live_contract_per_property(db, owner, tenant, prop):
    c = contracts_service.create_contract(db, owner, _terms(prop, tenant)).value

    def dup(**kw):
        return Contract(
            user_id=owner.user_id,
            tenant_id=tenant.user_id,
            property_id=prop.id,
            start_date=date(2026, 1, 1),
            end_date=date(2026, 12, 31),
            expiration_day=5,
            rent=Decimal("1000"),
            **kw,
        )

    db.add(dup())
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()

    # archived rows do not count
    db.add(dup(archived=True))
    db.commit()
    assert db.get(Contract, c.id).archived is False


def test_non_finite_rent_is_invalid(db, owner, tenant, prop, sink):
    r = contracts_service.create_contract(db, owner, _terms(prop, tenant, rent="NaN"), sink=sink)
    assert r.field_errors == {"rent": ["must be a number"]}
    r = contracts_service.create_contract(db, owner, _terms(prop, tenant, tenant_id="abc"), sink=sink)
    assert r.field_errors == {"tenant_id": ["must be an integer"]}


def test_archive_contract_leaves_property_vacant(db, owner, tenant, prop):
    c = contracts_service.create_contract(db, owner, _terms(prop, tenant)).value
    assert contracts_service.archive_contract(db, owner, c.id).ok
    assert get_contract_for_property(db, owner, prop.id) is None

    # default sink persisted the feed rows
    types = [e.event_type for e in db.scalars(select(WorkflowEvent).order_by(WorkflowEvent.id)).all()]
    assert types == ["contract.created", "contract.archived"]
