# backend/tests/test_payments_service.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from app.domain.ledger import accepted_total, period_status
from app.models import Payment
from app.services import contracts_service, payments_service
from app.services.ledger_queries import fetch_payments_by_period, fetch_payments_for_contract

from conftest import mk_user


def _contract(db, owner, tenant, prop):
    return contracts_service.create_contract(
        db,
        owner,
        {
            "property_id": prop.id,
            "tenant_id": tenant.user_id,
            "start_date": date(2026, 1, 1),
            "end_date": date(2026, 12, 31),
            "expiration_day": 1,
            "rent": Decimal("1000"),
        },
    ).value


def _submit(db, tenant, contract, amount, n=1, sink=None, now=None):
    kw = {"now": now or datetime(2026, 1, 2, 9, 0)}
    if sink is not None:
        kw["sink"] = sink
    return payments_service.submit_payment(
        db, tenant, {"contract_id": contract.id, "payment_number": n, "amount": amount}, **kw
    )


def test_submitted_payment_starts_pending(db, owner, tenant, prop, sink):
    c = _contract(db, owner, tenant, prop)
    r = _submit(db, tenant, c, "400.00", sink=sink)
    assert r.ok
    assert r.value.status == "pending"
    assert r.value.rejection_reason is None
    assert sink.types == ["payment.submitted"]
    assert sink.events[0]["user_id"] == owner.user_id


def test_reject_requires_reason(db, owner, tenant, prop):
    c = _contract(db, owner, tenant, prop)
    pay = _submit(db, tenant, c, "1000").value

    r = payments_service.reject_payment(db, owner, pay.id, "   ")
    assert r.error == "invalid"
    assert db.get(Payment, pay.id).status == "pending"


def test_rejection_then_resubmission(db, owner, tenant, prop, sink):
    c = _contract(db, owner, tenant, prop)

    first = _submit(db, tenant, c, "1000").value
    rejected = payments_service.reject_payment(db, owner, first.id, "transfer not received", sink=sink)
    assert rejected.ok
    assert rejected.value.status == "rejected"
    assert rejected.value.rejection_reason == "transfer not received"

    # a rejected payment frees the allowance again
    second = _submit(db, tenant, c, "1000", now=datetime(2026, 1, 6, 9, 0))
    assert second.ok
    accepted = payments_service.accept_payment(db, owner, second.value.id, sink=sink)
    assert accepted.ok
    assert accepted.value.rejection_reason is None

    payments = fetch_payments_for_contract(db, owner, c.id)
    assert len(payments) == 2
    assert period_status(c, payments, 1) == "paid"
    assert sink.types == ["payment.rejected", "payment.accepted"]


def test_submission_over_allowance_is_invalid(db, owner, tenant, prop):
    c = _contract(db, owner, tenant, prop)
    assert _submit(db, tenant, c, "700").ok

    r = _submit(db, tenant, c, "400")
    assert r.error == "invalid"
    assert r.field_errors["amount"] == ["exceeds remaining allowance of $300.00 for this month"]

    # other periods are unaffected
    assert _submit(db, tenant, c, "1000", n=2).ok


def test_invalid_amounts_and_numbers(db, owner, tenant, prop):
    c = _contract(db, owner, tenant, prop)
    r = payments_service.submit_payment(db, tenant, {"contract_id": c.id, "payment_number": 0, "amount": "-5"})
    assert r.error == "invalid"
    assert set(r.field_errors) == {"amount", "payment_number"}

    r = payments_service.submit_payment(db, tenant, {"contract_id": c.id, "payment_number": 1, "amount": "abc"})
    assert r.field_errors == {"amount": ["must be a number"]}


def test_only_contract_tenant_can_submit(db, owner, tenant, prop):
    c = _contract(db, owner, tenant, prop)
    stranger = mk_user(db, "stranger@t.local", "tenant")
    assert _submit(db, stranger, c, "100").error == "unauthorized"


def test_only_contract_owner_can_review(db, owner, tenant, prop, sink):
    c = _contract(db, owner, tenant, prop)
    pay = _submit(db, tenant, c, "1000").value

    intruder = mk_user(db, "intruder@t.local", "owner")
    assert payments_service.accept_payment(db, intruder, pay.id, sink=sink).error == "unauthorized"
    assert payments_service.accept_payment(db, owner, 9999, sink=sink).error == "not_found"
    assert db.get(Payment, pay.id).status == "pending"
    assert sink.events == []


def test_payments_grouped_by_period_are_scoped(db, owner, tenant, prop):
    c = _contract(db, owner, tenant, prop)
    _submit(db, tenant, c, "300", n=1)
    _submit(db, tenant, c, "200", n=1)
    _submit(db, tenant, c, "1000", n=2)

    grouped = fetch_payments_by_period(db, tenant, c.id)
    assert sorted(grouped) == [1, 2]
    assert sorted(p.amount for p in grouped[1]) == [Decimal("200"), Decimal("300")]

    stranger = mk_user(db, "nosy@t.local", "owner")
    assert fetch_payments_by_period(db, stranger, c.id) == {}


def test_review_is_final_for_a_submission(db, owner, tenant, prop, sink):
    c = _contract(db, owner, tenant, prop)
    first = _submit(db, tenant, c, "1000").value
    assert payments_service.reject_payment(db, owner, first.id, "bounced", sink=sink).ok

    second = _submit(db, tenant, c, "1000", now=datetime(2026, 1, 5, 9, 0)).value
    assert payments_service.accept_payment(db, owner, second.id, sink=sink).ok

    again = payments_service.accept_payment(db, owner, first.id, sink=sink)
    assert again.error == "invalid"
    assert again.field_errors == {"status": ["payment already rejected"]}

    flip = payments_service.reject_payment(db, owner, second.id, "changed my mind", sink=sink)
    assert flip.field_errors == {"status": ["payment already accepted"]}

    assert db.get(Payment, first.id).status == "rejected"
    assert db.get(Payment, second.id).status == "accepted"
    assert accepted_total(fetch_payments_for_contract(db, owner, c.id), c.id, 1) == Decimal("1000")
    assert sink.types == ["payment.rejected", "payment.accepted"]


def test_malformed_submission_fields_are_field_errors(db, owner, tenant, prop):
    c = _contract(db, owner, tenant, prop)
    r = payments_service.submit_payment(db, tenant, {"contract_id": c.id, "payment_number": 1, "amount": "NaN"})
    assert r.field_errors == {"amount": ["must be a number"]}

    r = payments_service.submit_payment(db, tenant, {"contract_id": c.id, "payment_number": 1, "amount": "Infinity"})
    assert r.field_errors == {"amount": ["must be a number"]}

    r = payments_service.submit_payment(db, tenant, {"contract_id": c.id, "payment_number": "abc", "amount": "10"})
    assert r.field_errors == {"payment_number": ["must be an integer"]}

    r = payments_service.submit_payment(db, tenant, {"contract_id": "x", "payment_number": 1, "amount": "10"})
    assert r.field_errors == {"contract_id": ["must be an integer"]}
