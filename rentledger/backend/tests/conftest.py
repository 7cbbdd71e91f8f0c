# backend/tests/conftest.py
from __future__ import annotations

import os
import tempfile
from datetime import datetime

import pytest

# Must be set before app.config is imported anywhere.
_DB_FILE = os.path.join(tempfile.mkdtemp(prefix="rentledger-tests-"), "test.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("AUTH_MODE", "dev")

from fastapi.testclient import TestClient  # noqa: E402

from app.auth import Principal  # noqa: E402
from app.db import Base, SessionLocal, engine  # noqa: E402
import app.models  # noqa: E402,F401
from app.models import AppUser, Property  # noqa: E402


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def client():
    from app.main import create_app

    return TestClient(create_app())


class RecordingSink:
    """EventSink that remembers what was emitted instead of persisting it."""

    def __init__(self):
        self.events: list[dict] = []

    def emit(self, db, *, user_id, actor_user_id, event_type, property_id=None, payload=None):
        self.events.append(
            {
                "user_id": user_id,
                "actor_user_id": actor_user_id,
                "event_type": event_type,
                "property_id": property_id,
                "payload": payload or {},
            }
        )

    @property
    def types(self) -> list[str]:
        return [e["event_type"] for e in self.events]


@pytest.fixture()
def sink():
    return RecordingSink()


def mk_user(db, email: str, role: str) -> Principal:
    u = AppUser(email=email, display_name=email.split("@")[0], current_role=role, created_at=datetime.utcnow())
    db.add(u)
    db.commit()
    db.refresh(u)
    return Principal(user_id=u.id, email=u.email, role=role)


def mk_property(db, owner: Principal, name: str = "Flat A") -> Property:
    p = Property(user_id=owner.user_id, name=name, address=f"{name} street 1", area=60, rooms=2)
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


@pytest.fixture()
def owner(db) -> Principal:
    return mk_user(db, "owner@t.local", "owner")


@pytest.fixture()
def tenant(db) -> Principal:
    return mk_user(db, "tenant@t.local", "tenant")


@pytest.fixture()
def prop(db, owner) -> Property:
    return mk_property(db, owner)
