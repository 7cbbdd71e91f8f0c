# backend/app/auth.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .middleware.request_id import bind_acting_user
from .models import AppUser

ROLES = ("owner", "tenant")


@dataclass(frozen=True)
class Principal:
    """The acting scope: who is calling and in which role."""

    user_id: int
    email: str
    role: str  # owner | tenant

    @property
    def is_owner(self) -> bool:
        return self.role == "owner"

    @property
    def is_tenant(self) -> bool:
        return self.role == "tenant"


def _get_user_by_email(db: Session, email: str) -> AppUser | None:
    return db.scalar(select(AppUser).where(AppUser.email == email))


def get_principal(request: Request, db: Session = Depends(get_db)) -> Principal:
    """
    Dev header scope:
      X-User-Email identifies the user, X-User-Role selects owner|tenant.
    Unknown users are provisioned when dev_auto_provision is on.
    """
    if settings.auth_mode != "dev":
        raise HTTPException(status_code=401, detail="Not authenticated")

    email = (request.headers.get(settings.dev_header_user_email) or "").strip().lower()
    role = (request.headers.get(settings.dev_header_user_role) or "owner").strip().lower()
    if not email:
        raise HTTPException(status_code=401, detail=f"Missing {settings.dev_header_user_email} for dev auth")
    if role not in ROLES:
        raise HTTPException(status_code=400, detail=f"Unknown role {role!r}")

    user = _get_user_by_email(db, email=email)
    if user is None:
        if not settings.dev_auto_provision:
            raise HTTPException(status_code=401, detail="Unknown user")
        user = AppUser(email=email, display_name=email.split("@")[0], current_role=role, created_at=datetime.utcnow())
        db.add(user)
        db.commit()
        db.refresh(user)
    elif user.current_role != role:
        user.current_role = role
        db.commit()

    bind_acting_user(user.id)
    return Principal(user_id=int(user.id), email=str(user.email), role=role)


def require_owner(p: Principal = Depends(get_principal)) -> Principal:
    if not p.is_owner:
        raise HTTPException(status_code=403, detail="Requires owner role")
    return p


def require_tenant(p: Principal = Depends(get_principal)) -> Principal:
    if not p.is_tenant:
        raise HTTPException(status_code=403, detail="Requires tenant role")
    return p
