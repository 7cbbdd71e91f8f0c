# backend/app/models.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base
from .domain.ledger import Review, review_from_fields


# -----------------------------
# Users / audit / events
# -----------------------------
class AppUser(Base):
    __tablename__ = "app_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    current_role: Mapped[str] = mapped_column(String(20), nullable=False, default="owner")  # owner|tenant
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    actor_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=True)

    action: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(80), nullable=False)

    before_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    after_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class WorkflowEvent(Base):
    __tablename__ = "workflow_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Owner whose dashboards should refresh.
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=True, index=True)
    actor_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=True)
    property_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("properties.id"), nullable=True, index=True)

    event_type: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    payload_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


# -----------------------------
# Properties / contracts / payments
# -----------------------------
class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(160), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    area: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    archived_by_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    contracts: Mapped[List["Contract"]] = relationship(back_populates="property")

    def model_dump(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "address": self.address,
            "area": self.area,
            "rooms": self.rooms,
            "notes": self.notes,
            "archived": self.archived,
        }


class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (
        Index("ix_contracts_property_archived", "property_id", "archived"),
        Index("ix_contracts_tenant_archived", "tenant_id", "archived"),
        # at most one live contract per property; supersession archives the old one first
        Index(
            "uq_contracts_property_active",
            "property_id",
            unique=True,
            sqlite_where=text("NOT archived"),
            postgresql_where=text("NOT archived"),
        ),
        CheckConstraint("end_date > start_date", name="ck_contracts_end_after_start"),
        CheckConstraint("expiration_day BETWEEN 1 AND 20", name="ck_contracts_expiration_day"),
        CheckConstraint("rent > 0", name="ck_contracts_rent_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Owner who created the contract.
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False)
    property_id: Mapped[int] = mapped_column(Integer, ForeignKey("properties.id"), nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiration_day: Mapped[int] = mapped_column(Integer, nullable=False)
    rent: Mapped[Decimal] = mapped_column(Numeric(12, 2, asdecimal=True), nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    archived_by_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    property: Mapped["Property"] = relationship(back_populates="contracts")
    tenant: Mapped["AppUser"] = relationship(foreign_keys=[tenant_id])
    payments: Mapped[List["Payment"]] = relationship(back_populates="contract")

    def model_dump(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "tenant_id": self.tenant_id,
            "property_id": self.property_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "expiration_day": self.expiration_day,
            "rent": str(self.rent),
            "notes": self.notes,
            "archived": self.archived,
        }


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_contract_number_status", "contract_id", "payment_number", "status"),
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        CheckConstraint("payment_number > 0", name="ck_payments_number_positive"),
        CheckConstraint(
            "(status = 'rejected') = (rejection_reason IS NOT NULL)",
            name="ck_payments_rejection_reason",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    contract_id: Mapped[int] = mapped_column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    # Submitting tenant.
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)

    payment_number: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2, asdecimal=True), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending|accepted|rejected
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    contract: Mapped["Contract"] = relationship(back_populates="payments")

    @property
    def review(self) -> Review:
        return review_from_fields(self.status, self.rejection_reason)

    def apply_review(self, review: Review) -> None:
        # status and reason are only ever written together, from a variant
        self.status = review.status
        self.rejection_reason = review.rejection_reason
        self.updated_at = datetime.utcnow()

    def model_dump(self) -> dict:
        return {
            "id": self.id,
            "contract_id": self.contract_id,
            "user_id": self.user_id,
            "payment_number": self.payment_number,
            "amount": str(self.amount),
            "status": self.status,
            "rejection_reason": self.rejection_reason,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
        }
