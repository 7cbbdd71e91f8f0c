# backend/app/schemas.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .domain.contract_rules import EXPIRATION_DAY_MAX, EXPIRATION_DAY_MIN


# -------------------- Properties --------------------

class PropertyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    address: str = Field(min_length=1, max_length=255)
    area: Optional[int] = Field(default=None, ge=0)
    rooms: Optional[int] = Field(default=None, ge=0)
    notes: str = ""


class PropertyOut(PropertyCreate):
    id: int
    user_id: int
    archived: bool
    model_config = ConfigDict(from_attributes=True)


# -------------------- Contracts --------------------

class ContractCreate(BaseModel):
    property_id: int
    tenant_id: int
    start_date: date
    end_date: date
    expiration_day: int = Field(ge=EXPIRATION_DAY_MIN, le=EXPIRATION_DAY_MAX)
    rent: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    notes: str = ""

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class ContractOut(BaseModel):
    id: int
    user_id: int
    tenant_id: int
    property_id: int
    start_date: date
    end_date: date
    expiration_day: int
    rent: Decimal
    notes: str
    archived: bool
    model_config = ConfigDict(from_attributes=True)


class UpcomingPeriodOut(BaseModel):
    period_number: int
    due_date: date
    rent: Decimal
    model_config = ConfigDict(from_attributes=True)


# -------------------- Payments --------------------

class PaymentCreate(BaseModel):
    contract_id: int
    payment_number: int = Field(gt=0)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = None


class PaymentReject(BaseModel):
    rejection_reason: str = Field(min_length=1, max_length=2000)


class PaymentOut(BaseModel):
    id: int
    contract_id: int
    user_id: int
    payment_number: int
    amount: Decimal
    notes: Optional[str] = None
    status: str
    rejection_reason: Optional[str] = None
    submitted_at: datetime
    model_config = ConfigDict(from_attributes=True)


# -------------------- Engine outputs --------------------

class PeriodRowOut(BaseModel):
    period_number: int
    due_date: date
    rent: Decimal
    accepted_total: Decimal
    outstanding: Decimal
    status: str
    amount_status: str
    is_past: bool
    overdue: bool
    delay_days: Optional[int] = None
    progress_pct: int
    payments: list[PaymentOut] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


class PropertySummaryOut(BaseModel):
    property_id: int
    property_name: str
    state: str
    contract_id: Optional[int] = None
    tenant_id: Optional[int] = None
    contract_status: Optional[str] = None
    rent: Decimal
    total_expected: Decimal
    total_income: Decimal
    collection_rate: float
    avg_delay_days: float
    days_until_start: Optional[int] = None
    days_until_end: Optional[int] = None
    model_config = ConfigDict(from_attributes=True)


class ContractMetricsOut(PropertySummaryOut):
    as_of: date
    payment_status: str
    past_due_day: bool


class AgingOut(BaseModel):
    as_of: date
    current: Decimal
    days_0_7: Decimal
    days_8_30: Decimal
    days_31_plus: Decimal
    total: Decimal


class TrendPointOut(BaseModel):
    month: str
    expected: Decimal
    received: Decimal
    model_config = ConfigDict(from_attributes=True)


class PortfolioRollupOut(BaseModel):
    as_of: date
    properties: int
    state_counts: dict[str, int]
    total_expected: Decimal
    total_income: Decimal
    collection_rate: float
    avg_delay_days: float
    model_config = ConfigDict(from_attributes=True)
