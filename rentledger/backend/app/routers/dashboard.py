# backend/app/routers/dashboard.py
from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import Principal, require_owner
from ..config import settings
from ..db import get_db
from ..domain.events import list_events
from ..domain.metrics import income_trend, outstanding_aging, portfolio_rollup
from ..schemas import AgingOut, PortfolioRollupOut, PropertySummaryOut, TrendPointOut
from ..services.clock import resolve_as_of
from ..services.ledger_queries import (
    fetch_active_contracts,
    fetch_payments_for_contracts,
    list_contracts,
    property_metrics,
)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/properties", response_model=list[PropertySummaryOut])
def dashboard_properties(
    as_of: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_owner),
):
    """One performance card per property: occupancy state, expected vs collected, delay."""
    summaries = property_metrics(db, p, resolve_as_of(as_of))
    return [PropertySummaryOut.model_validate(s) for s in summaries]


@router.get("/portfolio_rollup", response_model=PortfolioRollupOut)
def dashboard_portfolio_rollup(
    as_of: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_owner),
):
    today = resolve_as_of(as_of)
    r = portfolio_rollup(property_metrics(db, p, today))
    return PortfolioRollupOut(as_of=today, **asdict(r))


@router.get("/aging", response_model=AgingOut)
def dashboard_aging(
    as_of: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_owner),
):
    today = resolve_as_of(as_of)
    contracts = fetch_active_contracts(db, p, today)
    payments = fetch_payments_for_contracts(db, [c.id for c in contracts])
    b = outstanding_aging(contracts, payments, today)
    return AgingOut(as_of=today, total=b.total, **asdict(b))


@router.get("/income_trend", response_model=list[TrendPointOut])
def dashboard_income_trend(
    months: Optional[int] = Query(default=None, ge=1),
    as_of: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_owner),
):
    n = min(months or settings.default_trend_months, settings.max_trend_months)
    today = resolve_as_of(as_of)
    contracts = list_contracts(db, p)
    payments = fetch_payments_for_contracts(db, [c.id for c in contracts])
    return [TrendPointOut.model_validate(t) for t in income_trend(contracts, payments, today, n)]


@router.get("/events", response_model=list[dict])
def dashboard_events(
    property_id: Optional[int] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_owner),
) -> Any:
    """Recent change feed; clients poll this to refresh their views."""
    return [asdict(e) for e in list_events(db, user_id=p.user_id, property_id=property_id, limit=limit)]
