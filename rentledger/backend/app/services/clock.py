from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from ..config import settings


def business_today() -> date:
    return datetime.now(ZoneInfo(settings.business_tz)).date()


def resolve_as_of(as_of: Optional[date]) -> date:
    """The request's "today": the explicit as_of, else the business-zone date."""
    return as_of or business_today()
