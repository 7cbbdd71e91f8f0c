from __future__ import annotations

from fastapi import APIRouter

from ..config import settings

router = APIRouter(tags=["meta"])


@router.get("/health")
def health():
    return {"ok": True, "engine_version": settings.engine_version}
