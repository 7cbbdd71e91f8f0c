# backend/app/domain/events.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import WorkflowEvent

log = logging.getLogger(__name__)


class EventSink(Protocol):
    """
    Receives change notifications after a write has committed.
    The calculation path never calls this.
    """

    def emit(
        self,
        db: Session,
        *,
        user_id: Optional[int],
        actor_user_id: Optional[int],
        event_type: str,
        property_id: Optional[int] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> None: ...


@dataclass(frozen=True)
class WorkflowEventOut:
    id: int
    user_id: Optional[int]
    actor_user_id: Optional[int]
    property_id: Optional[int]
    event_type: str
    payload: dict[str, Any]
    created_at: Optional[datetime]


class WorkflowEventSink:
    """
    Default sink: persists a WorkflowEvent row (the feed dashboards poll)
    and logs the event.
    """

    def emit(
        self,
        db: Session,
        *,
        user_id: Optional[int],
        actor_user_id: Optional[int],
        event_type: str,
        property_id: Optional[int] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> None:
        if not event_type:
            raise ValueError("event_type required")

        db.add(
            WorkflowEvent(
                user_id=user_id,
                actor_user_id=actor_user_id,
                property_id=property_id,
                event_type=str(event_type),
                payload_json=json.dumps(payload or {}, ensure_ascii=False, default=str),
                created_at=datetime.utcnow(),
            )
        )
        db.commit()
        log.info(
            "event %s",
            event_type,
            extra={"event_type": event_type, "user_id": user_id, "property_id": property_id},
        )


def list_events(db: Session, *, user_id: int, property_id: Optional[int] = None, limit: int = 200) -> list[WorkflowEventOut]:
    q = select(WorkflowEvent).where(WorkflowEvent.user_id == user_id).order_by(WorkflowEvent.id.desc())
    if property_id is not None:
        q = q.where(WorkflowEvent.property_id == int(property_id))

    out: list[WorkflowEventOut] = []
    for r in db.scalars(q.limit(int(limit))).all():
        out.append(
            WorkflowEventOut(
                id=int(r.id),
                user_id=r.user_id,
                actor_user_id=r.actor_user_id,
                property_id=r.property_id,
                event_type=str(r.event_type),
                payload=json.loads(r.payload_json) if r.payload_json else {},
                created_at=r.created_at,
            )
        )
    return out


default_sink = WorkflowEventSink()
