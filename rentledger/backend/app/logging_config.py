# backend/app/logging_config.py
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from .config import settings
from .middleware.request_id import get_acting_user_id, get_request_id

# Structured extras copied from `extra={...}` onto the JSON line.
EXTRA_FIELDS = ("user_id", "property_id", "contract_id", "payment_id", "event_type", "http")


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record: ts, level, logger, message, env, request_id,
    the acting user, ids passed via `extra`, and exc_info when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "env": settings.app_env,
        }

        rid = get_request_id()
        if rid:
            payload["request_id"] = rid
        actor = get_acting_user_id()
        if actor is not None:
            payload["actor_user_id"] = actor

        for k in EXTRA_FIELDS:
            v = getattr(record, k, None)
            if v is not None:
                payload[k] = v

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable variant for local runs (LOG_FORMAT=text)."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-5s %(name)s [%(request_id)s] %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or "-"
        return super().format(record)


def configure_logging(level: Optional[str] = None) -> None:
    lvl = (level or settings.log_level or "INFO").upper()

    root = logging.getLogger()
    root.setLevel(lvl)

    # create_app() may run more than once per process (tests, reload)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(lvl)
    handler.setFormatter(TextFormatter() if settings.log_format.lower() == "text" else JsonFormatter())
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(lvl)
    logging.getLogger("sqlalchemy.engine").setLevel(settings.sql_log_level.upper())
