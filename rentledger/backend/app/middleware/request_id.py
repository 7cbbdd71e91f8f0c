# backend/app/middleware/request_id.py
from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Any, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# One mutable dict per request. Sync dependencies run in a worker thread with a
# copied context, so they mutate the dict rather than calling ContextVar.set().
request_ctx: ContextVar[Optional[dict[str, Any]]] = ContextVar("request_ctx", default=None)


def get_request_id() -> str | None:
    ctx = request_ctx.get()
    return ctx.get("request_id") if ctx else None


def get_acting_user_id() -> int | None:
    ctx = request_ctx.get()
    return ctx.get("actor_user_id") if ctx else None


def bind_acting_user(user_id: int) -> None:
    ctx = request_ctx.get()
    if ctx is not None:
        ctx["actor_user_id"] = int(user_id)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Per-request correlation: reuses an incoming X-Request-ID or mints a UUID4,
    exposes it on request.state and to log records, and returns it on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = (request.headers.get(REQUEST_ID_HEADER) or "").strip() or uuid.uuid4().hex
        request.state.request_id = rid

        token = request_ctx.set({"request_id": rid})
        try:
            resp = await call_next(request)
        finally:
            request_ctx.reset(token)
        resp.headers[REQUEST_ID_HEADER] = rid
        return resp
