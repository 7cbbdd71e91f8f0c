# backend/app/middleware/structured_logging.py
from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..config import settings
from .request_id import get_acting_user_id

log = logging.getLogger("rentledger.request")

# Liveness probes would drown the request log.
QUIET_PATHS = ("/api/health",)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    One access line per request: method, path, status, latency, role header
    and the acting user once auth has resolved it.

    Added before RequestIDMiddleware so it runs inside it and the formatter
    can attach the request id.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        t0 = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            if request.url.path not in QUIET_PATHS:
                level = logging.WARNING if status_code >= 500 else logging.INFO
                log.log(
                    level,
                    "%s %s -> %s",
                    request.method,
                    request.url.path,
                    status_code,
                    extra={
                        "user_id": get_acting_user_id(),
                        "http": {
                            "query": request.url.query or "",
                            "status_code": status_code,
                            "latency_ms": round((time.perf_counter() - t0) * 1000, 1),
                            "role": request.headers.get(settings.dev_header_user_role),
                        },
                    },
                )
