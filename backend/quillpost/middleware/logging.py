"""
Quillpost Backend — Request Logging Middleware
================================================

What:  One access-log line per HTTP request on the "quillpost.access" logger.
How:   Measures wall time around the downstream app and picks the level from
       the status code (5xx ERROR, 4xx WARNING, otherwise INFO).
When:  Runs inside RequestIDMiddleware so the request id is already set.

Example line:
    PUT /api/blogs/3 400 4.2ms [a1b2c3d4] from 127.0.0.1 error.idinvalid

Request bodies are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from quillpost.middleware.request_id import request_id_var

logger = logging.getLogger("quillpost.access")

# Probes hit these every few seconds
_QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status, duration, request id and client address."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        alert = response.headers.get("X-Quillpost-Error") or response.headers.get("X-Quillpost-Alert", "")

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s %s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            rid,
            client_ip,
            alert,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
