"""
Quillpost Backend — Request ID Middleware
===========================================

What:  Assigns a correlation id to every request and echoes it back.
How:   Reuses the client's X-Request-ID when present, otherwise generates
       a short UUID; stores it in a ContextVar for loggers and error
       handlers, and in request.state for route handlers.
Who:   Applied to every request; read by RequestLoggingMiddleware and by the
       exception handlers (the `request_id` field of error bodies).
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Sets request_id_var for the duration of the request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        # Not reset afterwards: the outermost 500 handler still reads it
        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
