"""
MarkSync Backend — Request ID Middleware
==========================================

What:  Tags every request with a short correlation ID and echoes it back in
       the X-Request-ID response header.
How:   Uses the client's X-Request-ID when present (the extension can then
       match its own error reports to server logs), otherwise generates one.
       The ID lives in a ContextVar so log calls and exception handlers deep
       in the call stack can read it without threading it through arguments.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one thread each see their own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client-supplied IDs are echoed into logs; keep them short
_MAX_CLIENT_ID_LENGTH = 64


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns a request ID and adds it to the response headers."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER, "")[:_MAX_CLIENT_ID_LENGTH] or new_request_id()

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
