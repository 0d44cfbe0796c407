"""
FridgeMind API — Request ID Middleware
========================================

What:  Assigns every request a short correlation id and echoes it back.
How:   A client-supplied X-Request-ID is reused when it looks like an id
       (letters, digits, dashes; at most 64 chars). Anything else is replaced
       with 8 hex chars of a UUID4, so callers cannot write arbitrary text
       into access-log lines. The id lives in a ContextVar for loggers and in
       request.state for handlers, and error bodies carry it as `request_id`.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"

_CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]{1,64}$")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def accepted_client_id(value: Optional[str]) -> Optional[str]:
    if value and _CLIENT_ID_PATTERN.match(value):
        return value
    return None


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propagates or creates X-Request-ID for every request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = accepted_client_id(request.headers.get(REQUEST_ID_HEADER)) or new_request_id()

        # Not reset after the response: the catch-all 500 handler runs
        # outside this dispatch and still needs the id
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
