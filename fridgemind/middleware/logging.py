"""
FridgeMind API — Request Logging Middleware
=============================================

What:  One access-log line per request: method, path, status, duration,
       request id, client IP and (once the auth gate has run) the user id.
How:   Level follows the status class: 5xx ERROR, 4xx WARNING, else INFO.
       Health probes are skipped. AI-backed routes (scan, eating-out,
       receipts, from-meal) routinely take seconds, so a slow request is
       only flagged past SLOW_REQUEST_MS.

Never logged: request bodies (base64 photos, receipts), cookies and the
Authorization header.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from fridgemind.middleware.request_id import request_id_var

logger = logging.getLogger("fridgemind.access")

SKIPPED_PATHS = {"/health"}
SLOW_REQUEST_MS = 15_000


def _level_for(status: int, duration_ms: float) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400 or duration_ms > SLOW_REQUEST_MS:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status, duration and caller for each request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        rid = request_id_var.get("")
        # Set by get_current_user; absent for anonymous and public routes
        user_id = getattr(request.state, "user_id", None) or "-"
        client_ip = request.client.host if request.client else "unknown"

        logger.log(
            _level_for(status, duration_ms),
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "user_id": user_id,
                "client_ip": client_ip,
            },
        )
        return response
