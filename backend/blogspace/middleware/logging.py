"""
BlogSpace Backend — Request Logging Middleware
================================================

What:  One access-log line per HTTP request.
How:   Measures time from middleware entry to response, then logs method,
       path, status, duration, request id, caller and client IP on the
       "blogspace.access" logger.
Who:   Applied to every request via Starlette middleware.

Log level by status class:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

What we log vs what we DON'T log:
    Log:       method, path, status, duration, IP, request ID, user id
    Never:     request bodies (passwords, post drafts), query strings
               (search terms), Authorization headers

The user id is whatever the auth dependencies resolved for the request
(request.state.user_id); anonymous requests log "-".
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from blogspace.middleware.request_id import request_id_var

logger = logging.getLogger("blogspace.access")

SKIPPED_PATHS = frozenset({"/health"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log for everything except health probes."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        fields = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "client_ip": request.client.host if request.client else "unknown",
            "user_id": getattr(request.state, "user_id", "-"),
        }
        logger.log(
            _level_for(response.status_code),
            "%(method)s %(path)s %(status)d %(duration_ms).1fms [%(request_id)s] user=%(user_id)s from %(client_ip)s",
            fields,
            extra=fields,
        )
        return response
