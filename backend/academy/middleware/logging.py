"""
Academy Backend: Access Log Middleware
=======================================

What:  One log line per request: method, path, status, duration, client.
How:   Level follows the status: 5xx ERROR, 4xx WARNING, everything else
       INFO. Guard redirects (303) therefore log at INFO.
Who:   Every request except the health check.

Never logged: request bodies (form submissions carry names, emails and
phone numbers), cookies, and the Authorization header.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from academy.middleware.request_id import request_id_var

logger = logging.getLogger("academy.access")

QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        status = response.status_code
        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
