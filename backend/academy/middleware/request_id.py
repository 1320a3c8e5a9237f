"""
Academy Backend: Request ID Middleware
=======================================

What:  Tags every request with a short correlation ID.
How:   Reuses an incoming `X-Request-ID` header when the caller sent one,
       otherwise generates one. The ID is stored in a ContextVar (for log
       lines and error bodies) and on `request.state`, and echoed back in
       the response header.
Who:   Every request; error handlers put the ID in their JSON body.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local; concurrent requests on one event loop each see their own value.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        # Not reset afterwards: the outermost 500 handler runs after this returns.
        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
