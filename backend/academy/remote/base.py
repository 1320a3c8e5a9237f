"""
Academy Backend: Remote Transport Helpers
==========================================

What:  One place where HTTP exchanges with the hosted backend happen.
How:   `send()` wraps `httpx.AsyncClient.request`, turns transport failures
       and non-2xx responses into `BackendError`, and leaves decoding to
       the caller.
Who:   Used by the auth, query and storage clients.

The three services speak different error dialects:

    tables   {"code": "23505", "message": "...", "details": "...", "hint": null}
    auth     {"code": 400, "error_code": "invalid_credentials", "msg": "..."}
             or the older {"error": "invalid_grant", "error_description": "..."}
    storage  {"statusCode": "413", "error": "Payload too large", "message": "..."}

`error_from_response()` reads all of them into the same `BackendError`.
"""

import logging
from typing import Any, Callable, Dict, Optional

import httpx

from academy.exceptions import BackendError

logger = logging.getLogger(__name__)

HeadersFactory = Callable[[], Dict[str, str]]


def error_from_response(response: httpx.Response) -> BackendError:
    """Build a `BackendError` from a failed response, whatever its dialect."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    message = (
        body.get("msg")
        or body.get("message")
        or body.get("error_description")
        or body.get("error")
        or response.reason_phrase
        or f"HTTP {response.status_code}"
    )

    code = body.get("error_code")
    if code is None and isinstance(body.get("code"), str):
        code = body["code"]

    details = body.get("details") or body.get("hint")

    return BackendError(
        message=str(message),
        status=response.status_code,
        code=code,
        details=str(details) if details is not None else None,
        context={"url": str(response.request.url.copy_with(query=None))},
    )


async def send(
    http: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    headers: Dict[str, str],
    params: Any = None,
    json: Any = None,
    content: Optional[bytes] = None,
) -> httpx.Response:
    """
    Perform one request against the hosted backend.

    Raises:
        BackendError: with `status=None` when the service could not be reached,
                      or with the response status when it answered with an error.
    """
    try:
        response = await http.request(
            method,
            url,
            headers=headers,
            params=params,
            json=json,
            content=content,
        )
    except httpx.TransportError as e:
        logger.warning("Backend unreachable: %s %s (%s)", method, url, type(e).__name__)
        raise BackendError(
            message="Could not reach the data service",
            context={"url": url, "error": str(e)},
        ) from e

    if response.is_error:
        error = error_from_response(response)
        logger.info(
            "Backend returned %d for %s %s: %s",
            response.status_code,
            method,
            response.request.url.path,
            error.message,
        )
        raise error

    return response
