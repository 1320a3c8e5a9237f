"""
Academy Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the error scenarios the site has.
How:   Each exception carries a message and optional context dict. Global
       handlers (registered in main.py) turn them into structured JSON
       responses with the matching HTTP status code.
Who:   Raised by the remote client, by routes unwrapping adapter results,
       and by dependencies that detect integration bugs.

Exception Hierarchy:
    AcademyError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── AuthError                → 401 Unauthorized (bad credentials, expired token)
    ├── PermissionDeniedError    → 403 Forbidden (row-level policy refused)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (constraint violation)
    ├── BackendUnavailableError  → 502 Bad Gateway (hosted service unreachable)
    ├── BackendError             → raised by the remote client only; adapters
    │                              translate it into Result values
    └── ProviderMissingError     → 500, programmer error (missing wiring)

Expected failures travel as `Result` values up to the route layer. Only
the route layer converts them into these exceptions, and only programmer
errors are raised from deeper layers.
"""

from typing import Any, Dict, Optional


class AcademyError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where handlers allow)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(AcademyError):
    """
    Raised when client input fails validation.

    When:    Bad upload type or size, missing required fields, unknown enum value.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthError(AcademyError):
    """
    Raised when an auth operation is refused.

    When:    Invalid credentials, unverified account, expired reset token.
    HTTP:    401 Unauthorized

    Never retried automatically; the message is shown to the user as-is.
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(AcademyError):
    """Row-level policy refused the operation. HTTP 403."""

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(AcademyError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(AcademyError):
    """Unique, foreign-key or check constraint violated. HTTP 409."""

    def __init__(
        self,
        message: str = "The request conflicts with existing data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BackendUnavailableError(AcademyError):
    """
    Raised when the hosted backend cannot be reached or answers with a 5xx.

    HTTP:    502 Bad Gateway

    Details (status, upstream message) are logged server-side only.
    """

    def __init__(
        self,
        message: str = "The data service is temporarily unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BackendError(AcademyError):
    """
    Raised by the remote client when a call to the hosted backend fails.

    What:    Normalizes the three error dialects (auth, tables, storage) and
             transport failures into one shape.
    Who:     Raised by `academy.remote`; caught by the adapters and the
             session manager, which turn it into a `RemoteError` value.

    Attributes:
        status:   HTTP status code, or None for transport failures
        code:     Service error code (Postgres SQLSTATE, PostgREST code,
                  auth error code) when one was provided
        details:  Extra text from the service (constraint name, hint)
    """

    def __init__(
        self,
        message: str = "Request to the hosted backend failed",
        status: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({k: v for k, v in (("status", status), ("code", code)) if v is not None})
        super().__init__(message=message, context=ctx)
        self.status = status
        self.code = code
        self.details = details


class ProviderMissingError(AcademyError):
    """
    Raised when a session-dependent component is used without its provider.

    What:    The application state lacks the shared HTTP client, so no
             session manager can be built. This is an integration bug.
    HTTP:    500 (never expected in a correctly wired app)
    """

    def __init__(
        self,
        message: str = "Session manager requested outside of its provider",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
