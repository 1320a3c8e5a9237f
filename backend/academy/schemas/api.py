"""
Academy Backend: HTTP Request/Response Schemas
===============================================

What:  Bodies accepted and returned by the auth, health and dashboard
       endpoints. Entity payloads live in their own schema modules.
Who:   Route handlers (as `response_model`) and the generated OpenAPI docs.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field

from academy.schemas.base import EMAIL_PATTERN, InputModel


# ══════════════════════════════════════════════════════════════════════════
# Auth
# ══════════════════════════════════════════════════════════════════════════


class SignInRequest(InputModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    password: str = Field(min_length=1)


class SignUpRequest(InputModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    password: str = Field(min_length=6, max_length=72)
    full_name: Optional[str] = Field(default=None, max_length=200)


class ResetPasswordRequest(InputModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)


class UpdatePasswordRequest(InputModel):
    """
    New password for the signed-in user.

    Arriving from a recovery email, the client also forwards the token pair
    from the link so the password can be set without a prior sign-in.
    """

    password: str = Field(min_length=6, max_length=72)
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class UserInfo(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None


class MeResponse(BaseModel):
    """Who the caller is, as far as the session manager knows."""

    authenticated: bool
    user: Optional[UserInfo] = None
    is_admin: bool = False


class StatusMessage(BaseModel):
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Admin dashboard
# ══════════════════════════════════════════════════════════════════════════


class DashboardStats(BaseModel):
    coaches: int
    events: int
    students: int
    messages: int
    pending_students: int = Field(description="Registrations awaiting review")
    unread_messages: int


# ══════════════════════════════════════════════════════════════════════════
# Errors & health
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Uniform error body for every non-2xx JSON response.

    Example:
        {
            "error": "validation_error",
            "message": "File type 'application/pdf' is not an image",
            "details": {"field": "file"},
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or degraded")
    version: str
    backend: str = Field(description="Hosted backend reachability: reachable, unreachable")
    uptime_seconds: float
