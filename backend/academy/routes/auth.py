"""
Academy Backend: Authentication Routes
=======================================

What:  Sign-in, sign-up, sign-out, password reset/update, "who am I", and
       the signed-in user's own profile.
How:   Each handler delegates to the request's `SessionManager`. The auth
       client persists session changes into the session cookie on the
       way out, so a successful sign-in sets the cookie and a sign-out
       clears it.
Who:   The /auth page and the site header.

Credentials never appear in logs; refused attempts are logged with the
error kind only.
"""

import logging

from fastapi import APIRouter, Depends

from academy.adapters import ProfileAdapter
from academy.dependencies import get_profiles, get_session_manager
from academy.exceptions import NotFoundError
from academy.guard import RouteGuard
from academy.routes.common import unwrap
from academy.schemas.api import (
    ErrorResponse,
    MeResponse,
    ResetPasswordRequest,
    SignInRequest,
    SignUpRequest,
    StatusMessage,
    UpdatePasswordRequest,
    UserInfo,
)
from academy.schemas.profile import Profile, ProfileUpdate
from academy.session import SessionManager, SessionState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _me(state: SessionState) -> MeResponse:
    if state.user is None:
        return MeResponse(authenticated=False)
    return MeResponse(
        authenticated=True,
        user=UserInfo(id=state.user.id, email=state.user.email, full_name=state.user.full_name),
        is_admin=state.is_admin,
    )


@router.post(
    "/sign-in",
    response_model=MeResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Sign in with email and password",
)
async def sign_in(body: SignInRequest, manager: SessionManager = Depends(get_session_manager)) -> MeResponse:
    """Returns the signed-in user once their admin role has been resolved."""
    unwrap(await manager.sign_in(body.email, body.password))
    return _me(await manager.wait_until_loaded())


@router.post(
    "/sign-up",
    response_model=StatusMessage,
    status_code=201,
    responses={401: {"description": "Sign-up refused", "model": ErrorResponse}},
    summary="Create an account",
)
async def sign_up(body: SignUpRequest, manager: SessionManager = Depends(get_session_manager)) -> StatusMessage:
    unwrap(await manager.sign_up(body.email, body.password, body.full_name))
    return StatusMessage(message="Account created! Please check your email to verify your account.")


@router.post("/sign-out", response_model=StatusMessage, summary="Sign out")
async def sign_out(manager: SessionManager = Depends(get_session_manager)) -> StatusMessage:
    await manager.sign_out()
    return StatusMessage(message="Signed out")


@router.post(
    "/reset-password",
    response_model=StatusMessage,
    responses={401: {"description": "Request refused", "model": ErrorResponse}},
    summary="Send a password reset email",
)
async def reset_password(
    body: ResetPasswordRequest, manager: SessionManager = Depends(get_session_manager)
) -> StatusMessage:
    """Same answer whether or not an account exists for the address."""
    unwrap(await manager.reset_password(body.email))
    return StatusMessage(message="If an account exists for that email, a reset link is on its way.")


@router.post(
    "/update-password",
    response_model=StatusMessage,
    responses={401: {"description": "Not signed in or link expired", "model": ErrorResponse}},
    summary="Set a new password",
)
async def update_password(
    body: UpdatePasswordRequest, manager: SessionManager = Depends(get_session_manager)
) -> StatusMessage:
    if body.access_token and body.refresh_token:
        unwrap(await manager.recover_session(body.access_token, body.refresh_token))
    unwrap(await manager.update_password(body.password))
    return StatusMessage(message="Password updated")


@router.get("/me", response_model=MeResponse, summary="Current user and admin status")
async def me(manager: SessionManager = Depends(get_session_manager)) -> MeResponse:
    return _me(await manager.wait_until_loaded())


# ── Own profile (any signed-in user) ──────────────────────────────────────

signed_in = RouteGuard(required_role=None)


@router.get(
    "/profile",
    response_model=Profile,
    responses={303: {"description": "Not signed in: redirect to /auth"}},
    summary="The signed-in user's profile",
)
async def get_profile(
    state: SessionState = Depends(signed_in),
    profiles: ProfileAdapter = Depends(get_profiles),
) -> Profile:
    profile = unwrap(await profiles.get_for_user(state.user.id), "profile", state.user.id)
    if profile is None:
        raise NotFoundError(resource="profile", resource_id=state.user.id)
    return profile


@router.patch(
    "/profile",
    response_model=Profile,
    responses={303: {"description": "Not signed in: redirect to /auth"}},
    summary="Edit the signed-in user's profile",
)
async def update_profile(
    body: ProfileUpdate,
    state: SessionState = Depends(signed_in),
    profiles: ProfileAdapter = Depends(get_profiles),
) -> Profile:
    return unwrap(await profiles.update_for_user(state.user.id, body), "profile", state.user.id)
