"""
Academy Backend: Route Guard
=============================

What:  Decides whether a caller may see a protected route.
How:   `evaluate()` is a pure function of the session state; `RouteGuard`
       wraps it as a FastAPI dependency that waits for loading to finish
       and raises `GuardRedirect` for the app to render as a 303.
Who:   Every admin router (`dependencies=[Depends(RouteGuard("admin"))]`).

Decision table:

    is_loading        → LOADING        (never redirect while loading)
    no user           → SIGN_IN        → /auth
    role not held     → ACCESS_DENIED  → /access-denied
    otherwise         → ALLOW
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fastapi import Depends

from academy.dependencies import get_session_manager
from academy.session import SessionManager, SessionState

logger = logging.getLogger(__name__)

SIGN_IN_PATH = "/auth"
ACCESS_DENIED_PATH = "/access-denied"


class GuardDecision(str, Enum):
    LOADING = "loading"
    SIGN_IN = "sign_in"
    ACCESS_DENIED = "access_denied"
    ALLOW = "allow"


@dataclass(frozen=True)
class GuardOutcome:
    decision: GuardDecision
    location: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.decision == GuardDecision.ALLOW


class GuardRedirect(Exception):
    """Raised by `RouteGuard` to send the caller elsewhere (rendered as 303 See Other)."""

    def __init__(self, location: str, decision: GuardDecision):
        super().__init__(location)
        self.location = location
        self.decision = decision


def evaluate(state: SessionState, required_role: Optional[str] = None) -> GuardOutcome:
    """
    Gate decision for `state`.

    The session state tracks a single privileged role (the configured admin
    role), so any required role is satisfied by `is_admin`.
    """
    if state.is_loading:
        return GuardOutcome(GuardDecision.LOADING)
    if state.user is None:
        return GuardOutcome(GuardDecision.SIGN_IN, SIGN_IN_PATH)
    if required_role is not None and not state.is_admin:
        return GuardOutcome(GuardDecision.ACCESS_DENIED, ACCESS_DENIED_PATH)
    return GuardOutcome(GuardDecision.ALLOW)


class RouteGuard:
    """
    FastAPI dependency enforcing `evaluate()` for one required role.

    Usage:
        router = APIRouter(dependencies=[Depends(RouteGuard("admin"))])
    """

    def __init__(self, required_role: Optional[str] = "admin"):
        self.required_role = required_role

    async def __call__(self, manager: SessionManager = Depends(get_session_manager)) -> SessionState:
        state = await manager.wait_until_loaded()
        outcome = evaluate(state, self.required_role)
        if not outcome.allowed:
            logger.info(
                "Guard redirect to %s (user=%s, required=%s)",
                outcome.location,
                state.user.id if state.user else None,
                self.required_role,
            )
            raise GuardRedirect(outcome.location, outcome.decision)
        return state
