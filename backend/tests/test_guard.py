"""
Academy Backend: Route Guard Tests
===================================

What:  The gate decision table and the FastAPI dependency built on it.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from academy.guard import (
    ACCESS_DENIED_PATH,
    SIGN_IN_PATH,
    GuardDecision,
    GuardRedirect,
    RouteGuard,
    evaluate,
)
from academy.remote import User
from academy.session import SessionState

ALICE = User(id="u1", email="alice@academy.test")


class TestEvaluate:
    @pytest.mark.parametrize(
        "state",
        [
            SessionState(),
            SessionState(is_initializing=False, user=ALICE, is_role_loading=True),
            SessionState(is_initializing=True, user=None),
        ],
    )
    def test_loading_never_redirects(self, state):
        outcome = evaluate(state, "admin")
        assert outcome.decision == GuardDecision.LOADING
        assert outcome.location is None
        assert not outcome.allowed

    def test_signed_out_goes_to_sign_in(self):
        outcome = evaluate(SessionState(is_initializing=False), "admin")
        assert outcome.decision == GuardDecision.SIGN_IN
        assert outcome.location == SIGN_IN_PATH

    def test_missing_role_is_denied(self):
        state = SessionState(is_initializing=False, user=ALICE, is_admin=False)
        outcome = evaluate(state, "admin")
        assert outcome.decision == GuardDecision.ACCESS_DENIED
        assert outcome.location == ACCESS_DENIED_PATH

    def test_admin_is_allowed(self):
        state = SessionState(is_initializing=False, user=ALICE, is_admin=True)
        assert evaluate(state, "admin").allowed

    def test_no_required_role_only_needs_a_user(self):
        state = SessionState(is_initializing=False, user=ALICE, is_admin=False)
        assert evaluate(state, None).allowed
        assert evaluate(SessionState(is_initializing=False), None).decision == GuardDecision.SIGN_IN


class StubManager:
    """Returns a fixed state once `release()` is called."""

    def __init__(self, state: SessionState):
        self._state = state
        self._ready = asyncio.Event()

    def release(self) -> None:
        self._ready.set()

    async def wait_until_loaded(self) -> SessionState:
        await self._ready.wait()
        return self._state


class TestRouteGuard:
    @pytest.mark.asyncio
    async def test_waits_for_loading_before_deciding(self):
        manager = StubManager(SessionState(is_initializing=False, user=ALICE, is_admin=True))
        check = asyncio.ensure_future(RouteGuard("admin")(manager))
        await asyncio.sleep(0)
        assert not check.done()

        manager.release()
        state = await asyncio.wait_for(check, timeout=1)
        assert state.user == ALICE

    @pytest.mark.asyncio
    async def test_signed_out_raises_redirect(self):
        manager = MagicMock()
        manager.wait_until_loaded = AsyncMock(return_value=SessionState(is_initializing=False))

        with pytest.raises(GuardRedirect) as info:
            await RouteGuard("admin")(manager)
        assert info.value.location == SIGN_IN_PATH
        assert info.value.decision == GuardDecision.SIGN_IN
        manager.wait_until_loaded.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_admin_raises_access_denied(self):
        manager = MagicMock()
        manager.wait_until_loaded = AsyncMock(return_value=SessionState(is_initializing=False, user=ALICE))

        with pytest.raises(GuardRedirect) as info:
            await RouteGuard("admin")(manager)
        assert info.value.location == ACCESS_DENIED_PATH
