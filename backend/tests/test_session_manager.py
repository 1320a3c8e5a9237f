"""
Academy Backend: Session Manager Tests
=======================================

What:  Session and admin-role state transitions.
How:   A scripted auth stand-in and a role lookup whose answers are
       futures, so each test decides exactly when a lookup completes.
       The last group runs the manager against the in-memory backend.

Covered:
    ✅ Role loading starts in the same transition as the new user
    ✅ Lookup errors and exceptions never grant admin
    ✅ A late answer for a previous user is discarded
    ✅ Sign-out is local first, idempotent, and never raises
    ✅ Password reset for an unknown email succeeds
"""

import asyncio
import itertools
from typing import Dict, List, Optional

import pytest

from academy.adapters import RoleAdapter
from academy.exceptions import BackendError
from academy.remote import AuthEvent, Session, Subscription, User
from academy.results import ErrorKind, RemoteError, Result
from academy.session import SessionManager, SessionState


def make_session(user_id: str, email: Optional[str] = None) -> Session:
    return Session(
        access_token=f"token-{user_id}",
        refresh_token=f"refresh-{user_id}",
        user=User(id=user_id, email=email or f"{user_id}@academy.test"),
    )


class ScriptedAuth:
    """Auth stand-in: the test drives notifications by calling `emit`."""

    def __init__(self, session: Optional[Session] = None):
        self.session = session
        self.listeners: Dict[int, object] = {}
        self._ids = itertools.count(1)
        self.sign_out_calls = 0
        self.sign_out_error: Optional[Exception] = None
        self.reset_requests: List[tuple] = []
        self.passwords = {"admin@academy.test": "pw123456"}

    def on_auth_state_change(self, callback) -> Subscription:
        sub_id = next(self._ids)
        self.listeners[sub_id] = callback
        return Subscription(id=sub_id, _unsubscribe=lambda i: self.listeners.pop(i, None))

    def emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        self.session = session
        for callback in list(self.listeners.values()):
            callback(event, session)

    async def get_session(self):
        return self.session

    async def sign_in_with_password(self, email, password):
        if self.passwords.get(email) != password:
            raise BackendError("Invalid login credentials", status=400, code="invalid_credentials")
        self.emit(AuthEvent.SIGNED_IN, make_session("admin-1", email))

    async def sign_up(self, email, password, data=None, redirect_to=None):
        return None

    async def sign_out(self):
        self.sign_out_calls += 1
        had_session = self.session is not None
        self.session = None
        if had_session:
            self.emit(AuthEvent.SIGNED_OUT, None)
        if self.sign_out_error is not None:
            raise self.sign_out_error

    async def reset_password_for_email(self, email, redirect_to=None):
        self.reset_requests.append((email, redirect_to))

    async def update_user(self, password=None, data=None):
        return None

    async def set_session(self, access_token, refresh_token, event=AuthEvent.SIGNED_IN):
        self.emit(event, make_session("recovered"))


class ControlledRoles:
    """Role lookup whose answers are futures resolved by the test."""

    def __init__(self):
        self.pending: Dict[str, asyncio.Future] = {}
        self.calls: List[str] = []

    async def has_role(self, user_id: str, role: str) -> Result[bool]:
        self.calls.append(user_id)
        future = self.pending.setdefault(user_id, asyncio.get_running_loop().create_future())
        return await future

    def answer(self, user_id: str, result: Result[bool]) -> None:
        self.pending.setdefault(user_id, asyncio.get_running_loop().create_future()).set_result(result)

    def fail(self, user_id: str, exc: Exception) -> None:
        self.pending.setdefault(user_id, asyncio.get_running_loop().create_future()).set_exception(exc)


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


def record(manager: SessionManager) -> List[SessionState]:
    states: List[SessionState] = []
    manager.subscribe(states.append)
    return states


class TestStartup:
    @pytest.mark.asyncio
    async def test_initial_state_is_loading(self):
        manager = SessionManager(ScriptedAuth(), ControlledRoles())

        assert manager.state.is_initializing
        assert manager.state.is_loading
        assert manager.state.user is None

    @pytest.mark.asyncio
    async def test_no_session_settles_signed_out(self):
        manager = SessionManager(ScriptedAuth(), ControlledRoles())

        await manager.start()

        state = await asyncio.wait_for(manager.wait_until_loaded(), timeout=1)
        assert state.user is None
        assert not state.is_admin
        assert not state.is_loading

    @pytest.mark.asyncio
    async def test_get_session_failure_is_treated_as_signed_out(self):
        auth = ScriptedAuth()

        async def broken():
            raise BackendError("down")

        auth.get_session = broken
        manager = SessionManager(auth, ControlledRoles())

        await manager.start()

        assert manager.state.user is None
        assert not manager.state.is_loading


class TestRoleResolution:
    @pytest.mark.asyncio
    async def test_role_loading_set_together_with_user(self):
        """No observer may see the new user with a settled role flag before the lookup ran."""
        roles = ControlledRoles()
        manager = SessionManager(ScriptedAuth(make_session("u1")), roles)
        states = record(manager)

        await manager.start()

        first_with_user = next(s for s in states if s.user is not None)
        assert first_with_user.is_role_loading
        assert not first_with_user.is_admin
        assert first_with_user.is_loading

        roles.answer("u1", Result.success(True))
        await settle()

        assert manager.state.is_admin
        assert not manager.state.is_loading
        for state in states:
            if state.user is not None and not state.is_role_loading:
                assert state.is_admin

    @pytest.mark.asyncio
    async def test_wait_until_loaded_waits_for_role(self):
        roles = ControlledRoles()
        manager = SessionManager(ScriptedAuth(make_session("u1")), roles)
        await manager.start()

        waiter = asyncio.ensure_future(manager.wait_until_loaded())
        await settle()
        assert not waiter.done()

        roles.answer("u1", Result.success(False))
        state = await asyncio.wait_for(waiter, timeout=1)
        assert state.user.id == "u1"
        assert not state.is_admin

    @pytest.mark.asyncio
    async def test_lookup_error_fails_closed(self):
        roles = ControlledRoles()
        manager = SessionManager(ScriptedAuth(make_session("u1")), roles)
        await manager.start()

        roles.answer("u1", Result.failure(RemoteError(kind=ErrorKind.UNAVAILABLE, message="down")))
        await settle()

        assert not manager.state.is_admin
        assert not manager.state.is_role_loading

    @pytest.mark.asyncio
    async def test_lookup_exception_fails_closed(self):
        roles = ControlledRoles()
        manager = SessionManager(ScriptedAuth(make_session("u1")), roles)
        await manager.start()

        roles.fail("u1", RuntimeError("boom"))
        await settle()

        assert not manager.state.is_admin
        assert not manager.state.is_role_loading

    @pytest.mark.asyncio
    async def test_stale_answer_for_previous_user_is_discarded(self):
        roles = ControlledRoles()
        auth = ScriptedAuth(make_session("alice"))
        manager = SessionManager(auth, roles)
        await manager.start()
        await settle()
        assert roles.calls == ["alice"]

        # Alice's answer lands in the same tick as the switch to Bob.
        roles.answer("alice", Result.success(True))
        auth.emit(AuthEvent.SIGNED_IN, make_session("bob"))
        await settle()
        assert manager.state.is_role_loading
        roles.answer("bob", Result.success(False))
        await settle()

        assert manager.state.user.id == "bob"
        assert not manager.state.is_admin
        assert not manager.state.is_role_loading

    @pytest.mark.asyncio
    async def test_previous_user_answering_last_is_discarded(self):
        roles = ControlledRoles()
        auth = ScriptedAuth(make_session("alice"))
        manager = SessionManager(auth, roles)
        await manager.start()
        await settle()

        auth.emit(AuthEvent.SIGNED_IN, make_session("bob"))
        roles.answer("bob", Result.success(False))
        await settle()
        if not roles.pending["alice"].done():
            roles.answer("alice", Result.success(True))
        await settle()

        assert manager.state.user.id == "bob"
        assert not manager.state.is_admin

    @pytest.mark.asyncio
    async def test_token_refresh_for_same_user_does_not_reload_role(self):
        roles = ControlledRoles()
        auth = ScriptedAuth(make_session("u1"))
        manager = SessionManager(auth, roles)
        await manager.start()
        roles.answer("u1", Result.success(True))
        await settle()

        auth.emit(AuthEvent.TOKEN_REFRESHED, make_session("u1"))
        await settle()

        assert roles.calls == ["u1"]
        assert manager.state.is_admin
        assert not manager.state.is_loading

    @pytest.mark.asyncio
    async def test_signed_out_event_clears_admin(self):
        roles = ControlledRoles()
        auth = ScriptedAuth(make_session("u1"))
        manager = SessionManager(auth, roles)
        await manager.start()
        roles.answer("u1", Result.success(True))
        await settle()

        auth.emit(AuthEvent.SIGNED_OUT, None)

        assert manager.state.user is None
        assert not manager.state.is_admin
        assert not manager.state.is_loading


class TestOperations:
    @pytest.mark.asyncio
    async def test_sign_in_requires_both_fields(self):
        auth = ScriptedAuth()
        manager = SessionManager(auth, ControlledRoles())

        result = await manager.sign_in("", "pw")

        assert result.error.kind == ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_wrong_password_is_auth_error(self):
        manager = SessionManager(ScriptedAuth(), ControlledRoles())
        await manager.start()

        result = await manager.sign_in("admin@academy.test", "wrong")

        assert result.error.kind == ErrorKind.AUTH
        assert manager.state.user is None

    @pytest.mark.asyncio
    async def test_sign_out_is_idempotent_and_never_raises(self):
        roles = ControlledRoles()
        auth = ScriptedAuth(make_session("u1"))
        auth.sign_out_error = BackendError("network down")
        manager = SessionManager(auth, roles)
        await manager.start()
        roles.answer("u1", Result.success(True))
        await settle()

        await manager.sign_out()
        await manager.sign_out()

        assert manager.state.user is None
        assert manager.state.session is None
        assert not manager.state.is_admin
        assert not manager.state.is_loading
        assert auth.sign_out_calls == 2

    @pytest.mark.asyncio
    async def test_sign_out_discards_pending_lookup(self):
        roles = ControlledRoles()
        manager = SessionManager(ScriptedAuth(make_session("u1")), roles)
        await manager.start()

        await manager.sign_out()
        await settle()

        assert not manager.state.is_admin
        assert not manager.state.is_loading

    @pytest.mark.asyncio
    async def test_reset_password_passes_redirect(self):
        auth = ScriptedAuth()
        manager = SessionManager(auth, ControlledRoles(), password_redirect_to="http://site.test/auth?mode=update-password")

        result = await manager.reset_password("someone@example.com")

        assert result.ok
        assert auth.reset_requests == [("someone@example.com", "http://site.test/auth?mode=update-password")]

    @pytest.mark.asyncio
    async def test_recover_session_signs_in_recovery_user(self):
        roles = ControlledRoles()
        manager = SessionManager(ScriptedAuth(), roles)
        await manager.start()

        result = await manager.recover_session("access", "refresh")
        roles.answer("recovered", Result.success(False))
        await settle()

        assert result.ok
        assert manager.state.user.id == "recovered"

    @pytest.mark.asyncio
    async def test_close_stops_listening(self):
        auth = ScriptedAuth()
        manager = SessionManager(auth, ControlledRoles())
        await manager.start()

        manager.close()

        assert auth.listeners == {}


class TestAgainstBackend:
    @pytest.mark.asyncio
    async def test_admin_sign_in_end_to_end(self, backend_client, fake_backend):
        fake_backend.add_user("admin@academy.test", "pw123456", admin=True)
        manager = SessionManager(backend_client.auth, RoleAdapter(backend_client))
        await manager.start()

        result = await manager.sign_in("admin@academy.test", "pw123456")
        state = await asyncio.wait_for(manager.wait_until_loaded(), timeout=1)

        assert result.ok
        assert state.user.email == "admin@academy.test"
        assert state.is_admin
        manager.close()

    @pytest.mark.asyncio
    async def test_regular_user_is_not_admin(self, backend_client, fake_backend):
        fake_backend.add_user("student@academy.test", "pw123456")
        manager = SessionManager(backend_client.auth, RoleAdapter(backend_client))
        await manager.start()

        await manager.sign_in("student@academy.test", "pw123456")
        state = await asyncio.wait_for(manager.wait_until_loaded(), timeout=1)

        assert state.user is not None
        assert not state.is_admin
        manager.close()

    @pytest.mark.asyncio
    async def test_role_lookup_outage_fails_closed(self, backend_client, fake_backend):
        fake_backend.add_user("admin@academy.test", "pw123456", admin=True)
        fake_backend.failures[("GET", "/rest/v1/user_roles")] = (503, {"message": "unavailable"})
        manager = SessionManager(backend_client.auth, RoleAdapter(backend_client))
        await manager.start()

        await manager.sign_in("admin@academy.test", "pw123456")
        state = await asyncio.wait_for(manager.wait_until_loaded(), timeout=1)

        assert state.user is not None
        assert not state.is_admin
        manager.close()

    @pytest.mark.asyncio
    async def test_reset_password_for_unknown_email(self, backend_client, fake_backend):
        manager = SessionManager(backend_client.auth, RoleAdapter(backend_client))

        result = await manager.reset_password("nobody@example.com")

        assert result.ok
        assert fake_backend.recovery_emails == ["nobody@example.com"]
