"""
Academy Backend: Session Manager
=================================

What:  Tracks who is signed in and whether they hold the admin role.
How:   Subscribes to the auth client's change notifications and asks for
       the current session once; both paths land in the same state
       transition. Role resolution runs as a separate task, keyed on the
       user id, so the notification handler never awaits anything.
Who:   Built per request by `academy.dependencies.get_session_manager`;
       read by the route guard and the auth routes.

State machine:

    initializing ──(first session known)──▶ signed out
                                            │
                       user id appears ─────┘──▶ role loading ──▶ resolved
                                                   │
                                  user id changes ─┘ (stale lookup discarded)

    is_loading = is_initializing or is_role_loading

Role loading starts in the same transition that publishes the new user, so
no observer can see a user with a settled role flag before the lookup ran.
A lookup that errors, or whose result arrives after the user changed, never
grants admin.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Protocol

from academy.adapters.roles import RoleAdapter
from academy.config import settings
from academy.exceptions import BackendError
from academy.remote import AuthEvent, BackendClient, Session, Subscription, User
from academy.results import RemoteError, Result

logger = logging.getLogger(__name__)

StateListener = Callable[["SessionState"], None]


@dataclass(frozen=True)
class SessionState:
    user: Optional[User] = None
    session: Optional[Session] = None
    is_admin: bool = False
    is_initializing: bool = True
    is_role_loading: bool = False

    @property
    def is_loading(self) -> bool:
        return self.is_initializing or self.is_role_loading


class CancellationToken:
    """Set when the lookup it belongs to no longer matters."""

    __slots__ = ("cancelled",)

    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class AuthBackend(Protocol):
    def on_auth_state_change(self, callback: Callable[[AuthEvent, Optional[Session]], None]) -> Subscription: ...

    async def get_session(self) -> Optional[Session]: ...

    async def sign_in_with_password(self, email: str, password: str) -> Any: ...

    async def sign_up(
        self,
        email: str,
        password: str,
        data: Optional[Dict[str, Any]] = None,
        redirect_to: Optional[str] = None,
    ) -> Any: ...

    async def sign_out(self) -> None: ...

    async def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> None: ...

    async def update_user(self, password: Optional[str] = None, data: Optional[Dict[str, Any]] = None) -> Any: ...

    async def set_session(self, access_token: str, refresh_token: str, event: AuthEvent = ...) -> Any: ...


class RoleLookup(Protocol):
    async def has_role(self, user_id: str, role: str) -> Result[bool]: ...


class SessionManager:
    """
    Per-consumer session and admin-role state.

    Args:
        auth:              Auth client (or anything with the same surface)
        roles:             Role lookup, normally `RoleAdapter`
        admin_role:        Role name that makes a user an admin
        email_redirect_to: Where sign-up confirmation emails send the user
        password_redirect_to: Where password reset emails send the user
    """

    def __init__(
        self,
        auth: AuthBackend,
        roles: RoleLookup,
        admin_role: str = "admin",
        email_redirect_to: Optional[str] = None,
        password_redirect_to: Optional[str] = None,
    ):
        self._auth = auth
        self._roles = roles
        self.admin_role = admin_role
        self.email_redirect_to = email_redirect_to
        self.password_redirect_to = password_redirect_to

        self._state = SessionState()
        self._listeners: Dict[int, StateListener] = {}
        self._listener_ids = itertools.count(1)
        self._loaded = asyncio.Event()

        self._subscription: Optional[Subscription] = None
        self._observed_user_id: Optional[str] = None
        self._role_token: Optional[CancellationToken] = None
        self._role_task: Optional[asyncio.Task] = None
        self._started = False
        self._closed = False

    @classmethod
    def from_client(cls, client: BackendClient) -> "SessionManager":
        return cls(
            client.auth,
            RoleAdapter(client),
            admin_role=settings.admin_role,
            email_redirect_to=f"{settings.site_url}/",
            password_redirect_to=f"{settings.site_url}/auth?mode=update-password",
        )

    # ── Observable State ──────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call `listener` with every new state. Returns the unsubscribe function."""
        listener_id = next(self._listener_ids)
        self._listeners[listener_id] = listener

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    async def wait_until_loaded(self) -> SessionState:
        """Wait until neither the session nor the role is still being resolved."""
        await self._loaded.wait()
        return self._state

    def _set_state(self, **changes: Any) -> None:
        new_state = replace(self._state, **changes)
        if new_state == self._state:
            return
        self._state = new_state
        if new_state.is_loading:
            self._loaded.clear()
        else:
            self._loaded.set()
        for listener in list(self._listeners.values()):
            listener(new_state)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Subscribe to auth changes, then read the current session once."""
        if self._started:
            return
        self._started = True
        self._subscription = self._auth.on_auth_state_change(self._handle_auth_change)

        try:
            session = await self._auth.get_session()
        except BackendError as e:
            logger.warning("Could not read the current session: %s", e.message)
            session = None

        # A notification may already have delivered a newer session.
        if not self._closed and self._state.is_initializing:
            self._apply_session(session)

    def close(self) -> None:
        """Stop listening and abandon any role lookup still in flight."""
        self._closed = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._cancel_role_resolution()
        self._listeners.clear()

    # ── Auth Change Handling ──────────────────────────────────────────────

    def _handle_auth_change(self, event: AuthEvent, session: Optional[Session]) -> None:
        if self._closed:
            return
        logger.debug("Auth event %s (user=%s)", event.value, session.user.id if session else None)
        self._apply_session(session)

    def _apply_session(self, session: Optional[Session]) -> None:
        user = session.user if session else None
        user_id = user.id if user else None
        changes: Dict[str, Any] = {"session": session, "user": user, "is_initializing": False}

        if user is None:
            changes.update(is_admin=False, is_role_loading=False)

        user_changed = user_id != self._observed_user_id
        if user_changed:
            self._observed_user_id = user_id
            self._cancel_role_resolution()
            if user_id is not None:
                changes.update(is_admin=False, is_role_loading=True)

        self._set_state(**changes)

        if user_changed and user_id is not None:
            self._schedule_role_resolution(user_id)

    def _cancel_role_resolution(self) -> None:
        if self._role_token is not None:
            self._role_token.cancel()
            self._role_token = None
        if self._role_task is not None and not self._role_task.done():
            self._role_task.cancel()
        self._role_task = None

    def _schedule_role_resolution(self, user_id: str) -> None:
        token = CancellationToken()
        self._role_token = token
        self._role_task = asyncio.get_running_loop().create_task(self._resolve_role(user_id, token))

    async def _resolve_role(self, user_id: str, token: CancellationToken) -> None:
        is_admin = False
        try:
            result = await self._roles.has_role(user_id, self.admin_role)
            if result.ok:
                is_admin = bool(result.data)
            else:
                logger.warning("Role lookup for user %s failed: %s", user_id, result.error.message)
        except Exception:
            logger.exception("Role lookup for user %s raised; treating as non-admin", user_id)

        if token.cancelled:
            logger.debug("Discarding stale role result for user %s", user_id)
            return
        self._set_state(is_admin=is_admin, is_role_loading=False)

    # ── Operations ────────────────────────────────────────────────────────

    async def sign_in(self, email: str, password: str) -> Result[None]:
        """
        Authenticate with email and password.

        The new session reaches `state` through the change notification,
        not through this return value.
        """
        if not email or not password:
            return Result.failure(RemoteError.validation("Email and password are required"))
        try:
            await self._auth.sign_in_with_password(email, password)
        except BackendError as e:
            error = RemoteError.from_backend_error(e, source="auth")
            logger.info("Sign-in refused (%s): %s", error.kind.value, error.message)
            return Result.failure(error)
        return Result.success(None)

    async def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Result[None]:
        """Create an account. Success does not mean the caller is signed in."""
        if not email or not password:
            return Result.failure(RemoteError.validation("Email and password are required"))
        try:
            await self._auth.sign_up(
                email,
                password,
                data={"full_name": display_name},
                redirect_to=self.email_redirect_to,
            )
        except BackendError as e:
            error = RemoteError.from_backend_error(e, source="auth")
            logger.info("Sign-up refused (%s): %s", error.kind.value, error.message)
            return Result.failure(error)
        return Result.success(None)

    async def sign_out(self) -> None:
        """
        Clear the local session and role state, then ask the service to
        revoke the session. Never raises; calling it twice is harmless.
        """
        self._cancel_role_resolution()
        self._observed_user_id = None
        self._set_state(
            user=None,
            session=None,
            is_admin=False,
            is_role_loading=False,
            is_initializing=False,
        )
        try:
            await self._auth.sign_out()
        except Exception as e:
            logger.warning("Remote sign-out failed; local session already cleared: %s", e)

    async def reset_password(self, email: str) -> Result[None]:
        """
        Request a password reset email.

        The address is not checked locally; whether it belongs to an
        account is the auth service's business.
        """
        if not email:
            return Result.failure(RemoteError.validation("Email is required"))
        try:
            await self._auth.reset_password_for_email(email, redirect_to=self.password_redirect_to)
        except BackendError as e:
            error = RemoteError.from_backend_error(e, source="auth")
            logger.info("Password reset request refused (%s): %s", error.kind.value, error.message)
            return Result.failure(error)
        return Result.success(None)

    async def recover_session(self, access_token: str, refresh_token: str) -> Result[None]:
        """Adopt the token pair carried by a password recovery link."""
        try:
            await self._auth.set_session(access_token, refresh_token, event=AuthEvent.PASSWORD_RECOVERY)
        except BackendError as e:
            error = RemoteError.from_backend_error(e, source="auth")
            logger.info("Recovery link rejected (%s): %s", error.kind.value, error.message)
            return Result.failure(error)
        return Result.success(None)

    async def update_password(self, password: str) -> Result[None]:
        if not password:
            return Result.failure(RemoteError.validation("Password is required"))
        try:
            await self._auth.update_user(password=password)
        except BackendError as e:
            error = RemoteError.from_backend_error(e, source="auth")
            logger.info("Password update refused (%s): %s", error.kind.value, error.message)
            return Result.failure(error)
        return Result.success(None)
