"""
Academy Backend: Auth Service Client
=====================================

What:  Async client for the hosted auth service (`/auth/v1`).
How:   Holds the current session in memory, persists it through a
       `SessionStorage`, and notifies subscribers synchronously whenever
       it changes.
Who:   Owned by `BackendClient`; driven by the session manager.

Change notifications:
    Callbacks receive `(AuthEvent, Optional[Session])` and run inline,
    before the triggering call returns. `INITIAL_SESSION` is delivered to
    each new subscriber from a task scheduled on the running loop, once the
    persisted session (if any) has been recovered.

Session recovery:
    A stored session is never trusted as-is:
    1. access token expired  → refresh it with the refresh token
    2. access token current  → confirm it with GET /user
    3. refresh refused, or the user lookup rejected twice → clear storage
       and emit SIGNED_OUT
    Transport failures propagate; a flaky network does not sign anyone out.
"""

import asyncio
import itertools
import logging
from typing import Any, Dict, Optional, Set

import httpx
from pydantic import ValidationError as PydanticValidationError

from academy.exceptions import BackendError
from academy.remote.base import send
from academy.remote.types import (
    AuthChangeCallback,
    AuthEvent,
    Session,
    SessionStorage,
    Subscription,
    User,
)

logger = logging.getLogger(__name__)


class AuthClient:
    """
    Sign-up, sign-in, sign-out, password flows and session tracking.

    Args:
        http:     Shared HTTP client (owned by the application lifespan)
        base_url: Project URL, without the `/auth/v1` suffix
        api_key:  Public API key
        storage:  Optional persistence for the session between requests
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        storage: Optional[SessionStorage] = None,
    ):
        self._http = http
        self._url = f"{base_url.rstrip('/')}/auth/v1"
        self._api_key = api_key
        self._storage = storage
        self._session: Optional[Session] = None
        self._recovered = False
        self._recover_lock = asyncio.Lock()
        self._listeners: Dict[int, AuthChangeCallback] = {}
        self._ids = itertools.count(1)
        self._pending: Set[asyncio.Task] = set()

    # ── Headers ───────────────────────────────────────────────────────────

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token or self._api_key}",
        }

    # ── Change Notifications ──────────────────────────────────────────────

    def on_auth_state_change(self, callback: AuthChangeCallback) -> Subscription:
        """
        Register `callback` for session changes.

        Must be called from within a running event loop: the initial
        notification is scheduled on it.
        """
        sub_id = next(self._ids)
        self._listeners[sub_id] = callback
        task = asyncio.get_running_loop().create_task(self._emit_initial(sub_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return Subscription(id=sub_id, _unsubscribe=self._unsubscribe)

    def _unsubscribe(self, sub_id: int) -> None:
        self._listeners.pop(sub_id, None)

    async def _emit_initial(self, sub_id: int) -> None:
        try:
            session = await self.get_session()
        except BackendError as e:
            logger.warning("Could not recover stored session: %s", e.message)
            session = None
        callback = self._listeners.get(sub_id)
        if callback is not None:
            self._invoke(callback, AuthEvent.INITIAL_SESSION, session)

    def _notify(self, event: AuthEvent, session: Optional[Session]) -> None:
        for callback in list(self._listeners.values()):
            self._invoke(callback, event, session)

    @staticmethod
    def _invoke(callback: AuthChangeCallback, event: AuthEvent, session: Optional[Session]) -> None:
        # One broken subscriber must not stop the others from hearing about the change.
        try:
            callback(event, session)
        except Exception:
            logger.exception("Auth state listener failed on %s", event.value)

    # ── Session State ─────────────────────────────────────────────────────

    def _set_session(self, session: Session, event: AuthEvent) -> None:
        self._session = session
        self._recovered = True
        if self._storage is not None:
            self._storage.save(session)
        self._notify(event, session)

    def _drop_session(self) -> None:
        had_session = self._session is not None
        self._session = None
        self._recovered = True
        if self._storage is not None:
            self._storage.clear()
        if had_session:
            self._notify(AuthEvent.SIGNED_OUT, None)

    async def get_session(self) -> Optional[Session]:
        """
        Return the current session, recovering a persisted one on first use.

        Raises:
            BackendError: when the auth service cannot be reached while
                          validating a stored session.
        """
        if self._recovered:
            return self._session
        async with self._recover_lock:
            if not self._recovered:
                await self._recover()
        return self._session

    async def _recover(self) -> None:
        raw = self._storage.load() if self._storage is not None else None
        if not raw:
            self._recovered = True
            return

        try:
            stored = Session.model_validate(raw)
        except PydanticValidationError:
            logger.info("Discarding malformed stored session")
            self._storage.clear()
            self._recovered = True
            return

        if not stored.is_expired:
            try:
                user = await self.get_user(stored.access_token)
            except BackendError as e:
                if e.status is None or e.status >= 500:
                    raise
                logger.info("Stored access token rejected (%s); refreshing", e.status)
            else:
                # Already persisted; only the in-memory copy needs the fresh user.
                self._session = stored.model_copy(update={"user": user})
                self._recovered = True
                return

        try:
            session = await self._refresh(stored.refresh_token)
        except BackendError as e:
            if e.status is None or e.status >= 500:
                raise
            logger.info("Stored session could not be refreshed; signing out locally")
            self._session = stored
            self._drop_session()
            return
        self._set_session(session, AuthEvent.TOKEN_REFRESHED)

    # ── Auth Operations ───────────────────────────────────────────────────

    async def sign_up(
        self,
        email: str,
        password: str,
        data: Optional[Dict[str, Any]] = None,
        redirect_to: Optional[str] = None,
    ) -> Optional[Session]:
        """
        Create an account.

        Returns the new session when the project auto-confirms accounts,
        otherwise None (the user must follow the confirmation email first).
        """
        params = {"redirect_to": redirect_to} if redirect_to else None
        response = await send(
            self._http,
            "POST",
            f"{self._url}/signup",
            headers=self._headers(),
            params=params,
            json={"email": email, "password": password, "data": data or {}},
        )
        payload = response.json()
        if isinstance(payload, dict) and payload.get("access_token"):
            session = Session.from_payload(payload)
            self._set_session(session, AuthEvent.SIGNED_IN)
            return session
        return None

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        response = await send(
            self._http,
            "POST",
            f"{self._url}/token",
            headers=self._headers(),
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = Session.from_payload(response.json())
        self._set_session(session, AuthEvent.SIGNED_IN)
        return session

    async def _refresh(self, refresh_token: str) -> Session:
        response = await send(
            self._http,
            "POST",
            f"{self._url}/token",
            headers=self._headers(),
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return Session.from_payload(response.json())

    async def refresh_session(self) -> Session:
        """Exchange the current refresh token for a new session."""
        current = await self.get_session()
        if current is None:
            raise BackendError(message="No session to refresh", status=401, code="session_not_found")
        session = await self._refresh(current.refresh_token)
        self._set_session(session, AuthEvent.TOKEN_REFRESHED)
        return session

    async def sign_out(self) -> None:
        """
        Drop the local session, then revoke it remotely.

        The local state is gone even when the remote call fails; the
        failure is still raised so the caller can log it.
        """
        token = self.access_token
        self._drop_session()
        if token is None:
            return
        await send(
            self._http,
            "POST",
            f"{self._url}/logout",
            headers=self._headers(token),
        )

    async def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await send(
            self._http,
            "POST",
            f"{self._url}/recover",
            headers=self._headers(),
            params=params,
            json={"email": email},
        )

    async def set_session(
        self,
        access_token: str,
        refresh_token: str,
        event: AuthEvent = AuthEvent.SIGNED_IN,
    ) -> Session:
        """
        Adopt a token pair obtained out of band, e.g. from a recovery email link.

        The access token is confirmed with the auth service before it is used.
        """
        user = await self.get_user(access_token)
        session = Session(access_token=access_token, refresh_token=refresh_token, user=user)
        self._set_session(session, event)
        return session

    async def update_user(
        self,
        password: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> User:
        session = await self.get_session()
        if session is None:
            raise BackendError(message="Auth session missing", status=401, code="session_not_found")
        body: Dict[str, Any] = {}
        if password is not None:
            body["password"] = password
        if data is not None:
            body["data"] = data
        response = await send(
            self._http,
            "PUT",
            f"{self._url}/user",
            headers=self._headers(session.access_token),
            json=body,
        )
        user = User.model_validate(response.json())
        self._set_session(session.model_copy(update={"user": user}), AuthEvent.USER_UPDATED)
        return user

    async def get_user(self, access_token: Optional[str] = None) -> User:
        token = access_token or self.access_token
        if token is None:
            raise BackendError(message="Auth session missing", status=401, code="session_not_found")
        response = await send(self._http, "GET", f"{self._url}/user", headers=self._headers(token))
        return User.model_validate(response.json())

    async def health(self) -> bool:
        await send(self._http, "GET", f"{self._url}/health", headers=self._headers())
        return True

    def close(self) -> None:
        """Drop all subscribers and cancel pending initial notifications."""
        self._listeners.clear()
        for task in list(self._pending):
            task.cancel()
