"""
Academy Backend: Request Dependencies
======================================

What:  FastAPI dependencies that build the per-request backend client,
       session manager and adapters.
How:   The application lifespan owns one `httpx.AsyncClient` in
       `app.state.http_client`. Each request wraps it in a `BackendClient`
       whose auth session lives in an HTTP-only cookie, then starts a
       `SessionManager` on top of it. FastAPI caches dependencies per
       request, so the guard and the route handler share both objects.
Who:   Route handlers and `academy.guard.RouteGuard`.

Cookie layout:
    <prefix>-session   base64url(JSON session: tokens, expiry, user id/email)

The cookie only carries what is needed to resume; the auth service
re-validates it on every request that reads the session.
"""

import base64
import json
import logging
from functools import partial
from typing import Any, AsyncGenerator, Callable, Dict, Optional, Type, TypeVar

from fastapi import Depends, Request, Response

from academy.adapters import (
    CoachAdapter,
    EventAdapter,
    GalleryPhotoAdapter,
    GalleryVideoAdapter,
    MessageAdapter,
    ProfileAdapter,
    RoleAdapter,
    StudentAdapter,
)
from academy.config import settings
from academy.exceptions import ProviderMissingError
from academy.remote import BackendClient, Session
from academy.session import SessionManager

logger = logging.getLogger(__name__)

AdapterT = TypeVar("AdapterT")
ResponseT = TypeVar("ResponseT", bound=Response)


class CookieSessionStorage:
    """Persists the auth session in one HTTP-only cookie."""

    def __init__(
        self,
        request: Request,
        response: Response,
        cookie_name: Optional[str] = None,
        secure: Optional[bool] = None,
        max_age: Optional[int] = None,
    ):
        self._request = request
        self._response = response
        self.cookie_name = cookie_name or f"{settings.auth_cookie_name_prefix}-session"
        self._secure = settings.auth_cookie_secure if secure is None else secure
        self._max_age = max_age or settings.auth_cookie_max_age
        self._pending: Optional[Dict[str, Any]] = None
        self._cleared = False

    @staticmethod
    def encode(session: Session) -> str:
        payload = session.model_dump(
            include={
                "access_token": True,
                "refresh_token": True,
                "token_type": True,
                "expires_at": True,
                "user": {"id", "email", "user_metadata"},
            }
        )
        raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    @staticmethod
    def decode(value: str) -> Optional[Dict[str, Any]]:
        try:
            padded = value + "=" * (-len(value) % 4)
            data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        except (ValueError, UnicodeError):
            return None
        return data if isinstance(data, dict) else None

    def load(self) -> Optional[Dict[str, Any]]:
        if self._cleared:
            return None
        if self._pending is not None:
            return self._pending
        value = self._request.cookies.get(self.cookie_name)
        return self.decode(value) if value else None

    def save(self, session: Session) -> None:
        value = self.encode(session)
        self._pending = self.decode(value)
        self._cleared = False
        self._record(value)

    def clear(self) -> None:
        self._pending = None
        self._cleared = True
        self._record(None)

    def write(self, response: Response, value: Optional[str]) -> None:
        """Set the cookie to `value` on `response`, or delete it when None."""
        if value is None:
            response.delete_cookie(
                self.cookie_name,
                path="/",
                httponly=True,
                secure=self._secure,
                samesite="lax",
            )
            return
        response.set_cookie(
            self.cookie_name,
            value,
            max_age=self._max_age,
            httponly=True,
            secure=self._secure,
            samesite="lax",
            path="/",
        )

    def _record(self, value: Optional[str]) -> None:
        self.write(self._response, value)
        # Exception handlers answer with a new response; they replay the last write from here.
        self._request.state.session_cookie_write = partial(self.write, value=value)


def apply_session_cookie(request: Request, response: ResponseT) -> ResponseT:
    """Copy the session cookie written during this request onto `response`."""
    write = getattr(request.state, "session_cookie_write", None)
    if write is not None:
        write(response)
    return response


def get_backend_client(request: Request, response: Response) -> BackendClient:
    """
    Backend client for this request, sharing the application's HTTP client.

    Raises:
        ProviderMissingError: the app was not started through its lifespan
                              (or a test forgot to set `app.state.http_client`).
    """
    http = getattr(request.app.state, "http_client", None)
    if http is None:
        raise ProviderMissingError(
            message="Session manager requested outside of its provider: app.state.http_client is not set",
            context={"path": request.url.path},
        )
    return BackendClient(
        http,
        settings.backend_url,
        settings.backend_anon_key,
        session_storage=CookieSessionStorage(request, response),
    )


async def get_session_manager(
    client: BackendClient = Depends(get_backend_client),
) -> AsyncGenerator[SessionManager, None]:
    """Started session manager for this request; closed when the response is done."""
    manager = SessionManager.from_client(client)
    await manager.start()
    try:
        yield manager
    finally:
        manager.close()
        client.auth.close()


def _provide(adapter_cls: Type[AdapterT]) -> Callable[[BackendClient], AdapterT]:
    def dependency(client: BackendClient = Depends(get_backend_client)) -> AdapterT:
        return adapter_cls(client)

    dependency.__name__ = f"get_{adapter_cls.__name__}"
    return dependency


get_coaches = _provide(CoachAdapter)
get_events = _provide(EventAdapter)
get_students = _provide(StudentAdapter)
get_messages = _provide(MessageAdapter)
get_profiles = _provide(ProfileAdapter)
get_roles = _provide(RoleAdapter)
get_gallery_photos = _provide(GalleryPhotoAdapter)
get_gallery_videos = _provide(GalleryVideoAdapter)
