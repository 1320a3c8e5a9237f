"""
Academy Backend: Remote Service Types
======================================

What:  Typed shapes for what the hosted auth and table services send back.
How:   Pydantic models parse the auth payloads (unknown fields ignored);
       small dataclasses describe query responses and subscriptions.
Who:   Produced by `academy.remote.auth` and `academy.remote.query`;
       consumed by the session manager and the adapters.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol

from pydantic import BaseModel, Field

# Access tokens are treated as expired slightly early so a request never
# leaves with a token that dies in flight.
EXPIRY_MARGIN_SECONDS = 10


class AuthEvent(str, Enum):
    """Names of the change notifications emitted by the auth client."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


class User(BaseModel):
    """An authenticated identity as reported by the auth service."""

    id: str = Field(description="Opaque user identifier")
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None

    model_config = {"extra": "ignore", "frozen": True}

    @property
    def full_name(self) -> Optional[str]:
        return self.user_metadata.get("full_name")


class Session(BaseModel):
    """
    Token pair plus the user it belongs to.

    `expires_at` is an epoch timestamp in seconds. The auth service sends
    `expires_in` and, in newer versions, `expires_at`; when only the former
    is present the absolute time is derived on parse.
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    user: User

    model_config = {"extra": "ignore", "frozen": True}

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Session":
        data = dict(payload)
        if data.get("expires_at") is None and data.get("expires_in") is not None:
            data["expires_at"] = int(time.time()) + int(data["expires_in"])
        return cls.model_validate(data)

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at - EXPIRY_MARGIN_SECONDS <= time.time()


AuthChangeCallback = Callable[[AuthEvent, Optional[Session]], None]


class SessionStorage(Protocol):
    """
    Where a session survives between requests.

    The web layer supplies a cookie-backed implementation; tests use a dict.
    """

    def load(self) -> Optional[Dict[str, Any]]: ...

    def save(self, session: Session) -> None: ...

    def clear(self) -> None: ...


@dataclass
class Subscription:
    """Handle returned by `on_auth_state_change`; call `unsubscribe()` once done."""

    id: int
    _unsubscribe: Callable[[int], None] = field(repr=False)

    def unsubscribe(self) -> None:
        self._unsubscribe(self.id)


@dataclass
class APIResponse:
    """Result of a table query: the decoded rows (or row) plus an optional exact count."""

    data: Any = None
    count: Optional[int] = None
