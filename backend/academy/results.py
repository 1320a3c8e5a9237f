"""
Academy Backend: Typed Operation Results
=========================================

What:  `Result[T]`, the value every adapter operation returns, and
       `RemoteError`, the normalized description of what went wrong.
How:   A result carries either `data` or `error`, never both. `ok` tells
       which. Callers branch on it instead of catching exceptions.
Who:   Produced by the adapters and the session manager; unwrapped by the
       route layer (`academy.routes.common.unwrap`).

Error kinds:
    validation          input rejected (locally, or by a check constraint)
    auth                credentials or token refused by the auth service
    not_found           no such row or object
    conflict            unique or foreign-key constraint violated
    permission_denied   row-level policy refused the operation
    storage             object storage refused the upload or removal
    unavailable         service unreachable or answering 5xx
    unknown             anything else
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from academy.exceptions import BackendError

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PERMISSION_DENIED = "permission_denied"
    STORAGE = "storage"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


# Postgres SQLSTATE / table-service codes that have a specific meaning here.
_CONFLICT_CODES = {"23505", "23503"}
_VALIDATION_CODES = {"23502", "23514", "22P02", "22007", "22001", "PGRST204"}
_NOT_FOUND_CODES = {"PGRST116"}
_PERMISSION_CODES = {"42501"}


@dataclass(frozen=True)
class RemoteError:
    """What went wrong, in terms the caller can act on."""

    kind: ErrorKind
    message: str
    status: Optional[int] = None
    code: Optional[str] = None

    @classmethod
    def validation(cls, message: str) -> "RemoteError":
        return cls(kind=ErrorKind.VALIDATION, message=message)

    @classmethod
    def from_backend_error(cls, exc: BackendError, source: str = "table") -> "RemoteError":
        """
        Classify a `BackendError`.

        Args:
            exc:     The error raised by the remote client
            source:  "table", "auth" or "storage"; decides how otherwise
                     generic 4xx answers are read
        """
        status, code = exc.status, exc.code

        if status is None or status >= 500:
            kind = ErrorKind.UNAVAILABLE
        elif code in _NOT_FOUND_CODES:
            kind = ErrorKind.NOT_FOUND
        elif code in _CONFLICT_CODES:
            kind = ErrorKind.CONFLICT
        elif code in _VALIDATION_CODES:
            kind = ErrorKind.VALIDATION
        elif code in _PERMISSION_CODES:
            kind = ErrorKind.PERMISSION_DENIED
        elif source == "auth" and status != 429:
            kind = ErrorKind.AUTH
        elif status in (401, 403):
            kind = ErrorKind.PERMISSION_DENIED
        elif status == 404:
            kind = ErrorKind.NOT_FOUND
        elif status == 409:
            kind = ErrorKind.CONFLICT
        elif source == "storage":
            kind = ErrorKind.STORAGE
        elif status == 400:
            kind = ErrorKind.VALIDATION
        else:
            kind = ErrorKind.UNKNOWN

        return cls(kind=kind, message=exc.message, status=status, code=code)


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Either `data` (success) or `error` (failure).

    Build with `Result.success(...)` / `Result.failure(...)`.
    """

    data: Optional[T] = None
    error: Optional[RemoteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Optional[T] = None) -> "Result[T]":
        return cls(data=data, error=None)

    @classmethod
    def failure(cls, error: RemoteError) -> "Result[T]":
        return cls(data=None, error=error)
