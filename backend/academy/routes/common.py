"""
Academy Backend: Route Helpers
===============================

What:  Turns adapter `Result` values into data or HTTP-mapped exceptions.
Who:   Every route handler that calls an adapter or the session manager.

    validation          → ValidationError          400
    auth                → AuthError                401
    permission_denied   → PermissionDeniedError    403
    not_found           → NotFoundError            404
    conflict            → ConflictError            409
    unavailable         → BackendUnavailableError  502
    storage             → ValidationError          400 (the service refused the file)
    unknown             → BackendUnavailableError  502
"""

from typing import Optional, TypeVar

from fastapi import UploadFile

from academy.adapters import UploadedFile
from academy.adapters.uploads import size_message
from academy.config import settings
from academy.exceptions import (
    AcademyError,
    AuthError,
    BackendUnavailableError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from academy.results import ErrorKind, Result

T = TypeVar("T")


def to_exception(result: Result, resource: str = "resource", resource_id: Optional[str] = None) -> AcademyError:
    error = result.error
    context = {"kind": error.kind.value}
    if error.code:
        context["code"] = error.code

    if error.kind in (ErrorKind.VALIDATION, ErrorKind.STORAGE):
        return ValidationError(message=error.message, context=context)
    if error.kind == ErrorKind.AUTH:
        return AuthError(message=error.message, context=context)
    if error.kind == ErrorKind.PERMISSION_DENIED:
        return PermissionDeniedError(context=context)
    if error.kind == ErrorKind.NOT_FOUND:
        return NotFoundError(resource=resource, resource_id=resource_id, context=context)
    if error.kind == ErrorKind.CONFLICT:
        return ConflictError(message=error.message, context=context)
    context["upstream_message"] = error.message
    return BackendUnavailableError(context=context)


def unwrap(result: Result[T], resource: str = "resource", resource_id: Optional[str] = None) -> T:
    """Return `result.data`, or raise the exception matching `result.error`."""
    if result.ok:
        return result.data
    raise to_exception(result, resource, resource_id)


async def read_upload(file: UploadFile, max_size: Optional[int] = None) -> UploadedFile:
    """
    Read a multipart upload into memory, never more than one byte past
    `max_size` (default `settings.max_upload_size`).

    Raises:
        ValidationError: the declared or actual size is over the limit
    """
    limit = max_size if max_size is not None else settings.max_upload_size

    if file.size is not None and file.size > limit:
        raise ValidationError(message=size_message(file.size, limit), field="file", context={"size": file.size})

    content = await file.read(limit + 1)
    if len(content) > limit:
        raise ValidationError(message=size_message(len(content), limit), field="file", context={"size": len(content)})

    return UploadedFile(
        filename=file.filename or "",
        content_type=file.content_type or "",
        content=content,
    )
