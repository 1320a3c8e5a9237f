"""
Academy Backend: Image Upload Pipeline
=======================================

What:  Validates an image and stores it in a public storage bucket.
How:   Checks run locally, cheapest first, and a rejected file never
       reaches the network:
       1. Declared content type must start with `image/`
       2. Size must be above zero and at most `settings.max_upload_size`
       3. Content type detected from the file's header bytes (libmagic)
          must be one of `ALLOWED_IMAGE_TYPES`
       4. Object path is `<prefix><entity id>-<epoch ms>.<ext>`, with the
          extension taken from the detected type
       5. Upload, then return the public URL
Who:   Coach, event and gallery photo adapters.

The declared type and filename come from the browser and are never trusted
for what gets stored. SVG is not accepted.

Replacing an image never deletes the old object here; callers that know
the previous URL remove it with `ImageStore.remove_public_url()`.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import magic

from academy.config import settings
from academy.exceptions import BackendError
from academy.remote import BackendClient
from academy.results import ErrorKind, RemoteError, Result

logger = logging.getLogger(__name__)

# Detected content type → stored object extension.
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/avif": "avif",
}


@dataclass(frozen=True)
class UploadedFile:
    """An in-memory file as received from a multipart form."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


def detect_image_type(file: UploadedFile) -> Result[str]:
    """
    Content type of `file` according to its header bytes.

    Fails with kind `validation` when the bytes are not an allowed image,
    and with kind `storage` when libmagic itself cannot run.
    """
    try:
        mime_type = magic.from_buffer(file.content, mime=True)
    except magic.MagicException as e:
        logger.error("Image type detection failed for '%s': %s", file.filename, e)
        return Result.failure(
            RemoteError(kind=ErrorKind.STORAGE, message="Could not verify the file type. Please try again.")
        )

    if mime_type not in ALLOWED_IMAGE_TYPES:
        logger.info("Upload '%s' declared %s but contains %s", file.filename, file.content_type, mime_type)
        return Result.failure(
            RemoteError.validation(
                f"File content type '{mime_type}' is not supported. "
                f"Please upload a {', '.join(ext.upper() for ext in ALLOWED_IMAGE_TYPES.values())} image."
            )
        )
    return Result.success(mime_type)


def check_image(file: UploadedFile, max_size: Optional[int] = None) -> Result[str]:
    """
    Run every local check on `file`; on success the result holds the
    detected content type.

    Args:
        file:      The candidate upload
        max_size:  Byte limit; defaults to `settings.max_upload_size`
    """
    limit = max_size if max_size is not None else settings.max_upload_size

    if not (file.content_type or "").lower().startswith("image/"):
        return Result.failure(
            RemoteError.validation(
                f"File type '{file.content_type or 'unknown'}' is not an image. Please upload an image file."
            )
        )
    if file.size == 0:
        return Result.failure(RemoteError.validation("The uploaded file is empty."))
    if file.size > limit:
        return Result.failure(RemoteError.validation(size_message(file.size, limit)))
    return detect_image_type(file)


def validate_image(file: UploadedFile, max_size: Optional[int] = None) -> Optional[RemoteError]:
    """Return why `file` cannot be uploaded, or None when it can."""
    return check_image(file, max_size).error


def size_message(size: int, limit: int) -> str:
    return (
        f"File size ({size / (1024 * 1024):.1f}MB) exceeds maximum of "
        f"{limit / (1024 * 1024):.0f}MB. Please upload a smaller image."
    )


def epoch_millis() -> int:
    return int(time.time() * 1000)


class ImageStore:
    """
    Uploads images into one bucket.

    Args:
        client:  Backend client whose storage service is used
        bucket:  Bucket name
        prefix:  Folder inside the bucket, e.g. "photos/"
        clock:   Millisecond clock, replaced in tests
    """

    def __init__(
        self,
        client: BackendClient,
        bucket: str,
        prefix: str = "",
        clock: Callable[[], int] = epoch_millis,
    ):
        self._bucket = client.storage.bucket(bucket)
        self.bucket = bucket
        self.prefix = prefix
        self._clock = clock

    def object_path(self, owner_id: str, mime_type: str) -> str:
        return f"{self.prefix}{owner_id}-{self._clock()}.{ALLOWED_IMAGE_TYPES[mime_type]}"

    async def upload(self, file: UploadedFile, owner_id: str) -> Result[str]:
        """Validate and upload `file`; on success the result holds its public URL."""
        checked = check_image(file)
        if not checked.ok:
            logger.info("Rejected upload to %s: %s", self.bucket, checked.error.message)
            return Result.failure(checked.error)

        mime_type = checked.data
        path = self.object_path(owner_id, mime_type)
        try:
            await self._bucket.upload(path, file.content, mime_type)
        except BackendError as e:
            error = RemoteError.from_backend_error(e, source="storage")
            logger.warning("Upload to %s/%s failed: %s", self.bucket, path, error.message)
            return Result.failure(error)

        logger.info("Uploaded %s/%s (%d bytes, %s)", self.bucket, path, file.size, mime_type)
        return Result.success(self._bucket.get_public_url(path))

    async def remove_public_url(self, url: Optional[str]) -> Result[None]:
        """
        Delete the object behind a public URL of this bucket.

        URLs pointing elsewhere (external links, other buckets) are left
        alone and reported as success.
        """
        path = self._bucket.path_from_public_url(url) if url else None
        if path is None:
            return Result.success(None)
        try:
            await self._bucket.remove([path])
        except BackendError as e:
            error = RemoteError.from_backend_error(e, source="storage")
            logger.warning("Removing %s/%s failed: %s", self.bucket, path, error.message)
            return Result.failure(error)
        logger.info("Removed %s/%s", self.bucket, path)
        return Result.success(None)
