"""
Academy Backend: Route Helper Tests
====================================

What:  `read_upload` stops reading at the size limit, and `unwrap` maps
       error kinds onto the HTTP exceptions.
"""

import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from academy.exceptions import BackendUnavailableError, NotFoundError, ValidationError
from academy.results import ErrorKind, RemoteError, Result
from academy.routes.common import read_upload, unwrap
from tests.fakes import png_bytes


def upload(data: bytes, size=None, filename: str = "mat.png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        size=size,
        filename=filename,
        headers=Headers({"content-type": "image/png"}),
    )


class TestReadUpload:
    @pytest.mark.asyncio
    async def test_reads_file_within_limit(self):
        content = png_bytes()

        file = await read_upload(upload(content, size=len(content)), max_size=1024)

        assert file.content == content
        assert file.filename == "mat.png"
        assert file.content_type == "image/png"

    @pytest.mark.asyncio
    async def test_declared_size_over_limit_rejected_unread(self):
        buffer = upload(b"x" * 4096, size=4096)

        with pytest.raises(ValidationError) as info:
            await read_upload(buffer, max_size=1024)

        assert info.value.field == "file"
        assert buffer.file.tell() == 0

    @pytest.mark.asyncio
    async def test_undeclared_size_stops_one_byte_past_limit(self):
        buffer = upload(b"x" * 4096)

        with pytest.raises(ValidationError):
            await read_upload(buffer, max_size=1024)

        assert buffer.file.tell() == 1025

    @pytest.mark.asyncio
    async def test_exactly_at_limit_accepted(self):
        file = await read_upload(upload(b"x" * 1024), max_size=1024)

        assert file.size == 1024


class TestUnwrap:
    def test_success_returns_data(self):
        assert unwrap(Result.success([1, 2])) == [1, 2]

    def test_not_found_carries_resource(self):
        with pytest.raises(NotFoundError):
            unwrap(Result.failure(RemoteError(kind=ErrorKind.NOT_FOUND, message="gone")), "student", "s1")

    def test_outage_is_unavailable(self):
        with pytest.raises(BackendUnavailableError) as info:
            unwrap(Result.failure(RemoteError(kind=ErrorKind.UNAVAILABLE, message="connection refused")))

        assert info.value.context["upstream_message"] == "connection refused"
