"""
Academy Backend: Test Configuration (conftest.py)
==================================================

What:  Shared fixtures: the in-memory backend from `tests.fakes` and an
       ASGI client for the app wired to it.

Fixtures:
    fake_backend     FakeBackend with an empty database
    http_client      httpx.AsyncClient routed to fake_backend
    session_storage  dict-backed session storage
    backend_client   BackendClient using both of the above
    app / test_client  FastAPI app and an AsyncClient over ASGITransport
    session_cookie   builds the Cookie header that signs an email in
"""

import os
import time
from typing import Dict

# Settings are read at import time; these must be set before `academy` loads.
os.environ["BACKEND_URL"] = "http://backend.test"
os.environ["BACKEND_ANON_KEY"] = "anon-test-key"
os.environ["SITE_URL"] = "http://site.test"
os.environ["LOG_LEVEL"] = "WARNING"

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from academy.remote import BackendClient
from tests.fakes import ANON_KEY, BACKEND_URL, FakeBackend, MemoryStorage


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def http_client(fake_backend):
    async with httpx.AsyncClient(transport=fake_backend.transport()) as client:
        yield client


@pytest.fixture
def session_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def backend_client(http_client, session_storage) -> BackendClient:
    return BackendClient(http_client, BACKEND_URL, ANON_KEY, session_storage=session_storage)


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Smallest JPEG-shaped payload: SOI, JFIF header, EOI."""
    return b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


@pytest.fixture
def app(http_client):
    """The FastAPI app with its shared HTTP client pointed at the fake backend."""
    from academy.main import create_app

    application = create_app()
    application.state.http_client = http_client
    return application


@pytest_asyncio.fixture
async def test_client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def session_cookie(fake_backend):
    """Build the Cookie header that signs the given email in; `expired=True` forces a token refresh."""
    from academy.config import settings
    from academy.dependencies import CookieSessionStorage

    def build(email: str, expired: bool = False) -> Dict[str, str]:
        session = fake_backend.session_for(email)
        if expired:
            session = session.model_copy(update={"expires_at": int(time.time()) - 60})
        value = CookieSessionStorage.encode(session)
        return {"Cookie": f"{settings.auth_cookie_name_prefix}-session={value}"}

    return build
