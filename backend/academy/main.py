"""
Academy Backend: FastAPI Application Factory
=============================================

What:  Builds the FastAPI application for the academy site and back office.
How:   `create_app()` wires middleware, exception handlers and routers; the
       lifespan owns the one pooled `httpx.AsyncClient` every request's
       backend client shares.
Who:   uvicorn (`uvicorn academy.main:app`) and the test suite.

Application layout:
    ┌──────────────────────────────────────────────────────────┐
    │  Middleware: Request ID → Access log → GZip → CORS       │
    │                                                          │
    │  Routes:                                                 │
    │    /health                      liveness + backend reach │
    │    /api/coaches /events /gallery      public reads       │
    │    /api/join /api/contact             public forms       │
    │    /api/auth/*                        session actions    │
    │    /auth /access-denied               guard targets      │
    │    /api/admin/*                       guarded back office│
    │                                                          │
    │  Errors: 400 · 401 · 403 · 404 · 409 · 502 · 500         │
    │  Guard:  303 → /auth or /access-denied                   │
    └──────────────────────────────────────────────────────────┘
"""

import functools
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Optional, Type

import httpx
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from academy import __version__
from academy.config import settings
from academy.dependencies import apply_session_cookie
from academy.exceptions import (
    AcademyError,
    AuthError,
    BackendError,
    BackendUnavailableError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ProviderMissingError,
    ValidationError,
)
from academy.guard import GuardRedirect
from academy.middleware.logging import RequestLoggingMiddleware
from academy.middleware.request_id import RequestIDMiddleware, request_id_var
from academy.routes import admin, auth, forms, health, public, views

logger = logging.getLogger(__name__)

Handler = Callable[[Request, Any], Awaitable[Response]]


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════


def setup_logging() -> None:
    """Root logger to stdout at `settings.log_level`; chatty libraries held at WARNING."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    for noisy in ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Configure logging
        2. Check required settings (logged, not fatal: /health still answers)
        3. Open the shared HTTP client for the hosted backend

    Shutdown:
        Close the HTTP client and its connection pool.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Academy backend starting up (v%s)...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    app.state.http_client = httpx.AsyncClient(timeout=settings.request_timeout)
    logger.info("Hosted backend: %s", settings.backend_url)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Academy backend shutting down...")
    await app.state.http_client.aclose()
    app.state.http_client = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map domain exceptions to HTTP responses.

        GuardRedirect            → 303 See Other (Location: /auth or /access-denied)
        ValidationError          → 400
        RequestValidationError   → 400 (body or query failed validation)
        AuthError                → 401
        PermissionDeniedError    → 403
        NotFoundError            → 404
        ConflictError            → 409
        BackendUnavailableError  → 502
        BackendError             → 502 (raised outside an adapter)
        ProviderMissingError     → 500
        AcademyError (base)      → 500
        Exception (fallback)     → 500

    Server-side failures return a generic message; the detail goes to the log.
    Every handler's response also carries any session cookie the request
    refreshed or cleared before failing.
    """

    def handles(exc_class: Type[BaseException]) -> Callable[[Handler], Handler]:
        def register(func: Handler) -> Handler:
            @functools.wraps(func)
            async def handler(request: Request, exc: Any) -> Response:
                return apply_session_cookie(request, await func(request, exc))

            app.add_exception_handler(exc_class, handler)
            return func

        return register

    @handles(GuardRedirect)
    async def handle_guard_redirect(request: Request, exc: GuardRedirect):
        logger.info("Guard redirect %s → %s (%s)", request.url.path, exc.location, exc.decision.value)
        return RedirectResponse(url=exc.location, status_code=status.HTTP_303_SEE_OTHER)

    @handles(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        details = dict(exc.context)
        if exc.field:
            details["field"] = exc.field
        return error_response(400, "validation_error", exc.message, details)

    @handles(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        # loc[0] is "body" or "query"; the rest names the field.
        errors = [
            {"field": ".".join(str(part) for part in e.get("loc", ())[1:]), "message": e.get("msg", "")}
            for e in exc.errors()
        ]
        first = errors[0] if errors else {"field": "", "message": "Invalid request"}
        field, message = first["field"], first["message"]
        logger.warning("[%s] Request rejected: %s (%s)", request_id_var.get(""), message, field)
        details: Dict[str, Any] = {"errors": errors}
        if field:
            details["field"] = field
        return error_response(400, "validation_error", message, details)

    @handles(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        return error_response(401, "auth_error", exc.message, exc.context)

    @handles(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        logger.warning("[%s] Permission denied on %s", request_id_var.get(""), request.url.path)
        return error_response(403, "permission_denied", exc.message)

    @handles(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @handles(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return error_response(409, "conflict", exc.message)

    @handles(BackendUnavailableError)
    async def handle_backend_unavailable(request: Request, exc: BackendUnavailableError):
        logger.error("[%s] Backend unavailable: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return error_response(502, "backend_unavailable", exc.message)

    @handles(BackendError)
    async def handle_backend_error(request: Request, exc: BackendError):
        logger.error(
            "[%s] Unhandled backend error: %s (status=%s code=%s)",
            request_id_var.get(""),
            exc.message,
            exc.status,
            exc.code,
        )
        return error_response(502, "backend_error", "The data service returned an error. Please try again later.")

    @handles(ProviderMissingError)
    async def handle_provider_missing(request: Request, exc: ProviderMissingError):
        logger.error("[%s] %s", request_id_var.get(""), exc.message)
        return error_response(500, "server_error", "The server is not fully started. Please try again shortly.")

    @handles(AcademyError)
    async def handle_academy_error(request: Request, exc: AcademyError):
        logger.error("[%s] %s: %s | Context: %s", request_id_var.get(""), type(exc).__name__, exc.message, exc.context)
        return error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @handles(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════


def create_app() -> FastAPI:
    app = FastAPI(
        title="Academy API",
        description=(
            "Public site and admin back office for a martial-arts academy: coaches, events, "
            "gallery, student registrations and contact messages."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Executed in reverse order of addition: Request ID runs first.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Location"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(public.router)
    app.include_router(forms.router)
    app.include_router(auth.router)
    app.include_router(views.router)
    app.include_router(admin.router)

    return app


app = create_app()
