"""
Academy Backend: Health Check Route
====================================

What:  Liveness plus reachability of the hosted backend.
How:   Calls the auth service's health endpoint, which answers without
       touching any table. Nothing here needs a session.
Who:   Container health checks and uptime monitors.

Status levels:
    healthy   the hosted backend answered
    degraded  it did not; the process itself is fine (HTTP 200 either way,
              so a backend outage does not restart healthy containers)
"""

import logging
import time

from fastapi import APIRouter, Depends

from academy import __version__
from academy.dependencies import get_backend_client
from academy.exceptions import BackendError
from academy.remote import BackendClient
from academy.schemas.api import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Reports whether the service is up and whether the hosted backend is reachable.",
)
async def health_check(client: BackendClient = Depends(get_backend_client)) -> HealthResponse:
    backend_status = "reachable"
    overall = "healthy"

    try:
        await client.auth.health()
    except BackendError as e:
        backend_status = "unreachable"
        overall = "degraded"
        logger.warning("Health check: hosted backend unreachable: %s", e.message)

    return HealthResponse(
        status=overall,
        version=__version__,
        backend=backend_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
