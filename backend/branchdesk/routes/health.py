"""
BranchDesk Backend — Health Check Route
=========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Acquires and pings a connection through the storage connector.
Who:   Called by container health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   store reachable (HTTP 200)
    - unhealthy: store unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response

from branchdesk import __version__
from branchdesk.database import ping
from branchdesk.exceptions import StorageConnectionError
from branchdesk.schemas.branch import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Uptime reference, fixed when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    """
    Report whether the relational store answers a round-trip ping.

    A failed ping does not raise: the probe always answers with a body,
    setting 503 so load balancers stop routing traffic here.
    """
    db_status = "connected"
    overall = "healthy"

    try:
        await ping()
    except StorageConnectionError as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", e.context.get("error", e.detail))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
