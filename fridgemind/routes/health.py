"""
FridgeMind API — Health Check Route
=====================================

What:  GET /health for load balancer probes and monitoring.
How:   SELECT 1 against the database, the AI circuit state plus a
       quota-free Gemini model listing, and whether FatSecret has
       credentials.

Status levels:
    - healthy:   database and Gemini reachable
    - degraded:  Gemini unreachable or circuit open (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response, status
from sqlalchemy import text

from fridgemind import __version__
from fridgemind.database import engine
from fridgemind.schemas.common import HealthResponse
from fridgemind.services.gemini_service import CircuitBreaker, gemini_service
from fridgemind.services.nutrition_service import nutrition_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    gemini_status = "available"
    overall = "healthy"

    # ── Database ──
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Gemini ──
    if gemini_service.circuit_breaker.state == CircuitBreaker.OPEN:
        gemini_status = "circuit_open"
    elif not await gemini_service.health_check():
        gemini_status = "unavailable"
    if gemini_status != "available" and overall == "healthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        gemini=gemini_status,
        fatsecret="configured" if nutrition_service.is_configured() else "not_configured",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
