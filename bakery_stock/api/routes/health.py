"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from bakery_stock.application.dto.responses import HealthResponse, ProviderHealthResponse
from bakery_stock.config import get_settings

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity and response time.
    """
    from bakery_stock.infrastructure.storage.sqlite import get_pool

    try:
        pool = await get_pool()
        db_status = ProviderHealthResponse(
            name="sqlite",
            available=True,
            latency_ms=await pool.ping(),
        )
    except Exception as e:
        db_status = ProviderHealthResponse(
            name="sqlite",
            available=False,
            error=str(e),
        )

    return HealthResponse(
        status="healthy" if db_status.available else "unhealthy",
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )
