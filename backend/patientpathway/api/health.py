"""
Health check endpoints for monitoring.

Provides health status for load balancers, monitoring systems,
and container orchestration health checks.

Endpoints:
- /health: Status of the API, database and cache
- /health/ready: Readiness check with per-component detail
- /health/live: Simple alive check
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db
from ..schemas.common import HealthResponse
from ..services.cache import CacheService, get_cache


logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Returns the health status of the API and its dependencies.",
)
async def health_check(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
) -> HealthResponse:
    """
    Health check endpoint for monitoring systems.

    The cache is optional: an unreachable Redis degrades the status but the
    service keeps answering from the database.
    """
    db_status = "connected"
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        db_response_time_ms = int((time.time() - start) * 1000)
        if db_response_time_ms > 100:
            logger.warning(f"Slow database response: {db_response_time_ms}ms")
    except Exception as e:
        db_status = "disconnected"
        logger.error(f"Database health check failed: {e}")

    cache_status = "connected" if cache.health_check().get("connected") else "disconnected"

    if db_status != "connected":
        health_status = "unhealthy"
    elif cache_status != "connected":
        health_status = "degraded"
    else:
        health_status = "healthy"

    return HealthResponse(
        status=health_status,
        version=settings.app_version,
        timestamp=datetime.now(timezone.utc),
        database=db_status,
        cache=cache_status,
        environment=settings.environment,
    )


@router.get(
    "/health/ready",
    summary="Readiness Check",
    description="Deep readiness check for all dependencies.",
)
async def readiness_check(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
) -> Dict[str, Any]:
    """
    Readiness check for container orchestration.

    Only the database gates readiness; Redis, Resend and OpenRouter are
    reported for visibility.
    """
    components: Dict[str, Any] = {}
    ready = True

    try:
        db.execute(text("SELECT 1"))
        components["database"] = {"status": "healthy", "connected": True}
    except Exception as e:
        components["database"] = {"status": "unhealthy", "connected": False, "error": str(e)[:100]}
        ready = False

    components["redis"] = cache.health_check()
    components["email"] = {"status": "configured" if settings.resend_configured else "disabled"}
    components["ai_assistant"] = {"status": "configured" if settings.openrouter_api_key else "disabled"}

    return {
        "status": "ready" if ready else "not_ready",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "components": components,
    }


@router.get(
    "/health/live",
    summary="Liveness Check",
    description="Simple liveness check to verify the API is running.",
)
async def liveness_check() -> dict:
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
