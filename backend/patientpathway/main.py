"""
PatientPathway AI Backend - FastAPI Application Entry Point

Medical lead-generation platform: public symptom quizzes capture patient
leads, doctors are notified by SMS and email, and the dashboard tracks
each lead from NEW to SCHEDULED.

Performance optimized with:
- Redis TTL cache for dashboard reads
- Response compression (gzip)
- Performance monitoring middleware
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .core.config import settings
from .core.database import engine, init_db
from .api import (
    ai_router,
    analytics_router,
    communications_router,
    contacts_router,
    health_router,
    leads_router,
    profiles_router,
    quizzes_router,
    share_router,
)
from .services.cache import get_cache


logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(level=settings.log_level, format=settings.log_format)


# =============================================================================
# Rate Limiting Middleware
# =============================================================================

class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting middleware using sliding window algorithm.

    Limits requests per IP address to prevent abuse.
    Returns HTTP 429 when limit exceeded.
    """

    def __init__(self, app, requests_per_minute: int = 60):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.window_size = 60  # seconds
        self.request_log: Dict[str, List[float]] = {}
        self._last_prune = time.time()

    def _get_client_ip(self, request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        if request.client:
            return request.client.host
        return "unknown"

    def _is_rate_limited(self, ip: str, now: Optional[float] = None) -> bool:
        current_time = now if now is not None else time.time()
        cutoff = current_time - self.window_size
        recent = [ts for ts in self.request_log.get(ip, []) if ts > cutoff]

        if current_time - self._last_prune >= self.window_size:
            self._prune(cutoff)
            self._last_prune = current_time

        if len(recent) >= self.requests_per_minute:
            self.request_log[ip] = recent
            return True

        recent.append(current_time)
        self.request_log[ip] = recent
        return False

    def _prune(self, cutoff: float) -> None:
        # Drop addresses with no request inside the window
        idle = [ip for ip, stamps in self.request_log.items() if not stamps or stamps[-1] <= cutoff]
        for ip in idle:
            del self.request_log[ip]

    async def dispatch(self, request: Request, call_next):
        if request.url.path in ["/health", "/health/ready", "/health/live"]:
            return await call_next(request)

        client_ip = self._get_client_ip(request)

        if self._is_rate_limited(client_ip):
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "success": False,
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Please try again later. Limit: {self.requests_per_minute} requests per minute.",
                },
                headers={
                    "Retry-After": "60",
                    "X-RateLimit-Limit": str(self.requests_per_minute),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        remaining = max(0, self.requests_per_minute - len(self.request_log.get(client_ip, [])))
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_minute)
        response.headers["X-RateLimit-Remaining"] = str(remaining)

        return response


# =============================================================================
# Performance Monitoring Middleware
# =============================================================================

class PerformanceMonitoringMiddleware(BaseHTTPMiddleware):
    """
    Middleware to track API response times and log slow requests.

    Logs warnings for requests exceeding 500ms.
    Adds X-Response-Time header to all responses.
    """

    SLOW_REQUEST_THRESHOLD_MS = 500

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time_ms = (time.time() - start_time) * 1000
        response.headers["X-Response-Time"] = f"{process_time_ms:.2f}ms"

        if process_time_ms > self.SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {process_time_ms:.2f}ms"
            )

        if settings.debug:
            logger.debug(f"{request.method} {request.url.path} - {process_time_ms:.2f}ms")

        return response


# =============================================================================
# Application Lifespan
# =============================================================================

def _insecure_secrets() -> List[str]:
    insecure = []
    if settings.supabase_jwt_secret == "dev-supabase-jwt-secret-change-in-production":
        insecure.append("SUPABASE_JWT_SECRET")
    if settings.encryption_key.rstrip("0") == "dev-encryption-key-32bytes!":
        insecure.append("ENCRYPTION_KEY")
    return insecure


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Refuses to start in production with dev-default secrets, connects the
    cache and, outside production, creates missing tables.
    """
    configure_logging()
    logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})")

    insecure = _insecure_secrets()
    if insecure and settings.is_production:
        logger.critical(f"Refusing to start: dev-default secrets in production: {', '.join(insecure)}")
        sys.exit(1)
    elif insecure:
        logger.warning(f"Dev-default secrets in use: {', '.join(insecure)}")

    cache = get_cache()
    if cache.is_connected:
        logger.info("Redis cache connected")
    else:
        logger.warning("Redis cache not available - operating without cache")

    if not settings.is_production:
        init_db()
        expired = cache.clear_all_expired_cache()
        logger.info(f"Development tables ready; swept {expired} expired cache entries")

    yield

    logger.info("Shutting down...")
    engine.dispose()


# =============================================================================
# Application Factory
# =============================================================================

def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Patient lead generation API for specialty clinics: symptom quizzes, "
            "lead pipeline, SMS/email notifications and dashboard analytics."
        ),
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(PerformanceMonitoringMiddleware)

    # Quizzes are embedded on practice websites, so every origin may POST
    # submissions; credentials are only allowed with an explicit origin list.
    cors_origins = settings.cors_origins_list
    allow_all = "*" in cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else cors_origins,
        allow_credentials=not allow_all,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-Response-Time",
        ],
    )

    app.add_middleware(RateLimitMiddleware, requests_per_minute=settings.rate_limit_per_minute)

    app.include_router(health_router)
    app.include_router(leads_router)
    app.include_router(communications_router)
    app.include_router(analytics_router)
    app.include_router(profiles_router)
    app.include_router(contacts_router)
    app.include_router(quizzes_router)
    app.include_router(ai_router)
    app.include_router(share_router)

    register_exception_handlers(app)
    return app


# =============================================================================
# Exception Handlers
# =============================================================================

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "validation_error",
                "message": str(exc),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Handle unhandled exceptions.

        Logs the exception type and path only; request bodies carry patient
        contact details.
        """
        logger.error(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "internal_error",
                "message": "An unexpected error occurred. Please try again later.",
            },
        )


app = create_application()


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs" if settings.is_development else "disabled",
    }


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "patientpathway.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
