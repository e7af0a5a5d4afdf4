"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import JSONResponse

from src.catalog.api.http.app_data import ApplicationDependencies

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health() -> dict[str, str]:
    """Liveness probe: 200 OK as long as the process is running."""
    return {"status": "healthy", "service": "catalog"}


@router.get("/ready", response_model=None)
def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    The database is required. The cache is not: an unreachable Redis only
    degrades the service to store-only reads, so it never fails readiness.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    config = app_deps.config

    checks: dict[str, Any] = {}
    all_healthy = True

    try:
        db_healthy = app_deps.database_service.health_check()
    except SQLAlchemyError as e:
        db_healthy = False
        checks["database"] = {"status": "unhealthy", "error": str(e)}
    else:
        checks["database"] = {
            "status": "healthy" if db_healthy else "unhealthy",
            "type": "sqlite" if config.database.is_sqlite else "postgresql",
        }
    if not db_healthy:
        all_healthy = False

    cache = app_deps.cache_service
    cache_healthy = cache.ping()
    checks["cache"] = {
        "status": "healthy" if cache_healthy else "degraded",
        "backend": cache.backend.name,
    }
    if not cache_healthy:
        checks["cache"]["note"] = "Serving from the database only"

    response = {
        "status": "ready" if all_healthy else "not_ready",
        "environment": config.app.environment,
        "checks": checks,
    }

    if not all_healthy:
        return JSONResponse(status_code=503, content=response)

    return response


@router.get("/cache", response_model=None)
def health_cache(request: Request) -> dict[str, Any]:
    """Cache-specific health check with Redis server info when available."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    cache = app_deps.cache_service

    result: dict[str, Any] = {
        "status": "healthy" if cache.ping() else "degraded",
        "backend": cache.backend.name,
        "stats": cache.stats().as_dict(),
    }
    info = app_deps.redis_service.get_info()
    if info:
        result["redis"] = info
    return result
