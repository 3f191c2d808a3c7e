"""Health check endpoints.

Provides liveness (/health) and readiness (/health/ready). Readiness checks
the database and, when configured, Redis.
"""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from src.app.config import get_settings
from src.app.core.database import get_engine
from src.app.core.redis import get_redis_pool

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic liveness check. No external dependencies are checked."""
    settings = get_settings()
    return {"status": "ok", "environment": settings.ENVIRONMENT.value}


async def _check_dependencies() -> dict:
    """Check database and Redis connectivity. Returns check results dict."""
    checks: dict = {"database": "ok", "redis": "ok"}

    try:
        engine = get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        checks["database"] = "error"
        checks["database_error"] = str(e)

    redis = get_redis_pool()
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            if not await redis.ping():
                checks["redis"] = "error"
                checks["redis_error"] = "PING did not return PONG"
        except Exception as e:
            checks["redis"] = "error"
            checks["redis_error"] = str(e)

    return checks


@router.get("/health/ready")
async def readiness_check():
    """Readiness check: 200 if the database (and Redis, if enabled) respond, else 503."""
    checks = await _check_dependencies()
    all_healthy = checks["database"] == "ok" and checks["redis"] in ("ok", "disabled")

    return JSONResponse(
        status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if all_healthy else "degraded",
            "checks": checks,
        },
    )
