"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS, Sentry,
lifespan events for database initialization and push service wiring, the
health endpoints, and the v1 API router.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.app.config import get_settings
from src.app.core.database import close_db, get_session, init_db
from src.app.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.app.core.redis import close_redis, get_redis_pool
from src.app.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.app.api.v1 import health
from src.app.api.v1.router import router as v1_router
from src.app.funnels.crm.locks import FunnelLockManager
from src.app.funnels.crm.push import PushEngine
from src.app.funnels.repository import FieldStoreRepository, PushOperationRepository
from src.app.funnels.service import PushService


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB, Sentry, and the push service; close on shutdown."""
    log = structlog.get_logger(__name__)
    settings = get_settings()
    configure_structlog()
    await init_db()

    # Initialize Sentry if DSN is configured
    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    ledger = PushOperationRepository(session_factory=get_session)
    lock_manager = FunnelLockManager(
        redis=get_redis_pool(),
        timeout_seconds=settings.PUSH_LOCK_TIMEOUT_SECONDS,
    )
    engine = PushEngine(
        ledger=ledger,
        lock_manager=lock_manager,
        request_delay=settings.PUSH_REQUEST_DELAY_SECONDS,
    )
    app.state.push_service = PushService(
        field_store=FieldStoreRepository(session_factory=get_session),
        ledger=ledger,
        engine=engine,
    )
    log.info(
        "app.push_service_initialized",
        redis_lease=settings.REDIS_URL != "",
        request_delay=settings.PUSH_REQUEST_DELAY_SECONDS,
    )

    yield

    app.state.push_service = None
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Funnel Sync API",
        version="0.1.0",
        description="Maps generated funnel content to CRM custom values and pushes them",
        lifespan=lifespan,
    )

    # Middleware is added in reverse order (last added = outermost)

    # CORS middleware
    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(health.router)
    app.include_router(v1_router, prefix="/api/v1")

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
