"""Prometheus metrics and Sentry integration.

Provides:
- MetricsMiddleware: ASGI middleware for HTTP request metrics
- CRM and push metrics recorded by the GHL client and the push engine
- init_sentry(): Initialize Sentry with funnel-aware event tagging
- get_metrics_response(): FastAPI route handler body for /metrics
"""

from __future__ import annotations

import time

import sentry_sdk
from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ── HTTP Metrics ─────────────────────────────────────────────────────────────

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ── CRM Metrics ──────────────────────────────────────────────────────────────

ghl_requests_total = Counter(
    "ghl_requests_total",
    "Total GoHighLevel API requests",
    ["method", "outcome"],
)

# ── Push Metrics ─────────────────────────────────────────────────────────────

push_operations_total = Counter(
    "push_operations_total",
    "Push operations by final status",
    ["status"],
)

push_items_total = Counter(
    "push_items_total",
    "Custom values processed by push outcome",
    ["action"],
)

push_duration_seconds = Histogram(
    "push_duration_seconds",
    "Wall-clock duration of a push operation",
    buckets=(0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0),
)


# ── Metrics Middleware ───────────────────────────────────────────────────────


class MetricsMiddleware(BaseHTTPMiddleware):
    """ASGI middleware that records Prometheus metrics for every HTTP request.

    Labels use the matched route template (/api/v1/funnels/{funnel_id}/push)
    rather than the raw path so funnel and operation ids do not explode label
    cardinality. Skips /metrics itself.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        route = request.scope.get("route")
        endpoint = getattr(route, "path", None) or "unmatched"

        http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=str(response.status_code),
        ).inc()

        http_request_duration_seconds.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response


# ── Sentry Integration ───────────────────────────────────────────────────────


def init_sentry(dsn: str, environment: str) -> None:
    """Initialize Sentry SDK.

    Args:
        dsn: Sentry DSN string.
        environment: Deployment environment (development, staging, production).
    """
    traces_sample_rate = 0.1 if environment == "production" else 1.0

    def before_send(event: dict, hint: dict) -> dict:
        """Promote the funnel id from the request path to a searchable tag."""
        url = event.get("request", {}).get("url", "")
        if "/funnels/" in url:
            funnel_id = url.split("/funnels/", 1)[1].split("/", 1)[0]
            event.setdefault("tags", {})["funnel_id"] = funnel_id
        return event

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            StarletteIntegration(),
            FastApiIntegration(),
        ],
        before_send=before_send,
    )


# ── Metrics Endpoint ─────────────────────────────────────────────────────────


def get_metrics_response() -> Response:
    """Generate Prometheus exposition format response."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
