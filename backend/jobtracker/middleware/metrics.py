"""
Service Metrics - Prometheus instrumentation for the tracker API

Two groups of series are exported on GET /metrics:

    tracker_http_*       inbound requests, labelled by route template
    tracker_upstream_*   outbound calls to job boards, PDF.co, Hugging Face
                         and OpenAI, labelled by service and outcome

Usage:
    setup_metrics(app)

    async with track_upstream("serpapi"):
        jobs = await source.search(term)
"""

import time
import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CONTENT_TYPE_LATEST,
    generate_latest,
    REGISTRY,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

logger = logging.getLogger(__name__)

METRICS_PATH = "/metrics"

REQUEST_LATENCY = Histogram(
    "tracker_http_request_seconds",
    "Time spent serving tracker API requests",
    ["method", "route", "status"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 10.0],
)

REQUEST_COUNT = Counter(
    "tracker_http_requests_total",
    "Tracker API requests served",
    ["method", "route", "status"],
)

ACTIVE_REQUESTS = Gauge(
    "tracker_http_requests_in_flight",
    "Tracker API requests currently being served",
    ["method"],
)

UPSTREAM_CALLS = Counter(
    "tracker_upstream_calls_total",
    "Outbound third-party API calls",
    ["service", "outcome"],  # outcome: ok | error
)

UPSTREAM_LATENCY = Histogram(
    "tracker_upstream_call_seconds",
    "Outbound third-party API call latency",
    ["service"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 15.0, 30.0, 60.0, 120.0],
)


def route_template(request: Request) -> str:
    """
    Matched route path (``/applications/{application_id}``), else the raw path.

    Routing records the endpoint's route in the scope, so this is most
    accurate once the request has been served. Entries of ``app.routes``
    that carry no ``path`` (included routers, mounts) are skipped.
    """
    path = getattr(request.scope.get("route"), "path", None)
    if path:
        return path
    for route in request.app.routes:
        path = getattr(route, "path", None)
        if path is None:
            continue
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return path
    return request.url.path


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == METRICS_PATH:
            return await call_next(request)

        method = request.method
        in_flight = ACTIVE_REQUESTS.labels(method=method)
        in_flight.inc()
        started = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        except Exception:
            logger.exception(f"Unhandled error on {method} {request.url.path}")
            raise
        finally:
            elapsed = time.perf_counter() - started
            route = route_template(request)
            REQUEST_LATENCY.labels(method=method, route=route, status=status).observe(elapsed)
            REQUEST_COUNT.labels(method=method, route=route, status=status).inc()
            in_flight.dec()


def metrics_endpoint(request: Request) -> Response:
    return PlainTextResponse(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


def setup_metrics(app: FastAPI) -> None:
    app.add_middleware(PrometheusMiddleware)
    app.add_route(METRICS_PATH, metrics_endpoint, methods=["GET"])
    logger.info("Prometheus metrics configured")


def record_upstream_call(service: str, outcome: str, duration: float) -> None:
    UPSTREAM_CALLS.labels(service=service, outcome=outcome).inc()
    UPSTREAM_LATENCY.labels(service=service).observe(duration)


@asynccontextmanager
async def track_upstream(service: str):
    """Time a block of outbound calls and count it as ok or error."""
    started = time.perf_counter()
    try:
        yield
    except Exception:
        record_upstream_call(service, "error", time.perf_counter() - started)
        raise
    record_upstream_call(service, "ok", time.perf_counter() - started)
