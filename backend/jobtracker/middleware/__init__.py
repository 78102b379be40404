"""
Middleware Package

Prometheus request metrics and outbound call accounting.
"""

from jobtracker.middleware.metrics import (
    PrometheusMiddleware,
    setup_metrics,
    record_upstream_call,
    track_upstream,
    UPSTREAM_CALLS,
)

__all__ = [
    "PrometheusMiddleware",
    "setup_metrics",
    "record_upstream_call",
    "track_upstream",
    "UPSTREAM_CALLS",
]
