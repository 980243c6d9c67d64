"""Prometheus metrics for Cacheside.

Provides metrics collection and exposure:
- HTTP request metrics (latency, count, in progress)
- Cache metrics (hits, misses, operation latency)
- Record store load latency on cache misses

Usage:
    from cacheside.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.http_requests_total.labels(method="GET", path="/health", status=200).inc()
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from prometheus_client import REGISTRY, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cacheside.config import settings

if TYPE_CHECKING:
    from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    # HTTP metrics
    http_requests_total: Any = None
    http_request_duration_seconds: Any = None
    http_requests_in_progress: Any = None

    # Cache metrics
    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_operation_duration_seconds: Any = None

    # Record store metrics
    store_load_duration_seconds: Any = None

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = REGISTRY

        self.http_requests_total = Counter(
            "cacheside_http_requests_total",
            "Total HTTP requests",
            ["method", "path", "status"],
        )

        self.http_request_duration_seconds = Histogram(
            "cacheside_http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "path"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
        )

        self.http_requests_in_progress = Gauge(
            "cacheside_http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method"],
        )

        self.cache_hits_total = Counter(
            "cacheside_cache_hits_total",
            "Cache-aside reads served from the cache",
            ["key_family"],
        )

        self.cache_misses_total = Counter(
            "cacheside_cache_misses_total",
            "Cache-aside reads that fell through to the record store",
            ["key_family"],
        )

        self.cache_operation_duration_seconds = Histogram(
            "cacheside_cache_operation_duration_seconds",
            "Cache operation latency in seconds",
            ["operation"],
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.025, 0.05),
        )

        self.store_load_duration_seconds = Histogram(
            "cacheside_store_load_duration_seconds",
            "Record store load latency on cache miss, in seconds",
            ["operation"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not settings.enable_metrics or self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for HTTP request metrics.

    Records:
    - Request count by method, path, status
    - Request duration histogram
    - Requests in progress gauge
    """

    def __init__(self, app: "ASGIApp") -> None:
        super().__init__(app)
        self.metrics = get_metrics()

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        """Record metrics for HTTP requests."""
        # Skip metrics for health and metrics endpoints
        if request.url.path.startswith("/health") or request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = self._normalize_path(request.url.path)

        if self.metrics.http_requests_in_progress:
            self.metrics.http_requests_in_progress.labels(method=method).inc()

        start_time = time.perf_counter()
        status_code = 500  # Default in case of exception

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time

            if self.metrics.http_requests_total:
                self.metrics.http_requests_total.labels(
                    method=method,
                    path=path,
                    status=status_code,
                ).inc()

            if self.metrics.http_request_duration_seconds:
                self.metrics.http_request_duration_seconds.labels(
                    method=method,
                    path=path,
                ).observe(duration)

            if self.metrics.http_requests_in_progress:
                self.metrics.http_requests_in_progress.labels(method=method).dec()

    def _normalize_path(self, path: str) -> str:
        """Normalize path by replacing numeric IDs with placeholders.

        This prevents high cardinality in metrics.

        Examples:
            /api/customer/customers/42 -> /api/customer/customers/{id}
        """
        parts = path.strip("/").split("/")
        normalized = ["{id}" if part.isdigit() else part for part in parts]
        return "/" + "/".join(normalized) if normalized else path


def record_cache_hit(key_family: str) -> None:
    """Record cache hit."""
    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.labels(key_family=key_family).inc()


def record_cache_miss(key_family: str) -> None:
    """Record cache miss."""
    metrics = get_metrics()
    if metrics.cache_misses_total:
        metrics.cache_misses_total.labels(key_family=key_family).inc()


def record_cache_operation(operation: str, duration: float) -> None:
    """Record cache operation duration.

    Args:
        operation: Redis command family (get, set, delete, hset, ...)
        duration: Operation duration in seconds
    """
    metrics = get_metrics()
    if metrics.cache_operation_duration_seconds:
        metrics.cache_operation_duration_seconds.labels(operation=operation).observe(duration)


def record_store_load(operation: str, duration: float) -> None:
    """Record how long a record store load took on a cache miss."""
    metrics = get_metrics()
    if metrics.store_load_duration_seconds:
        metrics.store_load_duration_seconds.labels(operation=operation).observe(duration)
