"""Observability module for Cacheside.

Provides tracing, metrics, and structured logging:
- OpenTelemetry tracing with OTLP export
- Prometheus metrics, including cache hit/miss counters
- JSON structured logging with correlation IDs
"""

from cacheside.observability.logging import (
    cache_key_context,
    configure_logging,
    correlation_id_var,
    request_id_var,
)
from cacheside.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    metrics_registry,
)
from cacheside.observability.tracing import (
    TracingMiddleware,
    get_tracer,
    setup_tracing,
    shutdown_tracing,
)

__all__ = [
    # Logging
    "configure_logging",
    "cache_key_context",
    "request_id_var",
    "correlation_id_var",
    # Tracing
    "setup_tracing",
    "shutdown_tracing",
    "get_tracer",
    "TracingMiddleware",
    # Metrics
    "metrics_registry",
    "get_metrics",
    "MetricsMiddleware",
]
