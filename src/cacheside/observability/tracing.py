"""OpenTelemetry tracing for Cacheside.

Provides distributed tracing with OTLP export:
- Automatic request/response tracing
- Database and Redis instrumentation
- Spans around record store loads on cache misses

Usage:
    from cacheside.observability.tracing import get_tracer

    tracer = get_tracer(__name__)

    with tracer.start_as_current_span("my_operation") as span:
        span.set_attribute("key", "value")
        ...
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.trace import StatusCode
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cacheside.config import settings

if TYPE_CHECKING:
    from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# Global tracer provider
_tracer_provider: TracerProvider | None = None
_initialized = False


def setup_tracing() -> None:
    """Initialize OpenTelemetry tracing.

    Configures:
    - OTLP exporter (if endpoint configured)
    - Console exporter (for development)
    - Automatic instrumentation for SQLAlchemy and Redis
    """
    global _tracer_provider, _initialized

    if _initialized:
        return

    if not settings.enable_tracing:
        logger.info("Tracing is disabled")
        _initialized = True
        return

    resource = Resource.create(
        {
            "service.name": settings.app_name,
            "service.instance.id": settings.instance_id,
            "deployment.environment": settings.env,
        }
    )
    _tracer_provider = TracerProvider(resource=resource)

    if settings.otlp_endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        otlp_exporter = OTLPSpanExporter(endpoint=settings.otlp_endpoint)
        _tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        logger.info(f"OTLP tracing enabled: {settings.otlp_endpoint}")
    elif settings.env == "dev":
        _tracer_provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        logger.info("Console tracing enabled (dev mode)")

    trace.set_tracer_provider(_tracer_provider)
    _setup_auto_instrumentation()

    _initialized = True
    logger.info("OpenTelemetry tracing initialized")


def _setup_auto_instrumentation() -> None:
    """Set up automatic instrumentation for the database and Redis clients."""
    from opentelemetry.instrumentation.redis import RedisInstrumentor
    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    SQLAlchemyInstrumentor().instrument()
    RedisInstrumentor().instrument()
    logger.debug("SQLAlchemy and Redis instrumentation enabled")


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer for the given module name.

    Until a provider is installed this returns OpenTelemetry's proxy tracer,
    whose spans are non-recording.
    """
    return trace.get_tracer(name)


class TracingMiddleware(BaseHTTPMiddleware):
    """Middleware for HTTP request tracing.

    Adds spans for each HTTP request with:
    - HTTP method and path
    - Status code
    - Error information
    """

    def __init__(self, app: "ASGIApp") -> None:
        super().__init__(app)
        self.tracer = get_tracer("cacheside.api")

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        """Trace HTTP requests."""
        if request.url.path.startswith("/health") or request.url.path == "/metrics":
            return await call_next(request)

        span_name = f"{request.method} {request.url.path}"

        with self.tracer.start_as_current_span(span_name) as span:
            span.set_attribute("http.method", request.method)
            span.set_attribute("http.url", str(request.url))
            span.set_attribute("http.route", request.url.path)
            span.set_attribute("http.scheme", request.url.scheme)

            if request.client:
                span.set_attribute("http.client_ip", request.client.host)

            try:
                response = await call_next(request)
                span.set_attribute("http.status_code", response.status_code)

                if response.status_code >= 500:
                    span.set_status(StatusCode.ERROR)
                elif response.status_code >= 400:
                    span.set_attribute("http.error", True)

                return response

            except Exception as e:
                span.record_exception(e)
                span.set_status(StatusCode.ERROR, str(e))
                raise


def shutdown_tracing() -> None:
    """Shutdown tracing and flush remaining spans."""
    global _tracer_provider, _initialized

    if _tracer_provider is not None:
        try:
            _tracer_provider.shutdown()
            logger.info("OpenTelemetry tracing shutdown complete")
        except Exception as e:
            logger.warning(f"Error shutting down tracing: {e}")

    _tracer_provider = None
    _initialized = False
