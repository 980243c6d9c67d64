"""FastAPI application factory for Cacheside.

Creates the application with:
- Customer routes served through the cache-aside layer
- Direct Redis data-structure routes
- Liveness/readiness probes and Prometheus metrics
- Correlation IDs, tracing and structured logging
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import cast

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from cacheside import __version__
from cacheside.api.errors import (
    ApiError,
    api_exception_handler,
    domain_exception_handler,
    generic_exception_handler,
)
from cacheside.api.middleware import CorrelationMiddleware
from cacheside.api.routers import cache, customers, health
from cacheside.api.routers import metrics as metrics_router
from cacheside.cache import close_redis, get_redis, stop_subscriber
from cacheside.config import settings
from cacheside.core.errors import CachesideError
from cacheside.observability import configure_logging
from cacheside.observability.metrics import MetricsMiddleware, get_metrics
from cacheside.observability.tracing import TracingMiddleware, setup_tracing, shutdown_tracing
from cacheside.persistence.db import close_db, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database pool and Redis client on startup, close them on shutdown."""
    configure_logging(
        json_format=settings.env != "dev",
        level=settings.log_level,
    )
    setup_tracing()
    get_metrics()

    logger.info(f"Starting {settings.app_name} ({settings.env})")
    await init_db()
    await get_redis()
    logger.info(f"{settings.app_name} startup complete")

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await stop_subscriber()
    await close_redis()
    await close_db()
    shutdown_tracing()
    logger.info(f"{settings.app_name} shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Cacheside",
        description="Cache-aside customer API over Redis and PostgreSQL",
        version=__version__,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Correlation is innermost so metrics and tracing see the request IDs
    app.add_middleware(CorrelationMiddleware)
    if settings.enable_metrics:
        app.add_middleware(MetricsMiddleware)
    if settings.enable_tracing:
        app.add_middleware(TracingMiddleware)

    app.add_exception_handler(ApiError, cast(ExceptionHandler, api_exception_handler))
    app.add_exception_handler(CachesideError, cast(ExceptionHandler, domain_exception_handler))
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    if settings.enable_metrics:
        app.include_router(metrics_router.router)
    app.include_router(customers.router)
    app.include_router(cache.router)

    return app


app = create_app()
