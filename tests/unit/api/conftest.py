"""Fixtures for router tests: a minimal app without lifespan."""

from __future__ import annotations

from typing import cast

import pytest
from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from cacheside.api.errors import ApiError, api_exception_handler, domain_exception_handler
from cacheside.api.routers import cache, customers
from cacheside.core.errors import CachesideError


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI(default_response_class=ORJSONResponse)
    app.add_exception_handler(ApiError, cast(ExceptionHandler, api_exception_handler))
    app.add_exception_handler(CachesideError, cast(ExceptionHandler, domain_exception_handler))
    app.include_router(customers.router)
    app.include_router(cache.router)
    return app
