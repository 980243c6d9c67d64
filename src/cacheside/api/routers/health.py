"""Liveness and readiness probes.

- /health/live  answers as long as the process is up
- /health/ready checks the database and Redis
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from cacheside.cache.redis import RedisCache, get_redis
from cacheside.persistence.db import health_check as db_health_check

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 5.0

# Readiness results are reused for this many seconds
READY_CACHE_TTL = 5.0
_ready_cache: tuple[float, dict[str, Any]] | None = None


@dataclass
class ComponentHealth:
    """Result of probing one dependency."""

    name: str
    healthy: bool
    latency_ms: float
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "status": "up" if self.healthy else "down",
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            result["message"] = self.message
        return result


async def _probe(name: str, check: Callable[[], Awaitable[bool]]) -> ComponentHealth:
    start = time.monotonic()
    message: str | None = None
    try:
        healthy = await asyncio.wait_for(check(), timeout=CHECK_TIMEOUT)
        if not healthy:
            message = f"{name} check failed"
    except asyncio.TimeoutError:
        healthy = False
        message = f"{name} check timed out"
    except Exception as e:
        healthy = False
        message = str(e)
    return ComponentHealth(name, healthy, (time.monotonic() - start) * 1000, message)


async def check_database() -> ComponentHealth:
    return await _probe("database", db_health_check)


async def check_redis() -> ComponentHealth:
    async def ping() -> bool:
        return await RedisCache(await get_redis()).health_check()

    return await _probe("redis", ping)


@router.get("/health/live")
async def live() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/health/ready")
async def ready() -> JSONResponse:
    """Readiness probe: 200 when the database and Redis answer, 503 otherwise."""
    global _ready_cache

    now = time.monotonic()
    if _ready_cache is not None and now - _ready_cache[0] < READY_CACHE_TTL:
        result = _ready_cache[1]
    else:
        components = await asyncio.gather(check_database(), check_redis())
        healthy = all(c.healthy for c in components)
        result = {
            "status": "healthy" if healthy else "unhealthy",
            "components": [c.to_dict() for c in components],
        }
        _ready_cache = (now, result)

    status_code = 200 if result["status"] == "healthy" else 503
    return JSONResponse(content=result, status_code=status_code)
