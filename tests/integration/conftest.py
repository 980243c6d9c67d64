"""Integration test fixtures using Docker.

PostgreSQL and Redis run in containers for the whole session. Every test
gets fresh tables and an empty Redis database.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
import redis.asyncio as aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from cacheside.api.app import create_app
from cacheside.config import settings
from cacheside.persistence.tables import Base
from tests.integration.docker_utils import RunningContainer, get_docker_client, run_container


@pytest.fixture(scope="session")
def docker_client():
    """Docker client, or skip the integration tests when Docker is unavailable."""
    try:
        client = get_docker_client()
        client.ping()
    except Exception as exc:
        pytest.skip(f"Docker not available: {exc}")
    yield client
    client.close()


@pytest.fixture(scope="session")
def postgres_container(docker_client) -> Iterator[RunningContainer]:
    env = {
        "POSTGRES_USER": "cacheside",
        "POSTGRES_PASSWORD": "cacheside",
        "POSTGRES_DB": "cacheside",
    }
    with run_container(
        docker_client, "postgres:16-alpine", env=env, ports={"5432/tcp": None}
    ) as postgres:
        yield postgres


@pytest.fixture(scope="session")
def redis_container(docker_client) -> Iterator[RunningContainer]:
    with run_container(docker_client, "redis:7-alpine", ports={"6379/tcp": None}) as redis:
        yield redis


@pytest.fixture(scope="session")
def database_url(postgres_container: RunningContainer) -> str:
    host = postgres_container.host
    port = postgres_container.port(5432)
    return f"postgresql+asyncpg://cacheside:cacheside@{host}:{port}/cacheside"


@pytest.fixture(scope="session")
def redis_url(redis_container: RunningContainer) -> str:
    return f"redis://{redis_container.host}:{redis_container.port(6379)}/0"


@pytest_asyncio.fixture
async def db_engine(database_url: str) -> AsyncIterator[AsyncEngine]:
    """Engine with the schema created; tables are dropped afterwards."""
    engine = create_async_engine(database_url)
    await _wait_for_engine(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def redis_client(redis_url: str) -> AsyncIterator[aioredis.Redis]:
    client = aioredis.from_url(redis_url)
    await _wait_for_redis(client)
    yield client
    await client.flushdb()
    await client.aclose()


@pytest_asyncio.fixture
async def api_client(
    monkeypatch: pytest.MonkeyPatch,
    database_url: str,
    redis_url: str,
    db_engine: AsyncEngine,
    redis_client: aioredis.Redis,
) -> AsyncIterator[AsyncClient]:
    """The full application, lifespan included, wired to the containers."""
    monkeypatch.setattr(settings, "database_url", database_url)
    monkeypatch.setattr(settings, "redis_url", redis_url)
    monkeypatch.setattr(settings, "enable_tracing", False)

    app = create_app()
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client


async def _wait_for_engine(engine: AsyncEngine, timeout: float = 30.0) -> None:
    """Wait for the database to accept connections."""
    deadline = time.monotonic() + timeout
    while True:
        try:
            async with engine.connect():
                return
        except Exception:
            if time.monotonic() >= deadline:
                raise
            await asyncio.sleep(0.5)


async def _wait_for_redis(client: aioredis.Redis, timeout: float = 30.0) -> None:
    """Wait for Redis to answer PING."""
    deadline = time.monotonic() + timeout
    while True:
        try:
            await client.ping()
            return
        except Exception:
            if time.monotonic() >= deadline:
                raise
            await asyncio.sleep(0.5)
