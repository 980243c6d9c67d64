"""Shared FastAPI dependencies for Cacheside routers.

The Redis client and the database engine are created once per process in
the application lifespan; these dependencies hand request-scoped wrappers
around them to the routes.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from cacheside.cache.redis import RedisCache, get_redis
from cacheside.persistence.db import get_session
from cacheside.persistence.repositories import CustomerRepository, customer_store_scope
from cacheside.services.customers import CustomerService


async def get_cache(redis: Redis = Depends(get_redis)) -> RedisCache:
    """Get Redis cache instance."""
    return RedisCache(redis)


async def get_customer_repo(
    session: AsyncSession = Depends(get_session),
) -> CustomerRepository:
    """Get a customer repository that commits each write."""
    return CustomerRepository(session, autocommit=True)


async def get_customer_service(
    cache: RedisCache = Depends(get_cache),
    repo: CustomerRepository = Depends(get_customer_repo),
) -> CustomerService:
    """Get the cache-aside customer service for this request."""
    return CustomerService(cache, repo, store_scope=customer_store_scope)


def as_utc(value: datetime) -> datetime:
    """Treat a naive datetime as UTC; convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
