"""Redis cache implementation for Cacheside.

Provides async Redis operations: the byte-valued key-value contract used by
the cache-aside layer, and the typed data-structure operations exposed by the
cache API. Uses redis-py async client for connection pooling.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.exceptions import WatchError

from cacheside.config import settings
from cacheside.core.errors import CacheUnavailableError
from cacheside.observability.metrics import record_cache_operation

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import Pipeline

# Module-level connection pool, shared for the process lifetime
_redis_client: Redis | None = None

TransactionAction = Callable[["Pipeline"], Awaitable[None] | None]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


async def get_redis() -> Redis:
    """Get or create the Redis client.

    The client is created once, during application startup, and shared by
    every request through dependency injection.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(  # type: ignore[no-untyped-call]
            settings.redis_url,
            decode_responses=False,  # Values are stored as bytes
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_timeout,
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def _text(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    return value.decode() if isinstance(value, bytes) else value


class RedisCache:
    """Cache operations over a shared Redis client.

    Connectivity failures and timeouts are raised as CacheUnavailableError.
    A missing key is never an error.
    """

    def __init__(self, client: Redis, clock: Callable[[], datetime] = utc_now):
        self.client = client
        self.clock = clock

    @asynccontextmanager
    async def _guard(self, operation: str, key: str | None = None) -> AsyncIterator[None]:
        """Time a Redis call and translate connectivity errors."""
        start = time.perf_counter()
        try:
            yield
        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            raise CacheUnavailableError(operation, key, e) from e
        finally:
            record_cache_operation(operation, time.perf_counter() - start)

    # -------------------------------------------------------------------------
    # Key-value contract (used by the cache-aside layer)
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> bytes | None:
        """Get cached bytes, or None if absent or expired."""
        async with self._guard("get", key):
            return cast(bytes | None, await self.client.get(key))

    async def set(self, key: str, value: bytes, expires_at: datetime) -> bool:
        """Store bytes until the absolute expiration instant.

        Overwrites any previous value. An expiration that is not in the
        future removes the key instead and returns False.
        """
        ttl_ms = int((expires_at - self.clock()).total_seconds() * 1000)
        if ttl_ms <= 0:
            await self.remove(key)
            return False
        async with self._guard("set", key):
            return bool(await self.client.set(key, value, px=ttl_ms))

    async def remove(self, key: str) -> bool:
        """Delete a key. Returns False when there was nothing to delete."""
        async with self._guard("delete", key):
            return cast(int, await self.client.delete(key)) > 0

    async def exists(self, key: str) -> bool:
        """Check whether a key is present."""
        async with self._guard("exists", key):
            return cast(int, await self.client.exists(key)) > 0

    # -------------------------------------------------------------------------
    # Strings
    # -------------------------------------------------------------------------

    async def set_string(self, key: str, value: str, expires_at: datetime) -> bool:
        return await self.set(key, value.encode(), expires_at)

    async def get_string(self, key: str) -> str | None:
        return _text(await self.get(key))

    async def remove_string(self, key: str) -> bool:
        return await self.remove(key)

    # -------------------------------------------------------------------------
    # Hashes
    # -------------------------------------------------------------------------

    async def set_hash_field(self, key: str, field: str, value: str) -> bool:
        """Set a hash field, creating or overwriting it."""
        async with self._guard("hset", key):
            await cast(Awaitable[int], self.client.hset(key, field, value))
        return True

    async def get_hash_field(self, key: str, field: str) -> str | None:
        async with self._guard("hget", key):
            return _text(await cast(Awaitable[Any], self.client.hget(key, field)))

    async def remove_hash_field(self, key: str, field: str) -> bool:
        async with self._guard("hdel", key):
            return await cast(Awaitable[int], self.client.hdel(key, field)) > 0

    async def get_all_hash_fields(self, key: str) -> dict[str, str]:
        async with self._guard("hgetall", key):
            raw = await cast(Awaitable[dict[Any, Any]], self.client.hgetall(key))
        return {cast(str, _text(k)): cast(str, _text(v)) for k, v in raw.items()}

    # -------------------------------------------------------------------------
    # Lists
    # -------------------------------------------------------------------------

    async def add_to_list(self, key: str, value: str) -> bool:
        """Append a value to the tail of a list."""
        async with self._guard("rpush", key):
            return await cast(Awaitable[int], self.client.rpush(key, value)) > 0

    async def get_list(self, key: str, start: int = 0, stop: int = -1) -> list[str]:
        async with self._guard("lrange", key):
            items = await cast(Awaitable[list[Any]], self.client.lrange(key, start, stop))
        return [cast(str, _text(item)) for item in items]

    async def remove_from_list(self, key: str, value: str) -> bool:
        """Remove every occurrence of a value from a list."""
        async with self._guard("lrem", key):
            return await cast(Awaitable[int], self.client.lrem(key, 0, value)) > 0

    # -------------------------------------------------------------------------
    # Sets
    # -------------------------------------------------------------------------

    async def add_to_set(self, key: str, value: str) -> bool:
        async with self._guard("sadd", key):
            return await cast(Awaitable[int], self.client.sadd(key, value)) > 0

    async def get_set_members(self, key: str) -> set[str]:
        async with self._guard("smembers", key):
            members = await cast(Awaitable[set[Any]], self.client.smembers(key))
        return {cast(str, _text(member)) for member in members}

    async def remove_from_set(self, key: str, value: str) -> bool:
        async with self._guard("srem", key):
            return await cast(Awaitable[int], self.client.srem(key, value)) > 0

    # -------------------------------------------------------------------------
    # Sorted sets
    # -------------------------------------------------------------------------

    async def add_to_sorted_set(self, key: str, value: str, score: float) -> bool:
        """Add a member or change its score. False if nothing changed."""
        async with self._guard("zadd", key):
            return cast(int, await self.client.zadd(key, {value: score}, ch=True)) > 0

    async def get_sorted_set_range(self, key: str, start: int = 0, stop: int = -1) -> list[str]:
        """Members by ascending score between two ranks (inclusive)."""
        async with self._guard("zrange", key):
            members = await self.client.zrange(key, start, stop)
        return [cast(str, _text(member)) for member in members]

    async def remove_from_sorted_set(self, key: str, value: str) -> bool:
        async with self._guard("zrem", key):
            return cast(int, await self.client.zrem(key, value)) > 0

    # -------------------------------------------------------------------------
    # HyperLogLog
    # -------------------------------------------------------------------------

    async def add_to_hyperloglog(self, key: str, *values: str) -> bool:
        """Add values to a HyperLogLog. True if the estimate changed."""
        async with self._guard("pfadd", key):
            return cast(int, await self.client.pfadd(key, *values)) > 0

    async def get_hyperloglog_count(self, key: str) -> int:
        """Approximate number of distinct values seen."""
        async with self._guard("pfcount", key):
            return cast(int, await self.client.pfcount(key))

    # -------------------------------------------------------------------------
    # Transactions and Pub/Sub
    # -------------------------------------------------------------------------

    async def execute_transaction(self, action: TransactionAction) -> bool:
        """Run queued commands atomically inside MULTI/EXEC.

        ``action`` receives the transactional pipeline and queues commands on
        it. Returns False when a WATCHed key changed and EXEC was aborted.
        """
        async with self._guard("transaction"):
            async with self.client.pipeline(transaction=True) as pipe:
                queued = action(pipe)
                if inspect.isawaitable(queued):
                    await queued
                try:
                    await pipe.execute()
                except WatchError:
                    return False
        return True

    async def publish(self, channel: str, message: str) -> int:
        """Publish a message. Returns the number of receiving subscribers."""
        async with self._guard("publish", channel):
            return cast(int, await self.client.publish(channel, message))

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await cast(Awaitable[bool], self.client.ping())
            return True
        except Exception:
            return False
