"""Direct access to Redis data structures.

Every endpoint takes its arguments from the query string. Mutations answer
200 with a confirmation message or 400 when Redis reported no change;
lookups answer 200 with the value or 404 when there is nothing there.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from redis.asyncio.client import Pipeline

from cacheside.api.deps import as_utc, get_cache
from cacheside.api.errors import BadRequestError, NotFoundError
from cacheside.cache.pubsub import get_subscriber, log_message
from cacheside.cache.redis import RedisCache, get_redis

router = APIRouter(prefix="/api/cache", tags=["Cache"])


def _confirm(done: bool, success: str, failure: str) -> str:
    if not done:
        raise BadRequestError(failure)
    return success


# =============================================================================
# Strings
# =============================================================================


@router.post("/set-string")
async def set_string(
    key: str,
    value: str,
    expiration_time: datetime = Query(alias="expirationTime"),
    cache: RedisCache = Depends(get_cache),
) -> str:
    """Set a string that expires at ``expirationTime`` (naive values are UTC)."""
    done = await cache.set_string(key, value, as_utc(expiration_time))
    return _confirm(done, "String set successfully.", "Failed to set string.")


@router.get("/get-string")
async def get_string(key: str, cache: RedisCache = Depends(get_cache)) -> str:
    value = await cache.get_string(key)
    if value is None:
        raise NotFoundError("String", key)
    return value


@router.delete("/remove-string")
async def remove_string(key: str, cache: RedisCache = Depends(get_cache)) -> str:
    done = await cache.remove_string(key)
    return _confirm(done, "String removed successfully.", "Failed to remove string.")


# =============================================================================
# Hashes
# =============================================================================


@router.post("/set-hash-field")
async def set_hash_field(
    key: str, field: str, value: str, cache: RedisCache = Depends(get_cache)
) -> str:
    done = await cache.set_hash_field(key, field, value)
    return _confirm(done, "Hash field set successfully.", "Failed to set hash field.")


@router.get("/get-hash-field")
async def get_hash_field(key: str, field: str, cache: RedisCache = Depends(get_cache)) -> str:
    value = await cache.get_hash_field(key, field)
    if value is None:
        raise NotFoundError("Hash field", f"{key}.{field}")
    return value


@router.delete("/remove-hash-field")
async def remove_hash_field(key: str, field: str, cache: RedisCache = Depends(get_cache)) -> str:
    done = await cache.remove_hash_field(key, field)
    return _confirm(done, "Hash field removed successfully.", "Failed to remove hash field.")


@router.get("/get-all-hash-fields")
async def get_all_hash_fields(key: str, cache: RedisCache = Depends(get_cache)) -> dict[str, str]:
    fields = await cache.get_all_hash_fields(key)
    if not fields:
        raise NotFoundError("Hash", key)
    return fields


# =============================================================================
# Lists
# =============================================================================


@router.post("/add-to-list")
async def add_to_list(key: str, value: str, cache: RedisCache = Depends(get_cache)) -> str:
    done = await cache.add_to_list(key, value)
    return _confirm(done, "Item added to list.", "Failed to add item to list.")


@router.get("/get-list")
async def get_list(
    key: str, start: int = 0, stop: int = -1, cache: RedisCache = Depends(get_cache)
) -> list[str]:
    items = await cache.get_list(key, start, stop)
    if not items:
        raise NotFoundError("List", key)
    return items


@router.delete("/remove-from-list")
async def remove_from_list(key: str, value: str, cache: RedisCache = Depends(get_cache)) -> str:
    done = await cache.remove_from_list(key, value)
    return _confirm(done, "Item removed from list.", "Failed to remove item from list.")


# =============================================================================
# Sets
# =============================================================================


@router.post("/add-to-set")
async def add_to_set(key: str, value: str, cache: RedisCache = Depends(get_cache)) -> str:
    done = await cache.add_to_set(key, value)
    return _confirm(done, "Item added to set.", "Failed to add item to set.")


@router.get("/get-set-members")
async def get_set_members(key: str, cache: RedisCache = Depends(get_cache)) -> list[str]:
    members = await cache.get_set_members(key)
    if not members:
        raise NotFoundError("Set", key)
    return sorted(members)


@router.delete("/remove-from-set")
async def remove_from_set(key: str, value: str, cache: RedisCache = Depends(get_cache)) -> str:
    done = await cache.remove_from_set(key, value)
    return _confirm(done, "Item removed from set.", "Failed to remove item from set.")


# =============================================================================
# Sorted sets
# =============================================================================


@router.post("/add-to-sorted-set")
async def add_to_sorted_set(
    key: str, value: str, score: float, cache: RedisCache = Depends(get_cache)
) -> str:
    done = await cache.add_to_sorted_set(key, value, score)
    return _confirm(done, "Item added to sorted set.", "Failed to add item to sorted set.")


@router.get("/get-sorted-set-range")
async def get_sorted_set_range(
    key: str, start: int = 0, stop: int = -1, cache: RedisCache = Depends(get_cache)
) -> list[str]:
    items = await cache.get_sorted_set_range(key, start, stop)
    if not items:
        raise NotFoundError("Sorted set", key)
    return items


@router.delete("/remove-from-sorted-set")
async def remove_from_sorted_set(
    key: str, value: str, cache: RedisCache = Depends(get_cache)
) -> str:
    done = await cache.remove_from_sorted_set(key, value)
    return _confirm(
        done, "Item removed from sorted set.", "Failed to remove item from sorted set."
    )


# =============================================================================
# HyperLogLog
# =============================================================================


@router.post("/add-to-hyperloglog")
async def add_to_hyperloglog(
    key: str,
    value: list[str] = Query(),
    cache: RedisCache = Depends(get_cache),
) -> str:
    """Add one or more values; repeat ``value`` in the query string for several."""
    done = await cache.add_to_hyperloglog(key, *value)
    return _confirm(done, "Items added to HyperLogLog.", "HyperLogLog was not changed.")


@router.get("/get-hyperloglog-count")
async def get_hyperloglog_count(key: str, cache: RedisCache = Depends(get_cache)) -> int:
    return await cache.get_hyperloglog_count(key)


# =============================================================================
# Transactions
# =============================================================================


@router.post("/execute-transaction")
async def execute_transaction(key: str, value: str, cache: RedisCache = Depends(get_cache)) -> str:
    """Set ``key`` to ``value`` and delete it again inside one MULTI/EXEC."""

    def queue(pipe: Pipeline) -> None:
        pipe.set(key, value)
        pipe.delete(key)

    done = await cache.execute_transaction(queue)
    return _confirm(done, "Transaction executed successfully.", "Failed to execute transaction.")


# =============================================================================
# Pub/Sub
# =============================================================================


@router.post("/subscribe")
async def subscribe(channel: str, redis: Redis = Depends(get_redis)) -> str:
    """Subscribe to a channel; received messages are written to the log."""
    subscriber = await get_subscriber(redis)
    await subscriber.subscribe(channel, log_message)
    return "Subscribed to channel."


@router.post("/publish")
async def publish(channel: str, message: str, cache: RedisCache = Depends(get_cache)) -> str:
    await cache.publish(channel, message)
    return "Message published to channel."


# =============================================================================
# Keys
# =============================================================================


@router.get("/key-exists")
async def key_exists(key: str, cache: RedisCache = Depends(get_cache)) -> bool:
    return await cache.exists(key)


@router.delete("/remove")
async def remove(key: str, cache: RedisCache = Depends(get_cache)) -> str:
    done = await cache.remove(key)
    return _confirm(done, "Key removed successfully.", "Failed to remove key.")
