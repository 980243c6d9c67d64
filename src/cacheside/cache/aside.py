"""Cache-aside orchestration over a key-value cache and a record store.

Read path: serve from the cache when the entry is present and decodes to a
non-empty value; otherwise load from the record store, populate the cache
with ``now + ttl`` and return what was loaded.

Write path: insert into the store, then cache the created record under its
own key. The collection key is left alone; callers that want read-after-write
freshness for collections call ``invalidate`` themselves.

Delete path: look the record up in the store, delete it and drop its cache
entry. A missing record is reported as False without touching the cache.

The orchestrator keeps no state of its own between calls. Concurrent misses
on a key share one store load when a SingleFlight registry is supplied. A
shared load runs on a store opened by ``store_scope`` so that no caller owns
it; without a scope, callers only join loads started on their own store.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timedelta
from operator import attrgetter
from typing import Any, Generic, TypeVar

from cacheside.cache.keys import CacheKeys
from cacheside.cache.redis import utc_now
from cacheside.cache.singleflight import SingleFlight
from cacheside.core.contracts import Codec, KeyValueCache, RecordStore
from cacheside.core.errors import CacheUnavailableError, DecodeError
from cacheside.observability.logging import cache_key_context
from cacheside.observability.metrics import record_cache_hit, record_cache_miss, record_store_load
from cacheside.observability.tracing import get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

RecordT = TypeVar("RecordT")
T = TypeVar("T")

DEFAULT_TTL = timedelta(seconds=45)


class CacheAside(Generic[RecordT]):
    """Read-through, write-populate, delete-invalidate over one record type."""

    def __init__(
        self,
        cache: KeyValueCache,
        codec: Codec[RecordT],
        *,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
        fail_open: bool = True,
        single_flight: SingleFlight[Any] | None = None,
        store_scope: Callable[[], AbstractAsyncContextManager[RecordStore[RecordT]]] | None = None,
        identify: Callable[[RecordT], int] = attrgetter("id"),
    ):
        self.cache = cache
        self.codec = codec
        self.ttl = ttl
        self.clock = clock
        self.fail_open = fail_open
        self.single_flight = single_flight
        self.store_scope = store_scope
        self.identify = identify

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def read_collection(self, name: str, store: RecordStore[RecordT]) -> list[RecordT]:
        """Return every record of a collection, from cache when possible."""
        key = CacheKeys.collection(name)

        async def load(source: RecordStore[RecordT]) -> list[RecordT]:
            records = await self._from_store(key, "list_all", source.list_all)
            await self._cache_set(key, self.codec.encode_many(records))
            return records

        with cache_key_context(key, CacheKeys.family(key)):
            cached = await self._cache_get(key)
            if cached is not None:
                try:
                    records = self.codec.decode_many(cached)
                except DecodeError as e:
                    logger.warning(f"Discarding undecodable cache entry {key}: {e}")
                else:
                    if records:
                        self._hit(key)
                        return records

            self._miss(key)
            return await self._load(key, store, load)

    async def read_record(
        self, name: str, record_id: int, store: RecordStore[RecordT]
    ) -> RecordT | None:
        """Return one record, from cache when possible, or None if it does not exist."""
        key = CacheKeys.record(name, record_id)

        async def load(source: RecordStore[RecordT]) -> RecordT | None:
            found = await self._from_store(key, "find_by_id", lambda: source.find_by_id(record_id))
            if found is not None:
                await self._cache_set(key, self.codec.encode(found))
            return found

        with cache_key_context(key, CacheKeys.family(key)):
            cached = await self._cache_get(key)
            if cached is not None:
                try:
                    record = self.codec.decode(cached)
                except DecodeError as e:
                    logger.warning(f"Discarding undecodable cache entry {key}: {e}")
                else:
                    self._hit(key)
                    return record

            self._miss(key)
            return await self._load(key, store, load)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create_record(
        self, name: str, record: RecordT, store: RecordStore[RecordT]
    ) -> RecordT:
        """Insert a record and cache it under its generated identifier."""
        created = await store.insert(record)
        key = CacheKeys.record(name, self.identify(created))
        with cache_key_context(key, CacheKeys.family(key)):
            await self._cache_set(key, self.codec.encode(created))
            logger.info(f"Created record {key}")
        return created

    async def delete_record(self, name: str, record_id: int, store: RecordStore[RecordT]) -> bool:
        """Delete a record and its cache entry.

        Returns False, without any cache mutation, when the record does not exist.
        """
        key = CacheKeys.record(name, record_id)
        with cache_key_context(key, CacheKeys.family(key)):
            existing = await store.find_by_id(record_id)
            if existing is None:
                return False

            deleted = await store.delete_by_id(record_id)
            if deleted:
                await self.invalidate(key)
                logger.info(f"Deleted record {key}")
            return deleted

    async def invalidate(self, key: str) -> bool:
        """Drop a cache entry. Returns whether an entry was removed."""
        try:
            return await self.cache.remove(key)
        except CacheUnavailableError as e:
            if not self.fail_open:
                raise
            # Entry will expire on its own once the TTL passes
            logger.warning(f"Cache remove skipped for {key}: {e}")
            return False

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _hit(self, key: str) -> None:
        record_cache_hit(CacheKeys.family(key))
        logger.debug("Cache hit")

    def _miss(self, key: str) -> None:
        record_cache_miss(CacheKeys.family(key))
        logger.debug("Cache miss, loading from store")

    async def _load(
        self,
        key: str,
        store: RecordStore[RecordT],
        loader: Callable[[RecordStore[RecordT]], Awaitable[T]],
    ) -> T:
        if self.single_flight is None:
            return await loader(store)

        scope = self.store_scope
        if scope is None:
            # The load borrows the caller's store, so only that store's callers may join
            return await self.single_flight.do(f"{key}@{id(store)}", lambda: loader(store))

        async def detached() -> T:
            async with scope() as owned:
                return await loader(owned)

        return await self.single_flight.do(key, detached)

    async def _from_store(
        self, key: str, operation: str, call: Callable[[], Awaitable[T]]
    ) -> T:
        with tracer.start_as_current_span(f"store.{operation}") as span:
            span.set_attribute("cache.key", key)
            start = time.perf_counter()
            try:
                return await call()
            finally:
                record_store_load(operation, time.perf_counter() - start)

    async def _cache_get(self, key: str) -> bytes | None:
        try:
            return await self.cache.get(key)
        except CacheUnavailableError as e:
            if not self.fail_open:
                raise
            logger.warning(f"Cache read failed for {key}, reading from store: {e}")
            return None

    async def _cache_set(self, key: str, value: bytes) -> None:
        expires_at = self.clock() + self.ttl
        try:
            await self.cache.set(key, value, expires_at)
        except CacheUnavailableError as e:
            if not self.fail_open:
                raise
            logger.warning(f"Cache write skipped for {key}: {e}")
