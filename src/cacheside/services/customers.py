"""Customer reads and writes through the cache-aside layer.

Cache keys: "customers" holds the full list, "customer{id}" holds one record.
Creating or deleting a customer does not refresh "customers" unless
``invalidate_collection_on_write`` is enabled; otherwise the cached list may
lag behind the database until its TTL runs out.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import timedelta

from cacheside.cache.aside import CacheAside
from cacheside.cache.codec import JsonCodec
from cacheside.cache.keys import CacheKeys
from cacheside.cache.singleflight import SingleFlight
from cacheside.config import settings
from cacheside.core.contracts import KeyValueCache, RecordStore
from cacheside.core.model import Customer

logger = logging.getLogger(__name__)

customer_codec: JsonCodec[Customer] = JsonCodec(Customer)

# Shared by every request in the process so concurrent misses join one load
_customer_loads: SingleFlight[object] = SingleFlight()


class CustomerService:
    """Customer operations for one request.

    Misses shared with other requests load through ``store_scope`` when given;
    otherwise only callers using the same ``store`` share a load.
    """

    def __init__(
        self,
        cache: KeyValueCache,
        store: RecordStore[Customer],
        *,
        ttl: timedelta | None = None,
        fail_open: bool | None = None,
        single_flight: bool | None = None,
        invalidate_collection_on_write: bool | None = None,
        store_scope: Callable[[], AbstractAsyncContextManager[RecordStore[Customer]]] | None = None,
    ):
        self.store = store
        self.invalidate_collection_on_write = (
            settings.invalidate_collection_on_write
            if invalidate_collection_on_write is None
            else invalidate_collection_on_write
        )
        use_single_flight = settings.cache_single_flight if single_flight is None else single_flight
        self.aside: CacheAside[Customer] = CacheAside(
            cache,
            customer_codec,
            ttl=ttl if ttl is not None else timedelta(seconds=settings.cache_ttl_seconds),
            fail_open=settings.cache_fail_open if fail_open is None else fail_open,
            single_flight=_customer_loads if use_single_flight else None,
            store_scope=store_scope,
        )

    async def list_customers(self) -> list[Customer]:
        return await self.aside.read_collection(CacheKeys.CUSTOMERS, self.store)

    async def get_customer(self, customer_id: int) -> Customer | None:
        return await self.aside.read_record(CacheKeys.CUSTOMER, customer_id, self.store)

    async def add_customer(self, customer: Customer) -> Customer:
        created = await self.aside.create_record(CacheKeys.CUSTOMER, customer, self.store)
        if self.invalidate_collection_on_write:
            await self.aside.invalidate(CacheKeys.customers())
        return created

    async def remove_customer(self, customer_id: int) -> bool:
        deleted = await self.aside.delete_record(CacheKeys.CUSTOMER, customer_id, self.store)
        if deleted and self.invalidate_collection_on_write:
            await self.aside.invalidate(CacheKeys.customers())
        return deleted
