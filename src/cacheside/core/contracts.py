"""Protocols for the collaborators of the cache-aside orchestrator.

The orchestrator depends on these shapes only, so any key-value cache, any
record store and any serialization can be plugged in.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, TypeVar

RecordT = TypeVar("RecordT")


class KeyValueCache(Protocol):
    """Byte-valued cache with absolute per-key expiry."""

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes, expires_at: datetime) -> bool: ...

    async def remove(self, key: str) -> bool: ...


class RecordStore(Protocol[RecordT]):
    """CRUD over persisted records of a single type."""

    async def list_all(self) -> list[RecordT]: ...

    async def insert(self, record: RecordT) -> RecordT: ...

    async def find_by_id(self, record_id: int) -> RecordT | None: ...

    async def delete_by_id(self, record_id: int) -> bool: ...


class Codec(Protocol[RecordT]):
    """Encodes records and sequences of records to bytes and back."""

    def encode(self, record: RecordT) -> bytes: ...

    def decode(self, data: bytes) -> RecordT: ...

    def encode_many(self, records: Sequence[RecordT]) -> bytes: ...

    def decode_many(self, data: bytes) -> list[RecordT]: ...
