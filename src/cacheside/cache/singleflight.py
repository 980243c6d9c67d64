"""Per-key in-flight load registry.

Concurrent cache misses for the same key join a single load instead of each
querying the record store. The first caller runs the loader; later callers
await the same future. The registry only holds keys whose load is running,
so it is empty between requests.

Example:
    flight = SingleFlight()
    customers = await flight.do("customers", lambda: repo.list_all())
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar, cast

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Collapse concurrent calls for one key into one underlying call."""

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Future[Any]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)

    async def do(self, key: str, loader: Callable[[], Awaitable[T]]) -> T:
        """Run ``loader`` for ``key`` unless a run is already in flight.

        Every caller gets the same result, or the same exception. The load
        runs in its own task, so a caller being cancelled stops waiting
        without cancelling the load for the others.
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(loader())
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug(f"Joining in-flight load for {key}")
        return cast(T, await asyncio.shield(task))

    def _forget(self, key: str, task: asyncio.Future[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark the exception retrieved when no caller is left to await it
            task.exception()
