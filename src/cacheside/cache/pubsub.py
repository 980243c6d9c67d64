"""Redis Pub/Sub channel subscriptions.

One ``ChannelSubscriber`` per process owns a single Redis PubSub connection
and a background listener task. Handlers are registered per channel; every
message received on a channel is passed to each of its handlers.

Example:
    subscriber = ChannelSubscriber(await get_redis())

    async def on_message(message: ChannelMessage) -> None:
        logger.info(f"{message.channel}: {message.data}")

    await subscriber.subscribe("orders", on_message)
    ...
    await subscriber.stop()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from cacheside.core.errors import CacheUnavailableError

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelMessage:
    """A message received on a subscribed channel."""

    channel: str
    data: str

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "ChannelMessage":
        """Build from a redis-py PubSub message dict."""
        channel = raw["channel"]
        data = raw["data"]
        return cls(
            channel=channel.decode() if isinstance(channel, bytes) else str(channel),
            data=data.decode() if isinstance(data, bytes) else str(data),
        )


MessageHandler = Callable[[ChannelMessage], Awaitable[None]]


class ChannelSubscriber:
    """Receives Pub/Sub messages and dispatches them to registered handlers.

    The listener task starts with the first subscription and runs until
    ``stop()``. A failing handler is logged and does not stop the listener.
    """

    def __init__(self, client: Redis):
        self.client = client
        self._handlers: dict[str, list[MessageHandler]] = {}
        self._pubsub: PubSub | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def channels(self) -> list[str]:
        """Channels with at least one handler."""
        return sorted(self._handlers)

    async def subscribe(self, channel: str, handler: MessageHandler) -> None:
        """Register a handler for a channel, subscribing on first use.

        Raises CacheUnavailableError when Redis cannot be reached; the
        channel is then left unregistered.
        """
        handlers = self._handlers.get(channel)
        if handlers is not None:
            handlers.append(handler)
            logger.info(f"Added handler to channel {channel}")
            return

        # Registered before the await so concurrent first subscribers share the list
        self._handlers[channel] = [handler]
        try:
            if self._pubsub is None:
                self._pubsub = self.client.pubsub()
            await self._pubsub.subscribe(channel)
        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            self._handlers.pop(channel, None)
            raise CacheUnavailableError("subscribe", channel, e) from e

        if not self._running:
            self._running = True
            self._task = asyncio.create_task(self._listen_loop())
        logger.info(f"Subscribed handler to channel {channel}")

    async def unsubscribe(self, channel: str) -> bool:
        """Drop every handler for a channel. Returns False if it was not subscribed."""
        if channel not in self._handlers:
            return False
        del self._handlers[channel]
        if self._pubsub is not None:
            await self._pubsub.unsubscribe(channel)
        logger.info(f"Unsubscribed from channel {channel}")
        return True

    async def stop(self) -> None:
        """Stop listening and close the PubSub connection."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._pubsub:
            await self._pubsub.unsubscribe()
            await self._pubsub.aclose()
            self._pubsub = None

        self._handlers.clear()
        logger.info("Stopped channel subscriber")

    async def _listen_loop(self) -> None:
        """Main loop for receiving messages."""
        while self._running and self._pubsub:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )

                if message is None:
                    continue

                if message["type"] == "message":
                    await self._dispatch(ChannelMessage.from_raw(message))

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in channel listener: {e}")
                await asyncio.sleep(1)

    async def _dispatch(self, message: ChannelMessage) -> None:
        """Pass a message to every handler registered for its channel."""
        for handler in list(self._handlers.get(message.channel, ())):
            try:
                await handler(message)
            except Exception as e:
                logger.error(f"Handler for channel {message.channel} failed: {e}")


async def log_message(message: ChannelMessage) -> None:
    """Default handler: log every received message."""
    logger.info(f"Message received from channel {message.channel}: {message.data}")


# Process-wide subscriber, created on first subscription
_subscriber: ChannelSubscriber | None = None


async def get_subscriber(client: Redis) -> ChannelSubscriber:
    """Get or create the process-wide channel subscriber."""
    global _subscriber
    if _subscriber is None:
        _subscriber = ChannelSubscriber(client)
    return _subscriber


async def stop_subscriber() -> None:
    """Stop the process-wide channel subscriber, if any."""
    global _subscriber
    if _subscriber is not None:
        await _subscriber.stop()
        _subscriber = None
