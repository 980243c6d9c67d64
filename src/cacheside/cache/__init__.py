"""Cache layer for Cacheside.

Provides Redis caching with the cache-aside pattern:
- Read-through population with a fixed TTL
- Record-level invalidation on delete
- Single-flight loading for concurrent misses
- Typed Redis data-structure operations and Pub/Sub subscriptions
"""

from cacheside.cache.aside import DEFAULT_TTL, CacheAside
from cacheside.cache.codec import JsonCodec
from cacheside.cache.keys import CacheKeys
from cacheside.cache.pubsub import ChannelMessage, ChannelSubscriber, get_subscriber, stop_subscriber
from cacheside.cache.redis import RedisCache, close_redis, get_redis
from cacheside.cache.singleflight import SingleFlight

__all__ = [
    # Core cache
    "CacheKeys",
    "RedisCache",
    "get_redis",
    "close_redis",
    # Cache-aside
    "CacheAside",
    "DEFAULT_TTL",
    "JsonCodec",
    "SingleFlight",
    # Pub/Sub
    "ChannelMessage",
    "ChannelSubscriber",
    "get_subscriber",
    "stop_subscriber",
]
