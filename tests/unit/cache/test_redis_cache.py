"""Tests for RedisCache over a mocked redis-py client."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.exceptions import WatchError

from cacheside.cache.redis import RedisCache
from cacheside.core.errors import CacheUnavailableError

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def cache(client: AsyncMock) -> RedisCache:
    return RedisCache(client, clock=lambda: NOW)


class TestKeyValue:
    """Test the byte-valued key-value operations."""

    @pytest.mark.asyncio
    async def test_set_converts_expiration_to_milliseconds(
        self, cache: RedisCache, client: AsyncMock
    ) -> None:
        client.set.return_value = True

        assert await cache.set("customers", b"[]", NOW + timedelta(seconds=45)) is True
        client.set.assert_awaited_once_with("customers", b"[]", px=45_000)

    @pytest.mark.asyncio
    async def test_set_with_past_expiration_removes_key(
        self, cache: RedisCache, client: AsyncMock
    ) -> None:
        client.delete.return_value = 1

        assert await cache.set("customer1", b"{}", NOW - timedelta(seconds=1)) is False
        client.set.assert_not_called()
        client.delete.assert_awaited_once_with("customer1")

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, cache: RedisCache, client: AsyncMock) -> None:
        client.get.return_value = None
        assert await cache.get("customer9") is None

    @pytest.mark.asyncio
    async def test_remove_reports_whether_key_existed(
        self, cache: RedisCache, client: AsyncMock
    ) -> None:
        client.delete.return_value = 0
        assert await cache.remove("customer9") is False
        client.delete.return_value = 1
        assert await cache.remove("customer9") is True

    @pytest.mark.asyncio
    async def test_exists(self, cache: RedisCache, client: AsyncMock) -> None:
        client.exists.return_value = 1
        assert await cache.exists("customers") is True


class TestErrorTranslation:
    """Test that connectivity failures surface as CacheUnavailableError."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [RedisConnectionError("refused"), RedisTimeoutError("timed out"), OSError("reset")],
    )
    async def test_get_failure(self, cache: RedisCache, client: AsyncMock, error: Exception) -> None:
        client.get.side_effect = error

        with pytest.raises(CacheUnavailableError) as exc_info:
            await cache.get("customers")

        assert exc_info.value.operation == "get"
        assert exc_info.value.key == "customers"

    @pytest.mark.asyncio
    async def test_hash_failure(self, cache: RedisCache, client: AsyncMock) -> None:
        client.hset.side_effect = RedisConnectionError("refused")

        with pytest.raises(CacheUnavailableError):
            await cache.set_hash_field("h", "f", "v")


class TestStrings:
    """Test string operations."""

    @pytest.mark.asyncio
    async def test_set_string_encodes_value(self, cache: RedisCache, client: AsyncMock) -> None:
        client.set.return_value = True

        await cache.set_string("greeting", "hello", NOW + timedelta(minutes=1))
        client.set.assert_awaited_once_with("greeting", b"hello", px=60_000)

    @pytest.mark.asyncio
    async def test_get_string_decodes_value(self, cache: RedisCache, client: AsyncMock) -> None:
        client.get.return_value = b"hello"
        assert await cache.get_string("greeting") == "hello"


class TestDataStructures:
    """Test hashes, lists, sets, sorted sets and HyperLogLog."""

    @pytest.mark.asyncio
    async def test_hash_fields(self, cache: RedisCache, client: AsyncMock) -> None:
        client.hset.return_value = 0
        client.hget.return_value = b"v"
        client.hgetall.return_value = {b"a": b"1", b"b": b"2"}
        client.hdel.return_value = 0

        assert await cache.set_hash_field("h", "a", "1") is True
        assert await cache.get_hash_field("h", "a") == "v"
        assert await cache.get_all_hash_fields("h") == {"a": "1", "b": "2"}
        assert await cache.remove_hash_field("h", "missing") is False

    @pytest.mark.asyncio
    async def test_list(self, cache: RedisCache, client: AsyncMock) -> None:
        client.rpush.return_value = 1
        client.lrange.return_value = [b"x", b"y"]
        client.lrem.return_value = 2

        assert await cache.add_to_list("l", "x") is True
        assert await cache.get_list("l") == ["x", "y"]
        client.lrange.assert_awaited_once_with("l", 0, -1)
        assert await cache.remove_from_list("l", "x") is True
        client.lrem.assert_awaited_once_with("l", 0, "x")

    @pytest.mark.asyncio
    async def test_set(self, cache: RedisCache, client: AsyncMock) -> None:
        client.sadd.return_value = 0
        client.smembers.return_value = {b"a", b"b"}

        assert await cache.add_to_set("s", "a") is False
        assert await cache.get_set_members("s") == {"a", "b"}

    @pytest.mark.asyncio
    async def test_sorted_set(self, cache: RedisCache, client: AsyncMock) -> None:
        client.zadd.return_value = 1
        client.zrange.return_value = [b"low", b"high"]
        client.zrem.return_value = 1

        assert await cache.add_to_sorted_set("z", "low", 1.5) is True
        client.zadd.assert_awaited_once_with("z", {"low": 1.5}, ch=True)
        assert await cache.get_sorted_set_range("z", 0, 1) == ["low", "high"]
        assert await cache.remove_from_sorted_set("z", "low") is True

    @pytest.mark.asyncio
    async def test_hyperloglog(self, cache: RedisCache, client: AsyncMock) -> None:
        client.pfadd.return_value = 1
        client.pfcount.return_value = 3

        assert await cache.add_to_hyperloglog("visitors", "a", "b", "c") is True
        client.pfadd.assert_awaited_once_with("visitors", "a", "b", "c")
        assert await cache.get_hyperloglog_count("visitors") == 3


class TestTransactionsAndPubSub:
    """Test MULTI/EXEC and publishing."""

    @pytest.fixture
    def pipe(self, client: AsyncMock) -> MagicMock:
        pipe = MagicMock()
        pipe.__aenter__.return_value = pipe
        pipe.__aexit__.return_value = False
        pipe.execute = AsyncMock(return_value=[True, 1])
        client.pipeline = MagicMock(return_value=pipe)
        return pipe

    @pytest.mark.asyncio
    async def test_transaction_runs_queued_commands(
        self, cache: RedisCache, client: AsyncMock, pipe: MagicMock
    ) -> None:
        def queue(p: MagicMock) -> None:
            p.set("k", "v")
            p.delete("k")

        assert await cache.execute_transaction(queue) is True
        client.pipeline.assert_called_once_with(transaction=True)
        pipe.set.assert_called_once_with("k", "v")
        pipe.delete.assert_called_once_with("k")
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_transaction_accepts_async_action(
        self, cache: RedisCache, pipe: MagicMock
    ) -> None:
        async def queue(p: MagicMock) -> None:
            p.incr("counter")

        assert await cache.execute_transaction(queue) is True
        pipe.incr.assert_called_once_with("counter")

    @pytest.mark.asyncio
    async def test_aborted_transaction_returns_false(
        self, cache: RedisCache, pipe: MagicMock
    ) -> None:
        pipe.execute.side_effect = WatchError("watched key changed")
        assert await cache.execute_transaction(lambda p: None) is False

    @pytest.mark.asyncio
    async def test_publish_returns_receiver_count(
        self, cache: RedisCache, client: AsyncMock
    ) -> None:
        client.publish.return_value = 2
        assert await cache.publish("news", "hello") == 2

    @pytest.mark.asyncio
    async def test_health_check(self, cache: RedisCache, client: AsyncMock) -> None:
        client.ping.return_value = True
        assert await cache.health_check() is True
        client.ping.side_effect = RedisConnectionError("refused")
        assert await cache.health_check() is False
