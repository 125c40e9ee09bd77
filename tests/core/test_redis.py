"""
Tests for the Redis client module.

Basic get/setex/ping are thin wrappers around redis.asyncio; what is tested
here is the fallback behavior when Redis is disabled, unreachable or failing.
"""
from unittest.mock import AsyncMock

from redis.exceptions import RedisError

from core.redis import RedisClient, get_redis_client, set_redis_client


def _connected_client(mock: AsyncMock) -> RedisClient:
    """A client whose underlying connection is replaced by ``mock``."""
    client = RedisClient("redis://localhost:6379")
    client._client = mock
    return client


class TestRedisClientDisabled:
    """Tests for disabled Redis client."""

    async def test__disabled_client__returns_false_on_ping(self) -> None:
        """Disabled client returns False on ping."""
        client = RedisClient("redis://localhost:6379", enabled=False)
        await client.connect()

        assert client.is_connected is False
        assert await client.ping() is False

        await client.close()

    async def test__disabled_client__returns_safe_defaults(self) -> None:
        """Every operation on a disabled client is a miss."""
        client = RedisClient("redis://localhost:6379", enabled=False)
        await client.connect()

        assert await client.get("any:key") is None
        assert await client.setex("any:key", 60, "value") is False

        await client.close()


class TestRedisClientUnavailable:
    """Tests for Redis client when server is unavailable."""

    async def test__unavailable_server__connect_fails_gracefully(self) -> None:
        """Client handles unavailable server gracefully."""
        client = RedisClient("redis://localhost:59999", enabled=True)
        await client.connect()

        assert client.is_connected is False
        assert await client.get("key") is None
        assert await client.setex("key", 60, "value") is False

        await client.close()


class TestRedisOperationFailures:
    """Tests for Redis operation failures when connected (network blips, timeouts)."""

    async def test__get__returns_none_on_redis_error(self) -> None:
        """GET returns None when Redis raises an error mid-operation."""
        mock = AsyncMock()
        mock.get.side_effect = RedisError("Connection lost")
        client = _connected_client(mock)

        assert await client.get("any-key") is None

    async def test__setex__returns_false_on_redis_error(self) -> None:
        """SETEX returns False when Redis raises an error mid-operation."""
        mock = AsyncMock()
        mock.setex.side_effect = RedisError("Connection lost")
        client = _connected_client(mock)

        assert await client.setex("any-key", 60, "value") is False

    async def test__ping__returns_false_on_redis_error(self) -> None:
        """PING returns False when Redis raises an error mid-operation."""
        mock = AsyncMock()
        mock.ping.side_effect = RedisError("Connection lost")
        client = _connected_client(mock)

        assert await client.ping() is False

    async def test__setex__passes_ttl_through(self) -> None:
        """SETEX forwards key, ttl and value unchanged."""
        mock = AsyncMock()
        client = _connected_client(mock)

        assert await client.setex("bing-dark", 86400, '{"url": "x"}') is True
        mock.setex.assert_awaited_once_with("bing-dark", 86400, '{"url": "x"}')

    async def test__close__releases_connection(self) -> None:
        """Closing a connected client drops the connection."""
        mock = AsyncMock()
        client = _connected_client(mock)

        await client.close()

        mock.aclose.assert_awaited_once()
        assert client.is_connected is False


def test__set_redis_client__round_trips_global_state() -> None:
    client = RedisClient("redis://localhost:6379", enabled=False)
    set_redis_client(client)
    try:
        assert get_redis_client() is client
    finally:
        set_redis_client(None)
    assert get_redis_client() is None
