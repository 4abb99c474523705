"""Redis cache backend.

Lets several notifier processes share the signature of a notification.
Requires the ``redis`` extra.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from redis.asyncio import Redis


class RedisCache:
    """Backend over ``redis.asyncio``."""

    def __init__(self, url: str, *, max_connections: int = 10) -> None:
        self._url = url
        self._max_connections = max_connections
        self._redis: Redis | None = None

    async def connect(self) -> None:
        """Open the pool and ping the server.

        Raises:
            ImportError: If redis-py is not installed.
            ConnectionError: If the server does not answer.
        """
        try:
            from redis.asyncio import Redis
            from redis.exceptions import RedisError
        except ImportError as e:
            msg = "redis package not installed. Install with: pip install ledger-notify[redis]"
            raise ImportError(msg) from e

        client = Redis.from_url(
            self._url, decode_responses=True, max_connections=self._max_connections
        )
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            await client.aclose()
            msg = f"Failed to connect to Redis at {self._url}"
            raise ConnectionError(msg) from e
        self._redis = client

    async def close(self) -> None:
        client, self._redis = self._redis, None
        if client is not None:
            await client.aclose()

    def _client(self) -> Redis:
        if self._redis is None:
            msg = "Redis cache is not connected"
            raise RuntimeError(msg)
        return self._redis

    async def get(self, key: str) -> str | None:
        return await self._client().get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        await self._client().set(key, value, ex=ttl or None)

    async def delete(self, key: str) -> None:
        await self._client().delete(key)
