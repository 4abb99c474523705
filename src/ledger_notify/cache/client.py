"""Key/value cache used to keep notification signatures between attempts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from ledger_notify.config.settings import CacheEngine

if TYPE_CHECKING:
    from ledger_notify.config.settings import CacheConfig

logger = logging.getLogger(__name__)


class CacheBackend(Protocol):
    """String-to-string store with optional per-key expiry."""

    async def connect(self) -> None: ...
    async def close(self) -> None: ...
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str, ttl: int | None = None) -> None: ...
    async def delete(self, key: str) -> None: ...


def _build_backend(config: CacheConfig) -> CacheBackend:
    from ledger_notify.cache.memory import MemoryCache
    from ledger_notify.cache.redis import RedisCache

    if config.engine == CacheEngine.MEMORY:
        return MemoryCache(max_entries=config.max_size)
    if config.engine == CacheEngine.REDIS:
        return RedisCache(config.url, max_connections=config.max_connections)
    msg = f"Unsupported cache engine: {config.engine}"
    raise ValueError(msg)


class CacheClient:
    """Front for the configured backend (``memory`` or ``redis``)."""

    def __init__(self, config: CacheConfig) -> None:
        self._config = config
        self._backend: CacheBackend | None = None

    @property
    def is_connected(self) -> bool:
        return self._backend is not None

    async def connect(self) -> None:
        """Build and connect the backend named by ``config.engine``.

        Raises:
            ValueError: If the engine is not supported.
            ConnectionError: If Redis cannot be reached.
        """
        if self._backend is not None:
            return
        backend = _build_backend(self._config)
        await backend.connect()
        self._backend = backend
        logger.debug("Cache connected (%s)", self._config.engine)

    async def close(self) -> None:
        backend, self._backend = self._backend, None
        if backend is not None:
            await backend.close()

    def _connected(self) -> CacheBackend:
        if self._backend is None:
            msg = "Cache not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._backend

    async def get(self, key: str) -> str | None:
        return await self._connected().get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store *value* under *key*; *ttl* in seconds, None keeps it until deleted."""
        await self._connected().set(key, value, ttl=ttl)

    async def delete(self, key: str) -> None:
        await self._connected().delete(key)
