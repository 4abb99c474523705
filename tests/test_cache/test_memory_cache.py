"""Tests for the in-memory cache backend."""

from __future__ import annotations

from ledger_notify.cache import memory
from ledger_notify.cache.memory import MemoryCache


class TestMemoryCache:
    async def test_set_get_delete(self) -> None:
        cache = MemoryCache()
        await cache.connect()

        await cache.set("notification_signature:n1", "CC:sig")
        assert await cache.get("notification_signature:n1") == "CC:sig"

        await cache.delete("notification_signature:n1")
        assert await cache.get("notification_signature:n1") is None

    async def test_delete_missing_key(self) -> None:
        await MemoryCache().delete("missing")

    async def test_close_clears(self) -> None:
        cache = MemoryCache()
        await cache.set("k", "v")
        await cache.close()
        assert len(cache) == 0

    async def test_ttl_expiry(self, monkeypatch) -> None:
        now = [1000.0]
        monkeypatch.setattr(memory, "monotonic", lambda: now[0])
        cache = MemoryCache()

        await cache.set("k", "v", ttl=30)
        await cache.set("forever", "v")
        now[0] += 29
        assert await cache.get("k") == "v"

        now[0] += 2
        assert await cache.get("k") is None
        assert await cache.get("forever") == "v"
        assert len(cache) == 1

    async def test_lru_eviction(self) -> None:
        """Least recently used key goes first when full."""
        cache = MemoryCache(max_entries=2)

        await cache.set("k1", "v1")
        await cache.set("k2", "v2")
        await cache.get("k1")  # k2 is now the oldest
        await cache.set("k3", "v3")

        assert await cache.get("k1") == "v1"
        assert await cache.get("k2") is None
        assert await cache.get("k3") == "v3"
