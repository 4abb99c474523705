"""Process-local cache backend."""

from __future__ import annotations

from collections import OrderedDict
from time import monotonic
from typing import NamedTuple


class _Entry(NamedTuple):
    value: str
    expires_at: float | None


class MemoryCache:
    """Bounded LRU map with per-key expiry.

    Fine for a single notifier process; entries die with it.
    """

    def __init__(self, *, max_entries: int = 10000) -> None:
        self._max_entries = max_entries
        self._entries: OrderedDict[str, _Entry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def connect(self) -> None:
        return None

    async def close(self) -> None:
        self._entries.clear()

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= monotonic():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry.value

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = monotonic() + ttl if ttl else None
        self._entries.pop(key, None)
        self._entries[key] = _Entry(value, expires_at)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)
