"""Signature cache — notification id to the signature of its last signed body.

Retries of the same notification reuse the stored signature instead of
re-signing.  Each entry remembers the digest of the body it signed; a lookup
with a different digest misses, so a body that changed between attempts
(for example a fulfillment that appeared after the first try) is signed again.
Losing the cache only costs a re-sign.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ledger_notify.cache.client import CacheClient


class SignatureStore(Protocol):
    """What the notification worker needs from a signature cache."""

    async def get(self, notification_id: str, digest: str | None = None) -> str | None: ...
    async def set(self, notification_id: str, signature: str, digest: str = "") -> None: ...
    async def delete(self, notification_id: str) -> None: ...


class SignatureCache:
    """:class:`SignatureStore` backed by a :class:`CacheClient`."""

    def __init__(
        self,
        cache: CacheClient,
        *,
        prefix: str = "notification_signature:",
        ttl: int | None = None,
    ) -> None:
        self._cache = cache
        self._prefix = prefix
        self._ttl = ttl or None

    def _key(self, notification_id: str) -> str:
        return f"{self._prefix}{notification_id}"

    async def get(self, notification_id: str, digest: str | None = None) -> str | None:
        """Return the cached signature.

        When *digest* is given, only a signature made over that same body counts.
        """
        raw = await self._cache.get(self._key(notification_id))
        if raw is None:
            return None
        entry = json.loads(raw)
        if digest is not None and entry.get("digest") != digest:
            return None
        return entry["signature"]

    async def set(self, notification_id: str, signature: str, digest: str = "") -> None:
        """Remember *signature* for *notification_id*."""
        entry = json.dumps({"signature": signature, "digest": digest})
        await self._cache.set(self._key(notification_id), entry, ttl=self._ttl)

    async def delete(self, notification_id: str) -> None:
        """Forget the signature of a delivered notification."""
        await self._cache.delete(self._key(notification_id))
