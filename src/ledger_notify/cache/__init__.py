"""Cache — key/value backends and the notification signature cache."""

from __future__ import annotations

from ledger_notify.cache.client import CacheClient
from ledger_notify.cache.signatures import SignatureCache

__all__ = ["CacheClient", "SignatureCache"]
