"""Error types for ledger-notify."""

from __future__ import annotations

from ledger_notify.errors.delivery_errors import DeliveryError, RemoteRejectionError, SigningError
from ledger_notify.errors.ledger_errors import LedgerNotifyError

__all__ = [
    "DeliveryError",
    "LedgerNotifyError",
    "RemoteRejectionError",
    "SigningError",
]
