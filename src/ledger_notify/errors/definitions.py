"""Predefined error instances."""

from __future__ import annotations

from ledger_notify.errors.ledger_errors import LedgerNotifyError

# -- Not Found -------------------------------------------------------------

ErrTransferNotFound = LedgerNotifyError(
    "transfer not found", status_code=404, code="transfer-not-found"
)
ErrSubscriptionNotFound = LedgerNotifyError(
    "subscription not found", status_code=404, code="subscription-not-found"
)
ErrNotificationNotFound = LedgerNotifyError(
    "notification not found", status_code=404, code="notification-not-found"
)

# -- Engine ----------------------------------------------------------------

ErrWorkerNotRunning = LedgerNotifyError(
    "notification worker is not initialized", status_code=503, code="worker-not-running"
)
