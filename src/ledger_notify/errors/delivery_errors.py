"""Delivery and signing errors."""

from __future__ import annotations

from typing import Any

from ledger_notify.errors.ledger_errors import LedgerNotifyError


class DeliveryError(LedgerNotifyError):
    """Transport-level failure while sending a notification (refused, timeout, bad response)."""

    def __init__(self, message: str, *, target: str = "", status_code: int = 502) -> None:
        super().__init__(message, status_code=status_code, code="delivery-error")
        self.target = target


class RemoteRejectionError(DeliveryError):
    """The subscriber answered, but with a status code of 400 or above."""

    def __init__(self, target: str, remote_status: int, body: Any = None) -> None:
        super().__init__(
            f"subscriber at {target} rejected notification with status {remote_status}",
            target=target,
        )
        self.code = "remote-rejection"
        self.remote_status = remote_status
        self.body = body


class SigningError(LedgerNotifyError):
    """The configured notification signing key is unusable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500, code="signing-error")
