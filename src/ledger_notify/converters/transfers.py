"""Transfer converter.

The external form replaces account names and the transfer id with URIs,
reports the ledger's base URI, groups state timestamps under ``timeline`` and
omits unset fields.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ledger_notify.engine.models.base import as_utc

if TYPE_CHECKING:
    from datetime import datetime

    from ledger_notify.engine.models.transfer import Transfer
    from ledger_notify.utils.uri import URIManager

_TIMELINE_FIELDS = ("proposed_at", "prepared_at", "executed_at", "rejected_at")


def _isoformat(value: datetime) -> str:
    return as_utc(value).isoformat().replace("+00:00", "Z")


def _convert_entries(entries: list[dict[str, Any]], uri: URIManager) -> list[dict[str, Any]]:
    converted = []
    for entry in entries:
        item = {k: v for k, v in entry.items() if v is not None}
        item["account"] = uri.make("account", entry["account"])
        converted.append(item)
    return converted


def convert_to_external_transfer(transfer: Transfer, uri: URIManager) -> dict[str, Any]:
    """External JSON representation of *transfer*."""
    external: dict[str, Any] = {
        "id": uri.make("transfer", transfer.id),
        "ledger": transfer.ledger or uri.base_uri,
        "debits": _convert_entries(transfer.debits, uri),
        "credits": _convert_entries(transfer.credits, uri),
        "state": str(transfer.state),
    }
    if transfer.execution_condition is not None:
        external["execution_condition"] = transfer.execution_condition
    if transfer.cancellation_condition is not None:
        external["cancellation_condition"] = transfer.cancellation_condition
    if transfer.expires_at is not None:
        external["expires_at"] = _isoformat(transfer.expires_at)
    if transfer.rejection_reason is not None:
        external["rejection_reason"] = transfer.rejection_reason

    timeline = {
        name: _isoformat(value)
        for name in _TIMELINE_FIELDS
        if (value := getattr(transfer, name)) is not None
    }
    if timeline:
        external["timeline"] = timeline
    return external
