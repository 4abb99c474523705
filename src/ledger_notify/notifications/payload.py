"""Notification bodies for local listeners and webhook subscribers.

Only executed and rejected transfers carry fulfillment evidence, under
``related_resources.execution_condition_fulfillment`` and
``related_resources.cancellation_condition_fulfillment`` respectively.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ledger_notify.converters import convert_to_external_fulfillment, convert_to_external_transfer
from ledger_notify.engine.models.subscription import WILDCARD_SUBJECT
from ledger_notify.engine.models.transfer import TransferState, is_transfer_finalized

if TYPE_CHECKING:
    from ledger_notify.engine.models.fulfillment import Fulfillment
    from ledger_notify.engine.models.notification import Notification
    from ledger_notify.engine.models.subscription import Subscription
    from ledger_notify.engine.models.transfer import Transfer
    from ledger_notify.utils.uri import URIManager

NOTIFICATION_EVENT = "transfer.update"

_FULFILLMENT_KEYS = {
    TransferState.EXECUTED: "execution_condition_fulfillment",
    TransferState.REJECTED: "cancellation_condition_fulfillment",
}


def affected_accounts(transfer: Transfer) -> list[str]:
    """Accounts touched by *transfer*, deduplicated, followed by the wildcard."""
    accounts = list(dict.fromkeys(transfer.affected_accounts))
    accounts.append(WILDCARD_SUBJECT)
    return accounts


def affected_subjects(accounts: list[str], uri: URIManager) -> list[str]:
    """Subscription subjects for *accounts*: account URIs, wildcard unchanged."""
    return [a if a == WILDCARD_SUBJECT else uri.make("account", a) for a in accounts]


def related_resources(
    transfer: Transfer, fulfillment: Fulfillment | None
) -> dict[str, Any] | None:
    """Fulfillment evidence to attach for a finalized transfer, if any."""
    if fulfillment is None or not is_transfer_finalized(transfer):
        return None
    key = _FULFILLMENT_KEYS.get(TransferState(transfer.state))
    if key is None:
        return None
    return {key: convert_to_external_fulfillment(fulfillment)}


def build_resource_body(
    transfer: Transfer, fulfillment: Fulfillment | None, uri: URIManager
) -> dict[str, Any]:
    """``{"resource": ..., "related_resources"?: ...}`` for *transfer*."""
    body: dict[str, Any] = {"resource": convert_to_external_transfer(transfer, uri)}
    related = related_resources(transfer, fulfillment)
    if related:
        body["related_resources"] = related
    return body


def build_notification_body(
    notification: Notification,
    transfer: Transfer,
    subscription: Subscription,
    fulfillment: Fulfillment | None,
    uri: URIManager,
) -> dict[str, Any]:
    """Unsigned webhook payload of *notification* for its subscriber."""
    subscription_uri = uri.make("subscription", subscription.id)
    return {
        "id": f"{subscription_uri}/notifications/{notification.id}",
        "subscription": subscription_uri,
        "event": NOTIFICATION_EVENT,
        **build_resource_body(transfer, fulfillment, uri),
    }
