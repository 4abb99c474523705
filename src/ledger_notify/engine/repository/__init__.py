"""Repositories — data access for transfers, subscriptions, fulfillments, notifications."""

from __future__ import annotations

from ledger_notify.engine.repository.fulfillments import FulfillmentRepository
from ledger_notify.engine.repository.notifications import NotificationRepository
from ledger_notify.engine.repository.subscriptions import SubscriptionRepository
from ledger_notify.engine.repository.transfers import TransferRepository

__all__ = [
    "FulfillmentRepository",
    "NotificationRepository",
    "SubscriptionRepository",
    "TransferRepository",
]
