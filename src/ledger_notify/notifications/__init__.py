"""Notifications — transfer update fan-out and webhook delivery.

Provides:
- ``NotificationWorker`` — finds or creates notifications, emits local events, delivers webhooks
- ``NotificationScheduler`` — durable retry queue with exponential backoff
- ``NotificationTransport`` — httpx webhook transport
- ``EventBus`` — in-process listeners for ``transfer-<account>`` events
"""

from __future__ import annotations

from ledger_notify.notifications.events import WILDCARD_EVENT, EventBus, transfer_event_name
from ledger_notify.notifications.scheduler import NotificationScheduler, Scheduler
from ledger_notify.notifications.transport import (
    DeliveryResult,
    NotificationTransport,
    Transport,
)
from ledger_notify.notifications.worker import NotificationWorker

__all__ = [
    "WILDCARD_EVENT",
    "DeliveryResult",
    "EventBus",
    "NotificationScheduler",
    "NotificationTransport",
    "NotificationWorker",
    "Scheduler",
    "Transport",
    "transfer_event_name",
]
