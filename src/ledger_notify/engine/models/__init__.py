"""ORM models. Importing this package registers every table on ``Base.metadata``."""

from ledger_notify.engine.models.base import Base, TimestampMixin
from ledger_notify.engine.models.fulfillment import Fulfillment
from ledger_notify.engine.models.notification import Notification
from ledger_notify.engine.models.subscription import WILDCARD_SUBJECT, Subscription
from ledger_notify.engine.models.transfer import (
    FINAL_STATES,
    Transfer,
    TransferState,
    is_transfer_finalized,
)

__all__ = [
    "FINAL_STATES",
    "WILDCARD_SUBJECT",
    "Base",
    "Fulfillment",
    "Notification",
    "Subscription",
    "TimestampMixin",
    "Transfer",
    "TransferState",
    "is_transfer_finalized",
]
