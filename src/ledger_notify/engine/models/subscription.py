"""Subscription model — a webhook target listening to account events."""

from __future__ import annotations

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_notify.engine.models.base import Base, TimestampMixin

WILDCARD_SUBJECT = "*"


class Subscription(Base, TimestampMixin):
    """A registered subscription.

    ``subject`` is an account URI, or ``*`` to receive every transfer.
    """

    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner: Mapped[str] = mapped_column(Text, nullable=False, comment="Owning account URI")
    event: Mapped[str] = mapped_column(String(64), nullable=False, default="transfer.update")
    subject: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    target: Mapped[str] = mapped_column(Text, nullable=False, comment="Delivery URL")
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Subscription id={self.id} subject={self.subject[:30]}>"
