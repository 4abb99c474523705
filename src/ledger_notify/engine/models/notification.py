"""Notification model — a pending delivery to one subscription."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_notify.engine.models.base import Base, TimestampMixin


class Notification(Base, TimestampMixin):
    """One outstanding transfer update for one subscription.

    Rows are removed once the subscriber acknowledges delivery.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        UniqueConstraint("subscription_id", "transfer_id", name="uq_notifications_pair"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    subscription_id: Mapped[str] = mapped_column(String(64), nullable=False)
    transfer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    retry_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None, index=True
    )

    def __repr__(self) -> str:
        return f"<Notification id={self.id} retries={self.retry_count}>"
