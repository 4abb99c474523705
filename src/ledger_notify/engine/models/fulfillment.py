"""Fulfillment model — condition fulfillment that finalized a transfer."""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_notify.engine.models.base import Base, TimestampMixin


class Fulfillment(Base, TimestampMixin):
    """Evidence for an executed or rejected transfer."""

    __tablename__ = "fulfillments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    transfer_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    condition_fulfillment: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<Fulfillment transfer_id={self.transfer_id}>"
