"""Transfer model — a movement of funds between ledger accounts."""

from __future__ import annotations

import enum
from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]
from typing import Any

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_notify.engine.models.base import Base, TimestampMixin


class TransferState(enum.StrEnum):
    """Transfer lifecycle states."""

    PROPOSED = "proposed"
    PREPARED = "prepared"
    EXECUTED = "executed"
    REJECTED = "rejected"


FINAL_STATES = frozenset({TransferState.EXECUTED, TransferState.REJECTED})


def is_transfer_finalized(transfer: Transfer) -> bool:
    """Whether the transfer reached a terminal state."""
    return transfer.state in FINAL_STATES


class Transfer(Base, TimestampMixin):
    """A ledger transfer.

    ``debits`` and ``credits`` are lists of ``{"account": <name>, "amount": <str>}``
    entries; extra keys such as ``memo`` are carried through to the external form.
    """

    __tablename__ = "transfers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    ledger: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    state: Mapped[str] = mapped_column(
        String(16), nullable=False, default=TransferState.PROPOSED.value
    )
    debits: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    credits: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    execution_condition: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    cancellation_condition: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    proposed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    prepared_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    executed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(64), nullable=True)

    @property
    def affected_accounts(self) -> list[str]:
        """Account names touched by the transfer, debits first."""
        return [entry["account"] for entry in [*self.debits, *self.credits]]

    def __repr__(self) -> str:
        return f"<Transfer id={self.id} state={self.state}>"
