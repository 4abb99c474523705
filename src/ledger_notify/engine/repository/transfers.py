"""Transfers repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ledger_notify.engine.models.transfer import Transfer
from ledger_notify.engine.repository.base import Repository
from ledger_notify.errors.definitions import ErrTransferNotFound

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


class TransferRepository(Repository):
    """Read access to ledger transfers."""

    async def get(self, transfer_id: str, *, session: AsyncSession | None = None) -> Transfer:
        """Return the transfer or raise ``ErrTransferNotFound``."""
        async with self._scope(session) as s:
            transfer = await s.get(Transfer, transfer_id)
        if transfer is None:
            raise ErrTransferNotFound
        return transfer

    async def upsert(self, transfer: Transfer, *, session: AsyncSession | None = None) -> Transfer:
        """Insert or update a transfer."""
        async with self._scope(session) as s:
            merged = await s.merge(transfer)
            await s.flush()
        return merged
