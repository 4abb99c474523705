"""Fulfillments repository."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select

from ledger_notify.engine.models.fulfillment import Fulfillment
from ledger_notify.engine.repository.base import Repository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


class FulfillmentRepository(Repository):
    """Access to condition fulfillments, keyed by transfer."""

    async def get(
        self, transfer_id: str, *, session: AsyncSession | None = None
    ) -> Fulfillment | None:
        """Return the fulfillment for *transfer_id*, or ``None`` if there is none yet."""
        async with self._scope(session) as s:
            stmt = select(Fulfillment).where(Fulfillment.transfer_id == transfer_id)
            result = await s.execute(stmt)
            return result.scalar_one_or_none()

    async def upsert(
        self,
        transfer_id: str,
        condition_fulfillment: str,
        *,
        session: AsyncSession | None = None,
    ) -> Fulfillment:
        """Record (or replace) the fulfillment of a transfer."""
        async with self._scope(session) as s:
            stmt = select(Fulfillment).where(Fulfillment.transfer_id == transfer_id)
            fulfillment = (await s.execute(stmt)).scalar_one_or_none()
            if fulfillment is None:
                fulfillment = Fulfillment(
                    id=uuid.uuid4().hex,
                    transfer_id=transfer_id,
                    condition_fulfillment=condition_fulfillment,
                )
                s.add(fulfillment)
            else:
                fulfillment.condition_fulfillment = condition_fulfillment
            await s.flush()
        return fulfillment
