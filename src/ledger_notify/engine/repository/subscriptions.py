"""Subscriptions repository."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select

from ledger_notify.engine.models.subscription import Subscription
from ledger_notify.engine.repository.base import Repository
from ledger_notify.errors.definitions import ErrSubscriptionNotFound

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession


class SubscriptionRepository(Repository):
    """Access to webhook subscriptions."""

    async def get(
        self, subscription_id: str, *, session: AsyncSession | None = None
    ) -> Subscription:
        """Return the subscription or raise ``ErrSubscriptionNotFound``."""
        async with self._scope(session) as s:
            subscription = await s.get(Subscription, subscription_id)
        if subscription is None or subscription.is_deleted:
            raise ErrSubscriptionNotFound
        return subscription

    async def get_affected(
        self, subjects: Iterable[str], *, session: AsyncSession | None = None
    ) -> list[Subscription]:
        """Live subscriptions whose subject is one of *subjects*."""
        subject_list = list(dict.fromkeys(subjects))
        if not subject_list:
            return []
        async with self._scope(session) as s:
            stmt = (
                select(Subscription)
                .where(Subscription.subject.in_(subject_list))
                .where(Subscription.is_deleted.is_(False))
                .order_by(Subscription.created_at, Subscription.id)
            )
            result = await s.execute(stmt)
            return list(result.scalars().all())

    async def create(
        self,
        *,
        owner: str,
        subject: str,
        target: str,
        event: str = "transfer.update",
        subscription_id: str | None = None,
        session: AsyncSession | None = None,
    ) -> Subscription:
        """Register a subscription."""
        subscription = Subscription(
            id=subscription_id or str(uuid.uuid4()),
            owner=owner,
            subject=subject,
            target=target,
            event=event,
        )
        async with self._scope(session) as s:
            s.add(subscription)
            await s.flush()
        return subscription
