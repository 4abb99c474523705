"""Notifications repository.

The ``(subscription_id, transfer_id)`` pair is unique at the database level;
``insert`` runs inside a savepoint so a conflicting insert only unwinds itself
and leaves the caller's transaction usable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, or_, select, update

from ledger_notify.engine.models.notification import Notification
from ledger_notify.engine.repository.base import Repository

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession


class NotificationRepository(Repository):
    """Data access layer for pending notifications."""

    async def get_matching(
        self,
        subscription_id: str,
        transfer_id: str,
        *,
        session: AsyncSession | None = None,
    ) -> Notification | None:
        """Find the notification for a subscription/transfer pair."""
        async with self._scope(session) as s:
            stmt = select(Notification).where(
                Notification.subscription_id == subscription_id,
                Notification.transfer_id == transfer_id,
            )
            result = await s.execute(stmt)
            return result.scalar_one_or_none()

    async def insert(
        self, values: dict[str, Any], *, session: AsyncSession | None = None
    ) -> Notification:
        """Insert a notification row.

        Raises:
            sqlalchemy.exc.IntegrityError: If the pair (or id) already exists.
        """
        notification = Notification(**values)
        async with self._scope(session) as s, s.begin_nested():
            s.add(notification)
        return notification

    async def get(
        self, notification_id: str, *, session: AsyncSession | None = None
    ) -> Notification | None:
        """Find a notification by primary key."""
        async with self._scope(session) as s:
            return await s.get(Notification, notification_id)

    async def delete(self, notification_id: str, *, session: AsyncSession | None = None) -> bool:
        """Delete a notification by ID. Returns True if deleted."""
        async with self._scope(session) as s:
            stmt = delete(Notification).where(Notification.id == notification_id)
            result = await s.execute(stmt)
            return result.rowcount > 0  # type: ignore[union-attr]

    async def update_retry(
        self,
        notification_id: str,
        *,
        retry_count: int,
        retry_at: datetime,
        session: AsyncSession | None = None,
    ) -> bool:
        """Store the retry bookkeeping of a notification. Returns False if it is gone."""
        async with self._scope(session) as s:
            stmt = (
                update(Notification)
                .where(Notification.id == notification_id)
                .values(retry_count=retry_count, retry_at=retry_at)
            )
            result = await s.execute(stmt)
            return result.rowcount > 0  # type: ignore[union-attr]

    async def find_ready(
        self, now: datetime, *, limit: int = 100, session: AsyncSession | None = None
    ) -> list[Notification]:
        """Notifications due for delivery: never attempted, or past their ``retry_at``.

        Never-attempted rows come first on every backend.
        """
        async with self._scope(session) as s:
            stmt = (
                select(Notification)
                .where(or_(Notification.retry_at.is_(None), Notification.retry_at <= now))
                .order_by(Notification.retry_at.asc().nulls_first(), Notification.created_at)
                .limit(limit)
            )
            result = await s.execute(stmt)
            return list(result.scalars().all())

    async def find_earliest_retry(
        self, *, session: AsyncSession | None = None
    ) -> Notification | None:
        """The pending notification that becomes due first.

        Notifications that were never attempted (``retry_at`` is NULL) sort first.
        """
        async with self._scope(session) as s:
            stmt = (
                select(Notification)
                .order_by(Notification.retry_at.is_not(None), Notification.retry_at)
                .limit(1)
            )
            result = await s.execute(stmt)
            return result.scalar_one_or_none()

    async def list_pending(
        self, *, page: int = 1, page_size: int = 50, session: AsyncSession | None = None
    ) -> list[Notification]:
        """List outstanding notifications, oldest first."""
        async with self._scope(session) as s:
            stmt = (
                select(Notification)
                .order_by(Notification.created_at, Notification.id)
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            result = await s.execute(stmt)
            return list(result.scalars().all())

    async def count_pending(self, *, session: AsyncSession | None = None) -> int:
        """Number of outstanding notifications."""
        async with self._scope(session) as s:
            result = await s.execute(select(func.count(Notification.id)))
            return int(result.scalar() or 0)
