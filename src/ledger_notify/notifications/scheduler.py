"""Notification scheduler — durable retries with exponential backoff.

Undelivered notifications stay in the ``notifications`` table with a
``retry_count`` and a ``retry_at`` timestamp.  While enabled, the scheduler
runs one asyncio background task that sleeps until the earliest ``retry_at``
(or until :meth:`NotificationScheduler.schedule_processing` wakes it, or at
most ``poll_interval`` seconds) and then sweeps every due notification
through the worker's ``process_notification``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Protocol

from ledger_notify.engine.models.base import as_utc, utcnow

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ledger_notify.config.settings import NotificationConfig
    from ledger_notify.engine.models.notification import Notification
    from ledger_notify.engine.repository.notifications import NotificationRepository
    from ledger_notify.metrics.collector import NotifierMetrics

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Retry capability the notification worker depends on."""

    def is_enabled(self) -> bool: ...
    async def start(self) -> None: ...
    async def stop(self) -> None: ...
    async def retry_notification(self, notification: Notification) -> None: ...
    async def schedule_processing(self) -> None: ...
    async def process_queue(self) -> int: ...


class NotificationScheduler:
    """Owns the retry queue of undelivered notifications.

    Usage::

        scheduler = NotificationScheduler(repo, config.notifications)
        scheduler.process_notification = worker.process_notification
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        notifications: NotificationRepository,
        config: NotificationConfig,
        *,
        process_notification: Callable[[Notification], Awaitable[None]] | None = None,
        metrics: NotifierMetrics | None = None,
    ) -> None:
        self._notifications = notifications
        self._config = config
        self.process_notification = process_notification
        self._metrics = metrics
        self._enabled = False
        self._task: asyncio.Task[None] | None = None
        self._wake = asyncio.Event()
        self._sweep_lock = asyncio.Lock()

    def is_enabled(self) -> bool:
        """Whether the scheduler is accepting and processing work."""
        return self._enabled

    def backoff(self, retry_count: int) -> float:
        """Seconds to wait before attempt number *retry_count* + 1."""
        delay = self._config.retry_base_delay * (2**retry_count)
        return min(self._config.retry_max_delay, delay)

    async def start(self) -> None:
        """Start the background processing loop."""
        if self._enabled:
            return
        self._enabled = True
        self._wake.set()
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Notification scheduler started")

    async def stop(self) -> None:
        """Stop pulling new work.

        A sweep that is already running finishes its delivery attempts first.
        """
        if not self._enabled:
            return
        self._enabled = False
        self._wake.set()
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("Notification scheduler stopped")

    async def retry_notification(self, notification: Notification) -> None:
        """Push *notification* back with the next backoff delay."""
        retry_count = notification.retry_count + 1
        retry_at = utcnow() + timedelta(seconds=self.backoff(retry_count))
        notification.retry_count = retry_count
        notification.retry_at = retry_at
        updated = await self._notifications.update_retry(
            notification.id, retry_count=retry_count, retry_at=retry_at
        )
        if updated:
            logger.debug(
                "Notification %s scheduled for retry %d at %s",
                notification.id,
                retry_count,
                retry_at.isoformat(),
            )

    async def schedule_processing(self) -> None:  # noqa: ASYNC910
        """Ask the loop to re-check the queue now."""
        if not self._enabled:
            return
        self._wake.set()

    async def process_queue(self) -> int:
        """Attempt every due notification once. Returns how many were attempted."""
        if self.process_notification is None:
            msg = "Scheduler has no process_notification handler"
            raise RuntimeError(msg)
        async with self._sweep_lock:
            ready = await self._notifications.find_ready(utcnow(), limit=self._config.batch_size)
            if ready:
                logger.debug("Processing %d due notifications", len(ready))
                if self._metrics:
                    with self._metrics.track_sweep():
                        await asyncio.gather(*(self._process_one(n) for n in ready))
                else:
                    await asyncio.gather(*(self._process_one(n) for n in ready))
            if self._metrics:
                self._metrics.set_pending(await self._notifications.count_pending())
        return len(ready)

    async def _process_one(self, notification: Notification) -> None:
        assert self.process_notification is not None
        try:
            await self.process_notification(notification)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning("Processing notification %s failed", notification.id, exc_info=True)
            await self.retry_notification(notification)

    async def _next_delay(self) -> float:
        """Seconds until the earliest pending notification is due."""
        earliest = await self._notifications.find_earliest_retry()
        if earliest is None:
            return self._config.poll_interval
        if earliest.retry_at is None:
            return 0.0
        delay = (as_utc(earliest.retry_at) - utcnow()).total_seconds()
        return min(max(delay, 0.0), self._config.poll_interval)

    async def _run_loop(self) -> None:
        while self._enabled:
            try:
                self._wake.clear()
                delay = await self._next_delay()
                if delay > 0:
                    with contextlib.suppress(TimeoutError):
                        await asyncio.wait_for(self._wake.wait(), timeout=delay)
                    continue
                if not self._enabled:
                    break
                await self.process_queue()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Notification queue sweep failed")
                await asyncio.sleep(self._config.poll_interval)
