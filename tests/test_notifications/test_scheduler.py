"""Tests for NotificationScheduler — backoff, sweeps and the background loop."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from ledger_notify.config.settings import NotificationConfig
from ledger_notify.engine.models.base import as_utc, utcnow
from ledger_notify.engine.repository.notifications import NotificationRepository
from ledger_notify.metrics.collector import NotifierMetrics
from ledger_notify.notifications.scheduler import NotificationScheduler


@pytest.fixture
def repo(datastore) -> NotificationRepository:
    return NotificationRepository(datastore)


@pytest.fixture
def config() -> NotificationConfig:
    return NotificationConfig(
        retry_base_delay=0.1, retry_max_delay=1.0, poll_interval=0.05, batch_size=10
    )


async def _add(repo: NotificationRepository, nid: str, *, retry_at=None, retry_count: int = 0):
    return await repo.insert(
        {
            "id": nid,
            "subscription_id": f"s-{nid}",
            "transfer_id": "t1",
            "retry_at": retry_at,
            "retry_count": retry_count,
        }
    )


class TestBackoff:
    def test_exponential_growth(self, repo, config) -> None:
        scheduler = NotificationScheduler(repo, config)
        assert scheduler.backoff(0) == pytest.approx(0.1)
        assert scheduler.backoff(1) == pytest.approx(0.2)
        assert scheduler.backoff(3) == pytest.approx(0.8)

    def test_capped_at_max_delay(self, repo, config) -> None:
        scheduler = NotificationScheduler(repo, config)
        assert scheduler.backoff(10) == pytest.approx(1.0)


class TestRetryNotification:
    async def test_persists_count_and_due_time(self, repo, config) -> None:
        notification = await _add(repo, "n1")
        scheduler = NotificationScheduler(repo, config)

        before = utcnow()
        await scheduler.retry_notification(notification)

        stored = await repo.get("n1")
        assert stored.retry_count == 1
        assert as_utc(stored.retry_at) >= before + timedelta(seconds=0.2)
        assert notification.retry_count == 1

    async def test_vanished_notification_is_ignored(self, repo, config) -> None:
        notification = await _add(repo, "n1")
        await repo.delete("n1")
        scheduler = NotificationScheduler(repo, config)

        await scheduler.retry_notification(notification)

        assert await repo.get("n1") is None


class TestProcessQueue:
    async def test_processes_only_due_notifications(self, repo, config) -> None:
        await _add(repo, "fresh")
        await _add(repo, "due", retry_at=utcnow() - timedelta(seconds=1))
        await _add(repo, "later", retry_at=utcnow() + timedelta(hours=1))
        seen: list[str] = []

        async def handler(notification) -> None:
            seen.append(notification.id)

        scheduler = NotificationScheduler(repo, config, process_notification=handler)
        count = await scheduler.process_queue()

        assert count == 2
        assert sorted(seen) == ["due", "fresh"]

    async def test_failing_handler_reschedules(self, repo, config) -> None:
        await _add(repo, "n1")
        await _add(repo, "n2")

        async def handler(notification) -> None:
            if notification.id == "n1":
                raise RuntimeError("lookup failed")

        scheduler = NotificationScheduler(repo, config, process_notification=handler)
        assert await scheduler.process_queue() == 2

        assert (await repo.get("n1")).retry_count == 1
        assert (await repo.get("n2")).retry_count == 0

    async def test_respects_batch_size(self, repo) -> None:
        for i in range(5):
            await _add(repo, f"n{i}")

        async def handler(notification) -> None:
            return None

        scheduler = NotificationScheduler(
            repo, NotificationConfig(batch_size=2), process_notification=handler
        )
        assert await scheduler.process_queue() == 2

    async def test_requires_handler(self, repo, config) -> None:
        scheduler = NotificationScheduler(repo, config)
        with pytest.raises(RuntimeError, match="no process_notification handler"):
            await scheduler.process_queue()

    async def test_updates_pending_gauge(self, repo, config) -> None:
        await _add(repo, "n1")
        await _add(repo, "n2", retry_at=utcnow() + timedelta(hours=1))
        metrics = NotifierMetrics()

        async def handler(notification) -> None:
            await repo.delete(notification.id)

        scheduler = NotificationScheduler(
            repo, config, process_notification=handler, metrics=metrics
        )
        await scheduler.process_queue()

        value = metrics.registry.get_sample_value("ledger_notify_pending_notifications")
        assert value == 1.0


class TestLifecycle:
    async def test_start_stop(self, repo, config) -> None:
        scheduler = NotificationScheduler(repo, config, process_notification=_noop)
        assert not scheduler.is_enabled()

        await scheduler.start()
        assert scheduler.is_enabled()

        await scheduler.stop()
        assert not scheduler.is_enabled()

    async def test_stop_idempotent(self, repo, config) -> None:
        scheduler = NotificationScheduler(repo, config, process_notification=_noop)
        await scheduler.stop()
        await scheduler.start()
        await scheduler.stop()
        await scheduler.stop()

    async def test_loop_delivers_due_notification(self, repo, config) -> None:
        processed = asyncio.Event()

        async def handler(notification) -> None:
            await repo.delete(notification.id)
            processed.set()

        scheduler = NotificationScheduler(repo, config, process_notification=handler)
        await scheduler.start()
        try:
            await _add(repo, "n1")
            await scheduler.schedule_processing()
            await asyncio.wait_for(processed.wait(), timeout=5)
        finally:
            await scheduler.stop()

        assert await repo.get("n1") is None

    async def test_loop_retries_with_backoff(self, repo, config) -> None:
        attempts: list[int] = []
        done = asyncio.Event()

        async def handler(notification) -> None:
            attempts.append(notification.retry_count)
            if len(attempts) < 3:
                raise RuntimeError("subscriber down")
            await repo.delete(notification.id)
            done.set()

        await _add(repo, "n1")
        scheduler = NotificationScheduler(repo, config, process_notification=handler)
        await scheduler.start()
        try:
            await asyncio.wait_for(done.wait(), timeout=5)
        finally:
            await scheduler.stop()

        assert attempts == [0, 1, 2]

    async def test_schedule_processing_noop_when_disabled(self, repo, config) -> None:
        scheduler = NotificationScheduler(repo, config, process_notification=_noop)
        await scheduler.schedule_processing()
        assert not scheduler.is_enabled()


async def _noop(notification) -> None:
    return None
