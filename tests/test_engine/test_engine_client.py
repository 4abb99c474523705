"""Tests for LedgerNotifyEngine lifecycle and end-to-end delivery."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from ledger_notify.config.settings import NotificationConfig
from ledger_notify.engine.client import LedgerNotifyEngine
from ledger_notify.engine.models.transfer import Transfer
from ledger_notify.engine.repository import SubscriptionRepository, TransferRepository
from ledger_notify.errors.delivery_errors import SigningError
from ledger_notify.utils import json_signing

_SECRET = "0c28fca386c7a227600b2fe50b7cae11ec86d3bf1fbe471be89827e19d72aa1d"


def _with_notifications(app_config, **overrides):
    values = {
        "enabled": True,
        "sign_secret": _SECRET,
        "retry_base_delay": 0.05,
        "retry_max_delay": 0.2,
        "poll_interval": 0.05,
    }
    values.update(overrides)
    return app_config.model_copy(update={"notifications": NotificationConfig(**values)})


async def _wait_until(predicate, timeout: float = 5.0) -> None:
    async with asyncio.timeout(timeout):
        while not await predicate():
            await asyncio.sleep(0.02)


class TestLedgerNotifyEngine:
    """Test engine initialization, lifecycle, and health checks."""

    async def test_init(self, app_config) -> None:
        engine = LedgerNotifyEngine(app_config)
        assert not engine.is_initialized
        assert engine.config == app_config
        with pytest.raises(RuntimeError, match="not initialized"):
            _ = engine.worker

    async def test_initialize_and_close(self, app_config) -> None:
        engine = LedgerNotifyEngine(app_config)

        await engine.initialize()
        assert engine.is_initialized
        assert engine.datastore.is_open
        assert engine.cache.is_connected
        assert engine.metrics is not None
        assert not engine.worker.scheduler.is_enabled()

        await engine.close()
        assert not engine.is_initialized
        await engine.close()

    async def test_double_initialize_raises(self, app_config) -> None:
        engine = LedgerNotifyEngine(app_config)
        await engine.initialize()
        with pytest.raises(RuntimeError, match="already initialized"):
            await engine.initialize()
        await engine.close()

    async def test_invalid_signing_secret(self, app_config) -> None:
        engine = LedgerNotifyEngine(_with_notifications(app_config, sign_secret="nothex"))
        with pytest.raises(SigningError):
            await engine.initialize()
        assert not engine.is_initialized

    async def test_health_check(self, app_config) -> None:
        engine = LedgerNotifyEngine(_with_notifications(app_config))
        assert (await engine.health_check())["engine"] == "not_initialized"

        await engine.initialize()
        status = await engine.health_check()
        assert status == {
            "engine": "ok",
            "datastore": "ok",
            "cache": "ok",
            "transport": "ok",
            "scheduler": "ok",
        }
        await engine.close()


class TestEndToEnd:
    """Transfer change to signed webhook, through the real scheduler."""

    async def test_delivery_with_durable_retry(self, app_config) -> None:
        received: list[dict] = []
        statuses = iter([500, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            return httpx.Response(next(statuses, 200))

        engine = LedgerNotifyEngine(_with_notifications(app_config))
        await engine.initialize()
        try:
            engine.worker._transport._client = httpx.AsyncClient(
                transport=httpx.MockTransport(handler)
            )
            ds = engine.datastore
            subscription = await SubscriptionRepository(ds).create(
                owner=engine.uri.make("account", "alice"),
                subject=engine.uri.make("account", "alice"),
                target="http://hooks.test/alice",
            )
            local: list[dict] = []
            engine.worker.events.on("transfer-alice", local.append)

            async with ds.transaction() as session:
                transfer = await TransferRepository(ds).upsert(
                    Transfer(
                        id="t1",
                        state="prepared",
                        debits=[{"account": "bob", "amount": "1"}],
                        credits=[{"account": "alice", "amount": "1"}],
                    ),
                    session=session,
                )
                await engine.worker.queue_notifications(transfer, session=session)

            async def delivered() -> bool:
                return await engine.worker.notifications.count_pending() == 0

            await _wait_until(delivered)
        finally:
            await engine.close()

        assert len(local) == 1
        assert len(received) == 2
        assert received[0]["signature"] == received[1]["signature"]
        assert received[0]["subscription"].endswith(f"/subscriptions/{subscription.id}")
        pub = json_signing.public_key_hex(json_signing.load_signing_key(_SECRET))
        assert json_signing.verify(received[1], public_key=pub)
