"""Shared test fixtures for the ledger-notify test suite."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pytest

from ledger_notify.config.settings import DatabaseEngine
from ledger_notify.notifications.transport import DeliveryResult

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ledger_notify.engine.models.notification import Notification


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeScheduler:
    """Scheduler stand-in that records every call."""

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = enabled
        self.retried: list[str] = []
        self.schedule_calls = 0
        self.started = 0
        self.stopped = 0
        self.sweeps = 0

    def is_enabled(self) -> bool:
        return self.enabled

    async def start(self) -> None:
        self.started += 1
        self.enabled = True

    async def stop(self) -> None:
        self.stopped += 1
        self.enabled = False

    async def retry_notification(self, notification: Notification) -> None:
        self.retried.append(notification.id)

    async def schedule_processing(self) -> None:
        self.schedule_calls += 1

    async def process_queue(self) -> int:
        self.sweeps += 1
        return 0


class RecordingTransport:
    """Transport stand-in answering with a fixed status, or raising."""

    def __init__(self, status_code: int = 200, *, error: Exception | None = None) -> None:
        self.status_code = status_code
        self.error = error
        self.sent: list[tuple[str, dict[str, Any]]] = []

    async def send(self, target: str, payload: dict[str, Any]) -> DeliveryResult:
        self.sent.append((target, payload))
        if self.error is not None:
            raise self.error
        return DeliveryResult(status_code=self.status_code, body={"ok": True}, target=target)


class CountingSigner:
    """Wraps real signing and counts invocations."""

    def __init__(self, key: Any) -> None:
        from ledger_notify.utils import json_signing

        self._sign = json_signing.sign
        self._key = key
        self.calls = 0

    def __call__(self, body: dict[str, Any], algorithm: str) -> dict[str, Any]:
        self.calls += 1
        return self._sign(body, algorithm, self._key)


# ---------------------------------------------------------------------------
# Config / infrastructure
# ---------------------------------------------------------------------------


@pytest.fixture
def app_config(tmp_path):
    """Provide a test AppConfig backed by a SQLite file in tmp_path."""
    from ledger_notify.config.settings import AppConfig, DatabaseConfig, NotificationConfig

    return AppConfig(
        debug=True,
        base_uri="http://ledger.test",
        db=DatabaseConfig(
            engine=DatabaseEngine.SQLITE,
            dsn=f"sqlite+aiosqlite:///{tmp_path / 'ledger_notify.db'}",
        ),
        notifications=NotificationConfig(enabled=False, poll_interval=0.05),
    )


@pytest.fixture
async def datastore(app_config) -> AsyncIterator:
    """Open datastore with all tables created."""
    from ledger_notify.datastore.client import Datastore
    from ledger_notify.datastore.migrations import create_schema

    ds = Datastore(app_config.db)
    await ds.open()
    await create_schema(ds.engine)
    yield ds
    await ds.close()


@pytest.fixture
def uri(app_config):
    from ledger_notify.utils.uri import URIManager

    return URIManager(app_config.base_uri)


@pytest.fixture
async def cache(app_config) -> AsyncIterator:
    from ledger_notify.cache.client import CacheClient

    client = CacheClient(app_config.cache)
    await client.connect()
    yield client
    await client.close()


@pytest.fixture
def signatures(cache):
    from ledger_notify.cache.signatures import SignatureCache

    return SignatureCache(cache)


@pytest.fixture
def signing_key():
    from ledger_notify.utils.json_signing import load_signing_key

    return load_signing_key()


@pytest.fixture
def signer(signing_key) -> CountingSigner:
    return CountingSigner(signing_key)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def worker(datastore, uri, transport, signatures, signer, scheduler, app_config):
    """NotificationWorker wired to fakes for scheduler, transport and signer."""
    from ledger_notify.notifications.worker import NotificationWorker

    return NotificationWorker(
        datastore,
        uri=uri,
        transport=transport,
        signatures=signatures,
        signer=signer,
        scheduler=scheduler,
        config=app_config.notifications,
    )


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_transfer(datastore):
    """Store a transfer and return it."""
    from ledger_notify.engine.models.transfer import Transfer
    from ledger_notify.engine.repository.transfers import TransferRepository

    repo = TransferRepository(datastore)

    async def _make(
        transfer_id: str = "t1",
        *,
        state: str = "prepared",
        debits: tuple[str, ...] = ("bob",),
        credits: tuple[str, ...] = ("alice",),
        **fields: Any,
    ) -> Transfer:
        transfer = Transfer(
            id=transfer_id,
            state=state,
            debits=[{"account": a, "amount": "10"} for a in debits],
            credits=[{"account": a, "amount": "10"} for a in credits],
            prepared_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC),
            **fields,
        )
        return await repo.upsert(transfer)

    return _make


@pytest.fixture
def make_subscription(datastore, uri):
    """Store a subscription on an account (or ``*``) and return it."""
    from ledger_notify.engine.repository.subscriptions import SubscriptionRepository

    repo = SubscriptionRepository(datastore)

    async def _make(account: str = "alice", *, subscription_id: str | None = None, **kw: Any):
        subject = account if account == "*" else uri.make("account", account)
        return await repo.create(
            owner=uri.make("account", "admin"),
            subject=subject,
            target=kw.pop("target", f"http://hooks.test/{account}"),
            subscription_id=subscription_id,
            **kw,
        )

    return _make
