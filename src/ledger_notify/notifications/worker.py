"""Notification worker — fans transfer updates out to listeners and webhooks.

For every transfer state change the worker

1. resolves the accounts the transfer touches (plus the ``*`` wildcard),
2. finds or creates one notification row per matching subscription, inside
   the caller's transaction when one is given,
3. emits ``transfer-<account>`` events on the local :class:`EventBus`,
4. when the scheduler is enabled, tries to deliver every notification right
   away in a detached task, then asks the scheduler to sweep so failed
   attempts are retried durably.

A delivery attempt signs the webhook body once per notification and reuses
that signature on later attempts while the body is unchanged.  Status codes
below 400 delete the notification; anything else leaves it for the scheduler.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from datetime import timedelta
from functools import partial
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError

from ledger_notify.engine.models.base import utcnow
from ledger_notify.engine.models.transfer import is_transfer_finalized
from ledger_notify.engine.repository import (
    FulfillmentRepository,
    NotificationRepository,
    SubscriptionRepository,
    TransferRepository,
)
from ledger_notify.errors.definitions import ErrNotificationNotFound
from ledger_notify.errors.delivery_errors import DeliveryError, RemoteRejectionError
from ledger_notify.metrics.collector import DELIVERY_FAILED, DELIVERY_REJECTED, DELIVERY_SUCCESS
from ledger_notify.notifications.events import EventBus, transfer_event_name
from ledger_notify.notifications.payload import (
    affected_accounts,
    affected_subjects,
    build_notification_body,
    build_resource_body,
)
from ledger_notify.notifications.scheduler import NotificationScheduler
from ledger_notify.utils import json_signing

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from ecdsa import SigningKey
    from sqlalchemy.ext.asyncio import AsyncSession

    from ledger_notify.cache.signatures import SignatureStore
    from ledger_notify.config.settings import NotificationConfig
    from ledger_notify.datastore.client import Datastore
    from ledger_notify.engine.models.fulfillment import Fulfillment
    from ledger_notify.engine.models.notification import Notification
    from ledger_notify.engine.models.subscription import Subscription
    from ledger_notify.engine.models.transfer import Transfer
    from ledger_notify.metrics.collector import NotifierMetrics
    from ledger_notify.notifications.scheduler import Scheduler
    from ledger_notify.notifications.transport import Transport
    from ledger_notify.utils.uri import URIManager

    Signer = Callable[[dict[str, Any], str], dict[str, Any]]

logger = logging.getLogger(__name__)


class NotificationWorker:
    """Dispatches transfer notifications.

    Usage::

        worker = NotificationWorker(
            datastore,
            uri=URIManager(config.base_uri),
            transport=transport,
            signatures=SignatureCache(cache),
            signing_key=load_signing_key(config.notifications.sign_secret),
            config=config.notifications,
        )
        await worker.start()
        async with datastore.transaction() as session:
            ...  # change the transfer
            await worker.queue_notifications(transfer, session=session)
    """

    def __init__(
        self,
        datastore: Datastore,
        *,
        uri: URIManager,
        transport: Transport,
        signatures: SignatureStore,
        config: NotificationConfig,
        signing_key: SigningKey | None = None,
        signer: Signer | None = None,
        scheduler: Scheduler | None = None,
        events: EventBus | None = None,
        metrics: NotifierMetrics | None = None,
    ) -> None:
        if signer is None:
            if signing_key is None:
                msg = "NotificationWorker needs a signing_key or a signer"
                raise ValueError(msg)
            signer = partial(json_signing.sign, key=signing_key)

        self.uri = uri
        self.events = events or EventBus()
        self.notifications = NotificationRepository(datastore)
        self.subscriptions = SubscriptionRepository(datastore)
        self.transfers = TransferRepository(datastore)
        self.fulfillments = FulfillmentRepository(datastore)

        self._transport = transport
        self._signatures = signatures
        self._signer = signer
        self._config = config
        self._metrics = metrics
        self._tasks: set[asyncio.Task[None]] = set()

        if scheduler is None:
            scheduler = NotificationScheduler(
                self.notifications,
                config,
                process_notification=self.process_notification,
                metrics=metrics,
            )
        self.scheduler = scheduler

    # ------------------------------------------------------------------
    # Worker control
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start scheduler-driven processing."""
        await self.scheduler.start()

    async def stop(self) -> None:
        """Stop taking new work; attempts already running complete."""
        await self.scheduler.stop()

    async def process_notification_queue(self) -> int:
        """Run one scheduler sweep now."""
        return await self.scheduler.process_queue()

    async def wait_idle(self) -> None:
        """Wait for every detached immediate-send task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Notification records
    # ------------------------------------------------------------------

    async def find_or_create(
        self,
        subscription_id: str,
        transfer_id: str,
        *,
        defaults: dict[str, Any] | None = None,
        notification_id: str | None = None,
        session: AsyncSession | None = None,
    ) -> Notification:
        """Return the notification for the pair, creating it if absent.

        An existing notification is returned untouched.  *defaults* only apply
        to a newly created row; *notification_id* names the new row instead of
        a generated UUID.  When another creator wins the insert race the
        uniqueness constraint rejects ours and the winner's row is returned.
        """
        existing = await self.notifications.get_matching(
            subscription_id, transfer_id, session=session
        )
        if existing is not None:
            return existing

        values = {
            **(defaults or {}),
            "subscription_id": subscription_id,
            "transfer_id": transfer_id,
        }
        if notification_id:
            values["id"] = notification_id
        if not values.get("id"):
            values["id"] = str(uuid.uuid4())

        try:
            await self.notifications.insert(values, session=session)
        except IntegrityError:
            existing = await self.notifications.get_matching(
                subscription_id, transfer_id, session=session
            )
            if existing is None:
                raise
            return existing

        stored = await self.notifications.get(values["id"], session=session)
        if stored is None:
            raise ErrNotificationNotFound
        return stored

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    async def queue_notifications(
        self, transfer: Transfer, *, session: AsyncSession | None = None
    ) -> list[Notification]:
        """Notify local listeners and subscribers about a transfer state change.

        Lookups and notification rows use *session* when given, so they commit
        or roll back together with the state change.  The immediate delivery
        attempt starts only after that transaction commits and never raises
        into the caller.  The session must not expire objects on commit.

        Returns:
            The notifications touched by this change.
        """
        accounts = affected_accounts(transfer)

        fulfillment = None
        if is_transfer_finalized(transfer):
            fulfillment = await self.fulfillments.get(transfer.id, session=session)
        body = build_resource_body(transfer, fulfillment, self.uri)

        subscriptions = await self.subscriptions.get_affected(
            affected_subjects(accounts, self.uri), session=session
        )

        notifications: list[Notification] = []
        if subscriptions:
            defaults: dict[str, Any] = {}
            if self.scheduler.is_enabled():
                # Hidden from sweeps while the immediate attempt is in flight
                defaults["retry_at"] = utcnow() + timedelta(seconds=self._config.claim_timeout)
            for subscription in subscriptions:
                notification = await self.find_or_create(
                    subscription.id, transfer.id, defaults=defaults, session=session
                )
                notifications.append(notification)

        logger.debug("emitting transfer-{%s}", ",".join(accounts))
        for account in accounts:
            self.events.emit(transfer_event_name(account), body)

        if not notifications:
            return notifications

        pairs = list(zip(notifications, subscriptions, strict=True))
        dispatch = partial(self._send_immediately, transfer, pairs, fulfillment)
        if session is not None and session.in_transaction():
            self._spawn_after_commit(session, dispatch)
        else:
            self._spawn(dispatch())
        return notifications

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _spawn_after_commit(
        self,
        session: AsyncSession,
        dispatch: Callable[[], Coroutine[Any, Any, None]],
    ) -> None:
        sync_session = session.sync_session
        root = sync_session.get_transaction()
        state = {"done": False, "detaching": False}

        # after_commit also fires when a savepoint is released
        def _on_commit(sess: Any) -> None:
            if state["done"] or sess.in_nested_transaction():
                return
            state["done"] = True
            self._spawn(dispatch())

        def _detach() -> None:
            event.remove(sync_session, "after_commit", _on_commit)
            event.remove(sync_session, "after_transaction_end", _on_end)

        # Removal is deferred: listeners must not change while they are dispatched
        def _on_end(_sess: Any, transaction: Any) -> None:
            if transaction is root and not state["detaching"]:
                state["done"] = state["detaching"] = True
                asyncio.get_running_loop().call_soon(_detach)

        event.listen(sync_session, "after_commit", _on_commit)
        event.listen(sync_session, "after_transaction_end", _on_end)

    async def _send_immediately(
        self,
        transfer: Transfer,
        pairs: list[tuple[Notification, Subscription]],
        fulfillment: Fulfillment | None,
    ) -> None:
        # Best effort only; the scheduler owns durable retries.
        if not self.scheduler.is_enabled():
            return
        try:
            results = await asyncio.gather(
                *(
                    self.process_notification_with_instances(
                        notification, transfer, subscription, fulfillment
                    )
                    for notification, subscription in pairs
                ),
                return_exceptions=True,
            )
            for (notification, _), result in zip(pairs, results, strict=True):
                if isinstance(result, Exception):
                    self._immediate_failure(notification.id, result)
            await self.scheduler.schedule_processing()
        except Exception as exc:
            self._immediate_failure(None, exc)

    def _immediate_failure(self, notification_id: str | None, exc: BaseException) -> None:
        logger.warning(
            "immediate notification send failed (notification=%s): %r",
            notification_id,
            exc,
            exc_info=exc,
        )
        if self._metrics:
            self._metrics.record_immediate_failure()

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def process_notification(self, notification: Notification) -> None:
        """Redeliver a queued notification against the current transfer state.

        Raises:
            LedgerNotifyError: If the transfer or subscription no longer exists.
        """
        transfer = await self.transfers.get(notification.transfer_id)
        subscription = await self.subscriptions.get(notification.subscription_id)
        fulfillment = await self.fulfillments.get(transfer.id)
        await self.process_notification_with_instances(
            notification, transfer, subscription, fulfillment
        )

    async def process_notification_with_instances(
        self,
        notification: Notification,
        transfer: Transfer,
        subscription: Subscription,
        fulfillment: Fulfillment | None,
    ) -> None:
        """Make one delivery attempt.

        Success deletes the notification and its cached signature.  A
        rejection or transport failure hands the notification to the
        scheduler for retry.
        """
        logger.debug("sending notification to %s", subscription.target)
        body = build_notification_body(notification, transfer, subscription, fulfillment, self.uri)
        signed = await self._sign(notification.id, body)

        if await self._deliver(subscription.target, signed):
            await self._signatures.delete(notification.id)
            await self.notifications.delete(notification.id)
        else:
            await self.scheduler.retry_notification(notification)

    async def _sign(self, notification_id: str, body: dict[str, Any]) -> dict[str, Any]:
        digest = json_signing.digest(body).hex()
        signature = await self._signatures.get(notification_id, digest)
        if signature is not None:
            if self._metrics:
                self._metrics.record_signature(reused=True)
            return {**body, "signature": signature}

        signed = self._signer(body, json_signing.ALGORITHM_CC)
        await self._signatures.set(notification_id, signed["signature"], digest)
        if self._metrics:
            self._metrics.record_signature(reused=False)
        return signed

    async def _deliver(self, target: str, signed: dict[str, Any]) -> bool:
        outcome = DELIVERY_FAILED
        try:
            if self._metrics:
                with self._metrics.track_delivery():
                    result = await self._transport.send(target, signed)
            else:
                result = await self._transport.send(target, signed)
            result.raise_for_status()
            outcome = DELIVERY_SUCCESS
        except RemoteRejectionError as exc:
            outcome = DELIVERY_REJECTED
            logger.debug(
                "remote error for notification %d %s", exc.remote_status, json.dumps(exc.body)
            )
            logger.debug("%s", signed)
        except DeliveryError as exc:
            logger.debug("notification send failed %s", exc)
        except Exception as exc:
            logger.debug("notification send failed %r", exc)
        if self._metrics:
            self._metrics.record_delivery(outcome)
        return outcome == DELIVERY_SUCCESS
