"""LedgerNotifyEngine — wires the notification stack together.

Usage::

    engine = LedgerNotifyEngine(AppConfig.from_yaml("config.yaml"))
    await engine.initialize()
    async with engine.datastore.transaction() as session:
        transfer = await transfers.upsert(transfer, session=session)
        await engine.worker.queue_notifications(transfer, session=session)
    await engine.close()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from ledger_notify.cache.client import CacheClient
    from ledger_notify.cache.signatures import SignatureCache
    from ledger_notify.config.settings import AppConfig
    from ledger_notify.datastore.client import Datastore
    from ledger_notify.metrics.collector import NotifierMetrics
    from ledger_notify.notifications.transport import NotificationTransport
    from ledger_notify.notifications.worker import NotificationWorker
    from ledger_notify.utils.uri import URIManager

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

# Error messages
_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


def _require(component: _T | None) -> _T:
    if component is None:
        raise RuntimeError(_ERR_NOT_INITIALIZED)
    return component


class LedgerNotifyEngine:
    """Owns the datastore, signature cache, webhook transport and notification worker."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._initialized = False

        self._datastore: Datastore | None = None
        self._cache: CacheClient | None = None
        self._signatures: SignatureCache | None = None
        self._transport: NotificationTransport | None = None
        self._uri: URIManager | None = None
        self._metrics: NotifierMetrics | None = None
        self._worker: NotificationWorker | None = None

    async def initialize(self) -> None:
        """Bring up storage, cache and transport, then the worker.

        The signing key is checked first so a bad secret fails before any
        connection is opened.  The retry scheduler starts only when
        ``notifications.enabled`` is set.

        Raises:
            RuntimeError: If already initialized.
            SigningError: If the configured signing secret is invalid.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        # Import here to avoid circular deps
        from ledger_notify.cache.client import CacheClient
        from ledger_notify.cache.signatures import SignatureCache
        from ledger_notify.datastore.client import Datastore
        from ledger_notify.datastore.migrations import create_schema
        from ledger_notify.metrics.collector import NotifierMetrics
        from ledger_notify.notifications.transport import NotificationTransport
        from ledger_notify.notifications.worker import NotificationWorker
        from ledger_notify.utils.json_signing import load_signing_key
        from ledger_notify.utils.uri import URIManager

        cfg = self._config
        signing_key = load_signing_key(cfg.notifications.sign_secret)

        self._datastore = Datastore(cfg.db)
        await self._datastore.open()
        await create_schema(self._datastore.engine)

        self._cache = CacheClient(cfg.cache)
        await self._cache.connect()
        self._signatures = SignatureCache(
            self._cache, prefix=cfg.cache.key_prefix, ttl=cfg.cache.ttl_seconds
        )

        self._transport = NotificationTransport(cfg.notifications)
        await self._transport.connect()

        self._metrics = NotifierMetrics() if cfg.metrics.enabled else None
        self._uri = URIManager(cfg.base_uri)
        self._worker = NotificationWorker(
            self._datastore,
            uri=self._uri,
            transport=self._transport,
            signatures=self._signatures,
            signing_key=signing_key,
            config=cfg.notifications,
            metrics=self._metrics,
        )
        if cfg.notifications.enabled:
            await self._worker.start()

        self._initialized = True
        logger.info("Ledger notify engine initialized (base_uri=%s)", cfg.base_uri)

    async def close(self) -> None:
        """Stop the worker, wait for in-flight sends, then release connections.

        Safe to call more than once.
        """
        if not self._initialized:
            return

        if self._worker is not None:
            await self._worker.stop()
            await self._worker.wait_idle()
        if self._transport is not None:
            await self._transport.close()
        if self._cache is not None:
            await self._cache.close()
        if self._datastore is not None:
            await self._datastore.close()

        self._worker = self._transport = self._signatures = None
        self._cache = self._datastore = self._uri = self._metrics = None
        self._initialized = False
        logger.info("Ledger notify engine closed")

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def datastore(self) -> Datastore:
        """Shared datastore (raises RuntimeError before initialize)."""
        return _require(self._datastore)

    @property
    def cache(self) -> CacheClient:
        return _require(self._cache)

    @property
    def worker(self) -> NotificationWorker:
        """The notification worker the ledger hands transfer changes to."""
        return _require(self._worker)

    @property
    def uri(self) -> URIManager:
        return _require(self._uri)

    @property
    def metrics(self) -> NotifierMetrics | None:
        """Notifier metrics, or None when disabled or not initialized."""
        return self._metrics

    async def health_check(self) -> dict[str, str]:
        """Per-component status for ``GET /health``.

        Values are ``ok``, ``error``, ``stopped`` (scheduler only),
        ``unknown`` and, for ``engine``, ``not_initialized``.
        """
        if not self._initialized:
            return dict.fromkeys(
                ("datastore", "cache", "transport", "scheduler"), "unknown"
            ) | {"engine": "not_initialized"}

        def _ok(flag: bool) -> str:
            return "ok" if flag else "error"

        worker = _require(self._worker)
        return {
            "engine": "ok",
            "datastore": _ok(await _require(self._datastore).ping()),
            "cache": _ok(_require(self._cache).is_connected),
            "transport": _ok(_require(self._transport).is_connected),
            "scheduler": "ok" if worker.scheduler.is_enabled() else "stopped",
        }
