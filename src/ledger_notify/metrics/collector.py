"""Metrics collector — Prometheus counters, gauges, histograms.

- ``ledger_notify_deliveries_total`` counter-vec (success, rejected, failed)
- ``ledger_notify_signatures_total`` counter-vec (created, reused)
- ``ledger_notify_immediate_send_failures_total`` counter
- ``ledger_notify_delivery_duration_seconds`` histogram
- ``ledger_notify_pending_notifications`` gauge
- ``ledger_notify_queue_sweep_duration_seconds`` histogram
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator

_PREFIX = "ledger_notify"

DELIVERY_SUCCESS = "success"
DELIVERY_REJECTED = "rejected"
DELIVERY_FAILED = "failed"


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`NotifierMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def gauge(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Gauge:
        """Register and return a Gauge."""
        return Gauge(name, doc, labels, registry=self._registry)

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        """Register and return a Histogram."""
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        """Register and return a Counter."""
        return Counter(name, doc, labels, registry=self._registry)


class NotifierMetrics:
    """High-level notification metrics."""

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._deliveries = self._collector.counter(
            f"{_PREFIX}_deliveries",
            "Notification delivery attempts by outcome",
            ("outcome",),
        )
        self._signatures = self._collector.counter(
            f"{_PREFIX}_signatures",
            "Notification signatures by source",
            ("source",),
        )
        self._immediate_failures = self._collector.counter(
            f"{_PREFIX}_immediate_send_failures",
            "Failures of the best-effort immediate send phase",
        )
        self._delivery_duration = self._collector.histogram(
            f"{_PREFIX}_delivery_duration_seconds",
            "Duration of a single notification delivery attempt",
        )
        self._sweep_duration = self._collector.histogram(
            f"{_PREFIX}_queue_sweep_duration_seconds",
            "Duration of a scheduler pass over due notifications",
        )
        self._pending = self._collector.gauge(
            f"{_PREFIX}_pending_notifications",
            "Notifications awaiting successful delivery",
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    def record_delivery(self, outcome: str) -> None:
        """Count one delivery attempt with *outcome* (success, rejected, failed)."""
        self._deliveries.labels(outcome=outcome).inc()

    def record_signature(self, *, reused: bool) -> None:
        """Count a signature that was freshly made or taken from the cache."""
        self._signatures.labels(source="reused" if reused else "created").inc()

    def record_immediate_failure(self) -> None:
        """Count a failure swallowed by the immediate send phase."""
        self._immediate_failures.inc()

    def set_pending(self, count: int) -> None:
        """Set the number of outstanding notifications."""
        self._pending.set(count)

    @contextmanager
    def track_delivery(self) -> Iterator[None]:
        """Track the duration of a delivery attempt."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._delivery_duration.observe(time.monotonic() - start)

    @contextmanager
    def track_sweep(self) -> Iterator[None]:
        """Track the duration of a queue sweep."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._sweep_duration.observe(time.monotonic() - start)
