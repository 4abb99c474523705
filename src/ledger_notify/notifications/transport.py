"""Webhook transport — POSTs signed notifications to subscriber targets."""

from __future__ import annotations

import ssl
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from ledger_notify.errors.delivery_errors import DeliveryError, RemoteRejectionError

if TYPE_CHECKING:
    from ledger_notify.config.settings import NotificationConfig


@dataclass(frozen=True)
class DeliveryResult:
    """Status code and decoded body returned by a subscriber."""

    status_code: int
    body: Any = None
    target: str = ""

    @property
    def ok(self) -> bool:
        """Whether the subscriber acknowledged the notification."""
        return self.status_code < 400

    def raise_for_status(self) -> None:
        """Raise :class:`RemoteRejectionError` unless the subscriber acknowledged."""
        if not self.ok:
            raise RemoteRejectionError(self.target, self.status_code, self.body)


class Transport(Protocol):
    """Anything that can deliver a payload to a target URL."""

    async def send(self, target: str, payload: dict[str, Any]) -> DeliveryResult: ...


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class NotificationTransport:
    """httpx-based :class:`Transport`.

    Usage::

        transport = NotificationTransport(config.notifications)
        await transport.connect()
        result = await transport.send("https://hooks.example/ledger", signed)
        await transport.close()
    """

    def __init__(self, config: NotificationConfig) -> None:
        self._config = config
        self._client: httpx.AsyncClient | None = None

    @property
    def is_connected(self) -> bool:
        """Whether the HTTP client is open."""
        return self._client is not None

    def _ssl_context(self) -> ssl.SSLContext | bool:
        cfg = self._config
        if not (cfg.tls_ca or cfg.tls_cert):
            return True
        ctx = ssl.create_default_context(cafile=cfg.tls_ca or None)
        if cfg.tls_cert:
            ctx.load_cert_chain(cfg.tls_cert, cfg.tls_key or None)
        return ctx

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            timeout=self._config.send_timeout,
            verify=self._ssl_context(),
        )

    async def close(self) -> None:
        """Close the HTTP client (idempotent)."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(self, target: str, payload: dict[str, Any]) -> DeliveryResult:
        """POST *payload* as JSON to *target*.

        Raises:
            DeliveryError: On connection errors, timeouts and protocol errors.
            RuntimeError: If the transport is not connected.
        """
        if self._client is None:
            msg = "Transport not connected. Call connect() first."
            raise RuntimeError(msg)
        try:
            response = await self._client.post(target, json=payload)
        except httpx.HTTPError as exc:
            msg = f"notification send to {target} failed: {exc!r}"
            raise DeliveryError(msg, target=target) from exc
        return DeliveryResult(
            status_code=response.status_code,
            body=_decode_body(response),
            target=target,
        )
