"""In-process event bus for local transfer listeners.

Listeners are plain callables invoked synchronously, in registration order,
on the emitter's stack.  A listener that raises is logged and skipped; the
remaining listeners still receive the event.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    Listener = Callable[[dict[str, Any]], None]

logger = logging.getLogger(__name__)

WILDCARD_EVENT = "transfer-*"


def transfer_event_name(account: str) -> str:
    """Local event name for transfers touching *account* (``*`` for all accounts)."""
    return f"transfer-{account}"


class EventBus:
    """Synchronous named-event emitter.

    Usage::

        bus = EventBus()
        bus.on("transfer-alice", lambda body: print(body["resource"]["id"]))
        bus.emit("transfer-alice", {"resource": {...}})
    """

    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> None:
        """Register *listener* for *event*."""
        self._listeners[event].append(listener)

    def once(self, event: str, listener: Listener) -> None:
        """Register *listener* for the next *event* only."""

        def _wrapper(payload: dict[str, Any]) -> None:
            self.off(event, _wrapper)
            listener(payload)

        self.on(event, _wrapper)

    def off(self, event: str, listener: Listener) -> None:
        """Remove *listener* from *event* (no-op if it is not registered)."""
        listeners = self._listeners.get(event)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event]

    def listener_count(self, event: str) -> int:
        """Number of listeners registered for *event*."""
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, payload: dict[str, Any]) -> bool:
        """Call every listener of *event* with *payload*. Returns True if any listened."""
        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("Listener for %s failed", event)
        return bool(listeners)
