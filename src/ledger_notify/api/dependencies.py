"""FastAPI dependency injection helpers.

Usage in a route::

    @router.post("/process")
    async def process(engine: Annotated[LedgerNotifyEngine, Depends(get_engine)]) -> ...:
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request, WebSocket

from ledger_notify.engine.client import LedgerNotifyEngine  # noqa: TC001
from ledger_notify.errors.definitions import ErrWorkerNotRunning
from ledger_notify.notifications.worker import NotificationWorker  # noqa: TC001


def get_engine(request: Request) -> LedgerNotifyEngine:
    """Retrieve the engine from ``app.state``.

    Raises:
        ErrWorkerNotRunning: If the engine has not been initialized.
    """
    engine: LedgerNotifyEngine | None = getattr(request.app.state, "engine", None)
    if engine is None or not engine.is_initialized:
        raise ErrWorkerNotRunning
    return engine


def get_worker(
    engine: Annotated[LedgerNotifyEngine, Depends(get_engine)],
) -> NotificationWorker:
    """The engine's notification worker."""
    return engine.worker


def get_ws_worker(websocket: WebSocket) -> NotificationWorker | None:
    """Notification worker for WebSocket routes (None before startup)."""
    engine: LedgerNotifyEngine | None = getattr(websocket.app.state, "engine", None)
    if engine is None or not engine.is_initialized:
        return None
    return engine.worker
