"""Live transfer updates over WebSocket.

Each connection listens on the local ``transfer-<account>`` event and
forwards every body as a JSON text frame.  ``*`` streams all accounts.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from ledger_notify.api.dependencies import get_ws_worker
from ledger_notify.notifications.events import transfer_event_name
from ledger_notify.notifications.worker import NotificationWorker  # noqa: TC001

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transfers"])

_QUEUE_SIZE = 1000


@router.websocket("/accounts/{name}/transfers")
async def transfer_stream(
    websocket: WebSocket,
    name: str,
    worker: Annotated[NotificationWorker | None, Depends(get_ws_worker)],
) -> None:
    """Stream transfer updates touching account *name*."""
    if worker is None:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    await websocket.accept()
    queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=_QUEUE_SIZE)
    event = transfer_event_name(name)

    def _listener(body: dict[str, Any]) -> None:
        try:
            queue.put_nowait(body)
        except asyncio.QueueFull:
            logger.warning("Dropping %s update for slow WebSocket client", event)

    worker.events.on(event, _listener)
    receiver = asyncio.create_task(websocket.receive_text())
    try:
        while True:
            sender = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if sender in done:
                await websocket.send_json(sender.result())
            else:
                sender.cancel()
            if receiver in done:
                # Client frames are ignored; this raises once the client leaves
                receiver.result()
                receiver = asyncio.create_task(websocket.receive_text())
    except WebSocketDisconnect:
        logger.debug("WebSocket client for %s disconnected", event)
    finally:
        worker.events.off(event, _listener)
        receiver.cancel()
