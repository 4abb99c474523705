"""Notification queue administration endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ledger_notify.api.dependencies import get_worker
from ledger_notify.api.routes.schemas import (
    ErrorResponse,
    NotificationListResponse,
    NotificationResponse,
    ProcessQueueResponse,
    WorkerStatusResponse,
)
from ledger_notify.errors.definitions import ErrNotificationNotFound
from ledger_notify.notifications.worker import NotificationWorker  # noqa: TC001

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
    responses={503: {"model": ErrorResponse, "description": "Engine not running"}},
)


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    worker: Annotated[NotificationWorker, Depends(get_worker)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=1000)] = 50,
) -> NotificationListResponse:
    """List notifications that have not been delivered yet."""
    rows = await worker.notifications.list_pending(page=page, page_size=page_size)
    total = await worker.notifications.count_pending()
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n, from_attributes=True) for n in rows],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{notification_id}",
    response_model=NotificationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_notification(
    notification_id: str,
    worker: Annotated[NotificationWorker, Depends(get_worker)],
) -> NotificationResponse:
    """Fetch one pending notification."""
    notification = await worker.notifications.get(notification_id)
    if notification is None:
        raise ErrNotificationNotFound
    return NotificationResponse.model_validate(notification, from_attributes=True)


@router.post("/process", response_model=ProcessQueueResponse)
async def process_queue(
    worker: Annotated[NotificationWorker, Depends(get_worker)],
) -> ProcessQueueResponse:
    """Run one scheduler sweep over due notifications now."""
    processed = await worker.process_notification_queue()
    return ProcessQueueResponse(processed=processed)


@router.post("/worker/start", response_model=WorkerStatusResponse)
async def start_worker(
    worker: Annotated[NotificationWorker, Depends(get_worker)],
) -> WorkerStatusResponse:
    """Start scheduler-driven processing."""
    await worker.start()
    return WorkerStatusResponse(enabled=worker.scheduler.is_enabled())


@router.post("/worker/stop", response_model=WorkerStatusResponse)
async def stop_worker(
    worker: Annotated[NotificationWorker, Depends(get_worker)],
) -> WorkerStatusResponse:
    """Stop scheduler-driven processing; running attempts complete."""
    await worker.stop()
    return WorkerStatusResponse(enabled=worker.scheduler.is_enabled())
