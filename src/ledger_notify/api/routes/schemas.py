"""API request/response Pydantic schemas."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error body."""

    code: str
    message: str


class NotificationResponse(BaseModel):
    """A notification awaiting successful delivery."""

    id: str
    subscription_id: str
    transfer_id: str
    retry_count: int
    retry_at: datetime | None = None
    created_at: datetime | None = None


class NotificationListResponse(BaseModel):
    """One page of pending notifications."""

    items: list[NotificationResponse]
    total: int
    page: int
    page_size: int


class ProcessQueueResponse(BaseModel):
    """Result of a forced scheduler sweep."""

    processed: int


class WorkerStatusResponse(BaseModel):
    """Whether scheduler-driven processing is running."""

    enabled: bool
