"""API routes."""

from fastapi import APIRouter

from ledger_notify.api.routes.notifications import router as notifications_router
from ledger_notify.api.routes.transfers import router as transfers_router

api_router = APIRouter()

api_router.include_router(notifications_router)
api_router.include_router(transfers_router)

__all__ = ["api_router"]
