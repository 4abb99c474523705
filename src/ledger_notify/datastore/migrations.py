"""Direct schema management for development and tests.

Deployments run the Alembic revisions under ``alembic/`` instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ledger_notify.engine.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


async def create_schema(engine: AsyncEngine) -> None:
    """Create the transfer, fulfillment, subscription and notification tables if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_schema(engine: AsyncEngine) -> None:
    """Drop every table (tests only)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
