"""Datastore shared by the ledger and the notification worker.

The ledger writes transfers through :meth:`Datastore.transaction`; the
worker joins that same session so notification rows commit (or vanish)
together with the transfer change that produced them.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ledger_notify.datastore.engines import create_engine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ledger_notify.config.settings import DatabaseConfig

logger = logging.getLogger(__name__)

_ERR_CLOSED = "Datastore is not open. Call open() first."


class Datastore:
    """Owns the async engine and hands out sessions.

    Usage::

        ds = Datastore(config.db)
        await ds.open()
        async with ds.transaction() as session:
            await transfers.upsert(transfer, session=session)
            await worker.queue_notifications(transfer, session=session)
        await ds.close()
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        """The async engine (raises RuntimeError while closed)."""
        if self._engine is None:
            raise RuntimeError(_ERR_CLOSED)
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def open(self) -> None:
        """Create the engine. Opening twice is a no-op."""
        if self._engine is not None:
            return
        self._engine = create_engine(self._config)
        # Rows outlive their session: notifications are read after commit
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)
        logger.debug("Datastore opened (%s)", self._engine.url.get_backend_name())

    async def close(self) -> None:
        """Dispose the engine and its pooled connections."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None

    def session(self) -> AsyncSession:
        """A fresh session; the caller owns commit and close."""
        if self._sessions is None:
            raise RuntimeError(_ERR_CLOSED)
        return self._sessions()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Session whose work commits on normal exit and rolls back on error."""
        async with self.session() as session:
            try:
                yield session
            except BaseException:
                await session.rollback()
                raise
            await session.commit()

    async def ping(self) -> bool:
        """Round-trip a trivial query; False if the database is unreachable."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError):
            logger.warning("Datastore ping failed", exc_info=True)
            return False
        return True
