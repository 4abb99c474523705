"""Shared session scoping for repositories."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession

    from ledger_notify.datastore.client import Datastore


class Repository:
    """Base class for repositories.

    Every public method takes an optional ``session``.  When given, work joins
    the caller's transaction and is left uncommitted; otherwise the repository
    opens a session of its own and commits it.
    """

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    @asynccontextmanager
    async def _scope(self, session: AsyncSession | None) -> AsyncIterator[AsyncSession]:
        if session is not None:
            yield session
            return
        async with self._ds.session() as own:
            yield own
            await own.commit()
