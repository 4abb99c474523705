"""Async engine construction for SQLite (aiosqlite) and PostgreSQL (asyncpg)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

if TYPE_CHECKING:
    from ledger_notify.config.settings import DatabaseConfig


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Engine for ``config.dsn``.

    Server databases get a bounded, pre-pinged pool.  SQLite gets explicit
    transaction control so that savepoints (used for notification
    de-duplication) behave.
    """
    url = make_url(config.dsn)
    options: dict[str, Any] = {"echo": config.debug_sql}

    if url.get_backend_name() == "sqlite":
        engine = create_async_engine(url, **options)
        _sqlite_explicit_begin(engine)
        return engine

    options.update(
        pool_size=config.max_idle_connections,
        max_overflow=max(config.max_open_connections - config.max_idle_connections, 0),
        pool_pre_ping=True,
    )
    return create_async_engine(url, **options)


def _sqlite_explicit_begin(engine: AsyncEngine) -> None:
    # pysqlite's implicit BEGIN breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _autocommit_driver(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")
