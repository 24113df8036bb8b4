"""Async SQLAlchemy engine and session factory."""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from supplyvault.config import Settings


def _enable_sqlite_savepoints(engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT nests correctly on SQLite."""

    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


def _make_engine(url: str):
    if url.startswith("sqlite"):
        # in-memory sqlite must share a single connection
        engine = create_async_engine(url, echo=False, poolclass=StaticPool)
        _enable_sqlite_savepoints(engine)
        return engine
    return create_async_engine(url, echo=False, pool_size=5, max_overflow=10)


def _make_session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Database:
    """Holds the engine and its session factory.

    Created once at startup and stored on ``app.state``.
    """

    def __init__(self, settings: Settings) -> None:
        self.engine = _make_engine(settings.database_url)
        self.session = _make_session_factory(self.engine)

    async def create_all(self) -> None:
        """Create any missing tables (dev and tests; production uses migrations)."""
        from supplyvault.db.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()
