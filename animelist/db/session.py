"""
Database handle for async SQLAlchemy.

The Database object owns the engine and the session factory. It is built once
at process start (application lifespan or test fixture), passed to the
services that need it, and disposed at shutdown.

SQLite connections are put in WAL mode with a bounded busy timeout so reads
can proceed during a write and a blocked writer fails instead of hanging.
"""

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from animelist.db.base import Base

logger = logging.getLogger(__name__)

_BUSY_MARKERS = ("database is locked", "database is busy", "sqlite_busy")


class Database:
    """Store handle: engine, session factory and unit-of-work helpers."""

    def __init__(self, url: str, *, echo: bool = False, busy_timeout_ms: int = 5000):
        self.url = url
        self.is_sqlite = url.startswith("sqlite")

        if self.is_sqlite:
            self.engine = create_async_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
            )
            self._configure_sqlite(busy_timeout_ms)
        else:
            self.engine = create_async_engine(
                url,
                echo=echo,
                pool_size=5,
                max_overflow=10,
                pool_pre_ping=True,
            )

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    def _configure_sqlite(self, busy_timeout_ms: int) -> None:
        @event.listens_for(self.engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            # pysqlite's implicit transaction handling breaks SAVEPOINT;
            # take over BEGIN ourselves (see the "begin" listener below).
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
            # SQLite does NOT enforce foreign keys by default.
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(self.engine.sync_engine, "begin")
        def _do_begin(conn):
            conn.exec_driver_sql("BEGIN")

    async def create_all(self) -> None:
        """Create all tables from the ORM metadata."""
        # Import models so they register on Base.metadata
        from animelist import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        One atomic unit of work.

        Commits when the block exits normally, rolls back on any exception.
        """
        async with self.session_factory() as session:
            async with session.begin():
                yield session

    async def journal_mode(self) -> str | None:
        """Report the SQLite journal mode (None for other databases)."""
        if not self.is_sqlite:
            return None
        async with self.engine.connect() as conn:
            result = await conn.execute(text("PRAGMA journal_mode"))
            return result.scalar()


def is_busy_error(exc: BaseException) -> bool:
    """Whether an exception is SQLite lock contention worth retrying."""
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in message for marker in _BUSY_MARKERS)


def get_database(request: Request) -> Database:
    """Dependency returning the process-wide Database handle."""
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.
    Automatically handles commit, rollback and cleanup.

    Usage:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    database = get_database(request)
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
