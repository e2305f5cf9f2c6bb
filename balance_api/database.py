"""
Database engine, transaction scopes, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - IsolationLevel: The isolation levels callers may ask for
  - Database: Owns the async engine (connection pool) and session factory
  - Database.transaction(): Explicit "run inside a transaction at level X" scope
  - Base: Declarative base class that all ORM models inherit from
  - get_database(): FastAPI dependency that returns the app's Database

Transaction scopes:
  Nothing in this project relies on a per-request session. The transfer
  engine and the reset job each open their own scope with the isolation
  level they need:

      async with database.transaction(IsolationLevel.REPEATABLE_READ) as session:
          ...

  The scope commits when the block exits normally and rolls back on any
  exception, which is then re-raised unchanged.

SQLite note:
  SQLite doesn't support SELECT ... FOR UPDATE (row-level locking) and only
  knows two isolation levels (READ UNCOMMITTED and SERIALIZABLE). Levels
  between the two are mapped up to SERIALIZABLE, and every transaction that
  may write is opened with BEGIN IMMEDIATE, which takes the database write
  lock up front. Concurrent writers therefore queue on that lock (bounded by
  the busy timeout) instead of racing, which gives the same serialisation a
  row lock gives on PostgreSQL. Scopes opened with read_only=True use a
  deferred BEGIN and don't queue for the write lock.
"""

import enum
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class IsolationLevel(str, enum.Enum):
    """Transaction isolation levels, valued as their SQL spelling."""
    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


# SQLite only accepts these two; anything stronger than READ UNCOMMITTED
# becomes SERIALIZABLE so the caller never gets weaker isolation than asked.
_SQLITE_LEVELS = {
    IsolationLevel.READ_UNCOMMITTED: "READ UNCOMMITTED",
    IsolationLevel.READ_COMMITTED: "SERIALIZABLE",
    IsolationLevel.REPEATABLE_READ: "SERIALIZABLE",
    IsolationLevel.SERIALIZABLE: "SERIALIZABLE",
}

# Execution option marking a transaction that never writes
READ_ONLY_OPTION = "balance_api_read_only"


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Provides metadata tracking (used by Database.create_all) and the
    common declarative mapping features.
    """
    pass


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    """
    Make SQLite write transactions start with BEGIN IMMEDIATE.

    The driver's own implicit BEGIN is switched off so SQLAlchemy's "begin"
    event is the only place a transaction is opened. Connections carrying
    the READ_ONLY_OPTION execution option get a plain (deferred) BEGIN
    instead, which only takes a shared lock once it reads.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        if conn.get_execution_options().get(READ_ONLY_OPTION):
            conn.exec_driver_sql("BEGIN")
        else:
            conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(
    url: str,
    lock_timeout_seconds: float = 5.0,
    echo: bool = False,
) -> AsyncEngine:
    """
    Create the async engine for `url`, with the lock-wait timeout wired
    into the driver.

    Args:
        url: SQLAlchemy database URL (sqlite+aiosqlite or postgresql+asyncpg).
        lock_timeout_seconds: How long a statement may wait for a lock.
        echo: Log every SQL statement (useful with DEBUG=True).
    """
    parsed = make_url(url)
    backend = parsed.get_backend_name()

    if backend == "sqlite":
        if parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(
            url,
            echo=echo,
            connect_args={"timeout": lock_timeout_seconds},
        )
        _use_immediate_transactions(engine)
        return engine

    connect_args = {}
    if backend == "postgresql" and parsed.get_driver_name() == "asyncpg":
        lock_timeout_ms = int(lock_timeout_seconds * 1000)
        connect_args["server_settings"] = {"lock_timeout": str(lock_timeout_ms)}

    return create_async_engine(url, echo=echo, connect_args=connect_args)


class Database:
    """
    Owns the engine and hands out transaction scopes.

    One instance is created per process (API app or reset worker) and
    passed explicitly to whatever needs storage.
    """

    def __init__(
        self,
        url: str,
        lock_timeout_seconds: float = 5.0,
        echo: bool = False,
    ):
        self.engine = build_engine(url, lock_timeout_seconds, echo=echo)
        self.dialect_name = self.engine.dialect.name

        # expire_on_commit=False keeps attributes readable after commit;
        # without this, touching a committed object would trigger a lazy
        # load, which fails in async context.
        self._sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        # One bind per (isolation level, read-only) pair, built once
        self._binds = {}
        for level in (None, *IsolationLevel):
            for read_only in (False, True):
                options = {}
                if level is not None:
                    options["isolation_level"] = self.dialect_isolation_level(level)
                if read_only:
                    options[READ_ONLY_OPTION] = True
                    if self.dialect_name == "postgresql":
                        options["postgresql_readonly"] = True
                self._binds[level, read_only] = (
                    self.engine.execution_options(**options) if options else self.engine
                )

    def dialect_isolation_level(self, level: IsolationLevel) -> str:
        """Translate `level` into a value the current backend accepts."""
        if self.dialect_name == "sqlite":
            return _SQLITE_LEVELS[level]
        return level.value

    @asynccontextmanager
    async def transaction(
        self,
        isolation_level: IsolationLevel | None = None,
        *,
        read_only: bool = False,
    ) -> AsyncIterator[AsyncSession]:
        """
        Run the enclosed block inside one database transaction.

        Commits when the block finishes, rolls back if it raises. The
        exception is never swallowed.

        Args:
            isolation_level: Isolation for this transaction, or None for the
                backend default.
            read_only: The block only reads. On SQLite the transaction then
                opens with a deferred BEGIN and doesn't queue behind writers
                for the write lock; on PostgreSQL it runs READ ONLY.

        Yields:
            An AsyncSession bound to the transaction.
        """
        bind = self._binds[isolation_level, read_only]

        async with self._sessionmaker(bind=bind) as session:
            try:
                async with session.begin():
                    yield session
            except BaseException:
                logger.debug(
                    "Transaction rolled back (isolation=%s)",
                    isolation_level.value if isolation_level else "default",
                )
                raise

    async def create_all(self) -> None:
        """Create all tables that don't exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    """
    FastAPI dependency that provides the application's Database.

    The instance is created in the app lifespan (see main.py) and stored on
    app.state; tests override this dependency with their own Database.
    """
    return request.app.state.database
