"""Engine/session ownership and the per-request session dependency."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from geoquiz.core.errors import StorageFailure

logger = logging.getLogger(__name__)

Base = declarative_base()

WRITE_OPTION = "geoquiz_write"


def _install_sqlite_hooks(engine) -> None:
    """Enforce foreign keys and let SAVEPOINT work on pysqlite/aiosqlite."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # driver must not emit its own BEGIN; we do it in _on_begin
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        # writers take the RESERVED lock up front and queue on busy_timeout
        if conn.get_execution_options().get(WRITE_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


class Database:
    """Owns the engine and session factory for one running app."""

    def __init__(self, url: str, *, echo: bool = False, busy_timeout: float = 5.0):
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["timeout"] = busy_timeout
        self.url = url
        self.engine = create_async_engine(url, echo=echo, future=True, connect_args=connect_args)
        if self.engine.dialect.name == "sqlite":
            _install_sqlite_hooks(self.engine)
        self.sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)

    def session(self) -> AsyncSession:
        return self.sessionmaker()

    async def dispose(self) -> None:
        await self.engine.dispose()


async def end_read(session: AsyncSession) -> None:
    """Close a read-only transaction left open by earlier queries."""
    if session.in_transaction():
        await session.commit()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Write transaction: commit on success; roll back on any failure.

    Any open read is ended first so the write starts on a fresh connection
    holding the write lock. Driver errors are logged and re-raised as
    StorageFailure so callers only ever see QuizError kinds.
    """
    try:
        await end_read(session)
        await session.connection(execution_options={WRITE_OPTION: True})
        yield session
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Transaction rolled back")
        raise StorageFailure() from exc
    except Exception:
        await session.rollback()
        raise


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.database.session() as session:
        yield session
