import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from content_graph.config import settings
from content_graph.errors import storage_errors
from content_graph.middleware import install_query_counter

logger = logging.getLogger(__name__)


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """
    SQLite ignores FOREIGN KEY clauses (and therefore ON DELETE CASCADE)
    unless the pragma is switched on for every new connection.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _engine_kwargs(url: str) -> dict:
    kwargs: dict = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if url.startswith("postgresql+asyncpg"):
        kwargs["pool_timeout"] = settings.DB_POOL_TIMEOUT
        kwargs["connect_args"] = {"command_timeout": settings.DB_COMMAND_TIMEOUT}
    return kwargs


# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

if settings.DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine)

# Per-request SQL statement counter surfaced by RequestLogMiddleware.
install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def unit_of_work(db: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """
    Run a group of writes atomically: commit when the block exits cleanly,
    roll back and re-raise on any exception.

    The session stays usable after a rollback, so a caller may run further
    units of work on it.
    """
    try:
        yield db
        with storage_errors(operation):
            await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.warning("Rolled back %s: %s", operation, exc)
        raise
    logger.debug("Committed %s", operation)
