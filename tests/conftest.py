"""
Test infrastructure for the content graph.

Strategy
--------
- SQLite in-memory via aiosqlite, so no Postgres is needed in CI.
- StaticPool makes every session share the one in-memory connection;
  a second connection would see an empty database.
- ``PRAGMA foreign_keys=ON`` is installed on the test engine so ON DELETE
  CASCADE and foreign-key checks behave as they do on Postgres.
- The app's get_db dependency is overridden to use the test session factory.
- Tables are created before and dropped after each test.
- Redis is disabled (``cache._redis = None``); the CacheManager degrades to
  no-op reads and writes, so every read hits the database.
"""
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import content_graph.models  # noqa: F401  (registers tables on Base.metadata)
from content_graph.cache import cache
from content_graph.database import Base, enable_sqlite_foreign_keys, get_db
from content_graph.main import app
from content_graph.middleware import install_query_counter
from content_graph.services import account_service, content_service, tag_service

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

enable_sqlite_foreign_keys(engine_test)
install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Fresh tables per test, Redis off."""
    cache._redis = None
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ---------------------------------------------------------------------------
# Seeding helpers (go through the services, so every row is committed)
# ---------------------------------------------------------------------------

async def make_account(db: AsyncSession, handle: str = "alice", profile: dict | None = None) -> dict:
    return await account_service.register_account(
        db, {"handle": handle, "email": f"{handle}@example.com"}, profile
    )


async def make_item(
    db: AsyncSession,
    account_id: int,
    title: str = "A first post",
    published: bool = False,
) -> dict:
    return await content_service.create_content_item(
        db,
        {
            "account_id": account_id,
            "title": title,
            "body": "Body text long enough to pass.",
            "published": published,
        },
    )


async def make_tag(db: AsyncSession, name: str, description: str | None = None) -> dict:
    return await tag_service.create_tag(db, {"name": name, "description": description})
