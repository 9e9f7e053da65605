"""Shared pytest fixtures for the WaterSpot test suite.

Provides:
- anyio_backend: run async tests on asyncio
- db_engine: in-memory SQLite async engine with all tables (fresh per test)
- db_session: async session bound to that engine
- client: AsyncClient with dependency overrides for DB-backed testing
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from waterspot.db.session import Base, build_engine, get_async_session
import waterspot.db.tables  # noqa: F401 -- register ORM models on Base.metadata


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def db_engine():
    """In-memory SQLite with foreign keys enforced and all tables created."""
    eng = build_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Provide a session on the per-test database.

    Every test gets its own in-memory database, so commits issued by
    application code (bulk commit commits per batch) cannot leak.
    """
    factory = async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
async def client(db_session):
    """AsyncClient with get_async_session overridden to use the test session."""
    from waterspot.api.main import app

    async def _override_session():
        yield db_session

    app.dependency_overrides[get_async_session] = _override_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
