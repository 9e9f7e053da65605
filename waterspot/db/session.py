"""Async database wiring for WaterSpot.

Provides:
- Base: DeclarativeBase for AreaRow / RecordRow
- build_engine: async engine for a URL (PostgreSQL in deployment, SQLite in tests)
- engine / async_session_factory: process-wide instances built from settings
- get_async_session: FastAPI dependency with Unit-of-Work commit/rollback
- database_reachable: connectivity probe for /health
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from waterspot.config.settings import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, *, echo: bool = False, **kwargs: Any) -> AsyncEngine:
    """Create an async engine for ``url``.

    SQLite connections get foreign-key enforcement (records.area_id must
    point at an existing area); server databases get a pre-pinged pool.
    """
    if url.startswith("sqlite"):
        eng = create_async_engine(url, echo=echo, **kwargs)
        event.listen(eng.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return eng
    return create_async_engine(url, echo=echo, pool_pre_ping=True, **kwargs)


_settings = get_settings()

engine = build_engine(_settings.DATABASE_URL, echo=(_settings.ENVIRONMENT == "dev"))

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session that commits on success and rolls back on error.

    Repositories only add()/flush(). The bulk commit service is the one
    caller that also commits mid-request, at each batch boundary.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def database_reachable(
    factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> bool:
    try:
        async with factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Database unreachable: %s", exc)
        return False
    return True
