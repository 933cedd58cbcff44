"""Async SQLAlchemy engine and session management.

The engine is created lazily from ``settings.database_url``. SQLite (via
aiosqlite) is the default store; PostgreSQL URLs are served by asyncpg.

Usage:
    from app.database.connection import get_session
    from app.database.orm import User

    async with get_session() as session:
        user = await session.get(User, 1)
        user.name = "Asha"
        await session.commit()
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings
from app.core.logging import get_logger


logger = get_logger("database")

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {"echo": settings.db_echo}
    return {
        "pool_size": settings.db_pool_min_size,
        "max_overflow": settings.db_pool_max_size - settings.db_pool_min_size,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "echo": settings.db_echo,
    }


def _ensure_sqlite_directory(url: str) -> None:
    database = make_url(url).database
    if database and database != ":memory:":
        Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    # SQLite ignores ON DELETE CASCADE unless the pragma is set per connection
    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def init_sqlalchemy_engine() -> AsyncEngine:
    """Initialize SQLAlchemy async engine."""
    global _engine, _session_factory

    if _engine is not None:
        return _engine

    url = settings.database_url
    if url.startswith("sqlite"):
        _ensure_sqlite_directory(url)

    try:
        _engine = create_async_engine(url, **_engine_options(url))
    except Exception as e:
        logger.error(f"SQLAlchemy engine init failed: {e}")
        raise

    if url.startswith("sqlite"):
        _enable_sqlite_foreign_keys(_engine)

    _session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info("SQLAlchemy async engine initialized", extra={"dialect": _engine.dialect.name})
    return _engine


async def get_engine() -> AsyncEngine:
    """Get SQLAlchemy async engine, initializing if necessary."""
    if _engine is None:
        await init_sqlalchemy_engine()
    return _engine


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Get an async SQLAlchemy session; rolled back if the block raises."""
    if _session_factory is None:
        await init_sqlalchemy_engine()

    async with _session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def create_schema() -> None:
    """Create any missing tables."""
    from .orm import Base

    engine = await get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


async def close_sqlalchemy_engine() -> None:
    """Close SQLAlchemy async engine."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("SQLAlchemy engine closed")


async def database_healthcheck() -> bool:
    """Return True when a trivial query succeeds."""
    from sqlalchemy import text

    try:
        async with get_session() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database healthcheck failed: {e}")
        return False


async def init_database() -> None:
    """Initialize the engine and create the schema."""
    await init_sqlalchemy_engine()
    await create_schema()


async def close_database() -> None:
    await close_sqlalchemy_engine()
