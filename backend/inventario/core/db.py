"""Async database session management helpers."""

from typing import Any, AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from inventario.core.config import settings


def _engine_options(url: str) -> dict[str, Any]:
    if make_url(url).get_backend_name() == "sqlite":
        return {"echo": settings.DEBUG}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "isolation_level": settings.DB_ISOLATION_LEVEL,
        "echo": settings.DEBUG,
    }


def build_engine(url: str) -> AsyncEngine:
    """Create the pooled async engine for ``url``.

    SQLite does not enforce foreign keys unless asked to on every connection,
    and the equipment history cascade depends on them.
    """

    async_engine = create_async_engine(url, **_engine_options(url))
    if async_engine.dialect.name == "sqlite":

        @event.listens_for(async_engine.sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, _record):  # pragma: no cover - driver hook
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return async_engine


engine = build_engine(settings.DATABASE_URL)

SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async database session."""

    async with SessionLocal() as session:
        yield session


def dialect_name(session: AsyncSession) -> str:
    return session.get_bind().dialect.name
