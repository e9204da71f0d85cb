"""Engine and session factories, cached per database URL."""

from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import get_settings

# Seconds a SQLite writer waits for a competing writer before failing.
_SQLITE_BUSY_TIMEOUT = 30

_factories: dict[str, tuple[AsyncEngine, async_sessionmaker[AsyncSession]]] = {}


def _url_or_default(database_url: str | None) -> str:
    return database_url or get_settings().database_url


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _create_engine(url: str) -> AsyncEngine:
    if make_url(url).get_backend_name() != "sqlite":
        return create_async_engine(url, pool_pre_ping=True)
    engine = create_async_engine(url, connect_args={"timeout": _SQLITE_BUSY_TIMEOUT})
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_sessionmaker(
    database_url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Return the session factory for ``database_url``, creating it once.

    Sessions keep loaded attributes after commit; services read ids and
    statuses after committing.
    """
    url = _url_or_default(database_url)
    if url not in _factories:
        engine = _create_engine(url)
        _factories[url] = (
            engine,
            async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession),
        )
    return _factories[url][1]


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_sessionmaker()() as session:
        yield session


async def dispose_engine(database_url: str | None = None) -> None:
    """Close pooled connections and forget the factory for ``database_url``."""
    cached = _factories.pop(_url_or_default(database_url), None)
    if cached is not None:
        await cached[0].dispose()
