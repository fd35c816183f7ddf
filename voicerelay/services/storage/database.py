"""
Async SQLAlchemy engine and session helpers for the SQL-backed queue slot.

Engines are created explicitly and passed to their users; there is no
module-level engine. ``session_scope()`` yields an ``AsyncSession`` that
commits on clean exit and rolls back on error.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def create_engine(url: str) -> AsyncEngine:
    """Create an async engine, making sure a file-backed SQLite directory exists.

    Args:
        url: Async SQLAlchemy URL (e.g. ``sqlite+aiosqlite:///data/voicerelay.db``).

    Returns:
        A new ``AsyncEngine``. The caller owns it and must dispose it.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(url, echo=False)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to *engine*."""
    return async_sessionmaker(engine, expire_on_commit=False)


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Yield an ``AsyncSession`` that commits on success, rolls back on error."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables (idempotent).

    Args:
        engine: Engine to create the schema on.
    """
    # Registers the ORM tables on Base.metadata
    from voicerelay.services.storage import models_db  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
