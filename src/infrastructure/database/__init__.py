"""
Database Infrastructure
=======================

Engine, session lifecycle and declarative base for the service desk store.

Uses SQLAlchemy 2.0 with asyncpg. One session is one unit of work: it
commits when the caller finishes cleanly and rolls back on any exception,
so multi-row mutations (a ticket plus its approval workflow) land together
or not at all.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.config import settings


class Base(DeclarativeBase):
    """Declarative base shared by every bounded context's models."""


_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Return the initialised engine.

    Raises:
        RuntimeError: If init_database() has not run yet
    """
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_database() first.")
    return _engine


def init_database(database_url: str | None = None) -> AsyncEngine:
    """
    Create the engine and session factory. Called once from the app lifespan.

    Args:
        database_url: Override for settings.database_url

    Returns:
        AsyncEngine: The initialized engine
    """
    global _engine, _session_maker

    # asyncpg expects ssl= rather than libpq's sslmode=
    url = (database_url or settings.database_url).replace("sslmode=", "ssl=")

    _engine = create_async_engine(
        url,
        echo=settings.debug,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )
    _session_maker = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return _engine


async def close_database() -> None:
    """Dispose of pooled connections. Called on shutdown."""
    global _engine, _session_maker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_maker = None


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """
    Unit-of-work context manager for background jobs and scripts.

    Usage:
        async with session_scope() as session:
            await BreachSweeper(...).sweep()
    """
    if _session_maker is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one transactional session per request."""
    async with session_scope() as session:
        yield session


async def create_tables() -> None:
    """
    Create all tables for local development.

    Production schemas are managed with migrations.
    """
    # Importing the model modules registers their tables on Base.metadata
    import src.sla.infrastructure.models  # noqa: F401
    import src.tickets.infrastructure.models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
