"""Database session factory setup."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

import nftledger.models  # noqa: F401  (registers tables on SQLModel.metadata)


def create_engine(db_url: str, pool_size: int = 20) -> AsyncEngine:
    """Create async database engine.

    Args:
        db_url: Connection URL (postgresql+psycopg://... or sqlite+aiosqlite://...)
        pool_size: Maximum number of connections in the pool (ignored for SQLite)

    Returns:
        Async engine
    """
    engine_kwargs: dict = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": False,  # Don't log SQL queries (use structlog instead)
    }
    if not db_url.startswith("sqlite"):
        engine_kwargs["pool_size"] = pool_size
        engine_kwargs["max_overflow"] = 0  # No overflow beyond pool_size

    return create_async_engine(db_url, **engine_kwargs)


def setup_db_session(db_url: str, pool_size: int = 20) -> async_sessionmaker[AsyncSession]:
    """Create async database session factory.

    Args:
        db_url: Connection URL (postgresql+psycopg://...)
        pool_size: Maximum number of connections in the pool (default: 20)

    Returns:
        Async session factory for creating database sessions
    """
    return async_sessionmaker(
        create_engine(db_url, pool_size),
        class_=AsyncSession,
        expire_on_commit=False,  # Prevent lazy loading issues after commit
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all ledger tables that do not exist yet.

    Production schemas are managed by Alembic; this is used for local SQLite
    stores and tests.
    """
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
