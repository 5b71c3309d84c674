"""Database engine and session factory construction."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from wage_engine.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from wage_engine.config import Settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create async database engine."""
    kwargs: dict = {"echo": False, "pool_pre_ping": True}
    if settings.database_url.startswith("postgresql"):
        kwargs.update(pool_size=10, max_overflow=20)
    return create_async_engine(settings.database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory shared by all SQL-backed components."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_schema(engine: AsyncEngine, include_snapshots: bool = True) -> None:
    """Create missing tables.

    With include_snapshots=False the salary_snapshots table is left out,
    which leaves the primary snapshot tier unprovisioned.
    """
    tables = [
        table
        for name, table in Base.metadata.tables.items()
        if include_snapshots or name != "salary_snapshots"
    ]
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=tables)
