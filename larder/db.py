"""
Database engine and session factory.

Sessions are created with ``expire_on_commit=False``: the engine commits line
by line and keeps using the loaded rows after each commit.
"""

from __future__ import annotations

from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from larder.config import get_settings
from larder.models.base import Base


def get_engine_and_session(
    database_url: Optional[str] = None, **engine_kwargs
) -> Tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create an async engine and a session factory bound to it.

    Args:
        database_url: SQLAlchemy async URL, defaults to ``settings.database_url``
        **engine_kwargs: Extra arguments for ``create_async_engine``

    Returns:
        (engine, session factory)
    """
    url = database_url or get_settings().database_url
    engine = create_async_engine(url, echo=False, **engine_kwargs)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    return engine, SessionLocal


async def create_tables(engine: AsyncEngine, drop_existing: bool = False) -> None:
    """Create every table registered on ``Base.metadata``."""
    async with engine.begin() as conn:
        if drop_existing:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
