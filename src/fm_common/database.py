"""Async SQLAlchemy engine and session factory shared by every component.

Transaction ownership: application services commit or roll back; domain
services and repositories only execute statements on the session they are
handed. Row locks taken by the order state machine (SELECT ... FOR UPDATE)
are held until that commit or rollback.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the table mirrors in each component's db_models."""


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

# expire_on_commit=False: services read returned rows after committing
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one AsyncSession per request, closed afterwards."""
    async with async_session_factory() as session:
        yield session
