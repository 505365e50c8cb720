"""Database connection and session management using SQLAlchemy with async support."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for ORM models."""


class DatabaseManager:
    """Database connection and session manager."""

    def __init__(self, database_url: str, echo: bool = False):
        """Initialize database manager with async engine."""
        self.database_url = database_url

        self.engine = create_async_engine(self.database_url, echo=echo)

        self.async_session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self) -> None:
        """Create tables for every model registered on ``Base``."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session with proper cleanup."""
        async with self.async_session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()


def create_database_manager(
    database_url: str, echo: Optional[bool] = None
) -> DatabaseManager:
    """Build a manager for ``database_url``; echo follows the debug setting."""
    if echo is None:
        from .config import get_global_settings

        echo = get_global_settings().debug
    return DatabaseManager(database_url, echo=echo)
