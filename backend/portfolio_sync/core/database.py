"""Database configuration and session management."""

import logging
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from portfolio_sync.core.config import settings

logger = logging.getLogger(__name__)


class Database:
    """Engine plus session factory, owned by the application instance.

    The app creates one in its lifespan and stores it on ``app.state``; each
    request acquires a session from it and releases it when the request ends.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, future=True, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls) -> "Database":
        return cls(
            settings.DATABASE_URL,
            echo=settings.DEBUG,  # Only log SQL in debug mode
            # Pool configuration for production
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=True,  # Verify connections before use
            pool_timeout=30,  # Wait max 30s for a connection
        )

    async def dispose(self) -> None:
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not initialised on the application state")
    return database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get a request-scoped database session."""
    from fastapi import HTTPException

    database = get_database(request)
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except HTTPException:
            # HTTPException is normal flow control, not a DB error
            await session.rollback()
            raise
        except Exception as e:
            logger.error(f"Database error, rolling back: {type(e).__name__}: {e}")
            await session.rollback()
            raise
