"""Database session management."""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from gyanu.config import Settings


def build_session_factory(settings: Settings) -> async_sessionmaker[AsyncSession]:
    """Create the async engine and session factory for the configured database."""
    connect_args = {"ssl": "require"} if settings.database_requires_ssl else {}
    engine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        connect_args=connect_args,
    )
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Session factory attached to the running application."""
    return request.app.state.session_factory


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with get_session_factory(request)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
