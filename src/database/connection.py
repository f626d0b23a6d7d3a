"""
Database connection management using SQLAlchemy with async support.
"""

from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncGenerator, Callable

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from shared.utils.config import settings
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

# Base class for all models
Base = declarative_base()

# Callable returning a session context (get_session, or a test equivalent)
SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]

# Global engine and session maker
_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Get or create the async database engine.

    Returns:
        AsyncEngine instance
    """
    global _engine

    if _engine is None:
        # Convert postgresql:// to postgresql+asyncpg://
        db_url = settings.DATABASE_URL
        if db_url.startswith("postgresql://"):
            db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)

        if db_url.startswith("sqlite"):
            logger.info(f"Creating database engine: {db_url}")
            _engine = create_async_engine(db_url, echo=settings.DATABASE_ECHO)
        else:
            logger.info(f"Creating database engine: {db_url.split('@')[-1]}")  # Log without credentials
            _engine = create_async_engine(
                db_url,
                pool_size=settings.DATABASE_POOL_SIZE,
                max_overflow=settings.DATABASE_MAX_OVERFLOW,
                pool_pre_ping=settings.DATABASE_POOL_PRE_PING,
                pool_recycle=settings.DATABASE_POOL_RECYCLE,
                echo=settings.DATABASE_ECHO,
            )

    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    Get or create the session maker.

    Returns:
        Session maker instance
    """
    global _session_maker

    if _session_maker is None:
        _session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _session_maker


def session_scope(session_maker: async_sessionmaker[AsyncSession]) -> SessionFactory:
    """
    Build a session factory bound to a specific session maker.

    Args:
        session_maker: Session maker to draw sessions from

    Returns:
        Callable usable as ``async with factory() as session``
    """

    @asynccontextmanager
    async def _scope() -> AsyncGenerator[AsyncSession, None]:
        session = session_maker()
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            await session.close()

    return _scope


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get async database session with automatic cleanup.

    Yields:
        AsyncSession instance

    Example:
        async with get_session() as session:
            result = await session.execute(query)
    """
    async with session_scope(get_session_maker())() as session:
        yield session


async def create_tables():
    """
    Create all database tables.
    Used for testing or initial setup.
    In production, use Alembic migrations instead.
    """
    # Register models on Base.metadata
    import src.database.models  # noqa: F401

    engine = get_engine()

    logger.info("Creating database tables...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created successfully")


async def close_engine():
    """Dispose the global engine (application shutdown)."""
    global _engine, _session_maker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_maker = None
