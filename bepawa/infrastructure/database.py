from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator
import logging
import uuid

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from sqlalchemy.orm import declarative_base
from bepawa.core.config import settings

logger = logging.getLogger(__name__)

# Check if using SQLite
is_sqlite = "sqlite" in settings.DATABASE_URL.lower()

if is_sqlite:
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
    )
else:
    engine = create_async_engine(
        settings.DATABASE_URL,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=settings.DEBUG
    )

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

# Base model
Base = declarative_base()


def gen_uuid() -> str:
    return str(uuid.uuid4())


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def task_session() -> AsyncIterator[AsyncSession]:
    """
    Session for Celery tasks.

    Every task run drives its own event loop through ``asyncio.run``, and an
    asyncpg connection cannot be reused on another loop, so the engine keeps
    no pool and is disposed before the loop closes.
    """
    task_engine = create_async_engine(settings.DATABASE_URL, poolclass=NullPool)
    try:
        async with AsyncSession(task_engine, expire_on_commit=False, autoflush=False) as session:
            yield session
    finally:
        await task_engine.dispose()


async def init_db():
    """Initialize database tables"""
    # Importing the package registers every table on Base.metadata
    import bepawa.domain  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def close_db():
    """Close database connections"""
    await engine.dispose()
