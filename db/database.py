import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlmodel.ext.asyncio.session import AsyncSession

from db.config import settings

logger = logging.getLogger(__name__)

# Relational system of record, shared by the sql repository
ASYNC_ENGINE: AsyncEngine = create_async_engine(
    settings.postgres_uri,
    echo=False,
    pool_size=20,
    max_overflow=30,
    pool_pre_ping=True,
    pool_recycle=3600,
)


def create_engine(postgres_uri: str | None = None) -> AsyncEngine:
    """Create a dedicated engine for one-shot jobs such as a migration run."""
    return create_async_engine(
        postgres_uri or settings.postgres_uri,
        echo=False,
        pool_size=10,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


@asynccontextmanager
async def session_scope(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Open an independent session on the given engine, rolling back on error."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Get a read-write session for write operations"""
    session = AsyncSession(ASYNC_ENGINE, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


async def ping(engine: AsyncEngine) -> None:
    """Raise if the relational store cannot answer a trivial query."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def init():
    """Initialize PostgreSQL connection and verify connectivity"""
    retries = 5
    for i in range(retries):
        try:
            await ping(ASYNC_ENGINE)
            logger.info("PostgreSQL connection initialized successfully.")
            break
        except Exception as e:
            if i < retries - 1:
                wait_time = 2**i
                logger.exception(f"Error initializing PostgreSQL: {e}, retrying in {wait_time} seconds...")
                await asyncio.sleep(wait_time)
            else:
                logger.error("Failed to initialize PostgreSQL after several attempts.")
                raise e


async def close():
    """Close PostgreSQL connection pools"""
    await ASYNC_ENGINE.dispose()
    logger.info("PostgreSQL connections closed.")
