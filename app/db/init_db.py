"""Database initialization utilities."""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.base import Base

# Register all models on the metadata
import app.models  # noqa: F401

logger = logging.getLogger(__name__)


async def create_tables(engine: AsyncEngine) -> None:
    """Create all database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def drop_tables(engine: AsyncEngine) -> None:
    """Drop all database tables (use with caution)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Database tables dropped")


async def init_db(engine: AsyncEngine) -> None:
    """Initialize database schema.

    Args:
        engine: Async engine to create the schema on
    """
    await create_tables(engine)
    logger.info("Database initialization complete")
