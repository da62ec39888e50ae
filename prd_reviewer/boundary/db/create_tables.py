"""
Database table creation.

Creates all tables defined in ORM models using SQLAlchemy metadata.
Runs at application startup; safe to repeat.

Dependencies: sqlalchemy, prd_reviewer.configs
System role: Database schema initialization

Usage:
    python -m prd_reviewer.boundary.db.create_tables
"""

import asyncio
import logging
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine

from prd_reviewer.boundary.db.base import Base
from prd_reviewer.boundary.db.connection import get_async_engine

# Import all models to register them with Base.metadata
from prd_reviewer.boundary.db.models.review_model import ReviewModel  # noqa: F401

logger = logging.getLogger(__name__)


def ensure_sqlite_directory(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    parsed = make_url(url)
    if not parsed.drivername.startswith("sqlite"):
        return
    database = parsed.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: existing tables remain unchanged.

    Args:
        engine: Engine to use; defaults to the process-wide engine
    """
    engine = engine or get_async_engine()
    ensure_sqlite_directory(str(engine.url))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def drop_all_tables(engine: AsyncEngine | None = None) -> None:
    """Drop all tables. Development only."""
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


if __name__ == "__main__":
    asyncio.run(create_all_tables())
