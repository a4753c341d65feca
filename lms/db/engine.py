"""Async SQLAlchemy engine for the quiz and grading tables.

With DATABASE_URL set (postgresql+asyncpg://...) the module exposes the
engine, the session factory each SqlAlchemyUnitOfWork draws from, and a
liveness check shared by /health and /ready.  Without it, ``engine`` and
``async_session_factory`` are None and requests run on the in-memory
unit of work.

Sessions keep objects usable after commit (expire_on_commit=False): a
graded submission is mapped to its API payload after the transaction
has closed.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from lms.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by every table in lms.db.tables."""


if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,
        pool_size=SETTINGS.db_pool_size,
        max_overflow=SETTINGS.db_max_overflow,
        pool_pre_ping=True,
    )
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
else:
    engine = None
    async_session_factory = None


async def ping_database() -> bool | None:
    """SELECT 1 against the pool.  None when no database is configured."""
    if engine is None:
        return None
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        logger.warning("Database ping failed", exc_info=True)
        return False
    return True


@asynccontextmanager
async def lifespan_db():
    """Startup/shutdown hook for the database engine."""
    if engine is None:
        logger.info("No DATABASE_URL configured; using the in-memory store")
        yield
        return

    logger.info(
        "Database engine created: %s (pool_size=%d max_overflow=%d)",
        engine.url.render_as_string(hide_password=True),
        SETTINGS.db_pool_size,
        SETTINGS.db_max_overflow,
    )
    yield
    await engine.dispose()
    logger.info("Database engine disposed")
