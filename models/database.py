"""
Database engine and session factory (SQLAlchemy async, asyncpg driver).
"""

import asyncio
import logging
import ssl
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config import settings
from models.models import Base


logger = logging.getLogger(__name__)


def _get_connect_args() -> dict:
    """asyncpg takes SSL as a connect argument rather than a URL parameter."""
    connect_args = {}
    if settings.ssl_enabled:
        ssl_context = ssl.create_default_context()
        if settings.pg_sslmode == "require":
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
        elif settings.pg_sslmode == "verify-ca":
            ssl_context.check_hostname = False
        connect_args["ssl"] = ssl_context
    return connect_args


engine = create_async_engine(
    settings.database_url,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    echo=settings.debug,
    connect_args=_get_connect_args(),
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session (and pooled connection) per request.

    Services open their own transaction on it; closing the session returns
    the connection to the pool on every exit path.
    """
    async with async_session_maker() as session:
        yield session


async def init_db(max_retries: int = 10, retry_delay: float = 2.0) -> None:
    """Create missing tables, retrying while the database comes up."""
    for attempt in range(1, max_retries + 1):
        try:
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database initialized")
            return
        except (OSError, DBAPIError) as e:
            if attempt == max_retries:
                logger.error("Database connection failed after %d attempts", max_retries)
                raise
            logger.warning(
                "Database connection attempt %d/%d failed: %s; retrying in %.1fs",
                attempt, max_retries, e, retry_delay,
            )
            await asyncio.sleep(retry_delay)


async def close_db() -> None:
    """Close all pooled connections."""
    await engine.dispose()
