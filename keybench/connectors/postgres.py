"""
Postgres Connection

Opens the single asyncpg connection a benchmark run uses and guarantees it is
closed on every exit path.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import asyncpg

from keybench.config import Settings

logger = logging.getLogger(__name__)


async def open_connection(settings: Settings) -> asyncpg.Connection:
    """
    Open a connection using the configured parameters.

    The statement cache is disabled: the benchmark issues DISCARD ALL between
    iterations, which deallocates named prepared statements on the server.

    Args:
        settings: Run settings

    Returns:
        Connection: Open asyncpg connection
    """
    logger.info(f"Connecting to Postgres: {settings.dsn_display}")
    return await asyncpg.connect(
        host=settings.DB_HOST,
        port=settings.DB_PORT,
        user=settings.DB_USER,
        password=settings.DB_PASSWORD,
        database=settings.DB_NAME,
        timeout=settings.DB_CONNECT_TIMEOUT,
        statement_cache_size=0,
    )


@asynccontextmanager
async def connection(settings: Settings) -> AsyncIterator[asyncpg.Connection]:
    """
    Connection scoped to an async context manager.

    Usage:
        async with connection(settings) as conn:
            version = await conn.fetchval("SELECT version()")

    Yields:
        Connection: Open asyncpg connection, closed on exit
    """
    conn = await open_connection(settings)
    try:
        yield conn
    finally:
        if not conn.is_closed():
            await conn.close()
            logger.info("Postgres connection closed")
