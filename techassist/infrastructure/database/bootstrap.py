"""Startup helpers: create the database, the pgvector extension and the tables."""

import logging
from urllib.parse import urlparse

import asyncpg
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from techassist.infrastructure.database.base import Base

logger = logging.getLogger(__name__)


def split_database_url(database_url: str) -> tuple[str, str]:
    """Return ``(maintenance_url, database_name)``; the name is empty when the URL has none."""
    database_name = urlparse(database_url).path.lstrip("/")
    server_url = database_url.rsplit("/", 1)[0] if database_name else database_url.rstrip("/")
    return f"{server_url}/postgres", database_name


async def ensure_database_exists(database_url: str) -> bool:
    """Create the target database through the ``postgres`` maintenance database.

    Returns True when a database was created. Failures are logged, not raised:
    the schema step reports the real connection error right after.
    """
    maintenance_url, database_name = split_database_url(database_url)
    if not database_name:
        return False

    try:
        conn = await asyncpg.connect(maintenance_url)
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
        logger.warning("Cannot reach PostgreSQL to check database '%s': %s", database_name, exc)
        return False

    try:
        if await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", database_name):
            return False
        # Not allowed inside a transaction block.
        await conn.execute(f'CREATE DATABASE "{database_name}"')
        logger.info("Created database '%s'", database_name)
        return True
    except asyncpg.PostgresError as exc:
        logger.warning("Could not create database '%s': %s", database_name, exc)
        return False
    finally:
        await conn.close()


async def prepare_schema(engine: AsyncEngine) -> None:
    """Enable pgvector, then create any missing table (document_chunks needs the extension)."""
    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema ready: %s", ", ".join(sorted(Base.metadata.tables)))
