"""
PostgreSQL pool for the app and app-data stores.

Both tables keep the full wire document in a JSONB ``document`` column and
mirror the fields used for lookups, ordering and the version check into
plain columns. A JSON codec is registered on every pooled connection, so
JSONB values go in and come out as Python dicts.
"""
import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpg
from loguru import logger

from appcanvas.config import settings


SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS apps (
        id          TEXT PRIMARY KEY,
        user_id     TEXT NOT NULL,
        slug        TEXT NOT NULL UNIQUE,
        is_public   BOOLEAN NOT NULL DEFAULT FALSE,
        version     INTEGER NOT NULL DEFAULT 1,
        document    JSONB NOT NULL,
        created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_apps_user_updated ON apps (user_id, updated_at DESC)",
    """
    CREATE TABLE IF NOT EXISTS app_data (
        id          TEXT PRIMARY KEY,
        app_id      TEXT NOT NULL REFERENCES apps (id) ON DELETE CASCADE,
        user_id     TEXT NOT NULL,
        collection  TEXT NOT NULL,
        document    JSONB NOT NULL,
        created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_app_data_app_collection ON app_data (app_id, collection, created_at DESC)",
)


def affected_rows(status: str) -> int:
    """Row count from a command status such as ``"UPDATE 1"`` or ``"DELETE 3"``"""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


async def _init_connection(conn: asyncpg.Connection) -> None:
    await conn.set_type_codec(
        "jsonb",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )


class DatabaseManager:
    """Owns the asyncpg pool; repositories borrow connections through it"""

    def __init__(self):
        self.pool: Optional[asyncpg.Pool] = None

    @property
    def is_connected(self) -> bool:
        return self.pool is not None

    async def connect(self) -> None:
        logger.info(
            f"Connecting to PostgreSQL {settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}"
        )
        try:
            self.pool = await asyncpg.create_pool(
                host=settings.postgres_host,
                port=settings.postgres_port,
                database=settings.postgres_db,
                user=settings.postgres_user,
                password=settings.postgres_password,
                min_size=settings.postgres_min_connections,
                max_size=settings.postgres_max_connections,
                command_timeout=settings.postgres_command_timeout,
                timeout=settings.postgres_connect_timeout,
                init=_init_connection,
            )
        except asyncpg.exceptions.InvalidPasswordError as e:
            logger.error(f"PostgreSQL rejected the credentials for {settings.postgres_user}: {e}")
            raise
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"PostgreSQL connection failed: {e}")
            raise

        logger.info(
            f"PostgreSQL pool ready "
            f"({settings.postgres_min_connections}-{settings.postgres_max_connections} connections)"
        )

    async def disconnect(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None
            logger.info("PostgreSQL pool closed")

    async def ensure_schema(self) -> None:
        """Create the apps and app_data tables and indexes if missing"""
        async with self.transaction() as conn:
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)
        logger.info("Database schema ready")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        if self.pool is None:
            raise RuntimeError("Database not connected")
        async with self.pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Usage:
            async with db_manager.transaction() as conn:
                await conn.execute("DELETE FROM app_data WHERE app_id = $1", app_id)
                await conn.execute("DELETE FROM apps WHERE id = $1", app_id)
        """
        async with self.acquire() as conn:
            async with conn.transaction():
                yield conn

    async def execute(self, query: str, *args) -> int:
        """Run a command and return the number of rows it touched"""
        async with self.acquire() as conn:
            status = await conn.execute(query, *args)
        logger.debug(f"{status} <- {' '.join(query.split())[:80]}")
        return affected_rows(status)

    async def fetch_one(self, query: str, *args) -> Optional[Dict[str, Any]]:
        async with self.acquire() as conn:
            row = await conn.fetchrow(query, *args)
        return dict(row) if row else None

    async def fetch_all(self, query: str, *args) -> List[Dict[str, Any]]:
        async with self.acquire() as conn:
            rows = await conn.fetch(query, *args)
        return [dict(row) for row in rows]

    async def fetch_val(self, query: str, *args) -> Any:
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)


db_manager = DatabaseManager()
