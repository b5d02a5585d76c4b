"""PostgreSQL client on an asyncpg pool."""

import logging
from typing import Any, Dict, Optional, Sequence

import asyncpg
from pydantic import BaseModel

from unidb.config import settings
from unidb.core.errors import ConnectionFailedError
from unidb.db.cursors import PostgresResultCursor
from unidb.db.results import ColumnarResult, coerce_value, materialize

logger = logging.getLogger(__name__)

LIST_TABLES_SQL = """
    SELECT table_name, table_type, table_schema
    FROM information_schema.tables
    WHERE table_schema = $1
    ORDER BY table_name
"""

LIST_COLUMNS_SQL = """
    SELECT
        column_name,
        data_type,
        is_nullable,
        column_default,
        character_maximum_length,
        numeric_precision,
        numeric_scale
    FROM information_schema.columns
    WHERE table_name = $1 AND table_schema = $2
    ORDER BY ordinal_position
"""

LIST_INDEXES_SQL = """
    SELECT
        i.indexname AS index_name,
        i.indexdef AS index_definition,
        'INDEX' AS index_type
    FROM pg_indexes i
    WHERE i.tablename = $1 AND i.schemaname = $2
    ORDER BY i.indexname
"""

LIST_SCHEMAS_SQL = """
    SELECT schema_name
    FROM information_schema.schemata
    WHERE schema_name NOT IN ('information_schema', 'pg_catalog', 'pg_toast')
    ORDER BY schema_name
"""


class PostgresConfig(BaseModel):
    """Connection parameters for one PostgreSQL session."""

    host: str = "localhost"
    port: int = settings.postgres.port
    user: str = ""
    password: str = ""
    database: str = ""
    sslmode: str = settings.postgres.sslmode

    def public_view(self) -> Dict[str, Any]:
        """Connection details safe to echo back (no password)."""
        return self.model_dump(exclude={"password"})


class PgExecResult(BaseModel):
    rows_affected: int
    last_insert_id: Optional[Any] = None
    message: str = "ok"


def rows_affected_from_status(status: str) -> int:
    """Row count from a command tag such as ``UPDATE 3`` or ``INSERT 0 1``."""
    parts = (status or "").split()
    if parts and parts[-1].isdigit():
        return int(parts[-1])
    return 0


def is_insert_returning(sql: str) -> bool:
    upper = sql.strip().upper()
    return upper.startswith("INSERT") and "RETURNING" in upper


class PostgresClient:
    """Pooled PostgreSQL access."""

    def __init__(self, pool: asyncpg.Pool, config: PostgresConfig) -> None:
        self._pool = pool
        self.config = config

    @classmethod
    async def connect(cls, config: PostgresConfig) -> "PostgresClient":
        """Create the pool and verify it with a ping.

        Raises:
            ConnectionFailedError: the pool could not be created or pinged
        """
        try:
            pool = await asyncpg.create_pool(
                host=config.host,
                port=config.port,
                user=config.user,
                password=config.password,
                database=config.database,
                ssl=config.sslmode,
                min_size=settings.postgres.pool_min_size,
                max_size=settings.postgres.pool_max_size,
                command_timeout=settings.postgres.command_timeout,
            )
        except Exception as e:
            raise ConnectionFailedError(f"PostgreSQL connection failed: {e}") from e

        client = cls(pool, config)
        try:
            await client.ping()
        except Exception as e:
            await client.close()
            raise ConnectionFailedError(f"PostgreSQL connection test failed: {e}") from e

        logger.info(f"PostgreSQL pool created: {config.host}:{config.port}/{config.database}")
        return client

    async def ping(self) -> None:
        async with self._pool.acquire() as conn:
            await conn.fetchval("SELECT 1")

    async def close(self) -> None:
        await self._pool.close()
        logger.info("PostgreSQL pool closed")

    async def info(self) -> Dict[str, Any]:
        async with self._pool.acquire() as conn:
            version = await conn.fetchval("SELECT version()")
            database = await conn.fetchval("SELECT current_database()")
            user = await conn.fetchval("SELECT current_user")
        return {
            "version": version,
            "current_database": database,
            "current_user": user,
            "config": self.config.public_view(),
        }

    async def query(self, sql: str, args: Sequence[Any] = ()) -> ColumnarResult:
        """Prepare, run and materialize a row-returning statement."""
        async with self._pool.acquire() as conn:
            cursor = await PostgresResultCursor.open(conn, sql, args)
            columns = await cursor.columns()
            rows = await materialize(cursor, columns)
        return ColumnarResult(columns=columns, rows=rows, count=len(rows))

    async def exec(self, sql: str, args: Sequence[Any] = ()) -> PgExecResult:
        async with self._pool.acquire() as conn:
            status = await conn.execute(sql, *args)
        return PgExecResult(rows_affected=rows_affected_from_status(status))

    async def exec_with_last_insert_id(self, sql: str, args: Sequence[Any] = ()) -> PgExecResult:
        """Run ``INSERT ... RETURNING`` and report the first returned value.

        Other statements fall back to :meth:`exec`.
        """
        if not is_insert_returning(sql):
            return await self.exec(sql, args)

        async with self._pool.acquire() as conn:
            value = await conn.fetchval(sql, *args)
        return PgExecResult(rows_affected=1, last_insert_id=coerce_value(value))

    async def list_tables(self, schema: str = "public") -> ColumnarResult:
        return await self.query(LIST_TABLES_SQL, [schema or "public"])

    async def list_columns(self, table_name: str, schema: str = "public") -> ColumnarResult:
        return await self.query(LIST_COLUMNS_SQL, [table_name, schema or "public"])

    async def list_indexes(self, table_name: str, schema: str = "public") -> ColumnarResult:
        return await self.query(LIST_INDEXES_SQL, [table_name, schema or "public"])

    async def list_schemas(self) -> ColumnarResult:
        return await self.query(LIST_SCHEMAS_SQL)
