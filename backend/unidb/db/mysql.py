"""MySQL client on an aiomysql connection pool.

One ``MySQLClient`` is created per ``mysql_connect`` call and held in the
session. Every operation acquires its own pooled connection and cursor.
Statement errors are reported inside the returned envelope
(``type == "error"``) rather than raised.
"""

import logging
import re
from typing import Any, Optional, Sequence, Tuple

import aiomysql
from pydantic import BaseModel
from pymysql.constants import CLIENT
from pymysql.err import MySQLError

from unidb.config import settings
from unidb.core.errors import (
    ConnectionFailedError,
    InvalidArgumentError,
    IterationError,
    MaterializationError,
)
from unidb.db.cursors import MySQLResultCursor
from unidb.db.results import (
    ExecResult,
    QueryResult,
    materialize_result_sets,
    materialize_single,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3306

_PROCEDURE_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)?")

SHOW_PROCEDURES_SQL = (
    "SELECT ROUTINE_NAME AS name, ROUTINE_TYPE AS type, CREATED AS created, "
    "LAST_ALTERED AS last_altered FROM INFORMATION_SCHEMA.ROUTINES "
    "WHERE ROUTINE_SCHEMA = %s"
)


class MySQLConfig(BaseModel):
    """Connection parameters for one MySQL session."""

    username: str
    password: str = ""
    addr: str
    database_name: str
    debug: bool = False
    max_open_conns: int = settings.mysql.max_open_conns
    max_idle_conns: int = settings.mysql.max_idle_conns
    conn_max_lifetime_hours: float = settings.mysql.conn_max_lifetime_hours

    def host_port(self) -> Tuple[str, int]:
        host, sep, port = self.addr.rpartition(":")
        if not sep:
            return self.addr, DEFAULT_PORT
        try:
            return host, int(port)
        except ValueError as e:
            raise InvalidArgumentError(f"invalid port in addr: {self.addr}") from e


def quote_identifier(name: str) -> str:
    """Backtick-quote an identifier, quoting each part of ``schema.name``."""
    return ".".join("`" + part.replace("`", "``") + "`" for part in name.split("."))


def _is_insert(sql: str) -> bool:
    return sql.strip().upper().startswith("INSERT")


def _bind(args: Optional[Sequence[Any]]):
    # pymysql interpolates only when args is not None
    return tuple(args) if args else None


class MySQLClient:
    """Pooled MySQL access with result-set materialization."""

    def __init__(self, pool: aiomysql.Pool, config: MySQLConfig) -> None:
        self._pool = pool
        self.config = config

    @classmethod
    async def connect(cls, config: MySQLConfig) -> "MySQLClient":
        """Create the pool and verify it with a ping.

        Raises:
            ConnectionFailedError: the pool could not be created or pinged
        """
        host, port = config.host_port()
        max_open = config.max_open_conns or settings.mysql.max_open_conns
        max_idle = config.max_idle_conns or settings.mysql.max_idle_conns
        lifetime = config.conn_max_lifetime_hours or settings.mysql.conn_max_lifetime_hours

        try:
            pool = await aiomysql.create_pool(
                host=host,
                port=port,
                user=config.username,
                password=config.password,
                db=config.database_name,
                minsize=min(max_idle, max_open),
                maxsize=max_open,
                pool_recycle=int(lifetime * 3600),
                autocommit=True,
                charset=settings.mysql.charset,
                connect_timeout=settings.mysql.connect_timeout,
                client_flag=CLIENT.MULTI_STATEMENTS,
                echo=config.debug,
            )
        except Exception as e:
            raise ConnectionFailedError(f"failed to connect to MySQL: {e}") from e

        client = cls(pool, config)
        try:
            await client.ping()
        except Exception as e:
            await client.close()
            raise ConnectionFailedError(f"failed to connect to MySQL: {e}") from e

        logger.info(f"MySQL pool created: {host}:{port}/{config.database_name} (max {max_open} connections)")
        return client

    async def ping(self) -> None:
        async with self._pool.acquire() as conn:
            await conn.ping(reconnect=False)

    async def close(self) -> None:
        self._pool.close()
        await self._pool.wait_closed()
        logger.info("MySQL pool closed")

    async def query(self, sql: str, args: Optional[Sequence[Any]] = None) -> QueryResult:
        """Run a row-returning statement and materialize its single result set."""
        async with self._pool.acquire() as conn:
            async with conn.cursor() as cur:
                try:
                    await cur.execute(sql, _bind(args))
                    rows = await materialize_single(MySQLResultCursor(cur))
                except (MySQLError, MaterializationError, IterationError) as e:
                    return QueryResult.error(str(e))
        return QueryResult.select(rows)

    async def exec(self, sql: str, args: Optional[Sequence[Any]] = None) -> ExecResult:
        """Run a modification. INSERTs also report the generated id."""
        if _is_insert(sql):
            return await self.exec_with_last_id(sql, args)

        async with self._pool.acquire() as conn:
            async with conn.cursor() as cur:
                try:
                    await cur.execute(sql, _bind(args))
                except MySQLError as e:
                    return ExecResult.error(str(e))
                return ExecResult(type="modification", rows_affected=max(cur.rowcount, 0))

    async def exec_with_last_id(self, sql: str, args: Optional[Sequence[Any]] = None) -> ExecResult:
        async with self._pool.acquire() as conn:
            async with conn.cursor() as cur:
                try:
                    await cur.execute(sql, _bind(args))
                except MySQLError as e:
                    return ExecResult.error(str(e))
                return ExecResult(
                    type="insert",
                    rows_affected=max(cur.rowcount, 0),
                    last_insert_id=cur.lastrowid,
                )

    async def call_procedure(self, name: str, args: Optional[Sequence[Any]] = None) -> QueryResult:
        """CALL a stored procedure and collect every result set it produces.

        Raises:
            InvalidArgumentError: the procedure name is not a plain identifier
        """
        if not _PROCEDURE_NAME_RE.fullmatch(name or ""):
            raise InvalidArgumentError(f"invalid procedure name: {name!r}")

        args = list(args or [])
        placeholders = ",".join(["%s"] * len(args))
        sql = f"CALL {name}({placeholders})"

        async with self._pool.acquire() as conn:
            async with conn.cursor() as cur:
                try:
                    await cur.execute(sql, _bind(args))
                    outcome = await materialize_result_sets(MySQLResultCursor(cur))
                except (MySQLError, MaterializationError, IterationError) as e:
                    return QueryResult.error(str(e))

        logger.debug(f"Procedure {name} returned {outcome.set_count} result set(s), {outcome.total_records} records")
        return QueryResult.procedure(outcome)

    async def _execute_ddl(self, sql: str, result_type: str, message: str) -> ExecResult:
        async with self._pool.acquire() as conn:
            async with conn.cursor() as cur:
                try:
                    await cur.execute(sql)
                except MySQLError as e:
                    return ExecResult.error(str(e))
        return ExecResult(type=result_type, message=message)

    async def create_procedure(self, procedure_sql: str) -> ExecResult:
        return await self._execute_ddl(procedure_sql, "create_procedure", "Procedure created successfully")

    async def drop_procedure(self, name: str) -> ExecResult:
        return await self._execute_ddl(
            f"DROP PROCEDURE IF EXISTS {quote_identifier(name)}",
            "drop_procedure",
            f"Procedure {name} dropped successfully",
        )

    async def show_procedures(self, database_name: str) -> QueryResult:
        return await self.query(SHOW_PROCEDURES_SQL, [database_name])

    async def create_table(self, create_sql: str) -> ExecResult:
        return await self._execute_ddl(create_sql, "create_table", "Table created successfully")

    async def alter_table(self, alter_sql: str) -> ExecResult:
        return await self._execute_ddl(alter_sql, "alter_table", "Table altered successfully")

    async def drop_table(self, table_name: str) -> ExecResult:
        return await self._execute_ddl(
            f"DROP TABLE IF EXISTS {quote_identifier(table_name)}",
            "drop_table",
            f"Table {table_name} dropped successfully",
        )

    async def show_tables(self) -> QueryResult:
        return await self.query("SHOW TABLES")

    async def describe_table(self, table_name: str) -> QueryResult:
        return await self.query(f"DESCRIBE {quote_identifier(table_name)}")

    async def show_create_table(self, table_name: str) -> QueryResult:
        return await self.query(f"SHOW CREATE TABLE {quote_identifier(table_name)}")
