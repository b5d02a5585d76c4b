"""
PostgreSQL Tools.

Unlike the MySQL tools, statement failures here fail the tool call.
"""

import asyncpg

from unidb.config import settings
from unidb.db.postgres import PostgresClient, PostgresConfig
from unidb.tools.base import SessionTool, ToolParameter, ToolResult, as_int, as_list

SQL_PARAM = ToolParameter(name="sql", description="SQL statement, with $1, $2, ... placeholders for args")
ARGS_PARAM = ToolParameter(
    name="args",
    description="Positional arguments bound to the placeholders",
    type="array",
    required=False,
)
SCHEMA_PARAM = ToolParameter(
    name="schema",
    description="Schema name",
    required=False,
    default="public",
)
TABLE_NAME_PARAM = ToolParameter(name="table_name", description="Table name")


class PgConnectTool(SessionTool):
    name = "pgsql_connect"
    description = "Connect to a PostgreSQL server. Replaces any existing PostgreSQL connection."
    parameters = [
        ToolParameter(name="host", description="Server host"),
        ToolParameter(name="port", description="Server port", type="integer", required=False, default=settings.postgres.port),
        ToolParameter(name="user", description="Database user"),
        ToolParameter(name="password", description="Database password"),
        ToolParameter(name="database", description="Database name"),
        ToolParameter(
            name="sslmode",
            description="SSL mode (disable, allow, prefer, require, verify-ca, verify-full)",
            required=False,
            default=settings.postgres.sslmode,
        ),
    ]

    async def execute(
        self,
        host: str,
        user: str,
        password: str,
        database: str,
        port=None,
        sslmode: str = None,
        **kwargs,
    ) -> ToolResult:
        config = PostgresConfig(
            host=host or "localhost",
            port=as_int(port, "port", settings.postgres.port),
            user=user,
            password=password,
            database=database,
            sslmode=sslmode or settings.postgres.sslmode,
        )
        client = await PostgresClient.connect(config)
        await self.sessions.set_postgres(client)

        return ToolResult.ok({
            "status": "success",
            "message": "PostgreSQL connection established",
            "config": config.public_view(),
        })


class PgQueryTool(SessionTool):
    name = "pgsql_query"
    description = "Run a SELECT and return columns, rows and row count."
    parameters = [SQL_PARAM, ARGS_PARAM]

    async def execute(self, sql: str, args=None, **kwargs) -> ToolResult:
        client = self.sessions.require_postgres()
        if not sql.strip():
            return ToolResult.fail("SQL statement must not be empty")
        try:
            result = await client.query(sql, as_list(args, "args"))
        except asyncpg.PostgresError as e:
            return ToolResult.fail(f"Query failed: {e}")
        return ToolResult.ok(result.model_dump())


class PgExecTool(SessionTool):
    name = "pgsql_exec"
    description = (
        "Run INSERT/UPDATE/DELETE/DDL and return rows_affected. "
        "INSERT ... RETURNING also reports last_insert_id."
    )
    parameters = [SQL_PARAM, ARGS_PARAM]

    async def execute(self, sql: str, args=None, **kwargs) -> ToolResult:
        client = self.sessions.require_postgres()
        if not sql.strip():
            return ToolResult.fail("SQL statement must not be empty")
        try:
            result = await client.exec_with_last_insert_id(sql, as_list(args, "args"))
        except asyncpg.PostgresError as e:
            return ToolResult.fail(f"Execution failed: {e}")
        return ToolResult.ok(result.model_dump(exclude_none=True))


class PgInfoTool(SessionTool):
    name = "pgsql_info"
    description = "Server version, current database and user, and connection settings."
    parameters = []

    async def execute(self, **kwargs) -> ToolResult:
        client = self.sessions.require_postgres()
        return ToolResult.ok(await client.info())


class PgListTablesTool(SessionTool):
    name = "pgsql_list_tables"
    description = "List tables of a schema."
    parameters = [SCHEMA_PARAM]

    async def execute(self, schema: str = "public", **kwargs) -> ToolResult:
        client = self.sessions.require_postgres()
        result = await client.list_tables(schema or "public")
        return ToolResult.ok(result.model_dump())


class PgListColumnsTool(SessionTool):
    name = "pgsql_list_columns"
    description = "List columns of a table."
    parameters = [TABLE_NAME_PARAM, SCHEMA_PARAM]

    async def execute(self, table_name: str, schema: str = "public", **kwargs) -> ToolResult:
        client = self.sessions.require_postgres()
        result = await client.list_columns(table_name, schema or "public")
        return ToolResult.ok(result.model_dump())


class PgListIndexesTool(SessionTool):
    name = "pgsql_list_indexes"
    description = "List indexes of a table."
    parameters = [TABLE_NAME_PARAM, SCHEMA_PARAM]

    async def execute(self, table_name: str, schema: str = "public", **kwargs) -> ToolResult:
        client = self.sessions.require_postgres()
        result = await client.list_indexes(table_name, schema or "public")
        return ToolResult.ok(result.model_dump())


class PgListSchemasTool(SessionTool):
    name = "pgsql_list_schemas"
    description = "List user schemas of the database."
    parameters = []

    async def execute(self, **kwargs) -> ToolResult:
        client = self.sessions.require_postgres()
        result = await client.list_schemas()
        return ToolResult.ok(result.model_dump())


POSTGRES_TOOLS = [
    PgConnectTool,
    PgQueryTool,
    PgExecTool,
    PgInfoTool,
    PgListTablesTool,
    PgListColumnsTool,
    PgListIndexesTool,
    PgListSchemasTool,
]
