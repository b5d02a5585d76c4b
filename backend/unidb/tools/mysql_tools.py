"""
MySQL Tools.

Connection management, queries, modifications, stored procedures and DDL.
Statement failures come back inside the JSON envelope
(``{"type": "error", "success": false, ...}``); a missing connection or a
bad argument fails the tool call itself.
"""

from unidb.config import settings
from unidb.db.mysql import MySQLClient, MySQLConfig
from unidb.tools.base import SessionTool, ToolParameter, ToolResult, as_int, as_list

SQL_PARAM = ToolParameter(name="sql", description="SQL statement, with %s placeholders for args")
ARGS_PARAM = ToolParameter(
    name="args",
    description="Positional arguments bound to the placeholders",
    type="array",
    required=False,
)
TABLE_NAME_PARAM = ToolParameter(name="table_name", description="Table name")


class MySQLConnectTool(SessionTool):
    name = "mysql_connect"
    description = "Connect to a MySQL database. Replaces any existing MySQL connection."
    parameters = [
        ToolParameter(name="username", description="Database user"),
        ToolParameter(name="password", description="Database password"),
        ToolParameter(name="addr", description="Server address as host:port, e.g. 127.0.0.1:3306"),
        ToolParameter(name="database_name", description="Database (schema) to use"),
        ToolParameter(name="debug", description="Echo executed SQL to the log", type="boolean", required=False, default=False),
        ToolParameter(
            name="max_open_conns",
            description="Maximum pooled connections",
            type="integer",
            required=False,
            default=settings.mysql.max_open_conns,
        ),
        ToolParameter(
            name="max_idle_conns",
            description="Connections kept open while idle",
            type="integer",
            required=False,
            default=settings.mysql.max_idle_conns,
        ),
        ToolParameter(
            name="conn_max_lifetime_hours",
            description="Recycle connections older than this many hours",
            type="number",
            required=False,
            default=settings.mysql.conn_max_lifetime_hours,
        ),
    ]

    async def execute(
        self,
        username: str,
        password: str,
        addr: str,
        database_name: str,
        debug: bool = False,
        max_open_conns=None,
        max_idle_conns=None,
        conn_max_lifetime_hours=None,
        **kwargs,
    ) -> ToolResult:
        config = MySQLConfig(
            username=username,
            password=password,
            addr=addr,
            database_name=database_name,
            debug=bool(debug),
            max_open_conns=as_int(max_open_conns, "max_open_conns", settings.mysql.max_open_conns),
            max_idle_conns=as_int(max_idle_conns, "max_idle_conns", settings.mysql.max_idle_conns),
            conn_max_lifetime_hours=float(conn_max_lifetime_hours or settings.mysql.conn_max_lifetime_hours),
        )
        client = await MySQLClient.connect(config)
        await self.sessions.set_mysql(client)

        return ToolResult.ok({
            "type": "connection",
            "success": True,
            "message": f"Successfully connected to MySQL database '{database_name}' at {addr}",
        })


class MySQLQueryTool(SessionTool):
    name = "mysql_query"
    description = "Run a SELECT (or any row-returning statement) and return the rows."
    parameters = [SQL_PARAM, ARGS_PARAM]

    async def execute(self, sql: str, args=None, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.query(sql, as_list(args, "args")))


class MySQLExecTool(SessionTool):
    name = "mysql_exec"
    description = "Run INSERT/UPDATE/DELETE. INSERT reports last_insert_id, others report rows_affected."
    parameters = [SQL_PARAM, ARGS_PARAM]

    async def execute(self, sql: str, args=None, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.exec(sql, as_list(args, "args")))


class MySQLExecGetIdTool(SessionTool):
    name = "mysql_exec_get_id"
    description = "Run an INSERT and return the generated id."
    parameters = [SQL_PARAM, ARGS_PARAM]

    async def execute(self, sql: str, args=None, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.exec_with_last_id(sql, as_list(args, "args")))


class MySQLCallProcedureTool(SessionTool):
    name = "mysql_call_procedure"
    description = (
        "Call a stored procedure. A single result set comes back under 'data', "
        "several under 'result_sets'; 'count' is the number of result sets."
    )
    parameters = [
        ToolParameter(name="procedure_name", description="Procedure name, optionally schema-qualified"),
        ToolParameter(name="args", description="Procedure arguments", type="array", required=False),
    ]

    async def execute(self, procedure_name: str, args=None, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.call_procedure(procedure_name, as_list(args, "args")))


class MySQLCreateProcedureTool(SessionTool):
    name = "mysql_create_procedure"
    description = "Create a stored procedure from a full CREATE PROCEDURE statement."
    parameters = [ToolParameter(name="procedure_sql", description="CREATE PROCEDURE statement")]

    async def execute(self, procedure_sql: str, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.create_procedure(procedure_sql))


class MySQLDropProcedureTool(SessionTool):
    name = "mysql_drop_procedure"
    description = "Drop a stored procedure if it exists."
    parameters = [ToolParameter(name="procedure_name", description="Procedure name")]

    async def execute(self, procedure_name: str, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.drop_procedure(procedure_name))


class MySQLShowProceduresTool(SessionTool):
    name = "mysql_show_procedures"
    description = "List stored routines of a database."
    parameters = [ToolParameter(name="database_name", description="Database (schema) name")]

    async def execute(self, database_name: str, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.show_procedures(database_name))


class MySQLCreateTableTool(SessionTool):
    name = "mysql_create_table"
    description = "Create a table from a CREATE TABLE statement."
    parameters = [ToolParameter(name="create_sql", description="CREATE TABLE statement")]

    async def execute(self, create_sql: str, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.create_table(create_sql))


class MySQLAlterTableTool(SessionTool):
    name = "mysql_alter_table"
    description = "Change a table with an ALTER TABLE statement."
    parameters = [ToolParameter(name="alter_sql", description="ALTER TABLE statement")]

    async def execute(self, alter_sql: str, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.alter_table(alter_sql))


class MySQLDropTableTool(SessionTool):
    name = "mysql_drop_table"
    description = "Drop a table if it exists."
    parameters = [TABLE_NAME_PARAM]

    async def execute(self, table_name: str, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.drop_table(table_name))


class MySQLShowTablesTool(SessionTool):
    name = "mysql_show_tables"
    description = "List tables of the current database."
    parameters = []

    async def execute(self, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.show_tables())


class MySQLDescribeTableTool(SessionTool):
    name = "mysql_describe_table"
    description = "Show the column layout of a table."
    parameters = [TABLE_NAME_PARAM]

    async def execute(self, table_name: str, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.describe_table(table_name))


class MySQLShowCreateTableTool(SessionTool):
    name = "mysql_show_create_table"
    description = "Show the CREATE TABLE statement of a table."
    parameters = [TABLE_NAME_PARAM]

    async def execute(self, table_name: str, **kwargs) -> ToolResult:
        client = self.sessions.require_mysql()
        return ToolResult.ok(await client.show_create_table(table_name))


MYSQL_TOOLS = [
    MySQLConnectTool,
    MySQLQueryTool,
    MySQLExecTool,
    MySQLExecGetIdTool,
    MySQLCallProcedureTool,
    MySQLCreateProcedureTool,
    MySQLDropProcedureTool,
    MySQLShowProceduresTool,
    MySQLCreateTableTool,
    MySQLAlterTableTool,
    MySQLDropTableTool,
    MySQLShowTablesTool,
    MySQLDescribeTableTool,
    MySQLShowCreateTableTool,
]
