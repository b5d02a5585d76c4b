"""
Tests for the MySQL client and tools.

The aiomysql pool is replaced with an in-memory fake, so these tests check
SQL construction, envelopes and error reporting without a server.
"""

import json

import pytest
from pymysql.err import OperationalError, ProgrammingError
from unittest.mock import AsyncMock, patch

from unidb.core.errors import InvalidArgumentError, NotConnectedError
from unidb.db.mysql import MySQLClient, MySQLConfig, quote_identifier
from unidb.tools.mysql_tools import (
    MySQLCallProcedureTool,
    MySQLConnectTool,
    MySQLDropTableTool,
    MySQLExecTool,
    MySQLQueryTool,
    MySQLShowProceduresTool,
)
from unidb.tools.registry import ToolRegistry

from fakes import FakeMySQLCursor, FakeMySQLPool


def make_client(cursor: FakeMySQLCursor) -> MySQLClient:
    config = MySQLConfig(username="root", password="pw", addr="127.0.0.1:3306", database_name="app")
    return MySQLClient(FakeMySQLPool(cursor), config)


class TestMySQLConfig:
    """Tests for MySQLConfig."""

    def test_defaults(self):
        config = MySQLConfig(username="u", addr="db:3307", database_name="d")

        assert config.max_open_conns == 5
        assert config.max_idle_conns == 2
        assert config.conn_max_lifetime_hours == 4.0
        assert config.host_port() == ("db", 3307)

    def test_addr_without_port(self):
        config = MySQLConfig(username="u", addr="db", database_name="d")

        assert config.host_port() == ("db", 3306)

    def test_bad_port(self):
        config = MySQLConfig(username="u", addr="db:abc", database_name="d")

        with pytest.raises(InvalidArgumentError):
            config.host_port()

    def test_quote_identifier(self):
        assert quote_identifier("users") == "`users`"
        assert quote_identifier("shop.orders") == "`shop`.`orders`"
        assert quote_identifier("we`ird") == "`we``ird`"


class TestMySQLClient:
    """Tests for MySQLClient against a fake pool."""

    @pytest.mark.asyncio
    async def test_query(self):
        cursor = FakeMySQLCursor([(["id", "name"], [(1, b"a")])])
        client = make_client(cursor)

        result = await client.query("SELECT id, name FROM users WHERE id = %s", [1])

        assert result.model_dump(exclude_none=True) == {
            "type": "select",
            "data": [{"id": 1, "name": "a"}],
            "count": 1,
            "success": True,
        }
        assert cursor.executed == [("SELECT id, name FROM users WHERE id = %s", (1,))]
        assert cursor.closed

    @pytest.mark.asyncio
    async def test_query_without_args_skips_interpolation(self):
        cursor = FakeMySQLCursor([(["n"], [])])

        await make_client(cursor).query("SELECT 1 FROM t WHERE name LIKE 'a%'")

        assert cursor.executed[0][1] is None

    @pytest.mark.asyncio
    async def test_statement_error_is_reported_in_envelope(self):
        cursor = FakeMySQLCursor(error=ProgrammingError(1064, "syntax error"))

        result = await make_client(cursor).query("SELEC 1")

        assert result.type == "error"
        assert result.success is False
        assert "syntax error" in result.message
        assert cursor.closed

    @pytest.mark.asyncio
    async def test_exec_insert_reports_last_id(self):
        cursor = FakeMySQLCursor(rowcount=1, lastrowid=17)

        result = await make_client(cursor).exec("  insert into t (a) values (%s)", ["x"])

        assert result.type == "insert"
        assert result.last_insert_id == 17
        assert result.rows_affected == 1

    @pytest.mark.asyncio
    async def test_exec_update_reports_rows_affected(self):
        cursor = FakeMySQLCursor(rowcount=3)

        result = await make_client(cursor).exec("UPDATE t SET a = 1")

        assert result.model_dump(exclude_none=True) == {
            "type": "modification",
            "success": True,
            "rows_affected": 3,
        }

    @pytest.mark.asyncio
    async def test_call_procedure_single_set(self):
        cursor = FakeMySQLCursor([(["id"], [(1,), (2,)]), (None, [])])

        result = await make_client(cursor).call_procedure("get_users", [10, "x"])

        assert cursor.executed == [("CALL get_users(%s,%s)", (10, "x"))]
        payload = result.model_dump(exclude_none=True)
        assert payload["type"] == "procedure"
        assert payload["data"] == [{"id": 1}, {"id": 2}]
        assert payload["count"] == 1
        assert "result_sets" not in payload
        assert payload["message"] == "Successfully executed procedure with 1 result set. Total records: 2"

    @pytest.mark.asyncio
    async def test_call_procedure_multiple_sets(self):
        cursor = FakeMySQLCursor([
            (["id"], [(1,)]),
            (["total"], [(5,)]),
            (None, []),
        ])

        result = await make_client(cursor).call_procedure("report")

        payload = result.model_dump(exclude_none=True)
        assert cursor.executed == [("CALL report()", None)]
        assert payload["result_sets"] == [[{"id": 1}], [{"total": 5}]]
        assert payload["count"] == 2
        assert "data" not in payload
        assert payload["message"] == "Successfully executed procedure with 2 result sets. Total records: 2"

    @pytest.mark.asyncio
    async def test_call_procedure_rejects_injected_name(self):
        client = make_client(FakeMySQLCursor())

        with pytest.raises(InvalidArgumentError):
            await client.call_procedure("p(); DROP TABLE users; --")

    @pytest.mark.asyncio
    async def test_drop_table_quotes_name(self):
        cursor = FakeMySQLCursor()

        result = await make_client(cursor).drop_table("old`table")

        assert cursor.executed == [("DROP TABLE IF EXISTS `old``table`", None)]
        assert result.type == "drop_table"
        assert result.message == "Table old`table dropped successfully"

    @pytest.mark.asyncio
    async def test_create_procedure_error(self):
        cursor = FakeMySQLCursor(error=OperationalError(1304, "PROCEDURE p already exists"))

        result = await make_client(cursor).create_procedure("CREATE PROCEDURE p() SELECT 1")

        assert result.model_dump(exclude_none=True) == {
            "type": "error",
            "success": False,
            "message": str(OperationalError(1304, "PROCEDURE p already exists")),
        }

    @pytest.mark.asyncio
    async def test_close_closes_pool(self):
        client = make_client(FakeMySQLCursor())

        await client.close()

        assert client._pool.closed


class TestMySQLTools:
    """Tests for the MySQL tools."""

    @pytest.mark.asyncio
    async def test_tools_require_connection(self, sessions):
        with pytest.raises(NotConnectedError, match="mysql_connect"):
            await MySQLQueryTool(sessions).execute(sql="SELECT 1")

    @pytest.mark.asyncio
    async def test_registry_reports_not_connected(self, sessions):
        registry = ToolRegistry()
        registry.register(MySQLQueryTool(sessions))

        result = await registry.execute("mysql_query", sql="SELECT 1")

        assert result.success is False
        assert "not connected" in result.error

    @pytest.mark.asyncio
    async def test_connect_stores_client_and_closes_previous(self, sessions):
        previous = make_client(FakeMySQLCursor())
        sessions.mysql = previous
        new_client = make_client(FakeMySQLCursor())

        with patch("unidb.tools.mysql_tools.MySQLClient.connect", AsyncMock(return_value=new_client)) as connect:
            result = await MySQLConnectTool(sessions).execute(
                username="root",
                password="pw",
                addr="127.0.0.1:3306",
                database_name="app",
                max_open_conns=10.0,
            )

        config = connect.call_args.args[0]
        assert config.max_open_conns == 10
        assert config.max_idle_conns == 2
        assert sessions.mysql is new_client
        assert previous._pool.closed
        assert json.loads(result.text) == {
            "type": "connection",
            "success": True,
            "message": "Successfully connected to MySQL database 'app' at 127.0.0.1:3306",
        }

    @pytest.mark.asyncio
    async def test_query_tool_output(self, sessions):
        sessions.mysql = make_client(FakeMySQLCursor([(["id"], [(7,)])]))

        result = await MySQLQueryTool(sessions).execute(sql="SELECT id FROM t", args=[])

        assert json.loads(result.text) == {"type": "select", "data": [{"id": 7}], "count": 1, "success": True}

    @pytest.mark.asyncio
    async def test_exec_tool_rejects_non_array_args(self, sessions):
        sessions.mysql = make_client(FakeMySQLCursor())

        with pytest.raises(InvalidArgumentError):
            await MySQLExecTool(sessions).execute(sql="UPDATE t SET a = 1", args="oops")

    @pytest.mark.asyncio
    async def test_call_procedure_tool(self, sessions):
        sessions.mysql = make_client(FakeMySQLCursor([(["a"], [(1,)]), (["b"], [(2,)]), (None, [])]))

        result = await MySQLCallProcedureTool(sessions).execute(procedure_name="two_sets", args=[])

        payload = json.loads(result.text)
        assert payload["count"] == 2
        assert payload["result_sets"] == [[{"a": 1}], [{"b": 2}]]

    @pytest.mark.asyncio
    async def test_show_procedures_binds_database(self, sessions):
        cursor = FakeMySQLCursor([(["name", "type"], [(b"p1", b"PROCEDURE")])])
        sessions.mysql = make_client(cursor)

        result = await MySQLShowProceduresTool(sessions).execute(database_name="app")

        assert cursor.executed[0][1] == ("app",)
        assert "INFORMATION_SCHEMA.ROUTINES" in cursor.executed[0][0]
        assert json.loads(result.text)["data"] == [{"name": "p1", "type": "PROCEDURE"}]

    @pytest.mark.asyncio
    async def test_drop_table_tool(self, sessions):
        sessions.mysql = make_client(FakeMySQLCursor())

        result = await MySQLDropTableTool(sessions).execute(table_name="t")

        assert json.loads(result.text) == {
            "type": "drop_table",
            "success": True,
            "message": "Table t dropped successfully",
        }
