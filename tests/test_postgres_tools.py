"""Tests for the PostgreSQL client and tools."""

import json

import asyncpg
import pytest
from unittest.mock import AsyncMock, patch

from unidb.core.errors import NotConnectedError
from unidb.db.postgres import (
    PostgresClient,
    PostgresConfig,
    is_insert_returning,
    rows_affected_from_status,
)
from unidb.tools.postgres_tools import (
    PgConnectTool,
    PgExecTool,
    PgInfoTool,
    PgListColumnsTool,
    PgListTablesTool,
    PgQueryTool,
)

from fakes import FakePgConnection, FakePgPool


def make_client(conn: FakePgConnection) -> PostgresClient:
    config = PostgresConfig(host="db", user="app", password="secret", database="shop")
    return PostgresClient(FakePgPool(conn), config)


class TestHelpers:
    """Tests for the status and statement helpers."""

    @pytest.mark.parametrize(
        "status,expected",
        [("UPDATE 3", 3), ("INSERT 0 1", 1), ("DELETE 0", 0), ("CREATE TABLE", 0), ("", 0)],
    )
    def test_rows_affected_from_status(self, status, expected):
        assert rows_affected_from_status(status) == expected

    def test_insert_returning(self):
        assert is_insert_returning("insert into t (a) values (1) returning id")
        assert not is_insert_returning("INSERT INTO t (a) VALUES (1)")
        assert not is_insert_returning("UPDATE t SET a = 1 RETURNING id")

    def test_public_view_hides_password(self):
        config = PostgresConfig(host="db", user="app", password="secret", database="shop")

        view = config.public_view()

        assert "password" not in view
        assert view == {"host": "db", "port": 5432, "user": "app", "database": "shop", "sslmode": "disable"}


class TestPostgresClient:
    """Tests for PostgresClient against a fake pool."""

    @pytest.mark.asyncio
    async def test_query(self):
        conn = FakePgConnection(columns=["id", "price"], records=[(1, 9.5), (2, None)])

        result = await make_client(conn).query("SELECT id, price FROM items WHERE id > $1", [0])

        assert result.model_dump() == {
            "columns": ["id", "price"],
            "rows": [{"id": 1, "price": 9.5}, {"id": 2, "price": None}],
            "count": 2,
        }
        assert conn.statement.args == (0,)

    @pytest.mark.asyncio
    async def test_exec(self):
        conn = FakePgConnection(status="UPDATE 4")

        result = await make_client(conn).exec("UPDATE items SET price = $1", [1])

        assert result.model_dump(exclude_none=True) == {"rows_affected": 4, "message": "ok"}
        assert conn.executed == [("UPDATE items SET price = $1", (1,))]

    @pytest.mark.asyncio
    async def test_exec_insert_returning(self):
        conn = FakePgConnection(fetchval_result=42)

        result = await make_client(conn).exec_with_last_insert_id("INSERT INTO items (name) VALUES ($1) RETURNING id", ["a"])

        assert result.model_dump(exclude_none=True) == {"rows_affected": 1, "last_insert_id": 42, "message": "ok"}

    @pytest.mark.asyncio
    async def test_exec_with_last_insert_id_falls_back(self):
        conn = FakePgConnection(status="INSERT 0 2")

        result = await make_client(conn).exec_with_last_insert_id("INSERT INTO items (name) VALUES ('a'), ('b')")

        assert result.rows_affected == 2
        assert result.last_insert_id is None

    @pytest.mark.asyncio
    async def test_info(self):
        answers = {
            "SELECT version()": "PostgreSQL 16.1",
            "SELECT current_database()": "shop",
            "SELECT current_user": "app",
        }
        conn = FakePgConnection(fetchval_result=lambda sql: answers[sql])

        info = await make_client(conn).info()

        assert info["version"] == "PostgreSQL 16.1"
        assert info["current_database"] == "shop"
        assert info["current_user"] == "app"
        assert "password" not in info["config"]

    @pytest.mark.asyncio
    async def test_list_tables_defaults_to_public(self):
        conn = FakePgConnection(columns=["table_name"], records=[("items",)])

        result = await make_client(conn).list_tables("")

        assert conn.statement.args == ("public",)
        assert result.rows == [{"table_name": "items"}]


class TestPostgresTools:
    """Tests for the PostgreSQL tools."""

    @pytest.mark.asyncio
    async def test_requires_connection(self, sessions):
        with pytest.raises(NotConnectedError, match="pgsql_connect"):
            await PgQueryTool(sessions).execute(sql="SELECT 1")

    @pytest.mark.asyncio
    async def test_connect_output_has_no_password(self, sessions):
        client = make_client(FakePgConnection())

        with patch("unidb.tools.postgres_tools.PostgresClient.connect", AsyncMock(return_value=client)):
            result = await PgConnectTool(sessions).execute(
                host="db", user="app", password="secret", database="shop"
            )

        payload = json.loads(result.text)
        assert payload["status"] == "success"
        assert payload["config"] == {"host": "db", "port": 5432, "user": "app", "database": "shop", "sslmode": "disable"}
        assert "secret" not in result.text
        assert sessions.postgres is client

    @pytest.mark.asyncio
    async def test_query_tool(self, sessions):
        sessions.postgres = make_client(FakePgConnection(columns=["n"], records=[(1,)]))

        result = await PgQueryTool(sessions).execute(sql="SELECT 1 AS n")

        assert json.loads(result.text) == {"columns": ["n"], "rows": [{"n": 1}], "count": 1}

    @pytest.mark.asyncio
    async def test_query_tool_rejects_empty_sql(self, sessions):
        sessions.postgres = make_client(FakePgConnection())

        result = await PgQueryTool(sessions).execute(sql="   ")

        assert result.success is False

    @pytest.mark.asyncio
    async def test_query_tool_reports_server_error(self, sessions):
        error = asyncpg.exceptions.UndefinedTableError('relation "nope" does not exist')
        sessions.postgres = make_client(FakePgConnection(error=error))

        result = await PgQueryTool(sessions).execute(sql="SELECT * FROM nope")

        assert result.success is False
        assert result.error.startswith("Query failed:")

    @pytest.mark.asyncio
    async def test_exec_tool_insert_returning(self, sessions):
        sessions.postgres = make_client(FakePgConnection(fetchval_result=7))

        result = await PgExecTool(sessions).execute(sql="INSERT INTO t (a) VALUES (1) RETURNING id")

        assert json.loads(result.text) == {"rows_affected": 1, "last_insert_id": 7, "message": "ok"}

    @pytest.mark.asyncio
    async def test_info_tool(self, sessions):
        sessions.postgres = make_client(FakePgConnection(fetchval_result="x"))

        result = await PgInfoTool(sessions).execute()

        assert json.loads(result.text)["config"]["database"] == "shop"

    @pytest.mark.asyncio
    async def test_list_columns_tool_passes_schema(self, sessions):
        conn = FakePgConnection(columns=["column_name"], records=[("id",)])
        sessions.postgres = make_client(conn)

        await PgListColumnsTool(sessions).execute(table_name="items", schema="sales")

        assert conn.statement.args == ("items", "sales")

    @pytest.mark.asyncio
    async def test_list_tables_tool(self, sessions):
        sessions.postgres = make_client(FakePgConnection(columns=["table_name"], records=[("a",), ("b",)]))

        result = await PgListTablesTool(sessions).execute()

        assert json.loads(result.text)["count"] == 2
