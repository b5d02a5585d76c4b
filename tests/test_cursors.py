"""Tests for the driver cursor adapters."""

import pytest

from unidb.db.cursors import MySQLResultCursor, PostgresResultCursor, SQLiteResultCursor
from unidb.db.results import materialize_result_sets, walk_result_sets

from fakes import FakeMySQLCursor, FakePgConnection


class TestMySQLResultCursor:
    """Tests for the aiomysql adapter."""

    @pytest.mark.asyncio
    async def test_procedure_with_two_selects_yields_two_sets(self):
        # Two SELECTs followed by the status-only result of the CALL itself
        raw = FakeMySQLCursor([
            (["id"], [(1,), (2,)]),
            (["name"], [(b"alice",)]),
            (None, []),
        ])

        result_sets = await walk_result_sets(MySQLResultCursor(raw))

        assert result_sets == [[{"id": 1}, {"id": 2}], [{"name": "alice"}]]

    @pytest.mark.asyncio
    async def test_side_effect_only_call_is_one_empty_set(self):
        raw = FakeMySQLCursor([(None, [])])

        outcome = await materialize_result_sets(MySQLResultCursor(raw))

        assert outcome.data == []
        assert outcome.set_count == 1
        assert outcome.summary == "Successfully executed procedure with 1 result set. Total records: 0"

    @pytest.mark.asyncio
    async def test_columns_from_description(self):
        cursor = MySQLResultCursor(FakeMySQLCursor([(["a", "b"], [])]))

        assert await cursor.columns() == ["a", "b"]

    @pytest.mark.asyncio
    async def test_close_closes_driver_cursor(self):
        raw = FakeMySQLCursor()
        await MySQLResultCursor(raw).close()

        assert raw.closed


class TestPostgresResultCursor:
    """Tests for the asyncpg adapter."""

    @pytest.mark.asyncio
    async def test_open_prepares_and_binds(self):
        conn = FakePgConnection(columns=["id", "name"], records=[(1, "a"), (2, "b")])

        cursor = await PostgresResultCursor.open(conn, "SELECT id, name FROM t WHERE id > $1", [0])

        assert conn.prepared == ["SELECT id, name FROM t WHERE id > $1"]
        assert conn.statement.args == (0,)
        assert await cursor.columns() == ["id", "name"]
        assert await cursor.fetch_row() == (1, "a")
        assert await cursor.fetch_row() == (2, "b")
        assert await cursor.fetch_row() is None
        assert await cursor.next_result_set() is False


class _FakeSQLiteCursor:
    def __init__(self, description, rows):
        self.description = description
        self._rows = list(rows)
        self.closed = False

    async def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    async def close(self):
        self.closed = True


class TestSQLiteResultCursor:
    """Tests for the aiosqlite adapter."""

    @pytest.mark.asyncio
    async def test_rows_and_columns(self):
        raw = _FakeSQLiteCursor((("x", None, None, None, None, None, None),), [(1,), (2,)])
        cursor = SQLiteResultCursor(raw)

        assert await cursor.columns() == ["x"]
        assert await cursor.fetch_row() == (1,)
        assert await cursor.fetch_row() == (2,)
        assert await cursor.fetch_row() is None

    @pytest.mark.asyncio
    async def test_statement_without_rows(self):
        cursor = SQLiteResultCursor(_FakeSQLiteCursor(None, []))

        assert await cursor.columns() == []
        assert await cursor.fetch_row() is None
