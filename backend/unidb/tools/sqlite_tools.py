"""
SQLite Tools.

SQLite needs no session: each call opens the database file, runs one
statement and closes it.
"""

import sqlite3

from unidb.db.sqlite import run_sqlite_query
from unidb.tools.base import SessionTool, ToolParameter, ToolResult


class SQLiteQueryTool(SessionTool):
    name = "sqlite_query"
    description = "Execute a SQL statement on a SQLite database file (SELECT or INSERT/UPDATE/DELETE)."
    parameters = [
        ToolParameter(name="db_path", description="Path to the SQLite database file"),
        ToolParameter(name="sql", description="SQL statement to execute"),
    ]

    async def execute(self, db_path: str, sql: str, **kwargs) -> ToolResult:
        try:
            result = await run_sqlite_query(db_path, sql)
        except sqlite3.Error as e:
            return ToolResult.fail(f"Query execution failed: {e}")
        return ToolResult.ok(result)


SQLITE_TOOLS = [SQLiteQueryTool]
