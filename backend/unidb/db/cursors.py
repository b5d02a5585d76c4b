"""Cursor adapters.

The materialization layer talks to one small async interface,
``ResultCursor``. Each driver gets a thin adapter:

- aiomysql: real multi-result-set cursor (``nextset``)
- asyncpg: prepared statement, rows fetched up front, one result set
- aiosqlite: DB-API cursor, one result set
"""

from typing import Any, List, Optional, Protocol, Sequence


class ResultCursor(Protocol):
    """What the materializer needs from a backend cursor."""

    async def columns(self) -> List[str]:
        """Column names of the current result set (may raise)."""
        ...

    async def fetch_row(self) -> Optional[Sequence[Any]]:
        """Next row of the current result set, or None when exhausted."""
        ...

    async def next_result_set(self) -> bool:
        """Advance to the next result set; False when there is none."""
        ...

    def raise_for_error(self) -> None:
        """Raise any error deferred while iterating."""
        ...

    async def close(self) -> None:
        ...


def _description_columns(description) -> List[str]:
    if not description:
        return []
    return [d[0] for d in description]


class BaseResultCursor:
    """Defaults shared by the single-result-set adapters."""

    async def next_result_set(self) -> bool:
        return False

    def raise_for_error(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class MySQLResultCursor(BaseResultCursor):
    """Adapter over an executed ``aiomysql.Cursor``.

    Result sets without columns (the trailing status packet of a CALL) are
    skipped when advancing, so a procedure with two SELECTs yields exactly
    two sets.
    """

    def __init__(self, cursor) -> None:
        self._cursor = cursor

    async def columns(self) -> List[str]:
        return _description_columns(self._cursor.description)

    async def fetch_row(self) -> Optional[Sequence[Any]]:
        if not self._cursor.description:
            return None
        return await self._cursor.fetchone()

    async def next_result_set(self) -> bool:
        while await self._cursor.nextset():
            if self._cursor.description:
                return True
        return False

    async def close(self) -> None:
        await self._cursor.close()


class PostgresResultCursor(BaseResultCursor):
    """Adapter over an asyncpg prepared statement.

    asyncpg returns every row of a bound statement at once and has no notion
    of multiple result sets, so this cursor always holds exactly one set.
    """

    def __init__(self, attributes: Sequence[Any], records: Sequence[Any]) -> None:
        self._columns = [attr.name for attr in attributes]
        self._records = list(records)
        self._position = 0

    @classmethod
    async def open(cls, conn, sql: str, args: Sequence[Any] = ()) -> "PostgresResultCursor":
        statement = await conn.prepare(sql)
        records = await statement.fetch(*args)
        return cls(statement.get_attributes(), records)

    async def columns(self) -> List[str]:
        return list(self._columns)

    async def fetch_row(self) -> Optional[Sequence[Any]]:
        if self._position >= len(self._records):
            return None
        record = self._records[self._position]
        self._position += 1
        return tuple(record)


class SQLiteResultCursor(BaseResultCursor):
    """Adapter over an executed ``aiosqlite.Cursor``."""

    def __init__(self, cursor) -> None:
        self._cursor = cursor

    async def columns(self) -> List[str]:
        return _description_columns(self._cursor.description)

    async def fetch_row(self) -> Optional[Sequence[Any]]:
        if not self._cursor.description:
            return None
        return await self._cursor.fetchone()

    async def close(self) -> None:
        await self._cursor.close()
