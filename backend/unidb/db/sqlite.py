"""SQLite access, one connection per call."""

import logging
from typing import Any, Dict

import aiosqlite

from unidb.db.cursors import SQLiteResultCursor
from unidb.db.results import materialize_single

logger = logging.getLogger(__name__)

MODIFICATION_PREFIXES = ("INSERT", "UPDATE", "DELETE")


def is_modification(sql: str) -> bool:
    return sql.strip().upper().startswith(MODIFICATION_PREFIXES)


async def run_sqlite_query(db_path: str, sql: str) -> Dict[str, Any]:
    """Open ``db_path``, run one statement and close the database again.

    INSERT/UPDATE/DELETE report the affected row count (and the new row id
    for INSERT); every other statement is materialized as rows.
    """
    async with aiosqlite.connect(db_path) as db:
        if is_modification(sql):
            cursor = await db.execute(sql)
            try:
                response: Dict[str, Any] = {"type": "modification", "rowsAffected": cursor.rowcount}
                if sql.strip().upper().startswith("INSERT") and cursor.lastrowid is not None:
                    response["lastInsertId"] = cursor.lastrowid
            finally:
                await cursor.close()
            await db.commit()
            return response

        async with db.execute(sql) as cursor:
            rows = await materialize_single(SQLiteResultCursor(cursor))
        if db.in_transaction:
            await db.commit()

    logger.debug(f"SQLite query on {db_path} returned {len(rows)} rows")
    return {"type": "select", "data": rows, "count": len(rows)}
