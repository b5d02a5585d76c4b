"""Generic result materialization for relational backends.

Turns whatever a cursor yields (zero, one or many result sets with
driver-typed columns) into plain JSON-safe records:

    cursor -> walk_result_sets -> materialize (coerce_value per slot)
           -> select_shape -> ProcedureOutcome

The cursor side is described by ``unidb.db.cursors.ResultCursor``.
"""

import datetime
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from unidb.core.errors import IterationError, MaterializationError

logger = logging.getLogger(__name__)

# Closed set of transport-safe scalars
Scalar = Union[None, bool, int, float, str]
Record = Dict[str, Scalar]
ResultSet = List[Record]


def coerce_value(raw: Any) -> Any:
    """Convert one backend-native value into a transport-safe scalar.

    Byte payloads (TEXT/BLOB/VARCHAR on many drivers) become UTF-8 text,
    decimals and temporal values become their string form. Unrecognized
    types are returned unchanged.
    """
    if raw is None or isinstance(raw, (bool, int, float, str)):
        return raw
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw).decode("utf-8", errors="replace")
    if isinstance(raw, Decimal):
        return str(raw)
    if isinstance(raw, (datetime.datetime, datetime.date, datetime.time)):
        return raw.isoformat()
    if isinstance(raw, datetime.timedelta):
        return str(raw)
    if isinstance(raw, uuid.UUID):
        return str(raw)
    return raw


async def _read_rows(cursor, columns: Sequence[str]) -> ResultSet:
    rows: ResultSet = []
    while True:
        try:
            row = await cursor.fetch_row()
        except Exception as e:
            raise MaterializationError(f"failed to scan row: {e}") from e
        if row is None:
            return rows
        rows.append({col: coerce_value(val) for col, val in zip(columns, row)})


async def materialize(cursor, columns: Optional[Sequence[str]] = None) -> ResultSet:
    """Read every row of the cursor's current result set.

    Args:
        cursor: A ResultCursor positioned on a result set
        columns: Column names if the caller already fetched them

    Returns:
        Records in row order, keys in column order

    Raises:
        MaterializationError: column metadata or a row could not be read.
            No partial result set is returned.
    """
    if columns is None:
        try:
            columns = await cursor.columns()
        except Exception as e:
            raise MaterializationError(f"failed to get columns: {e}") from e
    return await _read_rows(cursor, columns)


async def materialize_single(cursor) -> ResultSet:
    """Materialize a cursor known to produce exactly one result set."""
    rows = await materialize(cursor)
    _check_iteration(cursor)
    return rows


async def walk_result_sets(cursor) -> List[ResultSet]:
    """Materialize every result set a statement or procedure produced.

    A column-metadata failure on the first set is an error. Once at least one
    set has been read, the same failure is taken as the end of the results,
    since some backends signal exhaustion that way.
    """
    result_sets: List[ResultSet] = []

    while True:
        try:
            columns = await cursor.columns()
        except Exception as e:
            if result_sets:
                logger.debug(f"Column metadata unavailable after {len(result_sets)} set(s), stopping: {e}")
                break
            raise MaterializationError(f"failed to get columns: {e}") from e

        result_sets.append(await materialize(cursor, columns))

        if not await cursor.next_result_set():
            break

    _check_iteration(cursor)
    return result_sets


def _check_iteration(cursor) -> None:
    try:
        cursor.raise_for_error()
    except Exception as e:
        raise IterationError(f"row iteration error: {e}") from e


class ProcedureOutcome(BaseModel):
    """Uniform shape for statements that may yield several result sets.

    Exactly one of ``data`` and ``result_sets`` is populated; the other stays
    None so it is absent from the serialized payload.
    """

    data: Optional[List[Dict[str, Any]]] = None
    result_sets: Optional[List[List[Dict[str, Any]]]] = None
    set_count: int = 1
    total_records: int = 0
    summary: str = ""

    @property
    def is_single(self) -> bool:
        return self.result_sets is None


def select_shape(result_sets: List[ResultSet]) -> ProcedureOutcome:
    """Pick the single or multiple arm from the number of result sets."""
    total = sum(len(rs) for rs in result_sets)

    if len(result_sets) <= 1:
        data = result_sets[0] if result_sets else []
        return ProcedureOutcome(
            data=data,
            set_count=1,
            total_records=total,
            summary=f"Successfully executed procedure with 1 result set. Total records: {total}",
        )

    return ProcedureOutcome(
        result_sets=result_sets,
        set_count=len(result_sets),
        total_records=total,
        summary=(
            f"Successfully executed procedure with {len(result_sets)} result sets. "
            f"Total records: {total}"
        ),
    )


async def materialize_result_sets(cursor) -> ProcedureOutcome:
    """Walk all result sets of a cursor and choose the response shape."""
    return select_shape(await walk_result_sets(cursor))


class QueryResult(BaseModel):
    """Envelope for relational query tools (``exclude_none`` on dump)."""

    type: str
    data: Optional[List[Dict[str, Any]]] = None
    result_sets: Optional[List[List[Dict[str, Any]]]] = None
    count: Optional[int] = None
    success: bool = True
    message: Optional[str] = None

    @classmethod
    def select(cls, rows: ResultSet) -> "QueryResult":
        return cls(type="select", data=rows, count=len(rows))

    @classmethod
    def procedure(cls, outcome: ProcedureOutcome) -> "QueryResult":
        return cls(
            type="procedure",
            data=outcome.data,
            result_sets=outcome.result_sets,
            count=outcome.set_count,
            message=outcome.summary,
        )

    @classmethod
    def error(cls, message: str) -> "QueryResult":
        return cls(type="error", success=False, message=message)


class ExecResult(BaseModel):
    """Envelope for statements that do not return rows."""

    type: str
    success: bool = True
    rows_affected: Optional[int] = None
    last_insert_id: Optional[int] = None
    message: Optional[str] = None

    @classmethod
    def error(cls, message: str) -> "ExecResult":
        return cls(type="error", success=False, message=message)


class ColumnarResult(BaseModel):
    """Query envelope that also lists columns (PostgreSQL tools)."""

    columns: List[str] = Field(default_factory=list)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    count: int = 0
