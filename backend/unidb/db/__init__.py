"""Backend clients and result materialization."""

from unidb.db.commands import format_reply, tokenize_command
from unidb.db.results import (
    ProcedureOutcome,
    coerce_value,
    materialize,
    materialize_result_sets,
    materialize_single,
    select_shape,
    walk_result_sets,
)
from unidb.db.session import DatabaseSessions

__all__ = [
    "DatabaseSessions",
    "ProcedureOutcome",
    "coerce_value",
    "format_reply",
    "materialize",
    "materialize_result_sets",
    "materialize_single",
    "select_shape",
    "tokenize_command",
    "walk_result_sets",
]
