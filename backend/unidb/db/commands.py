"""Key-value command tokenizing and reply formatting.

``tokenize_command`` turns a free-form command line such as
``ZADD zset 1.5 member`` into typed arguments; ``format_reply`` turns any
reply shape a key-value backend returns into text.
"""

import json
import logging
import re
from typing import Any, List, Union

from unidb.core.errors import EmptyCommandError

logger = logging.getLogger(__name__)

CommandArgument = Union[int, float, str]

_INT_RE = re.compile(r"[+-]?[0-9]+")


def _parse_token(token: str) -> CommandArgument:
    if _INT_RE.fullmatch(token):
        return int(token)
    if "_" not in token:
        try:
            return float(token)
        except ValueError:
            pass
    return token


def tokenize_command(text: str) -> List[CommandArgument]:
    """Split a command string on whitespace into typed arguments.

    Integer parsing is tried first, then float, then the token is kept as a
    string. There is no quoting, so a single argument cannot contain
    whitespace.

    Raises:
        EmptyCommandError: the string is empty or only whitespace
    """
    parts = text.split() if text else []
    if not parts:
        raise EmptyCommandError()
    return [_parse_token(part) for part in parts]


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {_key(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return [_to_jsonable(v) for v in value]
    return value


def _key(key: Any) -> Any:
    if isinstance(key, (bytes, bytearray, memoryview)):
        return bytes(key).decode("utf-8", errors="replace")
    if key is None or isinstance(key, (str, int, float, bool)):
        return key
    return str(key)


def _encode(value: Any) -> str:
    return json.dumps(_to_jsonable(value), ensure_ascii=False, separators=(",", ":"), allow_nan=False)


def format_reply(value: Any) -> str:
    """Render a backend reply as JSON-like text.

    Scalar strings are wrapped in quotes as-is, without escaping. Floats use
    fixed-point with six fractional digits. Composite values go through the
    JSON encoder; anything it cannot encode falls back to ``str()``.
    This function never raises.
    """
    if value is None:
        return "null"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f'"{bytes(value).decode("utf-8", errors="replace")}"'
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:f}"

    try:
        return _encode(value)
    except (TypeError, ValueError) as e:
        logger.debug(f"Falling back to text for reply of type {type(value).__name__}: {e}")
        return str(value)
