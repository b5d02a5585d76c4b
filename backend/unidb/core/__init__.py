"""Core modules for logging and error handling."""

from unidb.core.errors import UnidbError
from unidb.core.logging import get_logger, setup_logging, set_correlation_id

__all__ = [
    "UnidbError",
    "get_logger",
    "setup_logging",
    "set_correlation_id",
]
