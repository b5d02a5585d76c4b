"""Structured JSON logging with correlation IDs and file rotation.

This module provides:
- JSON-formatted logs for Loki/ELK ingestion
- Correlation ID tracking across a single tool call
- Configurable file rotation with retention
- Context-aware logging with tool-call metadata

stdout carries the protocol stream when serving over stdio, so console
output always goes to stderr.

Usage:
    from unidb.core.logging import get_logger, setup_logging

    # Setup at startup
    setup_logging()

    # Get logger in any module
    logger = get_logger(__name__)
    logger.info("Running query", extra={"tool": "mysql_query"})
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# Context variable for correlation ID (task-local under asyncio)
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Set the correlation ID in context, generating one if not given."""
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
    correlation_id_var.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    correlation_id_var.set(None)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Produces JSON lines compatible with Loki, ELK, and other log aggregators.
    Includes correlation ID, timestamp, level, and structured metadata.
    """

    # Internal logging attributes that never go into the payload
    SKIP_FIELDS = {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON line."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_data["correlation_id"] = correlation_id

        # Add source location for warnings and errors
        if record.levelno >= logging.WARNING:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Extra fields (tool, backend, duration_ms, etc.)
        for key, value in record.__dict__.items():
            if key not in self.SKIP_FIELDS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that automatically includes correlation ID."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Add correlation ID to extra fields."""
        extra = kwargs.get("extra", {})

        correlation_id = get_correlation_id()
        if correlation_id and "correlation_id" not in extra:
            extra["correlation_id"] = correlation_id

        kwargs["extra"] = extra
        return msg, kwargs


# Module-level logger cache
_loggers: Dict[str, ContextLogger] = {}


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger for the given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        ContextLogger that includes correlation ID automatically
    """
    if name not in _loggers:
        logger = logging.getLogger(name)
        _loggers[name] = ContextLogger(logger, {})
    return _loggers[name]


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_dir: str = "./logs",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 30,
    json_format: bool = True,
    file_enabled: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Log filename (default: unidb.log)
        log_dir: Directory for log files
        max_bytes: Max size before rotation (default 10MB)
        backup_count: Number of backup files to keep (default 30)
        json_format: Use JSON formatting (default True)
        file_enabled: Also write to a rotating log file
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    if json_format:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG)
    root_logger.addHandler(console_handler)

    file_path = None
    if file_enabled:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_path = log_path / (log_file or "unidb.log")
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("mcp").setLevel(logging.WARNING)

    logger = get_logger(__name__)
    logger.info(
        "Logging configured",
        extra={
            "log_level": log_level,
            "log_file": str(file_path) if file_path else None,
            "json_format": json_format,
            "backup_count": backup_count,
        }
    )


def log_tool_call(
    tool: str,
    duration_ms: float,
    success: bool,
    error: Optional[str] = None,
) -> None:
    """Log a finished tool call with structured data."""
    logger = get_logger("tool.call")

    extra: Dict[str, Any] = {
        "tool": tool,
        "duration_ms": round(duration_ms, 2),
        "success": success,
    }
    if error:
        extra["error"] = error

    if success:
        logger.info(f"{tool} ok", extra=extra)
    else:
        logger.warning(f"{tool} failed", extra=extra)
