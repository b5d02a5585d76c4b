"""Command line entry point: ``unidb`` / ``python -m unidb``."""

import argparse
import asyncio
import sys
from typing import List, Optional

from unidb.config import settings
from unidb.core.logging import get_logger, setup_logging
from unidb.db.session import DatabaseSessions
from unidb.server import serve
from unidb.tools.registry import build_tool_registry

BACKENDS = ["MySQL", "PostgreSQL", "Redis", "SQLite"]

logger = get_logger(__name__)


def version_text() -> str:
    return (
        f"{settings.server_name} v{settings.server_version}\n"
        f"Integrated backends: {', '.join(BACKENDS)}"
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="unidb", description=settings.server_name)
    parser.add_argument("-v", "--version", action="store_true", help="print version information and exit")
    return parser.parse_args(argv)


async def run() -> None:
    """Build sessions and tools, serve until stdin closes, then close every handle."""
    sessions = DatabaseSessions()
    registry = build_tool_registry(sessions)
    try:
        await serve(registry)
    finally:
        await sessions.close_all()
        logger.info("All database connections closed")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.version:
        print(version_text())
        return 0

    setup_logging(
        log_level=settings.logging.level,
        log_file=settings.logging.log_file,
        log_dir=settings.logging.log_dir,
        max_bytes=settings.logging.max_bytes,
        backup_count=settings.logging.backup_count,
        json_format=settings.logging.json_format,
        file_enabled=settings.logging.file_enabled,
    )
    logger.info(f"Starting {settings.server_name} v{settings.server_version}")

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
