"""Per-backend connection handles.

A ``DatabaseSessions`` object is created once at startup and handed to every
tool. Connect tools swap a new client in; the previous one is closed only
after the new one has been verified.
"""

import logging
from typing import Optional

from unidb.core.errors import NotConnectedError
from unidb.db.mysql import MySQLClient
from unidb.db.postgres import PostgresClient
from unidb.db.redis_client import RedisClient

logger = logging.getLogger(__name__)


class DatabaseSessions:
    """Holds at most one open client per backend."""

    def __init__(self) -> None:
        self.mysql: Optional[MySQLClient] = None
        self.postgres: Optional[PostgresClient] = None
        self.redis: Optional[RedisClient] = None

    def require_mysql(self) -> MySQLClient:
        if self.mysql is None:
            raise NotConnectedError("Database not connected. Use mysql_connect first")
        return self.mysql

    def require_postgres(self) -> PostgresClient:
        if self.postgres is None:
            raise NotConnectedError("PostgreSQL not connected. Use pgsql_connect first")
        return self.postgres

    def require_redis(self) -> RedisClient:
        if self.redis is None:
            raise NotConnectedError("No active Redis connection. Use redis_connect first")
        return self.redis

    async def set_mysql(self, client: MySQLClient) -> None:
        previous, self.mysql = self.mysql, client
        if previous is not None:
            await previous.close()

    async def set_postgres(self, client: PostgresClient) -> None:
        previous, self.postgres = self.postgres, client
        if previous is not None:
            await previous.close()

    async def set_redis(self, client: RedisClient) -> None:
        previous, self.redis = self.redis, client
        if previous is not None:
            await previous.close()

    async def close_redis(self) -> None:
        client = self.require_redis()
        self.redis = None
        await client.close()

    async def close_all(self) -> None:
        """Close every open handle, logging (not raising) individual failures."""
        for name in ("mysql", "postgres", "redis"):
            client = getattr(self, name)
            if client is None:
                continue
            setattr(self, name, None)
            try:
                await client.close()
            except Exception as e:
                logger.warning(f"Failed to close {name} connection: {e}")
