"""Redis client wrapper over redis.asyncio.

Replies are kept as raw bytes (``decode_responses=False``) and turned into
text by ``unidb.db.commands.format_reply``.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import redis.asyncio as redis
from pydantic import BaseModel

from unidb.config import settings
from unidb.core.errors import ConnectionFailedError, InvalidArgumentError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6379


class RedisConfig(BaseModel):
    """Connection parameters for one Redis session.

    ``ssl_insecure_skip_verify`` left unset means a plain connection; any
    explicit value turns TLS on, and ``True`` also skips certificate checks.
    """

    addr: str
    password: str = ""
    db: int = settings.redis.db
    ssl_insecure_skip_verify: Optional[bool] = None

    def connection_kwargs(self) -> Dict[str, Any]:
        host, sep, port = self.addr.rpartition(":")
        if not sep:
            host, port = self.addr, str(DEFAULT_PORT)
        if not port.isdigit():
            raise InvalidArgumentError(f"invalid port in addr: {self.addr}")

        kwargs: Dict[str, Any] = {
            "host": host,
            "port": int(port),
            "db": self.db,
            "password": self.password or None,
            "socket_timeout": settings.redis.socket_timeout,
            "decode_responses": False,
        }
        if self.ssl_insecure_skip_verify is not None:
            kwargs["ssl"] = True
            if self.ssl_insecure_skip_verify:
                kwargs["ssl_cert_reqs"] = "none"
                kwargs["ssl_check_hostname"] = False
        return kwargs


class RedisClient:
    """One Redis connection pool plus the helpers the tools need."""

    def __init__(self, config: RedisConfig, connection: Optional[redis.Redis] = None) -> None:
        self.config = config
        self.redis = connection if connection is not None else redis.Redis(**config.connection_kwargs())

    @classmethod
    async def connect(cls, config: RedisConfig) -> "RedisClient":
        """Open a client and verify it with PING.

        Raises:
            ConnectionFailedError: PING failed
        """
        client = cls(config)
        try:
            await client.ping()
        except Exception as e:
            await client.close()
            raise ConnectionFailedError(f"Redis connection failed: {e}") from e
        logger.info(f"Redis connected: {config.addr} db={config.db}")
        return client

    async def ping(self) -> None:
        await self.redis.ping()

    async def close(self) -> None:
        await self.redis.aclose()
        logger.info("Redis connection closed")

    async def execute_command(self, args: Sequence[Any]) -> Any:
        return await self.redis.execute_command(*args)

    async def eval(self, script: str, keys: Sequence[str], args: Sequence[Any]) -> Any:
        return await self.redis.eval(script, len(keys), *keys, *args)

    async def info(self, section: Optional[str] = None) -> Dict[str, Any]:
        if section:
            return await self.redis.info(section)
        return await self.redis.info()

    async def keys(self, pattern: str = "*") -> List[str]:
        """Matching key names, collected with SCAN."""
        found = []
        async for key in self.redis.scan_iter(match=pattern or settings.redis.scan_pattern):
            found.append(key.decode("utf-8", errors="replace") if isinstance(key, bytes) else key)
        return found

    async def key_info(self, key: str) -> Dict[str, Any]:
        if not await self.redis.exists(key):
            return {"exists": False}
        key_type = await self.redis.type(key)
        if isinstance(key_type, bytes):
            key_type = key_type.decode("utf-8")
        return {"exists": True, "type": key_type, "ttl": await self.redis.ttl(key)}
