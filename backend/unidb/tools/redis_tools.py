"""
Redis Tools.

Replies are rendered with ``format_reply``: integers as digits, booleans as
true/false, strings quoted, nil as ``null`` and collections as compact JSON.
The data-structure tools dispatch on an ``operation`` argument.
"""

import logging
from typing import Any, Dict, List

from redis.exceptions import RedisError

from unidb.config import settings
from unidb.core.errors import CommandParseError, InvalidArgumentError
from unidb.db.commands import format_reply, tokenize_command
from unidb.db.redis_client import RedisClient, RedisConfig
from unidb.tools.base import SessionTool, ToolParameter, ToolResult, as_int, as_list

logger = logging.getLogger(__name__)

STATUS_OK = {"status": "OK"}


def _require(value: Any, name: str) -> Any:
    if value is None:
        raise InvalidArgumentError(f"Missing required parameter: {name}")
    return value


def _require_list(value: Any, name: str) -> List[Any]:
    items = as_list(value, name)
    if not items:
        raise InvalidArgumentError(f"Missing required parameter: {name}")
    return items


def _pairs(first: List[Any], second: List[Any], first_name: str, second_name: str) -> Dict[Any, Any]:
    if len(first) != len(second):
        raise InvalidArgumentError(f"{first_name} and {second_name} must have the same length")
    return dict(zip(first, second))


def parse_score(raw: Any) -> float:
    """A sorted-set score: a JSON number or a numeric string."""
    if isinstance(raw, bool):
        raise InvalidArgumentError(f"invalid score type: {type(raw).__name__}")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw)
        except ValueError:
            raise InvalidArgumentError(f"invalid score: {raw}") from None
    raise InvalidArgumentError(f"invalid score type: {type(raw).__name__}")


class RedisTool(SessionTool):
    """Common plumbing for tools that need an open Redis connection."""

    @property
    def client(self) -> RedisClient:
        return self.sessions.require_redis()


class OperationTool(RedisTool):
    """Dispatches ``operation`` to an ``op_<name>`` coroutine."""

    operations: List[str] = []

    async def execute(self, operation: str, **kwargs) -> ToolResult:
        op = str(operation).upper()
        if op not in self.operations:
            return ToolResult.fail(f"Unsupported operation: {operation}")
        redis = self.client.redis
        handler = getattr(self, f"op_{op.lower()}")
        try:
            reply = await handler(redis, **kwargs)
        except RedisError as e:
            return ToolResult.fail(f"{op} failed: {e}")
        if reply is STATUS_OK:
            return ToolResult.ok(reply)
        return ToolResult.ok(format_reply(reply))


def _operation_param(operations: List[str]) -> ToolParameter:
    return ToolParameter(name="operation", description="Operation to perform", enum=operations)


class RedisConnectTool(SessionTool):
    name = "redis_connect"
    description = "Connect to a Redis server. Replaces any existing Redis connection."
    parameters = [
        ToolParameter(name="addr", description="Server address as host:port, e.g. 127.0.0.1:6379"),
        ToolParameter(name="password", description="Server password", required=False),
        ToolParameter(name="db", description="Database number", type="integer", required=False, default=settings.redis.db),
        ToolParameter(
            name="ssl_insecure_skip_verify",
            description="Use TLS; true also skips certificate verification. Leave unset for plain TCP.",
            type="boolean",
            required=False,
        ),
    ]

    async def execute(
        self,
        addr: str,
        password: str = "",
        db=None,
        ssl_insecure_skip_verify=None,
        **kwargs,
    ) -> ToolResult:
        config = RedisConfig(
            addr=addr,
            password=password or "",
            db=as_int(db, "db", settings.redis.db),
            ssl_insecure_skip_verify=ssl_insecure_skip_verify if isinstance(ssl_insecure_skip_verify, bool) else None,
        )
        client = await RedisClient.connect(config)
        await self.sessions.set_redis(client)
        return ToolResult.ok({"status": "connected", "addr": addr, "db": config.db})


class RedisDisconnectTool(SessionTool):
    name = "redis_disconnect"
    description = "Close the Redis connection."
    parameters = []

    async def execute(self, **kwargs) -> ToolResult:
        await self.sessions.close_redis()
        return ToolResult.ok({"status": "disconnected"})


class RedisPingTool(RedisTool):
    name = "redis_ping"
    description = "Check the Redis connection."
    parameters = []

    async def execute(self, **kwargs) -> ToolResult:
        client = self.client
        try:
            await client.ping()
        except RedisError as e:
            return ToolResult.fail(f"Ping failed: {e}")
        return ToolResult.ok({"status": "PONG"})


class RedisCommandTool(RedisTool):
    name = "redis_command"
    description = "Run a raw Redis command line, e.g. 'SET key value' or 'ZADD zs 1.5 member'."
    parameters = [ToolParameter(name="command", description="Command and arguments separated by whitespace")]

    async def execute(self, command: str, **kwargs) -> ToolResult:
        client = self.client
        try:
            args = tokenize_command(command)
        except CommandParseError as e:
            return ToolResult.fail(f"Failed to parse command: {e}")

        args[0] = str(args[0])
        try:
            reply = await client.execute_command(args)
        except RedisError as e:
            return ToolResult.fail(f"Command failed: {e}")
        return ToolResult.ok(format_reply(reply))


class RedisLuaTool(RedisTool):
    name = "redis_lua"
    description = "Run a Lua script with EVAL."
    parameters = [
        ToolParameter(name="script", description="Lua source"),
        ToolParameter(name="keys", description="Key names (KEYS)", type="array", required=False, items={"type": "string"}),
        ToolParameter(name="args", description="Script arguments (ARGV)", type="array", required=False),
    ]

    async def execute(self, script: str, keys=None, args=None, **kwargs) -> ToolResult:
        client = self.client
        key_names = [str(k) for k in as_list(keys, "keys")]
        try:
            reply = await client.eval(script, key_names, as_list(args, "args"))
        except RedisError as e:
            return ToolResult.fail(f"Script failed: {e}")
        return ToolResult.ok(format_reply(reply))


class RedisInfoTool(RedisTool):
    name = "redis_info"
    description = "Server information (INFO), optionally a single section such as server or memory."
    parameters = [ToolParameter(name="section", description="INFO section", required=False)]

    async def execute(self, section: str = None, **kwargs) -> ToolResult:
        client = self.client
        try:
            info = await client.info(section)
        except RedisError as e:
            return ToolResult.fail(f"INFO failed: {e}")
        return ToolResult.ok(format_reply(info))


class RedisKeysTool(RedisTool):
    name = "redis_keys"
    description = "List keys matching a glob pattern."
    parameters = [ToolParameter(name="pattern", description="Glob pattern, e.g. user:*", required=False, default="*")]

    async def execute(self, pattern: str = "*", **kwargs) -> ToolResult:
        client = self.client
        try:
            keys = await client.keys(pattern or "*")
        except RedisError as e:
            return ToolResult.fail(f"Listing keys failed: {e}")
        return ToolResult.ok(format_reply(keys))


class RedisKeyInfoTool(RedisTool):
    name = "redis_key_info"
    description = "Whether a key exists, and if so its type and TTL in seconds (-1 means no expiry)."
    parameters = [ToolParameter(name="key", description="Key name")]

    async def execute(self, key: str, **kwargs) -> ToolResult:
        client = self.client
        try:
            return ToolResult.ok(await client.key_info(key))
        except RedisError as e:
            return ToolResult.fail(f"Key lookup failed: {e}")


class RedisDelTool(RedisTool):
    name = "redis_del"
    description = "Delete one or more keys."
    parameters = [ToolParameter(name="keys", description="Key names", type="array", items={"type": "string"})]

    async def execute(self, keys=None, **kwargs) -> ToolResult:
        client = self.client
        names = _require_list(keys, "keys")
        try:
            deleted = await client.redis.delete(*names)
        except RedisError as e:
            return ToolResult.fail(f"DEL failed: {e}")
        return ToolResult.ok({"deleted": deleted})


class RedisExpireTool(RedisTool):
    name = "redis_expire"
    description = "Set a key's time to live."
    parameters = [
        ToolParameter(name="key", description="Key name"),
        ToolParameter(name="seconds", description="TTL in seconds", type="integer"),
    ]

    async def execute(self, key: str, seconds=None, **kwargs) -> ToolResult:
        client = self.client
        # fractional seconds are truncated
        ttl = int(seconds) if isinstance(seconds, float) else as_int(_require(seconds, "seconds"), "seconds")
        try:
            await client.redis.expire(key, ttl)
        except RedisError as e:
            return ToolResult.fail(f"EXPIRE failed: {e}")
        return ToolResult.ok({"status": "ok"})


STRING_OPERATIONS = ["SET", "GET", "MGET", "MSET", "INCR", "DECR", "INCRBY", "DECRBY"]


class RedisStringTool(OperationTool):
    name = "redis_string"
    description = "String operations: SET, GET, MGET, MSET, INCR, DECR, INCRBY, DECRBY."
    operations = STRING_OPERATIONS
    parameters = [
        _operation_param(STRING_OPERATIONS),
        ToolParameter(name="key", description="Key name", required=False),
        ToolParameter(name="value", description="Value (SET)", required=False),
        ToolParameter(name="keys", description="Key names (MGET/MSET)", type="array", required=False),
        ToolParameter(name="values", description="Values (MSET)", type="array", required=False),
        ToolParameter(name="increment", description="Step (INCRBY/DECRBY)", type="integer", required=False),
        ToolParameter(name="expire", description="TTL in seconds (SET)", type="integer", required=False),
    ]

    async def op_set(self, redis, key=None, value=None, expire=None, **kwargs):
        ttl = as_int(expire, "expire", 0)
        await redis.set(_require(key, "key"), _require(value, "value"), ex=ttl or None)
        return STATUS_OK

    async def op_get(self, redis, key=None, **kwargs):
        return await redis.get(_require(key, "key"))

    async def op_mget(self, redis, keys=None, **kwargs):
        return await redis.mget(_require_list(keys, "keys"))

    async def op_mset(self, redis, keys=None, values=None, **kwargs):
        mapping = _pairs(_require_list(keys, "keys"), _require_list(values, "values"), "keys", "values")
        await redis.mset(mapping)
        return STATUS_OK

    async def op_incr(self, redis, key=None, **kwargs):
        return await redis.incr(_require(key, "key"))

    async def op_decr(self, redis, key=None, **kwargs):
        return await redis.decr(_require(key, "key"))

    async def op_incrby(self, redis, key=None, increment=None, **kwargs):
        return await redis.incrby(_require(key, "key"), as_int(_require(increment, "increment"), "increment"))

    async def op_decrby(self, redis, key=None, increment=None, **kwargs):
        return await redis.decrby(_require(key, "key"), as_int(_require(increment, "increment"), "increment"))


HASH_OPERATIONS = ["HSET", "HGET", "HGETALL", "HDEL", "HEXISTS", "HKEYS", "HLEN"]


class RedisHashTool(OperationTool):
    name = "redis_hash"
    description = "Hash operations: HSET, HGET, HGETALL, HDEL, HEXISTS, HKEYS, HLEN."
    operations = HASH_OPERATIONS
    parameters = [
        _operation_param(HASH_OPERATIONS),
        ToolParameter(name="key", description="Hash key"),
        ToolParameter(name="field", description="Field name", required=False),
        ToolParameter(name="value", description="Field value (HSET)", required=False),
        ToolParameter(name="fields", description="Field names (HSET/HDEL)", type="array", required=False),
        ToolParameter(name="values", description="Field values (HSET)", type="array", required=False),
    ]

    async def op_hset(self, redis, key, field=None, value=None, fields=None, values=None, **kwargs):
        fields, values = as_list(fields, "fields"), as_list(values, "values")
        if fields or values:
            return await redis.hset(key, mapping=_pairs(fields, values, "fields", "values"))
        return await redis.hset(key, _require(field, "field"), _require(value, "value"))

    async def op_hget(self, redis, key, field=None, **kwargs):
        return await redis.hget(key, _require(field, "field"))

    async def op_hgetall(self, redis, key, **kwargs):
        return await redis.hgetall(key)

    async def op_hdel(self, redis, key, field=None, fields=None, **kwargs):
        names = as_list(fields, "fields") or [_require(field, "field")]
        return await redis.hdel(key, *names)

    async def op_hexists(self, redis, key, field=None, **kwargs):
        return bool(await redis.hexists(key, _require(field, "field")))

    async def op_hkeys(self, redis, key, **kwargs):
        return await redis.hkeys(key)

    async def op_hlen(self, redis, key, **kwargs):
        return await redis.hlen(key)


LIST_OPERATIONS = ["LPUSH", "RPUSH", "LPOP", "RPOP", "LRANGE", "LLEN"]


class RedisListTool(OperationTool):
    name = "redis_list"
    description = "List operations: LPUSH, RPUSH, LPOP, RPOP, LRANGE, LLEN."
    operations = LIST_OPERATIONS
    parameters = [
        _operation_param(LIST_OPERATIONS),
        ToolParameter(name="key", description="List key"),
        ToolParameter(name="values", description="Values to push", type="array", required=False),
        ToolParameter(name="start", description="Start index (LRANGE)", type="integer", required=False, default=0),
        ToolParameter(name="stop", description="Stop index, inclusive (LRANGE)", type="integer", required=False, default=-1),
    ]

    async def op_lpush(self, redis, key, values=None, **kwargs):
        return await redis.lpush(key, *_require_list(values, "values"))

    async def op_rpush(self, redis, key, values=None, **kwargs):
        return await redis.rpush(key, *_require_list(values, "values"))

    async def op_lpop(self, redis, key, **kwargs):
        return await redis.lpop(key)

    async def op_rpop(self, redis, key, **kwargs):
        return await redis.rpop(key)

    async def op_lrange(self, redis, key, start=None, stop=None, **kwargs):
        return await redis.lrange(key, as_int(start, "start", 0), as_int(stop, "stop", -1))

    async def op_llen(self, redis, key, **kwargs):
        return await redis.llen(key)


SET_OPERATIONS = ["SADD", "SMEMBERS", "SREM", "SISMEMBER", "SCARD"]


class RedisSetTool(OperationTool):
    name = "redis_set"
    description = "Set operations: SADD, SMEMBERS, SREM, SISMEMBER, SCARD."
    operations = SET_OPERATIONS
    parameters = [
        _operation_param(SET_OPERATIONS),
        ToolParameter(name="key", description="Set key"),
        ToolParameter(name="members", description="Members (SADD/SREM)", type="array", required=False),
        ToolParameter(name="member", description="Member (SISMEMBER)", required=False),
    ]

    async def op_sadd(self, redis, key, members=None, **kwargs):
        return await redis.sadd(key, *_require_list(members, "members"))

    async def op_smembers(self, redis, key, **kwargs):
        return sorted(await redis.smembers(key))

    async def op_srem(self, redis, key, members=None, **kwargs):
        return await redis.srem(key, *_require_list(members, "members"))

    async def op_sismember(self, redis, key, member=None, **kwargs):
        return bool(await redis.sismember(key, _require(member, "member")))

    async def op_scard(self, redis, key, **kwargs):
        return await redis.scard(key)


ZSET_OPERATIONS = ["ZADD", "ZRANGE", "ZREM", "ZSCORE", "ZCARD"]


class RedisZSetTool(OperationTool):
    name = "redis_zset"
    description = "Sorted set operations: ZADD, ZRANGE, ZREM, ZSCORE, ZCARD."
    operations = ZSET_OPERATIONS
    parameters = [
        _operation_param(ZSET_OPERATIONS),
        ToolParameter(name="key", description="Sorted set key"),
        ToolParameter(name="members", description="Members (ZADD/ZREM)", type="array", required=False),
        ToolParameter(name="scores", description="Scores, numbers or numeric strings (ZADD)", type="array", required=False),
        ToolParameter(name="member", description="Member (ZSCORE)", required=False),
        ToolParameter(name="start", description="Start rank (ZRANGE)", type="integer", required=False, default=0),
        ToolParameter(name="stop", description="Stop rank, inclusive (ZRANGE)", type="integer", required=False, default=-1),
    ]

    async def op_zadd(self, redis, key, members=None, scores=None, **kwargs):
        members = _require_list(members, "members")
        scores = [parse_score(s) for s in _require_list(scores, "scores")]
        return await redis.zadd(key, _pairs(members, scores, "members", "scores"))

    async def op_zrange(self, redis, key, start=None, stop=None, **kwargs):
        return await redis.zrange(key, as_int(start, "start", 0), as_int(stop, "stop", -1))

    async def op_zrem(self, redis, key, members=None, **kwargs):
        return await redis.zrem(key, *_require_list(members, "members"))

    async def op_zscore(self, redis, key, member=None, **kwargs):
        return await redis.zscore(key, _require(member, "member"))

    async def op_zcard(self, redis, key, **kwargs):
        return await redis.zcard(key)


DB_OPERATIONS = ["DBSIZE", "FLUSHDB", "FLUSHALL"]


class RedisDBTool(OperationTool):
    name = "redis_db"
    description = "Database operations: DBSIZE, FLUSHDB, FLUSHALL."
    operations = DB_OPERATIONS
    parameters = [_operation_param(DB_OPERATIONS)]

    async def op_dbsize(self, redis, **kwargs):
        return await redis.dbsize()

    async def op_flushdb(self, redis, **kwargs):
        await redis.flushdb()
        logger.warning("FLUSHDB executed")
        return STATUS_OK

    async def op_flushall(self, redis, **kwargs):
        await redis.flushall()
        logger.warning("FLUSHALL executed")
        return STATUS_OK


REDIS_TOOLS = [
    RedisConnectTool,
    RedisDisconnectTool,
    RedisPingTool,
    RedisCommandTool,
    RedisLuaTool,
    RedisInfoTool,
    RedisKeysTool,
    RedisKeyInfoTool,
    RedisDelTool,
    RedisExpireTool,
    RedisStringTool,
    RedisHashTool,
    RedisListTool,
    RedisSetTool,
    RedisZSetTool,
    RedisDBTool,
]
