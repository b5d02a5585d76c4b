"""Application Configuration.

This module provides a structured configuration system using Pydantic v2 settings.
Settings are organized into nested groups, one per backend plus server and logging.

Only defaults live here. Credentials and addresses arrive with each connect
tool call and are never persisted in settings.
"""

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    """Tool server identity."""

    name: str = "unidb Unified Database Server"
    version: str = "1.0.0"


class MySQLSettings(BaseModel):
    """MySQL pool defaults (tuned for short single-call tool usage)."""

    max_open_conns: int = 5
    max_idle_conns: int = 2
    conn_max_lifetime_hours: float = 4.0
    charset: str = "utf8mb4"
    connect_timeout: int = 10


class PostgresSettings(BaseModel):
    """PostgreSQL connection defaults."""

    port: int = 5432
    sslmode: str = "disable"
    pool_min_size: int = 1
    pool_max_size: int = 10
    command_timeout: float = 60.0


class RedisSettings(BaseModel):
    """Redis connection defaults."""

    db: int = 0
    socket_timeout: float = 10.0
    scan_pattern: str = "*"


class LoggingSettings(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    log_dir: str = "./logs"
    log_file: str = "unidb.log"
    file_enabled: bool = True
    max_bytes: int = 10 * 1024 * 1024  # 10MB per file
    backup_count: int = 30
    json_format: bool = True


class Settings(BaseSettings):
    """Root application settings.

    Combines all configuration groups into a single settings object.
    Supports loading from environment variables with nested prefixes.

    Usage:
        from unidb.config import settings

        # Pool size used when mysql_connect omits max_open_conns
        size = settings.mysql.max_open_conns

        # Override from the environment
        #   MYSQL__MAX_OPEN_CONNS=10 LOGGING__LEVEL=DEBUG unidb
    """

    server: ServerSettings = ServerSettings()
    mysql: MySQLSettings = MySQLSettings()
    postgres: PostgresSettings = PostgresSettings()
    redis: RedisSettings = RedisSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def server_name(self) -> str:
        return self.server.name

    @property
    def server_version(self) -> str:
        return self.server.version

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        env_nested_delimiter="__",
        extra="ignore",
    )


settings = Settings()
