"""
tiny-cacher — Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration is defined here and validated before a facade is built.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..cache.strategy import Strategy


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SQLiteMode(str, Enum):
    """SQLite open modes (mapped to sqlite3 URI ``mode`` parameter)."""

    READ_WRITE_CREATE = "rwc"
    READ_WRITE = "rw"
    READ_ONLY = "ro"
    MEMORY = "memory"


class CacheConfig(BaseModel):
    """Cache facade configuration."""

    strategy: Strategy = Field(default=Strategy.LOCAL, description="Storage strategy to use")
    namespace: str = Field(default="", description="Cache namespace (empty = no namespace)")
    default_ttl: int = Field(default=0, ge=0, description="Default TTL in seconds (0 = no expiry)")
    verbose: bool = Field(default=False, description="Log backend failures with tracebacks")

    # File-specific settings (only used when strategy=file)
    storage_directory: str | None = Field(default=None, description="Root directory for cache files")

    # Redis-specific settings (only used when strategy=redis)
    redis_host: str = Field(default="127.0.0.1", description="Redis host")
    redis_port: int = Field(default=6379, ge=1, le=65535, description="Redis port")
    redis_db: int = Field(default=0, ge=0, description="Redis database index")
    redis_password: str | None = Field(default=None, description="Redis password")

    # Memcached-specific settings (only used when strategy=memcached)
    memcached_servers: list[str] = Field(
        default_factory=lambda: ["127.0.0.1:11211"],
        description="Memcached servers as host:port strings",
    )

    # SQLite-specific settings (only used when strategy=sqlite3)
    sqlite_path: str | None = Field(default=None, description="SQLite database file path")
    sqlite_mode: SQLiteMode = Field(default=SQLiteMode.READ_WRITE_CREATE, description="SQLite open mode")

    @field_validator("strategy", mode="before")
    @classmethod
    def parse_strategy(cls, v: Any) -> Strategy:
        """Accept strategy aliases (names, legacy integer codes)."""
        return Strategy.parse(v)

    @field_validator("memcached_servers")
    @classmethod
    def validate_memcached_servers(cls, v: list[str]) -> list[str]:
        """Ensure every server entry looks like host:port."""
        for server in v:
            host, _, port = server.rpartition(":")
            if not host or not port.isdigit():
                raise ValueError(f"Invalid memcached server '{server}', expected host:port")
        return v

    @model_validator(mode="after")
    def validate_strategy_requirements(self) -> "CacheConfig":
        """Ensure the settings required by the selected strategy are present."""
        if self.strategy == Strategy.FILE and not self.storage_directory:
            raise ValueError("storage_directory is required when cache strategy is 'file'")
        if self.strategy == Strategy.SQLITE and not self.sqlite_path:
            raise ValueError("sqlite_path is required when cache strategy is 'sqlite3'")
        return self

    def memcached_server_tuples(self) -> list[tuple[str, int]]:
        """Return memcached servers as (host, port) tuples."""
        result = []
        for server in self.memcached_servers:
            host, _, port = server.rpartition(":")
            result.append((host, int(port)))
        return result


class TinyCacherConfig(BaseModel):
    """Root configuration for tiny-cacher."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheConfig = Field(default_factory=CacheConfig)

    model_config = ConfigDict(validate_assignment=True)
