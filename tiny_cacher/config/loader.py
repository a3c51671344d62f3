"""
tiny-cacher — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the runtime.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import TinyCacherConfig

logger = logging.getLogger(__name__)

_config_instance: TinyCacherConfig | None = None


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> TinyCacherConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in current directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated TinyCacherConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info("Loading environment from %s", env_path)
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                "Failed to load .env file from %s: %s",
                env_path,
                e,
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    memcached_servers = os.getenv("TINY_CACHER_MEMCACHED_SERVERS", "127.0.0.1:11211")

    config_dict = {
        "environment": os.getenv("ENVIRONMENT", "development"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "cache": {
            "strategy": os.getenv("TINY_CACHER_STRATEGY", "local"),
            "namespace": os.getenv("TINY_CACHER_NAMESPACE", ""),
            "default_ttl": os.getenv("TINY_CACHER_DEFAULT_TTL", "0"),
            "verbose": os.getenv("TINY_CACHER_VERBOSE", "false").lower() == "true",
            "storage_directory": os.getenv("TINY_CACHER_STORAGE_DIRECTORY"),
            "redis_host": os.getenv("TINY_CACHER_REDIS_HOST", "127.0.0.1"),
            "redis_port": os.getenv("TINY_CACHER_REDIS_PORT", "6379"),
            "redis_db": os.getenv("TINY_CACHER_REDIS_DB", "0"),
            "redis_password": os.getenv("TINY_CACHER_REDIS_PASSWORD"),
            "memcached_servers": [s.strip() for s in memcached_servers.split(",") if s.strip()],
            "sqlite_path": os.getenv("TINY_CACHER_SQLITE_PATH"),
            "sqlite_mode": os.getenv("TINY_CACHER_SQLITE_MODE", "rwc"),
        },
    }

    try:
        _config_instance = TinyCacherConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            "Configuration loaded successfully (environment: %s)",
            _config_instance.environment.value,
            extra={
                "environment": _config_instance.environment.value,
                "strategy": _config_instance.cache.strategy.value,
            },
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            "Configuration validation failed: %s",
            e,
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your TINY_CACHER_* environment variables.",
            details={"validation_errors": e.errors()},
        ) from e


def get_config() -> TinyCacherConfig:
    """
    Get the current configuration instance.

    Loads it from the environment on first access.
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> TinyCacherConfig:
    """Force reload configuration."""
    return load_config(env_file=env_file, reload=True)


def reset_config() -> None:
    """Drop the cached configuration instance. Used by tests."""
    global _config_instance
    _config_instance = None
