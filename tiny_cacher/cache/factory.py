"""
tiny-cacher — Cache Factory

Builds configured TinyCacher instances and keeps a registry of them by name.

Key points:
- Strategy and connection settings come from a CacheConfig (the global
  configuration when none is given, see tiny_cacher.config)
- Driver-backed strategies are connected before the instance is registered
- close_all_cachers() closes every connection on shutdown

Examples:
    from tiny_cacher import create_cacher, get_cacher

    # Uses env-configured strategy (local by default)
    cache = create_cacher()

    # Or explicitly supply a CacheConfig (e.g., for tests)
    from tiny_cacher.config import CacheConfig
    cfg = CacheConfig(strategy="sqlite3", sqlite_path="cache.db", default_ttl=600)
    sqlite_cache = create_cacher(cfg, name="sqlite")

    # Strategy toggle via env:
    #   TINY_CACHER_STRATEGY=redis TINY_CACHER_REDIS_HOST=localhost python app.py
"""

from __future__ import annotations

import logging

from ..config import CacheConfig, get_config
from ..errors import ConfigurationError, TinyCacherError
from .backends.memory import SharedStore
from .backends.session import SessionContext
from .facade import TinyCacher
from .strategy import Strategy

logger = logging.getLogger(__name__)

# Global cacher instances registry
_cacher_instances: dict[str, TinyCacher] = {}


def _connect(cacher: TinyCacher, config: CacheConfig) -> None:
    """Open the connection (or storage directory) the configured strategy needs."""
    if config.strategy == Strategy.REDIS:
        cacher.connect_to_redis(
            config.redis_host,
            config.redis_port,
            config.redis_db,
            config.redis_password,
        )
    elif config.strategy == Strategy.MEMCACHED:
        cacher.connect_to_memcached(config.memcached_server_tuples())
    elif config.strategy == Strategy.SQLITE:
        if not config.sqlite_path:
            raise ConfigurationError(
                "sqlite_path must be set when strategy=sqlite3",
                details={"env": "TINY_CACHER_SQLITE_PATH", "strategy": "sqlite3"},
            )
        cacher.connect_to_sqlite(config.sqlite_path, config.sqlite_mode.value)
    elif config.strategy == Strategy.FILE:
        if not config.storage_directory:
            raise ConfigurationError(
                "storage_directory must be set when strategy=file",
                details={"env": "TINY_CACHER_STORAGE_DIRECTORY", "strategy": "file"},
            )
        cacher.set_storage_directory(config.storage_directory)


def create_cacher(
    config: CacheConfig | None = None,
    name: str = "default",
    *,
    shared_store: SharedStore | None = None,
    session: SessionContext | None = None,
) -> TinyCacher:
    """
    Create a cache facade based on configuration.

    Args:
        config: Cache configuration (uses global config if not provided)
        name: Instance name (for multiple cacher instances)
        shared_store: Store for the shared strategy (process-wide one by default)
        session: Session context for the session strategy

    Returns:
        Configured and connected TinyCacher instance

    Raises:
        ConfigurationError: If configuration is invalid or creation fails unexpectedly
        CacheConnectionError: If the configured backend cannot be reached
        BackendUnavailable: If the configured backend's driver is not installed
    """
    # Return existing instance if already created
    if name in _cacher_instances:
        logger.debug("Returning existing cacher instance: %s", name)
        return _cacher_instances[name]

    # Use global config if not provided
    if config is None:
        config = get_config().cache

    logger.info(
        "Creating cacher instance '%s' with strategy: %s",
        name,
        config.strategy.value,
        extra={"cacher_name": name, "strategy": config.strategy.value},
    )

    try:
        cacher = TinyCacher(
            config.strategy,
            namespace=config.namespace,
            default_ttl=config.default_ttl,
            verbose=config.verbose,
            shared_store=shared_store,
            session=session,
        )
        _connect(cacher, config)

        # Store instance in registry
        _cacher_instances[name] = cacher

        logger.info(
            "Cacher instance '%s' created successfully",
            name,
            extra={"cacher_name": name, "strategy": config.strategy.value},
        )

        return cacher

    except TinyCacherError:
        # Re-raise facade errors as-is (already logged where raised)
        raise
    except Exception as e:
        logger.error(
            "Unexpected error creating cacher instance '%s': %s",
            name,
            e,
            extra={"cacher_name": name, "strategy": config.strategy.value, "error": str(e)},
            exc_info=True,
        )
        raise ConfigurationError(
            f"Failed to create cacher instance '{name}': {e}",
            details={"cacher_name": name, "strategy": config.strategy.value, "error": str(e)},
        ) from e


def get_cacher(name: str = "default") -> TinyCacher:
    """
    Get an existing cacher instance by name.

    If the instance doesn't exist, it will be created automatically
    using the global configuration.
    """
    if name not in _cacher_instances:
        logger.debug("Cacher instance '%s' not found, creating new instance", name)
        return create_cacher(name=name)

    return _cacher_instances[name]


def close_all_cachers() -> None:
    """
    Close every connection of every registered instance and clear the registry.

    Call during graceful shutdown.
    """
    if not _cacher_instances:
        logger.debug("No cacher instances to close")
        return

    logger.info("Closing %d cacher instance(s)...", len(_cacher_instances))

    for name, cacher in list(_cacher_instances.items()):
        try:
            cacher.close_connections(all=True)
            logger.info("Closed cacher instance: %s", name)
        except Exception as e:
            logger.error(
                "Error closing cacher instance '%s': %s",
                name,
                e,
                extra={"cacher_name": name, "error": str(e)},
                exc_info=True,
            )

    _cacher_instances.clear()
    logger.info("All cacher instances closed")


def reset_cacher_factory() -> None:
    """
    Reset the factory by clearing all instance references.

    Does NOT close connections - use close_all_cachers() for proper cleanup.

    Warning: Only use this in testing contexts.
    """
    count = len(_cacher_instances)
    _cacher_instances.clear()
    logger.debug("Reset cacher factory, cleared %d instance reference(s)", count)


def list_cacher_instances() -> list[str]:
    """List all registered cacher instance names."""
    return list(_cacher_instances.keys())
