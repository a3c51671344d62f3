"""
tiny-cacher — Redis Cache Backend

Redis cache implementation with:
- JSON serialization for values
- Per-key TTL via SET EX
- Native atomic float increments (INCRBYFLOAT)
- Namespace invalidation via SCAN + batched DEL

Requires: redis>=5.0

Example:
    client = connect("127.0.0.1", 6379, db_index=0)
    backend = RedisBackend(client)
"""

from __future__ import annotations

import logging
from typing import Any

from ...errors import CacheConnectionError, KeyExists, NotFound
from ..interface import CacheBackend
from ..keys import KEY_PREFIX, CacheKey
from ..serialization import from_json, to_json

logger = logging.getLogger(__name__)

try:
    from redis import Redis
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6379

# Keys deleted per DEL command during invalidation
_DELETE_BATCH_SIZE = 1000


def connect(
    host: str | None = None,
    port: int = DEFAULT_PORT,
    db_index: int = 0,
    password: str | None = None,
    verbose: bool = False,
) -> Redis:
    """
    Open a Redis connection, authenticate and select the database.

    Invalid arguments fall back to defaults: empty host -> 127.0.0.1,
    out-of-range port -> 6379, negative database index -> 0.

    Raises:
        CacheConnectionError: If the server cannot be reached, authentication
            fails or the database cannot be selected
    """
    host = host or DEFAULT_HOST
    if port <= 0 or port > 65535:
        port = DEFAULT_PORT
    db_index = max(0, db_index)

    client = Redis(
        host=host,
        port=port,
        db=db_index,
        password=password or None,
        decode_responses=True,
    )
    try:
        # Redis connects lazily; PING forces connect, AUTH and SELECT
        client.ping()
    except Exception as e:
        if verbose:
            logger.error(
                "Unable to connect to Redis at %s:%s: %s",
                host,
                port,
                e,
                extra={"host": host, "port": port, "db": db_index, "error": str(e)},
                exc_info=True,
            )
        try:
            client.close()
        except Exception as close_error:
            logger.debug("Error closing partial Redis connection: %s", close_error)
        raise CacheConnectionError(
            "redis",
            details={"host": host, "port": port, "db": db_index, "error": str(e)},
        ) from e

    logger.info("Connected to Redis at %s:%s (db %d)", host, port, db_index)
    return client


def is_connected(client: Redis | None, probe: bool = False) -> bool:
    """Check a Redis handle exists and, when probing, answers PING."""
    if client is None:
        return False
    if not probe:
        return True
    try:
        return bool(client.ping())
    except Exception as e:
        logger.debug("Redis probe failed: %s", e)
        return False


class RedisBackend(CacheBackend):
    """
    Redis cache backend with JSON serialization and TTL.

    Notes:
    - Keys are composite keys "cache:<namespace>:<key>".
    - Values are stored as UTF-8 JSON strings.
    - Expiry is left to Redis; garbage_collect() is a no-op.
    """

    name = "redis"

    def __init__(self, client: Redis, verbose: bool = False) -> None:
        super().__init__(verbose)
        self._client = client

    def store(self, key: CacheKey, value: Any, overwrite: bool, ttl: int, expire_at: int) -> None:
        payload = to_json(value)

        if not overwrite:
            try:
                found = self._client.exists(key.composite)
            except Exception as e:
                raise self._transaction_error("exists", e, key) from e
            if found:
                raise KeyExists(key.raw or "")

        try:
            result = self._client.set(name=key.composite, value=payload, ex=ttl if ttl > 0 else None)
        except Exception as e:
            raise self._transaction_error("set", e, key) from e
        if not result:
            raise self._transaction_error("set", RuntimeError("SET was not acknowledged"), key)

    def fetch(self, key: CacheKey) -> Any:
        try:
            data = self._client.get(key.composite)
        except Exception as e:
            raise self._transaction_error("get", e, key) from e

        if data is None:
            raise NotFound(key.raw or "")
        return from_json(data)

    def exists(self, key: CacheKey) -> bool:
        try:
            return bool(self._client.exists(key.composite))
        except Exception as e:
            raise self._transaction_error("exists", e, key) from e

    def increment(self, key: CacheKey, delta: float) -> None:
        try:
            self._client.incrbyfloat(key.composite, delta)
        except Exception as e:
            raise self._transaction_error("incrbyfloat", e, key) from e

    def remove(self, key: CacheKey) -> None:
        try:
            self._client.delete(key.composite)
        except Exception as e:
            raise self._transaction_error("delete", e, key) from e

    def invalidate(self, key: CacheKey, everything: bool) -> None:
        """
        Clear entries of every namespace or of the active one.

        Implementation: SCAN match "cache:*" (or "cache:<namespace>:*") and DEL in batches.
        """
        pattern = f"{KEY_PREFIX}:*" if everything else f"{key.namespace_prefix}*"
        try:
            keys = list(self._client.scan_iter(match=pattern, count=_DELETE_BATCH_SIZE))
            total_deleted = 0
            for i in range(0, len(keys), _DELETE_BATCH_SIZE):
                total_deleted += int(self._client.delete(*keys[i : i + _DELETE_BATCH_SIZE]))
        except Exception as e:
            raise self._transaction_error("invalidate", e) from e

        logger.info("Cleared %d keys matching '%s' from Redis", total_deleted, pattern)

    def close(self) -> None:
        """Close the Redis client and release resources."""
        try:
            self._client.close()
            logger.info("Closed Redis cache backend")
        except Exception as e:
            logger.error("Error closing Redis client: %s", e, extra={"error": str(e)}, exc_info=True)
