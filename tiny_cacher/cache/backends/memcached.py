"""
tiny-cacher — Memcached Cache Backend

Memcached cache implementation on top of pymemcache.

Memcached has no float increment and no scan-by-pattern:
- supports_float_increment is False, so the facade truncates deltas to integers
- invalidation enumerates keys through "stats cachedump" on every server and
  filters them client-side by prefix

Requires: pymemcache>=4.0
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
    from pymemcache.client.hash import HashClient
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Memcached client is required but not installed. "
        "Install with: pip install 'pymemcache>=4.0.0' or add 'pymemcache' to your dependencies."
    ) from e

DEFAULT_SERVERS: list[tuple[str, int]] = [("127.0.0.1", 11211)]


def _text(value: str | bytes) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


def connect(servers: list[tuple[str, int]] | None = None, verbose: bool = False) -> HashClient:
    """
    Create a Memcached client for the given (host, port) servers.

    Memcached connects on first use, so no round-trip happens here; use
    is_connected(client, probe=True) to check the servers answer.

    Raises:
        CacheConnectionError: If the client cannot be created
    """
    servers = list(servers) if servers else list(DEFAULT_SERVERS)
    try:
        client = HashClient(servers)
    except Exception as e:
        if verbose:
            logger.error(
                "Unable to create Memcached client for %s: %s",
                servers,
                e,
                extra={"servers": servers, "error": str(e)},
                exc_info=True,
            )
        raise CacheConnectionError("memcached", details={"servers": servers, "error": str(e)}) from e

    logger.info("Configured Memcached client for %d server(s)", len(servers))
    return client


def _server_clients(client: HashClient) -> list[Any]:
    """Per-server clients behind a HashClient."""
    return list(client.clients.values())


def is_connected(client: HashClient | None, probe: bool = False) -> bool:
    """Check a Memcached handle exists and, when probing, every server reports its version."""
    if client is None:
        return False
    if not probe:
        return True
    try:
        servers = _server_clients(client)
        return bool(servers) and all(server.version() for server in servers)
    except Exception as e:
        logger.debug("Memcached probe failed: %s", e)
        return False


class MemcachedBackend(CacheBackend):
    """
    Memcached cache backend with JSON serialization and TTL.

    Notes:
    - Keys are composite keys "cache:<namespace>:<key>".
    - Values are stored as UTF-8 JSON strings; integers stay plain digits so
      incr/decr work on them.
    - Expiry is left to Memcached; garbage_collect() is a no-op.
    """

    name = "memcached"
    supports_float_increment = False

    def __init__(self, client: HashClient, verbose: bool = False) -> None:
        super().__init__(verbose)
        self._client = client

    def store(self, key: CacheKey, value: Any, overwrite: bool, ttl: int, expire_at: int) -> None:
        payload = to_json(value)

        if not overwrite:
            try:
                current = self._client.get(key.composite)
            except Exception as e:
                raise self._transaction_error("get", e, key) from e
            if current is not None:
                raise KeyExists(key.raw or "")

        try:
            result = self._client.set(key.composite, payload, expire=ttl, noreply=False)
        except Exception as e:
            raise self._transaction_error("set", e, key) from e
        if not result:
            raise self._transaction_error("set", RuntimeError("SET was not stored"), key)

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
            return self._client.get(key.composite) is not None
        except Exception as e:
            raise self._transaction_error("get", e, key) from e

    def increment(self, key: CacheKey, delta: float) -> None:
        amount = int(delta)
        try:
            if amount < 0:
                self._client.decr(key.composite, -amount, noreply=False)
            else:
                self._client.incr(key.composite, amount, noreply=False)
        except Exception as e:
            raise self._transaction_error("incr" if amount >= 0 else "decr", e, key) from e

    def remove(self, key: CacheKey) -> None:
        try:
            self._client.delete(key.composite, noreply=False)
        except Exception as e:
            raise self._transaction_error("delete", e, key) from e

    def list_keys(self) -> list[str]:
        """Enumerate every key stored on every server (via stats items / cachedump)."""
        keys: list[str] = []
        for server in _server_clients(self._client):
            slabs = set()
            for stat in server.stats("items"):
                parts = _text(stat).split(":")
                if len(parts) == 3 and parts[0] == "items":
                    slabs.add(parts[1])
            for slab in sorted(slabs):
                keys.extend(_text(item) for item in server.stats("cachedump", slab, "0"))
        return keys

    def invalidate(self, key: CacheKey, everything: bool) -> None:
        prefix = f"{KEY_PREFIX}:" if everything else key.namespace_prefix
        try:
            matching = [k for k in self.list_keys() if k.startswith(prefix)]
            if matching:
                self._client.delete_many(matching, noreply=False)
        except Exception as e:
            raise self._transaction_error("invalidate", e) from e

        logger.info("Cleared %d keys with prefix '%s' from Memcached", len(matching), prefix)

    def close(self) -> None:
        """Close every server connection."""
        try:
            self._client.close()
            logger.info("Closed Memcached cache backend")
        except Exception as e:
            logger.error("Error closing Memcached client: %s", e, extra={"error": str(e)}, exc_info=True)
