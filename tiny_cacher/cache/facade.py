"""
tiny-cacher — Cache Facade

TinyCacher is the single entry point callers use. Every public operation:

1. validates its arguments (InvalidArgument before anything else happens)
2. ensures the selected strategy is ready (connected, configured, in a session)
3. builds the backend key for the active namespace
4. delegates to the one active CacheBackend

Examples:
    cache = TinyCacher("local", namespace="users", default_ttl=60)
    cache.store("alice", {"visits": 1})
    cache.fetch("alice")                  # {"visits": 1}
    cache.fetch("bob", quiet=True)        # MISSING

    cache = TinyCacher(Strategy.SQLITE).connect_to_sqlite("cache.db")
    cache.store("hits", 0)
    cache.increment("hits", 2.5)
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable, Mapping, MutableMapping
from pathlib import Path
from types import ModuleType
from typing import Any

from ..errors import (
    BackendUnavailable,
    CacheIOError,
    ConfigurationError,
    EntryMissError,
    InvalidArgument,
)
from .backends.file import FileBackend
from .backends.memory import LocalBackend, SharedBackend, SharedStore, get_shared_store
from .backends.session import SessionBackend, SessionContext
from .interface import MISSING, CacheBackend
from .keys import CacheKey, KeyBuilder
from .strategy import Strategy, get_supported_strategies, is_supported_strategy

logger = logging.getLogger(__name__)

_DRIVER_PACKAGES = {
    Strategy.REDIS: "redis>=5.0.0",
    Strategy.MEMCACHED: "pymemcache>=4.0.0",
    Strategy.SQLITE: "sqlite3",
}


def _backend_module(strategy: Strategy) -> ModuleType:
    """Lazy import of a driver-backed backend module."""
    try:
        if strategy is Strategy.REDIS:
            from .backends import redis as module
        elif strategy is Strategy.MEMCACHED:
            from .backends import memcached as module
        else:
            from .backends import sqlite as module
    except ImportError as e:
        package = _DRIVER_PACKAGES[strategy]
        logger.error(
            "%s backend selected but its driver is not installed",
            strategy.value,
            extra={"package": package, "error": str(e)},
        )
        raise BackendUnavailable(
            strategy.value,
            f"driver is not installed (pip install '{package}')",
            details={"package": package, "error": str(e)},
        ) from e
    return module


def _require_key(key: Any) -> str:
    if not isinstance(key, str) or key == "":
        raise InvalidArgument("Key cannot be an empty string", details={"key": repr(key)})
    return key


def _require_keys(keys: Iterable[Any] | None) -> list[str]:
    if keys is None or isinstance(keys, (str, bytes)):
        raise InvalidArgument("Invalid keys", details={"keys": repr(keys)})
    return [_require_key(key) for key in keys]


class TinyCacher:
    """
    Multi-backend cache facade.

    Args:
        strategy: Storage strategy (Strategy member, name alias or legacy code)
        namespace: Namespace partitioning every key ("" for none)
        default_ttl: TTL in seconds applied when store() gets none (0 = no expiry)
        verbose: Log backend failures at ERROR with tracebacks, and log notices
        shared_store: Store used by the shared strategy (process-wide one by default)
        session: Session context, or a raw session mapping, for the session strategy
    """

    def __init__(
        self,
        strategy: Strategy | str | int = Strategy.LOCAL,
        *,
        namespace: str = "",
        default_ttl: int = 0,
        verbose: bool = False,
        shared_store: SharedStore | None = None,
        session: SessionContext | MutableMapping[str, Any] | None = None,
    ) -> None:
        self._strategy = Strategy.parse(strategy)
        self._keys = KeyBuilder(namespace)
        self._default_ttl = max(0, int(default_ttl or 0))
        self._verbose = verbose
        self._ready = True

        self._redis: Any = None
        self._memcached: Any = None
        self._sqlite: Any = None
        self._storage_directory: Path | None = None

        self._shared_store = shared_store if shared_store is not None else get_shared_store()
        if isinstance(session, SessionContext):
            self._session = session
        else:
            self._session = SessionContext(session)

        self._local = LocalBackend(verbose)
        self._active: CacheBackend | None = None

    def __repr__(self) -> str:
        return f"TinyCacher(strategy={self._strategy.value!r}, namespace={self._keys.namespace!r})"

    def __enter__(self) -> TinyCacher:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close_connections(all=True)

    # ------------ Static helpers ------------

    @staticmethod
    def get_supported_strategies(numeric: bool = False, session: SessionContext | None = None) -> list[Any]:
        """List the strategies usable in the current runtime."""
        return get_supported_strategies(numeric=numeric, session=session)

    @staticmethod
    def is_supported_strategy(value: Any, session: SessionContext | None = None) -> bool:
        """Check whether a strategy name, member or legacy code is usable."""
        return is_supported_strategy(value, session=session)

    @staticmethod
    def run_shared_garbage_collector(store: SharedStore | None = None) -> int:
        """Delete expired entries from a shared store (the process-wide one by default)."""
        store = store if store is not None else get_shared_store()
        return store.garbage_collect()

    @staticmethod
    def run_session_garbage_collector(session: SessionContext) -> int:
        """Delete expired entries from a session context."""
        return session.garbage_collect()

    # ------------ Configuration ------------

    def set_strategy(self, strategy: Strategy | str | int) -> TinyCacher:
        self._strategy = Strategy.parse(strategy)
        self._active = None
        return self

    def get_strategy(self) -> Strategy:
        return self._strategy

    def get_strategy_name(self) -> str:
        return self._strategy.value

    def set_namespace(self, namespace: str | None) -> TinyCacher:
        self._keys.set_namespace(namespace)
        return self

    def get_namespace(self) -> str:
        return self._keys.namespace

    def set_default_ttl(self, ttl: int | None = 0) -> TinyCacher:
        """Set the TTL applied when store() gets none. Non-positive values disable it."""
        self._default_ttl = max(0, int(ttl or 0))
        return self

    def get_default_ttl(self) -> int:
        return self._default_ttl

    def set_verbose(self, verbose: bool = False) -> TinyCacher:
        self._verbose = bool(verbose)
        return self

    def get_verbose(self) -> bool:
        return self._verbose

    def set_storage_directory(self, path: str | Path) -> TinyCacher:
        """
        Set the root directory of the file strategy, creating it if needed.

        Raises:
            InvalidArgument: If path is empty
            CacheIOError: If the directory cannot be created
        """
        if path is None or str(path) == "":
            raise InvalidArgument("Invalid path")

        directory = Path(path)
        self._ready = False
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            if self._verbose:
                logger.error(
                    "Cannot create cache directory %s: %s",
                    directory,
                    e,
                    extra={"path": str(directory), "error": str(e)},
                    exc_info=True,
                )
            raise CacheIOError(
                "Cannot create the directory",
                details={"path": str(directory), "error": str(e)},
            ) from e
        finally:
            self._ready = True

        self._storage_directory = directory
        self._active = None
        return self

    def get_storage_directory(self) -> Path | None:
        return self._storage_directory

    def is_ready(self) -> bool:
        """False while a connection or the storage directory is being set up."""
        return self._ready

    # ------------ Connections ------------

    def connect_to_redis(
        self,
        host: str | None = None,
        port: int = 6379,
        db_index: int = 0,
        password: str | None = None,
    ) -> TinyCacher:
        """
        Connect to Redis.

        Raises:
            BackendUnavailable: If the redis client is not installed
            CacheConnectionError: If connecting, authenticating or selecting the database fails
        """
        module = _backend_module(Strategy.REDIS)
        self._ready = False
        try:
            client = module.connect(host, port, db_index, password, verbose=self._verbose)
        finally:
            self._ready = True

        self.close_redis_connection()
        self._redis = client
        return self

    def connect_to_memcached(self, servers: list[tuple[str, int]] | None = None) -> TinyCacher:
        """
        Connect to one or more Memcached servers given as (host, port) pairs.

        Raises:
            BackendUnavailable: If pymemcache is not installed
            CacheConnectionError: If the client cannot be created
        """
        module = _backend_module(Strategy.MEMCACHED)
        self._ready = False
        try:
            client = module.connect(servers, verbose=self._verbose)
        finally:
            self._ready = True

        self.close_memcached_connection()
        self._memcached = client
        return self

    def connect_to_sqlite(self, path: str | Path, mode: str | None = None) -> TinyCacher:
        """
        Open a SQLite database and create the cache table if needed.

        Args:
            path: Database file, or ":memory:"
            mode: "rwc" (default), "rw", "ro" or "memory"

        Raises:
            InvalidArgument: If path is empty or mode unknown
            BackendUnavailable: If the sqlite3 module is not available
            CacheConnectionError: If the database cannot be opened or initialized
        """
        if path is None or str(path) == "":
            raise InvalidArgument("Invalid SQLite database path")

        module = _backend_module(Strategy.SQLITE)
        self._ready = False
        try:
            conn = module.connect(str(path), mode, verbose=self._verbose)
        finally:
            self._ready = True

        self.close_sqlite_connection()
        self._sqlite = conn
        return self

    def redis_connected(self, probe: bool = False) -> bool:
        if self._redis is None:
            return False
        return bool(_backend_module(Strategy.REDIS).is_connected(self._redis, probe))

    def memcached_connected(self, probe: bool = False) -> bool:
        if self._memcached is None:
            return False
        return bool(_backend_module(Strategy.MEMCACHED).is_connected(self._memcached, probe))

    def sqlite_connected(self, probe: bool = False) -> bool:
        if self._sqlite is None:
            return False
        return bool(_backend_module(Strategy.SQLITE).is_connected(self._sqlite, probe))

    def close_redis_connection(self) -> TinyCacher:
        if self._redis is not None:
            _backend_module(Strategy.REDIS).RedisBackend(self._redis, self._verbose).close()
            self._redis = None
            self._reset_backend(Strategy.REDIS)
        return self

    def close_memcached_connection(self) -> TinyCacher:
        if self._memcached is not None:
            _backend_module(Strategy.MEMCACHED).MemcachedBackend(self._memcached, self._verbose).close()
            self._memcached = None
            self._reset_backend(Strategy.MEMCACHED)
        return self

    def close_sqlite_connection(self) -> TinyCacher:
        if self._sqlite is not None:
            _backend_module(Strategy.SQLITE).SQLiteBackend(self._sqlite, self._verbose).close()
            self._sqlite = None
            self._reset_backend(Strategy.SQLITE)
        return self

    def close_connections(self, all: bool = False) -> TinyCacher:
        """
        Close the connections the active strategy does not use.

        Args:
            all: Close every connection, including the one in use
        """
        if all or self._strategy is not Strategy.REDIS:
            self.close_redis_connection()
        if all or self._strategy is not Strategy.MEMCACHED:
            self.close_memcached_connection()
        if all or self._strategy is not Strategy.SQLITE:
            self.close_sqlite_connection()
        return self

    def close(self) -> None:
        """Close every connection."""
        self.close_connections(all=True)

    # ------------ Readiness ------------

    def _reset_backend(self, strategy: Strategy) -> None:
        if self._strategy is strategy:
            self._active = None

    def _build_backend(self) -> CacheBackend:
        strategy = self._strategy
        if strategy is Strategy.LOCAL:
            return self._local
        if strategy is Strategy.SHARED:
            return SharedBackend(self._shared_store, self._verbose)
        if strategy is Strategy.SESSION:
            return SessionBackend(self._session, self._verbose)
        if strategy is Strategy.REDIS:
            if self._redis is None:
                raise BackendUnavailable("redis", "Redis is not connected")
            return _backend_module(strategy).RedisBackend(self._redis, self._verbose)
        if strategy is Strategy.MEMCACHED:
            if self._memcached is None:
                raise BackendUnavailable("memcached", "Memcached is not connected")
            return _backend_module(strategy).MemcachedBackend(self._memcached, self._verbose)
        if strategy is Strategy.SQLITE:
            if self._sqlite is None:
                raise BackendUnavailable("sqlite3", "SQLite is not connected")
            return _backend_module(strategy).SQLiteBackend(self._sqlite, self._verbose)
        if self._storage_directory is None:
            raise ConfigurationError("No storage path defined", details={"strategy": strategy.value})
        return FileBackend(self._storage_directory, self._verbose)

    def ensure_ready(self) -> CacheBackend:
        """
        Return the backend of the active strategy, checking it can be used.

        Raises:
            BackendUnavailable: No session is active, or the strategy's
                connection has not been established
            ConfigurationError: The file strategy has no storage directory
        """
        if self._strategy is Strategy.SESSION and not self._session.is_available():
            raise BackendUnavailable("session", "no active session context")

        if self._active is None:
            self._active = self._build_backend()
        self._active.verbose = self._verbose
        return self._active

    def _expiry(self, ttl: int | None) -> tuple[int, int]:
        """Resolve (ttl, absolute expiry) for a store call."""
        ttl = int(ttl or 0)
        if ttl <= 0:
            ttl = self._default_ttl
        if ttl <= 0:
            return 0, 0
        return ttl, int(time.time()) + ttl

    # ------------ Store ------------

    def store(self, key: str, value: Any, overwrite: bool = False, ttl: int | None = None) -> None:
        """
        Store a value under key.

        Args:
            key: Entry key (non-empty string)
            value: Value to store; JSON-serializable for every strategy but
                local, shared and session
            overwrite: Replace an existing unexpired entry
            ttl: Seconds until expiry; the default TTL applies when omitted or <= 0

        Raises:
            InvalidArgument: If key is empty or not a string
            KeyExists: If overwrite is False and an unexpired entry exists
            SerializationError: If the value cannot be encoded as JSON
        """
        key = _require_key(key)
        backend = self.ensure_ready()
        ttl, expire_at = self._expiry(ttl)
        backend.store(self._keys.build_key(key), value, overwrite, ttl, expire_at)

    def store_many(self, entries: Mapping[str, Any], overwrite: bool = False, ttl: int | None = None) -> None:
        """Store multiple entries. Keys are validated before anything is written."""
        if entries is None or not isinstance(entries, Mapping):
            raise InvalidArgument("Invalid elements", details={"elements": repr(entries)})
        _require_keys(entries.keys())

        backend = self.ensure_ready()
        ttl, expire_at = self._expiry(ttl)
        for key, value in entries.items():
            backend.store(self._keys.build_key(key), value, overwrite, ttl, expire_at)

    # ------------ Fetch ------------

    def _fetch(self, backend: CacheBackend, key: str, quiet: bool) -> Any:
        try:
            return backend.fetch(self._keys.build_key(key))
        except EntryMissError:
            if quiet:
                return MISSING
            raise

    def fetch(self, key: str, quiet: bool = False) -> Any:
        """
        Return the value stored under key.

        Raises:
            NotFound, Expired, MalformedEntry: Unless quiet, which returns MISSING instead
            DeserializationError: If the stored data is not valid JSON
        """
        key = _require_key(key)
        return self._fetch(self.ensure_ready(), key, quiet)

    def fetch_many(self, keys: Iterable[str], quiet: bool = False, omit_missing: bool = False) -> dict[str, Any]:
        """
        Fetch multiple entries.

        Missing entries map to None, or are left out when omit_missing is set.
        Without quiet the first miss raises.
        """
        keys = _require_keys(keys)
        backend = self.ensure_ready()

        results: dict[str, Any] = {}
        for key in keys:
            value = self._fetch(backend, key, quiet)
            if value is MISSING:
                if omit_missing:
                    continue
                value = None
            results[key] = value
        return results

    # ------------ Exists ------------

    def exists(self, key: str) -> bool:
        key = _require_key(key)
        return self.ensure_ready().exists(self._keys.build_key(key))

    def exists_many(self, keys: Iterable[str]) -> dict[str, bool]:
        keys = _require_keys(keys)
        backend = self.ensure_ready()
        return {key: backend.exists(self._keys.build_key(key)) for key in keys}

    def exists_all(self, keys: Iterable[str]) -> bool:
        """True if every key exists; stops at the first missing one."""
        keys = _require_keys(keys)
        backend = self.ensure_ready()
        return all(backend.exists(self._keys.build_key(key)) for key in keys)

    # ------------ Increment ------------

    def _increment(self, backend: CacheBackend, key: CacheKey, delta: float) -> None:
        if not backend.supports_float_increment:
            converted = math.trunc(delta)
            if converted != delta and self._verbose:
                logger.info(
                    "%s does not support fractional deltas, converting %s to %s",
                    backend.name,
                    delta,
                    converted,
                    extra={"backend": backend.name, "delta": delta, "converted": converted},
                )
            if converted == 0:
                return
            delta = converted
        backend.increment(key, delta)

    def increment(self, key: str, delta: float = 1) -> None:
        """
        Add delta to a numeric entry. Non-numeric and missing entries are left alone.

        Memcached only supports integer deltas: fractional ones are truncated toward zero.
        """
        key = _require_key(key)
        if delta == 0:
            return
        backend = self.ensure_ready()
        self._increment(backend, self._keys.build_key(key), delta)

    def increment_many(self, keys: Iterable[str], delta: float = 1) -> None:
        keys = _require_keys(keys)
        if delta == 0:
            return
        backend = self.ensure_ready()
        for key in keys:
            self._increment(backend, self._keys.build_key(key), delta)

    def decrement(self, key: str, delta: float = 1) -> None:
        """Subtract delta from a numeric entry."""
        self.increment(key, -delta)

    def decrement_many(self, keys: Iterable[str], delta: float = 1) -> None:
        self.increment_many(keys, -delta)

    # ------------ Remove ------------

    def remove(self, key: str) -> None:
        """
        Delete an entry. Missing entries are ignored, except by the file
        strategy which raises CacheIOError when the file cannot be unlinked.
        """
        key = _require_key(key)
        self.ensure_ready().remove(self._keys.build_key(key))

    def remove_many(self, keys: Iterable[str]) -> None:
        keys = _require_keys(keys)
        backend = self.ensure_ready()
        for key in keys:
            backend.remove(self._keys.build_key(key))

    def invalidate(self, all: bool = False) -> None:
        """
        Drop every entry of the active namespace.

        Args:
            all: Drop the entries of every namespace instead
        """
        self.ensure_ready().invalidate(self._keys.build_key(), all)

    def garbage_collect(self) -> None:
        """Delete expired entries where the backend does not expire them natively."""
        self.ensure_ready().garbage_collect()

    # ------------ Aliases ------------

    push = store
    set = store
    push_many = store_many
    set_many = store_many
    pull = fetch
    get = fetch
    pull_many = fetch_many
    get_many = fetch_many
    has = exists
    has_many = exists_many
    has_all = exists_all
