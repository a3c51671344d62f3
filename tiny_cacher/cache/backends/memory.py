"""
tiny-cacher — In-Process Cache Backends

Dictionary-backed storage shared by the local, shared and session strategies.
Entries live at storage[namespace_hash][entry_hash] as
{"value": <value>, "expire": <unix timestamp, 0 = never>}.

Expiry is checked lazily: reads that find an expired entry delete it, and
garbage_collect() sweeps every namespace.
"""

import copy
import logging
import time
from typing import Any

from ...errors import Expired, KeyExists, MalformedEntry, NotFound
from ..interface import CacheBackend
from ..keys import CacheKey
from ..serialization import is_numeric

logger = logging.getLogger(__name__)

Storage = dict[str, dict[str, Any]]


def is_well_formed(entry: Any) -> bool:
    """Check an entry carries both its value and an integer expiry."""
    if not isinstance(entry, dict) or "value" not in entry:
        return False
    expire = entry.get("expire")
    return isinstance(expire, int) and not isinstance(expire, bool)


def is_expired(entry: dict[str, Any], now: int | None = None) -> bool:
    """Check if a well-formed entry is past its expiry."""
    now = int(time.time()) if now is None else now
    return 0 < entry["expire"] < now


def sweep_expired(storage: Storage) -> int:
    """Delete every expired entry in storage. Returns the number removed."""
    now = int(time.time())
    removed = 0
    for entries in storage.values():
        if not isinstance(entries, dict):
            continue
        for entry_key in [k for k, e in entries.items() if is_well_formed(e) and is_expired(e, now)]:
            del entries[entry_key]
            removed += 1
    return removed


class MappingBackend(CacheBackend):
    """
    Base class for dictionary-backed strategies.

    Subclasses only decide where the top-level mapping lives. Values are
    deep-copied on store and fetch, so callers never share state with the cache.
    """

    def _storage(self) -> Storage:
        raise NotImplementedError

    def _changed(self) -> None:
        """Hook called after the mapping was mutated."""

    def _entries(self, key: CacheKey, create: bool = False) -> dict[str, Any] | None:
        storage = self._storage()
        entries = storage.get(key.namespace)
        if not isinstance(entries, dict):
            if not create:
                return None
            entries = {}
            storage[key.namespace] = entries
        return entries

    def store(self, key: CacheKey, value: Any, overwrite: bool, ttl: int, expire_at: int) -> None:
        entries = self._entries(key, create=True)
        assert entries is not None

        if not overwrite and key.key in entries:
            current = entries[key.key]
            if not is_well_formed(current) or not is_expired(current):
                raise KeyExists(key.raw or "")

        entries[key.key] = {"value": copy.deepcopy(value), "expire": expire_at}
        self._changed()

    def fetch(self, key: CacheKey) -> Any:
        entries = self._entries(key)
        if entries is None or key.key not in entries:
            raise NotFound(key.raw or "")

        entry = entries[key.key]
        if not is_well_formed(entry):
            raise MalformedEntry(key.raw or "")

        if is_expired(entry):
            del entries[key.key]
            self._changed()
            raise Expired(key.raw or "")

        return copy.deepcopy(entry["value"])

    def exists(self, key: CacheKey) -> bool:
        entries = self._entries(key)
        if entries is None or key.key not in entries:
            return False

        entry = entries[key.key]
        if not is_well_formed(entry):
            return False

        if is_expired(entry):
            del entries[key.key]
            self._changed()
            return False

        return True

    def increment(self, key: CacheKey, delta: float) -> None:
        entries = self._entries(key)
        if entries is None:
            return

        entry = entries.get(key.key)
        if not is_well_formed(entry) or is_expired(entry) or not is_numeric(entry["value"]):
            logger.debug("Skipping increment of non-numeric entry in %s backend", self.name)
            return

        entry["value"] += delta
        self._changed()

    def remove(self, key: CacheKey) -> None:
        entries = self._entries(key)
        if entries is not None and entries.pop(key.key, None) is not None:
            self._changed()

    def invalidate(self, key: CacheKey, everything: bool) -> None:
        storage = self._storage()
        if everything:
            size = len(storage)
            storage.clear()
            logger.info("Cleared %d namespace(s) from %s cache", size, self.name)
        else:
            storage.pop(key.namespace, None)
            logger.info("Cleared namespace '%s' from %s cache", key.namespace, self.name)
        self._changed()

    def garbage_collect(self) -> None:
        removed = sweep_expired(self._storage())
        if removed:
            self._changed()
        logger.debug("Garbage collected %d expired entries from %s cache", removed, self.name)


class LocalBackend(MappingBackend):
    """Storage private to one facade instance."""

    name = "local"

    def __init__(self, verbose: bool = False) -> None:
        super().__init__(verbose)
        self._data: Storage = {}

    def _storage(self) -> Storage:
        if not isinstance(self._data, dict):
            self._data = {}
        return self._data

    def close(self) -> None:
        logger.debug("Local cache backend closed")


class SharedStore:
    """
    Storage visible to every facade attached to it.

    One instance is normally shared process-wide (see get_shared_store()),
    but separate stores can be created to isolate groups of facades.
    Not thread-safe; concurrent threads need external synchronization.
    """

    def __init__(self) -> None:
        self.data: Storage = {}

    def storage(self) -> Storage:
        if not isinstance(self.data, dict):
            self.data = {}
        return self.data

    def garbage_collect(self) -> int:
        """Delete expired entries from every namespace."""
        return sweep_expired(self.storage())

    def clear(self) -> None:
        self.data = {}


_shared_store = SharedStore()


def get_shared_store() -> SharedStore:
    """Return the process-wide shared store."""
    return _shared_store


class SharedBackend(MappingBackend):
    """Storage living in a SharedStore handle."""

    name = "shared"

    def __init__(self, store: SharedStore, verbose: bool = False) -> None:
        super().__init__(verbose)
        self._shared = store

    def _storage(self) -> Storage:
        return self._shared.storage()
