"""
tiny-cacher — Cache Backend Interface

Defines the abstract interface that every storage strategy implements.
The facade resolves keys, TTLs and arguments; backends only translate one
already-validated operation into their driver's native calls.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from ..errors import BackendTransactionError
from .keys import CacheKey

logger = logging.getLogger(__name__)


class _Missing:
    """Sentinel returned by quiet reads when an entry is not available."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class CacheBackend(ABC):
    """
    Abstract base class for cache backends.

    All backends must implement this interface so the facade can dispatch
    every operation the same way regardless of the selected strategy.

    Read misses are reported by raising NotFound, Expired or MalformedEntry;
    the facade converts them into MISSING in quiet mode.
    """

    #: Strategy name used in logs and error details
    name: str = "backend"

    #: Whether increment accepts fractional deltas natively
    supports_float_increment: bool = True

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    @abstractmethod
    def store(self, key: CacheKey, value: Any, overwrite: bool, ttl: int, expire_at: int) -> None:
        """
        Store a value.

        Args:
            key: Entry key
            value: Value to store (JSON-serializable for external backends)
            overwrite: Replace an existing unexpired entry instead of raising KeyExists
            ttl: Resolved TTL in seconds (0 = no expiry)
            expire_at: Absolute unix timestamp of expiry (0 = never)
        """

    @abstractmethod
    def fetch(self, key: CacheKey) -> Any:
        """
        Retrieve a value.

        Raises:
            NotFound: No entry is stored under the key
            Expired: The entry exists but its TTL has passed
            MalformedEntry: The stored record is unusable
        """

    @abstractmethod
    def exists(self, key: CacheKey) -> bool:
        """Check if an unexpired entry is stored under the key."""

    @abstractmethod
    def increment(self, key: CacheKey, delta: float) -> None:
        """Add delta to a numeric entry."""

    @abstractmethod
    def remove(self, key: CacheKey) -> None:
        """Delete an entry. Missing entries are not an error unless the backend says so."""

    @abstractmethod
    def invalidate(self, key: CacheKey, everything: bool) -> None:
        """
        Drop cached entries.

        Args:
            key: Namespace-only key of the active namespace
            everything: Drop every namespace instead of only the active one
        """

    def garbage_collect(self) -> None:
        """Delete expired entries. Backends relying on native TTL do nothing."""
        logger.debug("Garbage collection is not needed for %s backend", self.name)

    def close(self) -> None:
        """Release the backend's resources."""

    # ------------ Helpers ------------

    def _transaction_error(
        self,
        operation: str,
        error: Exception,
        key: CacheKey | None = None,
    ) -> BackendTransactionError:
        """Log a driver failure and build the facade-level error wrapping it."""
        raw_key = key.raw if key is not None else None
        extra = {"backend": self.name, "operation": operation, "key": raw_key, "error": str(error)}
        if self.verbose:
            logger.error(
                "Exception during %s on %s backend: %s",
                operation,
                self.name,
                error,
                extra=extra,
                exc_info=True,
            )
        else:
            logger.debug("Exception during %s on %s backend: %s", operation, self.name, error, extra=extra)
        return BackendTransactionError(self.name, operation, details={"key": raw_key, "error": str(error)})
