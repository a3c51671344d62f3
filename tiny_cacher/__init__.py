"""
tiny-cacher — Multi-Backend Cache Facade

One key/value cache API over process-local, shared, session, Redis,
Memcached, SQLite and file storage, with namespaces and per-entry TTL.
"""

__version__ = "1.0.0"

# Export main components for external use
from .cache import (
    MISSING,
    SessionContext,
    SharedStore,
    Strategy,
    TinyCacher,
    close_all_cachers,
    create_cacher,
    get_cacher,
    get_shared_store,
    list_cacher_instances,
    reset_cacher_factory,
)
from .config import CacheConfig, get_config, load_config
from .errors import (
    BackendTransactionError,
    BackendUnavailable,
    CacheConnectionError,
    CacheIOError,
    ConfigurationError,
    DeserializationError,
    EntryMissError,
    ErrorCode,
    Expired,
    InvalidArgument,
    KeyExists,
    MalformedEntry,
    NotFound,
    SerializationError,
    TinyCacherError,
)

__all__ = [
    "__version__",
    # Facade
    "TinyCacher",
    "Strategy",
    "MISSING",
    "SharedStore",
    "get_shared_store",
    "SessionContext",
    # Factory
    "create_cacher",
    "get_cacher",
    "close_all_cachers",
    "list_cacher_instances",
    "reset_cacher_factory",
    # Configuration
    "CacheConfig",
    "get_config",
    "load_config",
    # Errors
    "ErrorCode",
    "TinyCacherError",
    "InvalidArgument",
    "ConfigurationError",
    "BackendUnavailable",
    "CacheConnectionError",
    "KeyExists",
    "EntryMissError",
    "NotFound",
    "Expired",
    "MalformedEntry",
    "SerializationError",
    "DeserializationError",
    "CacheIOError",
    "BackendTransactionError",
]
