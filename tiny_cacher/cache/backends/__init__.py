"""
tiny-cacher — Cache Backends

Exports the backends that have no third-party driver.

Redis, Memcached and SQLite backends are lazy-loaded by the facade to avoid a
hard dependency on their drivers.
"""

from .file import FileBackend
from .memory import LocalBackend, SharedBackend, SharedStore, get_shared_store
from .session import SessionBackend, SessionContext

__all__ = [
    "FileBackend",
    "LocalBackend",
    "SharedBackend",
    "SharedStore",
    "get_shared_store",
    "SessionBackend",
    "SessionContext",
]
