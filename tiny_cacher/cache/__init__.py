"""
tiny-cacher — Cache Module

Provides the cache facade and its pluggable storage backends.

Exports:
- facade.py: TinyCacher, the single entry point for cache operations
- factory.py: builds configured TinyCacher instances and tracks them by name
- interface.py: abstract backend interface all strategies implement
- backends/: one backend per storage strategy

Usage:
    from tiny_cacher.cache import TinyCacher

    cache = TinyCacher("local")
    cache.store("key", "value", ttl=3600)
    value = cache.fetch("key")
"""

from .backends.memory import SharedStore, get_shared_store
from .backends.session import SessionContext
from .facade import TinyCacher
from .factory import (
    close_all_cachers,
    create_cacher,
    get_cacher,
    list_cacher_instances,
    reset_cacher_factory,
)
from .interface import MISSING, CacheBackend
from .keys import CacheKey, KeyBuilder
from .strategy import Strategy, get_supported_strategies, is_supported_strategy

__all__ = [
    # Facade
    "TinyCacher",
    "MISSING",
    "Strategy",
    "get_supported_strategies",
    "is_supported_strategy",
    # Factory functions
    "create_cacher",
    "get_cacher",
    "close_all_cachers",
    "list_cacher_instances",
    "reset_cacher_factory",
    # Storage handles
    "SharedStore",
    "get_shared_store",
    "SessionContext",
    # Interface
    "CacheBackend",
    "CacheKey",
    "KeyBuilder",
]
