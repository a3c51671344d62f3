"""
tiny-cacher — Key Builder

Derives the identifiers backends store entries under:

- namespace: MD5 hex digest of the namespace, or "*" when no namespace is set
- key: MD5 hex digest of the raw entry key (None when building a namespace-only key)
- composite: "cache:<namespace>:<key>" for backends that need one flat key
"""

import hashlib
from dataclasses import dataclass

KEY_PREFIX = "cache"
NO_NAMESPACE = "*"


def content_hash(value: str) -> str:
    """Hex digest used for namespaces and entry keys."""
    return hashlib.md5(value.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheKey:
    """Backend-facing identifiers for one cache entry (or one namespace)."""

    namespace: str
    key: str | None = None
    raw: str | None = None

    @property
    def composite(self) -> str | None:
        """Flat key used by Redis and Memcached."""
        if self.key is None:
            return None
        return f"{KEY_PREFIX}:{self.namespace}:{self.key}"

    @property
    def namespace_prefix(self) -> str:
        """Prefix shared by every composite key in this namespace."""
        return f"{KEY_PREFIX}:{self.namespace}:"


class KeyBuilder:
    """Builds CacheKey instances for the current namespace."""

    def __init__(self, namespace: str = ""):
        self._namespace = ""
        self._namespace_hash = NO_NAMESPACE
        self.set_namespace(namespace)

    @property
    def namespace(self) -> str:
        return self._namespace

    def set_namespace(self, namespace: str | None) -> None:
        """Change the namespace, recomputing its hash only when it differs."""
        namespace = namespace or ""
        if namespace != self._namespace:
            self._namespace_hash = content_hash(namespace) if namespace else NO_NAMESPACE
            self._namespace = namespace

    def namespace_hash(self) -> str:
        return self._namespace_hash

    def build_key(self, raw_key: str | None = None) -> CacheKey:
        """Build the key for an entry, or for the namespace itself when raw_key is empty."""
        entry_hash = content_hash(raw_key) if raw_key else None
        return CacheKey(namespace=self._namespace_hash, key=entry_hash, raw=raw_key or None)
