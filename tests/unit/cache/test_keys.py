"""
tiny-cacher — Key Builder Tests

Tests namespace hashing, entry hashing and composite key layout.
"""

import hashlib

from tiny_cacher.cache.keys import KEY_PREFIX, NO_NAMESPACE, CacheKey, KeyBuilder, content_hash


def md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


class TestKeyBuilder:
    """Test suite for KeyBuilder."""

    def test_empty_namespace_uses_sentinel(self) -> None:
        """Test the namespace hash is '*' when no namespace is set."""
        builder = KeyBuilder()
        assert builder.namespace == ""
        assert builder.namespace_hash() == NO_NAMESPACE

    def test_namespace_is_hashed(self) -> None:
        """Test a non-empty namespace is stored as its MD5 digest."""
        builder = KeyBuilder("users")
        assert builder.namespace_hash() == md5("users")

    def test_build_key(self) -> None:
        """Test entry hash and composite key."""
        key = KeyBuilder("users").build_key("alice")

        assert key.namespace == md5("users")
        assert key.key == md5("alice")
        assert key.raw == "alice"
        assert key.composite == f"{KEY_PREFIX}:{md5('users')}:{md5('alice')}"

    def test_build_key_without_namespace(self) -> None:
        """Test the composite key carries the sentinel when there is no namespace."""
        key = KeyBuilder().build_key("alice")
        assert key.composite == f"cache:*:{md5('alice')}"

    def test_namespace_only_key(self) -> None:
        """Test building a key without an entry key."""
        key = KeyBuilder("users").build_key()

        assert key.key is None
        assert key.composite is None
        assert key.namespace_prefix == f"cache:{md5('users')}:"

    def test_set_namespace_recomputes_hash(self) -> None:
        """Test changing the namespace changes the hash, and clearing it restores the sentinel."""
        builder = KeyBuilder("first")
        builder.set_namespace("second")
        assert builder.namespace_hash() == md5("second")

        builder.set_namespace("")
        assert builder.namespace_hash() == NO_NAMESPACE

        builder.set_namespace(None)
        assert builder.namespace == ""

    def test_keys_are_deterministic(self) -> None:
        """Test identical namespace and key always give identical keys."""
        assert KeyBuilder("ns").build_key("k") == KeyBuilder("ns").build_key("k")

    def test_namespaces_never_collide(self) -> None:
        """Test the same entry key in two namespaces gives different composites."""
        first = KeyBuilder("a").build_key("k")
        second = KeyBuilder("b").build_key("k")

        assert first.key == second.key
        assert first.composite != second.composite

    def test_cache_key_is_frozen(self) -> None:
        """Test CacheKey is hashable and usable as a dict key."""
        key = CacheKey(namespace="*", key=content_hash("x"), raw="x")
        assert {key: 1}[key] == 1
