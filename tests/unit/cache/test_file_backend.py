"""
tiny-cacher — File Cache Backend Tests

Tests the file strategy: directory layout, overwrite protection, JSON
decoding failures, unsupported increments and invalidation.
"""

import hashlib
import json
from pathlib import Path
from typing import Any

import pytest

from tiny_cacher import (
    MISSING,
    CacheIOError,
    ConfigurationError,
    DeserializationError,
    InvalidArgument,
    KeyExists,
    NotFound,
    SerializationError,
    TinyCacher,
)


def md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


class TestFileBackend:
    """Test suite for the file strategy."""

    @pytest.fixture
    def cache(self, temp_cache_dir: Path) -> TinyCacher:
        """Create a file cacher rooted at a temporary directory."""
        return TinyCacher("file", namespace="test").set_storage_directory(temp_cache_dir)

    def test_requires_storage_directory(self) -> None:
        """Test operations fail until a storage directory is set."""
        cache = TinyCacher("file")
        with pytest.raises(ConfigurationError):
            cache.store("key", "value")

    def test_set_storage_directory_creates_it(self, tmp_path: Path) -> None:
        """Test missing directories are created."""
        target = tmp_path / "a" / "b"
        cache = TinyCacher("file").set_storage_directory(target)

        assert target.is_dir()
        assert cache.get_storage_directory() == target
        assert cache.is_ready() is True

    def test_set_storage_directory_invalid(self, tmp_path: Path) -> None:
        """Test empty paths and paths that cannot be created."""
        with pytest.raises(InvalidArgument):
            TinyCacher("file").set_storage_directory("")

        blocker = tmp_path / "file.txt"
        blocker.write_text("x")
        cache = TinyCacher("file")
        with pytest.raises(CacheIOError):
            cache.set_storage_directory(blocker / "sub")
        assert cache.is_ready() is True

    def test_store_and_fetch(self, cache: TinyCacher, sample_cache_data: dict[str, Any]) -> None:
        """Test storing and fetching different data types."""
        cache.store_many(sample_cache_data)
        for key, expected_value in sample_cache_data.items():
            assert cache.fetch(key) == expected_value

    def test_file_layout(self, cache: TinyCacher, temp_cache_dir: Path) -> None:
        """Test entries are written to <root>/<namespace>/<key>.cache as JSON."""
        cache.store("key", {"a": [1, 2]})

        path = temp_cache_dir / md5("test") / f"{md5('key')}.cache"
        assert path.is_file()
        assert json.loads(path.read_text(encoding="utf-8")) == {"a": [1, 2]}

    def test_unserializable_value(self, cache: TinyCacher) -> None:
        """Test values JSON cannot encode are rejected."""
        with pytest.raises(SerializationError):
            cache.store("key", object())
        with pytest.raises(SerializationError):
            cache.store("key", float("nan"))

    def test_store_many_stops_at_failure(self, cache: TinyCacher) -> None:
        """Test a failing entry keeps earlier writes and skips the rest."""
        with pytest.raises(SerializationError):
            cache.store_many({"a": 1, "b": object(), "c": 3})

        assert cache.exists("a") is True
        assert cache.exists("b") is False
        assert cache.exists("c") is False

    def test_fetch_missing(self, cache: TinyCacher) -> None:
        """Test fetching a key that doesn't exist."""
        with pytest.raises(NotFound):
            cache.fetch("nonexistent")
        assert cache.fetch("nonexistent", quiet=True) is MISSING

    def test_fetch_corrupt_file(self, cache: TinyCacher, temp_cache_dir: Path) -> None:
        """Test bad JSON raises DeserializationError even in quiet mode."""
        cache.store("key", "value")
        (temp_cache_dir / md5("test") / f"{md5('key')}.cache").write_text("{not json")

        with pytest.raises(DeserializationError):
            cache.fetch("key")
        with pytest.raises(DeserializationError):
            cache.fetch("key", quiet=True)

    def test_store_without_overwrite(self, cache: TinyCacher) -> None:
        """Test an existing file is only replaced with overwrite."""
        cache.store("key1", "value1")

        with pytest.raises(KeyExists):
            cache.store("key1", "value2")
        assert cache.fetch("key1") == "value1"

        cache.store("key1", "value2", overwrite=True)
        assert cache.fetch("key1") == "value2"

    def test_increment_is_unsupported(self, cache: TinyCacher) -> None:
        """Test increments leave files unchanged."""
        cache.store("counter", 10)
        cache.set_verbose(True)

        cache.increment("counter", 5)
        cache.decrement("counter", 5)
        assert cache.fetch("counter") == 10

    def test_exists(self, cache: TinyCacher) -> None:
        """Test checking key existence."""
        assert cache.exists("key") is False
        cache.store("key", "value")
        assert cache.exists("key") is True
        assert cache.exists_all(["key"]) is True

    def test_remove(self, cache: TinyCacher) -> None:
        """Test removing a file, and the error when it is already gone."""
        cache.store("key", "value")
        cache.remove("key")
        assert cache.exists("key") is False

        with pytest.raises(CacheIOError):
            cache.remove("key")

    def test_invalidate_namespace(self, cache: TinyCacher, temp_cache_dir: Path) -> None:
        """Test invalidate() empties only the active namespace directory."""
        cache.store("key", "in test")
        cache.set_namespace("other")
        cache.store("key", "in other")

        cache.invalidate()
        assert cache.exists("key") is False
        assert list((temp_cache_dir / md5("other")).iterdir()) == []

        cache.set_namespace("test")
        assert cache.fetch("key") == "in test"

    def test_invalidate_all(self, cache: TinyCacher, temp_cache_dir: Path) -> None:
        """Test invalidate(all=True) empties the storage root but keeps it."""
        cache.store("key", "in test")
        cache.set_namespace("other")
        cache.store("key", "in other")

        cache.invalidate(all=True)
        assert temp_cache_dir.is_dir()
        assert list(temp_cache_dir.iterdir()) == []

    def test_invalidate_empty_namespace(self, cache: TinyCacher) -> None:
        """Test invalidating a namespace that has no directory yet."""
        cache.invalidate()

    def test_garbage_collect_is_noop(self, cache: TinyCacher) -> None:
        """Test garbage collection keeps entries written with a TTL."""
        cache.store("key", "value", ttl=1)
        cache.garbage_collect()
        assert cache.exists("key") is True
