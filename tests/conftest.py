"""
tiny-cacher — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
import socket
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


def _port_open(host: str, port: int) -> bool:
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex((host, port))
        sock.close()
        return result == 0
    except Exception:
        return False


# Server availability checkers
def is_redis_available() -> bool:
    """Check if Redis server is available for testing."""
    return _port_open("localhost", 6379)


def is_memcached_available() -> bool:
    """Check if Memcached server is available for testing."""
    return _port_open("localhost", 11211)


# Skip markers for server-backed tests
redis_available = pytest.mark.skipif(not is_redis_available(), reason="Redis server not available")
memcached_available = pytest.mark.skipif(not is_memcached_available(), reason="Memcached server not available")


class FakeSession(dict):
    """Dict-based stand-in for a web framework session with change tracking."""

    modified = False


@pytest.fixture
def test_redis_db() -> int:
    """Redis database index used for testing (15 for isolation)."""
    return int(os.environ.get("TEST_REDIS_DB", "15"))


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample JSON-compatible data for cache testing."""
    return {
        "simple_string": "hello",
        "simple_unicode": "cached for next uses 🍭",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "simple_none": None,
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
    }


@pytest.fixture
def fake_session() -> FakeSession:
    """Empty session mapping."""
    return FakeSession()


@pytest.fixture
def mock_env_local(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the local strategy."""
    monkeypatch.setenv("TINY_CACHER_STRATEGY", "local")
    monkeypatch.setenv("TINY_CACHER_NAMESPACE", "test")
    monkeypatch.setenv("TINY_CACHER_DEFAULT_TTL", "3600")


@pytest.fixture
def temp_cache_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for file cache testing."""
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    return cache_dir


@pytest.fixture(autouse=True)
def reset_cacher_factory() -> Generator[None, None, None]:
    """Reset factory, configuration and shared store after each test to prevent state leakage."""
    yield
    from tiny_cacher.cache.backends.memory import get_shared_store
    from tiny_cacher.cache.factory import close_all_cachers
    from tiny_cacher.config import reset_config

    close_all_cachers()
    reset_config()
    get_shared_store().clear()
