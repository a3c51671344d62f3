"""
tiny-cacher — Strategy Tests

Tests strategy alias parsing and runtime availability checks.
"""

import pytest

from tiny_cacher.cache.backends.session import SessionContext
from tiny_cacher.cache.strategy import Strategy, get_supported_strategies, is_supported_strategy


class TestStrategyParse:
    """Test suite for Strategy.parse."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("local", Strategy.LOCAL),
            ("internal", Strategy.LOCAL),
            ("SHARED", Strategy.SHARED),
            ("internal_shared", Strategy.SHARED),
            ("Redis", Strategy.REDIS),
            ("memcached", Strategy.MEMCACHED),
            ("sqlite", Strategy.SQLITE),
            ("sqlite3", Strategy.SQLITE),
            (" file ", Strategy.FILE),
            (3, Strategy.SESSION),
            (6, Strategy.SQLITE),
            (Strategy.FILE, Strategy.FILE),
        ],
    )
    def test_aliases(self, value: object, expected: Strategy) -> None:
        """Test names, legacy codes and members all resolve."""
        assert Strategy.parse(value) is expected

    @pytest.mark.parametrize("value", ["mongodb", "", 0, 42, None, True, 1.5])
    def test_unknown_values_fall_back_to_local(self, value: object) -> None:
        """Test unrecognized values resolve to the local strategy."""
        assert Strategy.parse(value) is Strategy.LOCAL

    def test_codes(self) -> None:
        """Test legacy integer codes."""
        assert [s.code for s in Strategy] == [1, 2, 3, 4, 5, 6, 7]
        assert Strategy.SQLITE.value == "sqlite3"


class TestSupportedStrategies:
    """Test suite for strategy availability."""

    def test_always_available(self) -> None:
        """Test driver-less strategies are always listed."""
        strategies = get_supported_strategies()

        assert strategies[:2] == ["local", "shared"]
        assert strategies[-1] == "file"
        assert "sqlite3" in strategies

    def test_session_requires_active_context(self) -> None:
        """Test session is listed only with an available session context."""
        assert "session" not in get_supported_strategies()
        assert "session" not in get_supported_strategies(session=SessionContext())
        assert "session" in get_supported_strategies(session=SessionContext({}))
        assert "session" not in get_supported_strategies(session=SessionContext({}, enabled=False))

    def test_numeric(self) -> None:
        """Test listing legacy codes."""
        codes = get_supported_strategies(numeric=True)
        assert codes[:2] == [1, 2]
        assert 6 in codes
        assert codes[-1] == 7

    def test_is_supported_strategy(self) -> None:
        """Test support checks accept names, members and codes."""
        assert is_supported_strategy("local") is True
        assert is_supported_strategy("SQLite") is True
        assert is_supported_strategy(Strategy.FILE) is True
        assert is_supported_strategy(7) is True

    def test_unknown_strategies_are_unsupported(self) -> None:
        """Test unknown values are not mapped to local."""
        assert is_supported_strategy("mongodb") is False
        assert is_supported_strategy(0) is False
        assert is_supported_strategy(True) is False
        assert is_supported_strategy(None) is False

    def test_session_support(self) -> None:
        """Test session support follows the context."""
        assert is_supported_strategy("session") is False
        assert is_supported_strategy("session", session=SessionContext({})) is True
