"""
tiny-cacher — Storage Strategies

Enumerates the storage strategies a facade can select and resolves the
aliases callers may use for them (case-insensitive names and the legacy
integer codes 1-7).
"""

from __future__ import annotations

import importlib.util
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .backends.session import SessionContext

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    """Supported storage strategies."""

    LOCAL = "local"
    SHARED = "shared"
    SESSION = "session"
    REDIS = "redis"
    MEMCACHED = "memcached"
    SQLITE = "sqlite3"
    FILE = "file"

    @property
    def code(self) -> int:
        """Legacy integer code of the strategy."""
        return _CODES[self]

    @classmethod
    def parse(cls, value: Any) -> Strategy:
        """
        Resolve a strategy from an enum member, name alias or integer code.

        Unrecognized values fall back to LOCAL.
        """
        if isinstance(value, Strategy):
            return value
        if isinstance(value, str):
            strategy = _ALIASES.get(value.strip().lower())
        elif isinstance(value, int) and not isinstance(value, bool):
            strategy = _BY_CODE.get(value)
        else:
            strategy = None

        if strategy is None:
            logger.debug("Unrecognized strategy %r, falling back to local", value)
            return cls.LOCAL
        return strategy


_CODES: dict[Strategy, int] = {
    Strategy.LOCAL: 1,
    Strategy.SHARED: 2,
    Strategy.SESSION: 3,
    Strategy.REDIS: 4,
    Strategy.MEMCACHED: 5,
    Strategy.SQLITE: 6,
    Strategy.FILE: 7,
}

_BY_CODE: dict[int, Strategy] = {code: strategy for strategy, code in _CODES.items()}

_ALIASES: dict[str, Strategy] = {
    "local": Strategy.LOCAL,
    "internal": Strategy.LOCAL,
    "shared": Strategy.SHARED,
    "internal_shared": Strategy.SHARED,
    "session": Strategy.SESSION,
    "redis": Strategy.REDIS,
    "memcached": Strategy.MEMCACHED,
    "sqlite": Strategy.SQLITE,
    "sqlite3": Strategy.SQLITE,
    "file": Strategy.FILE,
}

# Driver module each networked/database strategy needs at runtime
_DRIVERS: dict[Strategy, str] = {
    Strategy.REDIS: "redis",
    Strategy.MEMCACHED: "pymemcache",
    Strategy.SQLITE: "sqlite3",
}


def driver_available(strategy: Strategy) -> bool:
    """Check whether the driver library a strategy needs can be imported."""
    module = _DRIVERS.get(strategy)
    if module is None:
        return True
    return importlib.util.find_spec(module) is not None


def get_supported_strategies(
    numeric: bool = False,
    session: SessionContext | None = None,
) -> list[Any]:
    """
    List the strategies usable in the current runtime.

    local, shared and file are always available. session is listed only when
    an available session context is supplied. redis, memcached and sqlite3
    are listed when their driver libraries can be imported.

    Args:
        numeric: Return legacy integer codes instead of names
        session: Session context to probe for the session strategy

    Returns:
        Strategy names (or codes) in canonical order
    """
    strategies = [Strategy.LOCAL, Strategy.SHARED]
    if session is not None and session.is_available():
        strategies.append(Strategy.SESSION)
    for strategy in (Strategy.REDIS, Strategy.MEMCACHED, Strategy.SQLITE):
        if driver_available(strategy):
            strategies.append(strategy)
    strategies.append(Strategy.FILE)

    if numeric:
        return [strategy.code for strategy in strategies]
    return [strategy.value for strategy in strategies]


def is_supported_strategy(value: Any, session: SessionContext | None = None) -> bool:
    """
    Check whether a strategy (name, enum member or integer code) is usable.

    Unlike Strategy.parse, unknown values are reported as unsupported rather
    than mapped to local.
    """
    if isinstance(value, Strategy):
        strategy: Strategy | None = value
    elif isinstance(value, str):
        strategy = _ALIASES.get(value.strip().lower())
    elif isinstance(value, int) and not isinstance(value, bool) and value > 0:
        strategy = _BY_CODE.get(value)
    else:
        strategy = None

    if strategy is None:
        return False
    return strategy.value in get_supported_strategies(session=session)
