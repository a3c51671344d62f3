"""
tiny-cacher — Session Cache Backend

Stores entries inside a host-supplied session mapping (for example the
request session of a web framework) under the fixed root key "cache".

The session only exists while the host is serving an interactive request,
so the facade checks SessionContext.is_available() before every operation.
"""

import logging
from collections.abc import MutableMapping
from typing import Any

from ...errors import BackendUnavailable
from .memory import MappingBackend, Storage, sweep_expired

logger = logging.getLogger(__name__)

SESSION_ROOT_KEY = "cache"


class SessionContext:
    """
    Handle on the session of the current request.

    Args:
        session: Mutable session mapping, or None outside of a request
        enabled: Set to False to disable session storage entirely
    """

    def __init__(self, session: MutableMapping[str, Any] | None = None, enabled: bool = True) -> None:
        self._session = session
        self.enabled = enabled

    def attach(self, session: MutableMapping[str, Any]) -> None:
        """Bind the context to the session of a new request."""
        self._session = session

    def detach(self) -> None:
        """Forget the current session (end of request)."""
        self._session = None

    def is_available(self) -> bool:
        return self.enabled and self._session is not None

    def storage(self) -> Storage:
        """Return the cache mapping inside the session, creating it if absent or corrupt."""
        if not self.is_available():
            raise BackendUnavailable("session", "no active session context")
        assert self._session is not None

        root = self._session.get(SESSION_ROOT_KEY)
        if not isinstance(root, dict):
            root = {}
            self._session[SESSION_ROOT_KEY] = root
        return root

    def touch(self) -> None:
        """Flag the session as modified for frameworks that track nested changes."""
        if self._session is not None and hasattr(self._session, "modified"):
            self._session.modified = True  # type: ignore[attr-defined]

    def garbage_collect(self) -> int:
        """Delete expired entries from every namespace stored in the session."""
        removed = sweep_expired(self.storage())
        if removed:
            self.touch()
        return removed


class SessionBackend(MappingBackend):
    """Storage living in the current request session."""

    name = "session"

    def __init__(self, context: SessionContext, verbose: bool = False) -> None:
        super().__init__(verbose)
        self.context = context

    def _storage(self) -> Storage:
        return self.context.storage()

    def _changed(self) -> None:
        self.context.touch()
