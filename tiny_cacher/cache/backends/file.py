"""
tiny-cacher — File Cache Backend

Stores one JSON document per entry at <root>/<namespace>/<key>.cache.

Files carry no expiry metadata: entries written with a TTL stay until they
are removed or invalidated, and increments are not supported.
"""

import logging
import shutil
from pathlib import Path
from typing import Any

from ...errors import CacheIOError, KeyExists, NotFound
from ..interface import CacheBackend
from ..keys import CacheKey
from ..serialization import from_json, to_json

logger = logging.getLogger(__name__)

FILE_SUFFIX = ".cache"


class FileBackend(CacheBackend):
    """Flat-file cache backend rooted at a storage directory."""

    name = "file"

    def __init__(self, root: Path, verbose: bool = False) -> None:
        super().__init__(verbose)
        self.root = Path(root)

    def _path(self, key: CacheKey) -> Path:
        return self.root / key.namespace / f"{key.key}{FILE_SUFFIX}"

    def _io_error(self, message: str, error: OSError, path: Path) -> CacheIOError:
        extra = {"path": str(path), "error": str(error)}
        if self.verbose:
            logger.error("%s: %s", message, path, extra=extra, exc_info=True)
        else:
            logger.debug("%s: %s", message, path, extra=extra)
        return CacheIOError(message, details=extra)

    def store(self, key: CacheKey, value: Any, overwrite: bool, ttl: int, expire_at: int) -> None:
        payload = to_json(value)
        path = self._path(key)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise self._io_error("Unable to create namespace directory", e, path.parent) from e

        if not overwrite and path.exists():
            raise KeyExists(key.raw or "")

        try:
            path.write_text(payload, encoding="utf-8")
        except OSError as e:
            raise self._io_error("Unable to write cache file", e, path) from e

    def fetch(self, key: CacheKey) -> Any:
        path = self._path(key)
        if not path.is_file():
            raise NotFound(key.raw or "")

        try:
            data = path.read_text(encoding="utf-8")
        except OSError as e:
            raise self._io_error("Unable to read cache file", e, path) from e
        return from_json(data)

    def exists(self, key: CacheKey) -> bool:
        return self._path(key).is_file()

    def increment(self, key: CacheKey, delta: float) -> None:
        if self.verbose:
            logger.info("Increment is not supported by the file backend, entry left unchanged")

    def remove(self, key: CacheKey) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except OSError as e:
            raise self._io_error("Unable to remove cache file", e, path) from e

    def invalidate(self, key: CacheKey, everything: bool) -> None:
        """Delete everything under the storage root, or under the namespace directory."""
        target = self.root if everything else self.root / key.namespace
        if not target.is_dir():
            return

        removed = 0
        try:
            for child in target.iterdir():
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
                removed += 1
        except OSError as e:
            raise self._io_error("Unable to clear cache directory", e, target) from e

        logger.info("Removed %d item(s) from %s", removed, target)
