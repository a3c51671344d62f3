"""
tiny-cacher — SQLite Cache Backend

SQLite-based cache storage in a single table:

    cache_storage(namespace, key, value, numeric, date, expire)

Values are JSON text; `numeric` flags rows that increments may touch;
`expire` is a UTC "YYYY-MM-DD HH:MM:SS" string or NULL for no expiry.
Expired rows are filtered out by every read and deleted by garbage_collect().
"""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import quote

from ...errors import CacheConnectionError, InvalidArgument, KeyExists, NotFound
from ..interface import CacheBackend
from ..keys import CacheKey
from ..serialization import from_json, is_numeric, to_json

logger = logging.getLogger(__name__)

SCHEMA_FIELDS = ("namespace", "key", "value", "numeric", "date", "expire")

_CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS cache_storage (
        namespace TEXT,
        key TEXT,
        value TEXT,
        numeric INTEGER,
        date DATETIME,
        expire DATETIME,
        PRIMARY KEY (namespace, key)
    )
"""

_NOT_EXPIRED = "(expire IS NULL OR expire >= DATETIME('now'))"

OPEN_MODES = ("rwc", "rw", "ro", "memory")


def _expire_column(expire_at: int) -> str | None:
    if expire_at <= 0:
        return None
    return datetime.fromtimestamp(expire_at, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def connect(path: str, mode: str | None = None, verbose: bool = False) -> sqlite3.Connection:
    """
    Open (and by default create) a SQLite database and ensure the cache table exists.

    Args:
        path: Database file path, or ":memory:"
        mode: One of "rwc" (default), "rw", "ro", "memory"

    Raises:
        InvalidArgument: If path is empty or mode unknown
        CacheConnectionError: If the database cannot be opened or initialized
    """
    if not path:
        raise InvalidArgument("Invalid SQLite database path")
    mode = mode or "rwc"
    if mode not in OPEN_MODES:
        raise InvalidArgument(f"Invalid SQLite open mode: {mode}", details={"supported": list(OPEN_MODES)})

    conn: sqlite3.Connection | None = None
    try:
        if path == ":memory:":
            conn = sqlite3.connect(path)
        else:
            uri = f"file:{quote(str(Path(path)))}?mode={mode}"
            conn = sqlite3.connect(uri, uri=True)
        conn.row_factory = sqlite3.Row
        with conn:
            conn.execute(_CREATE_TABLE)
    except sqlite3.Error as e:
        if verbose:
            logger.error(
                "Failed to initialize SQLite cache database at %s: %s",
                path,
                e,
                extra={"path": path, "mode": mode, "error": str(e)},
                exc_info=True,
            )
        if conn is not None:
            conn.close()
        raise CacheConnectionError("sqlite3", details={"path": path, "mode": mode, "error": str(e)}) from e

    logger.info("SQLite cache database initialized at %s", path)
    return conn


def is_connected(conn: sqlite3.Connection | None, probe: bool = False) -> bool:
    """Check a SQLite handle exists and, when probing, the cache table has all its columns."""
    if conn is None:
        return False
    if not probe:
        return True
    try:
        rows = conn.execute("PRAGMA table_info(cache_storage)").fetchall()
    except sqlite3.Error as e:
        logger.debug("SQLite probe failed: %s", e)
        return False
    found = {row[1] for row in rows} & set(SCHEMA_FIELDS)
    return len(found) == len(SCHEMA_FIELDS)


class SQLiteBackend(CacheBackend):
    """SQLite cache backend."""

    name = "sqlite3"

    def __init__(self, conn: sqlite3.Connection, verbose: bool = False) -> None:
        super().__init__(verbose)
        self._conn = conn

    def store(self, key: CacheKey, value: Any, overwrite: bool, ttl: int, expire_at: int) -> None:
        payload = to_json(value)
        params = (key.namespace, key.key, payload, 1 if is_numeric(value) else 0, _expire_column(expire_at))
        verb = "INSERT OR REPLACE" if overwrite else "INSERT"

        try:
            with self._conn:
                if not overwrite:
                    # An expired row must not block the insert below
                    self._conn.execute(
                        f"DELETE FROM cache_storage WHERE namespace = ? AND key = ? AND NOT {_NOT_EXPIRED}",
                        (key.namespace, key.key),
                    )
                self._conn.execute(
                    f"{verb} INTO cache_storage (namespace, key, value, numeric, date, expire) "
                    "VALUES (?, ?, ?, ?, DATETIME('now'), ?)",
                    params,
                )
        except sqlite3.IntegrityError as e:
            raise KeyExists(key.raw or "") from e
        except sqlite3.Error as e:
            raise self._transaction_error("insert", e, key) from e

    def fetch(self, key: CacheKey) -> Any:
        try:
            row = self._conn.execute(
                f"SELECT value FROM cache_storage WHERE namespace = ? AND key = ? AND {_NOT_EXPIRED} LIMIT 1",
                (key.namespace, key.key),
            ).fetchone()
        except sqlite3.Error as e:
            raise self._transaction_error("select", e, key) from e

        if row is None:
            raise NotFound(key.raw or "")
        return from_json(str(row[0]))

    def exists(self, key: CacheKey) -> bool:
        try:
            row = self._conn.execute(
                f"SELECT date FROM cache_storage WHERE namespace = ? AND key = ? AND {_NOT_EXPIRED} LIMIT 1",
                (key.namespace, key.key),
            ).fetchone()
        except sqlite3.Error as e:
            raise self._transaction_error("select", e, key) from e
        return row is not None

    def increment(self, key: CacheKey, delta: float) -> None:
        try:
            with self._conn:
                self._conn.execute(
                    "UPDATE cache_storage SET value = value + ? WHERE namespace = ? AND key = ? AND numeric = 1",
                    (delta, key.namespace, key.key),
                )
        except sqlite3.Error as e:
            raise self._transaction_error("update", e, key) from e

    def remove(self, key: CacheKey) -> None:
        try:
            with self._conn:
                self._conn.execute(
                    "DELETE FROM cache_storage WHERE namespace = ? AND key = ?",
                    (key.namespace, key.key),
                )
        except sqlite3.Error as e:
            raise self._transaction_error("delete", e, key) from e

    def invalidate(self, key: CacheKey, everything: bool) -> None:
        try:
            with self._conn:
                if everything:
                    cursor = self._conn.execute("DELETE FROM cache_storage")
                else:
                    cursor = self._conn.execute("DELETE FROM cache_storage WHERE namespace = ?", (key.namespace,))
        except sqlite3.Error as e:
            raise self._transaction_error("invalidate", e) from e

        logger.info("Cleared %d rows from SQLite cache", cursor.rowcount)

    def garbage_collect(self) -> None:
        try:
            with self._conn:
                cursor = self._conn.execute(
                    "DELETE FROM cache_storage WHERE expire IS NOT NULL AND expire < DATETIME('now')"
                )
        except sqlite3.Error as e:
            raise self._transaction_error("garbage_collect", e) from e

        logger.debug("Garbage collected %d expired rows from SQLite cache", cursor.rowcount)

    def close(self) -> None:
        try:
            self._conn.close()
            logger.info("Closed SQLite cache backend")
        except sqlite3.Error as e:
            logger.error("Error closing SQLite connection: %s", e, extra={"error": str(e)}, exc_info=True)
