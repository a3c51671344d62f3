"""
tiny-cacher — Value Serialization

Values kept outside the process (Redis, Memcached, SQLite, files) are stored
as UTF-8 JSON text. Numbers serialize without quotes so native increments
keep working on them.
"""

import json
import logging
from typing import Any

from ..errors import DeserializationError, SerializationError

logger = logging.getLogger(__name__)


def to_json(value: Any) -> str:
    """Serialize value to JSON string."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        logger.debug(
            "Failed to serialize value as JSON: %s",
            e,
            extra={"value_type": type(value).__name__, "error": str(e)},
        )
        raise SerializationError(
            "Unable to serialize the given value as JSON string",
            details={"value_type": type(value).__name__, "error": str(e)},
        ) from e


def from_json(data: str | bytes) -> Any:
    """Deserialize JSON string (or UTF-8 bytes) to Python object."""
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return json.loads(data)
    except (ValueError, UnicodeDecodeError) as e:
        preview = data[:100] if len(data) > 100 else data
        logger.debug(
            "Failed to decode JSON from cache: %s",
            e,
            extra={"data_preview": preview, "error": str(e)},
        )
        raise DeserializationError(
            "An error occurred while parsing the serialized data",
            details={"error": str(e)},
        ) from e


def is_numeric(value: Any) -> bool:
    """True for int and float values; bool is not treated as numeric."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)
