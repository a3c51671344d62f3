"""
tiny-cacher — Core Error Types

Defines the exception hierarchy raised by the cache facade and its backends.
All exceptions inherit from TinyCacherError for consistent error handling.

Quiet mode on read operations absorbs EntryMissError (NotFound, Expired,
MalformedEntry) and nothing else.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Standard error codes attached to every facade error.

    Used for structured error responses and caller-side recovery.
    """

    # Input validation errors
    INVALID_ARGUMENT = "INVALID_ARGUMENT"

    # Setup errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    CONNECTION_FAILED = "CONNECTION_FAILED"

    # Entry errors
    KEY_EXISTS = "KEY_EXISTS"
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    MALFORMED_ENTRY = "MALFORMED_ENTRY"

    # Encoding errors
    SERIALIZATION_ERROR = "SERIALIZATION_ERROR"
    DESERIALIZATION_ERROR = "DESERIALIZATION_ERROR"

    # Backend errors
    IO_ERROR = "IO_ERROR"
    BACKEND_TRANSACTION_ERROR = "BACKEND_TRANSACTION_ERROR"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class TinyCacherError(Exception):
    """Base exception for all tiny-cacher errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured responses."""
        return {
            "error": self.__class__.__name__,
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidArgument(TinyCacherError, ValueError):
    """Raised when a key or collection argument is empty or of the wrong type."""

    code = ErrorCode.INVALID_ARGUMENT


class ConfigurationError(TinyCacherError):
    """Raised when configuration is invalid or missing."""

    code = ErrorCode.CONFIGURATION_ERROR


class BackendUnavailable(TinyCacherError):
    """Raised when a backend driver is missing or the backend is not connected."""

    code = ErrorCode.BACKEND_UNAVAILABLE

    def __init__(self, backend: str, reason: str, details: dict[str, Any] | None = None):
        message = f"Cache backend '{backend}' is not available: {reason}"
        error_details = details or {}
        error_details.update({"backend": backend})
        super().__init__(message, error_details)
        self.backend = backend


class CacheConnectionError(TinyCacherError):
    """Raised when cache backend connection fails."""

    code = ErrorCode.CONNECTION_FAILED

    def __init__(self, backend: str, details: dict[str, Any] | None = None):
        message = f"Failed to connect to cache backend: {backend}"
        super().__init__(message, details)
        self.backend = backend


class KeyExists(TinyCacherError):
    """Raised when storing without overwrite over an unexpired entry."""

    code = ErrorCode.KEY_EXISTS

    def __init__(self, key: str):
        super().__init__(f"Key already exists: {key}", {"key": key})
        self.key = key


class EntryMissError(TinyCacherError):
    """Base for read-path misses that quiet mode converts into MISSING."""

    def __init__(self, message: str, key: str):
        super().__init__(message, {"key": key})
        self.key = key


class NotFound(EntryMissError):
    """Raised when a requested entry does not exist."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, key: str):
        super().__init__(f"No such entry found: {key}", key)


class Expired(EntryMissError):
    """Raised when a requested entry exists but its TTL has passed."""

    code = ErrorCode.EXPIRED

    def __init__(self, key: str):
        super().__init__(f"Entry has expired: {key}", key)


class MalformedEntry(EntryMissError):
    """Raised when an in-memory entry lacks its value or expiry fields."""

    code = ErrorCode.MALFORMED_ENTRY

    def __init__(self, key: str):
        super().__init__(f"Malformed entry: {key}", key)


class SerializationError(TinyCacherError):
    """Raised when a value cannot be encoded as JSON."""

    code = ErrorCode.SERIALIZATION_ERROR


class DeserializationError(TinyCacherError):
    """Raised when stored data cannot be decoded from JSON."""

    code = ErrorCode.DESERIALIZATION_ERROR


class CacheIOError(TinyCacherError):
    """Raised when a file backend operation fails."""

    code = ErrorCode.IO_ERROR


class BackendTransactionError(TinyCacherError):
    """Raised when a Redis, Memcached or SQLite driver call fails."""

    code = ErrorCode.BACKEND_TRANSACTION_ERROR

    def __init__(self, backend: str, operation: str, details: dict[str, Any] | None = None):
        message = f"An error occurred during the {operation} transaction with {backend}"
        error_details = details or {}
        error_details.update({"backend": backend, "operation": operation})
        super().__init__(message, error_details)
        self.backend = backend
        self.operation = operation


def make_error_response(error: TinyCacherError) -> dict[str, Any]:
    """
    Create a standardized error response from a facade error.

    Example:
        >>> make_error_response(NotFound("greeting"))
        {
            "success": False,
            "error_code": "NOT_FOUND",
            "message": "No such entry found: greeting",
            "details": {"key": "greeting"}
        }
    """
    return {
        "success": False,
        "error_code": error.code.value,
        "message": error.message,
        "details": error.details,
    }
