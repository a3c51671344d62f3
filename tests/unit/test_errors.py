"""
tiny-cacher — Error Type Tests

Tests the exception hierarchy, error codes and structured responses.
"""

import pytest

from tiny_cacher.errors import (
    BackendTransactionError,
    BackendUnavailable,
    CacheConnectionError,
    EntryMissError,
    ErrorCode,
    Expired,
    InvalidArgument,
    KeyExists,
    MalformedEntry,
    NotFound,
    TinyCacherError,
    make_error_response,
)


class TestErrors:
    """Test suite for tiny-cacher errors."""

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (NotFound("k"), ErrorCode.NOT_FOUND),
            (Expired("k"), ErrorCode.EXPIRED),
            (MalformedEntry("k"), ErrorCode.MALFORMED_ENTRY),
            (KeyExists("k"), ErrorCode.KEY_EXISTS),
            (InvalidArgument("bad"), ErrorCode.INVALID_ARGUMENT),
            (BackendUnavailable("redis", "not connected"), ErrorCode.BACKEND_UNAVAILABLE),
            (CacheConnectionError("redis"), ErrorCode.CONNECTION_FAILED),
            (BackendTransactionError("sqlite3", "insert"), ErrorCode.BACKEND_TRANSACTION_ERROR),
        ],
    )
    def test_codes(self, error: TinyCacherError, code: ErrorCode) -> None:
        """Test every error carries its code."""
        assert isinstance(error, TinyCacherError)
        assert error.code is code

    def test_quiet_suppressible_errors(self) -> None:
        """Test the read misses share one base class and nothing else does."""
        for error in (NotFound("k"), Expired("k"), MalformedEntry("k")):
            assert isinstance(error, EntryMissError)
            assert error.key == "k"
        assert not isinstance(KeyExists("k"), EntryMissError)

    def test_invalid_argument_is_value_error(self) -> None:
        """Test callers can catch InvalidArgument as ValueError."""
        with pytest.raises(ValueError):
            raise InvalidArgument("Key cannot be an empty string")

    def test_to_dict(self) -> None:
        """Test structured conversion."""
        assert NotFound("greeting").to_dict() == {
            "error": "NotFound",
            "error_code": "NOT_FOUND",
            "message": "No such entry found: greeting",
            "details": {"key": "greeting"},
        }

    def test_transaction_error_details(self) -> None:
        """Test backend and operation are merged into the details."""
        error = BackendTransactionError("redis", "set", details={"key": "k"})

        assert error.details == {"key": "k", "backend": "redis", "operation": "set"}
        assert "set transaction with redis" in error.message

    def test_make_error_response(self) -> None:
        """Test the standardized error response."""
        response = make_error_response(BackendUnavailable("session", "no active session context"))

        assert response["success"] is False
        assert response["error_code"] == "BACKEND_UNAVAILABLE"
        assert response["details"] == {"backend": "session"}
