"""Tests for exception handling."""

from booking_core.exceptions import (
    APIException,
    ConflictError,
    DatabaseError,
    InvalidIntervalError,
    InvalidTimezoneError,
    NotFoundError,
    SlotUnavailableError,
    ValidationError,
)


def test_api_exception():
    """Test base APIException."""
    exc = APIException("Test error", status_code=400, code="TEST_ERROR")
    assert exc.message == "Test error"
    assert exc.status_code == 400
    assert exc.code == "TEST_ERROR"
    assert exc.to_dict()["error"]["message"] == "Test error"


def test_validation_error():
    """Test ValidationError."""
    errors = {"time": "invalid format"}
    exc = ValidationError("Validation failed", errors=errors)
    assert exc.status_code == 422
    assert exc.code == "VALIDATION_ERROR"
    assert exc.details["validation_errors"] == errors


def test_validation_error_custom_code():
    exc = ValidationError("Cannot book in the past", code="PAST_DATE_BOOKING")
    assert exc.status_code == 422
    assert exc.to_dict()["error"]["code"] == "PAST_DATE_BOOKING"


def test_invalid_timezone_error():
    exc = InvalidTimezoneError("Mars/Base")
    assert isinstance(exc, ValidationError)
    assert exc.status_code == 422
    assert exc.code == "INVALID_TIMEZONE"
    assert exc.details["timezone"] == "Mars/Base"


def test_invalid_interval_error():
    exc = InvalidIntervalError()
    assert exc.status_code == 422
    assert exc.code == "INVALID_INTERVAL"


def test_not_found_error():
    """Test NotFoundError."""
    exc = NotFoundError("Staff", resource_id="123")
    assert exc.status_code == 404
    assert exc.code == "NOT_FOUND"
    assert "Staff not found with id: 123" in exc.message


def test_conflict_error():
    """Test ConflictError."""
    exc = ConflictError("Availability rule overlaps")
    assert exc.status_code == 409
    assert exc.code == "CONFLICT"


def test_slot_unavailable_error():
    exc = SlotUnavailableError(details={"start_at": "2030-01-07T15:00:00+00:00"})
    assert isinstance(exc, ConflictError)
    assert exc.status_code == 409
    assert exc.code == "SLOT_UNAVAILABLE"
    assert exc.details["suggestion"]
    assert exc.details["start_at"] == "2030-01-07T15:00:00+00:00"


def test_database_error():
    """Test DatabaseError."""
    exc = DatabaseError("Connection failed")
    assert exc.status_code == 500
    assert exc.code == "DATABASE_ERROR"
