"""Custom exception classes for the booking core service."""

from typing import Any, Dict, Optional


class APIException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "status_code": self.status_code,
                "details": self.details,
            }
        }


class ValidationError(APIException):
    """Exception raised for validation errors."""

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
        code: str = "VALIDATION_ERROR",
    ):
        error_details = details or {}
        if errors:
            error_details["validation_errors"] = errors
        super().__init__(
            message=message,
            status_code=422,
            code=code,
            details=error_details,
        )


class InvalidTimezoneError(ValidationError):
    """Exception raised when an IANA zone id cannot be resolved."""

    def __init__(self, timezone: str, details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        error_details["timezone"] = timezone
        super().__init__(
            message=f"Unknown timezone: {timezone!r}",
            details=error_details,
            code="INVALID_TIMEZONE",
        )


class InvalidIntervalError(ValidationError):
    """Exception raised for empty or inverted time intervals."""

    def __init__(
        self,
        message: str = "Interval end must be after its start",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, code="INVALID_INTERVAL")


class NotFoundError(APIException):
    """Exception raised when a resource is not found."""

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message += f" with id: {resource_id}"
        error_details = details or {}
        error_details["resource"] = resource
        if resource_id:
            error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            status_code=404,
            code="NOT_FOUND",
            details=error_details,
        )


class ConflictError(APIException):
    """Exception raised when a resource conflict occurs."""

    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict[str, Any]] = None,
        code: str = "CONFLICT",
    ):
        super().__init__(
            message=message,
            status_code=409,
            code=code,
            details=details,
        )


class SlotUnavailableError(ConflictError):
    """Exception raised when a requested slot is no longer free at write time.

    Recoverable: the caller should re-query availability and ask the user to
    pick again. The service never retries on the caller's behalf.
    """

    def __init__(
        self,
        message: str = "This time slot is no longer available.",
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        error_details.setdefault("suggestion", "Please select a different time slot.")
        super().__init__(message=message, details=error_details, code="SLOT_UNAVAILABLE")


class DatabaseError(APIException):
    """Exception raised for database-related errors."""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            code="DATABASE_ERROR",
            details=details,
        )
