"""
RunCache - Core Error Types

Defines the exception hierarchy for the cache engine.
All exceptions inherit from RunCacheError for consistent error handling.

Taxonomy:
- ValidationError: malformed call arguments (raised before any mutation)
- ListenerConfigError: invalid listener-clearing request
- SourceFunctionError: a user-supplied source function raised or rejected
- ConfigurationError: invalid environment / .env configuration
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Standard error codes attached to error payloads.

    Used for structured logging and caller-side error handling.
    """

    # Input validation errors
    INVALID_INPUT = "INVALID_INPUT"
    EMPTY_KEY = "EMPTY_KEY"
    MISSING_VALUE = "MISSING_VALUE"
    INVALID_TTL = "INVALID_TTL"
    INVALID_LISTENER_FILTER = "INVALID_LISTENER_FILTER"

    # Source function errors
    SOURCE_FUNCTION_FAILED = "SOURCE_FUNCTION_FAILED"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class RunCacheError(Exception):
    """Base exception for all RunCache errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging or API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(RunCacheError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class ValidationError(RunCacheError):
    """Raised when call arguments fail validation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=400)


class ListenerConfigError(ValidationError):
    """Raised when event listeners are cleared with a key but no event kind."""

    def __init__(self, key: str):
        message = "`key` cannot be provided without `kind`"
        super().__init__(
            message,
            {"key": key, "error_code": ErrorCode.INVALID_LISTENER_FILTER},
        )
        self.key = key


class SourceFunctionError(RunCacheError):
    """Raised when a source function fails to produce a value."""

    def __init__(self, key: str, details: dict[str, Any] | None = None):
        message = f"Source function failed for key: '{key}'"
        error_details: dict[str, Any] = {"key": key, "error_code": ErrorCode.SOURCE_FUNCTION_FAILED}
        if details:
            error_details.update(details)
        super().__init__(message, error_details, status_code=502)

        # Stored for access in exception handlers
        self.key = key


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Extract appropriate ErrorCode from an exception.

    Args:
        error: Exception to categorize

    Returns:
        Appropriate ErrorCode for the exception
    """
    if isinstance(error, RunCacheError):
        code = error.details.get("error_code")
        if isinstance(code, ErrorCode):
            return code

    if isinstance(error, SourceFunctionError):
        return ErrorCode.SOURCE_FUNCTION_FAILED

    if isinstance(error, ValidationError):
        return ErrorCode.INVALID_INPUT

    if isinstance(error, ConfigurationError):
        return ErrorCode.CONFIGURATION_ERROR

    return ErrorCode.INTERNAL_ERROR
