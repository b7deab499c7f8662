"""Error handling and custom exceptions for the signal coordination system."""

import logging
from typing import Optional, Any

logger = logging.getLogger(__name__)


class TrafficSystemError(Exception):
    """Base exception class for signal coordination errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Any] = None):
        self.message = message
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

        logger.error(f"TrafficSystemError: {message} (Code: {error_code})")


class ValidationError(TrafficSystemError):
    """Exception raised when input validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None, invalid_value: Optional[Any] = None):
        self.field_name = field_name
        self.invalid_value = invalid_value

        error_details = {
            'field_name': field_name,
            'invalid_value': invalid_value
        }

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=error_details
        )


class InvalidDimensionsError(ValidationError):
    """Exception raised when a grid is requested with unusable dimensions."""

    def __init__(self, rows: Any, cols: Any):
        self.rows = rows
        self.cols = cols
        super().__init__(
            message=f"Grid dimensions must be positive integers, got {rows}x{cols}",
            field_name="dimensions",
            invalid_value=(rows, cols)
        )
        self.error_code = "INVALID_DIMENSIONS"


class ConfigurationError(TrafficSystemError):
    """Exception raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_section: Optional[str] = None):
        self.config_section = config_section

        error_details = {
            'config_section': config_section
        }

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details=error_details
        )


class InvalidStrategyError(ConfigurationError):
    """Exception raised when an unknown coordination strategy is selected."""

    def __init__(self, strategy: Any):
        self.strategy = strategy
        super().__init__(
            message=f"Unknown coordination strategy: {strategy!r}",
            config_section="strategy"
        )
        self.error_code = "INVALID_STRATEGY"


class StorageError(TrafficSystemError):
    """Exception raised when a storage backend cannot be read or written."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key

        super().__init__(
            message=message,
            error_code="STORAGE_ERROR",
            details={'key': key}
        )


def handle_error(error: Exception, context: str = "") -> None:
    """
    Handle and log errors with appropriate context.

    Args:
        error: The exception that occurred
        context: Additional context about where the error occurred
    """
    if isinstance(error, TrafficSystemError):
        logger.error(f"Traffic system error in {context}: {error.message}")
        if error.details:
            logger.error(f"Error details: {error.details}")
    else:
        logger.error(f"Unexpected error in {context}: {str(error)}", exc_info=True)


def safe_execute(func, *args, default_return=None, context: str = "", **kwargs):
    """
    Safely execute a function with error handling.

    Args:
        func: Function to execute
        *args: Positional arguments for the function
        default_return: Value to return if function fails
        context: Context description for error logging
        **kwargs: Keyword arguments for the function

    Returns:
        Function result or default_return if function fails
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        handle_error(e, context)
        return default_return
