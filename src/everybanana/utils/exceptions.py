"""
Custom exceptions for everybanana.

This module defines all custom exceptions used throughout the application.
"""


class EverybananaError(Exception):
    """Base exception for all everybanana errors."""

    pass


class ValidationError(EverybananaError):
    """Raised when input validation fails. Never reaches the network layer."""

    def __init__(self, message: str, field: str = "") -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Name of the field that failed validation (optional)
        """
        self.field = field
        super().__init__(message)


class ServiceError(EverybananaError):
    """Raised when the image generation service fails or returns malformed output."""

    def __init__(self, message: str, status_code: int = 0, response: str = "") -> None:
        """
        Initialize service error.

        Args:
            message: Error message, shown to the user as is
            status_code: HTTP status code (if applicable)
            response: Raw API response (if available)
        """
        self.status_code = status_code
        self.response = response
        super().__init__(message)


class NetworkError(ServiceError):
    """Raised when the service cannot be reached."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        self.original_error = original_error
        super().__init__(message)


class RequestTimeoutError(ServiceError):
    """Raised when the service does not answer within the configured timeout."""

    pass


class ConfigurationError(EverybananaError):
    """Raised when there is a configuration problem."""

    pass


class ImageProcessingError(EverybananaError):
    """Raised when an uploaded or generated image cannot be processed."""

    def __init__(self, message: str, image_path: str = "") -> None:
        """
        Initialize image processing error.

        Args:
            message: Error message
            image_path: Path to the image that caused the error
        """
        self.image_path = image_path
        super().__init__(message)


def error_message(exc: BaseException, default: str = "An unknown error occurred.") -> str:
    """Return the human-readable message carried by an exception, or default when it has none."""
    if exc.args and isinstance(exc.args[0], str) and exc.args[0].strip():
        return exc.args[0]
    text = str(exc)
    return text if text.strip() else default
