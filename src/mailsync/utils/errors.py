"""Centralized error handling for the sync coordinator."""

import asyncio
from enum import Enum
from typing import Any, Callable, Dict, Optional

from mailsync.utils.logging import get_logger

_logger = None


def _get_logger():
    """Get logger with lazy initialisation."""
    global _logger
    if _logger is None:
        _logger = get_logger(__name__)
    return _logger


## Error Categories


class ErrorCategory(Enum):
    """Categories of errors for better handling."""

    DATABASE = "database"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    FILE_SYSTEM = "file_system"
    CONFIGURATION = "configuration"
    BACKGROUND = "background"
    STATE = "state"
    UNKNOWN = "unknown"


## Custom Exceptions


class MailSyncError(Exception):
    """Base exception for all mailsync errors."""

    category = ErrorCategory.UNKNOWN
    user_message = "An error occurred"

    def __init__(
        self, message: str | None = None, details: Dict[str, Any] | None = None
    ):
        """Initialise MailSyncError with optional message and details."""
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error details to a dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


## Local Store Errors


class DatabaseError(MailSyncError):
    """Base exception for local store errors."""

    category = ErrorCategory.DATABASE
    user_message = "A database error occurred"


class DatabaseConnectionError(DatabaseError):
    """Exception for database connection failures."""

    user_message = "Failed to connect to the database"


class CacheReadError(DatabaseError):
    """Exception when the local message cache cannot be read."""

    user_message = "Failed to read cached messages"


## Network Errors


class NetworkError(MailSyncError):
    """Base exception for remote mail source failures."""

    category = ErrorCategory.NETWORK
    user_message = "A network error occurred"


class NetworkRefreshError(NetworkError):
    """Exception for a failed folder refresh against the server."""

    user_message = "Failed to refresh messages from the server"


class NetworkTimeoutError(NetworkError):
    """Exception for network timeout errors."""

    user_message = "The connection timed out"


class DetailFetchError(NetworkError):
    """Exception for a failed message detail fetch."""

    user_message = "Failed to load message"


class MessageNotFoundError(DetailFetchError):
    """Exception when a message identifier is unknown."""

    user_message = "Message not found"


## Authentication Errors


class AuthenticationError(MailSyncError):
    """Base exception for authentication-related errors."""

    category = ErrorCategory.AUTHENTICATION
    user_message = "An authentication error occurred"


## Validation Errors


class ValidationError(MailSyncError):
    """Base exception for validation-related errors."""

    category = ErrorCategory.VALIDATION
    user_message = "Invalid input"


class InvalidFolderError(ValidationError):
    """Exception for an empty or malformed folder name."""

    user_message = "Invalid folder name"


## File System Errors


class FileSystemError(MailSyncError):
    """Base exception for file system-related errors."""

    category = ErrorCategory.FILE_SYSTEM
    user_message = "A file system error occurred"


## Configuration Errors


class ConfigurationError(MailSyncError):
    """Base exception for configuration-related errors."""

    category = ErrorCategory.CONFIGURATION
    user_message = "A configuration error occurred"


class MissingConfigError(ConfigurationError):
    """Exception for missing configuration settings."""

    user_message = "Missing configuration settings"


class InvalidConfigError(ConfigurationError):
    """Exception for invalid configuration settings."""

    user_message = "Invalid configuration settings"


## Background and State Errors


class BackgroundTaskError(MailSyncError):
    """Exception raised inside opportunistic background work."""

    category = ErrorCategory.BACKGROUND
    user_message = "A background task failed"


class StateInvariantError(MailSyncError):
    """Exception for a state mutation that would break an invariant."""

    category = ErrorCategory.STATE
    user_message = "Sync state invariant violated"


## Error Handler


class ErrorHandler:
    """Centralized error handling and logging."""

    @staticmethod
    def handle(
        error: BaseException, context: str = "", log_traceback: bool = True
    ) -> Dict[str, Any]:
        """Handle errors with logging and user-friendly message."""
        if isinstance(error, MailSyncError):
            _get_logger().error(f"{context}: {error.message}", extra=error.details)
            if log_traceback:
                _get_logger().error(context or error.message, exc_info=error)
            return error.to_dict()
        else:
            _get_logger().error(f"{context}: {str(error)}")
            if log_traceback:
                _get_logger().error(context or str(error), exc_info=error)
            return {
                "error_type": "UnknownError",
                "category": ErrorCategory.UNKNOWN.value,
                "message": str(error),
                "details": {"context": context},
            }


## Utility Functions


async def safe_execute_async(
    func: Callable, *args, default=None, context: str = "", **kwargs
):
    """Await a coroutine function, logging and swallowing any failure."""
    try:
        return await func(*args, **kwargs)

    except Exception as e:
        ErrorHandler.handle(e, context, log_traceback=False)
        return default


def format_error_message(error: BaseException) -> str:
    """Format an error message for display."""
    if isinstance(error, MailSyncError):
        return error.message

    text = str(error)
    return text or error.__class__.__name__


def wrap_network_error(
    error: Exception, message: str, details: Optional[Dict[str, Any]] = None
) -> MailSyncError:
    """Return ``error`` unchanged if already typed, else a NetworkError subclass."""
    if isinstance(error, MailSyncError):
        return error

    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return NetworkTimeoutError(f"{message}: timed out", details=details)

    return NetworkRefreshError(f"{message}: {error}", details=details)
