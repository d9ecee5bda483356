"""Custom exceptions for CrossDoc library.

Every public operation fails with one of the classes below, whichever store
backs the model.
"""

from typing import Any, Dict


# Base exception
class CrossDocError(Exception):
    """Base exception for all CrossDoc errors.

    Attributes:
        message: Error message
        details: Additional error context as key-value pairs
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        """Initialize exception with message and additional details.

        Args:
            message: Human-readable error message
            **kwargs: Additional context (e.g., document_id, table_name, field)
        """
        self.message = message
        self.details: Dict[str, Any] = kwargs
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the complete error message with details."""
        if not self.details:
            return self.message

        details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        if self.message:
            return f"{self.message} ({details_str})"
        return details_str

    def __repr__(self) -> str:
        """Return detailed representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# Request exceptions
class InvalidArgument(CrossDocError):
    """Raised when a request argument is malformed.

    Example:
        >>> raise InvalidArgument("take must be a positive integer", field="take", value=0)
    """


class MalformedFilter(CrossDocError):
    """Raised when a where clause cannot be compiled.

    Example:
        >>> raise MalformedFilter("Filter condition is empty", field="firstName")
    """


class UnsupportedOperator(CrossDocError):
    """Raised when an operator is unknown or not valid for the field type.

    Example:
        >>> raise UnsupportedOperator("Operator not supported", field="age", operator="contains")
    """


class InvalidCursor(CrossDocError):
    """Raised when a pagination cursor cannot be decoded.

    Example:
        >>> raise InvalidCursor("Cursor is not valid JSON", backend="dynamodb")
    """


# Document exceptions
class NotFound(CrossDocError):
    """Raised when no document matches the given id.

    Example:
        >>> raise NotFound("Document not found", document_id="user-1")
    """


# Backend exceptions
class BackendError(CrossDocError):
    """Base exception for failures coming from the underlying store."""


class BackendContractViolation(BackendError):
    """Raised when the store returns a shape that cannot be normalized.

    Example:
        >>> raise BackendContractViolation("Expected a list of items", received="dict")
    """


class BackendFailure(BackendError):
    """Raised when the store call itself fails (network, throttling, auth).

    The original exception is kept on `original_error`; it is never retried.

    Example:
        >>> raise BackendFailure("Scan failed", operation="Scan", code="ThrottlingException")
    """

    def __init__(self, message: str = "", original_error: BaseException | None = None, **kwargs: Any) -> None:
        self.original_error = original_error
        super().__init__(message, **kwargs)


class Conflict(BackendFailure):
    """Raised when create targets an id that is already stored.

    Example:
        >>> raise Conflict("Item already exists", document_id="user-1", code=409)
    """


# Configuration exceptions
class ConfigurationError(CrossDocError):
    """Raised when configuration is invalid or missing.

    Example:
        >>> raise ConfigurationError("Unknown backend", backend="mongo")
    """


class MissingConfigError(ConfigurationError):
    """Raised when required configuration values are not set.

    Example:
        >>> raise MissingConfigError("Configuration not set", config_key="COSMOS_CONNECTION_STRING")
    """
