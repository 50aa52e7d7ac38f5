"""
Base Exception Class

Only the base exception class lives here; themed exceptions are in their own
modules.
"""

from typing import Any


class TierCacheError(Exception):
    """
    Base exception for all tiercache errors.

    Attributes:
        message: Error message
        details: Additional error details (dict)

    Example:
        raise RemoteConnectionError(
            "Redis refused connection",
            details={"host": "cache.internal", "port": 6379}
        )
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = (details or {}).copy()
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/API responses.

        Returns:
            Dict with error_type, message and details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }

    def with_context(self, **context) -> "TierCacheError":
        """
        Add additional context to the error details.

        Returns:
            Self (for method chaining)
        """
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        return f"{self.__class__.__name__}(message='{self.message}'{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        message: str | None = None,
        **details
    ) -> "TierCacheError":
        """
        Create an error of this class from another exception.

        Useful for wrapping redis-py or upstream exceptions with context.

        Example:
            >>> try:
            ...     await client.ping()
            ... except RedisError as e:
            ...     error = RemoteConnectionError.from_exception(e, host="localhost")
        """
        error_message = message or str(exc) or exc.__class__.__name__
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        return cls(error_message, details=error_details)


class ConfigurationError(TierCacheError):
    """Raised when configuration is invalid or missing."""
    pass
