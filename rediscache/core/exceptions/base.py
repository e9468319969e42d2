"""
Base Exception Class

This module contains ONLY the base exception class that all other exceptions inherit from.
Specialized exceptions live in their themed modules.
"""

from typing import Any


class RedisCacheError(Exception):
    """
    Base exception for all cache layer errors.

    All custom exceptions inherit from this class to enable:
    - Consistent error handling
    - Structured error logging
    - Rich context for debugging

    Attributes:
        message: Error message
        details: Additional error details (dict)
        code: Stable numeric error code (None when the error has none)

    Example:
        raise CacheKeyError(
            "Redis GET failed",
            details={"key": "user:42", "original_error": "ResponseError"},
        )
    """

    code: int | None = None
    default_message: str = "Cache error"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = (details or {}).copy()  # Create a copy to prevent external modification
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging.

        Returns:
            Dict with error_type, code, message and details
        """
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def with_context(self, **context) -> "RedisCacheError":
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
        cls, exc: BaseException, message: str | None = None, **details
    ) -> "RedisCacheError":
        """
        Create an error from another exception.

        Useful for wrapping redis-py exceptions with additional context.

        Example:
            >>> try:
            ...     await redis.get(key)
            ... except RedisError as e:
            ...     raise CacheKeyError.from_exception(e, key=key) from e
        """
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details,
        }
        return cls(message or str(exc) or None, details=error_details)


class ConfigurationError(RedisCacheError):
    """Raised when configuration is invalid or missing."""

    default_message = "Invalid cache configuration"
