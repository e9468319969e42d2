"""
Cache-Related Exceptions

All exceptions raised by the Redis store adapter, the reconnect policy and
the cache modes built on top of them.
"""

from rediscache.core.config.constants import (
    ERROR_CODE_CLIENT_NOT_READY,
    ERROR_CODE_CONNECTION_REFUSED,
    ERROR_CODE_RETRY_ATTEMPTS_EXHAUSTED,
    ERROR_CODE_RETRY_TIME_EXHAUSTED,
)
from rediscache.core.exceptions.base import RedisCacheError


class CacheError(RedisCacheError):
    """Base exception for cache-related errors."""

    default_message = "Cache operation failed"


class CacheUnavailableError(CacheError):
    """
    Raised when an operation is attempted while the Redis client is not ready.

    Never retried by the adapter; callers decide whether to fall back to the
    source of truth.
    """

    code = ERROR_CODE_CLIENT_NOT_READY
    default_message = "Redis client is not connected"


class CacheConnectionError(CacheError):
    """
    Raised when the reconnect policy gives up on the connection.

    Terminal: surfaced once to whatever awaits the connection.
    """

    default_message = "Unable to connect to Redis"


class CacheConnectionRefusedError(CacheConnectionError):
    """The Redis server actively refused the connection."""

    code = ERROR_CODE_CONNECTION_REFUSED
    default_message = "Redis server refused the connection"


class CacheRetryTimeExhaustedError(CacheConnectionError):
    """The cumulative reconnect time budget has been used up."""

    code = ERROR_CODE_RETRY_TIME_EXHAUSTED
    default_message = "Redis retry time exhausted"


class CacheRetryAttemptsExhaustedError(CacheConnectionError):
    """The reconnect attempt budget has been used up."""

    code = ERROR_CODE_RETRY_ATTEMPTS_EXHAUSTED
    default_message = "Redis retry attempts exhausted"


class CacheKeyError(CacheError):
    """
    Raised when a single cache command fails.

    Common causes:
    - Wrong value type for the command (e.g. INCR on a JSON document)
    - Operation timeout
    - Memory limit exceeded
    """


class CacheSerializationError(CacheError):
    """Raised when a value or call argument cannot be serialized to JSON."""

    default_message = "Value is not JSON serializable"
