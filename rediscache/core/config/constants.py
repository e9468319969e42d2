"""
System Constants and Enumerations

Single source of truth for stage identifiers, key separators and the
numeric error codes carried by cache exceptions.
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Processing stages used as the ``stage`` field of log entries.

    Format: {PREFIX}.{STEP}_{DESCRIPTIVE_NAME}
    """

    REDIS_INIT = "REDIS.1_CLIENT_INIT"
    REDIS_CONNECT = "REDIS.2_CONNECT"
    REDIS_DISCONNECT = "REDIS.3_DISCONNECT"
    REDIS_RECONNECT = "REDIS.R_RECONNECT"
    REDIS_COMMAND = "REDIS.CMD_COMMAND"
    REDIS_HEALTH = "REDIS.HEALTH"

    CACHE_PROMISE = "CACHE.P_PROMISE_MODE"
    CACHE_INTERVAL = "CACHE.I_INTERVAL_MODE"
    CACHE_SERVICE = "CACHE.S_SERVICE_CACHE"
    CACHE_INVALIDATE = "CACHE.D_INVALIDATE"


# ============================================================================
# Key Conventions
# ============================================================================

KEY_SEPARATOR = ":"
KEY_PATTERN_WILDCARD = "*"

# Characters with special meaning in Redis KEYS glob patterns
KEY_GLOB_SPECIAL_CHARS = frozenset("*?[]\\")


# ============================================================================
# Error Codes
# ============================================================================

ERROR_CODE_CONNECTION_REFUSED = 100201
ERROR_CODE_RETRY_TIME_EXHAUSTED = 100202
ERROR_CODE_RETRY_ATTEMPTS_EXHAUSTED = 100203
ERROR_CODE_CLIENT_NOT_READY = 100204
