"""
Exception Module

Structured exception hierarchy for the cache layer.

Module Structure:
-----------------
- **base.py**: RedisCacheError base class + ConfigurationError
- **cache.py**: Store, connection and serialization exceptions

Usage:
------
```python
from rediscache.core.exceptions import CacheUnavailableError

try:
    value = await cache.get("user:42")
except CacheUnavailableError:
    value = await load_user(42)
```
"""

from rediscache.core.exceptions.base import ConfigurationError, RedisCacheError
from rediscache.core.exceptions.cache import (
    CacheConnectionError,
    CacheConnectionRefusedError,
    CacheError,
    CacheKeyError,
    CacheRetryAttemptsExhaustedError,
    CacheRetryTimeExhaustedError,
    CacheSerializationError,
    CacheUnavailableError,
)

__all__ = [
    # Base
    "RedisCacheError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheUnavailableError",
    "CacheConnectionError",
    "CacheConnectionRefusedError",
    "CacheRetryTimeExhaustedError",
    "CacheRetryAttemptsExhaustedError",
    "CacheKeyError",
    "CacheSerializationError",
]
