"""
Configuration Module

- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Stage identifiers, key conventions and error codes

Usage:
------
```python
from rediscache.core.config import get_settings

settings = get_settings()
redis_host = settings.redis.REDIS_HOST
```

Environment Variables:
---------------------
```bash
REDIS_HOST=localhost
REDIS_PORT=6379
REDIS_RETRY_MAX_ATTEMPTS=6
CACHE_KEY_NAMESPACE=ServiceCache
LOG_LEVEL=INFO
LOG_FORMAT=json
```
"""

from rediscache.core.config.constants import (
    ERROR_CODE_CLIENT_NOT_READY,
    ERROR_CODE_CONNECTION_REFUSED,
    ERROR_CODE_RETRY_ATTEMPTS_EXHAUSTED,
    ERROR_CODE_RETRY_TIME_EXHAUSTED,
    KEY_PATTERN_WILDCARD,
    KEY_SEPARATOR,
    Stage,
)
from rediscache.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "Stage",
    # Keys
    "KEY_SEPARATOR",
    "KEY_PATTERN_WILDCARD",
    # Error codes
    "ERROR_CODE_CONNECTION_REFUSED",
    "ERROR_CODE_RETRY_TIME_EXHAUSTED",
    "ERROR_CODE_RETRY_ATTEMPTS_EXHAUSTED",
    "ERROR_CODE_CLIENT_NOT_READY",
]
