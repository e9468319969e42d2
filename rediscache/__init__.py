"""
rediscache

Redis caching layer: direct keyed access, cache-aside ("promise") and
background refresh ("interval") modes, and async method memoization.
"""

from rediscache.infrastructure.cache import (
    CacheIO,
    CacheProvider,
    CallOptions,
    IntervalScheduler,
    KeyRegistry,
    ReconnectPolicy,
    RedisClient,
    ServiceCache,
    TimeoutOption,
    TimingOption,
    close_cache,
    get_cache_provider,
    init_cache,
)

__version__ = "1.0.0"

__all__ = [
    "RedisClient",
    "ReconnectPolicy",
    "CacheProvider",
    "CacheIO",
    "IntervalScheduler",
    "TimeoutOption",
    "TimingOption",
    "ServiceCache",
    "CallOptions",
    "KeyRegistry",
    "get_cache_provider",
    "init_cache",
    "close_cache",
]
