"""
Cache Module

Redis store adapter, cache-aside and background refresh modes, and method
memoization.
"""

from .cache_provider import (
    CacheIO,
    CacheProvider,
    close_cache,
    get_cache_provider,
    init_cache,
)
from .interval_scheduler import IntervalScheduler, TimeoutOption, TimingOption
from .reconnect_policy import ReconnectPolicy
from .redis_client import RedisClient, close_redis, get_redis_client, init_redis
from .service_cache import CallOptions, KeyRegistry, ServiceCache

__all__ = [
    "RedisClient",
    "get_redis_client",
    "init_redis",
    "close_redis",
    "ReconnectPolicy",
    "CacheProvider",
    "CacheIO",
    "get_cache_provider",
    "init_cache",
    "close_cache",
    "IntervalScheduler",
    "TimeoutOption",
    "TimingOption",
    "ServiceCache",
    "CallOptions",
    "KeyRegistry",
]
