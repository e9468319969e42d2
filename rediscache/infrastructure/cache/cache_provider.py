#!/usr/bin/env python3
"""
Cache Provider

Architecture:
    CacheProvider (Public API)
        ├── RedisClient (Direct keyed operations)
        ├── promise / promise_io (Cache-aside: read, compute on miss)
        └── interval / interval_io (Background refresh via IntervalScheduler)

Promise mode puts the computation on the caller's path only on a miss.
Interval mode takes it off the request path entirely: readers always get
whatever the last background run wrote.

Neither mode takes a lock. Concurrent misses on one key each compute and
each write; the last write wins.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from rediscache.core.config.constants import Stage
from rediscache.core.logging.logger import get_logger, log_stage
from rediscache.infrastructure.cache.interval_scheduler import (
    IntervalScheduler,
    TimeoutOption,
    TimingOption,
)
from rediscache.infrastructure.cache.redis_client import RedisClient, get_redis_client

logger = get_logger(__name__)

T = TypeVar("T")

Computation = Callable[[], Awaitable[T]]


@dataclass(frozen=True)
class CacheIO(Generic[T]):
    """
    Accessor pair returned by the ``*_io`` modes.

    Attributes:
        get: Read the cached value (promise mode: compute on miss)
        update: Compute now and overwrite the cached value
    """

    get: Callable[[], Awaitable[T]]
    update: Callable[[], Awaitable[T]]


class CacheProvider:
    """
    Entry point for all cache patterns.

    Usage:
        provider = CacheProvider(redis_client)

        # Cache-aside
        user = await provider.promise("user:42", lambda: load_user(42))

        # Caller decides per call between cached and fresh
        user_io = provider.promise_io("user:42", lambda: load_user(42))
        fresh = await user_io.update()

        # Background refresh every minute, retry every 5s on failure
        get_rates = provider.interval("rates", fetch_rates, timeout=TimeoutOption(60_000, 5_000))
        rates = await get_rates()
    """

    def __init__(
        self,
        client: RedisClient | None = None,
        scheduler: IntervalScheduler | None = None,
        logger_instance=None,
    ):
        self._client = client or get_redis_client()
        self._logger = logger_instance or logger
        self._scheduler = scheduler or IntervalScheduler(logger_instance=logger_instance)

    @property
    def client(self) -> RedisClient:
        """Underlying store adapter."""
        return self._client

    @property
    def scheduler(self) -> IntervalScheduler:
        return self._scheduler

    async def initialize(self) -> None:
        """Connect the store adapter."""
        await self._client.connect()

    async def shutdown(self) -> None:
        """Stop background jobs and close the connection."""
        await self._scheduler.shutdown()
        await self._client.disconnect()

    # -------------------------------------------------------------------------
    # Promise mode
    # -------------------------------------------------------------------------

    async def promise(self, key: str, compute: Computation[T], ttl: int | None = None) -> T:
        """
        Return the cached value, computing and storing it on a miss.

        STAGE-CACHE.P: Cache-aside read

        Any stored value other than None counts as a hit, including falsy
        values. A failing computation propagates and nothing is written.

        Args:
            key: Cache key
            compute: Zero-argument async callable producing the value
            ttl: TTL for the write on a miss (default: CACHE_DEFAULT_TTL)
        """
        value = await self._client.get(key)
        if value is not None:
            log_stage(self._logger, Stage.CACHE_PROMISE, "Cache hit", level="debug", cache_key=key)
            return value

        log_stage(self._logger, Stage.CACHE_PROMISE, "Cache miss", level="debug", cache_key=key)
        return await self._compute_and_store(key, compute, ttl)

    def promise_io(self, key: str, compute: Computation[T], ttl: int | None = None) -> CacheIO[T]:
        """
        Build a read/refresh accessor pair for one key.

        ``get()`` behaves like ``promise``; ``update()`` always computes and
        overwrites.
        """

        async def get() -> T:
            return await self.promise(key, compute, ttl)

        async def update() -> T:
            return await self._compute_and_store(key, compute, ttl)

        return CacheIO(get=get, update=update)

    # -------------------------------------------------------------------------
    # Interval mode
    # -------------------------------------------------------------------------

    def interval(
        self,
        key: str,
        compute: Computation[T],
        timeout: TimeoutOption | None = None,
        timing: TimingOption | None = None,
    ) -> Callable[[], Awaitable[T | None]]:
        """
        Refresh ``key`` in the background and return a reader for it.

        STAGE-CACHE.I: Background refresh registration

        Must be called from a running event loop. The reader only performs
        ``get(key)``; it never triggers the computation and returns None
        until the first run has written a value.
        """
        return self.interval_io(key, compute, timeout=timeout, timing=timing).get

    def interval_io(
        self,
        key: str,
        compute: Computation[T],
        timeout: TimeoutOption | None = None,
        timing: TimingOption | None = None,
    ) -> CacheIO[T]:
        """
        Like ``interval``, plus an ``update()`` that computes and writes on demand.
        """

        async def refresh() -> T:
            return await self._compute_and_store(key, compute, stage=Stage.CACHE_INTERVAL)

        async def get() -> T | None:
            return await self._client.get(key)

        self._scheduler.schedule(key, refresh, timeout=timeout, timing=timing)
        return CacheIO(get=get, update=refresh)

    async def _compute_and_store(
        self,
        key: str,
        compute: Computation[T],
        ttl: int | None = None,
        stage: Stage = Stage.CACHE_PROMISE,
    ) -> T:
        value = await compute()
        await self._client.set(key, value, ttl)
        log_stage(self._logger, stage, "Cache populated", level="debug", cache_key=key)
        return value

    # -------------------------------------------------------------------------
    # Direct keyed operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> Any:
        return await self._client.get(key)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        return await self._client.set(key, value, ttl)

    async def delete(self, keys: str | list[str]) -> int:
        return await self._client.delete(keys)

    async def delete_pattern(self, pattern: str) -> int:
        return await self._client.delete_pattern(pattern)

    async def exists(self, *keys: str) -> int:
        return await self._client.exists(*keys)

    async def set_if_absent(self, key: str, value: Any, ttl: int) -> int:
        return await self._client.set_if_absent(key, value, ttl)

    async def increment(self, key: str, ttl: int | None = None) -> int:
        return await self._client.increment(key, ttl)

    async def decrement(self, key: str, ttl: int | None = None) -> int:
        return await self._client.decrement(key, ttl)

    async def expire(self, key: str, seconds: int) -> int:
        return await self._client.expire(key, seconds)

    async def ttl(self, key: str) -> int:
        return await self._client.ttl(key)

    async def keys(self, pattern: str) -> list[str]:
        return await self._client.keys(pattern)

    async def hash_set(self, key: str, field_or_mapping: str | Mapping[str, Any], *value: Any) -> int:
        return await self._client.hash_set(key, field_or_mapping, *value)

    async def hash_get(self, key: str, field: str | list[str] | None = None) -> Any:
        return await self._client.hash_get(key, field)

    async def hash_delete(self, key: str, *fields: str) -> int:
        return await self._client.hash_delete(key, *fields)

    async def health_check(self) -> dict[str, Any]:
        health = await self._client.health_check()
        health["interval_jobs"] = self._scheduler.active_jobs
        return health


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_cache_provider: CacheProvider | None = None


def get_cache_provider() -> CacheProvider:
    """
    Get the global cache provider instance (singleton).

    Returns:
        CacheProvider: Global cache provider
    """
    global _cache_provider

    if _cache_provider is None:
        _cache_provider = CacheProvider()

    return _cache_provider


async def init_cache() -> CacheProvider:
    """
    Initialize and connect the global cache provider.

    Returns:
        CacheProvider: Connected cache provider
    """
    provider = get_cache_provider()
    await provider.initialize()
    return provider


async def close_cache() -> None:
    """Stop background jobs and close the global cache provider."""
    global _cache_provider

    if _cache_provider:
        await _cache_provider.shutdown()
        _cache_provider = None
