"""
Method Memoization Layer

Caches the results of async functions and methods under keys derived from
the function's identity and its call arguments.

Key layout:
    <namespace>:<Owner>_<method>:<serialized arguments>
    e.g. ServiceCache:UserService_get_user:0=42

``self``/``cls`` never take part in the key, so every instance of a class
shares one cache per method and argument list.

Usage:
    service_cache = ServiceCache(provider)

    class UserService:
        @service_cache.cached(ttl=300)
        async def get_user(self, user_id: int) -> dict: ...

    await svc.get_user(42)                                          # cached
    await svc.get_user(42, cache_options=CallOptions(force_refresh=True))  # recomputed
    await service_cache.clear_for(UserService.get_user, 42)        # invalidate one
    await service_cache.clear_for(UserService.get_user)            # invalidate all
"""

import functools
import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from rediscache.core.config.constants import KEY_PATTERN_WILDCARD, KEY_SEPARATOR, Stage
from rediscache.core.config.settings import get_settings
from rediscache.core.logging.logger import get_logger, log_stage
from rediscache.infrastructure.cache.cache_provider import CacheProvider
from rediscache.infrastructure.cache.serialization import (
    ArgsSerializer,
    escape_glob,
    serialize_arguments,
)

logger = get_logger(__name__)

_INSTANCE_PARAMS = ("self", "cls")


@dataclass(frozen=True)
class CallOptions:
    """
    Per-call cache options, passed as the keyword-only ``cache_options``.

    Attributes:
        force_refresh: Skip the cache read and recompute (the result is still written)
    """

    force_refresh: bool = False


class KeyRegistry:
    """
    Maps memoized functions to their base cache key.

    Both the original function and its wrapper are registered, so lookups
    work with whichever one the caller holds (including bound methods).
    """

    def __init__(self):
        self._keys: dict[Callable, str] = {}

    def register(self, base_key: str, *functions: Callable) -> None:
        for fn in functions:
            self._keys[fn] = base_key

    def lookup(self, fn: Callable) -> str | None:
        fn = getattr(fn, "__func__", fn)
        return self._keys.get(fn)

    def __len__(self) -> int:
        return len(set(self._keys.values()))


def _owner_name(fn: Callable) -> str:
    parts = fn.__qualname__.split(".")
    if len(parts) > 1 and parts[-2] != "<locals>":
        return parts[-2]
    return fn.__module__.rsplit(".", 1)[-1]


def _takes_instance(fn: Callable) -> bool:
    params = list(inspect.signature(fn).parameters)
    return bool(params) and params[0] in _INSTANCE_PARAMS


class ServiceCache:
    """
    Decorator factory for memoizing async callables.

    Hits are stored values other than None. Falsy results (None, 0, "", [],
    {}) are returned but never written, so they are recomputed on every call.
    A failing call propagates and writes nothing.

    Apply ``cached`` below ``@classmethod``/``@staticmethod``.
    """

    def __init__(
        self,
        provider: CacheProvider,
        registry: KeyRegistry | None = None,
        serializer: ArgsSerializer = serialize_arguments,
        namespace: str | None = None,
        logger_instance=None,
    ):
        self._provider = provider
        self._registry = registry or KeyRegistry()
        self._serializer = serializer
        self._namespace = namespace or get_settings().cache.CACHE_KEY_NAMESPACE
        self._logger = logger_instance or logger

    @property
    def registry(self) -> KeyRegistry:
        return self._registry

    def base_key_for(self, fn: Callable, key: str | None = None) -> str:
        """Build ``<namespace>:<key or Owner_method>`` for a function."""
        name = key or f"{_owner_name(fn)}_{fn.__name__}"
        return f"{self._namespace}{KEY_SEPARATOR}{name}"

    def cached(self, ttl: int | None = None, key: str | None = None):
        """
        Memoize an async function or method.

        Args:
            ttl: TTL in seconds for stored results (default: CACHE_DEFAULT_TTL)
            key: Explicit base key replacing ``<Owner>_<method>``

        Raises:
            TypeError: If the decorated function is not a coroutine function
        """

        def decorator(fn):
            if not inspect.iscoroutinefunction(fn):
                raise TypeError(f"{fn.__qualname__} must be an async function to be cached")

            base_key = self.base_key_for(fn, key)
            skip_instance = _takes_instance(fn)

            @functools.wraps(fn)
            async def wrapper(*args, cache_options: CallOptions | None = None, **kwargs):
                key_args = args[1:] if skip_instance else args
                full_key = f"{base_key}{KEY_SEPARATOR}{self._serializer(key_args, kwargs)}"

                if cache_options is None or not cache_options.force_refresh:
                    value = await self._provider.get(full_key)
                    if value is not None:
                        log_stage(
                            self._logger,
                            Stage.CACHE_SERVICE,
                            "Service cache hit",
                            level="debug",
                            cache_key=full_key,
                        )
                        return value

                result = await fn(*args, **kwargs)
                if result:
                    await self._provider.set(full_key, result, ttl)
                log_stage(
                    self._logger,
                    Stage.CACHE_SERVICE,
                    "Service cache computed",
                    level="debug",
                    cache_key=full_key,
                    stored=bool(result),
                )
                return result

            self._registry.register(base_key, fn, wrapper)
            return wrapper

        return decorator

    async def clear_for(self, fn: Callable, *args: Any, **kwargs: Any) -> int:
        """
        Invalidate cached results of a memoized function.

        Without arguments every result of the function is deleted. With
        arguments, results whose serialized arguments start with the given
        ones are deleted: ``clear_for(fn, 1)`` also removes ``fn(1, x)``
        entries. Keyword arguments match results of calls that passed the
        same arguments by keyword: a call made as ``fn(user_id=1)`` is
        cleared by ``clear_for(fn, user_id=1)``, not by ``clear_for(fn, 1)``.

        Returns:
            Number of keys removed (0 if ``fn`` was never memoized)
        """
        base_key = self._registry.lookup(fn)
        if base_key is None:
            return 0

        pattern = f"{escape_glob(base_key)}{KEY_SEPARATOR}"
        if args or kwargs:
            pattern += escape_glob(self._serializer(args, kwargs))
        pattern += KEY_PATTERN_WILDCARD

        removed = await self._provider.delete_pattern(pattern)
        log_stage(
            self._logger,
            Stage.CACHE_INVALIDATE,
            "Service cache cleared",
            base_key=base_key,
            pattern=pattern,
            removed=removed,
        )
        return removed
