"""
Redis Store Adapter

Architecture:
    RedisClient (Public API, value encoding)
        ├── ConnectionManager (Connection lifecycle, reconnect policy)
        ├── OperationExecutor (Command execution with error handling)
        └── HealthMonitor (Health checks)

Every call is a single round trip to Redis; there is no local cache or
batching in front of it. When the connection is not ready, operations fail
immediately with CacheUnavailableError instead of queuing.
"""

import asyncio
import time
from collections.abc import Callable, Mapping
from typing import Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import AsyncRetrying, retry_if_exception_type

from rediscache.core.config.constants import Stage
from rediscache.core.config.settings import Settings, get_settings
from rediscache.core.exceptions import CacheKeyError, CacheUnavailableError
from rediscache.core.logging.logger import get_logger, log_stage
from rediscache.infrastructure.cache.reconnect_policy import (
    PolicyRetryStrategy,
    ReconnectPolicy,
)
from rediscache.infrastructure.cache.serialization import decode_value, encode_value

logger = get_logger(__name__)

ClientFactory = Callable[[], redis.Redis]

_MISSING = object()


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# Handles connection lifecycle, readiness and reconnection
# =============================================================================


class ConnectionManager:
    """
    Manages the Redis connection lifecycle.

    Responsibility: Connection establishment, readiness state and reconnects.

    Every failed connection attempt is handed to the ReconnectPolicy, which
    either returns a backoff delay or a terminal CacheConnectionError. A
    terminal error is raised to whoever awaits ``connect()`` or
    ``wait_until_ready()``; it never escapes into the event loop.

    redis-py's own retry is disabled on the pool so the policy is the only
    component deciding when to reconnect.
    """

    def __init__(
        self,
        settings: Settings,
        policy: ReconnectPolicy | None = None,
        client_factory: ClientFactory | None = None,
        logger_instance=None,
    ):
        self._settings = settings
        self._policy = policy or ReconnectPolicy.from_settings(settings.reconnect)
        self._client_factory = client_factory or self._create_client
        self._logger = logger_instance or logger
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = None
        self._is_ready = False
        self._reconnect_task: asyncio.Task | None = None

    def _create_client(self) -> redis.Redis:
        self._pool = ConnectionPool(
            host=self._settings.redis.REDIS_HOST,
            port=self._settings.redis.REDIS_PORT,
            db=self._settings.redis.REDIS_DB,
            password=self._settings.redis.REDIS_PASSWORD,
            max_connections=self._settings.redis.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=self._settings.redis.REDIS_SOCKET_CONNECT_TIMEOUT,
            socket_timeout=self._settings.redis.REDIS_SOCKET_TIMEOUT,
            health_check_interval=self._settings.redis.REDIS_HEALTH_CHECK_INTERVAL,
            retry=Retry(NoBackoff(), 0),
            decode_responses=True,  # Return strings instead of bytes
        )
        return redis.Redis(connection_pool=self._pool)

    async def connect(self) -> redis.Redis:
        """
        Establish the connection, retrying as the reconnect policy allows.

        STAGE-REDIS.2: Connection establishment

        Returns:
            redis.Redis: Connected Redis client

        Raises:
            CacheConnectionError: If the policy gives up
        """
        if self._is_ready and self._client:
            return self._client

        if self._reconnect_task and not self._reconnect_task.done():
            await self._reconnect_task
            return self._client

        await self._establish()
        return self._client

    async def _establish(self) -> None:
        if self._client is None:
            self._client = self._client_factory()

        strategy = PolicyRetryStrategy(self._policy)
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((RedisConnectionError, RedisTimeoutError, OSError)),
            stop=strategy.stop,
            wait=strategy.wait,
            retry_error_callback=strategy.give_up,
        ):
            with attempt:
                await self._client.ping()

        self._is_ready = True
        log_stage(
            self._logger,
            Stage.REDIS_CONNECT,
            "Redis connection ready",
            host=self._settings.redis.REDIS_HOST,
            port=self._settings.redis.REDIS_PORT,
        )

    def mark_unavailable(self, error: BaseException) -> None:
        """
        Flag the connection as lost and reconnect in the background.

        Called by the executor when a command hits a connection error.
        Operations fail fast with CacheUnavailableError until the reconnect
        succeeds.
        """
        if not self._is_ready:
            return

        self._is_ready = False
        log_stage(
            self._logger,
            Stage.REDIS_RECONNECT,
            "Redis connection lost, reconnecting",
            level="warning",
            error=str(error),
        )
        self._reconnect_task = asyncio.create_task(self._establish())
        self._reconnect_task.add_done_callback(self._on_reconnect_done)

    def _on_reconnect_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log_stage(
                self._logger,
                Stage.REDIS_RECONNECT,
                "Redis reconnect abandoned",
                level="error",
                error=str(error),
            )

    async def wait_until_ready(self) -> None:
        """
        Wait for a background reconnect to finish.

        Raises:
            CacheConnectionError: If the reconnect was abandoned
            CacheUnavailableError: If no connection exists and none is in progress
        """
        if self._reconnect_task is not None:
            await asyncio.shield(self._reconnect_task)
        if not self._is_ready:
            raise CacheUnavailableError()

    async def disconnect(self) -> None:
        """
        Close the Redis client and pool.

        STAGE-REDIS.3: Connection cleanup
        """
        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._reconnect_task = None

        if self._client:
            await self._client.aclose()

        if self._pool:
            await self._pool.disconnect()

        self._client = None
        self._pool = None
        self._is_ready = False

        log_stage(self._logger, Stage.REDIS_DISCONNECT, "Redis disconnected")

    async def ping(self) -> bool:
        """
        Check Redis connection health.

        Returns:
            True if healthy, False otherwise
        """
        try:
            if self._client and self._is_ready:
                await self._client.ping()
                return True
        except RedisError:
            pass
        return False

    def get_client(self) -> redis.Redis | None:
        """Get the Redis client instance."""
        return self._client

    def is_ready(self) -> bool:
        """Check if the connection is ready for commands."""
        return self._is_ready


# =============================================================================
# LAYER 2: OPERATION EXECUTOR
# Executes Redis commands with error handling and logging
# =============================================================================


class OperationExecutor:
    """
    Executes Redis commands with consistent error handling.

    Error Handling Strategy:
    - Not ready: raise CacheUnavailableError before touching the socket
    - Connection lost or timed out mid-command: start a reconnect, raise
      CacheUnavailableError
    - Any other RedisError: log with context, raise CacheKeyError
    """

    def __init__(self, connection_manager: ConnectionManager, logger_instance=None):
        self._conn_mgr = connection_manager
        self._logger = logger_instance or logger

    async def execute(self, command: str, *args, **kwargs) -> Any:
        """
        Run one Redis command.

        Args:
            command: redis-py method name (e.g., "get", "hset")
            *args: Command arguments
            **kwargs: Command keyword arguments

        Returns:
            The raw Redis reply
        """
        client = self._conn_mgr.get_client()
        if client is None or not self._conn_mgr.is_ready():
            raise CacheUnavailableError(details={"command": command.upper()})

        try:
            return await getattr(client, command)(*args, **kwargs)
        except (RedisConnectionError, RedisTimeoutError) as e:
            self._conn_mgr.mark_unavailable(e)
            raise CacheUnavailableError.from_exception(
                e, message="Redis connection lost", command=command.upper()
            ) from e
        except RedisError as e:
            log_stage(
                self._logger,
                Stage.REDIS_COMMAND,
                f"Redis {command.upper()} failed",
                level="error",
                cache_key=args[0] if args else None,
                error=str(e),
            )
            raise CacheKeyError.from_exception(
                e, message=f"Redis {command.upper()} failed: {e}", command=command.upper()
            ) from e


# =============================================================================
# LAYER 3: HEALTH MONITORING
# =============================================================================


class HealthMonitor:
    """Reports connection readiness and ping latency."""

    def __init__(self, connection_manager: ConnectionManager, settings: Settings, logger_instance=None):
        self._conn_mgr = connection_manager
        self._settings = settings
        self._logger = logger_instance or logger

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on Redis connection.

        STAGE-REDIS.HEALTH: Redis health check

        Returns:
            Dict with health status and ping latency
        """
        health = {
            "status": "healthy",
            "ready": self._conn_mgr.is_ready(),
            "host": self._settings.redis.REDIS_HOST,
            "port": self._settings.redis.REDIS_PORT,
            "ping_latency_ms": None,
        }

        client = self._conn_mgr.get_client()
        if not client or not self._conn_mgr.is_ready():
            health["status"] = "unhealthy"
            health["error"] = "Client not ready"
            return health

        try:
            start = time.perf_counter()
            await client.ping()
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        except RedisError as e:
            health["status"] = "unhealthy"
            health["error"] = str(e)
            log_stage(
                self._logger,
                Stage.REDIS_HEALTH,
                "Redis health check failed",
                level="warning",
                error=str(e),
            )

        return health


# =============================================================================
# LAYER 4: PUBLIC API
# =============================================================================


class RedisClient:
    """
    Async Redis store adapter.

    Values are written as JSON text and decoded on read, falling back to the
    raw string when the stored text is not JSON.

    Usage:
        client = RedisClient()
        await client.connect()

        await client.set("user:42", {"name": "Ada"}, ttl=3600)
        user = await client.get("user:42")          # {"name": "Ada"}

        await client.increment("hits:today", ttl=86400)
        await client.delete_pattern("user:*")

        await client.disconnect()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        policy: ReconnectPolicy | None = None,
        client_factory: ClientFactory | None = None,
        logger_instance=None,
    ):
        """
        Initialize Redis client.

        STAGE-REDIS.1: Client initialization

        Args:
            settings: Application settings (default: global settings)
            policy: Reconnect policy (default: built from settings)
            client_factory: Builds the underlying redis.asyncio client
            logger_instance: Logger exposing info/warning/error
        """
        self._settings = settings or get_settings()
        self._logger = logger_instance or logger
        self._default_ttl = self._settings.cache.CACHE_DEFAULT_TTL

        self._conn_mgr = ConnectionManager(
            self._settings,
            policy=policy or ReconnectPolicy.from_settings(
                self._settings.reconnect, logger_instance=logger_instance
            ),
            client_factory=client_factory,
            logger_instance=logger_instance,
        )
        self._executor = OperationExecutor(self._conn_mgr, logger_instance=logger_instance)
        self._health_monitor = HealthMonitor(
            self._conn_mgr, self._settings, logger_instance=logger_instance
        )

        log_stage(
            self._logger,
            Stage.REDIS_INIT,
            "Redis client initialized",
            host=self._settings.redis.REDIS_HOST,
            port=self._settings.redis.REDIS_PORT,
        )

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Connect to Redis.

        Raises:
            CacheConnectionError: If the reconnect policy gives up
        """
        await self._conn_mgr.connect()

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        await self._conn_mgr.disconnect()

    async def wait_until_ready(self) -> None:
        """Wait for an in-flight reconnect to finish."""
        await self._conn_mgr.wait_until_ready()

    @property
    def is_ready(self) -> bool:
        """True when commands can be sent."""
        return self._conn_mgr.is_ready()

    async def ping(self) -> bool:
        """Check Redis connection health."""
        return await self._conn_mgr.ping()

    async def health_check(self) -> dict[str, Any]:
        """Perform health check on Redis connection."""
        return await self._health_monitor.health_check()

    # -------------------------------------------------------------------------
    # Basic Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> Any:
        """
        Get a value.

        Returns:
            Decoded value, or None if the key does not exist
        """
        return decode_value(await self._executor.execute("get", key))

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store a value as JSON text.

        Args:
            key: Cache key
            value: Any JSON-serializable value
            ttl: Time-to-live in seconds (default: CACHE_DEFAULT_TTL)

        Returns:
            True once Redis acknowledged the write
        """
        ttl = ttl if ttl is not None else self._default_ttl
        result = await self._executor.execute("set", key, encode_value(value), ex=ttl)
        return bool(result)

    async def delete(self, keys: str | list[str]) -> int:
        """
        Delete one key or a list of keys.

        Returns:
            Number of keys removed
        """
        keys = [keys] if isinstance(keys, str) else list(keys)
        if not keys:
            return 0
        return await self._executor.execute("delete", *keys)

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern.

        The pattern is resolved with KEYS first, then the matches are deleted.
        A pattern matching nothing returns 0 without issuing DEL.

        Returns:
            Number of keys removed
        """
        keys = await self.keys(pattern)
        if not keys:
            return 0
        removed = await self.delete(keys)
        log_stage(
            self._logger,
            Stage.CACHE_INVALIDATE,
            "Cache keys invalidated",
            pattern=pattern,
            removed=removed,
        )
        return removed

    async def keys(self, pattern: str) -> list[str]:
        """List keys matching a glob pattern."""
        return list(await self._executor.execute("keys", pattern))

    async def exists(self, *keys: str) -> int:
        """
        Count how many of the given keys exist.

        Returns:
            Number of keys present (0 when no keys are given)
        """
        if not keys:
            return 0
        return await self._executor.execute("exists", *keys)

    async def set_if_absent(self, key: str, value: Any, ttl: int) -> int:
        """
        Atomically set a key only if it does not exist (SET NX EX).

        Returns:
            1 if the value was set, 0 if the key already existed
        """
        result = await self._executor.execute("set", key, encode_value(value), ex=ttl, nx=True)
        return 1 if result else 0

    async def expire(self, key: str, seconds: int) -> int:
        """
        Set a TTL on an existing key.

        Returns:
            1 if the TTL was set, 0 if the key does not exist
        """
        return 1 if await self._executor.execute("expire", key, seconds) else 0

    async def ttl(self, key: str) -> int:
        """
        Get the remaining TTL of a key.

        Returns:
            TTL in seconds, -1 if no TTL, -2 if key doesn't exist
        """
        return await self._executor.execute("ttl", key)

    # -------------------------------------------------------------------------
    # Counter Operations
    # -------------------------------------------------------------------------

    async def increment(self, key: str, ttl: int | None = None) -> int:
        """
        Increment a counter, then optionally apply a TTL.

        The TTL is a second round trip (INCR, then EXPIRE), not atomic with
        the increment.

        Returns:
            New counter value
        """
        value = await self._executor.execute("incr", key)
        if ttl:
            await self.expire(key, ttl)
        return value

    async def decrement(self, key: str, ttl: int | None = None) -> int:
        """
        Decrement a counter, then optionally apply a TTL.

        Same two-step TTL behaviour as ``increment``.

        Returns:
            New counter value
        """
        value = await self._executor.execute("decr", key)
        if ttl:
            await self.expire(key, ttl)
        return value

    # -------------------------------------------------------------------------
    # Hash Operations
    # -------------------------------------------------------------------------

    async def hash_set(
        self, key: str, field_or_mapping: str | Mapping[str, Any], value: Any = _MISSING
    ) -> int:
        """
        Set one hash field, or several from a mapping.

        Usage:
            await client.hash_set("user:42", "name", "Ada")
            await client.hash_set("user:42", {"name": "Ada", "roles": ["admin"]})

        Returns:
            Number of fields that were newly created
        """
        if value is _MISSING:
            if not isinstance(field_or_mapping, Mapping):
                raise TypeError("hash_set needs a mapping when no value is given")
            mapping = {field: encode_value(v) for field, v in field_or_mapping.items()}
            if not mapping:
                return 0
            return await self._executor.execute("hset", key, mapping=mapping)
        return await self._executor.execute("hset", key, field_or_mapping, encode_value(value))

    async def hash_get(self, key: str, field: str | list[str] | None = None) -> Any:
        """
        Read hash fields, decoding each one eagerly.

        Fields whose text is not JSON are returned as the raw string.

        Args:
            key: Hash key
            field: One field name, a list of field names, or None for all fields

        Returns:
            - field is a str: the decoded value (None if missing)
            - field is a list: list of decoded values in the same order
            - field is None: dict of field -> decoded value, None if the hash is absent
        """
        if isinstance(field, str):
            return decode_value(await self._executor.execute("hget", key, field))
        if field is not None:
            raw_values = await self._executor.execute("hmget", key, list(field))
            return [decode_value(raw) for raw in raw_values]

        raw_hash = await self._executor.execute("hgetall", key)
        if not raw_hash:
            return None
        return {name: decode_value(raw) for name, raw in raw_hash.items()}

    async def hash_delete(self, key: str, *fields: str) -> int:
        """
        Delete hash fields.

        Returns:
            Number of fields deleted
        """
        return await self._executor.execute("hdel", key, *fields)


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_redis_client: RedisClient | None = None


def get_redis_client() -> RedisClient:
    """
    Get the global Redis client instance (singleton).

    Returns:
        RedisClient: Global Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = RedisClient()

    return _redis_client


async def init_redis() -> RedisClient:
    """
    Initialize and connect the global Redis client.

    Returns:
        RedisClient: Connected Redis client
    """
    client = get_redis_client()
    await client.connect()
    return client


async def close_redis() -> None:
    """Close the global Redis client."""
    global _redis_client

    if _redis_client:
        await _redis_client.disconnect()
        _redis_client = None
