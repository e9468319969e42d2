"""
Reconnect Policy for the Redis Connection

Decides, after every failed connection attempt, whether to try again and
after how long.

Decision table (evaluated in order):
    1. Connection refused by the server     -> CacheConnectionRefusedError
    2. Total retry time > max retry time    -> CacheRetryTimeExhaustedError
    3. Attempt number > max attempts        -> CacheRetryAttemptsExhaustedError
    4. Otherwise                            -> min(attempt * step, max delay) ms

The policy is consulted by the connection lifecycle only. Individual cache
commands never retry.
"""

import errno

from tenacity import RetryCallState

from rediscache.core.config.constants import Stage
from rediscache.core.config.settings import ReconnectSettings, get_settings
from rediscache.core.exceptions import (
    CacheConnectionError,
    CacheConnectionRefusedError,
    CacheRetryAttemptsExhaustedError,
    CacheRetryTimeExhaustedError,
)
from rediscache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


def is_connection_refused(error: BaseException | None) -> bool:
    """
    Check whether an error (or anything in its cause chain) is ECONNREFUSED.

    redis-py wraps socket errors in its own ``ConnectionError``, so the
    original ``OSError`` is found through ``__cause__``/``__context__``.
    """
    seen: set[int] = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        if isinstance(error, ConnectionRefusedError):
            return True
        if getattr(error, "errno", None) == errno.ECONNREFUSED:
            return True
        error = error.__cause__ or error.__context__
    return False


class ReconnectPolicy:
    """
    Linear backoff with attempt and elapsed-time budgets.

    Usage:
        policy = ReconnectPolicy()
        decision = policy.evaluate(error, attempt=3, total_retry_time_ms=500)
        # -> 300 (milliseconds)
    """

    def __init__(
        self,
        max_attempts: int = 6,
        max_retry_time_ms: int = 60_000,
        step_ms: int = 100,
        max_delay_ms: int = 3_000,
        logger_instance=None,
    ):
        self.max_attempts = max_attempts
        self.max_retry_time_ms = max_retry_time_ms
        self.step_ms = step_ms
        self.max_delay_ms = max_delay_ms
        self._logger = logger_instance or logger

    @classmethod
    def from_settings(
        cls, settings: ReconnectSettings | None = None, logger_instance=None
    ) -> "ReconnectPolicy":
        settings = settings or get_settings().reconnect
        return cls(
            max_attempts=settings.REDIS_RETRY_MAX_ATTEMPTS,
            max_retry_time_ms=settings.REDIS_RETRY_MAX_TIME_MS,
            step_ms=settings.REDIS_RETRY_STEP_MS,
            max_delay_ms=settings.REDIS_RETRY_MAX_DELAY_MS,
            logger_instance=logger_instance,
        )

    def evaluate(
        self, error: BaseException | None, attempt: int, total_retry_time_ms: float
    ) -> int | CacheConnectionError:
        """
        Decide what to do after a failed connection attempt.

        Args:
            error: The error that made the attempt fail
            attempt: Cumulative number of attempts so far
            total_retry_time_ms: Cumulative time spent retrying

        Returns:
            Backoff delay in milliseconds, or the terminal error to raise
        """
        log_stage(
            self._logger,
            Stage.REDIS_RECONNECT,
            "Redis connection attempt failed",
            level="error",
            attempt=attempt,
            total_retry_time_ms=round(total_retry_time_ms, 1),
            error=str(error),
        )

        details = {"attempt": attempt, "total_retry_time_ms": round(total_retry_time_ms, 1)}

        if is_connection_refused(error):
            return CacheConnectionRefusedError(details=details)
        if total_retry_time_ms > self.max_retry_time_ms:
            return CacheRetryTimeExhaustedError(details=details)
        if attempt > self.max_attempts:
            return CacheRetryAttemptsExhaustedError(details=details)
        return min(attempt * self.step_ms, self.max_delay_ms)


class PolicyRetryStrategy:
    """
    Adapts a ReconnectPolicy to tenacity's stop/wait hooks.

    tenacity calls ``stop`` before ``wait`` after each failed attempt, so the
    policy is evaluated once in ``stop`` and its delay reused by ``wait``.

    Usage:
        strategy = PolicyRetryStrategy(policy)
        async for attempt in AsyncRetrying(
            stop=strategy.stop,
            wait=strategy.wait,
            retry_error_callback=strategy.give_up,
        ):
            with attempt:
                await client.ping()
    """

    def __init__(self, policy: ReconnectPolicy):
        self._policy = policy
        self._decision: int | CacheConnectionError | None = None

    def stop(self, retry_state: RetryCallState) -> bool:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        self._decision = self._policy.evaluate(
            error,
            attempt=retry_state.attempt_number,
            total_retry_time_ms=retry_state.seconds_since_start * 1000,
        )
        return isinstance(self._decision, CacheConnectionError)

    def wait(self, retry_state: RetryCallState) -> float:
        if isinstance(self._decision, int):
            return self._decision / 1000
        return 0.0

    def give_up(self, retry_state: RetryCallState):
        error = retry_state.outcome.exception() if retry_state.outcome else None
        decision = self._decision
        if not isinstance(decision, CacheConnectionError):
            decision = CacheConnectionError(details={"attempt": retry_state.attempt_number})
        raise decision from error
