"""
Background Refresh Scheduler

Runs a refresh task (compute a value, write it to the cache) in the
background so that readers never wait on the computation.

Two trigger modes, usable together:

    Timeout mode:  run → sleep(success | error) → run → ...
                   Delays are measured from the end of the previous run.

    Timing mode:   run now, and again on every firing of a cron schedule.
                   A failed run is retried after ``timing.error`` ms until
                   it succeeds; retries never touch the cron job itself.

Jobs live for the lifetime of the process. ``shutdown()`` cancels them all
at teardown; there is no per-job stop.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from itertools import count

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger

from rediscache.core.config.constants import Stage
from rediscache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

RefreshTask = Callable[[], Awaitable[object]]


@dataclass(frozen=True)
class TimeoutOption:
    """
    Fixed-delay refresh.

    Attributes:
        success: Delay in ms after a successful run
        error: Delay in ms after a failed run (falls back to ``success``)
    """

    success: int
    error: int | None = None

    @property
    def error_delay(self) -> int:
        return self.error or self.success


@dataclass(frozen=True)
class TimingOption:
    """
    Calendar refresh.

    Attributes:
        schedule: Crontab expression ("*/5 * * * *") or an APScheduler trigger
        error: Delay in ms before retrying a failed run
    """

    schedule: str | BaseTrigger
    error: int

    def to_trigger(self) -> BaseTrigger:
        if isinstance(self.schedule, BaseTrigger):
            return self.schedule
        return CronTrigger.from_crontab(self.schedule)


class IntervalScheduler:
    """
    Owns every background refresh job of the process.

    Usage:
        scheduler = IntervalScheduler()
        scheduler.schedule("rates", refresh_rates, timeout=TimeoutOption(60_000, 5_000))
        scheduler.schedule("report", build_report, timing=TimingOption("0 * * * *", 30_000))
        ...
        await scheduler.shutdown()
    """

    def __init__(self, scheduler: AsyncIOScheduler | None = None, logger_instance=None):
        self._scheduler = scheduler or AsyncIOScheduler()
        self._logger = logger_instance or logger
        self._tasks: set[asyncio.Task] = set()
        self._job_ids = count(1)

    @property
    def active_jobs(self) -> int:
        """Number of refresh chains currently alive (running or sleeping)."""
        return len(self._tasks)

    def schedule(
        self,
        key: str,
        task: RefreshTask,
        timeout: TimeoutOption | None = None,
        timing: TimingOption | None = None,
    ) -> None:
        """
        Start background refreshing for ``key``.

        Must be called from a running event loop. The first run starts
        immediately for each configured mode.

        Raises:
            RuntimeError: If no event loop is running
        """
        asyncio.get_running_loop()

        if timeout is not None:
            self._spawn(self._run_timeout_chain(key, task, timeout))
            log_stage(
                self._logger,
                Stage.CACHE_INTERVAL,
                "Timeout refresh scheduled",
                cache_key=key,
                success_ms=timeout.success,
                error_ms=timeout.error_delay,
            )

        if timing is not None:
            self._spawn(self._run_until_success(key, task, timing.error))
            if not self._scheduler.running:
                self._scheduler.start()
            self._scheduler.add_job(
                self._fire,
                trigger=timing.to_trigger(),
                args=[key, task, timing.error],
                id=f"interval:{key}:{next(self._job_ids)}",
                name=key,
            )
            log_stage(
                self._logger,
                Stage.CACHE_INTERVAL,
                "Timing refresh scheduled",
                cache_key=key,
                schedule=str(timing.schedule),
                error_ms=timing.error,
            )

    async def shutdown(self) -> None:
        """Cancel every refresh chain and stop the cron scheduler."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _fire(self, key: str, task: RefreshTask, error_ms: int) -> None:
        # Each firing gets its own chain so a slow retry never blocks the next firing
        self._spawn(self._run_until_success(key, task, error_ms))

    async def _run_timeout_chain(self, key: str, task: RefreshTask, option: TimeoutOption) -> None:
        while True:
            try:
                await task()
            except Exception as e:
                delay = option.error_delay
                self._warn_failure(key, delay, e)
            else:
                delay = option.success
            await asyncio.sleep(delay / 1000)

    async def _run_until_success(self, key: str, task: RefreshTask, error_ms: int) -> None:
        while True:
            try:
                await task()
                return
            except Exception as e:
                self._warn_failure(key, error_ms, e)
            await asyncio.sleep(error_ms / 1000)

    def _warn_failure(self, key: str, delay_ms: int, error: Exception) -> None:
        log_stage(
            self._logger,
            Stage.CACHE_INTERVAL,
            f"Interval refresh failed, retrying in {delay_ms / 1000}s: {error}",
            level="warning",
            cache_key=key,
            retry_in_s=delay_ms / 1000,
            error=str(error),
            error_type=type(error).__name__,
        )
