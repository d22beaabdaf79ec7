"""Once-a-minute ticker that runs the callbacks of due jobs.

This module wraps APScheduler to provide:
- A self-rescheduling tick, one second past every minute boundary
- Concurrent invocation of every due callback, isolated from each other
- Execution hooks around each callback
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from concurrent.futures import Future
from concurrent.futures import ThreadPoolExecutor as CallbackPool
from datetime import datetime, timedelta
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED, JobExecutionEvent
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from ..core.config import TickerConfig
from ..core.exceptions import CallbackFailure
from ..core.logger import get_logger, log_exception
from .hooks import (
    HookRegistry,
    JobExecutionContext,
    JobExecutionResult,
    LoggingHook,
    MetricsHook,
)
from .jobs import Job, JobCallback, JobPredicate, JobRegistry

logger = get_logger("scheduler")

# Scheduled ticks only hand callbacks off, so they never hold a worker for long.
_TICK_WORKERS = 2


async def _settle(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


class CronTicker:
    """Evaluates registered jobs once a minute and runs the due ones.

    Each tick reads the clock, schedules the following tick for one second
    past the next minute boundary, and then invokes every job whose schedule
    fires at the observed time. Callbacks of one tick run concurrently and
    every one of them is allowed to settle; a failure is captured in that
    job's result and never reaches the caller or the next tick.

    Example:
        ```python
        from cron_ticker import CronTicker

        ticker = CronTicker()
        ticker.add("*/5 * * * *", refresh_cache)
        ticker.add("0 9 * * 1-5", send_report)
        ticker.start()
        ```
    """

    def __init__(
        self,
        config: TickerConfig | None = None,
        registry: JobRegistry | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the ticker.

        Args:
            config: Ticker configuration
            registry: Job registry to evaluate; a fresh one is created if None
            clock: Source of the current local time
        """
        self.config = config or TickerConfig()
        self.registry = registry if registry is not None else JobRegistry()
        self._clock = clock
        self._scheduler: BackgroundScheduler | None = None
        self._running = False
        self.next_tick_at: datetime | None = None

        self._hook_registry = HookRegistry()
        self._metrics_hook: MetricsHook | None = None
        self._setup_hooks()

    def _setup_hooks(self) -> None:
        """Setup execution hooks based on configuration."""
        if self.config.logging_hook_enabled:
            self._hook_registry.register(LoggingHook())
        if self.config.metrics_hook_enabled:
            self._metrics_hook = MetricsHook()
            self._hook_registry.register(self._metrics_hook)
        logger.debug(f"Registered {len(self._hook_registry.get_hooks())} execution hooks")

    def _setup_scheduler(self) -> BackgroundScheduler:
        scheduler = BackgroundScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": ThreadPoolExecutor(max_workers=_TICK_WORKERS)},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": self.config.misfire_grace_time,
            },
        )
        scheduler.add_listener(self._tick_event, EVENT_JOB_ERROR | EVENT_JOB_MISSED)
        return scheduler

    def _tick_event(self, event: JobExecutionEvent) -> None:
        """Keep the loop alive when APScheduler drops a tick."""
        if event.code == EVENT_JOB_ERROR:
            logger.error(f"Tick failed: {event.exception}", exc_info=event.exception)
            return
        logger.warning(f"Tick missed (scheduled for {event.scheduled_run_time})")
        if self._running:
            self._schedule_next_tick(self._clock())

    @property
    def hooks(self) -> HookRegistry:
        return self._hook_registry

    @property
    def metrics(self) -> MetricsHook | None:
        return self._metrics_hook

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> list[JobExecutionResult]:
        """Start the recurring loop and run the first tick immediately.

        Returns:
            Results of the first tick's callbacks

        Raises:
            RuntimeError: If the ticker is disabled in config
        """
        if not self.config.enabled:
            raise RuntimeError("Ticker is disabled in configuration")
        if self._running:
            logger.warning("Ticker already running")
            return []

        self._scheduler = self._setup_scheduler()
        self._scheduler.start()
        self._running = True
        logger.info(f"Ticker started with {len(self.registry)} jobs")
        return self.tick()

    def shutdown(self, wait: bool = False) -> None:
        """Stop the loop. Callbacks already running are left to finish.

        Args:
            wait: Whether to wait for an in-progress tick to complete
        """
        if not self._running:
            return
        self._running = False
        self.next_tick_at = None
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=wait)
            self._scheduler = None
        logger.info("Ticker stopped")

    def tick(self) -> list[JobExecutionResult]:
        """Run one tick: schedule the next one, then run due callbacks.

        Waits for the tick's callbacks to settle. The recurring loop uses
        :meth:`_scheduled_tick` instead, which does not wait.
        """
        now = self._clock()
        if self._running:
            self._schedule_next_tick(now)
        return self.run_due(now)

    def _scheduled_tick(self) -> None:
        now = self._clock()
        if not self._running:
            return
        self._schedule_next_tick(now)
        self._dispatch(now)

    def next_tick_delay(self, now: datetime) -> int:
        """Seconds from ``now`` until the tick after it."""
        return 60 + self.config.buffer_seconds - now.second

    def _schedule_next_tick(self, now: datetime) -> None:
        if self._scheduler is None:
            return
        run_at = now + timedelta(seconds=self.next_tick_delay(now))
        self._scheduler.add_job(
            self._scheduled_tick, DateTrigger(run_date=run_at), name="cron-ticker-tick"
        )
        self.next_tick_at = run_at
        logger.debug(f"Next tick scheduled at {run_at.isoformat()}")

    def _dispatch(self, now: datetime) -> list[Future[JobExecutionResult]]:
        """Submit every job due at ``now`` and return without waiting."""
        due = self.registry.due(now)
        if not due:
            logger.debug(f"No jobs due at {now:%Y-%m-%d %H:%M}")
            return []

        logger.info(f"{len(due)} job(s) due at {now:%Y-%m-%d %H:%M}")
        pool = CallbackPool(
            max_workers=min(self.config.max_workers, len(due)),
            thread_name_prefix="cron-ticker",
        )
        futures = [pool.submit(self._invoke, job, now) for job in due]
        # Submitted callbacks still run to completion.
        pool.shutdown(wait=False)
        return futures

    def run_due(self, now: datetime) -> list[JobExecutionResult]:
        """Invoke every job that fires at ``now`` and wait for all to settle.

        Args:
            now: The tick's timestamp, used for every schedule match

        Returns:
            One result per due job, in registration order
        """
        results = [future.result() for future in self._dispatch(now)]
        failures = sum(1 for result in results if not result.success)
        if failures:
            logger.warning(f"{failures} of {len(results)} job(s) failed at {now:%H:%M}")
        return results

    def _invoke(self, job: Job, tick_time: datetime) -> JobExecutionResult:
        context = JobExecutionContext(
            job_id=job.id,
            schedule=job.schedule,
            tick_time=tick_time,
            start_time=datetime.now(),
        )
        if not self._hook_registry.before_execution(context):
            result = JobExecutionResult(
                job_id=job.id,
                schedule=job.schedule,
                success=True,
                start_time=context.start_time,
                end_time=context.start_time,
                duration=0.0,
                skipped=True,
            )
            self._hook_registry.after_execution(context, result)
            return result

        started = time.perf_counter()
        value: Any = None
        error: CallbackFailure | None = None
        try:
            value = job.callback()
            if inspect.isawaitable(value):
                value = asyncio.run(_settle(value))
        except Exception as exc:
            error = CallbackFailure(job.id, exc)
            log_exception(logger, exc, f"Job {job.id} callback failed")

        result = JobExecutionResult(
            job_id=job.id,
            schedule=job.schedule,
            success=error is None,
            start_time=context.start_time,
            end_time=datetime.now(),
            duration=time.perf_counter() - started,
            return_value=value,
            error=error,
        )
        self._hook_registry.after_execution(context, result)
        return result

    # Registry shortcuts

    def add(self, schedule: str, callback: JobCallback) -> int:
        return self.registry.add(schedule, callback)

    def remove_by(self, predicate: JobPredicate, limit: int | None = None) -> list[Job]:
        return self.registry.remove_by(predicate, limit)

    def remove_by_id(self, job_id: int) -> Job | None:
        return self.registry.remove_by_id(job_id)

    def remove_by_schedule(self, schedule: str) -> list[Job]:
        return self.registry.remove_by_schedule(schedule)

    def remove_by_callback(self, callback: JobCallback) -> list[Job]:
        return self.registry.remove_by_callback(callback)


__all__ = ["CronTicker"]
