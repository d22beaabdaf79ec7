"""Scheduler module: cron matching, the job registry and the minute ticker.

This package provides:
- Cron expression matching against a point in time
- A thread-safe job registry
- An APScheduler-driven ticker that runs due jobs once a minute
- Callback execution hooks
"""

from .expressions import (
    CRON_FIELDS,
    CronField,
    CronMatchResult,
    describe,
    ensure_valid_schedule,
    fires,
    match_fields,
    next_fire_times,
    validate_schedule,
)
from .hooks import (
    HookPriority,
    HookRegistry,
    JobExecutionContext,
    JobExecutionResult,
    JobHook,
    JobMetrics,
    LoggingHook,
    MetricsHook,
)
from .jobs import Job, JobRegistry
from .scheduler import CronTicker

__all__ = [
    # Ticker
    "CronTicker",
    # Registry
    "Job",
    "JobRegistry",
    # Expressions
    "CRON_FIELDS",
    "CronField",
    "CronMatchResult",
    "describe",
    "ensure_valid_schedule",
    "fires",
    "match_fields",
    "next_fire_times",
    "validate_schedule",
    # Hooks
    "HookPriority",
    "HookRegistry",
    "JobExecutionContext",
    "JobExecutionResult",
    "JobHook",
    "JobMetrics",
    "LoggingHook",
    "MetricsHook",
]
