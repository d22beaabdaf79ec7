"""Callback execution hooks for the ticker."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ..core.exceptions import CallbackFailure
from ..core.logger import get_logger

logger = get_logger("scheduler.hooks")


class HookPriority(int, Enum):
    """Priority levels for hook execution order."""

    HIGHEST = 0
    HIGH = 25
    NORMAL = 50
    LOW = 75
    LOWEST = 100


@dataclass
class JobExecutionContext:
    """Context for one callback invocation within a tick."""

    job_id: int
    schedule: str
    tick_time: datetime
    start_time: datetime
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "schedule": self.schedule,
            "tick_time": self.tick_time.isoformat(),
            "start_time": self.start_time.isoformat(),
        }


@dataclass
class JobExecutionResult:
    """Settled outcome of one callback invocation."""

    job_id: int
    schedule: str
    success: bool
    start_time: datetime
    end_time: datetime
    duration: float
    return_value: Any = None
    error: CallbackFailure | None = None
    skipped: bool = False

    @property
    def error_message(self) -> str | None:
        if self.error is None:
            return None
        return str(self.error.original_error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "schedule": self.schedule,
            "success": self.success,
            "skipped": self.skipped,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration": self.duration,
            "error_message": self.error_message,
        }


class JobHook(ABC):
    """Base class for callback execution hooks."""

    priority: HookPriority = HookPriority.NORMAL

    @abstractmethod
    def before_job_execution(self, context: JobExecutionContext) -> bool:
        """Called before the callback runs. Return False to skip it this tick."""

    @abstractmethod
    def after_job_execution(self, context: JobExecutionContext, result: JobExecutionResult) -> None:
        """Called after the callback has settled."""


class LoggingHook(JobHook):
    """Hook that logs callback execution details."""

    priority = HookPriority.HIGHEST

    def __init__(self, log_level: str = "DEBUG") -> None:
        self._log = getattr(logger, log_level.lower(), logger.debug)

    def before_job_execution(self, context: JobExecutionContext) -> bool:
        self._log(f"Job starting: {context.job_id} ({context.schedule!r})")
        return True

    def after_job_execution(self, context: JobExecutionContext, result: JobExecutionResult) -> None:
        if result.skipped:
            self._log(f"Job skipped: {context.job_id}")
        elif result.success:
            self._log(f"Job completed: {context.job_id} ({result.duration:.3f}s)")
        else:
            logger.error(
                f"Job failed: {context.job_id} ({result.duration:.3f}s, error: {result.error_message})"
            )


@dataclass
class JobMetrics:
    """Metrics for a single job."""

    job_id: int
    execution_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    total_duration: float = 0.0
    max_duration: float = 0.0
    last_execution: datetime | None = None

    @property
    def success_rate(self) -> float:
        return (self.success_count / self.execution_count * 100) if self.execution_count else 0.0

    @property
    def average_duration(self) -> float:
        return self.total_duration / self.execution_count if self.execution_count else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "execution_count": self.execution_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "success_rate": round(self.success_rate, 2),
            "average_duration": round(self.average_duration, 3),
            "last_execution": self.last_execution.isoformat() if self.last_execution else None,
        }


class MetricsHook(JobHook):
    """Hook that collects per-job execution metrics."""

    priority = HookPriority.HIGH

    def __init__(self) -> None:
        self._metrics: dict[int, JobMetrics] = {}
        self._lock = threading.Lock()

    def before_job_execution(self, context: JobExecutionContext) -> bool:
        return True

    def after_job_execution(self, context: JobExecutionContext, result: JobExecutionResult) -> None:
        if result.skipped:
            return
        with self._lock:
            m = self._metrics.setdefault(context.job_id, JobMetrics(job_id=context.job_id))
            m.execution_count += 1
            if result.success:
                m.success_count += 1
            else:
                m.failure_count += 1
            m.total_duration += result.duration
            m.max_duration = max(m.max_duration, result.duration)
            m.last_execution = result.end_time

    def get_metrics(self, job_id: int | None = None) -> dict[Any, Any]:
        with self._lock:
            if job_id is not None:
                m = self._metrics.get(job_id)
                return m.to_dict() if m else {}
            return {jid: m.to_dict() for jid, m in self._metrics.items()}


class HookRegistry:
    """Registry for managing callback execution hooks."""

    def __init__(self) -> None:
        self._hooks: list[JobHook] = []
        self._lock = threading.Lock()

    def register(self, hook: JobHook) -> None:
        with self._lock:
            self._hooks.append(hook)
            self._hooks.sort(key=lambda h: h.priority)
        logger.debug(f"Registered hook: {hook.__class__.__name__}")

    def unregister(self, hook: JobHook) -> bool:
        with self._lock:
            if hook in self._hooks:
                self._hooks.remove(hook)
                return True
            return False

    def get_hooks(self) -> list[JobHook]:
        with self._lock:
            return list(self._hooks)

    def before_execution(self, context: JobExecutionContext) -> bool:
        for hook in self.get_hooks():
            try:
                if not hook.before_job_execution(context):
                    return False
            except Exception as e:
                logger.error(f"Hook {hook.__class__.__name__} failed: {e}")
        return True

    def after_execution(self, context: JobExecutionContext, result: JobExecutionResult) -> None:
        for hook in self.get_hooks():
            try:
                hook.after_job_execution(context, result)
            except Exception as e:
                logger.error(f"Hook {hook.__class__.__name__} failed: {e}")


__all__ = [
    "HookPriority",
    "HookRegistry",
    "JobExecutionContext",
    "JobExecutionResult",
    "JobHook",
    "JobMetrics",
    "LoggingHook",
    "MetricsHook",
]
