"""Job registry: an ordered, thread-safe list of scheduled callbacks."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..core.exceptions import InvalidScheduleError
from ..core.logger import get_logger
from .expressions import fires, validate_schedule

logger = get_logger("scheduler.jobs")

JobCallback = Callable[[], Any]
JobPredicate = Callable[["Job"], bool]


@dataclass(frozen=True)
class Job:
    """A registered callback and the schedule it runs on.

    Attributes:
        id: Registry-assigned identifier, never reused
        schedule: Five-field cron schedule string
        callback: Zero-argument callable invoked when the schedule fires
    """

    id: int
    schedule: str
    callback: JobCallback

    def fires_at(self, now: datetime) -> bool:
        return fires(now, self.schedule)


class JobRegistry:
    """Ordered collection of jobs with add/remove operations.

    Identifiers start at 1 and increase monotonically per registry; a
    removed job's identifier is never handed out again. All operations take
    a re-entrant lock so the ticker's worker threads never observe a list
    in the middle of a mutation.

    Example:
        ```python
        registry = JobRegistry()
        job_id = registry.add("*/5 * * * *", refresh_cache)
        registry.remove_by_id(job_id)
        ```
    """

    def __init__(self) -> None:
        self._jobs: list[Job] = []
        self._latest_id = 0
        self._lock = threading.RLock()

    def add(self, schedule: str, callback: JobCallback) -> int:
        """Register ``callback`` to run whenever ``schedule`` fires.

        Args:
            schedule: Five-field cron schedule string
            callback: Zero-argument callable

        Returns:
            The new job's identifier

        Raises:
            InvalidScheduleError: If ``schedule`` does not have the cron shape
        """
        if not validate_schedule(schedule):
            raise InvalidScheduleError(schedule)
        if not callable(callback):
            raise TypeError(f"callback must be callable, got {type(callback).__name__}")

        with self._lock:
            self._latest_id += 1
            job = Job(id=self._latest_id, schedule=schedule, callback=callback)
            self._jobs.append(job)

        logger.debug(f"Job added: {job.id} with schedule {schedule!r}")
        return job.id

    def remove_by(self, predicate: JobPredicate, limit: int | None = None) -> list[Job]:
        """Remove jobs accepted by ``predicate``, scanning from newest to oldest.

        Args:
            predicate: Returns True for jobs to remove
            limit: Stop after this many removals; None removes every match

        Returns:
            Removed jobs in the order encountered (newest first)
        """
        removed: list[Job] = []
        if limit is not None and limit <= 0:
            return removed

        with self._lock:
            for index in range(len(self._jobs) - 1, -1, -1):
                job = self._jobs[index]
                if predicate(job):
                    del self._jobs[index]
                    removed.append(job)
                    if limit is not None and len(removed) >= limit:
                        break

        if removed:
            logger.debug(f"Jobs removed: {[job.id for job in removed]}")
        return removed

    def remove_by_id(self, job_id: int) -> Job | None:
        removed = self.remove_by(lambda job: job.id == job_id, limit=1)
        return removed[0] if removed else None

    def remove_by_schedule(self, schedule: str) -> list[Job]:
        return self.remove_by(lambda job: job.schedule == schedule)

    def remove_by_callback(self, callback: JobCallback) -> list[Job]:
        return self.remove_by(lambda job: job.callback is callback)

    def get(self, job_id: int) -> Job | None:
        with self._lock:
            for job in self._jobs:
                if job.id == job_id:
                    return job
        return None

    def due(self, now: datetime) -> list[Job]:
        """Jobs whose schedule fires at ``now``, in registration order."""
        with self._lock:
            snapshot = list(self._jobs)
        return [job for job in snapshot if job.fires_at(now)]

    @property
    def jobs(self) -> tuple[Job, ...]:
        with self._lock:
            return tuple(self._jobs)

    def clear(self) -> list[Job]:
        return self.remove_by(lambda job: True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        return iter(self.jobs)

    def __contains__(self, job_id: object) -> bool:
        return isinstance(job_id, int) and self.get(job_id) is not None


__all__ = [
    "Job",
    "JobCallback",
    "JobPredicate",
    "JobRegistry",
]
