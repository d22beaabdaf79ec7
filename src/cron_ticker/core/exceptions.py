"""Custom exceptions for cron-ticker."""

from __future__ import annotations


class CronTickerError(Exception):
    """Base exception for cron-ticker errors."""

    pass


class InvalidScheduleError(CronTickerError, ValueError):
    """Raised when a schedule string does not have the five-field cron shape."""

    def __init__(self, schedule: str, message: str | None = None) -> None:
        """Initialize the exception.

        Args:
            schedule: The rejected schedule string
            message: Optional error message
        """
        self.schedule = schedule
        super().__init__(message or f"invalid crontab: {schedule!r}")


class CallbackFailure(CronTickerError):
    """Wraps an exception raised by a job callback during a tick.

    Instances are captured in the job's execution result and never
    propagate out of the ticker.
    """

    def __init__(self, job_id: int, original_error: BaseException) -> None:
        """Initialize the exception.

        Args:
            job_id: Identifier of the job whose callback failed
            original_error: Exception raised by the callback
        """
        self.job_id = job_id
        self.original_error = original_error
        super().__init__(f"Job {job_id} callback failed: {original_error!r}")


__all__ = [
    "CallbackFailure",
    "CronTickerError",
    "InvalidScheduleError",
]
