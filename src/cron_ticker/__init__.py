"""cron-ticker: a minimal in-process cron job scheduler.

Jobs are zero-argument callables tagged with a five-field cron schedule.
Once a minute the ticker asks the matcher which schedules fire and runs
those callbacks concurrently.

Example:
    ```python
    from datetime import datetime

    from cron_ticker import CronTicker, fires

    fires(datetime(2020, 5, 1, 10, 0), "0-4 * * * *")  # True

    ticker = CronTicker()
    job_id = ticker.add("*/15 * * * *", lambda: print("quarter hour"))
    ticker.start()
    ```
"""

from importlib.metadata import PackageNotFoundError, version

from .core import (
    CallbackFailure,
    CronTickerConfig,
    CronTickerError,
    InvalidScheduleError,
    LoggingConfig,
    TickerConfig,
    get_logger,
    setup_logging,
)
from .scheduler import (
    CronTicker,
    Job,
    JobExecutionResult,
    JobRegistry,
    fires,
    match_fields,
    next_fire_times,
    validate_schedule,
)

__all__ = [
    "__version__",
    "CronTicker",
    "Job",
    "JobRegistry",
    "JobExecutionResult",
    "fires",
    "match_fields",
    "next_fire_times",
    "validate_schedule",
    "CallbackFailure",
    "CronTickerError",
    "InvalidScheduleError",
    "CronTickerConfig",
    "LoggingConfig",
    "TickerConfig",
    "get_logger",
    "setup_logging",
]

try:  # pragma: no cover - best-effort during development
    __version__ = version("cron-ticker")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
