"""Core modules for cron-ticker.

This package contains:
- Configuration management
- Logging utilities
- Exception hierarchy
"""

from .config import CronTickerConfig, LoggingConfig, TickerConfig
from .exceptions import CallbackFailure, CronTickerError, InvalidScheduleError
from .logger import get_logger, log_exception, setup_logging

__all__ = [
    "CallbackFailure",
    "CronTickerConfig",
    "CronTickerError",
    "InvalidScheduleError",
    "LoggingConfig",
    "TickerConfig",
    "get_logger",
    "log_exception",
    "setup_logging",
]
