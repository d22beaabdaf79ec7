"""CLI module for cron-ticker.

This module provides the command-line interface over the schedule matcher.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..core import CronTickerConfig, LoggingConfig, setup_logging
from .commands import cmd_check, cmd_explain, cmd_init, cmd_next, cmd_validate
from .parser import build_parser


def _configure_logging(config_path: str | None, debug: bool) -> None:
    logging_config = LoggingConfig(level="WARNING")
    if config_path:
        logging_config = CronTickerConfig.from_yaml(config_path).logging
    if debug:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    setup_logging(logging_config)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Optional sequence of CLI arguments (without the program name).

    Returns:
        Process exit code. 0 for success.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        raise SystemExit(0)

    try:
        _configure_logging(args.config, args.debug)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}")
        return 1

    handlers = {
        "check": cmd_check,
        "explain": cmd_explain,
        "validate": cmd_validate,
        "next": cmd_next,
        "init": cmd_init,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


__all__ = [
    "build_parser",
    "cmd_check",
    "cmd_explain",
    "cmd_init",
    "cmd_next",
    "cmd_validate",
    "main",
]
