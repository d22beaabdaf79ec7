"""CLI argument parser."""

from __future__ import annotations

import argparse
from datetime import datetime

from .. import __version__


def _iso_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO 8601 date/time: {value!r}") from exc


def _add_time_argument(parser: argparse.ArgumentParser, flag: str, help_text: str) -> None:
    parser.add_argument(
        flag,
        dest="when",
        type=_iso_datetime,
        default=None,
        metavar="ISO_TIME",
        help=help_text,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Returns:
        ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="cron-ticker",
        description="cron-ticker - check and explore five-field cron schedules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Does a schedule fire right now?
  cron-ticker check "*/5 * * * *"

  # Field-by-field breakdown at a given time
  cron-ticker explain "* * 2 * fri" --at 2020-05-01T10:00

  # Next three fire times
  cron-ticker next "0 9 * * 1-5" -n 3

  # Generate default config
  cron-ticker init -o cron-ticker.yaml
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s v{__version__}",
        help="Show program's version number and exit",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to configuration file (optional)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug/verbose logging mode",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser("check", help="Check whether a schedule fires")
    check_parser.add_argument("schedule", help='Cron schedule, e.g. "*/5 * * * *"')
    _add_time_argument(check_parser, "--at", "Time to check (default: now)")

    explain_parser = subparsers.add_parser("explain", help="Show per-field match details")
    explain_parser.add_argument("schedule", help="Cron schedule")
    _add_time_argument(explain_parser, "--at", "Time to check (default: now)")

    validate_parser = subparsers.add_parser("validate", help="Validate schedule syntax")
    validate_parser.add_argument("schedule", help="Cron schedule")

    next_parser = subparsers.add_parser("next", help="List upcoming fire times")
    next_parser.add_argument("schedule", help="Cron schedule")
    next_parser.add_argument(
        "-n",
        "--count",
        type=int,
        default=5,
        help="Number of fire times to list (default: 5)",
    )
    _add_time_argument(next_parser, "--from", "Start searching after this time (default: now)")

    init_parser = subparsers.add_parser("init", help="Generate default configuration")
    init_parser.add_argument(
        "-o",
        "--output",
        default="cron-ticker.yaml",
        help="Output config file path (default: cron-ticker.yaml)",
    )

    return parser


__all__ = ["build_parser"]
