"""CLI command handlers."""

from __future__ import annotations

import argparse
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..core import CronTickerConfig, get_logger
from ..scheduler import CRON_FIELDS, describe, match_fields, next_fire_times, validate_schedule

logger = get_logger("cli")


def _reject_invalid(console: Console, schedule: str) -> bool:
    if validate_schedule(schedule):
        return False
    console.print(
        f"Invalid schedule: {schedule!r} (expected five space-separated fields)", markup=False
    )
    return True


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command.

    Returns:
        0 if the schedule fires, 1 if it does not, 2 if it is malformed
    """
    console = Console()
    if _reject_invalid(console, args.schedule):
        return 2

    when = args.when or datetime.now()
    result = match_fields(when, args.schedule)
    verdict = "[green]fires[/]" if result.fires else "[red]does not fire[/]"
    console.print(f"{args.schedule!r} {verdict} at {when:%Y-%m-%d %H:%M}")
    return 0 if result.fires else 1


def cmd_explain(args: argparse.Namespace) -> int:
    """Handle explain command."""
    console = Console()
    if _reject_invalid(console, args.schedule):
        return 2

    when = args.when or datetime.now()
    result = match_fields(when, args.schedule)
    parts = args.schedule.split()

    table = Table(title=f"{args.schedule!r} at {when:%Y-%m-%d %H:%M (%a)}")
    table.add_column("Field", style="cyan")
    table.add_column("Expression")
    table.add_column("Current", justify="right")
    table.add_column("Match")
    for part, cron_field in zip(parts, CRON_FIELDS, strict=True):
        value = cron_field.extract(when)
        name = cron_field.name_of(value)
        current = f"{value} ({name})" if name else str(value)
        matched = getattr(result, cron_field.name)
        table.add_row(cron_field.name, part, current, "[green]yes[/]" if matched else "[red]no[/]")

    console.print(table)
    console.print(describe(args.schedule))
    console.print(f"Result: {'[green]fires[/]' if result.fires else '[red]does not fire[/]'}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    console = Console()
    if _reject_invalid(console, args.schedule):
        return 1
    console.print(f"Valid schedule: {args.schedule!r} - {describe(args.schedule)}")
    return 0


def cmd_next(args: argparse.Namespace) -> int:
    """Handle next command."""
    console = Console()
    if _reject_invalid(console, args.schedule):
        return 2
    if args.count < 1:
        console.print("--count must be at least 1")
        return 2

    start = args.when or datetime.now()
    run_times = next_fire_times(args.schedule, start=start, count=args.count)
    if not run_times:
        console.print(f"No fire times within a year of {start:%Y-%m-%d %H:%M}")
        return 1

    table = Table(title=f"Next {len(run_times)} run(s) of {args.schedule!r}")
    table.add_column("#", justify="right")
    table.add_column("Time")
    for index, run_time in enumerate(run_times, start=1):
        table.add_row(str(index), f"{run_time:%Y-%m-%d %H:%M (%a)}")
    console.print(table)
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """Handle init command."""
    output_path = Path(args.output)

    if output_path.exists():
        response = input(f"{output_path} already exists. Overwrite? (y/N): ")
        if response.lower() != "y":
            print("Cancelled.")
            return 0

    CronTickerConfig().to_yaml(output_path)
    logger.debug(f"Default configuration written to {output_path}")
    print(f"Configuration file created: {output_path}")
    return 0


__all__ = [
    "cmd_check",
    "cmd_explain",
    "cmd_init",
    "cmd_next",
    "cmd_validate",
]
