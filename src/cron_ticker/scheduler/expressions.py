"""Cron expression matching.

A schedule is five whitespace-separated fields, in order: minute, hour,
day of month, month and day of week. Each field is a comma-separated list
of atoms (``*``, ``5``, ``1-5``, ``*/15``, ``4-15/5``, ``jan``, ``fri``).

Matching is evaluated directly against a point in time: a field matches
when any of its atoms matches, and the schedule fires when minute, hour and
month match and either of the two day fields matches.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from ..core.exceptions import InvalidScheduleError

MONTH_NAMES = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")
DAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")

_ATOM = r"(?:[\d*/\-]+|[A-Za-z]{3})"
_TOKEN = rf"{_ATOM}(?:,{_ATOM})*"
SCHEDULE_PATTERN = re.compile(rf"\s*{_TOKEN}(?:\s+{_TOKEN}){{4}}\s*")

_RANGE_RE = re.compile(r"(\d+)-(\d+)")
_STEP_RE = re.compile(r"[\d\-*]+/(\d+)")

DEFAULT_SEARCH_HORIZON = timedelta(days=366)


@dataclass(frozen=True)
class CronField:
    name: str
    min_value: int
    max_value: int
    extract: Callable[[datetime], int]
    names: tuple[str, ...] = ()

    def name_of(self, value: int) -> str | None:
        """Three-letter name of ``value`` for named fields, else None."""
        index = value - self.min_value
        if self.names and 0 <= index < len(self.names):
            return self.names[index]
        return None


CRON_FIELDS: tuple[CronField, ...] = (
    CronField("minute", 0, 59, lambda dt: dt.minute),
    CronField("hour", 0, 23, lambda dt: dt.hour),
    CronField("day_of_month", 1, 31, lambda dt: dt.day),
    CronField("month", 1, 12, lambda dt: dt.month, MONTH_NAMES),
    CronField("day_of_week", 0, 6, lambda dt: dt.isoweekday() % 7, DAY_NAMES),
)


@dataclass
class CronMatchResult:
    """Per-field match breakdown for one schedule at one point in time."""

    schedule: str
    when: datetime
    minute: bool = False
    hour: bool = False
    day_of_month: bool = False
    month: bool = False
    day_of_week: bool = False
    well_formed: bool = True

    @property
    def fires(self) -> bool:
        return (
            self.well_formed
            and self.minute
            and self.hour
            and self.month
            and (self.day_of_month or self.day_of_week)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "schedule": self.schedule,
            "when": self.when.isoformat(),
            "minute": self.minute,
            "hour": self.hour,
            "day_of_month": self.day_of_month,
            "month": self.month,
            "day_of_week": self.day_of_week,
            "fires": self.fires,
        }


def atom_matches(atom: str, value: int, cron_field: CronField) -> bool:
    """Check a single atom of a field against the current unit value."""
    if atom == "*":
        return True
    if atom == str(value):
        return True
    if cron_field.names and atom.lower() == cron_field.name_of(value):
        return True

    range_match = _RANGE_RE.search(atom)
    step_match = _STEP_RE.search(atom)

    range_start = 0
    if range_match is not None:
        range_start = int(range_match.group(1))
        range_end = int(range_match.group(2))
        if not range_start <= value <= range_end:
            return False

    if step_match is not None:
        step = int(step_match.group(1))
        # A bare step counts from 0 whatever the field's first value is.
        if step == 0 or (value - range_start) % step != 0:
            return False

    return range_match is not None or step_match is not None


def field_matches(expression: str, value: int, cron_field: CronField) -> bool:
    """Check whether any comma-separated atom of a field matches ``value``."""
    return any(atom_matches(atom.strip(), value, cron_field) for atom in expression.split(","))


def match_fields(now: datetime, schedule: str) -> CronMatchResult:
    """Evaluate every field of ``schedule`` against ``now``.

    A schedule that does not split into exactly five fields yields a result
    with ``well_formed`` set to False, which never fires.
    """
    parts = schedule.split()
    result = CronMatchResult(schedule=schedule, when=now)
    if len(parts) != len(CRON_FIELDS):
        result.well_formed = False
        return result

    for part, cron_field in zip(parts, CRON_FIELDS, strict=True):
        setattr(result, cron_field.name, field_matches(part, cron_field.extract(now), cron_field))
    return result


def fires(now: datetime, schedule: str) -> bool:
    """Return True if ``schedule`` fires at the minute containing ``now``.

    Day of month and day of week are combined with OR, every other field
    with AND. Malformed atoms simply fail to match; this never raises.

    Example:
        ```python
        >>> fires(datetime(2020, 5, 1, 10, 0), "* * 2 * fri")
        True
        ```
    """
    return match_fields(now, schedule).fires


def validate_schedule(schedule: str) -> bool:
    """Check the syntactic five-field shape of a schedule string."""
    return isinstance(schedule, str) and SCHEDULE_PATTERN.fullmatch(schedule) is not None


def ensure_valid_schedule(schedule: str) -> str:
    """Return ``schedule`` unchanged, or raise InvalidScheduleError."""
    if not validate_schedule(schedule):
        raise InvalidScheduleError(schedule)
    return schedule


def next_fire_times(
    schedule: str,
    start: datetime | None = None,
    count: int = 5,
    horizon: timedelta = DEFAULT_SEARCH_HORIZON,
) -> list[datetime]:
    """Find the next ``count`` minutes after ``start`` at which ``schedule`` fires.

    The search walks forward one minute at a time and gives up once it is
    ``horizon`` past ``start``, so a schedule that never fires (``0 0 * 13 *``)
    returns fewer results instead of looping forever.

    Args:
        schedule: Cron schedule string
        start: Reference time, defaults to now
        count: Maximum number of fire times to return
        horizon: How far past ``start`` to search

    Returns:
        Fire times in ascending order, second and microsecond zeroed
    """
    if count <= 0 or not validate_schedule(schedule):
        return []

    start = start or datetime.now()
    candidate = start.replace(second=0, microsecond=0) + timedelta(minutes=1)
    deadline = start + horizon
    run_times: list[datetime] = []
    while candidate <= deadline and len(run_times) < count:
        if fires(candidate, schedule):
            run_times.append(candidate)
        candidate += timedelta(minutes=1)
    return run_times


def describe(schedule: str) -> str:
    """Produce a short human-readable description of a schedule."""
    parts = schedule.split()
    if len(parts) != len(CRON_FIELDS):
        return "Invalid cron expression"
    minute, hour, day, month, dow = parts
    desc = []
    if minute == "*" and hour == "*":
        desc.append("Every minute")
    elif minute == "0" and hour == "*":
        desc.append("Every hour")
    elif hour == "*":
        desc.append(f"At minute {minute} of every hour")
    elif minute.isdigit() and hour.isdigit():
        desc.append(f"At {hour.zfill(2)}:{minute.zfill(2)}")
    else:
        desc.append(f"At minute {minute} past hour {hour}")
    if day != "*" and dow != "*":
        desc.append(f"on day {day} of the month or on day of week {dow}")
    elif day != "*":
        desc.append(f"on day {day} of the month")
    elif dow != "*":
        desc.append(f"on day of week {dow}")
    if month != "*":
        desc.append(f"in month {month}")
    return " ".join(desc)


__all__ = [
    "CRON_FIELDS",
    "DAY_NAMES",
    "MONTH_NAMES",
    "CronField",
    "CronMatchResult",
    "atom_matches",
    "describe",
    "ensure_valid_schedule",
    "field_matches",
    "fires",
    "match_fields",
    "next_fire_times",
    "validate_schedule",
]
