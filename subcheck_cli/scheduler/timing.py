"""Timing modes for the round scheduler.

Exactly one mode is active at a time: either a fixed interval between
rounds or a cron expression. Cron expressions are parsed into APScheduler
triggers here so the scheduler can decide whether to fall back to the
interval before tearing anything down.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Union

from apscheduler.triggers.cron import CronTrigger


@dataclass(frozen=True)
class IntervalMode:
    """Fire a round every ``minutes`` minutes."""

    minutes: float

    @property
    def interval(self) -> timedelta:
        return timedelta(minutes=self.minutes)

    @property
    def seconds(self) -> float:
        return self.interval.total_seconds()

    def __str__(self) -> str:
        return f"interval({self.minutes:g}m)"


@dataclass(frozen=True)
class CronMode:
    """Fire a round whenever ``expression`` matches.

    Attributes:
        expression: 5-part or 6-part cron expression
        fallback_minutes: Interval to use if the expression does not parse
    """

    expression: str
    fallback_minutes: float = 720

    def __str__(self) -> str:
        return f"cron('{self.expression}')"


TimingMode = Union[IntervalMode, CronMode]


def parse_cron_trigger(schedule: str, timezone: Optional[str] = None) -> CronTrigger:
    """Parse a cron schedule string into a CronTrigger.

    Supports both 5-part (minute hour day month weekday) and
    6-part (second minute hour day month weekday) cron formats.

    Args:
        schedule: Cron schedule string
        timezone: Timezone the expression is evaluated in (local time if None)

    Returns:
        CronTrigger instance

    Raises:
        ValueError: If the expression has the wrong number of fields or
            any field is rejected by APScheduler
    """
    parts = schedule.split()

    if len(parts) == 6:
        second, minute, hour, day, month, weekday = parts
        return CronTrigger(
            second=second,
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=weekday,
            timezone=timezone,
        )
    elif len(parts) == 5:
        minute, hour, day, month, weekday = parts
        return CronTrigger(
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=weekday,
            timezone=timezone,
        )
    else:
        raise ValueError(
            f"Invalid cron schedule: '{schedule}'. "
            "Expected 5 or 6 parts (minute hour day month weekday "
            "or second minute hour day month weekday)"
        )
