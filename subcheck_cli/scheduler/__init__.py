"""Round scheduling for subscription validation.

The scheduler fires validation rounds on a fixed interval or a cron
expression, enforces that only one round runs at a time, and accepts
manual round requests.
"""

from subcheck_cli.scheduler.mailbox import TriggerMailbox
from subcheck_cli.scheduler.round_scheduler import RoundScheduler, exit_process
from subcheck_cli.scheduler.timing import CronMode, IntervalMode, TimingMode, parse_cron_trigger

__all__ = [
    "CronMode",
    "IntervalMode",
    "RoundScheduler",
    "TimingMode",
    "TriggerMailbox",
    "exit_process",
    "parse_cron_trigger",
]
