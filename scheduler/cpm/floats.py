"""
Total and free float.

Floats are work-day counts measured with WorkCalendar.work_days_difference,
the same convention the passes use to place dates.
"""

import logging
from typing import Callable, Optional

from .calendar import WorkCalendar
from .models import LinkType, Task, require_all_link_types
from .network import TaskNetwork

logger = logging.getLogger(__name__)


# (task, successor, lag, calendar) -> slack before that successor moves
FreeFloatRule = Callable[[Task, Task, int, WorkCalendar], int]

FREE_FLOAT_RULES: dict[LinkType, FreeFloatRule] = require_all_link_types({
    LinkType.FS: lambda task, succ, lag, cal: cal.work_days_difference(task.end, succ.start) - 1 - lag,
    LinkType.SS: lambda task, succ, lag, cal: cal.work_days_difference(task.start, succ.start) - lag,
    LinkType.FF: lambda task, succ, lag, cal: cal.work_days_difference(task.end, succ.end) - lag,
    LinkType.SF: lambda task, succ, lag, cal: cal.work_days_difference(task.start, succ.end) - lag,
}, 'FREE_FLOAT_RULES')


class FloatCalculator:
    """Computes total/free float for leaves and total float for parents."""

    def __init__(self, network: TaskNetwork, calendar: WorkCalendar):
        self.network = network
        self.calendar = calendar

    def run(self) -> None:
        for task in self.network.leaf_tasks():
            task.total_float = self.total_float(task)
            task.free_float = self.free_float(task)

        for parent in self.network.parents_deepest_first():
            floats = [
                c.total_float for c in self.network.get_children(parent.task_id)
                if c.total_float is not None
            ]
            parent.total_float = min(floats) if floats else None
            parent.free_float = None

    def total_float(self, task: Task) -> Optional[int]:
        if task.start is None or task.late_start is None:
            return None
        return self.calendar.work_days_difference(task.start, task.late_start)

    def free_float(self, task: Task) -> Optional[int]:
        """
        Slack before the earliest-affected successor moves.

        Clamped to [0, total float]; tasks without usable successors take
        their total float.
        """
        total = task.total_float
        if total is None:
            return None

        slack = None
        for entry in self.network.get_successors(task.task_id):
            succ = self.network.tasks[entry.successor_id]
            if succ.start is None or succ.end is None:
                continue
            value = FREE_FLOAT_RULES[entry.link_type](task, succ, entry.lag, self.calendar)
            if slack is None or value < slack:
                slack = value

        if slack is None:
            return total
        return min(max(slack, 0), total)
