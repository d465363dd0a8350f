"""
Parent rollup: summary-task dates derived from direct children.

Parents are visited deepest first so a nested parent is final before its
own parent reads it.
"""

import logging

from .calendar import WorkCalendar
from .network import TaskNetwork

logger = logging.getLogger(__name__)


def roll_up_parent_dates(network: TaskNetwork, calendar: WorkCalendar) -> int:
    """
    Set start, end and duration of every parent task.

    A parent with no dated child keeps its dates unset.

    Returns:
        Number of parents that received dates
    """
    dated = 0
    for parent in network.parents_deepest_first():
        children = network.get_children(parent.task_id)
        starts = [c.start for c in children if c.start is not None]
        ends = [c.end for c in children if c.end is not None]

        parent.start = min(starts) if starts else None
        parent.end = max(ends) if ends else None

        if parent.start is not None and parent.end is not None:
            parent.duration = calendar.count_work_days(parent.start, parent.end)
            dated += 1
        else:
            logger.debug(f"Parent {parent.task_id} has no dated children")

    return dated


def roll_up_late_dates(network: TaskNetwork) -> None:
    """Set late start/finish of every parent from its children."""
    for parent in network.parents_deepest_first():
        children = network.get_children(parent.task_id)
        late_starts = [c.late_start for c in children if c.late_start is not None]
        late_finishes = [c.late_finish for c in children if c.late_finish is not None]

        parent.late_start = min(late_starts) if late_starts else None
        parent.late_finish = max(late_finishes) if late_finishes else None
