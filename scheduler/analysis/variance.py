"""
Baseline variance.

Compares scheduled dates with optional baseline dates, in work days.
Positive values mean the schedule is ahead of the baseline.
"""

from dataclasses import dataclass
from typing import Optional

from ..cpm.calendar import WorkCalendar
from ..cpm.models import CPMResult, Task


@dataclass
class VarianceResult:
    task_id: str
    start_variance: Optional[int] = None
    finish_variance: Optional[int] = None

    def is_behind(self) -> bool:
        return any(v is not None and v < 0 for v in (self.start_variance, self.finish_variance))


def calculate_variance(task: Task, calendar: WorkCalendar) -> VarianceResult:
    """
    Start/finish variance of one task against its baseline.

    A side with no baseline (or no scheduled date) has no variance.
    """
    result = VarianceResult(task_id=task.task_id)
    if task.baseline_start is not None and task.start is not None:
        result.start_variance = calendar.work_days_difference(task.start, task.baseline_start)
    if task.baseline_finish is not None and task.end is not None:
        result.finish_variance = calendar.work_days_difference(task.end, task.baseline_finish)
    return result


def schedule_variance(result: CPMResult, calendar: WorkCalendar) -> list[VarianceResult]:
    """Variance of every task that carries a baseline, in input order."""
    variances = []
    for task in result.leaf_tasks():
        if task.baseline_start is None and task.baseline_finish is None:
            continue
        variances.append(calculate_variance(task, calendar))
    return variances
