"""
Task health classification.

Rules, first match wins:
    1. blocked           a dependency cannot be resolved (missing or cyclic
                         predecessor, non-convergent pass, bad date)
    2. critical-failure  deadline missed by more than the variance threshold,
                         or negative total float
    3. at-risk           deadline missed by 1..threshold work days, or a
                         critical task with less than the low-float margin
    4. healthy
"""

import logging
from datetime import date
from typing import Optional

from scheduler.config.settings import settings
from .calendar import WorkCalendar, to_date
from .exceptions import DateError
from .models import ConstraintType, HealthIndicator, HealthStatus, Task
from .network import TaskNetwork

logger = logging.getLogger(__name__)


class HealthAnalyzer:
    """Assigns a HealthIndicator to every task of a scheduled network."""

    def __init__(self, network: TaskNetwork, calendar: WorkCalendar,
                 blocked: dict[str, list[str]] = None,
                 variance_threshold_days: int = None,
                 low_float_days: int = None):
        self.network = network
        self.calendar = calendar
        self.blocked = blocked or {}
        self.variance_threshold_days = (
            settings.HEALTH_VARIANCE_THRESHOLD_DAYS
            if variance_threshold_days is None else variance_threshold_days
        )
        self.low_float_days = (
            settings.HEALTH_LOW_FLOAT_DAYS if low_float_days is None else low_float_days
        )

    def run(self) -> dict[HealthStatus, int]:
        """Analyze all tasks. Returns a count per status."""
        counts = {status: 0 for status in HealthStatus}
        for task in self.network.tasks.values():
            task.health = self.analyze(task)
            counts[task.health.status] += 1
        return counts

    def analyze(self, task: Task) -> HealthIndicator:
        reasons = self.blocked.get(task.task_id)
        if reasons:
            return HealthIndicator(
                status=HealthStatus.BLOCKED,
                summary=f"Blocked: {reasons[0]}",
                details=list(reasons),
            )

        try:
            variance, target, projected = self.constraint_variance(task)
        except DateError as e:
            return HealthIndicator(HealthStatus.BLOCKED, f"Blocked: {e}", [str(e)])

        days_late = -variance if variance is not None and variance < 0 else 0
        total_float = task.total_float
        details = []

        if days_late > 0:
            details.append(
                f"{task.constraint_type.value} {target} missed by {days_late} work days "
                f"(projected {projected})"
            )
        if total_float is not None and total_float < 0:
            details.append(f"Negative total float: {total_float} work days")

        if days_late > self.variance_threshold_days or (total_float is not None and total_float < 0):
            status = HealthStatus.CRITICAL_FAILURE
            summary = details[0]
        elif days_late > 0:
            status = HealthStatus.AT_RISK
            summary = details[0]
        elif task.is_critical and total_float is not None and total_float < self.low_float_days:
            status = HealthStatus.AT_RISK
            summary = f"On critical path with {total_float} work days of float"
            details.append(summary)
        else:
            status = HealthStatus.HEALTHY
            summary = 'On track'

        return HealthIndicator(
            status=status,
            summary=summary,
            details=details,
            constraint_variance=variance,
            constraint_target=target,
            projected_date=projected,
        )

    def constraint_variance(self, task: Task) -> tuple[Optional[int], Optional[date], Optional[date]]:
        """
        Work days between a deadline and the projected date.

        Only FNLT (against the finish) and SNLT (against the start) are
        deadlines. Parent constraints are not enforced anywhere and are
        not checked.

        Returns:
            (variance, target, projected); variance is negative when late
        """
        if task.constraint_type not in (ConstraintType.FNLT, ConstraintType.SNLT):
            return None, None, None
        if task.constraint_date is None or self.network.is_parent(task.task_id):
            return None, None, None

        target = to_date(task.constraint_date, task_id=task.task_id)
        projected = task.end if task.constraint_type == ConstraintType.FNLT else task.start
        if projected is None:
            return None, target, None

        return self.calendar.work_days_difference(projected, target), target, projected
