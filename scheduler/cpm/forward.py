"""
Forward pass: early start and early finish of every leaf task.
"""

import logging
from datetime import date
from typing import Callable, Optional

from .calendar import WorkCalendar, to_date
from .exceptions import ConvergenceError, DateError
from .models import ConstraintType, LinkType, Task, ValidationIssue, require_all_link_types
from .network import TaskNetwork

logger = logging.getLogger(__name__)


# (predecessor, lag, own duration offset, calendar) -> earliest start of the successor
EarlyStartRule = Callable[[Task, int, int, WorkCalendar], date]

EARLY_START_RULES: dict[LinkType, EarlyStartRule] = require_all_link_types({
    LinkType.FS: lambda pred, lag, offset, cal: cal.add_work_days(pred.end, 1 + lag),
    LinkType.SS: lambda pred, lag, offset, cal: cal.add_work_days(pred.start, lag),
    LinkType.FF: lambda pred, lag, offset, cal: cal.add_work_days(pred.end, lag - offset),
    LinkType.SF: lambda pred, lag, offset, cal: cal.add_work_days(pred.start, lag - offset),
}, 'EARLY_START_RULES')


class ForwardPass:
    """
    Computes early dates by fixed-point iteration.

    Leaf tasks are swept predecessors-first (TaskNetwork.scheduling_order),
    so an acyclic network settles in one sweep plus one confirming sweep.
    Only tasks on or behind a dependency cycle keep changing until the
    iteration cap.
    """

    def __init__(self, network: TaskNetwork, calendar: WorkCalendar,
                 project_start: date, max_iterations: int):
        self.network = network
        self.calendar = calendar
        self.max_iterations = max_iterations
        self.anchor = calendar.add_work_days(project_start, 0)
        self.issues: list[ValidationIssue] = []
        self.iterations = 0
        self._failed: set[str] = set()

    def run(self) -> None:
        """
        Schedule all leaf tasks.

        Successors of tasks that could not be scheduled keep best-effort
        dates and get an 'unresolved_predecessor' issue.

        Raises:
            ConvergenceError: dates still changing after max_iterations sweeps
        """
        leaves = self.network.scheduling_order()
        changed: list[str] = []

        try:
            for iteration in range(1, self.max_iterations + 1):
                self.iterations = iteration
                changed = []

                for task in leaves:
                    if task.task_id in self._failed:
                        continue
                    try:
                        start, end = self.schedule_task(task)
                    except DateError as e:
                        self._record_date_error(task, e)
                        changed.append(task.task_id)
                        continue

                    if start != task.start or end != task.end:
                        task.start, task.end = start, end
                        changed.append(task.task_id)

                if not changed:
                    logger.debug(f"Forward pass converged after {iteration} iterations")
                    return

            raise ConvergenceError('forward', self.max_iterations, changed)
        finally:
            self._flag_unresolved_successors()

    def schedule_task(self, task: Task) -> tuple[date, date]:
        """Early (start, end) of one task from its predecessors' current dates."""
        offset = task.duration_offset
        earliest: Optional[date] = None

        for dep in self.network.get_predecessors(task.task_id):
            pred = self.network.tasks[dep.predecessor_id]
            if pred.start is None or pred.end is None:
                continue
            candidate = EARLY_START_RULES[dep.link_type](pred, dep.lag, offset, self.calendar)
            if earliest is None or candidate > earliest:
                earliest = candidate

        if earliest is None:
            earliest = self.anchor

        return self._apply_constraint(task, earliest, offset)

    def _apply_constraint(self, task: Task, earliest: date, offset: int) -> tuple[date, date]:
        constraint_date = None
        if task.constraint_date is not None:
            constraint_date = to_date(task.constraint_date, task_id=task.task_id)

        start = earliest
        ctype = task.constraint_type

        if constraint_date is not None:
            if ctype == ConstraintType.SNET:
                start = max(earliest, self.calendar.add_work_days(constraint_date, 0))
            elif ctype == ConstraintType.FNET:
                start = max(earliest, self.calendar.add_work_days(constraint_date, -offset))
            elif ctype == ConstraintType.MFO:
                # Pinned finish wins over predecessor-driven dates
                finish = self.calendar.previous_work_day(constraint_date)
                return self.calendar.add_work_days(finish, -offset), finish

        return start, self.calendar.add_work_days(start, offset)

    def _record_date_error(self, task: Task, error: DateError) -> None:
        logger.warning(str(error))
        task.start = None
        task.end = None
        self._failed.add(task.task_id)
        self.issues.append(ValidationIssue(
            code='invalid_date', message=str(error), task_id=task.task_id,
        ))

    def _flag_unresolved_successors(self) -> None:
        """Record an issue on every task downstream of a failed task."""
        seen = set(self._failed)
        queue = [t.task_id for t in self.network.leaf_tasks() if t.task_id in self._failed]

        while queue:
            pred_id = queue.pop(0)
            for entry in self.network.get_successors(pred_id):
                if entry.successor_id in seen:
                    continue
                seen.add(entry.successor_id)
                queue.append(entry.successor_id)
                self.issues.append(ValidationIssue(
                    code='unresolved_predecessor',
                    message=f"Predecessor {pred_id} could not be scheduled",
                    task_id=entry.successor_id,
                ))
