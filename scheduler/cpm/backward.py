"""
Backward pass: late start and late finish of every leaf task.
"""

import logging
from datetime import date
from typing import Callable, Optional

from .calendar import WorkCalendar, to_date
from .exceptions import ConvergenceError
from .models import ConstraintType, LinkType, Task, require_all_link_types
from .network import TaskNetwork

logger = logging.getLogger(__name__)


# (successor, lag, own duration offset, calendar) -> latest finish of the predecessor
LateFinishRule = Callable[[Task, int, int, WorkCalendar], date]

LATE_FINISH_RULES: dict[LinkType, LateFinishRule] = require_all_link_types({
    LinkType.FS: lambda succ, lag, offset, cal: cal.add_work_days(succ.late_start, -(1 + lag)),
    LinkType.SS: lambda succ, lag, offset, cal: cal.add_work_days(succ.late_start, offset - lag),
    LinkType.FF: lambda succ, lag, offset, cal: cal.add_work_days(succ.late_finish, -lag),
    LinkType.SF: lambda succ, lag, offset, cal: cal.add_work_days(succ.late_finish, offset - lag),
}, 'LATE_FINISH_RULES')


def find_project_end(network: TaskNetwork) -> Optional[date]:
    """Latest early finish among leaf tasks."""
    ends = [t.end for t in network.leaf_tasks() if t.end is not None]
    return max(ends) if ends else None


class BackwardPass:
    """
    Computes late dates by fixed-point iteration, mirroring ForwardPass.

    Leaf tasks are swept successors-first (the reverse of
    TaskNetwork.scheduling_order). Every late finish is bounded by the
    project end. Successors without early dates (date errors) are ignored,
    and successors whose late dates are not known yet are picked up on a
    later sweep.

    With tighten_deadlines, FNLT, SNLT and MFO dates also cap the late
    finish. The violation is still only reported by health analysis.
    """

    def __init__(self, network: TaskNetwork, calendar: WorkCalendar,
                 max_iterations: int, tighten_deadlines: bool = False):
        self.network = network
        self.calendar = calendar
        self.max_iterations = max_iterations
        self.tighten_deadlines = tighten_deadlines
        self.project_end: Optional[date] = None
        self.iterations = 0

    def run(self) -> None:
        """
        Set late dates on all leaf tasks that have early dates.

        Raises:
            ConvergenceError: late dates still changing after max_iterations sweeps
        """
        self.project_end = find_project_end(self.network)
        if self.project_end is None:
            logger.warning("No leaf task has early dates; skipping backward pass")
            return

        leaves = [t for t in reversed(self.network.scheduling_order()) if t.start is not None]
        changed: list[str] = []

        for iteration in range(1, self.max_iterations + 1):
            self.iterations = iteration
            changed = []

            for task in leaves:
                late_finish = self.late_finish_for(task)
                late_start = self.calendar.add_work_days(late_finish, -task.duration_offset)
                if late_finish != task.late_finish or late_start != task.late_start:
                    task.late_start, task.late_finish = late_start, late_finish
                    changed.append(task.task_id)

            if not changed:
                logger.debug(f"Backward pass converged after {iteration} iterations")
                return

        raise ConvergenceError('backward', self.max_iterations, changed)

    def late_finish_for(self, task: Task) -> date:
        offset = task.duration_offset
        late_finish = self.project_end

        for entry in self.network.get_successors(task.task_id):
            succ = self.network.tasks[entry.successor_id]
            if succ.start is None or succ.late_start is None:
                continue
            candidate = LATE_FINISH_RULES[entry.link_type](succ, entry.lag, offset, self.calendar)
            if candidate < late_finish:
                late_finish = candidate

        if self.tighten_deadlines:
            late_finish = self._apply_deadline(task, late_finish, offset)

        return late_finish

    def _apply_deadline(self, task: Task, late_finish: date, offset: int) -> date:
        if task.constraint_date is None:
            return late_finish

        deadline = to_date(task.constraint_date, task_id=task.task_id)
        if task.constraint_type in (ConstraintType.FNLT, ConstraintType.MFO):
            return min(late_finish, self.calendar.previous_work_day(deadline))
        if task.constraint_type == ConstraintType.SNLT:
            latest_start = self.calendar.previous_work_day(deadline)
            return min(late_finish, self.calendar.add_work_days(latest_start, offset))
        return late_finish
