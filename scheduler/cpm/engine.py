"""
CPM (Critical Path Method) Engine.

Sequences index construction, forward pass, parent rollup, backward pass,
float calculation, critical path marking and health analysis into one
calculation run.
"""

import logging
import time
from datetime import date
from typing import Optional

from scheduler.config.settings import settings
from .backward import BackwardPass
from .calendar import DateLike, WorkCalendar, to_date
from .critical import mark_critical_path
from .exceptions import ConvergenceError, CPMError
from .floats import FloatCalculator
from .forward import ForwardPass
from .health import HealthAnalyzer
from .models import CPMResult, CPMState, CPMStats, Row, Task, ValidationIssue
from .network import TaskNetwork
from .rollup import roll_up_late_dates, roll_up_parent_dates

logger = logging.getLogger(__name__)


class CPMEngine:
    """
    CPM calculation engine.

    Holds configuration only. Each run copies the input rows, recomputes
    every calculated field from scratch and returns the copies, so the same
    engine can be reused for any number of independent runs.

    Whole-run problems never escape run(): they end the run in the FAILED
    state with stats.error set and whatever dates could be computed.
    """

    def __init__(self, calendar: WorkCalendar = None, max_iterations: int = None,
                 detect_cycles: bool = True, tighten_deadlines: bool = False,
                 variance_threshold_days: int = None, low_float_days: int = None):
        """
        Initialize CPM engine.

        Args:
            calendar: Work calendar (default: settings.DEFAULT_WORKING_DAYS, no exceptions)
            max_iterations: Fixed-point cap for each pass (default: settings.CPM_MAX_ITERATIONS)
            detect_cycles: Report tasks on dependency cycles before the passes run
            tighten_deadlines: Let FNLT/SNLT/MFO dates cap late dates
            variance_threshold_days: Deadline miss that becomes critical-failure
            low_float_days: Float below which a critical task is at-risk
        """
        self.calendar = calendar or WorkCalendar()
        self.max_iterations = (
            settings.CPM_MAX_ITERATIONS if max_iterations is None else max_iterations
        )
        self.detect_cycles = detect_cycles
        self.tighten_deadlines = tighten_deadlines
        self.variance_threshold_days = variance_threshold_days
        self.low_float_days = low_float_days

        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")

    def run(self, tasks: list[Row], project_start: Optional[DateLike] = None) -> CPMResult:
        """
        Run a full calculation.

        Args:
            tasks: Task and Separator rows in display order (not modified)
            project_start: Anchor for tasks without predecessors (default: today)

        Returns:
            CPMResult with copies of the rows in input order
        """
        started = time.perf_counter()
        run = _Run([row.fresh_copy() for row in tasks])

        try:
            anchor = to_date(project_start) if project_start is not None else date.today()

            run.enter(CPMState.BUILDING_INDEX)
            run.network = TaskNetwork(run.rows)
            run.issues.extend(run.network.issues)
            if self.detect_cycles:
                self._report_cycles(run)

            run.enter(CPMState.FORWARD_PASS)
            forward = ForwardPass(run.network, self.calendar, anchor, self.max_iterations)
            try:
                forward.run()
            except ConvergenceError as e:
                run.convergence_failed(e)
            finally:
                run.issues.extend(forward.issues)

            run.enter(CPMState.ROLLUP_PARENTS)
            roll_up_parent_dates(run.network, self.calendar)

            run.enter(CPMState.BACKWARD_PASS)
            backward = BackwardPass(run.network, self.calendar, self.max_iterations,
                                    tighten_deadlines=self.tighten_deadlines)
            try:
                backward.run()
            except ConvergenceError as e:
                run.convergence_failed(e)
            roll_up_late_dates(run.network)

            run.enter(CPMState.COMPUTING_FLOAT)
            FloatCalculator(run.network, self.calendar).run()

            run.enter(CPMState.MARKING_CRITICAL)
            run.critical_count = mark_critical_path(run.network)

            run.enter(CPMState.ANALYZING_HEALTH)
            HealthAnalyzer(
                run.network, self.calendar,
                blocked=run.blocked_reasons(),
                variance_threshold_days=self.variance_threshold_days,
                low_float_days=self.low_float_days,
            ).run()

        except CPMError as e:
            logger.error(f"CPM calculation failed in {run.state.value}: {e}")
            run.errors.append(str(e))

        result = self._build_result(run, started)
        logger.info(
            f"CPM {result.state.value}: {result.stats.task_count} tasks, "
            f"{result.stats.critical_count} critical, project end {result.stats.project_end} "
            f"({result.stats.calc_time_ms:.1f} ms)"
        )
        return result

    def _report_cycles(self, run: '_Run') -> None:
        members = run.network.find_cycle_members()
        if not members:
            return

        ordered = [tid for tid in run.network.tasks if tid in members]
        for task_id in ordered:
            run.issues.append(ValidationIssue(
                code='circular_dependency',
                message='Task is part of a circular dependency',
                task_id=task_id,
            ))
        message = f"Circular dependency detected involving {len(ordered)} tasks: {ordered[:5]}"
        logger.warning(message)
        run.errors.append(message)

    def _build_result(self, run: '_Run', started: float) -> CPMResult:
        stats = CPMStats()
        network = run.network

        if network is not None:
            leaves = network.leaf_tasks()
            starts = [t.start for t in leaves if t.start is not None]
            ends = [t.end for t in leaves if t.end is not None]

            stats.task_count = len(network.tasks)
            stats.critical_count = run.critical_count
            stats.project_end = max(ends) if ends else None
            if starts and ends:
                stats.duration = self.calendar.count_work_days(min(starts), stats.project_end)
        else:
            stats.task_count = sum(1 for row in run.rows if isinstance(row, Task))

        final = CPMState.FAILED if run.errors else CPMState.DONE
        run.enter(final)
        stats.error = '; '.join(run.errors) if run.errors else None
        stats.calc_time_ms = (time.perf_counter() - started) * 1000

        return CPMResult(
            tasks=run.rows,
            stats=stats,
            state=final,
            issues=run.issues,
            state_history=run.history,
            successor_ids=network.successor_ids() if network is not None else {},
        )


class _Run:
    """Mutable bookkeeping for one CPMEngine.run call."""

    def __init__(self, rows: list[Row]):
        self.rows = rows
        self.network: Optional[TaskNetwork] = None
        self.history: list[CPMState] = [CPMState.IDLE]
        self.issues: list[ValidationIssue] = []
        self.errors: list[str] = []
        self.critical_count = 0

    @property
    def state(self) -> CPMState:
        return self.history[-1]

    def enter(self, state: CPMState) -> None:
        logger.debug(f"CPM state: {self.state.value} -> {state.value}")
        self.history.append(state)

    def convergence_failed(self, error: ConvergenceError) -> None:
        logger.warning(str(error))
        self.errors.append(str(error))
        for task_id in error.task_ids:
            self.issues.append(ValidationIssue(
                code='non_convergent',
                message=f"Dates still changing after {error.iterations} {error.pass_name} pass iterations",
                task_id=task_id,
            ))

    def blocked_reasons(self) -> dict[str, list[str]]:
        reasons: dict[str, list[str]] = {}
        for issue in self.issues:
            if issue.is_error and issue.task_id is not None:
                reasons.setdefault(issue.task_id, []).append(issue.message)
        return reasons


def calculate(tasks: list[Row], calendar: WorkCalendar = None,
              project_start: Optional[DateLike] = None, **options) -> CPMResult:
    """Run one calculation with a throwaway engine."""
    return CPMEngine(calendar, **options).run(tasks, project_start)
