"""
Data models for CPM calculations.

Defines dataclasses for task rows, dependencies, health indicators and
calculation results.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Optional, Union


class LinkType(str, Enum):
    """Relationship between a predecessor and a successor."""

    FS = 'FS'   # finish-to-start
    SS = 'SS'   # start-to-start
    FF = 'FF'   # finish-to-finish
    SF = 'SF'   # start-to-finish

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


class ConstraintType(str, Enum):
    """Date restriction on a task, independent of its dependencies."""

    ASAP = 'ASAP'
    SNET = 'SNET'   # start no earlier than
    SNLT = 'SNLT'   # start no later than (deadline, reported only)
    FNET = 'FNET'   # finish no earlier than
    FNLT = 'FNLT'   # finish no later than (deadline, reported only)
    MFO = 'MFO'     # must finish on

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


class HealthStatus(str, Enum):
    HEALTHY = 'healthy'
    AT_RISK = 'at-risk'
    CRITICAL_FAILURE = 'critical-failure'
    BLOCKED = 'blocked'


class CPMState(str, Enum):
    """Stages of one calculation run."""

    IDLE = 'idle'
    BUILDING_INDEX = 'building-index'
    FORWARD_PASS = 'forward-pass'
    ROLLUP_PARENTS = 'rollup-parents'
    BACKWARD_PASS = 'backward-pass'
    COMPUTING_FLOAT = 'computing-float'
    MARKING_CRITICAL = 'marking-critical'
    ANALYZING_HEALTH = 'analyzing-health'
    DONE = 'done'
    FAILED = 'failed'


def require_all_link_types(table: dict, name: str) -> dict:
    """
    Check that a link-type dispatch table covers every LinkType.

    Called at import time by each pass so that a new link type cannot be
    added without a formula in every table.
    """
    missing = [link for link in LinkType if link not in table]
    if missing:
        raise TypeError(f"{name} has no rule for link types: {[m.value for m in missing]}")
    return table


@dataclass
class Dependency:
    """Link from the owning task to one of its predecessors."""

    predecessor_id: str
    link_type: LinkType = LinkType.FS
    lag: int = 0                   # signed, work days

    def __post_init__(self):
        self.link_type = LinkType(self.link_type)


@dataclass
class HealthIndicator:
    """Health classification of a task after a run."""

    status: HealthStatus
    summary: str
    details: list[str] = field(default_factory=list)
    constraint_variance: Optional[int] = None   # work days, negative = late
    constraint_target: Optional[date] = None
    projected_date: Optional[date] = None


@dataclass
class Task:
    """Represents a schedulable task row (leaf or parent)."""

    task_id: str
    name: str = ''
    duration: int = 1              # work days, 0 = milestone
    parent_id: Optional[str] = None
    sort_key: str = ''
    dependencies: list[Dependency] = field(default_factory=list)

    # Constraints (optional)
    constraint_type: ConstraintType = ConstraintType.ASAP
    constraint_date: Union[date, str, None] = None

    # Baseline (optional, variance reporting only)
    baseline_start: Optional[date] = None
    baseline_finish: Optional[date] = None

    # CPM Results (calculated by engine)
    start: Optional[date] = None
    end: Optional[date] = None
    late_start: Optional[date] = None
    late_finish: Optional[date] = None
    total_float: Optional[int] = None
    free_float: Optional[int] = None
    is_critical: bool = False
    health: Optional[HealthIndicator] = None

    def __post_init__(self):
        self.constraint_type = ConstraintType(self.constraint_type or ConstraintType.ASAP)
        if self.duration < 0:
            raise ValueError(f"Task {self.task_id}: duration must be >= 0, got {self.duration}")

    @property
    def duration_offset(self) -> int:
        """Work days from start to end (0 for milestones and 1-day tasks)."""
        return max(self.duration - 1, 0)

    def is_milestone(self) -> bool:
        """Check if task is a milestone (zero duration)."""
        return self.duration == 0

    def fresh_copy(self) -> 'Task':
        """Copy caller-owned fields and clear everything the engine calculates."""
        return replace(
            self,
            dependencies=list(self.dependencies),
            start=None,
            end=None,
            late_start=None,
            late_finish=None,
            total_float=None,
            free_float=None,
            is_critical=False,
            health=None,
        )


@dataclass
class Separator:
    """Hierarchy-only spacer row. Never scheduled, never a predecessor."""

    task_id: str
    parent_id: Optional[str] = None
    sort_key: str = ''
    name: str = ''

    def fresh_copy(self) -> 'Separator':
        return replace(self)


Row = Union[Task, Separator]


@dataclass
class ValidationIssue:
    """Non-fatal input problem found while building the network."""

    code: str                      # missing_predecessor, circular_dependency, ...
    message: str
    task_id: Optional[str] = None
    severity: str = 'error'        # 'error' blocks the task, 'warning' does not

    @property
    def is_error(self) -> bool:
        return self.severity == 'error'


@dataclass
class CPMStats:
    calc_time_ms: float = 0.0
    task_count: int = 0
    critical_count: int = 0
    project_end: Optional[date] = None
    duration: int = 0              # inclusive work days, earliest start to project_end
    error: Optional[str] = None


@dataclass
class CPMResult:
    """Results from one CPM calculation."""

    tasks: list[Row]               # input order, calculated fields populated
    stats: CPMStats
    state: CPMState = CPMState.DONE
    issues: list[ValidationIssue] = field(default_factory=list)
    state_history: list[CPMState] = field(default_factory=list)
    successor_ids: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.state == CPMState.DONE

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get a task by ID (separators are not returned)."""
        for row in self.tasks:
            if isinstance(row, Task) and row.task_id == task_id:
                return row
        return None

    def parent_ids(self) -> set[str]:
        """IDs of tasks that have at least one task child."""
        task_ids = {row.task_id for row in self.tasks if isinstance(row, Task)}
        return {
            row.parent_id for row in self.tasks
            if isinstance(row, Task) and row.parent_id in task_ids
        }

    def leaf_tasks(self) -> list[Task]:
        parents = self.parent_ids()
        return [row for row in self.tasks if isinstance(row, Task) and row.task_id not in parents]

    def get_critical_tasks(self) -> list[Task]:
        """Get critical leaf tasks in start-date order."""
        critical = [t for t in self.leaf_tasks() if t.is_critical]
        return sorted(critical, key=lambda t: (t.start or date.max, t.sort_key, t.task_id))

    def get_tasks_by_float(self, max_float: int = None) -> list[Task]:
        """Get leaf tasks sorted by total float (ascending)."""
        tasks = [t for t in self.leaf_tasks() if t.total_float is not None]
        if max_float is not None:
            tasks = [t for t in tasks if t.total_float <= max_float]
        return sorted(tasks, key=lambda t: t.total_float)

    def get_issues(self, task_id: str = None) -> list[ValidationIssue]:
        if task_id is None:
            return list(self.issues)
        return [issue for issue in self.issues if issue.task_id == task_id]

    def get_task_cpm_data(self, task_id: str) -> Optional[dict]:
        """
        Summarize the CPM values of one task.

        Returns None for unknown ids and separator rows.
        """
        task = self.get_task(task_id)
        if task is None:
            return None
        return {
            'task_id': task.task_id,
            'early_start': task.start,
            'early_finish': task.end,
            'late_start': task.late_start,
            'late_finish': task.late_finish,
            'duration': task.duration,
            'total_float': task.total_float,
            'free_float': task.free_float,
            'is_critical': task.is_critical,
            'health': task.health.status.value if task.health else None,
            'predecessors': [dep.predecessor_id for dep in task.dependencies],
            'successors': list(self.successor_ids.get(task_id, [])),
        }


@dataclass
class CriticalPathResult:
    """Results from critical path analysis."""

    critical_path: list[Task]
    near_critical_tasks: list[Task]
    float_distribution: dict[str, int]  # float_bucket -> count
    project_finish: Optional[date]
    near_critical_threshold_days: int
    total_tasks: int

    def get_critical_path_length(self) -> int:
        """Number of tasks on critical path."""
        return len(self.critical_path)

    def get_risk_summary(self) -> str:
        """Get summary of schedule risk."""
        critical = len(self.critical_path)
        near_critical = len(self.near_critical_tasks)
        return (f"{critical} critical tasks, {near_critical} near-critical "
                f"(<={self.near_critical_threshold_days} days float)")
