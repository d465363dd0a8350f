"""
CPM (Critical Path Method) scheduling engine.

This module provides:
- Work calendar and work-day date arithmetic
- Task network construction with hierarchy and dependency handling
- Forward/backward pass CPM calculations
- Float, critical path and health classification
"""

from .models import (
    LinkType, ConstraintType, HealthStatus, CPMState,
    Dependency, Task, Separator, HealthIndicator, ValidationIssue,
    CPMStats, CPMResult, CriticalPathResult,
)
from .exceptions import CPMError, DateError, ConvergenceError, ValidationError
from .calendar import WorkCalendar, CalendarException, to_date
from .network import TaskNetwork, SuccessorEntry
from .engine import CPMEngine, calculate

__all__ = [
    'LinkType',
    'ConstraintType',
    'HealthStatus',
    'CPMState',
    'Dependency',
    'Task',
    'Separator',
    'HealthIndicator',
    'ValidationIssue',
    'CPMStats',
    'CPMResult',
    'CriticalPathResult',
    'CPMError',
    'DateError',
    'ConvergenceError',
    'ValidationError',
    'WorkCalendar',
    'CalendarException',
    'to_date',
    'TaskNetwork',
    'SuccessorEntry',
    'CPMEngine',
    'calculate',
]
