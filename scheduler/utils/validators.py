"""Dependency validation utilities."""
import logging
from typing import List

from scheduler.cpm.exceptions import ValidationError
from scheduler.cpm.models import Dependency, Row, Task, ValidationIssue
from scheduler.cpm.network import TaskNetwork

logger = logging.getLogger(__name__)


def validate_dependencies(rows: List[Row]) -> List[ValidationIssue]:
    """
    Check task rows for dependency problems without scheduling them.

    Args:
        rows: Task and Separator rows

    Returns:
        Issues found, errors and warnings alike (empty if clean). A fatal
        structural problem is returned as a single 'invalid_structure' issue.
    """
    try:
        network = TaskNetwork([row.fresh_copy() for row in rows])
    except ValidationError as e:
        return [ValidationIssue(code='invalid_structure', message=str(e))]

    issues = list(network.issues)
    cycle_members = network.find_cycle_members()
    for task_id in network.tasks:
        if task_id in cycle_members:
            issues.append(ValidationIssue(
                code='circular_dependency',
                message='Task is part of a circular dependency',
                task_id=task_id,
            ))

    logger.debug(f'Validated {len(network)} tasks: {len(issues)} issues')
    return issues


def would_create_cycle(rows: List[Row], task_id: str, predecessor_id: str) -> bool:
    """
    Check whether making predecessor_id a predecessor of task_id closes a cycle.

    Args:
        rows: Current task rows
        task_id: Task that would receive the dependency
        predecessor_id: Proposed predecessor

    Returns:
        True if task_id already (transitively) precedes predecessor_id
    """
    if task_id == predecessor_id:
        return True

    network = TaskNetwork([row.fresh_copy() for row in rows])
    if task_id not in network or predecessor_id not in network:
        return False

    return task_id in network.get_all_predecessors(predecessor_id)


def add_dependency(task: Task, dependency: Dependency, rows: List[Row]) -> None:
    """
    Append a dependency to a task after checking it is schedulable.

    Raises:
        ValidationError: the link would close a cycle
    """
    if would_create_cycle(rows, task.task_id, dependency.predecessor_id):
        raise ValidationError(
            f'Adding {dependency.predecessor_id} -> {task.task_id} would create a circular dependency'
        )
    task.dependencies.append(dependency)
