"""Pytest configuration and fixtures."""
from datetime import date

import pytest

from scheduler.cpm.calendar import WorkCalendar
from scheduler.cpm.models import ConstraintType, Dependency, LinkType, Task


# Monday; 2024-01-05 is a Friday, 2024-01-08 the following Monday
MONDAY = date(2024, 1, 1)


@pytest.fixture
def calendar() -> WorkCalendar:
    """Mon-Fri calendar with no exceptions."""
    return WorkCalendar(working_days=frozenset({1, 2, 3, 4, 5}))


@pytest.fixture
def anchor() -> date:
    """Project anchor (a Monday)."""
    return MONDAY


def make_task(task_id, duration=1, deps=(), parent_id=None, constraint=None, constraint_date=None, **kwargs) -> Task:
    """
    Build a Task from compact arguments.

    deps items are a predecessor id or a (predecessor_id, link_type, lag) tuple.
    """
    dependencies = []
    for dep in deps:
        if isinstance(dep, str):
            dependencies.append(Dependency(dep))
        else:
            pred_id, link_type, lag = dep
            dependencies.append(Dependency(pred_id, LinkType(link_type), lag))
    return Task(
        task_id=task_id,
        name=kwargs.pop('name', f'Task {task_id}'),
        duration=duration,
        parent_id=parent_id,
        dependencies=dependencies,
        constraint_type=ConstraintType(constraint) if constraint else ConstraintType.ASAP,
        constraint_date=constraint_date,
        **kwargs,
    )


@pytest.fixture
def task_factory():
    """Factory building tasks, see make_task."""
    return make_task
