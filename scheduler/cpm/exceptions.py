"""
Exceptions raised by the CPM engine.

Per-task problems (DateError) are caught by the passes and recorded against
the task; whole-run problems (ConvergenceError, ValidationError) are caught
by CPMEngine.run and turned into a FAILED result.
"""

from typing import Optional


class CPMError(Exception):
    """Base class for scheduling errors."""


class DateError(CPMError):
    """Malformed or unusable date, scoped to a task when one is known."""

    def __init__(self, message: str, task_id: Optional[str] = None):
        self.task_id = task_id
        if task_id is not None:
            message = f"Task {task_id}: {message}"
        super().__init__(message)


class ConvergenceError(CPMError):
    """Fixed-point iteration did not settle within the iteration cap."""

    def __init__(self, pass_name: str, iterations: int, task_ids: list[str]):
        self.pass_name = pass_name
        self.iterations = iterations
        self.task_ids = list(task_ids)
        super().__init__(
            f"{pass_name.capitalize()} pass did not converge after {iterations} iterations "
            f"({len(self.task_ids)} tasks still changing: {self.task_ids[:5]})"
        )


class ValidationError(CPMError):
    """Input that cannot be scheduled at all (duplicate ids, looping hierarchy)."""
