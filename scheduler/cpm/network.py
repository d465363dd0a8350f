"""
Task Network for CPM calculations.

Indexes task rows by id, resolves the parent/child hierarchy and builds the
predecessor -> successor adjacency the passes walk. Links that cannot take
part in scheduling are dropped here and reported as ValidationIssues.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional

from .exceptions import ValidationError
from .models import Dependency, LinkType, Row, Separator, Task, ValidationIssue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuccessorEntry:
    """One outgoing link of a predecessor."""

    successor_id: str
    link_type: LinkType
    lag: int
    successor_duration: int


class TaskNetwork:
    """
    Task dependency network for CPM calculations.

    Built once per run from the engine's private copies of the rows.
    Only leaf tasks take part in the dependency graph: parent rows are
    rolled up from their children and separators are never scheduled.
    """

    def __init__(self, rows: list[Row]):
        self.rows = rows
        self.tasks: dict[str, Task] = {}
        self.separator_ids: set[str] = set()
        self.issues: list[ValidationIssue] = []
        self._children: dict[str, list[Task]] = defaultdict(list)
        self._depth: dict[str, int] = {}
        self._successors: dict[str, list[SuccessorEntry]] = defaultdict(list)
        self._predecessors: dict[str, list[Dependency]] = defaultdict(list)

        self._index_rows()
        self._resolve_hierarchy()
        self._build_links()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _index_rows(self) -> None:
        seen: set[str] = set()
        duplicates: list[str] = []
        for row in self.rows:
            if row.task_id in seen:
                duplicates.append(row.task_id)
                continue
            seen.add(row.task_id)
            if isinstance(row, Separator):
                self.separator_ids.add(row.task_id)
            else:
                self.tasks[row.task_id] = row

        if duplicates:
            raise ValidationError(f"Duplicate task ids: {sorted(set(duplicates))[:5]}")

    def _resolve_hierarchy(self) -> None:
        for task in self.tasks.values():
            parent_id = task.parent_id
            if parent_id is None:
                continue
            if parent_id in self.tasks:
                self._children[parent_id].append(task)
            elif parent_id in self.separator_ids:
                logger.debug(f"Task {task.task_id} sits under separator {parent_id}; scheduled as a root")
            else:
                self._add_issue(
                    'unknown_parent', task.task_id,
                    f"Parent {parent_id} does not exist; task treated as a root",
                    severity='warning',
                )

        for task_id in self.tasks:
            self._depth[task_id] = self._compute_depth(task_id)

    def _compute_depth(self, task_id: str) -> int:
        depth = 0
        visited = {task_id}
        current = self.tasks[task_id].parent_id
        while current in self.tasks:
            if current in visited:
                raise ValidationError(f"Parent chain of task {task_id} loops back on itself")
            visited.add(current)
            depth += 1
            current = self.tasks[current].parent_id
        return depth

    def _build_links(self) -> None:
        for task in self.tasks.values():
            if not task.dependencies:
                continue

            if self.is_parent(task.task_id):
                self._add_issue(
                    'parent_dependency', task.task_id,
                    f"Parent task declares {len(task.dependencies)} dependencies; they are ignored",
                    severity='warning',
                )
                continue

            for dep in task.dependencies:
                self._add_link(task, dep)

    def _add_link(self, task: Task, dep: Dependency) -> None:
        pred_id = dep.predecessor_id

        if pred_id in self.separator_ids:
            logger.debug(f"Dropping link {pred_id} -> {task.task_id}: predecessor is a separator")
            return

        if pred_id not in self.tasks:
            self._add_issue('missing_predecessor', task.task_id, f"Predecessor {pred_id} does not exist")
            return

        if pred_id == task.task_id:
            self._add_issue('self_dependency', task.task_id, "Task depends on itself")
            return

        if self.is_parent(pred_id):
            self._add_issue(
                'parent_predecessor', task.task_id,
                f"Predecessor {pred_id} is a parent task; link ignored",
                severity='warning',
            )
            return

        self._successors[pred_id].append(
            SuccessorEntry(task.task_id, dep.link_type, dep.lag, task.duration)
        )
        self._predecessors[task.task_id].append(dep)

    def _add_issue(self, code: str, task_id: str, message: str, severity: str = 'error') -> None:
        issue = ValidationIssue(code=code, message=message, task_id=task_id, severity=severity)
        self.issues.append(issue)
        if severity == 'error':
            logger.warning(f"Task {task_id}: {message}")
        else:
            logger.info(f"Task {task_id}: {message}")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get a task by ID."""
        return self.tasks.get(task_id)

    def get_successors(self, task_id: str) -> list[SuccessorEntry]:
        """Get outgoing links where task_id is the predecessor."""
        return self._successors.get(task_id, [])

    def get_predecessors(self, task_id: str) -> list[Dependency]:
        """Get the resolved incoming links of task_id."""
        return self._predecessors.get(task_id, [])

    def get_children(self, task_id: str) -> list[Task]:
        """Direct task children (separators excluded)."""
        return self._children.get(task_id, [])

    def is_parent(self, task_id: str) -> bool:
        return bool(self._children.get(task_id))

    def depth(self, task_id: str) -> int:
        return self._depth.get(task_id, 0)

    def leaf_tasks(self) -> list[Task]:
        """Tasks scheduled directly by the passes, in input order."""
        return [t for t in self.tasks.values() if not self.is_parent(t.task_id)]

    def parents_deepest_first(self) -> list[Task]:
        """Parent tasks ordered so every child parent precedes its own parent."""
        parents = [t for t in self.tasks.values() if self.is_parent(t.task_id)]
        return sorted(parents, key=lambda t: -self._depth[t.task_id])

    def successor_ids(self) -> dict[str, list[str]]:
        return {
            pred_id: [entry.successor_id for entry in entries]
            for pred_id, entries in self._successors.items()
        }

    # ------------------------------------------------------------------
    # Graph analysis
    # ------------------------------------------------------------------

    def topological_sort(self) -> list[str]:
        """
        Return leaf task IDs that can be ordered predecessors-first.

        Uses Kahn's algorithm. Tasks on a cycle, or downstream of one,
        are left out of the result.
        """
        leaves = [t.task_id for t in self.leaf_tasks()]
        in_degree = {tid: len(self._predecessors.get(tid, [])) for tid in leaves}

        queue = [tid for tid in leaves if in_degree[tid] == 0]
        result = []

        while queue:
            task_id = queue.pop(0)
            result.append(task_id)

            for entry in self._successors.get(task_id, []):
                in_degree[entry.successor_id] -= 1
                if in_degree[entry.successor_id] == 0:
                    queue.append(entry.successor_id)

        return result

    def scheduling_order(self) -> list[Task]:
        """
        Leaf tasks predecessors-first.

        Tasks Kahn's algorithm cannot order (on or downstream of a cycle)
        follow in input order.
        """
        ordered = self.topological_sort()
        placed = set(ordered)
        tasks = [self.tasks[tid] for tid in ordered]
        tasks.extend(t for t in self.leaf_tasks() if t.task_id not in placed)
        return tasks

    def find_cycle_members(self) -> set[str]:
        """
        Find task IDs that lie on a dependency cycle.

        Kahn's algorithm leaves cycle members plus everything downstream of
        them; repeatedly pruning tasks with no remaining successor inside
        that set strips the downstream tail.
        """
        ordered = set(self.topological_sort())
        remaining = {t.task_id for t in self.leaf_tasks()} - ordered

        pruned = True
        while pruned:
            pruned = False
            for task_id in list(remaining):
                if not any(e.successor_id in remaining for e in self._successors.get(task_id, [])):
                    remaining.discard(task_id)
                    pruned = True

        return remaining

    def get_all_predecessors(self, task_id: str, include_self: bool = False) -> set[str]:
        """Get all predecessor task IDs (transitive closure)."""
        result = set()
        if include_self:
            result.add(task_id)

        visited = set()
        queue = [task_id]

        while queue:
            current = queue.pop(0)
            if current in visited:
                continue
            visited.add(current)

            for dep in self._predecessors.get(current, []):
                result.add(dep.predecessor_id)
                queue.append(dep.predecessor_id)

        return result

    def get_statistics(self) -> dict:
        """Get network statistics."""
        leaves = self.leaf_tasks()
        return {
            'total_tasks': len(self.tasks),
            'leaf_tasks': len(leaves),
            'parent_tasks': len(self.tasks) - len(leaves),
            'separators': len(self.separator_ids),
            'links': sum(len(entries) for entries in self._successors.values()),
            'max_depth': max(self._depth.values(), default=0),
            'start_tasks': sum(1 for t in leaves if not self._predecessors.get(t.task_id)),
            'end_tasks': sum(1 for t in leaves if not self._successors.get(t.task_id)),
        }

    def __len__(self) -> int:
        return len(self.tasks)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self.tasks

    def __repr__(self) -> str:
        links = sum(len(entries) for entries in self._successors.values())
        return f"TaskNetwork({len(self.tasks)} tasks, {links} links)"
