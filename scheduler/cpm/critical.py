"""
Critical path marking.
"""

from .network import TaskNetwork


def mark_critical_path(network: TaskNetwork) -> int:
    """
    Flag critical tasks.

    A leaf is critical when its total float is zero or negative. A parent is
    critical when any direct child is, whatever its own rolled-up float.

    Returns:
        Number of critical leaf tasks
    """
    critical_leaves = 0
    for task in network.leaf_tasks():
        task.is_critical = task.total_float is not None and task.total_float <= 0
        if task.is_critical:
            critical_leaves += 1

    for parent in network.parents_deepest_first():
        parent.is_critical = any(c.is_critical for c in network.get_children(parent.task_id))

    return critical_leaves
