"""
Critical Path Analysis.

Summarizes a finished CPM run: critical and near-critical tasks and the
distribution of total float across leaf tasks.
"""

from collections import defaultdict
from datetime import date

from scheduler.config.settings import settings
from ..cpm.models import CPMResult, CriticalPathResult


def float_bucket(total_float: int) -> str:
    """Histogram bucket label for a total float in work days."""
    if total_float < 0:
        return '<0 (negative)'
    if total_float == 0:
        return '0 (critical)'
    if total_float <= 5:
        return '1-5 days'
    if total_float <= 10:
        return '6-10 days'
    if total_float <= 20:
        return '11-20 days'
    return '>20 days'


def analyze_critical_path(
    result: CPMResult,
    near_critical_threshold_days: int = None,
) -> CriticalPathResult:
    """
    Analyze critical path and near-critical tasks.

    Args:
        result: Output of CPMEngine.run
        near_critical_threshold_days: Float (work days) at or below which a
            non-critical task counts as near-critical
            (default: settings.NEAR_CRITICAL_FLOAT_DAYS)

    Returns:
        CriticalPathResult over leaf tasks
    """
    if near_critical_threshold_days is None:
        near_critical_threshold_days = settings.NEAR_CRITICAL_FLOAT_DAYS

    leaves = result.leaf_tasks()
    near_critical = []
    float_buckets = defaultdict(int)

    for task in leaves:
        if task.total_float is None:
            float_buckets['unknown'] += 1
            continue

        float_buckets[float_bucket(task.total_float)] += 1
        if 0 < task.total_float <= near_critical_threshold_days:
            near_critical.append(task)

    near_critical.sort(key=lambda t: (t.total_float, t.start or date.max))

    return CriticalPathResult(
        critical_path=result.get_critical_tasks(),
        near_critical_tasks=near_critical,
        float_distribution=dict(float_buckets),
        project_finish=result.stats.project_end,
        near_critical_threshold_days=near_critical_threshold_days,
        total_tasks=len(leaves),
    )


def print_critical_path_report(result: CriticalPathResult) -> None:
    """Print a formatted critical path report."""
    print("=" * 80)
    print("CRITICAL PATH ANALYSIS REPORT")
    print("=" * 80)

    print(f"\nProject Finish: {result.project_finish}")
    print(f"Total Tasks: {result.total_tasks}")
    print(f"Critical Tasks: {len(result.critical_path)}")
    print(f"Near-Critical Tasks (<= {result.near_critical_threshold_days} days float): "
          f"{len(result.near_critical_tasks)}")

    print("\n--- Float Distribution ---")
    for bucket, count in sorted(result.float_distribution.items()):
        pct = count / result.total_tasks * 100 if result.total_tasks else 0.0
        bar = '#' * int(pct / 2)
        print(f"  {bucket:25s}: {count:5d} ({pct:5.1f}%) {bar}")

    print("\n--- Critical Path (first 20 tasks) ---")
    for i, task in enumerate(result.critical_path[:20]):
        print(f"  {i+1:3d}. {task.task_id:20s} | {task.name[:40]:40s} | "
              f"{task.start} -> {task.end} | {task.duration}d")

    if len(result.critical_path) > 20:
        print(f"  ... and {len(result.critical_path) - 20} more critical tasks")

    print("\n--- Near-Critical Tasks (first 10) ---")
    for i, task in enumerate(result.near_critical_tasks[:10]):
        print(f"  {i+1:3d}. {task.task_id:20s} | Float: {task.total_float:3d}d | "
              f"{task.name[:35]:35s}")

    print("\n" + "=" * 80)
