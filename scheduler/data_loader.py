"""
Data Loader for schedule files.

Loads schedules from JSON (validated with the schemas package) or task rows
from CSV, and flattens CPM results into pandas DataFrames for export.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd

from schemas.results import CpmTaskResult
from schemas.schedule import DependencyRecord, ScheduleFile, TaskRecord
from schemas.validator import validated_df_to_csv
from .cpm.calendar import WorkCalendar
from .cpm.models import CPMResult, Row, Task

logger = logging.getLogger(__name__)


def load_schedule(path: Path) -> tuple[list[Row], WorkCalendar, Optional[str]]:
    """
    Load a JSON schedule file.

    Args:
        path: JSON file with tasks, calendar and projectStart

    Returns:
        (rows, calendar, project_start) ready for CPMEngine

    Raises:
        pydantic.ValidationError: file does not match the schedule schema
    """
    path = Path(path)
    with open(path, encoding='utf-8') as f:
        data = json.load(f)

    # A bare list is a task list with default calendar
    if isinstance(data, list):
        data = {'tasks': data}

    schedule = ScheduleFile.model_validate(data)
    rows, calendar, project_start = schedule.to_domain()
    logger.info(f"Loaded {len(rows)} rows from {path.name}")
    return rows, calendar, project_start


def parse_dependency_list(value: str) -> list[DependencyRecord]:
    """
    Parse a compact dependency cell: "A;B:SS;C:FS:2".

    Each entry is predecessor[:type[:lag]], separated by ';' or ','.
    """
    records = []
    for entry in str(value).replace(',', ';').split(';'):
        entry = entry.strip()
        if not entry:
            continue
        parts = [p.strip() for p in entry.split(':')]
        record = {'id': parts[0]}
        if len(parts) > 1 and parts[1]:
            record['type'] = parts[1]
        if len(parts) > 2 and parts[2]:
            record['lag'] = int(parts[2])
        records.append(DependencyRecord.model_validate(record))
    return records


def load_tasks_csv(path: Path) -> list[Row]:
    """
    Load task rows from CSV.

    Columns: id, name, duration, parentId, rowType, constraintType,
    constraintDate, dependencies (compact form, see parse_dependency_list).
    Only id is required.
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    if 'id' not in df.columns:
        raise ValueError(f"{path}: missing required column 'id'")

    rows = []
    for _, row in df.iterrows():
        record = {'id': row['id'].strip()}
        for column in ('name', 'parentId', 'sortKey', 'rowType', 'constraintType', 'constraintDate'):
            if column in df.columns and row[column].strip():
                record[column] = row[column].strip()
        if 'duration' in df.columns and row['duration'].strip():
            record['duration'] = int(float(row['duration']))
        if 'dependencies' in df.columns:
            record['dependencies'] = parse_dependency_list(row['dependencies'])
        rows.append(TaskRecord.model_validate(record).to_domain())

    logger.info(f"Loaded {len(rows)} rows from {Path(path).name}")
    return rows


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def task_records(result: CPMResult) -> list[dict]:
    """One flat record per task row (separators excluded), input order."""
    parent_ids = result.parent_ids()
    records = []
    for task in result.tasks:
        if not isinstance(task, Task):
            continue
        constraint_date = task.constraint_date
        if isinstance(constraint_date, date):
            constraint_date = constraint_date.isoformat()
        records.append({
            'task_id': task.task_id,
            'name': task.name,
            'parent_id': task.parent_id,
            'is_parent': task.task_id in parent_ids,
            'duration': task.duration,
            'constraint_type': task.constraint_type.value,
            'constraint_date': constraint_date,
            'start': _iso(task.start),
            'end': _iso(task.end),
            'late_start': _iso(task.late_start),
            'late_finish': _iso(task.late_finish),
            'total_float': task.total_float,
            'free_float': task.free_float,
            'is_critical': task.is_critical,
            'health': task.health.status.value if task.health else None,
            'health_summary': task.health.summary if task.health else None,
        })
    return records


def results_to_dataframe(result: CPMResult) -> pd.DataFrame:
    """Flatten task rows of a result into one DataFrame row each."""
    return pd.DataFrame(task_records(result), columns=list(CpmTaskResult.model_fields))


def export_results_csv(result: CPMResult, path: Path) -> Path:
    """Write the results table to CSV after checking it against CpmTaskResult."""
    path = Path(path)
    df = results_to_dataframe(result)
    validated_df_to_csv(df, path, CpmTaskResult, index=False)
    logger.info(f"Wrote {len(df)} rows to {path}")
    return path


def result_to_dict(result: CPMResult) -> dict:
    """JSON-ready summary of a result: stats, issues and task table."""
    stats = result.stats
    return {
        'state': result.state.value,
        'stats': {
            'calc_time_ms': round(stats.calc_time_ms, 3),
            'task_count': stats.task_count,
            'critical_count': stats.critical_count,
            'project_end': _iso(stats.project_end),
            'duration': stats.duration,
            'error': stats.error,
        },
        'issues': [
            {'code': i.code, 'task_id': i.task_id, 'severity': i.severity, 'message': i.message}
            for i in result.issues
        ],
        'tasks': task_records(result),
    }
