"""Tests for schedule loading and result export."""

import json
from datetime import date

import pandas as pd
import pytest
from pydantic import ValidationError

from schemas.results import CpmTaskResult
from scheduler.cpm.engine import calculate
from scheduler.cpm.models import LinkType, Separator, Task
from scheduler.data_loader import (
    export_results_csv,
    load_schedule,
    load_tasks_csv,
    parse_dependency_list,
    result_to_dict,
    results_to_dataframe,
)


@pytest.fixture
def result(task_factory, calendar):
    return calculate([
        task_factory('P', name='Phase'),
        task_factory('A', 5, parent_id='P'),
        task_factory('B', 3, parent_id='P', deps=['A']),
        Separator('S'),
        task_factory('C', 2, deps=['GHOST']),
    ], calendar, date(2024, 1, 1))


class TestLoadSchedule:
    """Tests for JSON loading."""

    def test_document(self, tmp_path):
        """Full documents carry calendar and anchor."""
        path = tmp_path / 'schedule.json'
        path.write_text(json.dumps({
            'projectStart': '2024-01-01',
            'calendar': {'workingDays': [1, 2, 3, 4], 'exceptions': {'2024-01-02': 'Closed'}},
            'tasks': [{'id': 'A', 'duration': 2}, {'id': 'B', 'dependencies': [{'id': 'A'}]}],
        }))
        rows, calendar, project_start = load_schedule(path)
        assert [r.task_id for r in rows] == ['A', 'B']
        assert not calendar.is_work_day(date(2024, 1, 2))
        assert not calendar.is_work_day(date(2024, 1, 5))
        assert project_start == '2024-01-01'

    def test_bare_task_list(self, tmp_path):
        """A JSON list is a task list with the default calendar."""
        path = tmp_path / 'tasks.json'
        path.write_text(json.dumps([{'id': 'A'}]))
        rows, calendar, project_start = load_schedule(path)
        assert len(rows) == 1
        assert project_start is None

    def test_invalid_document(self, tmp_path):
        """Schema violations raise pydantic errors."""
        path = tmp_path / 'bad.json'
        path.write_text(json.dumps({'tasks': [{'id': 'A', 'duration': -2}]}))
        with pytest.raises(ValidationError):
            load_schedule(path)


class TestLoadTasksCsv:
    """Tests for CSV loading."""

    def test_parse_dependency_list(self):
        """Compact cells expand to typed links."""
        deps = parse_dependency_list('A; B:ss ,C:FF:-2')
        assert [(d.id, d.type, d.lag) for d in deps] == [
            ('A', LinkType.FS, 0),
            ('B', LinkType.SS, 0),
            ('C', LinkType.FF, -2),
        ]
        assert parse_dependency_list('') == []

    def test_load_rows(self, tmp_path):
        """Rows, separators and blanks are read as strings."""
        path = tmp_path / 'tasks.csv'
        path.write_text(
            'id,name,duration,parentId,rowType,constraintType,constraintDate,dependencies\n'
            'P,Phase,,,,,,\n'
            'A,Dig,5,P,,,,\n'
            'S,,,P,blank,,,\n'
            'B,Pour,3.0,P,,fnlt,2024-01-12,A:FS:1\n'
        )
        rows = load_tasks_csv(path)
        assert [type(r) for r in rows] == [Task, Task, Separator, Task]
        assert rows[0].duration == 1
        b = rows[3]
        assert b.duration == 3
        assert b.constraint_type.value == 'FNLT'
        assert b.constraint_date == '2024-01-12'
        assert b.dependencies[0].lag == 1

    def test_id_column_required(self, tmp_path):
        """CSV files without an id column are rejected."""
        path = tmp_path / 'tasks.csv'
        path.write_text('name,duration\nDig,5\n')
        with pytest.raises(ValueError, match="'id'"):
            load_tasks_csv(path)


class TestResultExport:
    """Tests for flattening and exporting results."""

    def test_dataframe_matches_schema(self, result):
        """One row per task, columns in schema order."""
        df = results_to_dataframe(result)
        assert list(df.columns) == list(CpmTaskResult.model_fields)
        assert list(df['task_id']) == ['P', 'A', 'B', 'C']
        assert list(df['is_parent']) == [True, False, False, False]

    def test_export_csv(self, result, tmp_path):
        """Exported CSV reads back with dates as ISO strings."""
        path = export_results_csv(result, tmp_path / 'out' / 'results.csv')
        df = pd.read_csv(path)
        assert len(df) == 4
        a = df[df['task_id'] == 'A'].iloc[0]
        assert a['start'] == '2024-01-01'
        assert a['end'] == '2024-01-05'
        assert bool(a['is_critical'])
        assert df[df['task_id'] == 'C'].iloc[0]['health'] == 'blocked'

    def test_result_to_dict(self, result):
        """JSON summary keeps native types."""
        data = result_to_dict(result)
        json.dumps(data)
        assert data['state'] == 'done'
        assert data['stats']['project_end'] == '2024-01-10'
        assert data['stats']['task_count'] == 4
        assert data['issues'][0]['code'] == 'missing_predecessor'
        c = data['tasks'][3]
        assert c['task_id'] == 'C'
        assert c['total_float'] == 6
        assert isinstance(c['total_float'], int)
