"""Tests for critical path analysis and reporting."""

from datetime import date

import pytest

from scheduler.analysis.critical_path import analyze_critical_path, float_bucket, print_critical_path_report
from scheduler.cpm.engine import calculate


@pytest.fixture
def result(task_factory, calendar):
    """A 10-day spine with branches of 1, 3, 6 and 8 days."""
    return calculate([
        task_factory('SPINE', 10),
        task_factory('B1', 9),
        task_factory('B3', 7),
        task_factory('B6', 4),
        task_factory('B8', 2),
        task_factory('BAD', 2, constraint='SNET', constraint_date='bad'),
    ], calendar, date(2024, 1, 1))


class TestFloatBucket:
    """Tests for float_bucket."""

    @pytest.mark.parametrize("total_float,bucket", [
        (-3, '<0 (negative)'),
        (0, '0 (critical)'),
        (1, '1-5 days'),
        (5, '1-5 days'),
        (6, '6-10 days'),
        (11, '11-20 days'),
        (21, '>20 days'),
    ])
    def test_buckets(self, total_float, bucket):
        """Boundaries fall in the lower bucket."""
        assert float_bucket(total_float) == bucket


class TestAnalyzeCriticalPath:
    """Tests for analyze_critical_path."""

    def test_summary(self, result):
        """Critical, near-critical and distribution over leaves."""
        analysis = analyze_critical_path(result, near_critical_threshold_days=5)
        assert [t.task_id for t in analysis.critical_path] == ['SPINE']
        assert [t.task_id for t in analysis.near_critical_tasks] == ['B1', 'B3']
        assert analysis.float_distribution == {
            '0 (critical)': 1,
            '1-5 days': 2,
            '6-10 days': 2,
            'unknown': 1,
        }
        assert analysis.project_finish == date(2024, 1, 12)
        assert analysis.total_tasks == 6
        assert analysis.get_critical_path_length() == 1
        assert analysis.get_risk_summary() == '1 critical tasks, 2 near-critical (<=5 days float)'

    def test_threshold_default_from_settings(self, result):
        """The near-critical threshold defaults to settings."""
        assert analyze_critical_path(result).near_critical_threshold_days == 5

    def test_wider_threshold(self, result):
        """Raising the threshold pulls in more tasks."""
        analysis = analyze_critical_path(result, near_critical_threshold_days=10)
        assert [t.task_id for t in analysis.near_critical_tasks] == ['B1', 'B3', 'B6', 'B8']

    def test_report_prints(self, result, capsys):
        """The report names the critical tasks."""
        print_critical_path_report(analyze_critical_path(result))
        out = capsys.readouterr().out
        assert 'CRITICAL PATH ANALYSIS REPORT' in out
        assert 'SPINE' in out
        assert 'Project Finish: 2024-01-12' in out
