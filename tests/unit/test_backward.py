"""Tests for the backward pass."""

from datetime import date

import pytest

from scheduler.cpm.backward import LATE_FINISH_RULES, BackwardPass, find_project_end
from scheduler.cpm.exceptions import ConvergenceError
from scheduler.cpm.forward import ForwardPass
from scheduler.cpm.models import LinkType
from scheduler.cpm.network import TaskNetwork


def run_passes(rows, calendar, tighten_deadlines=False, max_iterations=50):
    network = TaskNetwork(rows)
    ForwardPass(network, calendar, date(2024, 1, 1), max_iterations).run()
    backward = BackwardPass(network, calendar, max_iterations, tighten_deadlines=tighten_deadlines)
    backward.run()
    return network.tasks, backward


class TestBackwardPass:
    """Tests for late dates."""

    def test_every_link_type_has_a_rule(self):
        """The late finish table covers every LinkType."""
        assert set(LATE_FINISH_RULES) == set(LinkType)

    def test_chain_late_equals_early(self, task_factory, calendar):
        """On a single chain late dates match early dates."""
        tasks, backward = run_passes([
            task_factory('A', 5),
            task_factory('B', 3, deps=['A']),
        ], calendar)
        assert backward.project_end == date(2024, 1, 10)
        for task_id in ('A', 'B'):
            assert tasks[task_id].late_start == tasks[task_id].start
            assert tasks[task_id].late_finish == tasks[task_id].end

    def test_long_reversed_chain_within_cap(self, task_factory, calendar):
        """Row order does not cost extra sweeps."""
        rows = [task_factory('T0')] + [task_factory(f'T{i}', deps=[f'T{i - 1}']) for i in range(1, 60)]
        network = TaskNetwork(list(reversed(rows)))
        ForwardPass(network, calendar, date(2024, 1, 1), 5).run()
        backward = BackwardPass(network, calendar, 5)
        backward.run()
        assert backward.iterations == 2
        assert network.tasks['T0'].late_start == date(2024, 1, 1)

    def test_open_end_uses_project_end(self, task_factory, calendar):
        """Tasks without successors finish late at the project end."""
        tasks, _ = run_passes([
            task_factory('A', 5),
            task_factory('C', 2),
        ], calendar)
        assert tasks['C'].late_finish == date(2024, 1, 5)
        assert tasks['C'].late_start == date(2024, 1, 4)

    @pytest.mark.parametrize("link,lag", [('FS', 0), ('FS', 2), ('SS', 2), ('FF', 0), ('FF', 1), ('SS', 0)])
    def test_driving_links_have_no_slack(self, task_factory, calendar, link, lag):
        """A predecessor that drives the project end is not given slack."""
        tasks, _ = run_passes([
            task_factory('A', 5),
            task_factory('B', 8, deps=[('A', link, lag)]),
        ], calendar)
        assert tasks['A'].late_start == tasks['A'].start

    def test_start_to_finish_bounded_by_project_end(self, task_factory, calendar):
        """Late finish never passes the project end."""
        tasks, backward = run_passes([
            task_factory('A', 5),
            task_factory('B', 3, deps=[('A', 'SF', 0)]),
        ], calendar)
        assert backward.project_end == date(2024, 1, 5)
        assert tasks['A'].late_finish == date(2024, 1, 5)
        assert tasks['B'].late_finish == date(2024, 1, 5)
        assert tasks['B'].late_start == date(2024, 1, 3)

    def test_milestone_late_start_equals_late_finish(self, task_factory, calendar):
        """Zero-duration tasks have no offset."""
        tasks, _ = run_passes([
            task_factory('A', 5),
            task_factory('M', 0),
        ], calendar)
        assert tasks['M'].late_start == tasks['M'].late_finish == date(2024, 1, 5)

    def test_deadlines_not_tightened_by_default(self, task_factory, calendar):
        """FNLT does not cap late finish unless asked."""
        tasks, _ = run_passes([task_factory('A', 10, constraint='FNLT', constraint_date='2024-01-10')], calendar)
        assert tasks['A'].late_finish == date(2024, 1, 12)

    def test_tighten_deadlines(self, task_factory, calendar):
        """With tighten_deadlines FNLT caps late finish."""
        tasks, _ = run_passes(
            [task_factory('A', 10, constraint='FNLT', constraint_date='2024-01-10')],
            calendar, tighten_deadlines=True,
        )
        assert tasks['A'].late_finish == date(2024, 1, 10)
        assert tasks['A'].late_start == date(2023, 12, 28)
        # Early dates are never corrected
        assert tasks['A'].end == date(2024, 1, 12)

    def test_tighten_snlt(self, task_factory, calendar):
        """SNLT caps late start, and so late finish."""
        tasks, _ = run_passes(
            [
                task_factory('A', 5),
                task_factory('B', 2, constraint='SNLT', constraint_date='2024-01-02'),
            ],
            calendar, tighten_deadlines=True,
        )
        assert tasks['B'].late_start == date(2024, 1, 2)
        assert tasks['B'].late_finish == date(2024, 1, 3)

    def test_failed_tasks_skipped(self, task_factory, calendar):
        """Tasks without early dates get no late dates."""
        tasks, _ = run_passes([
            task_factory('A', 2, constraint='SNET', constraint_date='bad'),
            task_factory('B', 2),
        ], calendar)
        assert tasks['A'].late_finish is None
        assert tasks['B'].late_finish == date(2024, 1, 2)

    def test_find_project_end(self, task_factory, calendar):
        """Project end is the latest leaf finish."""
        network = TaskNetwork([task_factory('A'), task_factory('B')])
        assert find_project_end(network) is None
        network.tasks['A'].end = date(2024, 1, 3)
        network.tasks['B'].end = date(2024, 1, 9)
        assert find_project_end(network) == date(2024, 1, 9)

    def test_cycle_raises_convergence_error(self, task_factory, calendar):
        """Late dates on a cycle never settle."""
        network = TaskNetwork([
            task_factory('A', 1, deps=['B']),
            task_factory('B', 1, deps=['A']),
        ])
        with pytest.raises(ConvergenceError):
            ForwardPass(network, calendar, date(2024, 1, 1), 10).run()
        with pytest.raises(ConvergenceError) as exc_info:
            BackwardPass(network, calendar, 10).run()
        assert exc_info.value.pass_name == 'backward'
