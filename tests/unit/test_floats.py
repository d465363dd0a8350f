"""Tests for total and free float."""

from datetime import date

import pytest

from scheduler.cpm.backward import BackwardPass
from scheduler.cpm.floats import FREE_FLOAT_RULES, FloatCalculator
from scheduler.cpm.forward import ForwardPass
from scheduler.cpm.models import LinkType
from scheduler.cpm.network import TaskNetwork
from scheduler.cpm.rollup import roll_up_late_dates, roll_up_parent_dates


def compute_floats(rows, calendar):
    network = TaskNetwork(rows)
    ForwardPass(network, calendar, date(2024, 1, 1), 50).run()
    roll_up_parent_dates(network, calendar)
    BackwardPass(network, calendar, 50).run()
    roll_up_late_dates(network)
    FloatCalculator(network, calendar).run()
    return network.tasks


class TestFloat:
    """Tests for FloatCalculator."""

    def test_every_link_type_has_a_rule(self):
        """The free float table covers every LinkType."""
        assert set(FREE_FLOAT_RULES) == set(LinkType)

    def test_chain_has_zero_float(self, task_factory, calendar):
        """A single chain is fully critical."""
        tasks = compute_floats([
            task_factory('A', 5),
            task_factory('B', 3, deps=['A']),
        ], calendar)
        assert (tasks['A'].total_float, tasks['A'].free_float) == (0, 0)
        assert (tasks['B'].total_float, tasks['B'].free_float) == (0, 0)

    def test_open_end_free_float_equals_total(self, task_factory, calendar):
        """Tasks with no successors take free float = total float."""
        tasks = compute_floats([
            task_factory('A', 5),
            task_factory('C', 2),
        ], calendar)
        assert tasks['C'].total_float == 3
        assert tasks['C'].free_float == 3

    def test_merge_point_slack(self, task_factory, calendar):
        """A short branch into a merge has float on both measures."""
        tasks = compute_floats([
            task_factory('A', 2),
            task_factory('B', 5),
            task_factory('C', 1, deps=['A', 'B']),
        ], calendar)
        assert tasks['C'].start == date(2024, 1, 8)
        assert tasks['A'].total_float == 3
        assert tasks['A'].free_float == 3
        assert tasks['B'].total_float == 0

    def test_free_float_smaller_than_total(self, task_factory, calendar):
        """Free float measures the immediate successor only."""
        tasks = compute_floats([
            task_factory('A', 1),
            task_factory('B', 1, deps=['A']),
            task_factory('L', 6),
        ], calendar)
        assert tasks['A'].total_float == 4
        assert tasks['A'].free_float == 0
        assert tasks['B'].free_float == 4

    @pytest.mark.parametrize("link,lag", [('FS', 0), ('FS', 3), ('SS', 1), ('FF', 2), ('SF', 0), ('FS', -1)])
    def test_free_float_never_exceeds_total(self, task_factory, calendar, link, lag):
        """freeFloat <= totalFloat for every link type."""
        tasks = compute_floats([
            task_factory('A', 3),
            task_factory('B', 2, deps=[('A', link, lag)]),
            task_factory('L', 12),
        ], calendar)
        for task in tasks.values():
            assert task.free_float <= task.total_float
            assert task.free_float >= 0

    def test_parent_float(self, task_factory, calendar):
        """Parent total float is the min over children; no parent free float."""
        tasks = compute_floats([
            task_factory('P'),
            task_factory('C1', 2, parent_id='P'),
            task_factory('C2', 4, parent_id='P'),
            task_factory('L', 6),
        ], calendar)
        assert tasks['C1'].total_float == 4
        assert tasks['C2'].total_float == 2
        assert tasks['P'].total_float == 2
        assert tasks['P'].free_float is None

    def test_missing_dates_give_no_float(self, task_factory, calendar):
        """Tasks without dates have no float."""
        tasks = compute_floats([task_factory('A', 2, constraint='SNET', constraint_date='bad')], calendar)
        assert tasks['A'].total_float is None
        assert tasks['A'].free_float is None
