"""Tests for job timing, trolley requirement and line eligibility."""

import pytest

from scheduling.capacity import (
    compute_job_timing,
    compute_setup_minutes,
    compute_trolleys_required,
    is_line_eligible,
    refresh_demand,
)
from scheduling.config import TrolleyBanding
from scheduling.models import LineStatus


class TestJobTiming:

    def test_setup_has_a_floor_of_45_minutes(self):
        assert compute_setup_minutes(1) == 45
        assert compute_setup_minutes(9) == 45

    def test_setup_is_five_minutes_per_part(self):
        assert compute_setup_minutes(10) == 50
        assert compute_setup_minutes(100) == 500

    def test_total_job_minutes(self, make_order):
        order = make_order(part_count=10, assembly_count=1000, cycle_time_seconds=45)
        total = compute_job_timing(order)

        assert order.setup_minutes == 50
        assert order.teardown_minutes == 50
        assert total == 850
        assert order.total_job_minutes == 850

    def test_fractional_run_time(self, make_order):
        order = make_order(part_count=5, assembly_count=10, cycle_time_seconds=7)
        compute_job_timing(order)
        assert order.total_job_minutes == pytest.approx(45 + 70 / 60 + 45)


class TestTrolleysRequired:

    def test_minimum_is_one(self, make_order):
        order = make_order(part_count=1, placement_count=10)
        assert compute_trolleys_required(order) == 1

    def test_parts_per_trolley(self, make_order):
        assert compute_trolleys_required(make_order(part_count=20)) == 1
        assert compute_trolleys_required(make_order(part_count=21)) == 2
        assert compute_trolleys_required(make_order(part_count=160)) == 8

    def test_placement_bands_use_highest_band_only(self, make_order):
        assert compute_trolleys_required(make_order(part_count=10, placement_count=1000)) == 1
        assert compute_trolleys_required(make_order(part_count=10, placement_count=1001)) == 2
        assert compute_trolleys_required(make_order(part_count=10, placement_count=3001)) == 3

    def test_double_sided_adds_one(self, make_order):
        single = make_order(part_count=40, is_double_sided=False)
        double = make_order(part_count=40, is_double_sided=True)
        assert compute_trolleys_required(double) == compute_trolleys_required(single) + 1

    def test_monotonic_in_part_count(self, make_order):
        counts = [compute_trolleys_required(make_order(part_count=n)) for n in range(1, 200, 7)]
        assert counts == sorted(counts)

    def test_custom_banding(self, make_order):
        banding = TrolleyBanding(parts_per_trolley=10, placement_bands=[], double_sided_extra=2)
        order = make_order(part_count=25, placement_count=5000, is_double_sided=True)
        assert compute_trolleys_required(order, banding) == 5

    def test_refresh_demand_sets_all_derived_fields(self, make_order):
        order = make_order(part_count=45, placement_count=1500)
        order.setup_minutes = order.total_job_minutes = 0
        order.trolleys_required = 99

        assert refresh_demand(order) is order
        assert order.setup_minutes == 225
        assert order.trolleys_required == 4
        assert order.total_job_minutes == 225 + 750 + 225


class TestLineEligibility:

    def test_active_line_with_capacity(self, make_line, make_order):
        assert is_line_eligible(make_line(trolley_capacity=5), make_order(part_count=100))

    def test_not_enough_line_capacity(self, make_line, make_order):
        assert not is_line_eligible(make_line(trolley_capacity=4), make_order(part_count=100))

    @pytest.mark.parametrize('status', [LineStatus.DOWN, LineStatus.MAINTENANCE])
    def test_inactive_line(self, make_line, make_order, status):
        assert not is_line_eligible(make_line(status=status), make_order())

    def test_disabled_line(self, make_line, make_order):
        assert not is_line_eligible(make_line(is_enabled=False), make_order())
