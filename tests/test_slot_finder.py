"""Tests for the earliest-slot search."""

import pytest
from datetime import datetime, timedelta

from scheduling.config import SchedulingConfig
from scheduling.errors import InsufficientTrolleys, NoEligibleLine
from scheduling.models import LineStatus
from scheduling.slot_finder import find_earliest_slot


MONDAY_0730 = datetime(2026, 2, 16, 7, 30)
MONDAY_0800 = datetime(2026, 2, 16, 8, 0)
TUESDAY_0730 = datetime(2026, 2, 17, 7, 30)


class TestFindEarliestSlot:

    def test_empty_line_starts_at_normalized_not_before(self, make_line, make_order):
        start = find_earliest_slot(make_line(), make_order(), datetime(2026, 2, 16, 5, 0), [])
        assert start == MONDAY_0730

    def test_full_day_booking_pushes_to_next_morning(self, make_line, make_order):
        # [07:30, 16:30) is taken, so the next candidate is 16:30, which rolls over
        booked = make_order('booked', assigned_line_id='line-a', start_time=MONDAY_0730,
                            total_job_minutes=540)
        start = find_earliest_slot(make_line('line-a'), make_order(), MONDAY_0800, [booked])
        assert start == TUESDAY_0730

    def test_fits_before_an_existing_booking(self, make_line, make_order):
        booked = make_order('booked', assigned_line_id='line-a',
                            start_time=datetime(2026, 2, 16, 9, 0), total_job_minutes=60)
        short = make_order(total_job_minutes=30)
        start = find_earliest_slot(make_line('line-a'), short, MONDAY_0730, [booked])
        assert start == MONDAY_0730

    def test_jumps_past_booking_that_would_overlap(self, make_line, make_order):
        booked = make_order('booked', assigned_line_id='line-a',
                            start_time=datetime(2026, 2, 16, 9, 0), total_job_minutes=60)
        longer = make_order(total_job_minutes=120)
        start = find_earliest_slot(make_line('line-a'), longer, MONDAY_0730, [booked])
        assert start == datetime(2026, 2, 16, 10, 0)

    def test_walks_over_consecutive_bookings(self, make_line, make_order):
        first = make_order('first', assigned_line_id='line-a', start_time=MONDAY_0800,
                           total_job_minutes=60)
        second = make_order('second', assigned_line_id='line-a',
                            start_time=datetime(2026, 2, 16, 9, 0), total_job_minutes=90)
        start = find_earliest_slot(make_line('line-a'), make_order(total_job_minutes=60),
                                   MONDAY_0800, [first, second])
        assert start == datetime(2026, 2, 16, 10, 30)

    def test_order_started_before_not_before_still_blocks(self, make_line, make_order):
        running = make_order('running', assigned_line_id='line-a',
                             start_time=datetime(2026, 2, 15, 10, 0), total_job_minutes=1500)
        start = find_earliest_slot(make_line('line-a'), make_order(), MONDAY_0800, [running])
        assert start == datetime(2026, 2, 16, 11, 0)

    def test_other_lines_do_not_block_when_trolleys_are_free(self, make_line, make_order):
        elsewhere = make_order('elsewhere', assigned_line_id='line-b', start_time=MONDAY_0800)
        start = find_earliest_slot(make_line('line-a'), make_order(), MONDAY_0800, [elsewhere])
        assert start == MONDAY_0800

    def test_waits_for_trolleys_held_on_other_lines(self, make_line, make_order):
        hog = make_order('hog', assigned_line_id='line-b', start_time=MONDAY_0730,
                         total_job_minutes=120, trolleys_required=19)
        candidate = make_order(part_count=40)

        start = find_earliest_slot(make_line('line-a'), candidate, MONDAY_0730, [hog])

        assert start == datetime(2026, 2, 16, 9, 30)

    def test_completed_orders_free_their_slot(self, make_line, make_order):
        done = make_order('done', assigned_line_id='line-a', start_time=MONDAY_0800,
                          is_completed=True)
        start = find_earliest_slot(make_line('line-a'), make_order(), MONDAY_0800, [done])
        assert start == MONDAY_0800

    def test_never_returns_before_not_before(self, make_line, make_order):
        not_before = datetime(2026, 2, 16, 12, 17)
        booked = make_order('booked', assigned_line_id='line-a', start_time=MONDAY_0730,
                            total_job_minutes=30)
        start = find_earliest_slot(make_line('line-a'), make_order(), not_before, [booked])
        assert start == not_before

    def test_respects_weekday_calendar(self, make_line, make_order):
        config = SchedulingConfig.create(working_days=[0, 1, 2, 3, 4])
        friday_evening = datetime(2026, 2, 20, 18, 0)
        start = find_earliest_slot(make_line(), make_order(), friday_evening, [], config)
        assert start == datetime(2026, 2, 23, 7, 30)

    def test_ineligible_line_raises(self, make_line, make_order):
        with pytest.raises(NoEligibleLine):
            find_earliest_slot(make_line(status=LineStatus.MAINTENANCE), make_order(), MONDAY_0800, [])

    def test_order_larger_than_facility_pool_raises(self, make_line, make_order):
        config = SchedulingConfig.create(total_trolleys=5)
        big = make_order(part_count=160)
        with pytest.raises(InsufficientTrolleys) as exc:
            find_earliest_slot(make_line(trolley_capacity=10), big, MONDAY_0800, [], config)
        assert exc.value.required == 8
        assert exc.value.available == 5
