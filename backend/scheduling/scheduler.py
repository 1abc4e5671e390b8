"""
Line Scheduler
Greedy, priority-ordered allocation of work orders onto production lines.

The scheduler owns no schedule state. Every call receives the current lines
and scheduled orders as a snapshot and returns updated copies of the work
orders it decided on; callers persist them and serialize concurrent calls.
"""

import copy
from collections import Counter
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from scheduling.capacity import is_line_eligible, refresh_demand
from scheduling.config import SchedulingConfig
from scheduling.conflicts import conflicting_orders, trolleys_in_use
from scheduling.errors import (
    InsufficientLineCapacity,
    InsufficientTrolleys,
    InvalidLine,
    NoEligibleLine,
    NotClearToBuild,
    ScheduleConflict,
    SchedulingError,
)
from scheduling.models import Line, OptimizeResult, ScheduleFailure, WorkOrder
from scheduling.priority import prioritize
from scheduling.slot_finder import find_earliest_slot


def _line_sort_key(line: Line):
    """Numeric ids in numeric order, ahead of other ids in string order."""
    line_id = str(line.id)
    if line_id.isdecimal():
        return (0, int(line_id), line_id)
    return (1, 0, line_id)


class LineScheduler:
    """
    Schedules work orders onto lines.

    - schedule_work_order: earliest feasible slot across eligible lines
    - optimize_schedule: backlog in priority order against an accumulating snapshot
    - reschedule_work_order: manual move to an explicit line and time
    - unschedule_work_order: clear the scheduling state
    """

    def __init__(self, config: SchedulingConfig = None,
                 clock: Callable[[], datetime] = None):
        """
        Initialize the scheduler.

        Args:
            config: Facility configuration (trolley ceiling, calendar, banding).
            clock: Callable returning the current time. Defaults to datetime.now.
        """
        self.config = config or SchedulingConfig()
        self.calendar = self.config.calendar
        self.clock = clock or datetime.now

    def _prepare(self, work_order: WorkOrder) -> WorkOrder:
        """Copy the order and recompute its derived fields."""
        order = copy.copy(work_order)
        return refresh_demand(order, self.config.trolley_banding)

    def _search_floor(self, work_order: WorkOrder) -> datetime:
        now = self.clock()
        if work_order.material_available_at and work_order.material_available_at > now:
            return work_order.material_available_at
        return now

    def schedule_work_order(self, work_order: WorkOrder, lines: Iterable[Line],
                            scheduled_orders: Iterable[WorkOrder]) -> WorkOrder:
        """
        Auto-schedule a single work order.

        Args:
            work_order: Order to place. Not modified.
            lines: All lines.
            scheduled_orders: Current schedule snapshot.

        Returns:
            Copy of the order with assigned_line_id and start_time set.

        Raises:
            NotClearToBuild, NoEligibleLine, InsufficientTrolleys
        """
        if not work_order.is_clear_to_build:
            raise NotClearToBuild(work_order.id)

        order = self._prepare(work_order)
        scheduled_orders = list(scheduled_orders)

        eligible = [line for line in lines if is_line_eligible(line, order)]
        if not eligible:
            raise NoEligibleLine(order.id, order.trolleys_required)

        if order.trolleys_required > self.config.total_trolleys:
            raise InsufficientTrolleys(order.trolleys_required, self.config.total_trolleys)

        not_before = self._search_floor(order)

        preferred = next((line for line in eligible if line.id == order.assigned_line_id), None)
        if preferred is not None:
            candidates = [preferred]
        else:
            candidates = sorted(eligible, key=_line_sort_key)

        best_line = None
        best_start = None
        for line in candidates:
            start = find_earliest_slot(line, order, not_before, scheduled_orders, self.config)
            if best_start is None or start < best_start:
                best_line = line
                best_start = start

        order.assigned_line_id = best_line.id
        order.start_time = best_start
        return order

    def optimize_schedule(self, orders: Iterable[WorkOrder], lines: Iterable[Line],
                          scheduled_orders: Iterable[WorkOrder]) -> OptimizeResult:
        """
        Schedule the unscheduled, clear-to-build backlog in priority order.

        Each committed order joins the working snapshot before the next order
        is considered. A failure is recorded and the batch moves on.
        """
        lines = list(lines)
        snapshot = list(scheduled_orders)
        now = self.clock()

        backlog = [
            self._prepare(o) for o in orders
            if o.start_time is None and o.is_clear_to_build and not o.is_completed
        ]
        ordered = prioritize(backlog, now)

        print(f"[Optimize] {len(ordered)} orders in backlog, "
              f"{len(snapshot)} already scheduled")

        result = OptimizeResult()
        for order in ordered:
            try:
                placed = self.schedule_work_order(order, lines, snapshot)
            except SchedulingError as e:
                print(f"[Optimize] Failed to schedule {order.external_id}: {e.message}")
                result.failures.append(ScheduleFailure(
                    order_id=order.id,
                    external_id=order.external_id,
                    reason=e.reason,
                    message=e.message,
                    details=e.details,
                ))
                continue

            snapshot.append(placed)
            result.scheduled.append(placed)

        print(f"[Optimize] Scheduled: {len(result.scheduled)}, "
              f"failed: {len(result.failures)}")
        return result

    def reschedule_work_order(self, work_order: WorkOrder, target_line_id: str,
                              target_start: datetime, lines: Iterable[Line],
                              scheduled_orders: Iterable[WorkOrder]) -> WorkOrder:
        """
        Move a work order to an explicit line and start time.

        Manual moves do not require the order to be clear to build, but are
        otherwise validated exactly like automatic placement.

        Raises:
            InvalidLine, InsufficientLineCapacity, InsufficientTrolleys,
            ScheduleConflict
        """
        line = next((l for l in lines if l.id == target_line_id), None)
        if line is None:
            raise InvalidLine(target_line_id, "does not exist")
        if not line.is_schedulable:
            raise InvalidLine(target_line_id, f"is not available (status: {line.status.value}, "
                                              f"enabled: {line.is_enabled})")

        order = self._prepare(work_order)
        if line.trolley_capacity < order.trolleys_required:
            raise InsufficientLineCapacity(line.id, line.trolley_capacity, order.trolleys_required)

        start = self.calendar.normalize(target_start)
        end = self.calendar.compute_end(start, order.total_job_minutes)
        scheduled_orders = list(scheduled_orders)

        in_use = trolleys_in_use(start, end, scheduled_orders, order.id)
        available = max(self.config.total_trolleys - in_use, 0)
        if order.trolleys_required > available:
            raise InsufficientTrolleys(order.trolleys_required, available)

        conflicts = conflicting_orders(line.id, start, end, scheduled_orders, order.id)
        if conflicts:
            raise ScheduleConflict(line.id, [o.id for o in conflicts])

        order.assigned_line_id = line.id
        order.start_time = start
        return order

    def unschedule_work_order(self, work_order: WorkOrder) -> WorkOrder:
        """Return a copy of the order with its line and start time cleared."""
        order = copy.copy(work_order)
        order.unschedule()
        return order

    def get_summary(self, orders: Iterable[WorkOrder]) -> Dict:
        """Get scheduling summary for a set of work orders."""
        orders = [o for o in orders if not o.is_completed]
        if not orders:
            return {}

        scheduled = [o for o in orders if o.is_scheduled]
        late = [o for o in scheduled if o.due_date and o.end_time > o.due_date]
        per_line = Counter(o.assigned_line_id for o in scheduled)

        starts = [o.start_time for o in scheduled]
        ends = [o.end_time for o in scheduled]

        return {
            'total_orders': len(orders),
            'scheduled': len(scheduled),
            'unscheduled': len(orders) - len(scheduled),
            'late': len(late),
            'late_order_ids': [o.external_id for o in late],
            'on_time_pct': ((len(scheduled) - len(late)) / len(scheduled) * 100) if scheduled else 0,
            'orders_per_line': dict(per_line),
            'earliest_start': min(starts) if starts else None,
            'latest_end': max(ends) if ends else None,
        }

    def print_summary(self, orders: Iterable[WorkOrder], failures: Optional[List[ScheduleFailure]] = None):
        """Print scheduling summary."""
        summary = self.get_summary(orders)

        print(f"\n{'='*70}")
        print("LINE SCHEDULING SUMMARY")
        print(f"{'='*70}")

        print(f"\nORDERS:")
        print(f"   Total: {summary.get('total_orders', 0)}")
        print(f"   Scheduled: {summary.get('scheduled', 0)}")
        print(f"   Unscheduled: {summary.get('unscheduled', 0)}")
        print(f"   Late: {summary.get('late', 0)} "
              f"(on-time {summary.get('on_time_pct', 0):.1f}%)")

        if summary.get('orders_per_line'):
            print(f"\nLINES:")
            for line_id, count in sorted(summary['orders_per_line'].items(), key=lambda x: str(x[0])):
                print(f"   {line_id}: {count} orders")

        if summary.get('earliest_start'):
            print(f"\nSCHEDULE RANGE:")
            print(f"   First start: {summary['earliest_start']}")
            print(f"   Last end: {summary['latest_end']}")

        if failures:
            print(f"\n[WARN] FAILED: {len(failures)} orders could not be scheduled")
            for failure in failures[:10]:
                print(f"   {failure.external_id}: {failure.message}")
