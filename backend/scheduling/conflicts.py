"""
Conflict Checker
Per-line time conflicts and facility-wide trolley capacity.

All windows are half-open [start, end): an order ending at 10:00 does not
conflict with one starting at 10:00. Completed orders, unscheduled orders and
the order being placed (exclude_id) never take part in a check.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from scheduling.capacity import is_line_eligible
from scheduling.models import Line, WorkOrder
from scheduling.working_hours import WorkingHoursCalendar


def _active(orders: Iterable[WorkOrder], exclude_id: Optional[str]) -> List[WorkOrder]:
    return [
        o for o in orders
        if o.start_time is not None
        and not o.is_completed
        and (exclude_id is None or o.id != exclude_id)
    ]


def overlaps(start_a: datetime, end_a: datetime,
             start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval overlap."""
    return start_a < end_b and start_b < end_a


def overlapping_orders(candidate_start: datetime, candidate_end: datetime,
                       scheduled_orders: Iterable[WorkOrder],
                       exclude_id: Optional[str] = None) -> List[WorkOrder]:
    """Orders on any line running during [candidate_start, candidate_end)."""
    return [
        o for o in _active(scheduled_orders, exclude_id)
        if overlaps(o.start_time, o.end_time, candidate_start, candidate_end)
    ]


def conflicting_orders(line_id: str, candidate_start: datetime, candidate_end: datetime,
                       scheduled_orders: Iterable[WorkOrder],
                       exclude_id: Optional[str] = None) -> List[WorkOrder]:
    """Orders on line_id that overlap the candidate window."""
    return [
        o for o in overlapping_orders(candidate_start, candidate_end,
                                      scheduled_orders, exclude_id)
        if o.assigned_line_id == line_id
    ]


def has_time_conflict(line_id: str, candidate_start: datetime, candidate_end: datetime,
                      scheduled_orders: Iterable[WorkOrder],
                      exclude_id: Optional[str] = None) -> bool:
    """True if any scheduled order on line_id overlaps the candidate window."""
    return bool(conflicting_orders(line_id, candidate_start, candidate_end,
                                   scheduled_orders, exclude_id))


def trolleys_in_use(candidate_start: datetime, candidate_end: datetime,
                    scheduled_orders: Iterable[WorkOrder],
                    exclude_id: Optional[str] = None) -> int:
    """
    Trolleys held by orders overlapping the candidate window.

    This sums every order that touches the window at any point, which is an
    upper bound on the peak concurrent usage inside the window.
    """
    return sum(o.trolleys_required for o in overlapping_orders(
        candidate_start, candidate_end, scheduled_orders, exclude_id))


def fits_capacity(work_order: WorkOrder, candidate_start: datetime, candidate_end: datetime,
                  scheduled_orders: Iterable[WorkOrder], exclude_id: Optional[str] = None,
                  total_trolleys: int = 20) -> bool:
    """True if placing the order keeps the facility within its trolley ceiling."""
    in_use = trolleys_in_use(candidate_start, candidate_end, scheduled_orders, exclude_id)
    return in_use + work_order.trolleys_required <= total_trolleys


def is_slot_feasible(line: Line, work_order: WorkOrder, candidate_start: datetime,
                     scheduled_orders: Iterable[WorkOrder], total_trolleys: int = 20) -> bool:
    """Line eligible, trolley ceiling respected and no conflict on the line."""
    if not is_line_eligible(line, work_order):
        return False

    scheduled_orders = list(scheduled_orders)
    candidate_end = WorkingHoursCalendar.compute_end(candidate_start, work_order.total_job_minutes)

    if not fits_capacity(work_order, candidate_start, candidate_end,
                         scheduled_orders, work_order.id, total_trolleys):
        return False

    return not has_time_conflict(line.id, candidate_start, candidate_end,
                                 scheduled_orders, work_order.id)
