"""
Slot Finder
Earliest feasible start time for a work order on a given line.
"""

from datetime import datetime
from typing import Iterable

from scheduling.capacity import is_line_eligible
from scheduling.config import SchedulingConfig
from scheduling.conflicts import (
    conflicting_orders,
    fits_capacity,
    overlapping_orders,
)
from scheduling.errors import InsufficientTrolleys, NoEligibleLine
from scheduling.models import Line, WorkOrder


def find_earliest_slot(line: Line, work_order: WorkOrder, not_before: datetime,
                       scheduled_orders: Iterable[WorkOrder],
                       config: SchedulingConfig = None) -> datetime:
    """
    Walk forward from not_before to the earliest feasible start on a line.

    The candidate starts at normalize(not_before). While it is blocked, it
    jumps to the earliest end among the blocking orders and is normalized
    again:
    - orders on this line overlapping the candidate window block it
    - if the trolley ceiling would be exceeded, every order overlapping the
      window blocks it

    Every jump passes the end of at least one scheduled order, so the walk
    ends once nothing overlaps.

    Returns:
        A normalized start time >= not_before at which the slot is feasible.
    """
    config = config or SchedulingConfig()
    calendar = config.calendar
    scheduled_orders = list(scheduled_orders)

    if not is_line_eligible(line, work_order):
        raise NoEligibleLine(work_order.id, work_order.trolleys_required)
    if work_order.trolleys_required > config.total_trolleys:
        raise InsufficientTrolleys(work_order.trolleys_required, config.total_trolleys)

    candidate = calendar.normalize(not_before)

    while True:
        candidate_end = calendar.compute_end(candidate, work_order.total_job_minutes)

        blockers = conflicting_orders(line.id, candidate, candidate_end,
                                      scheduled_orders, work_order.id)
        if not fits_capacity(work_order, candidate, candidate_end, scheduled_orders,
                             work_order.id, config.total_trolleys):
            blockers = overlapping_orders(candidate, candidate_end,
                                          scheduled_orders, work_order.id)

        if not blockers:
            return candidate

        next_free = min(o.end_time for o in blockers)
        candidate = calendar.normalize(max(next_free, candidate))
