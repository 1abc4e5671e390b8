"""
Capacity Model
Job timing, trolley requirement and line eligibility for a work order.
"""

import math

from scheduling.config import TrolleyBanding
from scheduling.models import Line, LineStatus, WorkOrder


MIN_SETUP_MINUTES = 45
SETUP_MINUTES_PER_PART = 5


def compute_setup_minutes(part_count: int) -> float:
    """Setup (and teardown) time: 5 minutes per part, never under 45."""
    return float(max(SETUP_MINUTES_PER_PART * part_count, MIN_SETUP_MINUTES))


def compute_job_timing(work_order: WorkOrder) -> float:
    """
    Set setup, teardown and total job minutes on the work order.

    total = setup + (cycle_time_seconds * assembly_count) / 60 + teardown

    Returns:
        total_job_minutes
    """
    setup = compute_setup_minutes(work_order.part_count)
    run_minutes = (work_order.cycle_time_seconds * work_order.assembly_count) / 60

    work_order.setup_minutes = setup
    work_order.teardown_minutes = setup
    work_order.total_job_minutes = setup + run_minutes + setup
    return work_order.total_job_minutes


def compute_trolleys_required(work_order: WorkOrder, banding: TrolleyBanding = None) -> int:
    """
    Trolleys a work order occupies while it runs.

    base = ceil(part_count / parts_per_trolley)
         + the highest placement band the placement count exceeds
         + double_sided_extra if double-sided

    Monotonic in part count, placement count and double-sidedness; never
    below banding.minimum.
    """
    banding = banding or TrolleyBanding()

    trolleys = math.ceil(work_order.part_count / banding.parts_per_trolley)

    placement_extra = 0
    for threshold, extra in sorted(banding.placement_bands):
        if work_order.placement_count > threshold:
            placement_extra = max(placement_extra, extra)
    trolleys += placement_extra

    if work_order.is_double_sided:
        trolleys += banding.double_sided_extra

    return max(banding.minimum, trolleys)


def refresh_demand(work_order: WorkOrder, banding: TrolleyBanding = None) -> WorkOrder:
    """Recompute every derived field of a work order in place."""
    compute_job_timing(work_order)
    work_order.trolleys_required = compute_trolleys_required(work_order, banding)
    return work_order


def is_line_eligible(line: Line, work_order: WorkOrder) -> bool:
    """Line is active, enabled and can host the order's trolleys."""
    return (line.status == LineStatus.ACTIVE
            and line.is_enabled
            and line.trolley_capacity >= work_order.trolleys_required)
