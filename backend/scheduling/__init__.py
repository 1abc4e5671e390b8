"""
Line Scheduling

Greedy, priority-ordered allocation of work orders onto production lines
under a working-hours calendar and a facility-wide trolley ceiling.

Components:
- WorkingHoursCalendar: start-time normalization
- capacity: job timing, trolley requirement, line eligibility
- conflicts: per-line overlaps and facility trolley usage
- slot_finder: earliest feasible start on a line
- priority: backlog ordering
- LineScheduler: schedule, optimize, reschedule, unschedule
"""

from scheduling.working_hours import WorkingHoursCalendar

from scheduling.config import SchedulingConfig, TrolleyBanding

from scheduling.models import (
    Line,
    LineStatus,
    MaterialStatus,
    OptimizeResult,
    ScheduleFailure,
    WorkOrder,
)

from scheduling.errors import (
    SchedulingError,
    NotClearToBuild,
    NoEligibleLine,
    InvalidLine,
    InsufficientLineCapacity,
    InsufficientTrolleys,
    ScheduleConflict,
    SCHEDULING_ERRORS,
)

from scheduling.scheduler import LineScheduler

__all__ = [
    'WorkingHoursCalendar',
    'SchedulingConfig',
    'TrolleyBanding',
    'Line',
    'LineStatus',
    'MaterialStatus',
    'OptimizeResult',
    'ScheduleFailure',
    'WorkOrder',
    'SchedulingError',
    'NotClearToBuild',
    'NoEligibleLine',
    'InvalidLine',
    'InsufficientLineCapacity',
    'InsufficientTrolleys',
    'ScheduleConflict',
    'SCHEDULING_ERRORS',
    'LineScheduler',
]
