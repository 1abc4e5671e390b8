"""
Scheduling Configuration
Facility constants, working-hours window and trolley banding thresholds.
"""

import os
from dataclasses import dataclass, field
from datetime import time
from typing import List, Tuple

from scheduling.working_hours import WorkingHoursCalendar


ALL_DAYS = [0, 1, 2, 3, 4, 5, 6]


@dataclass
class TrolleyBanding:
    """
    Thresholds used to turn a work order's complexity into a trolley count.

    - parts_per_trolley: feeder slots one trolley can carry
    - placement_bands: (threshold, extra_trolleys); the highest band whose
      threshold the placement count exceeds applies
    - double_sided_extra: extra trolleys for a double-sided build
    """
    parts_per_trolley: int = 20
    placement_bands: List[Tuple[int, int]] = field(default_factory=lambda: [
        (1000, 1),
        (3000, 2),
    ])
    double_sided_extra: int = 1
    minimum: int = 1


@dataclass
class SchedulingConfig:
    """Facility-wide scheduling configuration."""
    total_trolleys: int = 20
    calendar: WorkingHoursCalendar = field(default_factory=WorkingHoursCalendar)
    trolley_banding: TrolleyBanding = field(default_factory=TrolleyBanding)

    @classmethod
    def create(cls, total_trolleys: int = 20, work_day_start: time = time(7, 30),
               work_day_end: time = time(16, 30), working_days: List[int] = None,
               parts_per_trolley: int = 20) -> 'SchedulingConfig':
        """
        Factory method to create a properly configured SchedulingConfig.

        Args:
            total_trolleys: Facility ceiling on trolleys in use at any instant.
            work_day_start: Earliest start time of day.
            work_day_end: End of the start window (exclusive).
            working_days: Weekday integers (0=Mon). Defaults to every day.
            parts_per_trolley: Feeder slots per trolley for the banding formula.
        """
        if working_days is None:
            working_days = list(ALL_DAYS)

        return cls(
            total_trolleys=total_trolleys,
            calendar=WorkingHoursCalendar(
                day_start=work_day_start,
                day_end=work_day_end,
                working_days=working_days,
            ),
            trolley_banding=TrolleyBanding(parts_per_trolley=parts_per_trolley),
        )

    @classmethod
    def from_env(cls) -> 'SchedulingConfig':
        """Build the configuration from environment variables."""
        working_days_env = os.environ.get('WORKING_DAYS', '')
        working_days = None
        if working_days_env.strip():
            working_days = [int(d) for d in working_days_env.split(',') if d.strip()]

        return cls.create(
            total_trolleys=int(os.environ.get('TOTAL_TROLLEYS', 20)),
            work_day_start=_parse_time(os.environ.get('WORK_DAY_START', '07:30')),
            work_day_end=_parse_time(os.environ.get('WORK_DAY_END', '16:30')),
            working_days=working_days,
            parts_per_trolley=int(os.environ.get('PARTS_PER_TROLLEY', 20)),
        )


def _parse_time(value: str) -> time:
    """Parse 'HH:MM' into a time."""
    hour, minute = value.strip().split(':')
    return time(int(hour), int(minute))
