"""
Working Hours Calendar
Maps any instant to the next instant at which a job may start.

Only the start of a job is confined to the working window. A job's end time
is its start plus its duration in wall-clock minutes, so a long job may run
past the end of the window or across several days.
"""

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import List


@dataclass
class WorkingHoursCalendar:
    """
    Daily start window for jobs.

    - day_start: 07:30 by default
    - day_end: 16:30 by default; the window is half-open, so 16:30 itself
      rolls over to the next working day
    - working_days: weekday integers (0=Mon..6=Sun); every day by default
    """
    day_start: time = time(7, 30)
    day_end: time = time(16, 30)
    working_days: List[int] = field(default_factory=lambda: [0, 1, 2, 3, 4, 5, 6])

    def is_working_day(self, dt: datetime) -> bool:
        """Check if the date is a working day."""
        return dt.weekday() in self.working_days

    def _day_start_on(self, dt: datetime) -> datetime:
        return datetime.combine(dt.date(), self.day_start)

    def _next_working_day_start(self, dt: datetime) -> datetime:
        """Start of the first working day strictly after dt's date."""
        current_date = dt.date() + timedelta(days=1)

        for _ in range(7):
            if current_date.weekday() in self.working_days:
                break
            current_date += timedelta(days=1)

        return datetime.combine(current_date, self.day_start)

    def normalize(self, dt: datetime) -> datetime:
        """
        Normalize an instant to the nearest valid working instant.

        - Before the window on a working day: window start, same day.
        - At or after the window end: window start on the next working day.
        - Non-working day: window start on the next working day.
        - Otherwise unchanged.
        """
        if not self.working_days:
            raise ValueError("Calendar has no working days")

        if not self.is_working_day(dt):
            return self._next_working_day_start(dt)

        time_of_day = dt.time()
        if time_of_day < self.day_start:
            return self._day_start_on(dt)
        if time_of_day >= self.day_end:
            return self._next_working_day_start(dt)

        return dt

    def is_working_instant(self, dt: datetime) -> bool:
        """True if a job may start exactly at dt."""
        return self.normalize(dt) == dt

    @staticmethod
    def compute_end(start: datetime, duration_minutes: float) -> datetime:
        """End time of a job: start plus duration, not re-normalized."""
        return start + timedelta(minutes=duration_minutes)
