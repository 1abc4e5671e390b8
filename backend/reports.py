"""
Schedule Reports
Dashboard statistics and line utilization from work orders and lines.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional

from scheduling.models import Line, LineStatus, WorkOrder


UPCOMING_DEADLINE_DAYS = 7
UPCOMING_DEADLINE_LIMIT = 5
UTILIZATION_WINDOW_DAYS = 30


def compute_line_utilization(line_id: str, orders: List[WorkOrder],
                             start: datetime, end: datetime) -> Dict:
    """
    Utilization of one line over [start, end].

    Counts the full job time of every order on the line whose start falls
    inside the range, as a percentage of the elapsed hours in the range.
    """
    total_hours = (end - start).total_seconds() / 3600
    relevant = [
        o for o in orders
        if o.assigned_line_id == line_id
        and o.start_time is not None
        and start <= o.start_time <= end
    ]
    job_hours = sum(o.total_job_minutes for o in relevant) / 60

    utilization = (job_hours / total_hours) * 100 if total_hours > 0 else 0

    return {
        'line_id': line_id,
        'start_date': start.isoformat(),
        'end_date': end.isoformat(),
        'total_work_orders': len(relevant),
        'total_job_time_hours': round(job_hours, 2),
        'utilization_percentage': round(utilization, 2),
    }


def build_dashboard_stats(orders: List[WorkOrder], lines: List[Line],
                          now: Optional[datetime] = None) -> Dict:
    """
    Dashboard statistics.

    Returns:
        Dict with order/line counts, the next few upcoming deadlines and
        per-line utilization over the last 30 days.
    """
    now = now or datetime.now()

    scheduled = [o for o in orders if o.start_time is not None]
    active_lines = [line for line in lines if line.status == LineStatus.ACTIVE]

    horizon = now + timedelta(days=UPCOMING_DEADLINE_DAYS)
    upcoming = sorted(
        (o for o in orders
         if o.due_date is not None and not o.is_completed and now <= o.due_date <= horizon),
        key=lambda o: o.due_date,
    )[:UPCOMING_DEADLINE_LIMIT]

    late = [
        o for o in scheduled
        if not o.is_completed and o.due_date is not None and o.end_time > o.due_date
    ]

    window_start = now - timedelta(days=UTILIZATION_WINDOW_DAYS)
    line_utilization = []
    for line in lines:
        stats = compute_line_utilization(line.id, orders, window_start, now)
        line_utilization.append({
            'line_id': line.id,
            'name': line.name,
            'utilization': round(stats['utilization_percentage']),
        })

    return {
        'total_work_orders': len(orders),
        'scheduled_work_orders': len(scheduled),
        'unscheduled_work_orders': len(orders) - len(scheduled),
        'completed_work_orders': sum(1 for o in orders if o.is_completed),
        'late_work_orders': len(late),
        'active_lines': len(active_lines),
        'total_lines': len(lines),
        'upcoming_deadlines': [
            {
                'id': o.id,
                'external_id': o.external_id,
                'due_date': o.due_date.isoformat(),
                'is_late': o.due_date < now,
            }
            for o in upcoming
        ],
        'line_utilization': line_utilization,
        'generated_at': now.isoformat(),
    }
