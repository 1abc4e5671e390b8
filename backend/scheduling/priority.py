"""
Priority Scorer
Urgency score for ordering the unscheduled backlog.

Score components:
- priority_hint * 100 (0 if unset)
- due date band, highest applicable only: overdue +1000, <= 3 days +800,
  <= 7 days +500
- +200 clear to build
- +50 double-sided, +50 more than 50 parts
- +25 per trolley required, so harder-to-place orders surface first
"""

import math
from datetime import datetime, timedelta
from typing import List

from scheduling.models import WorkOrder


OVERDUE_BONUS = 1000
DUE_WITHIN_3_DAYS_BONUS = 800
DUE_WITHIN_7_DAYS_BONUS = 500
CLEAR_TO_BUILD_BONUS = 200
DOUBLE_SIDED_BONUS = 50
HIGH_PART_COUNT_BONUS = 50
HIGH_PART_COUNT_THRESHOLD = 50
PER_TROLLEY_BONUS = 25


def days_until_due(work_order: WorkOrder, now: datetime) -> int:
    """Whole days until the due date, rounded up. Zero or less means overdue."""
    return math.ceil((work_order.due_date - now) / timedelta(days=1))


def score(work_order: WorkOrder, now: datetime) -> float:
    """Urgency score. Higher is scheduled first."""
    total = (work_order.priority_hint or 0) * 100

    if work_order.due_date is not None:
        days = days_until_due(work_order, now)
        if days <= 0:
            total += OVERDUE_BONUS
        elif days <= 3:
            total += DUE_WITHIN_3_DAYS_BONUS
        elif days <= 7:
            total += DUE_WITHIN_7_DAYS_BONUS

    if work_order.is_clear_to_build:
        total += CLEAR_TO_BUILD_BONUS
    if work_order.is_double_sided:
        total += DOUBLE_SIDED_BONUS
    if work_order.part_count > HIGH_PART_COUNT_THRESHOLD:
        total += HIGH_PART_COUNT_BONUS

    total += PER_TROLLEY_BONUS * work_order.trolleys_required
    return total


def prioritize(work_orders: List[WorkOrder], now: datetime) -> List[WorkOrder]:
    """
    Order work orders for scheduling.

    Sorted by score descending. Equal scores fall back to due date ascending
    (orders without a due date last), then to input position.
    """
    def sort_key(indexed):
        index, order = indexed
        due_ts = order.due_date.timestamp() if order.due_date else float('inf')
        return (-score(order, now), due_ts, index)

    return [order for _, order in sorted(enumerate(work_orders), key=sort_key)]
