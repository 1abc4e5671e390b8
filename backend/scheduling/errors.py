"""
Scheduling errors.

Every failure of a scheduling decision is an expected, typed outcome. The
API layer maps each class to an HTTP status through SCHEDULING_ERRORS.
"""

from typing import Any, Dict, List


class SchedulingError(Exception):
    """Base class for scheduling failures."""

    reason = 'scheduling_error'

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': self.message,
            'reason': self.reason,
            'details': self.details,
        }


class NotClearToBuild(SchedulingError):
    """Raised when auto-scheduling an order that is not clear to build."""

    reason = 'not_clear_to_build'

    def __init__(self, order_id: str):
        super().__init__(
            f"Work order {order_id} is not clear to build",
            {'order_id': order_id},
        )


class NoEligibleLine(SchedulingError):
    """Raised when no line satisfies status and trolley capacity for an order."""

    reason = 'no_eligible_line'

    def __init__(self, order_id: str, trolleys_required: int):
        super().__init__(
            f"No eligible line for work order {order_id} "
            f"({trolleys_required} trolleys required)",
            {'order_id': order_id, 'trolleys_required': trolleys_required},
        )


class InvalidLine(SchedulingError):
    """Raised when a reschedule targets a missing or non-active line."""

    reason = 'invalid_line'

    def __init__(self, line_id: str, problem: str):
        super().__init__(
            f"Line {line_id} {problem}",
            {'line_id': line_id},
        )


class InsufficientLineCapacity(SchedulingError):
    """Raised when the target line cannot host the order's trolleys."""

    reason = 'insufficient_line_capacity'

    def __init__(self, line_id: str, capacity: int, required: int):
        super().__init__(
            f"Line {line_id} holds {capacity} trolleys, {required} required",
            {'line_id': line_id, 'capacity': capacity, 'required': required},
        )


class InsufficientTrolleys(SchedulingError):
    """Raised when the facility-wide trolley ceiling would be exceeded."""

    reason = 'insufficient_trolleys'

    def __init__(self, required: int, available: int):
        shortfall = max(required - available, 0)
        super().__init__(
            f"Not enough trolleys: {required} required, {available} available "
            f"(short by {shortfall})",
            {'required': required, 'available': available, 'shortfall': shortfall},
        )
        self.required = required
        self.available = available
        self.shortfall = shortfall


class ScheduleConflict(SchedulingError):
    """Raised when the target window overlaps orders already on the line."""

    reason = 'schedule_conflict'

    def __init__(self, line_id: str, conflicting_ids: List[str]):
        super().__init__(
            f"Time slot on line {line_id} conflicts with work orders: "
            f"{', '.join(conflicting_ids)}",
            {'line_id': line_id, 'conflicting_order_ids': list(conflicting_ids)},
        )
        self.conflicting_ids = list(conflicting_ids)


# Mapping of scheduling errors to HTTP status codes
SCHEDULING_ERRORS = {
    NotClearToBuild: 400,
    NoEligibleLine: 422,
    InvalidLine: 400,
    InsufficientLineCapacity: 422,
    InsufficientTrolleys: 409,
    ScheduleConflict: 409,
}


def http_status_for(error: SchedulingError) -> int:
    """HTTP status code for a scheduling error."""
    return SCHEDULING_ERRORS.get(type(error), 400)
