"""
Scheduling Data Model
Work orders, production lines and batch results.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional


class LineStatus(Enum):
    """Operational status of a production line."""
    ACTIVE = "active"
    DOWN = "down"
    MAINTENANCE = "maintenance"


class MaterialStatus(Enum):
    """Kitting status of a work order's material list."""
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETE = "complete"
    MISSING = "missing"


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an offset-aware datetime to naive local time. Naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _parse_datetime(value) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return to_local_naive(value)
    return to_local_naive(datetime.fromisoformat(str(value)))


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# =============================================================================
# LINE
# =============================================================================

@dataclass
class Line:
    """
    Physical production line.

    A line is schedulable only while its status is ACTIVE and it is enabled.
    trolley_capacity is the number of trolleys the line can host at once.
    """
    id: str
    name: str
    trolley_capacity: int
    status: LineStatus = LineStatus.ACTIVE
    is_enabled: bool = True
    description: Optional[str] = None
    last_maintenance_date: Optional[datetime] = None

    @property
    def is_schedulable(self) -> bool:
        return self.status == LineStatus.ACTIVE and self.is_enabled

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'status': self.status.value,
            'is_enabled': self.is_enabled,
            'trolley_capacity': self.trolley_capacity,
            'description': self.description,
            'last_maintenance_date': _format_datetime(self.last_maintenance_date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Line':
        return cls(
            id=data.get('id') or str(uuid.uuid4()),
            name=data['name'],
            trolley_capacity=int(data.get('trolley_capacity', 0)),
            status=LineStatus(data.get('status', LineStatus.ACTIVE.value)),
            is_enabled=bool(data.get('is_enabled', True)),
            description=data.get('description'),
            last_maintenance_date=_parse_datetime(data.get('last_maintenance_date')),
        )


# =============================================================================
# WORK ORDER
# =============================================================================

@dataclass
class WorkOrder:
    """
    A single production job to be run on one line.

    setup_minutes, teardown_minutes, total_job_minutes and trolleys_required
    are derived from the demand inputs and are recomputed by the scheduler
    before every decision.
    """
    id: str
    external_id: str

    # Demand inputs
    assembly_count: int
    cycle_time_seconds: float
    part_count: int
    placement_count: int
    is_double_sided: bool = False

    # Readiness / constraints
    material_available_at: Optional[datetime] = None
    is_clear_to_build: bool = False
    due_date: Optional[datetime] = None
    priority_hint: Optional[float] = None

    # Derived
    setup_minutes: float = 0.0
    teardown_minutes: float = 0.0
    total_job_minutes: float = 0.0
    trolleys_required: int = 1

    # Scheduling state
    assigned_line_id: Optional[str] = None
    start_time: Optional[datetime] = None

    # Completion
    is_completed: bool = False
    completed_at: Optional[datetime] = None

    # Material tracking
    material_status: MaterialStatus = MaterialStatus.PENDING
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_complex_build(self) -> bool:
        return self.is_double_sided or self.part_count > 50

    @property
    def is_scheduled(self) -> bool:
        return self.start_time is not None

    @property
    def end_time(self) -> Optional[datetime]:
        if self.start_time is None:
            return None
        return self.start_time + timedelta(minutes=self.total_job_minutes)

    def unschedule(self):
        """Clear line assignment and start time."""
        self.assigned_line_id = None
        self.start_time = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'external_id': self.external_id,
            'assembly_count': self.assembly_count,
            'cycle_time_seconds': self.cycle_time_seconds,
            'part_count': self.part_count,
            'placement_count': self.placement_count,
            'is_double_sided': self.is_double_sided,
            'material_available_at': _format_datetime(self.material_available_at),
            'is_clear_to_build': self.is_clear_to_build,
            'due_date': _format_datetime(self.due_date),
            'priority_hint': self.priority_hint,
            'is_complex_build': self.is_complex_build,
            'setup_minutes': self.setup_minutes,
            'teardown_minutes': self.teardown_minutes,
            'total_job_minutes': self.total_job_minutes,
            'trolleys_required': self.trolleys_required,
            'assigned_line_id': self.assigned_line_id,
            'start_time': _format_datetime(self.start_time),
            'end_time': _format_datetime(self.end_time),
            'is_completed': self.is_completed,
            'completed_at': _format_datetime(self.completed_at),
            'material_status': self.material_status.value,
            'notes': self.notes,
            'created_at': _format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WorkOrder':
        priority_hint = data.get('priority_hint')
        return cls(
            id=data.get('id') or str(uuid.uuid4()),
            external_id=data['external_id'],
            assembly_count=int(data['assembly_count']),
            cycle_time_seconds=float(data['cycle_time_seconds']),
            part_count=int(data['part_count']),
            placement_count=int(data['placement_count']),
            is_double_sided=bool(data.get('is_double_sided', False)),
            material_available_at=_parse_datetime(data.get('material_available_at')),
            is_clear_to_build=bool(data.get('is_clear_to_build', False)),
            due_date=_parse_datetime(data.get('due_date')),
            priority_hint=float(priority_hint) if priority_hint is not None else None,
            setup_minutes=float(data.get('setup_minutes', 0.0)),
            teardown_minutes=float(data.get('teardown_minutes', 0.0)),
            total_job_minutes=float(data.get('total_job_minutes', 0.0)),
            trolleys_required=int(data.get('trolleys_required', 1)),
            assigned_line_id=data.get('assigned_line_id'),
            start_time=_parse_datetime(data.get('start_time')),
            is_completed=bool(data.get('is_completed', False)),
            completed_at=_parse_datetime(data.get('completed_at')),
            material_status=MaterialStatus(data.get('material_status', MaterialStatus.PENDING.value)),
            notes=data.get('notes'),
            created_at=_parse_datetime(data.get('created_at')) or datetime.now(),
        )


# =============================================================================
# BATCH RESULTS
# =============================================================================

@dataclass
class ScheduleFailure:
    """An order that could not be placed during a batch run."""
    order_id: str
    external_id: str
    reason: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'order_id': self.order_id,
            'external_id': self.external_id,
            'reason': self.reason,
            'message': self.message,
            'details': self.details,
        }


@dataclass
class OptimizeResult:
    """Outcome of a batch optimize run."""
    scheduled: List[WorkOrder] = field(default_factory=list)
    failures: List[ScheduleFailure] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scheduled': [o.to_dict() for o in self.scheduled],
            'failures': [f.to_dict() for f in self.failures],
        }
