"""
Data Validators
Validation of work order and line payloads, and of a committed schedule.
"""

from datetime import datetime
from itertools import combinations
from typing import Dict, List, Any

import pandas as pd

from scheduling.config import SchedulingConfig
from scheduling.conflicts import overlaps
from scheduling.models import LineStatus, MaterialStatus, WorkOrder


class ValidationReport:
    """Container for validation results."""

    def __init__(self):
        self.errors = []  # Blocking errors
        self.warnings = []  # Non-blocking warnings
        self.info = []  # Informational messages

    @property
    def is_valid(self) -> bool:
        """Returns True if no blocking errors."""
        return len(self.errors) == 0

    def add_error(self, message: str):
        """Add a blocking error."""
        self.errors.append(message)

    def add_warning(self, message: str):
        """Add a warning."""
        self.warnings.append(message)

    def add_info(self, message: str):
        """Add informational message."""
        self.info.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_valid': self.is_valid,
            'errors': self.errors,
            'warnings': self.warnings,
            'info': self.info,
        }

    def print_report(self):
        """Print formatted validation report."""
        print("\n" + "=" * 70)
        print("VALIDATION REPORT")
        print("=" * 70)

        if self.is_valid:
            print("\n[OK] VALIDATION PASSED")
        else:
            print("\n[FAIL] VALIDATION FAILED")

        if self.errors:
            print(f"\n[ERROR] ERRORS ({len(self.errors)}):")
            for i, error in enumerate(self.errors[:10], 1):
                print(f"   {i}. {error}")
            if len(self.errors) > 10:
                print(f"   ... and {len(self.errors) - 10} more errors")

        if self.warnings:
            print(f"\n[WARN] WARNINGS ({len(self.warnings)}):")
            for i, warning in enumerate(self.warnings[:10], 1):
                print(f"   {i}. {warning}")


# ============== Payload Validation ==============

WORK_ORDER_REQUIRED = ['external_id', 'assembly_count', 'cycle_time_seconds',
                       'part_count', 'placement_count', 'due_date', 'material_available_at']
WORK_ORDER_POSITIVE_INTS = ['assembly_count', 'part_count', 'placement_count']
WORK_ORDER_DATES = ['due_date', 'material_available_at']

LINE_REQUIRED = ['name', 'trolley_capacity']


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return False
    return bool(pd.isna(value))


def _check_scalar_fields(data: Dict, report: ValidationReport):
    for field, value in data.items():
        if isinstance(value, (list, dict)):
            report.add_error(f"{field} must be a single value")


def validate_work_order_payload(data: Dict, partial: bool = False) -> ValidationReport:
    """
    Validate a work order payload before it is turned into a WorkOrder.

    Args:
        data: Incoming fields
        partial: True for updates, where only the supplied fields are checked
    """
    report = ValidationReport()

    if not isinstance(data, dict):
        report.add_error("Work order payload must be an object")
        return report

    _check_scalar_fields(data, report)

    if not partial:
        for field in WORK_ORDER_REQUIRED:
            if _is_missing(data.get(field)):
                report.add_error(f"Missing required field: {field}")

    for field in WORK_ORDER_POSITIVE_INTS:
        if field in data and not _is_missing(data[field]):
            value = data[field]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                report.add_error(f"{field} must be a positive integer")

    if 'cycle_time_seconds' in data and not _is_missing(data['cycle_time_seconds']):
        value = data['cycle_time_seconds']
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            report.add_error("cycle_time_seconds must be a positive number")

    for field in WORK_ORDER_DATES:
        if field in data and not _is_missing(data[field]):
            try:
                datetime.fromisoformat(str(data[field]))
            except (ValueError, TypeError):
                report.add_error(f"{field} is not a valid date: {data[field]}")

    if data.get('priority_hint') is not None:
        value = data['priority_hint']
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            report.add_error("priority_hint must be a number")

    if data.get('material_status') is not None:
        valid = [s.value for s in MaterialStatus]
        if data['material_status'] not in valid:
            report.add_error(f"Invalid material_status: {data['material_status']}. "
                             f"Valid values: {', '.join(valid)}")

    return report


def validate_line_payload(data: Dict, partial: bool = False) -> ValidationReport:
    """Validate a line payload."""
    report = ValidationReport()

    if not isinstance(data, dict):
        report.add_error("Line payload must be an object")
        return report

    _check_scalar_fields(data, report)

    if not partial:
        for field in LINE_REQUIRED:
            if _is_missing(data.get(field)):
                report.add_error(f"Missing required field: {field}")

    if 'trolley_capacity' in data and not _is_missing(data['trolley_capacity']):
        value = data['trolley_capacity']
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            report.add_error("trolley_capacity must be a non-negative integer")

    if data.get('status') is not None:
        valid = [s.value for s in LineStatus]
        if data['status'] not in valid:
            report.add_error(f"Invalid line status: {data['status']}. "
                             f"Valid values: {', '.join(valid)}")

    return report


# ============== Schedule Validation ==============

def validate_schedule(orders: List[WorkOrder], config: SchedulingConfig = None) -> ValidationReport:
    """
    Check a committed schedule against the scheduling invariants.

    - no two orders on the same line overlap
    - trolleys in use never exceed the facility ceiling
    - every start time is a working instant
    """
    config = config or SchedulingConfig()
    report = ValidationReport()

    active = [o for o in orders if o.start_time is not None and not o.is_completed]
    report.add_info(f"Checked {len(active)} scheduled orders")

    for a, b in combinations(active, 2):
        if a.assigned_line_id == b.assigned_line_id and overlaps(
                a.start_time, a.end_time, b.start_time, b.end_time):
            report.add_error(f"Double booking on line {a.assigned_line_id}: "
                             f"{a.external_id} and {b.external_id}")

    # Trolley usage only changes at start times, so checking every start is enough
    for instant in sorted({o.start_time for o in active}):
        in_use = sum(o.trolleys_required for o in active
                     if o.start_time <= instant < o.end_time)
        if in_use > config.total_trolleys:
            report.add_error(f"{in_use} trolleys in use at {instant.isoformat()} "
                             f"(ceiling {config.total_trolleys})")

    for order in active:
        if not config.calendar.is_working_instant(order.start_time):
            report.add_error(f"{order.external_id} starts outside working hours "
                             f"at {order.start_time.isoformat()}")

    for order in active:
        if order.due_date is not None and order.end_time > order.due_date:
            report.add_warning(f"{order.external_id} finishes after its due date")

    return report
