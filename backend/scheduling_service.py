"""
Scheduling Service
Serializes scheduling decisions against the work order store.

Every operation reads the current lines and schedule snapshot, asks the
LineScheduler for a decision and writes the result back while holding one
lock, so two requests can never commit from the same stale snapshot.
"""

import threading
from datetime import datetime
from typing import Callable, List

from scheduling.capacity import refresh_demand
from scheduling.config import SchedulingConfig
from scheduling.models import OptimizeResult, WorkOrder
from scheduling.scheduler import LineScheduler
from work_order_store import WorkOrderRepository


class WorkOrderNotFound(LookupError):
    """Raised when a work order id does not exist in the store."""

    def __init__(self, order_id: str):
        super().__init__(f"Work order {order_id} not found")
        self.order_id = order_id


class SchedulingService:
    """Single-writer wrapper around LineScheduler and WorkOrderRepository."""

    def __init__(self, repository: WorkOrderRepository, config: SchedulingConfig = None,
                 clock: Callable[[], datetime] = None):
        self.repository = repository
        self.config = config or SchedulingConfig()
        self.clock = clock or datetime.now
        self.scheduler = LineScheduler(self.config, clock=self.clock)
        self._lock = threading.Lock()

    def _require(self, order_id: str) -> WorkOrder:
        order = self.repository.get_work_order(order_id)
        if order is None:
            raise WorkOrderNotFound(order_id)
        return order

    def save_work_order(self, work_order: WorkOrder) -> WorkOrder:
        """
        Store a new or edited work order with its derived fields refreshed.

        A scheduled order whose job time or trolley need changed is re-checked
        at its current line and start time.

        Raises:
            InvalidLine, InsufficientLineCapacity, InsufficientTrolleys,
            ScheduleConflict
        """
        with self._lock:
            refresh_demand(work_order, self.config.trolley_banding)
            stored = self.repository.get_work_order(work_order.id)
            if work_order.is_scheduled and not work_order.is_completed and (
                    stored is None
                    or stored.total_job_minutes != work_order.total_job_minutes
                    or stored.trolleys_required != work_order.trolleys_required):
                work_order = self.scheduler.reschedule_work_order(
                    work_order,
                    work_order.assigned_line_id,
                    work_order.start_time,
                    self.repository.list_lines(),
                    self.repository.list_scheduled_orders(),
                )
            return self.repository.save_work_order(work_order)

    def schedule(self, order_id: str) -> WorkOrder:
        """Auto-schedule one work order at its earliest feasible slot."""
        with self._lock:
            order = self._require(order_id)
            placed = self.scheduler.schedule_work_order(
                order,
                self.repository.list_lines(),
                self.repository.list_scheduled_orders(),
            )
            self.repository.save_work_order(placed)
            print(f"[Scheduler] {placed.external_id} -> line {placed.assigned_line_id} "
                  f"at {placed.start_time}")
            return placed

    def reschedule(self, order_id: str, line_id: str, start_time: datetime) -> WorkOrder:
        """Move a work order to an explicit line and start time."""
        with self._lock:
            order = self._require(order_id)
            moved = self.scheduler.reschedule_work_order(
                order,
                line_id,
                start_time,
                self.repository.list_lines(),
                self.repository.list_scheduled_orders(),
            )
            self.repository.save_work_order(moved)
            print(f"[Scheduler] {moved.external_id} moved to line {moved.assigned_line_id} "
                  f"at {moved.start_time}")
            return moved

    def unschedule(self, order_id: str) -> WorkOrder:
        with self._lock:
            order = self.scheduler.unschedule_work_order(self._require(order_id))
            return self.repository.save_work_order(order)

    def complete(self, order_id: str) -> WorkOrder:
        """Mark a work order completed; it stops counting against lines and trolleys."""
        with self._lock:
            order = self._require(order_id)
            order.is_completed = True
            order.completed_at = self.clock()
            return self.repository.save_work_order(order)

    def optimize(self) -> OptimizeResult:
        """
        Schedule the whole clear-to-build backlog.

        Placed orders are saved one at a time. Any prefix of those saves is a
        conflict-free schedule, so an interrupted run leaves a valid state.
        """
        with self._lock:
            result = self.scheduler.optimize_schedule(
                self.repository.list_unscheduled_clear_orders(),
                self.repository.list_lines(),
                self.repository.list_scheduled_orders(),
            )
            for order in result.scheduled:
                self.repository.save_work_order(order)
            return result

    def list_schedule(self) -> List[WorkOrder]:
        return sorted(self.repository.list_scheduled_orders(), key=lambda o: o.start_time)
