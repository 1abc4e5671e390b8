"""
Work Order Store
Thread-safe repository of lines and work orders.

Persists to JSON files on the local filesystem when a storage directory is
given, otherwise keeps everything in memory.
"""

import copy
import json
import os
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

from scheduling.models import Line, WorkOrder


# Paths relative to the storage directory
WORK_ORDERS_FILE = 'state/work_orders.json'
LINES_FILE = 'state/lines.json'


class WorkOrderRepository:
    """Thread-safe, JSON-backed store for lines and work orders."""

    def __init__(self, storage_dir: Optional[str] = None):
        self.storage_dir = os.path.abspath(storage_dir) if storage_dir else None
        self._work_orders: Dict[str, WorkOrder] = {}
        self._lines: Dict[str, Line] = {}
        self._lock = threading.Lock()

    # ============== Persistence ==============

    def _path(self, filepath: str) -> str:
        full = os.path.join(self.storage_dir, filepath)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        return full

    def _save_json(self, filepath: str, data):
        with open(self._path(filepath), 'w') as f:
            json.dump(data, f, default=str, indent=2)

    def _load_json(self, filepath: str):
        full = os.path.join(self.storage_dir, filepath)
        if not os.path.exists(full):
            return None
        with open(full, 'r') as f:
            return json.load(f)

    def load(self) -> bool:
        """Load lines and work orders from storage. Returns True if anything was loaded."""
        if not self.storage_dir:
            return False

        try:
            lines_data = self._load_json(LINES_FILE) or []
            orders_data = self._load_json(WORK_ORDERS_FILE) or []
        except (OSError, ValueError) as e:
            print(f"[Store] Failed to load state: {e}")
            return False

        with self._lock:
            self._lines = {}
            for item in lines_data:
                line = Line.from_dict(item)
                self._lines[line.id] = line
            self._work_orders = {}
            for item in orders_data:
                order = WorkOrder.from_dict(item)
                self._work_orders[order.id] = order

        print(f"[Store] Loaded {len(self._lines)} lines and "
              f"{len(self._work_orders)} work orders from storage")
        return bool(self._lines or self._work_orders)

    def save(self):
        """Persist current state. No-op for an in-memory store."""
        if not self.storage_dir:
            return

        with self._lock:
            lines_data = [line.to_dict() for line in self._lines.values()]
            orders_data = [order.to_dict() for order in self._work_orders.values()]

        self._save_json(LINES_FILE, lines_data)
        self._save_json(WORK_ORDERS_FILE, orders_data)

    # ============== Lines ==============

    def list_lines(self) -> List[Line]:
        with self._lock:
            return [copy.copy(line) for line in self._lines.values()]

    def get_line(self, line_id: str) -> Optional[Line]:
        with self._lock:
            line = self._lines.get(line_id)
            return copy.copy(line) if line else None

    def save_line(self, line: Line) -> Line:
        """Insert or replace a line."""
        with self._lock:
            duplicate = next((l for l in self._lines.values()
                              if l.name == line.name and l.id != line.id), None)
            if duplicate:
                raise ValueError(f'Line name "{line.name}" is already in use.')
            self._lines[line.id] = copy.copy(line)
        self.save()
        return line

    def delete_line(self, line_id: str) -> bool:
        with self._lock:
            removed = self._lines.pop(line_id, None)
        if removed:
            self.save()
        return removed is not None

    # ============== Work Orders ==============

    def _query(self, predicate: Callable[[WorkOrder], bool]) -> List[WorkOrder]:
        with self._lock:
            return [copy.copy(o) for o in self._work_orders.values() if predicate(o)]

    def list_work_orders(self, start: Optional[datetime] = None,
                         end: Optional[datetime] = None) -> List[WorkOrder]:
        """All work orders, or those starting within [start, end] when a range is given."""
        if start is None and end is None:
            orders = self._query(lambda o: True)
            return sorted(orders, key=lambda o: o.created_at)

        def in_range(o: WorkOrder) -> bool:
            if o.start_time is None:
                return False
            if start is not None and o.start_time < start:
                return False
            if end is not None and o.start_time > end:
                return False
            return True

        return sorted(self._query(in_range), key=lambda o: o.start_time)

    def list_scheduled_orders(self, exclude_completed: bool = True) -> List[WorkOrder]:
        return self._query(lambda o: o.start_time is not None
                           and not (exclude_completed and o.is_completed))

    def list_unscheduled_clear_orders(self) -> List[WorkOrder]:
        return self._query(lambda o: o.start_time is None
                           and o.is_clear_to_build
                           and not o.is_completed)

    def get_work_order(self, order_id: str) -> Optional[WorkOrder]:
        with self._lock:
            order = self._work_orders.get(order_id)
            return copy.copy(order) if order else None

    def save_work_order(self, work_order: WorkOrder) -> WorkOrder:
        """Insert or replace a work order (upsert)."""
        with self._lock:
            duplicate = next((o for o in self._work_orders.values()
                              if o.external_id == work_order.external_id
                              and o.id != work_order.id), None)
            if duplicate:
                raise ValueError(f'Work order "{work_order.external_id}" already exists.')
            self._work_orders[work_order.id] = copy.copy(work_order)
        self.save()
        return work_order

    def delete_work_order(self, order_id: str) -> bool:
        with self._lock:
            removed = self._work_orders.pop(order_id, None)
        if removed:
            self.save()
        return removed is not None
