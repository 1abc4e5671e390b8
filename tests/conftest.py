"""Shared test fixtures for LineBoard tests."""

import os
import sys
import tempfile
import pytest
from datetime import datetime, timedelta

# Add backend to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

# Keep state in memory and exports out of the project tree
os.environ.pop('LOCAL_STORAGE_DIR', None)
os.environ['OUTPUT_FOLDER'] = tempfile.mkdtemp(prefix='lineboard-outputs-')
os.environ['SECRET_KEY'] = 'test-secret-key'
os.environ['TOTAL_TROLLEYS'] = '20'

from scheduling import Line, LineStatus, SchedulingConfig, WorkOrder
from scheduling.capacity import refresh_demand


# A Monday, inside the working window
NOW = datetime(2026, 2, 16, 8, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    """Fixed clock for deterministic scheduling."""
    return lambda: NOW


@pytest.fixture
def config():
    return SchedulingConfig()


@pytest.fixture
def make_line():
    """Factory for lines."""
    def _make(line_id='line-a', name=None, trolley_capacity=10,
              status=LineStatus.ACTIVE, is_enabled=True):
        return Line(
            id=line_id,
            name=name or line_id.upper(),
            trolley_capacity=trolley_capacity,
            status=status,
            is_enabled=is_enabled,
        )
    return _make


@pytest.fixture
def make_order():
    """Factory for work orders. Defaults give 850 minutes and 1 trolley."""
    counter = {'n': 0}

    def _make(order_id=None, part_count=10, assembly_count=1000, cycle_time_seconds=45,
              placement_count=200, is_double_sided=False, is_clear_to_build=True,
              material_available_at=NOW, due_date=NOW + timedelta(days=14),
              priority_hint=None, assigned_line_id=None, start_time=None,
              trolleys_required=None, total_job_minutes=None, is_completed=False):
        counter['n'] += 1
        order_id = order_id or f"wo-{counter['n']}"
        order = WorkOrder(
            id=order_id,
            external_id=order_id.upper(),
            assembly_count=assembly_count,
            cycle_time_seconds=cycle_time_seconds,
            part_count=part_count,
            placement_count=placement_count,
            is_double_sided=is_double_sided,
            material_available_at=material_available_at,
            is_clear_to_build=is_clear_to_build,
            due_date=due_date,
            priority_hint=priority_hint,
            assigned_line_id=assigned_line_id,
            start_time=start_time,
            is_completed=is_completed,
        )
        refresh_demand(order)
        # Overrides stand in for derived fields as persisted
        if total_job_minutes is not None:
            order.total_job_minutes = total_job_minutes
        if trolleys_required is not None:
            order.trolleys_required = trolleys_required
        return order
    return _make


@pytest.fixture
def sample_lines(make_line):
    """Line A (5 trolleys), Line B (10 trolleys) and a down Line C."""
    return [
        make_line('line-a', 'Line A', trolley_capacity=5),
        make_line('line-b', 'Line B', trolley_capacity=10),
        make_line('line-c', 'Line C', trolley_capacity=10, status=LineStatus.DOWN),
    ]


@pytest.fixture
def app(clock, monkeypatch):
    """Flask test application backed by a fresh in-memory store."""
    import app as app_module
    from scheduling_service import SchedulingService
    from work_order_store import WorkOrderRepository

    repository = WorkOrderRepository()
    service = SchedulingService(repository, app_module.scheduling_config, clock=clock)
    monkeypatch.setattr(app_module, 'repository', repository)
    monkeypatch.setattr(app_module, 'service', service)

    flask_app = app_module.app
    flask_app.config['TESTING'] = True
    return flask_app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()


@pytest.fixture
def work_order_payload():
    """Valid JSON body for creating a work order."""
    def _payload(external_id='WO-100', **overrides):
        body = {
            'external_id': external_id,
            'assembly_count': 1000,
            'cycle_time_seconds': 45,
            'part_count': 10,
            'placement_count': 200,
            'is_double_sided': False,
            'is_clear_to_build': True,
            'material_available_at': NOW.isoformat(),
            'due_date': (NOW + timedelta(days=14)).isoformat(),
        }
        body.update(overrides)
        return body
    return _payload
