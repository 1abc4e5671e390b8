"""Tests for the work order store and the scheduling service."""

import json
import os
import threading
import pytest
from datetime import timedelta

from scheduling.errors import InvalidLine, NoEligibleLine, NotClearToBuild, ScheduleConflict
from scheduling.models import LineStatus
from scheduling_service import SchedulingService, WorkOrderNotFound
from validators import validate_schedule
from work_order_store import LINES_FILE, WORK_ORDERS_FILE, WorkOrderRepository


@pytest.fixture
def repository(sample_lines):
    repo = WorkOrderRepository()
    for line in sample_lines:
        repo.save_line(line)
    return repo


@pytest.fixture
def service(repository, clock):
    return SchedulingService(repository, clock=clock)


class TestWorkOrderRepository:

    def test_reads_return_copies(self, repository, make_order):
        repository.save_work_order(make_order('wo-1'))

        fetched = repository.get_work_order('wo-1')
        fetched.notes = 'changed'

        assert repository.get_work_order('wo-1').notes is None

    def test_duplicate_external_id_is_rejected(self, repository, make_order):
        repository.save_work_order(make_order('wo-1'))
        clash = make_order('wo-2')
        clash.external_id = 'WO-1'
        with pytest.raises(ValueError):
            repository.save_work_order(clash)

    def test_duplicate_line_name_is_rejected(self, repository, make_line):
        with pytest.raises(ValueError):
            repository.save_line(make_line('line-x', 'Line A'))

    def test_scheduled_and_backlog_queries(self, repository, make_order, now):
        repository.save_work_order(make_order('running', assigned_line_id='line-a', start_time=now))
        repository.save_work_order(make_order('finished', assigned_line_id='line-a',
                                              start_time=now, is_completed=True))
        repository.save_work_order(make_order('ready'))
        repository.save_work_order(make_order('blocked', is_clear_to_build=False))

        assert [o.id for o in repository.list_scheduled_orders()] == ['running']
        assert {o.id for o in repository.list_scheduled_orders(exclude_completed=False)} == \
            {'running', 'finished'}
        assert [o.id for o in repository.list_unscheduled_clear_orders()] == ['ready']

    def test_list_by_start_range(self, repository, make_order, now):
        repository.save_work_order(make_order('today', assigned_line_id='line-a', start_time=now))
        repository.save_work_order(make_order('next-week', assigned_line_id='line-a',
                                              start_time=now + timedelta(days=7)))
        repository.save_work_order(make_order('unscheduled'))

        in_range = repository.list_work_orders(now - timedelta(hours=1), now + timedelta(days=1))

        assert [o.id for o in in_range] == ['today']
        assert len(repository.list_work_orders()) == 3

    def test_delete(self, repository, make_order):
        repository.save_work_order(make_order('wo-1'))
        assert repository.delete_work_order('wo-1')
        assert not repository.delete_work_order('wo-1')
        assert repository.delete_line('line-a')
        assert repository.get_line('line-a') is None

    def test_persists_to_json(self, tmp_path, sample_lines, make_order, now):
        repo = WorkOrderRepository(str(tmp_path))
        repo.save_line(sample_lines[0])
        repo.save_work_order(make_order('wo-1', assigned_line_id='line-a', start_time=now))

        assert os.path.exists(tmp_path / LINES_FILE)
        with open(tmp_path / WORK_ORDERS_FILE) as f:
            saved = json.load(f)
        assert saved[0]['start_time'] == now.isoformat()

        reloaded = WorkOrderRepository(str(tmp_path))
        assert reloaded.load()
        order = reloaded.get_work_order('wo-1')
        assert order.start_time == now
        assert order.total_job_minutes == 850
        assert reloaded.get_line('line-a').trolley_capacity == 5

    def test_load_without_storage(self):
        assert not WorkOrderRepository().load()


class TestSchedulingService:

    def test_save_computes_derived_fields(self, service, make_order):
        order = make_order('wo-1', part_count=100)
        order.total_job_minutes = 0
        order.trolleys_required = 1

        service.save_work_order(order)

        stored = service.repository.get_work_order('wo-1')
        assert stored.total_job_minutes == 500 + 750 + 500
        assert stored.trolleys_required == 5

    def test_schedule_persists_placement(self, service, make_order, now):
        service.save_work_order(make_order('wo-1'))

        placed = service.schedule('wo-1')

        stored = service.repository.get_work_order('wo-1')
        assert stored.start_time == placed.start_time == now
        assert stored.assigned_line_id == 'line-a'

    def test_schedule_unknown_order(self, service):
        with pytest.raises(WorkOrderNotFound):
            service.schedule('missing')

    def test_schedule_failure_leaves_store_untouched(self, service, make_order):
        service.save_work_order(make_order('wo-1', is_clear_to_build=False))
        with pytest.raises(NotClearToBuild):
            service.schedule('wo-1')
        assert service.repository.get_work_order('wo-1').start_time is None

    def test_second_order_sees_first(self, service, make_order, now):
        service.save_work_order(make_order('wo-1'))
        service.save_work_order(make_order('wo-2'))
        service.save_work_order(make_order('wo-3'))

        placements = [service.schedule(i) for i in ('wo-1', 'wo-2', 'wo-3')]

        assert [(p.assigned_line_id, p.start_time) for p in placements] == [
            ('line-a', now), ('line-b', now), ('line-a', now.replace(day=17, hour=7, minute=30)),
        ]

    def test_reschedule_and_unschedule(self, service, make_order, now):
        service.save_work_order(make_order('wo-1'))
        service.schedule('wo-1')

        moved = service.reschedule('wo-1', 'line-b', now + timedelta(hours=2))
        assert service.repository.get_work_order('wo-1').assigned_line_id == 'line-b'
        assert moved.start_time == now + timedelta(hours=2)

        service.unschedule('wo-1')
        assert service.repository.get_work_order('wo-1').start_time is None

    def test_reschedule_onto_down_line(self, service, make_order, now):
        service.save_work_order(make_order('wo-1'))
        with pytest.raises(InvalidLine):
            service.reschedule('wo-1', 'line-c', now)

    def test_complete_frees_the_line(self, service, make_order, now):
        service.save_work_order(make_order('wo-1'))
        service.schedule('wo-1')

        done = service.complete('wo-1')
        assert done.is_completed
        assert done.completed_at == now

        service.save_work_order(make_order('wo-2', assigned_line_id='line-a'))
        assert service.schedule('wo-2').start_time == now

    def test_edit_that_would_double_book_is_rejected(self, service, make_order):
        for order_id in ('wo-1', 'wo-2', 'wo-3'):
            service.save_work_order(make_order(order_id))
            service.schedule(order_id)

        edited = service.repository.get_work_order('wo-1')
        edited.assembly_count = 5000

        with pytest.raises(ScheduleConflict) as exc:
            service.save_work_order(edited)

        assert exc.value.details['conflicting_order_ids'] == ['wo-3']
        assert service.repository.get_work_order('wo-1').total_job_minutes == 850
        assert validate_schedule(service.list_schedule(), service.config).is_valid

    def test_edit_that_still_fits_keeps_the_slot(self, service, make_order, now):
        service.save_work_order(make_order('wo-1'))
        service.schedule('wo-1')

        edited = service.repository.get_work_order('wo-1')
        edited.assembly_count = 500
        edited.notes = 'rush'
        saved = service.save_work_order(edited)

        assert saved.start_time == now
        assert saved.assigned_line_id == 'line-a'
        assert saved.total_job_minutes == 475

    def test_optimize_saves_every_placement(self, service, make_order, now):
        for i in range(4):
            service.save_work_order(make_order(f'wo-{i}', due_date=now + timedelta(days=i + 1)))
        service.save_work_order(make_order('too-big', part_count=240))

        result = service.optimize()

        assert len(result.scheduled) == 4
        assert [f.order_id for f in result.failures] == ['too-big']
        assert len(service.list_schedule()) == 4
        assert service.repository.list_unscheduled_clear_orders()[0].id == 'too-big'

    def test_concurrent_scheduling_never_double_books(self, service, make_order):
        for i in range(12):
            service.save_work_order(make_order(f'wo-{i}', assembly_count=100))

        threads = [threading.Thread(target=service.schedule, args=(f'wo-{i}',)) for i in range(12)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        scheduled = service.list_schedule()
        assert len(scheduled) == 12
        assert validate_schedule(scheduled, service.config).is_valid

    def test_line_status_change_blocks_new_placements(self, service, make_order):
        for line_id in ('line-a', 'line-b'):
            line = service.repository.get_line(line_id)
            line.status = LineStatus.MAINTENANCE
            service.repository.save_line(line)

        service.save_work_order(make_order('wo-1'))
        with pytest.raises(NoEligibleLine):
            service.schedule('wo-1')
