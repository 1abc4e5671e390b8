"""
LineBoard - Flask Web Application
JSON API for lines, work orders and the line schedule.
"""

import os
import sys
import uuid
from datetime import datetime

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', '.env'))

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from scheduling import Line, LineStatus, SchedulingConfig, SchedulingError, WorkOrder
from scheduling.errors import http_status_for
from scheduling.models import to_local_naive
from scheduling_service import SchedulingService, WorkOrderNotFound
from work_order_store import WorkOrderRepository
from reports import build_dashboard_stats, compute_line_utilization
from validators import validate_line_payload, validate_schedule, validate_work_order_payload
from exporters.excel_exporter import export_schedule
from exporters.resource_utilization_exporter import export_line_utilization


# ============== App Configuration ==============

def create_app():
    """Application factory for Flask app."""
    app = Flask(__name__)

    # Load configuration from environment
    app.secret_key = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['ENV'] = os.environ.get('FLASK_ENV', 'development')
    app.config['DEBUG'] = os.environ.get('FLASK_DEBUG', 'true').lower() == 'true'

    base_dir = os.path.dirname(os.path.abspath(__file__))
    app.config['OUTPUT_FOLDER'] = os.environ.get('OUTPUT_FOLDER') or os.path.join(base_dir, '..', 'outputs')
    app.config['LOCAL_STORAGE_DIR'] = os.environ.get('LOCAL_STORAGE_DIR') or None

    # Ensure directories exist
    os.makedirs(app.config['OUTPUT_FOLDER'], exist_ok=True)

    # CORS for API access
    CORS(app)

    return app


app = create_app()

# ============== Scheduling State ==============

scheduling_config = SchedulingConfig.from_env()
repository = WorkOrderRepository(app.config['LOCAL_STORAGE_DIR'])

if repository.load():
    print("[Startup] Restored lines and work orders from local storage")
elif app.config['LOCAL_STORAGE_DIR']:
    print(f"[Startup] No saved state in {app.config['LOCAL_STORAGE_DIR']}, starting empty")
else:
    print("[Startup] No LOCAL_STORAGE_DIR set, state is kept in memory only")

service = SchedulingService(repository, scheduling_config)


# ============== Helpers ==============

# Fields the server derives or owns; never taken from a create/update payload
SERVER_OWNED_FIELDS = (
    'id', 'setup_minutes', 'teardown_minutes', 'total_job_minutes', 'trolleys_required',
    'is_complex_build', 'end_time', 'assigned_line_id', 'start_time',
    'is_completed', 'completed_at', 'created_at',
)


def _error(message, status, **extra):
    body = {'error': message}
    body.update(extra)
    return jsonify(body), status


def _validation_failed(report):
    return _error('Validation failed', 400, messages=report.errors)


def _parse_datetime_arg(value, name):
    """Parse an ISO 8601 date or datetime from a request. Raises ValueError with a readable message."""
    try:
        return to_local_naive(datetime.fromisoformat(str(value)))
    except ValueError:
        raise ValueError(f"{name} is not a valid ISO 8601 date: {value}")


def _date_range_args(required=False):
    start = request.args.get('start_date')
    end = request.args.get('end_date')
    if required and (not start or not end):
        raise ValueError('start_date and end_date are required')
    return (
        _parse_datetime_arg(start, 'start_date') if start else None,
        _parse_datetime_arg(end, 'end_date') if end else None,
    )


# ============== Lines ==============

@app.route('/api/lines', methods=['GET'])
def api_list_lines():
    """List all lines."""
    lines = sorted(repository.list_lines(), key=lambda line: line.name)
    return jsonify({'lines': [line.to_dict() for line in lines]})


@app.route('/api/lines', methods=['POST'])
def api_create_line():
    """Create a new line."""
    data = request.get_json(silent=True)
    if not data:
        return _error('Request body is required.', 400)

    report = validate_line_payload(data)
    if not report.is_valid:
        return _validation_failed(report)

    line = Line.from_dict({**data, 'id': str(uuid.uuid4())})
    try:
        repository.save_line(line)
    except ValueError as e:
        return _error(str(e), 409)

    print(f"[Lines] Created line {line.name}")
    return jsonify(line.to_dict()), 201


@app.route('/api/lines/<line_id>', methods=['GET'])
def api_get_line(line_id):
    line = repository.get_line(line_id)
    if line is None:
        return _error('Line not found', 404)
    return jsonify(line.to_dict())


@app.route('/api/lines/<line_id>', methods=['PUT'])
def api_update_line(line_id):
    """Update line fields."""
    line = repository.get_line(line_id)
    if line is None:
        return _error('Line not found', 404)

    data = request.get_json(silent=True) or {}
    report = validate_line_payload(data, partial=True)
    if not report.is_valid:
        return _validation_failed(report)

    updated = Line.from_dict({**line.to_dict(), **data, 'id': line.id})
    try:
        repository.save_line(updated)
    except ValueError as e:
        return _error(str(e), 409)
    return jsonify(updated.to_dict())


@app.route('/api/lines/<line_id>', methods=['DELETE'])
def api_delete_line(line_id):
    """Delete a line. Lines still referenced by work orders cannot be deleted."""
    if repository.get_line(line_id) is None:
        return _error('Line not found', 404)

    in_use = [o for o in repository.list_work_orders() if o.assigned_line_id == line_id]
    if in_use:
        return _error('Line has work orders assigned', 409,
                      work_order_ids=[o.id for o in in_use])

    repository.delete_line(line_id)
    return '', 204


@app.route('/api/lines/<line_id>/status', methods=['PUT'])
def api_update_line_status(line_id):
    """Change a line's operational status."""
    data = request.get_json(silent=True) or {}
    status = data.get('status')
    if status not in [s.value for s in LineStatus]:
        return _error('Invalid line status', 400)

    line = repository.get_line(line_id)
    if line is None:
        return _error('Line not found', 404)

    line.status = LineStatus(status)
    repository.save_line(line)
    print(f"[Lines] {line.name} is now {status}")
    return jsonify(line.to_dict())


@app.route('/api/lines/<line_id>/utilization', methods=['GET'])
def api_line_utilization(line_id):
    """Utilization of one line between start_date and end_date."""
    try:
        start, end = _date_range_args(required=True)
    except ValueError as e:
        return _error(str(e), 400)

    if repository.get_line(line_id) is None:
        return _error('Line not found', 404)

    return jsonify(compute_line_utilization(line_id, repository.list_work_orders(), start, end))


# ============== Work Orders ==============

@app.route('/api/work-orders', methods=['GET'])
def api_list_work_orders():
    """List work orders, optionally only those starting within start_date..end_date."""
    try:
        start, end = _date_range_args()
    except ValueError as e:
        return _error(str(e), 400)

    orders = repository.list_work_orders(start, end)
    return jsonify({'work_orders': [o.to_dict() for o in orders]})


@app.route('/api/work-orders', methods=['POST'])
def api_create_work_order():
    """Create a new work order. Derived timing and trolley fields are computed here."""
    data = request.get_json(silent=True)
    if not data:
        return _error('Request body is required.', 400)

    report = validate_work_order_payload(data)
    if not report.is_valid:
        return _validation_failed(report)

    fields = {k: v for k, v in data.items() if k not in SERVER_OWNED_FIELDS}
    order = WorkOrder.from_dict({**fields, 'id': str(uuid.uuid4())})
    try:
        order = service.save_work_order(order)
    except ValueError as e:
        return _error(str(e), 409)

    print(f"[WorkOrders] Created {order.external_id} "
          f"({order.total_job_minutes:.0f} min, {order.trolleys_required} trolleys)")
    return jsonify(order.to_dict()), 201


@app.route('/api/work-orders/<order_id>', methods=['GET'])
def api_get_work_order(order_id):
    order = repository.get_work_order(order_id)
    if order is None:
        return _error('Work order not found', 404)
    return jsonify(order.to_dict())


@app.route('/api/work-orders/<order_id>', methods=['PUT'])
def api_update_work_order(order_id):
    """
    Update work order fields.

    Scheduling state changes only through the schedule, reschedule,
    unschedule and complete actions. An edit that no longer fits the
    order's current slot is refused with the scheduling error.
    """
    order = repository.get_work_order(order_id)
    if order is None:
        return _error('Work order not found', 404)

    data = request.get_json(silent=True) or {}
    report = validate_work_order_payload(data, partial=True)
    if not report.is_valid:
        return _validation_failed(report)

    fields = {k: v for k, v in data.items() if k not in SERVER_OWNED_FIELDS}
    updated = WorkOrder.from_dict({**order.to_dict(), **fields})
    try:
        updated = service.save_work_order(updated)
    except ValueError as e:
        return _error(str(e), 409)
    return jsonify(updated.to_dict())


@app.route('/api/work-orders/<order_id>', methods=['DELETE'])
def api_delete_work_order(order_id):
    if not repository.delete_work_order(order_id):
        return _error('Work order not found', 404)
    return '', 204


# ============== Scheduling ==============

@app.route('/api/work-orders/<order_id>/schedule', methods=['POST'])
def api_schedule_work_order(order_id):
    """Auto-schedule a work order at its earliest feasible slot."""
    order = service.schedule(order_id)
    return jsonify(order.to_dict())


@app.route('/api/work-orders/<order_id>/reschedule', methods=['POST'])
def api_reschedule_work_order(order_id):
    """Move a work order to the given line_id and start_time."""
    data = request.get_json(silent=True) or {}
    line_id = data.get('line_id')
    start_value = data.get('start_time')
    if not line_id or not start_value:
        return _error('line_id and start_time are required', 400)

    try:
        start_time = _parse_datetime_arg(start_value, 'start_time')
    except ValueError as e:
        return _error(str(e), 400)

    order = service.reschedule(order_id, line_id, start_time)
    return jsonify(order.to_dict())


@app.route('/api/work-orders/<order_id>/unschedule', methods=['POST'])
def api_unschedule_work_order(order_id):
    order = service.unschedule(order_id)
    return jsonify(order.to_dict())


@app.route('/api/work-orders/<order_id>/complete', methods=['POST'])
def api_complete_work_order(order_id):
    order = service.complete(order_id)
    return jsonify(order.to_dict())


@app.route('/api/work-orders/optimize', methods=['POST'])
def api_optimize_schedule():
    """Schedule every unscheduled, clear-to-build work order in priority order."""
    result = service.optimize()
    service.scheduler.print_summary(repository.list_work_orders(), result.failures)

    report = validate_schedule(repository.list_scheduled_orders(), scheduling_config)
    if not report.is_valid:
        report.print_report()
    return jsonify(result.to_dict())


# ============== Dashboard & Exports ==============

@app.route('/api/dashboard', methods=['GET'])
def api_dashboard():
    stats = build_dashboard_stats(repository.list_work_orders(), repository.list_lines(),
                                  now=service.clock())
    return jsonify(stats)


@app.route('/api/export/schedule', methods=['GET'])
def api_export_schedule():
    """Download the current line schedule as an Excel workbook."""
    timestamp = service.clock().strftime('%Y%m%d_%H%M%S')
    filename = f"Line_Schedule_{timestamp}.xlsx"
    output_path = os.path.join(app.config['OUTPUT_FOLDER'], filename)

    export_schedule(repository.list_work_orders(), repository.list_lines(), output_path)
    return send_file(os.path.abspath(output_path), as_attachment=True, download_name=filename)


@app.route('/api/export/utilization', methods=['GET'])
def api_export_utilization():
    """Download line utilization as an Excel workbook. Defaults to the last 30 days."""
    try:
        start, end = _date_range_args()
    except ValueError as e:
        return _error(str(e), 400)

    now = service.clock()
    filename = f"Line_Utilization_{now.strftime('%Y%m%d_%H%M%S')}.xlsx"
    output_path = os.path.join(app.config['OUTPUT_FOLDER'], filename)

    export_line_utilization(repository.list_work_orders(), repository.list_lines(),
                            output_path, start=start, end=end, now=now)
    return send_file(os.path.abspath(output_path), as_attachment=True, download_name=filename)


# ============== Error Handlers ==============

@app.errorhandler(SchedulingError)
def scheduling_error(e):
    """Map scheduling failures to their HTTP status."""
    print(f"[WARN] {e.reason}: {e.message}")
    return jsonify(e.to_dict()), http_status_for(e)


@app.errorhandler(WorkOrderNotFound)
def work_order_not_found(e):
    return _error(str(e), 404)


@app.errorhandler(404)
def not_found(e):
    """Handle 404 errors."""
    return _error('Not found', 404)


@app.errorhandler(405)
def method_not_allowed(e):
    return _error('Method not allowed', 405)


@app.errorhandler(500)
def server_error(e):
    """Handle 500 errors."""
    return _error('Internal server error', 500)


# ============== Main ==============

def run_development():
    """Run the development server."""
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', 5000))

    print("=" * 60)
    print("LineBoard - Scheduling API (Development)")
    print("=" * 60)
    print(f"Storage: {app.config['LOCAL_STORAGE_DIR'] or 'in-memory'}")
    print(f"Output folder: {app.config['OUTPUT_FOLDER']}")
    print(f"Trolleys: {scheduling_config.total_trolleys}, working hours: "
          f"{scheduling_config.calendar.day_start:%H:%M}-{scheduling_config.calendar.day_end:%H:%M}")
    print(f"Starting server at http://{host}:{port}")
    print("=" * 60)
    print("WARNING: Using development server. For production, use:")
    print("  waitress-serve --port=5000 app:app")
    print("=" * 60)

    app.run(debug=True, host=host, port=port)


def run_production():
    """Run the production server with Waitress."""
    from waitress import serve

    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', 5000))

    print("=" * 60)
    print("LineBoard - Scheduling API (Production)")
    print("=" * 60)
    print(f"Storage: {app.config['LOCAL_STORAGE_DIR'] or 'in-memory'}")
    print(f"Output folder: {app.config['OUTPUT_FOLDER']}")
    print(f"Starting Waitress server at http://{host}:{port}")
    print("=" * 60)

    serve(app, host=host, port=port, threads=4)


if __name__ == '__main__':
    env = os.environ.get('FLASK_ENV', 'development')

    if env == 'production':
        run_production()
    else:
        run_development()
