"""
Excel Exporter
Export the line schedule and the unscheduled backlog to Excel format.
"""

import pandas as pd
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Optional

from openpyxl.utils import get_column_letter

from scheduling.models import Line, WorkOrder


def _autosize_columns(worksheet, df: pd.DataFrame, max_width: int = 40):
    """Fit column widths to content and freeze the header row."""
    for idx, col in enumerate(df.columns):
        col_data = df[col].fillna('').astype(str)
        max_data_len = col_data.str.len().max() if len(col_data) > 0 else 0
        max_length = max(max_data_len, len(col)) + 2
        worksheet.column_dimensions[get_column_letter(idx + 1)].width = min(max_length, max_width)
    worksheet.freeze_panes = 'A2'


def _schedule_rows(orders: List[WorkOrder], lines: List[Line]) -> List[Dict]:
    line_names = {line.id: line.name for line in lines}

    scheduled = [o for o in orders if o.start_time is not None]
    scheduled.sort(key=lambda o: (o.start_time, line_names.get(o.assigned_line_id, '')))

    data = []
    for seq, order in enumerate(scheduled, 1):
        late = order.due_date is not None and order.end_time > order.due_date
        data.append({
            'Seq': seq,
            'WO#': order.external_id,
            'Line': line_names.get(order.assigned_line_id, order.assigned_line_id),
            'Start': order.start_time,
            'End': order.end_time,
            'Job Minutes': round(order.total_job_minutes, 1),
            'Setup Minutes': order.setup_minutes,
            'Trolleys': order.trolleys_required,
            'Assemblies': order.assembly_count,
            'Parts': order.part_count,
            'Placements': order.placement_count,
            'Double Sided': 'Yes' if order.is_double_sided else 'No',
            'Due Date': order.due_date,
            'On-Time': 'No' if late else 'Yes',
            'Completed': 'Yes' if order.is_completed else 'No',
        })
    return data


def _backlog_rows(orders: List[WorkOrder]) -> List[Dict]:
    backlog = [o for o in orders if o.start_time is None and not o.is_completed]
    backlog.sort(key=lambda o: (o.due_date is None, o.due_date or datetime.max))

    return [{
        'WO#': order.external_id,
        'Clear To Build': 'Yes' if order.is_clear_to_build else 'No',
        'Material Status': order.material_status.value,
        'Material Available': order.material_available_at,
        'Due Date': order.due_date,
        'Trolleys': order.trolleys_required,
        'Job Minutes': round(order.total_job_minutes, 1),
        'Notes': (order.notes or '')[:50],
    } for order in backlog]


def export_schedule(orders: List[WorkOrder], lines: List[Line], output_path: str) -> str:
    """
    Export the line schedule to Excel.

    Writes a 'Line Schedule' sheet of placed orders in start order and a
    'Backlog' sheet of orders still waiting for a slot.

    Args:
        orders: Work orders (scheduled or not)
        lines: Lines, used to resolve line names
        output_path: Path for output Excel file

    Returns:
        Path to the created file
    """
    schedule_df = pd.DataFrame(_schedule_rows(orders, lines))
    backlog_df = pd.DataFrame(_backlog_rows(orders))

    with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
        schedule_df.to_excel(writer, sheet_name='Line Schedule', index=False)
        _autosize_columns(writer.sheets['Line Schedule'], schedule_df)

        backlog_df.to_excel(writer, sheet_name='Backlog', index=False)
        _autosize_columns(writer.sheets['Backlog'], backlog_df)

    print(f"[OK] Line schedule exported to: {output_path}")
    return output_path


def export_all_reports(orders: List[WorkOrder], lines: List[Line],
                       output_dir: Optional[str] = None,
                       now: Optional[datetime] = None) -> Dict[str, str]:
    """
    Export the schedule and line utilization workbooks.

    Args:
        orders: All work orders
        lines: All lines
        output_dir: Output directory path. Defaults to project's outputs folder.
        now: Reference time for the utilization window

    Returns:
        Dictionary of report names to file paths
    """
    from exporters.resource_utilization_exporter import export_line_utilization

    if output_dir is None:
        project_root = Path(__file__).parent.parent.parent
        output_dir = project_root / "outputs"
    else:
        output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    now = now or datetime.now()
    timestamp = now.strftime('%Y%m%d_%H%M%S')

    files = {}

    schedule_path = output_dir / f"Line_Schedule_{timestamp}.xlsx"
    files['line_schedule'] = export_schedule(orders, lines, str(schedule_path))

    utilization_path = output_dir / f"Line_Utilization_{timestamp}.xlsx"
    files['line_utilization'] = export_line_utilization(
        orders, lines, str(utilization_path), now=now
    )

    print(f"\n[OK] All reports exported to: {output_dir}")

    return files
