"""
Line Utilization Exporter
Generates per-line utilization and trolley load from scheduled orders.
"""

import pandas as pd
from datetime import datetime, timedelta
from typing import List, Optional

from exporters.excel_exporter import _autosize_columns
from reports import UTILIZATION_WINDOW_DAYS, compute_line_utilization
from scheduling.models import Line, WorkOrder


def _trolley_load_rows(orders: List[WorkOrder], start: datetime, end: datetime) -> List[dict]:
    """
    Facility trolley usage at every start time inside the range.

    Usage only rises when an order starts, so sampling the start instants
    captures every peak.
    """
    active = [o for o in orders
              if o.start_time is not None and not o.is_completed
              and start <= o.start_time <= end]

    rows = []
    for instant in sorted({o.start_time for o in active}):
        running = [o for o in active if o.start_time <= instant < o.end_time]
        rows.append({
            'Time': instant,
            'Orders Running': len(running),
            'Trolleys In Use': sum(o.trolleys_required for o in running),
        })
    return rows


def export_line_utilization(orders: List[WorkOrder], lines: List[Line], output_path: str,
                            start: Optional[datetime] = None, end: Optional[datetime] = None,
                            now: Optional[datetime] = None) -> str:
    """
    Export line utilization report to Excel.

    Args:
        orders: Work orders
        lines: Lines to report on
        output_path: Path for output Excel file
        start, end: Reporting range. Defaults to the last 30 days before now.
        now: Reference time when no range is given

    Returns:
        Path to the created file
    """
    now = now or datetime.now()
    end = end or now
    start = start or end - timedelta(days=UTILIZATION_WINDOW_DAYS)

    line_rows = []
    for line in lines:
        stats = compute_line_utilization(line.id, orders, start, end)
        available_hours = (end - start).total_seconds() / 3600
        line_rows.append({
            'Line': line.name,
            'Status': line.status.value,
            'Trolley Capacity': line.trolley_capacity,
            'Work Orders': stats['total_work_orders'],
            'Job Hours': stats['total_job_time_hours'],
            'Available Hours': round(available_hours, 2),
            'Utilization %': stats['utilization_percentage'],
        })

    line_df = pd.DataFrame(line_rows)
    if not line_df.empty:
        line_df = line_df.sort_values('Utilization %', ascending=False)

    load_df = pd.DataFrame(_trolley_load_rows(orders, start, end))

    with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
        line_df.to_excel(writer, sheet_name='Line Utilization', index=False)
        load_df.to_excel(writer, sheet_name='Trolley Load', index=False)

        _autosize_columns(writer.sheets['Line Utilization'], line_df, max_width=30)
        _autosize_columns(writer.sheets['Trolley Load'], load_df, max_width=30)

    print(f"[OK] Line utilization report exported to: {output_path}")
    return output_path
