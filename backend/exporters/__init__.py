"""
Exporters package
Export schedules and reports to Excel.
"""

from .excel_exporter import (
    export_schedule,
    export_all_reports
)
from .resource_utilization_exporter import export_line_utilization

__all__ = [
    'export_schedule',
    'export_all_reports',
    'export_line_utilization'
]
