"""
Excel exporters for scenario comparisons and cost reports.
"""

from .excel_templates import (
    create_header_style,
    export_scenario_comparison,
    export_team_cost_report,
    style_header_row,
    write_dataframe_sheet,
)

__all__ = [
    "create_header_style",
    "export_scenario_comparison",
    "export_team_cost_report",
    "style_header_row",
    "write_dataframe_sheet",
]
