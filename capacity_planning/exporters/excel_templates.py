"""
Excel export templates for scenario planning results.

This module provides formatted Excel exports for:
1. Scenario comparisons (summary, changes and financial impact)
2. Team cost reports (team costs and project burn)

All exports share the same header styling, alternating rows and filters.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from ..costs.cost_breakdown import ProjectBurnAnalysis, ScenarioFinancialComparison, TeamCostCalculation
from ..scenario.diff import ChangeCategory, ImpactLevel, ScenarioComparison

# Color constants
HEADER_COLOR = "1E88E5"
ALT_ROW_COLOR = "F5F5F5"
HIGH_IMPACT_COLOR = "FFCDD2"  # Red
MEDIUM_IMPACT_COLOR = "FFF9C4"  # Yellow
LOW_IMPACT_COLOR = "C8E6C9"  # Green

IMPACT_COLORS = {
    ImpactLevel.HIGH: HIGH_IMPACT_COLOR,
    ImpactLevel.MEDIUM: MEDIUM_IMPACT_COLOR,
    ImpactLevel.LOW: LOW_IMPACT_COLOR,
}

CURRENCY_FORMAT = '$#,##0.00'
PERCENT_FORMAT = '0.0"%"'

_THIN = Side(style='thin')


def create_header_style() -> Dict[str, Any]:
    """Create header row style (blue background, white text, bold)."""
    return {
        'font': Font(name='Calibri', size=11, bold=True, color='FFFFFF'),
        'fill': PatternFill(start_color=HEADER_COLOR, end_color=HEADER_COLOR, fill_type='solid'),
        'alignment': Alignment(horizontal='center', vertical='center', wrap_text=True),
        'border': Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN),
    }


def style_header_row(worksheet, num_columns: int, header_row: int = 1):
    """Apply the header style to the first ``num_columns`` cells of a row."""
    style = create_header_style()
    for col_idx in range(1, num_columns + 1):
        cell = worksheet.cell(row=header_row, column=col_idx)
        cell.font = style['font']
        cell.fill = style['fill']
        cell.alignment = style['alignment']
        cell.border = style['border']


def apply_alternating_rows(worksheet, start_row: int, end_row: int, start_col: int = 1, end_col: int = 10):
    """Apply alternating row colors (white / light gray)."""
    fill = PatternFill(start_color=ALT_ROW_COLOR, end_color=ALT_ROW_COLOR, fill_type='solid')
    for row_idx in range(start_row, end_row + 1):
        if (row_idx - start_row) % 2 == 1:
            for col_idx in range(start_col, end_col + 1):
                worksheet.cell(row=row_idx, column=col_idx).fill = fill


def add_filters(worksheet, end_column: int, header_row: int = 1):
    """Add Excel filters to header row."""
    worksheet.auto_filter.ref = f"A{header_row}:{get_column_letter(end_column)}{header_row}"


def format_columns(worksheet, columns: Sequence[int], number_format: str, start_row: int, end_row: int):
    """Apply a number format to whole columns."""
    for col in columns:
        for row_idx in range(start_row, end_row + 1):
            worksheet.cell(row=row_idx, column=col).number_format = number_format


def add_total_row(worksheet, row: int, columns_to_sum: List[int], label_col: int = 1, label: str = "TOTAL"):
    """Add totals row with SUM formulas over rows 2..row-1."""
    fill = PatternFill(start_color=ALT_ROW_COLOR, end_color=ALT_ROW_COLOR, fill_type='solid')
    label_cell = worksheet.cell(row=row, column=label_col)
    label_cell.value = label
    label_cell.font = Font(name='Calibri', size=10, bold=True)
    label_cell.fill = fill

    for col in columns_to_sum:
        col_letter = get_column_letter(col)
        cell = worksheet.cell(row=row, column=col)
        cell.value = f"=SUM({col_letter}2:{col_letter}{row - 1})"
        cell.font = Font(name='Calibri', size=10, bold=True)
        cell.fill = fill


def auto_fit_columns(worksheet, max_width: int = 50):
    """Auto-fit column widths based on content."""
    for column in worksheet.columns:
        lengths = [len(str(cell.value)) for cell in column if cell.value is not None]
        width = min(max(lengths, default=0) + 2, max_width)
        worksheet.column_dimensions[get_column_letter(column[0].column)].width = width


def write_dataframe_sheet(
    workbook: Workbook,
    title: str,
    df: pd.DataFrame,
    currency_columns: Sequence[str] = (),
    percent_columns: Sequence[str] = (),
):
    """Write a DataFrame as a styled sheet: header, data, filters, frozen header.

    Args:
        workbook: Target workbook
        title: Sheet title
        df: Data to write (column names become headers)
        currency_columns: Columns formatted as currency
        percent_columns: Columns holding percentages (0-100)

    Returns:
        The created worksheet
    """
    ws = workbook.create_sheet(title)
    headers = list(df.columns)
    for col_idx, header in enumerate(headers, 1):
        ws.cell(row=1, column=col_idx).value = header
    style_header_row(ws, len(headers))

    for row_idx, row_data in enumerate(df.itertuples(index=False), 2):
        for col_idx, value in enumerate(row_data, 1):
            ws.cell(row=row_idx, column=col_idx).value = value

    last_row = len(df) + 1
    if len(df) > 0:
        apply_alternating_rows(ws, 2, last_row, 1, len(headers))
        format_columns(ws, [headers.index(c) + 1 for c in currency_columns if c in headers],
                       CURRENCY_FORMAT, 2, last_row)
        format_columns(ws, [headers.index(c) + 1 for c in percent_columns if c in headers],
                       PERCENT_FORMAT, 2, last_row)

    if headers:
        add_filters(ws, len(headers))
    ws.freeze_panes = 'A2'
    auto_fit_columns(ws)
    return ws


def _comparison_summary_frame(comparison: ScenarioComparison) -> pd.DataFrame:
    rows = [
        ('Scenario', comparison.scenario_name),
        ('Scenario ID', comparison.scenario_id),
        ('Compared At', comparison.compared_at.strftime('%Y-%m-%d %H:%M')),
        ('Total Changes', comparison.summary.total_changes),
    ]
    for category in ChangeCategory:
        rows.append((f"{category.value.title()} Changes",
                     comparison.summary.categorized_changes.get(category.value, 0)))
    rows += [
        ('Impact Level', comparison.summary.impact_level.value.upper()),
        ('Budget Variance', comparison.financial_impact.budget_variance),
        ('People Added', comparison.resource_impact.people_changes.added),
        ('People Removed', comparison.resource_impact.people_changes.removed),
        ('People Reallocated', comparison.resource_impact.people_changes.reallocated),
    ]
    return pd.DataFrame(rows, columns=['Metric', 'Value'])


def _changes_frame(comparison: ScenarioComparison) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                'Category': change.category.value.title(),
                'Entity Type': change.entity_type,
                'Entity': change.entity_name,
                'Change': change.change_type.value,
                'Description': change.description,
                'Impact': change.impact.value.upper(),
            }
            for change in comparison.changes
        ],
        columns=['Category', 'Entity Type', 'Entity', 'Change', 'Description', 'Impact'],
    )


def export_scenario_comparison(
    comparison: ScenarioComparison,
    output_path: Union[str, Path],
    financial_comparison: Optional[ScenarioFinancialComparison] = None,
) -> str:
    """
    Export a scenario comparison to a formatted Excel file.

    Creates sheets:
    1. Summary - Change counts, impact level and budget variance
    2. Changes - One row per change, colored by impact
    3. Financial Impact - Project budget changes
    4. Team Cost Changes - Only when ``financial_comparison`` is given
    5. Timeline - Project date shifts

    Args:
        comparison: Result of ``compare_scenario_data``
        output_path: Path to save Excel file
        financial_comparison: Optional cost comparison for the same scenario

    Returns:
        Path to created file
    """
    wb = Workbook()
    wb.remove(wb.active)

    summary_ws = write_dataframe_sheet(wb, "Summary", _comparison_summary_frame(comparison))
    for row in summary_ws.iter_rows(min_row=2):
        if row[0].value == 'Budget Variance':
            row[1].number_format = CURRENCY_FORMAT
        elif row[0].value == 'Impact Level':
            color = IMPACT_COLORS[comparison.summary.impact_level]
            row[1].fill = PatternFill(start_color=color, end_color=color, fill_type='solid')

    changes_ws = write_dataframe_sheet(wb, "Changes", _changes_frame(comparison))
    # Impact coloring overrides alternating rows
    for row_idx, change in enumerate(comparison.changes, 2):
        color = IMPACT_COLORS[change.impact]
        changes_ws.cell(row=row_idx, column=6).fill = PatternFill(start_color=color, end_color=color, fill_type='solid')

    project_df = pd.DataFrame(
        [
            {
                'Project': c.project_name,
                'Budget Change': c.cost_difference,
                'Change %': c.percentage_change,
            }
            for c in comparison.financial_impact.project_cost_changes
        ],
        columns=['Project', 'Budget Change', 'Change %'],
    )
    fin_ws = write_dataframe_sheet(wb, "Financial Impact", project_df,
                                   currency_columns=['Budget Change'], percent_columns=['Change %'])
    if len(project_df) > 0:
        total_row = len(project_df) + 2
        add_total_row(fin_ws, total_row, [2])
        fin_ws.cell(row=total_row, column=2).number_format = CURRENCY_FORMAT

    if financial_comparison is not None:
        team_df = pd.DataFrame(
            [
                {
                    'Team': c.team_name,
                    'Live Cost': c.live_cost,
                    'Scenario Cost': c.scenario_cost,
                    'Difference': c.difference,
                    'Change %': c.percentage_change,
                }
                for c in financial_comparison.team_cost_changes
            ],
            columns=['Team', 'Live Cost', 'Scenario Cost', 'Difference', 'Change %'],
        )
        team_ws = write_dataframe_sheet(wb, "Team Cost Changes", team_df,
                                        currency_columns=['Live Cost', 'Scenario Cost', 'Difference'],
                                        percent_columns=['Change %'])
        if len(team_df) > 0:
            total_row = len(team_df) + 2
            add_total_row(team_ws, total_row, [2, 3, 4])
            format_columns(team_ws, [2, 3, 4], CURRENCY_FORMAT, total_row, total_row)

    timeline_df = pd.DataFrame(
        [
            {
                'Project': c.project_name,
                'Old Start': c.old_start_date,
                'New Start': c.new_start_date,
                'Start Shift (days)': c.start_date_change,
                'Old End': c.old_end_date,
                'New End': c.new_end_date,
                'End Shift (days)': c.end_date_change,
            }
            for c in comparison.timeline_impact.project_date_changes
        ],
        columns=['Project', 'Old Start', 'New Start', 'Start Shift (days)', 'Old End', 'New End',
                 'End Shift (days)'],
    )
    write_dataframe_sheet(wb, "Timeline", timeline_df)

    output_path = str(output_path)
    wb.save(output_path)
    return output_path


def export_team_cost_report(
    team_costs: List[TeamCostCalculation],
    output_path: Union[str, Path],
    project_burn: Optional[List[ProjectBurnAnalysis]] = None,
    title: str = "Team Cost Report",
) -> str:
    """
    Export team costs (and optionally project burn) to a formatted Excel file.

    Creates sheets:
    1. Team Costs - Annual cost split, rates and headcount with totals
    2. Project Burn - Budget utilisation per project (when given)
    3. Metadata - Report title and generation time

    Args:
        team_costs: Output of ``TeamCostCalculator.calculate_team_costs``
        output_path: Path to save Excel file
        project_burn: Optional output of ``calculate_project_burn_analysis``
        title: Title written to the metadata sheet

    Returns:
        Path to created file
    """
    wb = Workbook()
    wb.remove(wb.active)

    team_df = pd.DataFrame(
        [
            {
                'Team': t.team_name,
                'Headcount': t.headcount,
                'Base Salaries': t.cost_breakdown.base_salaries,
                'Overhead': t.cost_breakdown.overhead,
                'Project Management': t.cost_breakdown.project_management,
                'Licensing': t.cost_breakdown.licensing,
                'Other': t.cost_breakdown.other,
                'Total Annual Cost': t.total_cost,
                'Cost / Hour': t.cost_per_hour,
                'Cost / Iteration': t.cost_per_iteration,
                'Cost / Quarter': t.cost_per_quarter,
            }
            for t in sorted(team_costs, key=lambda t: t.total_cost, reverse=True)
        ],
        columns=['Team', 'Headcount', 'Base Salaries', 'Overhead', 'Project Management', 'Licensing',
                 'Other', 'Total Annual Cost', 'Cost / Hour', 'Cost / Iteration', 'Cost / Quarter'],
    )
    money = ['Base Salaries', 'Overhead', 'Project Management', 'Licensing', 'Other',
             'Total Annual Cost', 'Cost / Hour', 'Cost / Iteration', 'Cost / Quarter']
    team_ws = write_dataframe_sheet(wb, "Team Costs", team_df, currency_columns=money)
    if len(team_df) > 0:
        total_row = len(team_df) + 2
        add_total_row(team_ws, total_row, list(range(2, 9)))
        format_columns(team_ws, list(range(3, 9)), CURRENCY_FORMAT, total_row, total_row)

    if project_burn:
        burn_df = pd.DataFrame([
            {
                'Project': p.project_name,
                'Budget': p.total_budget,
                'Allocated Team Costs': p.allocated_team_costs,
                'Burn / Iteration': p.burn_rate.per_iteration,
                'Burn / Quarter': p.burn_rate.per_quarter,
                'Utilisation %': p.budget_utilization.percentage,
                'Remaining': p.budget_utilization.remaining,
                'Over Budget': 'YES' if p.budget_utilization.over_budget else 'NO',
            }
            for p in project_burn
        ])
        burn_ws = write_dataframe_sheet(
            wb, "Project Burn", burn_df,
            currency_columns=['Budget', 'Allocated Team Costs', 'Burn / Iteration', 'Burn / Quarter', 'Remaining'],
            percent_columns=['Utilisation %'],
        )
        for row_idx, analysis in enumerate(project_burn, 2):
            if analysis.budget_utilization.over_budget:
                burn_ws.cell(row=row_idx, column=8).fill = PatternFill(
                    start_color=HIGH_IMPACT_COLOR, end_color=HIGH_IMPACT_COLOR, fill_type='solid')

    meta_df = pd.DataFrame(
        [('Report', title), ('Generated', datetime.now().strftime('%Y-%m-%d %H:%M')), ('Teams', len(team_costs))],
        columns=['Field', 'Value'],
    )
    write_dataframe_sheet(wb, "Metadata", meta_df)

    output_path = str(output_path)
    wb.save(output_path)
    return output_path
