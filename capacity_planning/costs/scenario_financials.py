"""Financial comparison between live data and a scenario."""

from datetime import date as Date
from typing import Optional

from .cost_breakdown import (
    FinancialAnalysis,
    FinancialComparisonSummary,
    FinancialImpact,
    ProjectBurnChange,
    QuarterlyAnalysis,
    ScenarioFinancialComparison,
    TeamCostBreakdown,
    TeamCostChange,
    TeamCostDiff,
)
from .team_cost_calculator import QUARTERS, TeamCostCalculator


def compare_scenario_financials(
    scenario_data,
    live_data,
    scenario_id: str,
    calculator: Optional[TeamCostCalculator] = None,
) -> ScenarioFinancialComparison:
    """Compare team costs and project burn of a scenario against live data.

    Args:
        scenario_data: ScenarioData of the scenario
        live_data: ScenarioData of the live plan
        scenario_id: Scenario being compared
        calculator: Cost calculator (default configuration when omitted)

    Returns:
        ScenarioFinancialComparison

    Example:
        >>> comparison = compare_scenario_financials(scenario.data, live, scenario.id)
        >>> comparison.summary.total_cost_difference
        135800.0
    """
    calculator = calculator or TeamCostCalculator()
    scenario_fin = calculator.calculate_financials(scenario_data)
    live_fin = calculator.calculate_financials(live_data)
    return compare_financial_analyses(scenario_fin, live_fin, scenario_id, scenario_data)


def compare_financial_analyses(
    scenario_fin: FinancialAnalysis,
    live_fin: FinancialAnalysis,
    scenario_id: str,
    scenario_data=None,
) -> ScenarioFinancialComparison:
    """Compare two precomputed financial analyses."""
    team_ids = list(dict.fromkeys(
        [tc.team_id for tc in live_fin.team_costs] + [tc.team_id for tc in scenario_fin.team_costs]
    ))

    team_changes = []
    for team_id in team_ids:
        live_team = live_fin.team_cost(team_id)
        scenario_team = scenario_fin.team_cost(team_id)
        live_cost = live_team.total_cost if live_team else 0.0
        scenario_cost = scenario_team.total_cost if scenario_team else 0.0
        if live_cost <= 0 and scenario_cost <= 0:
            continue
        difference = scenario_cost - live_cost
        team_changes.append(TeamCostChange(
            team_id=team_id,
            team_name=(scenario_team or live_team).team_name,
            live_cost=live_cost,
            scenario_cost=scenario_cost,
            difference=difference,
            percentage_change=difference / live_cost * 100 if live_cost > 0 else 0.0,
        ))

    project_ids = list(dict.fromkeys(
        [pb.project_id for pb in live_fin.project_burn_analysis]
        + [pb.project_id for pb in scenario_fin.project_burn_analysis]
    ))

    project_changes = []
    for project_id in project_ids:
        live_project = live_fin.project_burn(project_id)
        scenario_project = scenario_fin.project_burn(project_id)
        live_burn = live_project.burn_rate.per_quarter if live_project else 0.0
        scenario_burn = scenario_project.burn_rate.per_quarter if scenario_project else 0.0
        live_variance = live_project.budget_utilization.variance if live_project else 0.0
        scenario_variance = scenario_project.budget_utilization.variance if scenario_project else 0.0
        project_changes.append(ProjectBurnChange(
            project_id=project_id,
            project_name=(scenario_project or live_project).project_name,
            live_burn_rate=live_burn,
            scenario_burn_rate=scenario_burn,
            budget_impact=scenario_variance - live_variance,
            quarterly_variance=scenario_burn - live_burn,
        ))

    detailed = []
    for change in team_changes:
        if change.difference == 0:
            continue
        live_team = live_fin.team_cost(change.team_id)
        scenario_team = scenario_fin.team_cost(change.team_id)
        live_headcount = live_team.headcount if live_team else 0
        scenario_headcount = scenario_team.headcount if scenario_team else 0
        live_bd = live_team.cost_breakdown if live_team else TeamCostBreakdown()
        scenario_bd = scenario_team.cost_breakdown if scenario_team else TeamCostBreakdown()
        detailed.append(TeamCostDiff(
            team_id=change.team_id,
            team_name=change.team_name,
            live_headcount=live_headcount,
            scenario_headcount=scenario_headcount,
            headcount_change=scenario_headcount - live_headcount,
            live_cost_per_person=live_team.total_cost / live_headcount if live_headcount else 0.0,
            scenario_cost_per_person=(
                scenario_team.total_cost / scenario_headcount if scenario_headcount else 0.0
            ),
            cost_breakdown={
                "base_salaries_diff": scenario_bd.base_salaries - live_bd.base_salaries,
                "overhead_diff": scenario_bd.overhead - live_bd.overhead,
                "project_management_diff": scenario_bd.project_management - live_bd.project_management,
                "licensing_diff": scenario_bd.licensing - live_bd.licensing,
                "other_diff": scenario_bd.other - live_bd.other,
            },
            annual_impact=change.difference,
            quarterly_impact=change.difference / 4,
        ))

    return ScenarioFinancialComparison(
        scenario_id=scenario_id,
        summary=FinancialComparisonSummary(
            total_cost_difference=sum(tc.difference for tc in team_changes),
            total_budget_variance=sum(pb.budget_impact for pb in project_changes),
            team_cost_changes=len(team_changes),
            project_budget_changes=len(project_changes),
        ),
        team_cost_changes=team_changes,
        project_burn_changes=project_changes,
        quarterly_analysis=_quarterly_analysis(scenario_fin, live_fin, scenario_data),
        detailed_breakdown=detailed,
    )


def _quarterly_analysis(scenario_fin: FinancialAnalysis, live_fin: FinancialAnalysis, scenario_data):
    year = str(Date.today().year)
    scenario_totals = {(qt.quarter, qt.financial_year): qt for qt in scenario_fin.quarterly_totals}
    live_totals = {(qt.quarter, qt.financial_year): qt for qt in live_fin.quarterly_totals}
    project_ids = (
        [p.id for p in scenario_data.projects]
        if scenario_data is not None
        else [pb.project_id for pb in scenario_fin.project_burn_analysis]
    )

    # Burn is not quarter-specific, so the affected projects are the same in every quarter
    affected = []
    for project_id in project_ids:
        scenario_burn = scenario_fin.project_burn(project_id)
        live_burn = live_fin.project_burn(project_id)
        scenario_rate = scenario_burn.burn_rate.per_quarter if scenario_burn else 0.0
        live_rate = live_burn.burn_rate.per_quarter if live_burn else 0.0
        if scenario_rate != live_rate:
            affected.append(project_id)

    analysis = []
    for quarter in QUARTERS:
        scenario_qt = scenario_totals.get((quarter, year))
        live_qt = live_totals.get((quarter, year))
        live_cost = live_qt.total_team_costs if live_qt else 0.0
        scenario_cost = scenario_qt.total_team_costs if scenario_qt else 0.0
        analysis.append(QuarterlyAnalysis(
            quarter=quarter,
            financial_year=year,
            live_total_cost=live_cost,
            scenario_total_cost=scenario_cost,
            variance=scenario_cost - live_cost,
            affected_projects=list(affected),
        ))
    return analysis


def calculate_financial_impact(before: FinancialAnalysis, after: FinancialAnalysis) -> FinancialImpact:
    """Summarise how a change moved team costs and project budget variance.

    Args:
        before: Analysis of the data before the change
        after: Analysis of the data after the change

    Returns:
        FinancialImpact; affected projects are those present in both analyses
        whose quarterly burn or budget variance changed
    """
    team_cost_changes = 0.0
    for team_cost in after.team_costs:
        previous = before.team_cost(team_cost.team_id)
        team_cost_changes += team_cost.total_cost - (previous.total_cost if previous else 0.0)

    variance_changes = 0.0
    affected = []
    for burn in after.project_burn_analysis:
        previous = before.project_burn(burn.project_id)
        previous_variance = previous.budget_utilization.variance if previous else 0.0
        variance_changes += burn.budget_utilization.variance - previous_variance
        if previous is not None and (
            burn.burn_rate.per_quarter != previous.burn_rate.per_quarter
            or burn.budget_utilization.variance != previous.budget_utilization.variance
        ):
            affected.append(burn.project_id)

    return FinancialImpact(
        team_cost_changes=team_cost_changes,
        budget_variance_changes=variance_changes,
        affected_projects=affected,
    )
