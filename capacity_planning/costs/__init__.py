"""Cost calculation module.

This module provides financial calculations for capacity planning:
- Person cost rates from salaries and contract rates
- Team period costs, allocation costs and project costs
- Fully loaded team costs and project burn analysis
- Live versus scenario financial comparison

Key components:
- CostBreakdown: Data models for cost results
- PersonCostCalculator: Person, allocation and project costs from individual rates
- TeamCostCalculator: Team costs, project burn and quarterly totals from role averages
- compare_scenario_financials: Scenario versus live comparison
"""

from .cost_breakdown import (
    PersonCostCalculation,
    RateValidation,
    ProjectCostCalculation,
    TeamCostBreakdown,
    TeamCostCalculation,
    ProjectBurnAnalysis,
    QuarterlyTotals,
    FinancialAnalysis,
    FinancialImpact,
    ScenarioFinancialComparison,
)
from .person_cost_calculator import PersonCostCalculator
from .team_cost_calculator import (
    TeamCostCalculator,
    RoleCostConfig,
    TeamCostConfig,
    AdditionalCosts,
    DEFAULT_ROLE_COSTS,
)
from .scenario_financials import (
    compare_scenario_financials,
    compare_financial_analyses,
    calculate_financial_impact,
)

__all__ = [
    "PersonCostCalculation",
    "RateValidation",
    "ProjectCostCalculation",
    "TeamCostBreakdown",
    "TeamCostCalculation",
    "ProjectBurnAnalysis",
    "QuarterlyTotals",
    "FinancialAnalysis",
    "FinancialImpact",
    "ScenarioFinancialComparison",
    "PersonCostCalculator",
    "TeamCostCalculator",
    "RoleCostConfig",
    "TeamCostConfig",
    "AdditionalCosts",
    "DEFAULT_ROLE_COSTS",
    "compare_scenario_financials",
    "compare_financial_analyses",
    "calculate_financial_impact",
]
