"""Cost breakdown data models.

Data classes representing person, team and project costs and their
live-versus-scenario comparison, for analysis and reporting.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class PersonCostCalculation:
    """
    Cost rates for one person derived from salary or contract rate.

    Attributes:
        person_id: Person the rates apply to
        cost_per_hour: Hourly cost
        cost_per_day: Hourly cost times working hours per day
        cost_per_week: Daily cost times working days per week
        cost_per_month: Daily cost times working days per month
        cost_per_year: Daily cost times working days per year
        rate_source: "personal", "role-default" or "legacy-fallback"
        effective_rate: The rate the hourly cost was derived from
        rate_type: "hourly", "daily" or "annual"
    """
    person_id: str
    cost_per_hour: float = 0.0
    cost_per_day: float = 0.0
    cost_per_week: float = 0.0
    cost_per_month: float = 0.0
    cost_per_year: float = 0.0
    rate_source: str = "legacy-fallback"
    effective_rate: float = 0.0
    rate_type: str = "hourly"

    def __str__(self) -> str:
        """String representation."""
        return (
            f"{self.person_id}: ${self.cost_per_hour:,.2f}/h, ${self.cost_per_year:,.2f}/year "
            f"({self.rate_source}, {self.rate_type})"
        )


@dataclass
class RateValidation:
    """Result of checking that a person has usable rate information."""
    is_valid: bool = True
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


@dataclass
class ProjectAllocationCost:
    """Cost of one allocation attributed to one person."""
    allocation_id: str
    cycle_name: str
    percentage: float
    cost: float


@dataclass
class PersonProjectCost:
    """A person's share of a project's cost."""
    person_id: str
    person_name: str
    total_cost: float = 0.0
    allocations: List[ProjectAllocationCost] = field(default_factory=list)
    rate_source: str = "legacy-fallback"
    effective_rate: float = 0.0
    rate_type: str = "hourly"


@dataclass
class ProjectCostCalculation:
    """
    Project cost derived from epic allocations and people's rates.

    Attributes:
        total_cost: Sum of allocation costs
        breakdown: Per-person cost entries
        team_breakdown: Per-team totals, highest first
        monthly_burn_rate: Cost per working month over the project duration
        total_duration_in_days: Days between first cycle start and last cycle end
    """
    total_cost: float = 0.0
    breakdown: List[PersonProjectCost] = field(default_factory=list)
    team_breakdown: List[Dict[str, float]] = field(default_factory=list)
    monthly_burn_rate: float = 0.0
    total_duration_in_days: int = 0

    def __str__(self) -> str:
        """String representation."""
        return (
            f"Project Cost: ${self.total_cost:,.2f} over {self.total_duration_in_days} days "
            f"(${self.monthly_burn_rate:,.2f}/month)"
        )


@dataclass
class TeamCostBreakdown:
    """Annual team cost split by component."""
    base_salaries: float = 0.0
    overhead: float = 0.0
    project_management: float = 0.0
    licensing: float = 0.0
    other: float = 0.0

    @property
    def total(self) -> float:
        """Sum of all components."""
        return (
            self.base_salaries + self.overhead + self.project_management
            + self.licensing + self.other
        )


@dataclass
class TeamCostCalculation:
    """
    Fully loaded annual cost of a team and the rates derived from it.

    Attributes:
        team_id: Team ID
        team_name: Team name
        total_cost: Annual cost including overhead and additional costs
        cost_breakdown: Components of total_cost
        cost_per_hour: Annual cost over annual working hours
        cost_per_iteration: Annual cost per week times weeks per iteration
        cost_per_quarter: Annual cost per week times weeks per quarter
        headcount: Active people in the team
        average_role_rate: Average base salary
    """
    team_id: str
    team_name: str
    total_cost: float = 0.0
    cost_breakdown: TeamCostBreakdown = field(default_factory=TeamCostBreakdown)
    cost_per_hour: float = 0.0
    cost_per_iteration: float = 0.0
    cost_per_quarter: float = 0.0
    headcount: int = 0
    average_role_rate: float = 0.0

    def __str__(self) -> str:
        """String representation."""
        return (
            f"{self.team_name}: ${self.total_cost:,.2f}/year "
            f"({self.headcount} people, ${self.cost_per_quarter:,.2f}/quarter)"
        )


@dataclass
class TeamAllocationDetail:
    """A team's allocated share of a project."""
    team_id: str
    team_name: str
    allocated_percentage: float
    allocated_cost: float
    burn_rate: float


@dataclass
class BurnRate:
    """Project spend rates."""
    per_iteration: float = 0.0
    per_quarter: float = 0.0
    projected: float = 0.0


@dataclass
class BudgetUtilization:
    """How much of a project's budget the allocated team cost consumes."""
    percentage: float = 0.0
    remaining: float = 0.0
    over_budget: bool = False
    variance: float = 0.0


@dataclass
class ProjectBurnAnalysis:
    """
    Quarterly burn of a project based on team allocations.

    Attributes:
        project_id: Project ID
        project_name: Project name
        financial_year: Label of the financial year analysed
        quarter: Label of the quarter analysed
        total_budget: Project budget (0 when unset)
        allocated_team_costs: Quarterly cost of allocated team capacity
        burn_rate: Per-iteration, per-quarter and projected spend
        budget_utilization: Budget usage and variance
        team_allocations: Teams contributing to the project
    """
    project_id: str
    project_name: str
    financial_year: str = "Current"
    quarter: str = "Current"
    total_budget: float = 0.0
    allocated_team_costs: float = 0.0
    burn_rate: BurnRate = field(default_factory=BurnRate)
    budget_utilization: BudgetUtilization = field(default_factory=BudgetUtilization)
    team_allocations: List[TeamAllocationDetail] = field(default_factory=list)

    def __str__(self) -> str:
        """String representation."""
        status = "OVER BUDGET" if self.budget_utilization.over_budget else "within budget"
        return (
            f"{self.project_name}: ${self.burn_rate.per_quarter:,.2f}/quarter against "
            f"${self.total_budget:,.2f} budget ({status})"
        )


@dataclass
class QuarterlyTotals:
    """Team cost and project budget totals for one quarter."""
    quarter: str
    financial_year: str
    total_team_costs: float = 0.0
    total_project_budgets: float = 0.0
    utilization: float = 0.0


@dataclass
class FinancialAnalysis:
    """Team costs, project burn and quarterly totals for one snapshot."""
    team_costs: List[TeamCostCalculation] = field(default_factory=list)
    project_burn_analysis: List[ProjectBurnAnalysis] = field(default_factory=list)
    quarterly_totals: List[QuarterlyTotals] = field(default_factory=list)

    def team_cost(self, team_id: str) -> Optional[TeamCostCalculation]:
        """Find the cost entry of a team."""
        for team_cost in self.team_costs:
            if team_cost.team_id == team_id:
                return team_cost
        return None

    def project_burn(self, project_id: str) -> Optional[ProjectBurnAnalysis]:
        """Find the burn entry of a project."""
        for burn in self.project_burn_analysis:
            if burn.project_id == project_id:
                return burn
        return None

    @property
    def total_team_cost(self) -> float:
        """Sum of annual team costs."""
        return sum(tc.total_cost for tc in self.team_costs)


@dataclass
class FinancialImpact:
    """Financial effect of applying a template."""
    team_cost_changes: float = 0.0
    budget_variance_changes: float = 0.0
    affected_projects: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        """String representation."""
        return (
            f"Team cost change: ${self.team_cost_changes:+,.2f}, "
            f"budget variance change: ${self.budget_variance_changes:+,.2f}, "
            f"{len(self.affected_projects)} projects affected"
        )


@dataclass
class TeamCostChange:
    """Annual cost of a team in live data versus a scenario."""
    team_id: str
    team_name: str
    live_cost: float
    scenario_cost: float
    difference: float
    percentage_change: float


@dataclass
class ProjectBurnChange:
    """Quarterly burn of a project in live data versus a scenario."""
    project_id: str
    project_name: str
    live_burn_rate: float
    scenario_burn_rate: float
    budget_impact: float
    quarterly_variance: float


@dataclass
class QuarterlyAnalysis:
    """Quarter-level team cost variance between live data and a scenario."""
    quarter: str
    financial_year: str
    live_total_cost: float
    scenario_total_cost: float
    variance: float
    affected_projects: List[str] = field(default_factory=list)


@dataclass
class TeamCostDiff:
    """Detailed cost difference for a team whose cost changed."""
    team_id: str
    team_name: str
    live_headcount: int
    scenario_headcount: int
    headcount_change: int
    live_cost_per_person: float
    scenario_cost_per_person: float
    cost_breakdown: Dict[str, float] = field(default_factory=dict)
    annual_impact: float = 0.0
    quarterly_impact: float = 0.0


@dataclass
class FinancialComparisonSummary:
    """Totals of a financial comparison."""
    total_cost_difference: float = 0.0
    total_budget_variance: float = 0.0
    team_cost_changes: int = 0
    project_budget_changes: int = 0


@dataclass
class ScenarioFinancialComparison:
    """
    Financial comparison of a scenario against live data.

    Attributes:
        scenario_id: Scenario compared
        compared_at: When the comparison ran
        summary: Totals
        team_cost_changes: Per-team annual cost changes
        project_burn_changes: Per-project burn changes
        quarterly_analysis: Q1 to Q4 team cost variance
        detailed_breakdown: Component-level diffs for teams whose cost changed
    """
    scenario_id: str
    compared_at: datetime = field(default_factory=datetime.now)
    summary: FinancialComparisonSummary = field(default_factory=FinancialComparisonSummary)
    team_cost_changes: List[TeamCostChange] = field(default_factory=list)
    project_burn_changes: List[ProjectBurnChange] = field(default_factory=list)
    quarterly_analysis: List[QuarterlyAnalysis] = field(default_factory=list)
    detailed_breakdown: List[TeamCostDiff] = field(default_factory=list)

    def __str__(self) -> str:
        """String representation."""
        return (
            f"Scenario {self.scenario_id}: team cost {self.summary.total_cost_difference:+,.2f}, "
            f"budget variance {self.summary.total_budget_variance:+,.2f}"
        )
