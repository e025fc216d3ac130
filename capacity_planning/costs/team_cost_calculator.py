"""Team cost and project burn calculator.

Team costs are fully loaded annual figures built from role salary averages,
overhead, project management share, licensing and team-specific additional
costs. Project burn spreads those team costs over allocations.
"""

import logging
from datetime import date as Date
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from ..config import FinancialConstants, FINANCIAL_CONSTANTS
from ..models import Allocation, Epic, Person, Project, Role, Team
from .cost_breakdown import (
    BudgetUtilization,
    BurnRate,
    FinancialAnalysis,
    ProjectBurnAnalysis,
    QuarterlyTotals,
    TeamAllocationDetail,
    TeamCostBreakdown,
    TeamCostCalculation,
)

logger = logging.getLogger(__name__)

QUARTERS = ["Q1", "Q2", "Q3", "Q4"]


class RoleCostConfig(BaseModel):
    """
    Average annual cost assumptions for a role.

    Attributes:
        role_id: Role the assumptions apply to
        role_name: Display name
        average_salary: Average base salary
        overhead_multiplier: Salary multiplier for benefits and overhead
        project_management_rate: Fraction of salary added for project management
        licensing_cost_per_person: Annual tooling/licensing cost
    """
    role_id: str
    role_name: str = ""
    average_salary: float = Field(..., ge=0)
    overhead_multiplier: float = Field(default=1.4, ge=1.0)
    project_management_rate: float = Field(default=0.1, ge=0)
    licensing_cost_per_person: float = Field(default=0.0, ge=0)


class AdditionalCosts(BaseModel):
    """Team-level annual costs not tied to headcount."""
    equipment: float = 0.0
    training: float = 0.0
    other: float = 0.0


class TeamCostConfig(BaseModel):
    """Per-team overrides for cost calculation."""
    team_id: str
    custom_overhead_multiplier: Optional[float] = None
    additional_costs: Optional[AdditionalCosts] = None


DEFAULT_ROLE_COSTS: List[RoleCostConfig] = [
    RoleCostConfig(role_id="senior-engineer", role_name="Senior Engineer", average_salary=120000,
                   overhead_multiplier=1.4, project_management_rate=0.1, licensing_cost_per_person=5000),
    RoleCostConfig(role_id="mid-engineer", role_name="Mid-Level Engineer", average_salary=90000,
                   overhead_multiplier=1.4, project_management_rate=0.1, licensing_cost_per_person=4000),
    RoleCostConfig(role_id="junior-engineer", role_name="Junior Engineer", average_salary=65000,
                   overhead_multiplier=1.4, project_management_rate=0.05, licensing_cost_per_person=3000),
    RoleCostConfig(role_id="tech-lead", role_name="Technical Lead", average_salary=140000,
                   overhead_multiplier=1.45, project_management_rate=0.2, licensing_cost_per_person=6000),
    RoleCostConfig(role_id="architect", role_name="Solutions Architect", average_salary=150000,
                   overhead_multiplier=1.45, project_management_rate=0.15, licensing_cost_per_person=7000),
    RoleCostConfig(role_id="product-manager", role_name="Product Manager", average_salary=110000,
                   overhead_multiplier=1.35, project_management_rate=0.3, licensing_cost_per_person=4500),
    RoleCostConfig(role_id="designer", role_name="UX/UI Designer", average_salary=85000,
                   overhead_multiplier=1.35, project_management_rate=0.1, licensing_cost_per_person=8000),
    RoleCostConfig(role_id="qa-engineer", role_name="QA Engineer", average_salary=75000,
                   overhead_multiplier=1.4, project_management_rate=0.1, licensing_cost_per_person=3500),
    RoleCostConfig(role_id="devops-engineer", role_name="DevOps Engineer", average_salary=115000,
                   overhead_multiplier=1.4, project_management_rate=0.1, licensing_cost_per_person=6500),
    RoleCostConfig(role_id="scrum-master", role_name="Scrum Master", average_salary=95000,
                   overhead_multiplier=1.35, project_management_rate=0.5, licensing_cost_per_person=2000),
]


class TeamCostCalculator:
    """
    Calculates team costs, project burn and quarterly totals.

    Example:
        calculator = TeamCostCalculator()
        analysis = calculator.calculate_financials(scenario_data)
        for team_cost in analysis.team_costs:
            print(team_cost)
    """

    def __init__(
        self,
        role_cost_config: Optional[List[RoleCostConfig]] = None,
        team_cost_config: Optional[List[TeamCostConfig]] = None,
        constants: Optional[FinancialConstants] = None,
    ):
        """
        Initialize team cost calculator.

        Args:
            role_cost_config: Per-role cost assumptions (default: DEFAULT_ROLE_COSTS)
            team_cost_config: Per-team overrides
            constants: Working-time constants
        """
        self.role_cost_config = list(role_cost_config) if role_cost_config is not None else DEFAULT_ROLE_COSTS
        self.team_cost_config = list(team_cost_config or [])
        self.constants = constants or FINANCIAL_CONSTANTS
        self._role_costs = {rc.role_id: rc for rc in self.role_cost_config}
        self._team_configs = {tc.team_id: tc for tc in self.team_cost_config}

    def _role_config(self, role_id: str, roles_by_id: Dict[str, Role]) -> RoleCostConfig:
        config = self._role_costs.get(role_id)
        if config is not None:
            return config
        role = roles_by_id.get(role_id)
        return RoleCostConfig(
            role_id=role_id,
            role_name=role.name if role else "Unknown Role",
            average_salary=self.constants.default_salary,
            overhead_multiplier=self.constants.default_overhead_multiplier,
            project_management_rate=self.constants.default_project_management_rate,
            licensing_cost_per_person=self.constants.default_licensing_per_person,
        )

    def calculate_team_costs(
        self,
        teams: List[Team],
        people: List[Person],
        roles: List[Role],
    ) -> List[TeamCostCalculation]:
        """
        Calculate the fully loaded annual cost of each team.

        Team membership is taken from active people's ``team_id``, so moving a
        person between teams in a scenario moves their cost.

        Args:
            teams: Teams to cost
            people: All people
            roles: Roles, used to name roles without cost configuration

        Returns:
            One TeamCostCalculation per team, in input order
        """
        roles_by_id = {role.id: role for role in roles}
        weeks_per_year = self.constants.weeks_per_year
        results = []

        for team in teams:
            team_config = self._team_configs.get(team.id)
            members = [p for p in people if p.team_id == team.id and p.is_active]
            breakdown = TeamCostBreakdown()

            for person in members:
                role_config = self._role_config(person.role_id, roles_by_id)
                salary = role_config.average_salary
                overhead_multiplier = (
                    team_config.custom_overhead_multiplier
                    if team_config and team_config.custom_overhead_multiplier
                    else role_config.overhead_multiplier
                )
                breakdown.base_salaries += salary
                breakdown.overhead += salary * (overhead_multiplier - 1)
                breakdown.project_management += salary * role_config.project_management_rate
                breakdown.licensing += role_config.licensing_cost_per_person

            if team_config and team_config.additional_costs:
                extra = team_config.additional_costs
                breakdown.other += extra.equipment + extra.training + extra.other

            total = breakdown.total
            headcount = len(members)
            results.append(TeamCostCalculation(
                team_id=team.id,
                team_name=team.name,
                total_cost=total,
                cost_breakdown=breakdown,
                cost_per_hour=total / (self.constants.working_hours_per_week * weeks_per_year),
                cost_per_iteration=total / weeks_per_year * self.constants.weeks_per_iteration,
                cost_per_quarter=total / weeks_per_year * self.constants.weeks_per_quarter,
                headcount=headcount,
                average_role_rate=breakdown.base_salaries / headcount if headcount > 0 else 0.0,
            ))

        return results

    def calculate_project_burn_analysis(
        self,
        projects: List[Project],
        allocations: List[Allocation],
        team_costs: List[TeamCostCalculation],
        epics: Optional[List[Epic]] = None,
        financial_year: Optional[str] = None,
        quarter: Optional[str] = None,
    ) -> List[ProjectBurnAnalysis]:
        """
        Calculate quarterly burn and budget utilisation per project.

        Allocations count toward a project when they reference it directly or
        reference one of its epics. A team's combined percentage on a project
        is capped at 100.

        Args:
            projects: Projects to analyse
            allocations: All allocations
            team_costs: Output of calculate_team_costs
            epics: Epics linking allocations to projects
            financial_year: Label recorded on the results
            quarter: Label recorded on the results

        Returns:
            One ProjectBurnAnalysis per project
        """
        if not allocations:
            logger.error(
                "No allocations provided for project burn analysis; "
                "all project burn rates will be zero despite teams having costs"
            )

        epics = epics or []
        results = []

        for project in projects:
            project_epic_ids = {e.id for e in epics if e.project_id == project.id}
            project_allocations = [
                a for a in allocations
                if a.project_id == project.id or (a.epic_id and a.epic_id in project_epic_ids)
            ]

            allocated_total = 0.0
            details = []
            for team_cost in team_costs:
                raw_pct = sum(a.percentage or 0 for a in project_allocations if a.team_id == team_cost.team_id)
                pct = min(raw_pct, 100.0)
                if pct <= 0:
                    continue
                allocated_cost = team_cost.cost_per_quarter * pct / 100
                allocated_total += allocated_cost
                details.append(TeamAllocationDetail(
                    team_id=team_cost.team_id,
                    team_name=team_cost.team_name,
                    allocated_percentage=pct,
                    allocated_cost=allocated_cost,
                    burn_rate=team_cost.cost_per_iteration * pct / 100,
                ))

            per_iteration = sum(d.burn_rate for d in details)
            budget = project.budget or 0.0
            results.append(ProjectBurnAnalysis(
                project_id=project.id,
                project_name=project.name,
                financial_year=financial_year or "Current",
                quarter=quarter or "Current",
                total_budget=budget,
                allocated_team_costs=allocated_total,
                burn_rate=BurnRate(
                    per_iteration=per_iteration,
                    per_quarter=allocated_total,
                    projected=per_iteration * self.constants.iterations_per_quarter,
                ),
                budget_utilization=BudgetUtilization(
                    percentage=allocated_total / budget * 100 if budget > 0 else 0.0,
                    remaining=budget - allocated_total,
                    over_budget=allocated_total > budget,
                    variance=allocated_total - budget,
                ),
                team_allocations=details,
            ))

        return results

    @staticmethod
    def generate_quarterly_totals(
        team_costs: List[TeamCostCalculation],
        project_burn: List[ProjectBurnAnalysis],
        financial_year: Optional[str] = None,
    ) -> List[QuarterlyTotals]:
        """
        Quarterly totals for Q1 to Q4.

        Team costs are annual, so every quarter carries the same values.
        """
        year = financial_year or str(Date.today().year)
        total_team_costs = sum(tc.cost_per_quarter for tc in team_costs)
        total_budgets = sum(pb.total_budget for pb in project_burn)
        utilization = total_team_costs / total_budgets * 100 if total_budgets > 0 else 0.0
        return [
            QuarterlyTotals(
                quarter=q,
                financial_year=year,
                total_team_costs=total_team_costs,
                total_project_budgets=total_budgets,
                utilization=utilization,
            )
            for q in QUARTERS
        ]

    def calculate_financials(self, data) -> FinancialAnalysis:
        """
        Full financial analysis of a snapshot.

        Args:
            data: ScenarioData (live or scenario)

        Returns:
            FinancialAnalysis with team costs, project burn and quarterly totals
        """
        team_costs = self.calculate_team_costs(data.teams, data.people, data.roles)
        project_burn = self.calculate_project_burn_analysis(
            data.projects, data.allocations, team_costs, epics=data.epics
        )
        return FinancialAnalysis(
            team_costs=team_costs,
            project_burn_analysis=project_burn,
            quarterly_totals=self.generate_quarterly_totals(team_costs, project_burn),
        )
