"""Person, allocation and project cost calculator.

Converts salaries and contract rates into hourly/daily/monthly costs and
rolls them up into team period costs, allocation costs and project costs.
"""

import logging
import math
import re
from collections import defaultdict
from datetime import date as Date
from typing import Dict, List, Optional

from ..config import PlanningConfig, DEFAULT_CONFIG
from ..models import (
    Allocation,
    Cycle,
    CycleType,
    EmploymentType,
    Epic,
    Person,
    Project,
    Role,
    Team,
)
from .cost_breakdown import (
    PersonCostCalculation,
    PersonProjectCost,
    ProjectAllocationCost,
    ProjectCostCalculation,
    RateValidation,
)

logger = logging.getLogger(__name__)


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def _positive(value: Optional[float]) -> bool:
    return value is not None and value > 0


class PersonCostCalculator:
    """
    Calculates costs from individual rates.

    Rate priority for permanent staff: personal annual salary, then the role's
    default annual salary, then the role's legacy hourly rate. For contractors:
    personal hourly rate, personal daily rate, role default hourly rate, role
    default daily rate, then the legacy hourly rate.

    Example:
        calculator = PersonCostCalculator()
        cost = calculator.calculate_person_cost(person, role)
        print(cost.cost_per_day)
    """

    def __init__(self, config: Optional[PlanningConfig] = None):
        """
        Initialize person cost calculator.

        Args:
            config: Working-time configuration (defaults to 8h days, 260 days/year)
        """
        self.config = config or DEFAULT_CONFIG

    def calculate_person_cost(self, person: Person, role: Role) -> PersonCostCalculation:
        """
        Calculate a person's cost rates.

        Args:
            person: Person to cost
            role: The person's role, supplying default rates

        Returns:
            PersonCostCalculation with hourly through annual cost
        """
        hours_per_day = self.config.work_hours_per_day
        hours_per_year = self.config.work_days_per_year * hours_per_day

        cost_per_hour = 0.0
        rate_source = "legacy-fallback"
        effective_rate = 0.0
        rate_type = "hourly"

        if person.employment_type == EmploymentType.CONTRACTOR:
            contract = person.contract_details
            if contract is not None and _positive(contract.hourly_rate):
                cost_per_hour = contract.hourly_rate
                rate_source, effective_rate, rate_type = "personal", contract.hourly_rate, "hourly"
            elif contract is not None and _positive(contract.daily_rate):
                cost_per_hour = contract.daily_rate / hours_per_day
                rate_source, effective_rate, rate_type = "personal", contract.daily_rate, "daily"
            elif _positive(role.default_hourly_rate):
                cost_per_hour = role.default_hourly_rate
                rate_source, effective_rate, rate_type = "role-default", role.default_hourly_rate, "hourly"
            elif _positive(role.default_daily_rate):
                cost_per_hour = role.default_daily_rate / hours_per_day
                rate_source, effective_rate, rate_type = "role-default", role.default_daily_rate, "daily"
            elif _positive(role.default_rate):
                cost_per_hour = role.default_rate
                effective_rate = role.default_rate
        else:
            if _positive(person.annual_salary):
                cost_per_hour = person.annual_salary / hours_per_year
                rate_source, effective_rate, rate_type = "personal", person.annual_salary, "annual"
            elif _positive(role.default_annual_salary):
                cost_per_hour = role.default_annual_salary / hours_per_year
                rate_source, effective_rate, rate_type = "role-default", role.default_annual_salary, "annual"
            elif _positive(role.default_rate):
                cost_per_hour = role.default_rate
                effective_rate = role.default_rate

        cost_per_day = cost_per_hour * hours_per_day
        return PersonCostCalculation(
            person_id=person.id,
            cost_per_hour=cost_per_hour,
            cost_per_day=cost_per_day,
            cost_per_week=cost_per_day * self.config.work_days_per_week,
            cost_per_month=cost_per_day * self.config.work_days_per_month,
            cost_per_year=cost_per_day * self.config.work_days_per_year,
            rate_source=rate_source,
            effective_rate=effective_rate,
            rate_type=rate_type,
        )

    def _member_costs(self, members: List[Person], roles: List[Role]) -> List[PersonCostCalculation]:
        roles_by_id = {role.id: role for role in roles}
        costs = []
        for person in members:
            role = roles_by_id.get(person.role_id)
            if role is None:
                logger.warning(f"Role {person.role_id} not found for {person.name}; excluded from cost")
                continue
            costs.append(self.calculate_person_cost(person, role))
        return costs

    def calculate_team_weekly_cost(self, members: List[Person], roles: List[Role]) -> float:
        """Weekly cost of the given people (people without a known role are skipped)."""
        return sum(c.cost_per_week for c in self._member_costs(members, roles))

    def calculate_team_monthly_cost(self, members: List[Person], roles: List[Role]) -> float:
        """Monthly cost of the given people."""
        return sum(c.cost_per_month for c in self._member_costs(members, roles))

    def calculate_team_quarterly_cost(self, members: List[Person], roles: List[Role]) -> float:
        """Quarterly cost: three working months."""
        return self.calculate_team_monthly_cost(members, roles) * 3

    def calculate_team_annual_cost(self, members: List[Person], roles: List[Role]) -> float:
        """Annual cost of the given people."""
        return sum(c.cost_per_year for c in self._member_costs(members, roles))

    def calculate_allocation_cost(
        self,
        allocation: Allocation,
        cycle: Cycle,
        members: List[Person],
        roles: List[Role],
    ) -> float:
        """
        Cost of an allocation over one cycle.

        Each member contributes day cost × cycle length in days × percentage.

        Args:
            allocation: Allocation being costed
            cycle: Cycle providing the duration
            members: People in the allocated team
            roles: Roles for rate lookup

        Returns:
            Total allocation cost
        """
        days = cycle.duration_days()
        total = 0.0
        for cost in self._member_costs(members, roles):
            total += _finite(cost.cost_per_day * days * allocation.percentage / 100)
        return total

    def calculate_project_cost(
        self,
        project: Project,
        epics: List[Epic],
        allocations: List[Allocation],
        cycles: List[Cycle],
        people: List[Person],
        roles: List[Role],
        teams: List[Team],
    ) -> ProjectCostCalculation:
        """
        Cost of a project from allocations to its epics.

        Args:
            project: Project to cost
            epics: All epics (filtered to the project's)
            allocations: All allocations (filtered to the project's epics)
            cycles: Cycles giving allocation durations
            people: People, grouped into teams by team_id
            roles: Roles for rate lookup
            teams: Teams for the per-team breakdown

        Returns:
            ProjectCostCalculation with per-person and per-team breakdown
        """
        epic_ids = {epic.id for epic in epics if epic.project_id == project.id}
        project_allocations = [a for a in allocations if a.epic_id and a.epic_id in epic_ids]
        cycles_by_id = {cycle.id: cycle for cycle in cycles}
        roles_by_id = {role.id: role for role in roles}
        teams_by_id = {team.id: team for team in teams}

        total_cost = 0.0
        breakdown: Dict[str, PersonProjectCost] = {}
        team_totals: Dict[str, float] = defaultdict(float)
        min_start: Optional[Date] = None
        max_end: Optional[Date] = None

        for allocation in project_allocations:
            cycle = cycles_by_id.get(allocation.cycle_id)
            if cycle is None or cycle.start_date is None or cycle.end_date is None:
                continue

            if min_start is None or cycle.start_date < min_start:
                min_start = cycle.start_date
            if max_end is None or cycle.end_date > max_end:
                max_end = cycle.end_date

            members = [p for p in people if p.team_id == allocation.team_id and p.is_active]
            for person in members:
                role = roles_by_id.get(person.role_id)
                if role is None:
                    continue

                person_cost = self.calculate_person_cost(person, role)
                cost = _finite(person_cost.cost_per_day * cycle.duration_days() * allocation.percentage / 100)
                total_cost += cost

                entry = breakdown.get(person.id)
                if entry is None:
                    entry = PersonProjectCost(
                        person_id=person.id,
                        person_name=person.name,
                        rate_source=person_cost.rate_source,
                        effective_rate=person_cost.effective_rate,
                        rate_type=person_cost.rate_type,
                    )
                    breakdown[person.id] = entry
                entry.total_cost += cost
                entry.allocations.append(ProjectAllocationCost(
                    allocation_id=allocation.id,
                    cycle_name=cycle.name,
                    percentage=allocation.percentage,
                    cost=cost,
                ))

                if allocation.team_id in teams_by_id:
                    team_totals[allocation.team_id] += cost

        duration = (max_end - min_start).days if min_start and max_end else 0
        monthly_burn = total_cost / duration * self.config.work_days_per_month if duration > 0 else 0.0

        team_breakdown = sorted(
            (
                {"team_name": teams_by_id[team_id].name, "total_cost": team_cost}
                for team_id, team_cost in team_totals.items()
            ),
            key=lambda t: t["total_cost"],
            reverse=True,
        )

        return ProjectCostCalculation(
            total_cost=_finite(total_cost),
            breakdown=list(breakdown.values()),
            team_breakdown=team_breakdown,
            monthly_burn_rate=_finite(monthly_burn),
            total_duration_in_days=duration,
        )

    def calculate_project_cost_for_year(
        self,
        project: Project,
        epics: List[Epic],
        allocations: List[Allocation],
        cycles: List[Cycle],
        people: List[Person],
        roles: List[Role],
    ) -> Dict[str, object]:
        """
        Project cost per quarter, using iteration cycles for durations.

        An allocation's iteration number is matched against the trailing
        number of the quarter's iteration cycle names ("Q1 Iteration 3").

        Returns:
            Dict with ``total_annual_cost`` and ``quarterly_costs`` keyed by quarter name
        """
        epic_ids = {epic.id for epic in epics if epic.project_id == project.id}
        quarters = [c for c in cycles if c.type == CycleType.QUARTERLY]
        quarterly_costs: Dict[str, float] = {}

        for quarter in quarters:
            iterations = {}
            for cycle in cycles:
                if cycle.type == CycleType.ITERATION and cycle.parent_cycle_id == quarter.id:
                    match = re.search(r"\d+$", cycle.name)
                    if match:
                        iterations[int(match.group())] = cycle

            quarter_cost = 0.0
            for allocation in allocations:
                if allocation.cycle_id != quarter.id or allocation.epic_id not in epic_ids:
                    continue
                iteration = iterations.get(allocation.iteration_number)
                if iteration is None:
                    continue
                members = [p for p in people if p.team_id == allocation.team_id]
                quarter_cost += self.calculate_allocation_cost(allocation, iteration, members, roles)
            quarterly_costs[quarter.name] = quarter_cost

        return {
            "total_annual_cost": sum(quarterly_costs.values()),
            "quarterly_costs": quarterly_costs,
        }

    @staticmethod
    def validate_rate_configuration(person: Person, role: Role) -> RateValidation:
        """
        Check that a person's cost can be derived from some rate.

        Args:
            person: Person to check
            role: The person's role

        Returns:
            RateValidation with warnings and suggestions
        """
        result = RateValidation()

        if person.employment_type == EmploymentType.CONTRACTOR:
            contract = person.contract_details
            has_personal = contract is not None and (
                _positive(contract.hourly_rate) or _positive(contract.daily_rate)
            )
            has_role_default = _positive(role.default_hourly_rate) or _positive(role.default_daily_rate)
            if not has_personal and not has_role_default and not _positive(role.default_rate):
                result.warnings.append("No contractor rate information available")
                result.suggestions.append("Set either personal hourly/daily rate or role default rates")
                result.is_valid = False
        else:
            if not (
                _positive(person.annual_salary)
                or _positive(role.default_annual_salary)
                or _positive(role.default_rate)
            ):
                result.warnings.append("No salary information available")
                result.suggestions.append("Set either personal annual salary or role default salary")
                result.is_valid = False

        return result
