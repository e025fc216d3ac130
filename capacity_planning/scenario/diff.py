"""Scenario diff engine.

Compares a scenario snapshot with live data entity by entity and buckets
every difference into one of five categories: financial, resources,
timeline, scope and organizational. Each change carries an impact grade
used to rate the scenario as a whole.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config import ScenarioSettings
from .snapshot import ScenarioData


class ChangeCategory(str, Enum):
    """Bucket a scenario change is reported under."""
    FINANCIAL = "financial"
    RESOURCES = "resources"
    TIMELINE = "timeline"
    SCOPE = "scope"
    ORGANIZATIONAL = "organizational"


class ChangeType(str, Enum):
    """Whether an entity was added, removed or modified."""
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class ImpactLevel(str, Enum):
    """Severity of a change or of a scenario as a whole."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class ChangeDetail:
    """A field that differs between live and scenario."""
    field: str
    field_display_name: str
    old_value: Any
    new_value: Any
    formatted_old_value: str = ""
    formatted_new_value: str = ""


@dataclass
class ScenarioChange:
    """
    One difference between live data and a scenario.

    Attributes:
        id: Stable identifier, e.g. "project-budget-<project id>"
        category: Bucket the change is reported under
        entity_type: Collection of the changed entity
        entity_id: Changed entity id
        entity_name: Changed entity name
        change_type: added, removed or modified
        description: Human-readable summary
        impact: low, medium or high
        details: Differing fields
    """
    id: str
    category: ChangeCategory
    entity_type: str
    entity_id: str
    entity_name: str
    change_type: ChangeType
    description: str
    impact: ImpactLevel
    details: List[ChangeDetail] = field(default_factory=list)


@dataclass
class ProjectCostChange:
    """Budget difference of a project present in both snapshots."""
    project_id: str
    project_name: str
    cost_difference: float
    percentage_change: float


@dataclass
class TeamCapacityChange:
    """Capacity and allocation differences of a team."""
    team_id: str
    team_name: str
    capacity_difference: float = 0.0
    allocation_changes: int = 0


@dataclass
class PeopleChanges:
    """People added to, removed from, or moved between teams."""
    added: int = 0
    removed: int = 0
    reallocated: int = 0


@dataclass
class ProjectDateChange:
    """Shift of a project's start and end dates, in days."""
    project_id: str
    project_name: str
    start_date_change: int = 0
    end_date_change: int = 0
    old_start_date: Optional[date] = None
    new_start_date: Optional[date] = None
    old_end_date: Optional[date] = None
    new_end_date: Optional[date] = None


@dataclass
class ComparisonSummary:
    """Change counts and overall impact."""
    total_changes: int = 0
    categorized_changes: Dict[str, int] = field(default_factory=dict)
    impact_level: ImpactLevel = ImpactLevel.LOW


@dataclass
class FinancialImpactSummary:
    """Budget effect of a scenario."""
    total_cost_difference: float = 0.0
    budget_variance: float = 0.0
    project_cost_changes: List[ProjectCostChange] = field(default_factory=list)


@dataclass
class ResourceImpact:
    """Capacity and people effect of a scenario."""
    team_capacity_changes: List[TeamCapacityChange] = field(default_factory=list)
    people_changes: PeopleChanges = field(default_factory=PeopleChanges)


@dataclass
class TimelineImpact:
    """Schedule effect of a scenario."""
    project_date_changes: List[ProjectDateChange] = field(default_factory=list)


@dataclass
class ScenarioComparison:
    """
    Result of comparing a scenario with live data.

    Attributes:
        scenario_id: Scenario compared
        scenario_name: Its name
        compared_at: When the comparison ran
        summary: Change counts per category and overall impact level
        changes: Every individual change
        financial_impact: Project budget differences
        resource_impact: Team capacity and people differences
        timeline_impact: Project date shifts
    """
    scenario_id: str
    scenario_name: str
    compared_at: datetime = field(default_factory=datetime.now)
    summary: ComparisonSummary = field(default_factory=ComparisonSummary)
    changes: List[ScenarioChange] = field(default_factory=list)
    financial_impact: FinancialImpactSummary = field(default_factory=FinancialImpactSummary)
    resource_impact: ResourceImpact = field(default_factory=ResourceImpact)
    timeline_impact: TimelineImpact = field(default_factory=TimelineImpact)

    def changes_in(self, category: ChangeCategory) -> List[ScenarioChange]:
        """Changes reported under one category."""
        category = ChangeCategory(category)
        return [c for c in self.changes if c.category == category]

    def __str__(self) -> str:
        """String representation."""
        counts = ", ".join(f"{k}: {v}" for k, v in self.summary.categorized_changes.items())
        return (
            f"Comparison of '{self.scenario_name}': {self.summary.total_changes} changes "
            f"({counts}), impact {self.summary.impact_level.value}"
        )


def _format_amount(value: Optional[float]) -> str:
    if value is None:
        return "0"
    if float(value).is_integer():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


def _format_hours(value: float) -> str:
    return f"{value:g}h"


def _grade(magnitude: float, high: float, medium: float) -> ImpactLevel:
    if magnitude > high:
        return ImpactLevel.HIGH
    if magnitude > medium:
        return ImpactLevel.MEDIUM
    return ImpactLevel.LOW


def _day_shift(old: Optional[date], new: Optional[date]) -> int:
    if old is None or new is None:
        return 0
    return (new - old).days


class ScenarioDiffEngine:
    """
    Compares scenario data with live data.

    Thresholds for impact grading come from ScenarioSettings.

    Example:
        engine = ScenarioDiffEngine()
        comparison = engine.compare(live_data, scenario.data, scenario.id, scenario.name)
        print(comparison.summary.categorized_changes)
    """

    def __init__(self, settings: Optional[ScenarioSettings] = None):
        """
        Initialize the diff engine.

        Args:
            settings: Impact thresholds (defaults to ScenarioSettings())
        """
        self.settings = settings or ScenarioSettings()

    def compare(
        self,
        live: ScenarioData,
        scenario: ScenarioData,
        scenario_id: str,
        scenario_name: str,
    ) -> ScenarioComparison:
        """
        Compare a scenario snapshot with live data.

        Args:
            live: Current live data
            scenario: Scenario snapshot
            scenario_id: Scenario id recorded on the result
            scenario_name: Scenario name recorded on the result

        Returns:
            ScenarioComparison
        """
        changes: List[ScenarioChange] = []
        cost_changes: List[ProjectCostChange] = []
        date_changes: List[ProjectDateChange] = []
        team_changes: Dict[str, TeamCapacityChange] = {}

        self._compare_projects(live, scenario, changes, cost_changes, date_changes)
        self._compare_teams(live, scenario, changes, team_changes)
        self._compare_epics(live, scenario, changes)
        people_changes = self._compare_people(live, scenario, changes)
        self._compare_allocations(live, scenario, changes, team_changes)

        categorized = {category.value: 0 for category in ChangeCategory}
        for change in changes:
            categorized[change.category.value] += 1

        high_count = sum(1 for c in changes if c.impact == ImpactLevel.HIGH)
        if high_count > self.settings.high_impact_count:
            impact_level = ImpactLevel.HIGH
        elif high_count > self.settings.medium_impact_count:
            impact_level = ImpactLevel.MEDIUM
        else:
            impact_level = ImpactLevel.LOW

        total_cost_difference = sum(c.cost_difference for c in cost_changes)

        return ScenarioComparison(
            scenario_id=scenario_id,
            scenario_name=scenario_name,
            summary=ComparisonSummary(
                total_changes=len(changes),
                categorized_changes=categorized,
                impact_level=impact_level,
            ),
            changes=changes,
            financial_impact=FinancialImpactSummary(
                total_cost_difference=total_cost_difference,
                budget_variance=total_cost_difference,
                project_cost_changes=cost_changes,
            ),
            resource_impact=ResourceImpact(
                team_capacity_changes=list(team_changes.values()),
                people_changes=people_changes,
            ),
            timeline_impact=TimelineImpact(project_date_changes=date_changes),
        )

    def _compare_projects(self, live, scenario, changes, cost_changes, date_changes) -> None:
        live_projects = {p.id: p for p in live.projects}
        scenario_ids = {p.id for p in scenario.projects}

        for project in scenario.projects:
            live_project = live_projects.get(project.id)
            if live_project is None:
                changes.append(ScenarioChange(
                    id=f"project-added-{project.id}",
                    category=ChangeCategory.SCOPE,
                    entity_type="projects",
                    entity_id=project.id,
                    entity_name=project.name,
                    change_type=ChangeType.ADDED,
                    description=f'New project "{project.name}" added',
                    impact=ImpactLevel.MEDIUM,
                ))
                continue

            if live_project.budget != project.budget:
                difference = (project.budget or 0) - (live_project.budget or 0)
                cost_changes.append(ProjectCostChange(
                    project_id=project.id,
                    project_name=project.name,
                    cost_difference=difference,
                    percentage_change=difference / live_project.budget * 100 if live_project.budget else 0.0,
                ))
                changes.append(ScenarioChange(
                    id=f"project-budget-{project.id}",
                    category=ChangeCategory.FINANCIAL,
                    entity_type="projects",
                    entity_id=project.id,
                    entity_name=project.name,
                    change_type=ChangeType.MODIFIED,
                    description=(
                        f"Budget changed from {_format_amount(live_project.budget)} "
                        f"to {_format_amount(project.budget)}"
                    ),
                    impact=_grade(
                        abs(difference),
                        self.settings.budget_high_threshold,
                        self.settings.budget_medium_threshold,
                    ),
                    details=[ChangeDetail(
                        field="budget",
                        field_display_name="Budget",
                        old_value=live_project.budget,
                        new_value=project.budget,
                        formatted_old_value=_format_amount(live_project.budget),
                        formatted_new_value=_format_amount(project.budget),
                    )],
                ))

            start_shift = _day_shift(live_project.start_date, project.start_date)
            end_shift = _day_shift(live_project.end_date, project.end_date)
            dates_differ = (
                live_project.start_date != project.start_date
                or live_project.end_date != project.end_date
            )
            if dates_differ:
                date_changes.append(ProjectDateChange(
                    project_id=project.id,
                    project_name=project.name,
                    start_date_change=start_shift,
                    end_date_change=end_shift,
                    old_start_date=live_project.start_date,
                    new_start_date=project.start_date,
                    old_end_date=live_project.end_date,
                    new_end_date=project.end_date,
                ))
                details = []
                for attr, label in (("start_date", "Start Date"), ("end_date", "End Date")):
                    old_value, new_value = getattr(live_project, attr), getattr(project, attr)
                    if old_value != new_value:
                        details.append(ChangeDetail(
                            field=attr,
                            field_display_name=label,
                            old_value=old_value,
                            new_value=new_value,
                            formatted_old_value=str(old_value or ""),
                            formatted_new_value=str(new_value or ""),
                        ))
                shift = max(abs(start_shift), abs(end_shift))
                changes.append(ScenarioChange(
                    id=f"project-dates-{project.id}",
                    category=ChangeCategory.TIMELINE,
                    entity_type="projects",
                    entity_id=project.id,
                    entity_name=project.name,
                    change_type=ChangeType.MODIFIED,
                    description=f"Project dates shifted by {end_shift or start_shift} days",
                    impact=_grade(shift, self.settings.timeline_high_days, self.settings.timeline_medium_days),
                    details=details,
                ))

        for project in live.projects:
            if project.id not in scenario_ids:
                changes.append(ScenarioChange(
                    id=f"project-removed-{project.id}",
                    category=ChangeCategory.SCOPE,
                    entity_type="projects",
                    entity_id=project.id,
                    entity_name=project.name,
                    change_type=ChangeType.REMOVED,
                    description=f'Project "{project.name}" removed',
                    impact=ImpactLevel.HIGH,
                ))

    def _compare_teams(self, live, scenario, changes, team_changes) -> None:
        live_teams = {t.id: t for t in live.teams}
        scenario_ids = {t.id for t in scenario.teams}

        for team in scenario.teams:
            live_team = live_teams.get(team.id)
            if live_team is None:
                changes.append(ScenarioChange(
                    id=f"team-added-{team.id}",
                    category=ChangeCategory.ORGANIZATIONAL,
                    entity_type="teams",
                    entity_id=team.id,
                    entity_name=team.name,
                    change_type=ChangeType.ADDED,
                    description=f'New team "{team.name}" added',
                    impact=ImpactLevel.MEDIUM,
                ))
                continue

            if live_team.capacity != team.capacity:
                difference = team.capacity - live_team.capacity
                team_changes[team.id] = TeamCapacityChange(
                    team_id=team.id,
                    team_name=team.name,
                    capacity_difference=difference,
                )
                changes.append(ScenarioChange(
                    id=f"team-capacity-{team.id}",
                    category=ChangeCategory.RESOURCES,
                    entity_type="teams",
                    entity_id=team.id,
                    entity_name=team.name,
                    change_type=ChangeType.MODIFIED,
                    description=(
                        f"Team capacity changed from {_format_hours(live_team.capacity)} "
                        f"to {_format_hours(team.capacity)}"
                    ),
                    impact=_grade(
                        abs(difference),
                        self.settings.capacity_high_threshold,
                        self.settings.capacity_medium_threshold,
                    ),
                    details=[ChangeDetail(
                        field="capacity",
                        field_display_name="Capacity",
                        old_value=live_team.capacity,
                        new_value=team.capacity,
                        formatted_old_value=_format_hours(live_team.capacity),
                        formatted_new_value=_format_hours(team.capacity),
                    )],
                ))

            if live_team.division_id != team.division_id:
                changes.append(ScenarioChange(
                    id=f"team-division-{team.id}",
                    category=ChangeCategory.ORGANIZATIONAL,
                    entity_type="teams",
                    entity_id=team.id,
                    entity_name=team.name,
                    change_type=ChangeType.MODIFIED,
                    description=f'Team "{team.name}" moved to another division',
                    impact=ImpactLevel.LOW,
                    details=[ChangeDetail(
                        field="division_id",
                        field_display_name="Division",
                        old_value=live_team.division_id,
                        new_value=team.division_id,
                        formatted_old_value=live_team.division_id or "",
                        formatted_new_value=team.division_id or "",
                    )],
                ))

        for team in live.teams:
            if team.id not in scenario_ids:
                changes.append(ScenarioChange(
                    id=f"team-removed-{team.id}",
                    category=ChangeCategory.ORGANIZATIONAL,
                    entity_type="teams",
                    entity_id=team.id,
                    entity_name=team.name,
                    change_type=ChangeType.REMOVED,
                    description=f'Team "{team.name}" removed',
                    impact=ImpactLevel.HIGH,
                ))

    def _compare_epics(self, live, scenario, changes) -> None:
        live_epics = {e.id: e for e in live.epics}
        scenario_ids = {e.id for e in scenario.epics}

        for epic in scenario.epics:
            live_epic = live_epics.get(epic.id)
            if live_epic is None:
                changes.append(ScenarioChange(
                    id=f"epic-added-{epic.id}",
                    category=ChangeCategory.SCOPE,
                    entity_type="epics",
                    entity_id=epic.id,
                    entity_name=epic.name,
                    change_type=ChangeType.ADDED,
                    description=f'New epic "{epic.name}" added',
                    impact=ImpactLevel.MEDIUM,
                ))
                continue

            if live_epic.status != epic.status:
                changes.append(ScenarioChange(
                    id=f"epic-status-{epic.id}",
                    category=ChangeCategory.SCOPE,
                    entity_type="epics",
                    entity_id=epic.id,
                    entity_name=epic.name,
                    change_type=ChangeType.MODIFIED,
                    description=f"Epic status changed from {live_epic.status} to {epic.status}",
                    impact=ImpactLevel.LOW,
                    details=[ChangeDetail(
                        field="status",
                        field_display_name="Status",
                        old_value=live_epic.status,
                        new_value=epic.status,
                        formatted_old_value=str(live_epic.status),
                        formatted_new_value=str(epic.status),
                    )],
                ))

            if live_epic.target_date != epic.target_date:
                shift = _day_shift(live_epic.target_date, epic.target_date)
                changes.append(ScenarioChange(
                    id=f"epic-target-{epic.id}",
                    category=ChangeCategory.TIMELINE,
                    entity_type="epics",
                    entity_id=epic.id,
                    entity_name=epic.name,
                    change_type=ChangeType.MODIFIED,
                    description=f"Epic target date shifted by {shift} days",
                    impact=_grade(abs(shift), self.settings.timeline_high_days, self.settings.timeline_medium_days),
                    details=[ChangeDetail(
                        field="target_date",
                        field_display_name="Target Date",
                        old_value=live_epic.target_date,
                        new_value=epic.target_date,
                        formatted_old_value=str(live_epic.target_date or ""),
                        formatted_new_value=str(epic.target_date or ""),
                    )],
                ))

        for epic in live.epics:
            if epic.id not in scenario_ids:
                changes.append(ScenarioChange(
                    id=f"epic-removed-{epic.id}",
                    category=ChangeCategory.SCOPE,
                    entity_type="epics",
                    entity_id=epic.id,
                    entity_name=epic.name,
                    change_type=ChangeType.REMOVED,
                    description=f'Epic "{epic.name}" removed',
                    impact=ImpactLevel.HIGH,
                ))

    def _compare_people(self, live, scenario, changes) -> PeopleChanges:
        live_people = {p.id: p for p in live.people}
        scenario_people = {p.id: p for p in scenario.people}
        result = PeopleChanges()

        for person_id, person in scenario_people.items():
            live_person = live_people.get(person_id)
            if live_person is None:
                result.added += 1
                changes.append(ScenarioChange(
                    id=f"person-added-{person_id}",
                    category=ChangeCategory.RESOURCES,
                    entity_type="people",
                    entity_id=person_id,
                    entity_name=person.name,
                    change_type=ChangeType.ADDED,
                    description=f'New person "{person.name}" added',
                    impact=ImpactLevel.LOW,
                ))
            elif live_person.team_id != person.team_id:
                result.reallocated += 1
                changes.append(ScenarioChange(
                    id=f"person-team-{person_id}",
                    category=ChangeCategory.RESOURCES,
                    entity_type="people",
                    entity_id=person_id,
                    entity_name=person.name,
                    change_type=ChangeType.MODIFIED,
                    description=f"{person.name} moved from team {live_person.team_id} to {person.team_id}",
                    impact=ImpactLevel.LOW,
                    details=[ChangeDetail(
                        field="team_id",
                        field_display_name="Team",
                        old_value=live_person.team_id,
                        new_value=person.team_id,
                        formatted_old_value=live_person.team_id,
                        formatted_new_value=person.team_id,
                    )],
                ))

        for person_id, person in live_people.items():
            if person_id not in scenario_people:
                result.removed += 1
                changes.append(ScenarioChange(
                    id=f"person-removed-{person_id}",
                    category=ChangeCategory.RESOURCES,
                    entity_type="people",
                    entity_id=person_id,
                    entity_name=person.name,
                    change_type=ChangeType.REMOVED,
                    description=f'Person "{person.name}" removed',
                    impact=ImpactLevel.LOW,
                ))

        return result

    def _compare_allocations(self, live, scenario, changes, team_changes) -> None:
        live_allocations = {a.id: a for a in live.allocations}
        scenario_allocations = {a.id: a for a in scenario.allocations}
        team_names = {t.id: t.name for t in live.teams}
        team_names.update({t.id: t.name for t in scenario.teams})
        per_team: Dict[str, int] = defaultdict(int)

        def target(allocation) -> str:
            return allocation.epic_id or allocation.run_work_category_id or allocation.project_id or "unassigned"

        def impact_for(percentage: float) -> ImpactLevel:
            return ImpactLevel.MEDIUM if abs(percentage) >= 50 else ImpactLevel.LOW

        for allocation_id, allocation in scenario_allocations.items():
            team_name = team_names.get(allocation.team_id, allocation.team_id)
            live_allocation = live_allocations.get(allocation_id)
            if live_allocation is None:
                per_team[allocation.team_id] += 1
                changes.append(ScenarioChange(
                    id=f"allocation-added-{allocation_id}",
                    category=ChangeCategory.RESOURCES,
                    entity_type="allocations",
                    entity_id=allocation_id,
                    entity_name=team_name,
                    change_type=ChangeType.ADDED,
                    description=f"{team_name} allocated {allocation.percentage:g}% to {target(allocation)}",
                    impact=impact_for(allocation.percentage),
                ))
                continue

            details = []
            for attr, label in (
                ("team_id", "Team"),
                ("percentage", "Percentage"),
                ("epic_id", "Epic"),
                ("run_work_category_id", "Run Work Category"),
                ("iteration_number", "Iteration"),
            ):
                old_value, new_value = getattr(live_allocation, attr), getattr(allocation, attr)
                if old_value != new_value:
                    details.append(ChangeDetail(
                        field=attr,
                        field_display_name=label,
                        old_value=old_value,
                        new_value=new_value,
                        formatted_old_value="" if old_value is None else str(old_value),
                        formatted_new_value="" if new_value is None else str(new_value),
                    ))
            if details:
                per_team[allocation.team_id] += 1
                # A move between teams changes both teams
                if live_allocation.team_id != allocation.team_id:
                    per_team[live_allocation.team_id] += 1
                delta = allocation.percentage - live_allocation.percentage
                changes.append(ScenarioChange(
                    id=f"allocation-modified-{allocation_id}",
                    category=ChangeCategory.RESOURCES,
                    entity_type="allocations",
                    entity_id=allocation_id,
                    entity_name=team_name,
                    change_type=ChangeType.MODIFIED,
                    description=(
                        f"{team_name} allocation to {target(allocation)} changed from "
                        f"{live_allocation.percentage:g}% to {allocation.percentage:g}%"
                    ),
                    impact=impact_for(delta),
                    details=details,
                ))

        for allocation_id, allocation in live_allocations.items():
            if allocation_id not in scenario_allocations:
                team_name = team_names.get(allocation.team_id, allocation.team_id)
                per_team[allocation.team_id] += 1
                changes.append(ScenarioChange(
                    id=f"allocation-removed-{allocation_id}",
                    category=ChangeCategory.RESOURCES,
                    entity_type="allocations",
                    entity_id=allocation_id,
                    entity_name=team_name,
                    change_type=ChangeType.REMOVED,
                    description=f"{team_name} allocation of {allocation.percentage:g}% to {target(allocation)} removed",
                    impact=impact_for(allocation.percentage),
                ))

        for team_id, count in per_team.items():
            entry = team_changes.get(team_id)
            if entry is None:
                entry = TeamCapacityChange(team_id=team_id, team_name=team_names.get(team_id, team_id))
                team_changes[team_id] = entry
            entry.allocation_changes = count


def compare_scenario_data(
    live: ScenarioData,
    scenario: ScenarioData,
    scenario_id: str,
    scenario_name: str,
    settings: Optional[ScenarioSettings] = None,
) -> ScenarioComparison:
    """Compare a scenario snapshot with live data using default thresholds."""
    return ScenarioDiffEngine(settings).compare(live, scenario, scenario_id, scenario_name)
