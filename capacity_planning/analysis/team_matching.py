"""Project/team matching by skills and current availability.

Scores every team against a project's required skills and its free capacity
in the active quarter, then lists skill gaps no team covers and suggests
next steps.
"""

import logging
from dataclasses import dataclass, field
from datetime import date as Date
from typing import Dict, List, Optional

import pandas as pd

from ..exceptions import EntityNotFoundError
from ..models import Allocation, Cycle, CycleType, Person, Team
from ..models.skill import PROFICIENCY_RANK, SkillImportance
from ..scenario.snapshot import ScenarioData

logger = logging.getLogger(__name__)

SKILL_WEIGHT = 0.7
AVAILABILITY_WEIGHT = 0.3


@dataclass
class SkillMatchDetail:
    """Whether a team covers one required skill."""
    skill_id: str
    skill_name: str
    has_skill: bool
    proficiency_level: Optional[str] = None
    person_ids: List[str] = field(default_factory=list)


@dataclass
class TeamMatch:
    """Score of one team against a project.

    Attributes:
        team_id: Team ID
        team_name: Team name
        skill_match_percentage: Share of required skills held by active members
        availability_percentage: 100 minus allocation in the active cycle, floored at 0
        overall_score: Weighted blend of skill match and availability
        skill_breakdown: Per-skill coverage
        conflicting_allocations: Allocations in the active cycle
        available_people: Active team members
        total_capacity: Weekly capacity in hours
        used_capacity: Allocated percentage in the active cycle
    """
    team_id: str
    team_name: str
    skill_match_percentage: float
    availability_percentage: float
    overall_score: float
    skill_breakdown: List[SkillMatchDetail] = field(default_factory=list)
    conflicting_allocations: List[Allocation] = field(default_factory=list)
    available_people: List[Person] = field(default_factory=list)
    total_capacity: float = 0.0
    used_capacity: float = 0.0

    def to_dict(self) -> Dict:
        """Convert to dictionary for DataFrame export."""
        return {
            'Team': self.team_name,
            'Skill Match %': round(self.skill_match_percentage, 1),
            'Availability %': round(self.availability_percentage, 1),
            'Overall Score': round(self.overall_score, 1),
            'Members': len(self.available_people),
            'Capacity (h/week)': self.total_capacity,
        }


@dataclass
class SkillGap:
    """A required skill no team has."""
    skill_id: str
    skill_name: str
    importance: str
    required: bool = True
    available_in_team: bool = False
    alternative_skills: List[str] = field(default_factory=list)


@dataclass
class TeamAvailabilityAnalysis:
    """Result of matching teams to a project."""
    project_id: str
    project_name: str
    required_skills: List[str]
    team_matches: List[TeamMatch]
    skill_gaps: List[SkillGap]
    recommended_actions: List[str]
    active_cycle_id: Optional[str] = None

    @property
    def best_match(self) -> Optional[TeamMatch]:
        """Highest scoring team, if any."""
        return self.team_matches[0] if self.team_matches else None

    def to_dataframe(self) -> pd.DataFrame:
        """Team matches as a table, best first."""
        return pd.DataFrame([m.to_dict() for m in self.team_matches])


def find_active_cycle(cycles: List[Cycle], today: Date) -> Optional[Cycle]:
    """Quarter containing ``today``, else any cycle containing it."""
    containing = [c for c in cycles if c.contains(today)]
    for cycle in containing:
        if cycle.type == CycleType.QUARTERLY.value:
            return cycle
    return containing[0] if containing else None


def _team_match(
    team: Team,
    required: List[Dict[str, str]],
    data: ScenarioData,
    skill_names: Dict[str, str],
    active_cycle: Optional[Cycle],
) -> TeamMatch:
    members = [p for p in data.people if p.team_id == team.id and p.is_active]
    member_ids = {p.id for p in members}

    # skill id -> best coverage across members
    coverage: Dict[str, SkillMatchDetail] = {}
    for person_skill in data.person_skills:
        if person_skill.person_id not in member_ids or person_skill.skill_id not in skill_names:
            continue
        detail = coverage.get(person_skill.skill_id)
        if detail is None:
            coverage[person_skill.skill_id] = SkillMatchDetail(
                skill_id=person_skill.skill_id,
                skill_name=skill_names[person_skill.skill_id],
                has_skill=True,
                proficiency_level=person_skill.proficiency_level,
                person_ids=[person_skill.person_id],
            )
            continue
        detail.person_ids.append(person_skill.person_id)
        if PROFICIENCY_RANK.get(person_skill.proficiency_level, 0) > PROFICIENCY_RANK.get(detail.proficiency_level, 0):
            detail.proficiency_level = person_skill.proficiency_level

    breakdown = []
    for req in required:
        covered = coverage.get(req['skill_id'])
        breakdown.append(SkillMatchDetail(
            skill_id=req['skill_id'],
            skill_name=skill_names.get(req['skill_id'], 'Unknown'),
            has_skill=covered is not None,
            proficiency_level=covered.proficiency_level if covered else None,
            person_ids=list(covered.person_ids) if covered else [],
        ))

    matched = sum(1 for b in breakdown if b.has_skill)
    skill_match = (matched / len(required)) * 100 if required else 100.0

    conflicting = []
    if active_cycle is not None:
        conflicting = [a for a in data.allocations if a.team_id == team.id and a.cycle_id == active_cycle.id]
    used = sum(a.percentage for a in conflicting)
    availability = max(0.0, 100.0 - used)

    return TeamMatch(
        team_id=team.id,
        team_name=team.name,
        skill_match_percentage=skill_match,
        availability_percentage=availability,
        overall_score=skill_match * SKILL_WEIGHT + availability * AVAILABILITY_WEIGHT,
        skill_breakdown=breakdown,
        conflicting_allocations=conflicting,
        available_people=members,
        total_capacity=team.capacity,
        used_capacity=used,
    )


def _skill_gaps(required: List[Dict[str, str]], matches: List[TeamMatch], skill_names: Dict[str, str]) -> List[SkillGap]:
    covered = {b.skill_id for m in matches for b in m.skill_breakdown if b.has_skill}
    return [
        SkillGap(
            skill_id=req['skill_id'],
            skill_name=skill_names.get(req['skill_id'], 'Unknown'),
            importance=req['importance'],
        )
        for req in required
        if req['skill_id'] not in covered
    ]


def _recommendations(matches: List[TeamMatch], gaps: List[SkillGap]) -> List[str]:
    recommendations = []

    if matches:
        best = matches[0]
        if best.overall_score > 70:
            recommendations.append(
                f"Consider {best.team_name} - excellent match ({round(best.overall_score)}% overall score)"
            )
        elif best.skill_match_percentage > 80 and best.availability_percentage < 30:
            recommendations.append(
                f"{best.team_name} has the right skills but limited availability. Consider adjusting timelines."
            )

    critical = [g.skill_name for g in gaps if g.importance == SkillImportance.CRITICAL.value]
    if critical:
        recommendations.append(
            f"Critical skill gaps identified: {', '.join(critical)}. Consider training or hiring."
        )

    busy = [m for m in matches if m.availability_percentage < 20]
    if busy:
        recommendations.append(
            f"High utilization detected in {len(busy)} teams. Consider resource balancing."
        )

    return recommendations


def analyze_project_team_availability(
    project_id: str,
    data: ScenarioData,
    today: Optional[Date] = None,
) -> TeamAvailabilityAnalysis:
    """Rank teams for a project by skill coverage and free capacity.

    Required skills are the project's ``project_skills`` entries whose skill
    exists. Skills held by inactive people do not count. Availability is
    measured against allocations in the cycle containing ``today``; with no
    such cycle every team is 100% available.

    Args:
        project_id: Project to staff
        data: Live or scenario snapshot
        today: Reference date (defaults to today)

    Returns:
        TeamAvailabilityAnalysis with teams sorted best first

    Raises:
        EntityNotFoundError: If the project does not exist

    Example:
        >>> analysis = analyze_project_team_availability("proj-1", live_data)
        >>> analysis.best_match.team_name
        'Frontend Team'
    """
    project = data.get_by_id("projects", project_id)
    if project is None:
        raise EntityNotFoundError(f"Project not found: {project_id}")

    today = today or Date.today()
    active_cycle = find_active_cycle(data.cycles, today)
    if active_cycle is None:
        logger.warning(f"No cycle contains {today}; treating all teams as fully available")

    skill_names = {s.id: s.name for s in data.skills}
    required = []
    seen = set()
    for project_skill in data.project_skills:
        if project_skill.project_id != project_id or project_skill.skill_id in seen:
            continue
        if project_skill.skill_id not in skill_names:
            logger.warning(f"Project {project_id} requires unknown skill {project_skill.skill_id}")
            continue
        seen.add(project_skill.skill_id)
        required.append({'skill_id': project_skill.skill_id, 'importance': project_skill.importance})

    matches = sorted(
        (_team_match(team, required, data, skill_names, active_cycle) for team in data.teams),
        key=lambda m: m.overall_score,
        reverse=True,
    )
    gaps = _skill_gaps(required, matches, skill_names)

    return TeamAvailabilityAnalysis(
        project_id=project_id,
        project_name=project.name,
        required_skills=[r['skill_id'] for r in required],
        team_matches=matches,
        skill_gaps=gaps,
        recommended_actions=_recommendations(matches, gaps),
        active_cycle_id=active_cycle.id if active_cycle else None,
    )
