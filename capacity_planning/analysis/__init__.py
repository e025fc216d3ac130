"""Analysis of planning data: team/project matching."""

from .team_matching import (
    SkillGap,
    SkillMatchDetail,
    TeamAvailabilityAnalysis,
    TeamMatch,
    analyze_project_team_availability,
    find_active_cycle,
)

__all__ = [
    "SkillGap",
    "SkillMatchDetail",
    "TeamAvailabilityAnalysis",
    "TeamMatch",
    "analyze_project_team_availability",
    "find_active_cycle",
]
