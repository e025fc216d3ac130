"""Data models for capacity planning entities."""

from .base import PlanningEntity
from .organization import (
    Division,
    Team,
    Role,
    RateType,
    Person,
    EmploymentType,
    ContractDetails,
)
from .work import (
    Project,
    ProjectStatus,
    Epic,
    Cycle,
    CycleType,
    RunWorkCategory,
    Release,
    Goal,
)
from .allocation import Allocation, ActualAllocation, IterationReview
from .skill import (
    Skill,
    PersonSkill,
    ProjectSkill,
    ProficiencyLevel,
    SkillImportance,
    PROFICIENCY_RANK,
)

__all__ = [
    "PlanningEntity",
    # Organisation
    "Division",
    "Team",
    "Role",
    "RateType",
    "Person",
    "EmploymentType",
    "ContractDetails",
    # Work
    "Project",
    "ProjectStatus",
    "Epic",
    "Cycle",
    "CycleType",
    "RunWorkCategory",
    "Release",
    "Goal",
    # Allocation
    "Allocation",
    "ActualAllocation",
    "IterationReview",
    # Skills
    "Skill",
    "PersonSkill",
    "ProjectSkill",
    "ProficiencyLevel",
    "SkillImportance",
    "PROFICIENCY_RANK",
]
