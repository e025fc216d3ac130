"""Skill data models used for team/project matching."""

from enum import Enum
from pydantic import BaseModel, ConfigDict

from .base import PlanningEntity


class ProficiencyLevel(str, Enum):
    """Proficiency of a person in a skill."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


PROFICIENCY_RANK = {
    ProficiencyLevel.BEGINNER.value: 1,
    ProficiencyLevel.INTERMEDIATE.value: 2,
    ProficiencyLevel.ADVANCED.value: 3,
    ProficiencyLevel.EXPERT.value: 4,
}


class SkillImportance(str, Enum):
    """How much a project depends on a skill."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Skill(PlanningEntity):
    """A named competency."""
    category: str = "other"


class PersonSkill(BaseModel):
    """A person's proficiency in a skill."""
    model_config = ConfigDict(extra="allow", use_enum_values=True)

    person_id: str
    skill_id: str
    proficiency_level: ProficiencyLevel = ProficiencyLevel.INTERMEDIATE


class ProjectSkill(BaseModel):
    """A skill a project requires."""
    model_config = ConfigDict(extra="allow", use_enum_values=True)

    project_id: str
    skill_id: str
    importance: SkillImportance = SkillImportance.MEDIUM
