"""Scenario snapshot: the complete set of planning entities at a point in time."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type
from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import UnknownEntityTypeError
from ..models import (
    Person,
    Team,
    Division,
    Role,
    Project,
    Epic,
    Cycle,
    Release,
    RunWorkCategory,
    Goal,
    Allocation,
    ActualAllocation,
    Skill,
    PersonSkill,
    ProjectSkill,
)


# Collection name -> model used to validate records in that collection
ENTITY_MODELS: Dict[str, Type[BaseModel]] = {
    "people": Person,
    "teams": Team,
    "divisions": Division,
    "roles": Role,
    "projects": Project,
    "epics": Epic,
    "cycles": Cycle,
    "releases": Release,
    "run_work_categories": RunWorkCategory,
    "goals": Goal,
    "allocations": Allocation,
    "actual_allocations": ActualAllocation,
    "skills": Skill,
    "person_skills": PersonSkill,
    "project_skills": ProjectSkill,
}


class ScenarioData(BaseModel):
    """
    A snapshot of every planning collection.

    Live data and scenario data share this shape, so the diff engine,
    template engine and financial calculations accept either.

    Attributes:
        people, teams, divisions, roles: Organisation
        projects, epics, cycles, releases, run_work_categories, goals: Work
        allocations, actual_allocations: Capacity assignment
        skills, person_skills, project_skills: Skills for team matching
        config: Free-form settings carried with the snapshot
    """
    model_config = ConfigDict(extra="forbid")

    people: List[Person] = Field(default_factory=list)
    teams: List[Team] = Field(default_factory=list)
    divisions: List[Division] = Field(default_factory=list)
    roles: List[Role] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    epics: List[Epic] = Field(default_factory=list)
    cycles: List[Cycle] = Field(default_factory=list)
    releases: List[Release] = Field(default_factory=list)
    run_work_categories: List[RunWorkCategory] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)
    allocations: List[Allocation] = Field(default_factory=list)
    actual_allocations: List[ActualAllocation] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    person_skills: List[PersonSkill] = Field(default_factory=list)
    project_skills: List[ProjectSkill] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)

    def clone(self) -> "ScenarioData":
        """Deep copy; mutating the copy never affects this snapshot."""
        return self.model_copy(deep=True)

    def entity_collection(self, entity_type: str) -> List[Any]:
        """
        Get the list backing a collection.

        Args:
            entity_type: Collection name (e.g. "projects")

        Returns:
            The live list; mutations are visible on the snapshot

        Raises:
            UnknownEntityTypeError: If the collection does not exist
        """
        if entity_type not in ENTITY_MODELS:
            raise UnknownEntityTypeError(f"Unknown entity type: {entity_type}")
        return getattr(self, entity_type)

    def get_by_id(self, entity_type: str, entity_id: str):
        """Find an entity by id within a collection (None if absent)."""
        for entity in self.entity_collection(entity_type):
            if getattr(entity, "id", None) == entity_id:
                return entity
        return None

    def counts(self) -> Dict[str, int]:
        """Number of records per collection."""
        return {name: len(getattr(self, name)) for name in ENTITY_MODELS}

    def __str__(self) -> str:
        """String representation."""
        counts = self.counts()
        return (
            f"ScenarioData({counts['people']} people, {counts['teams']} teams, "
            f"{counts['projects']} projects, {counts['epics']} epics, "
            f"{counts['allocations']} allocations)"
        )


class ModificationType(str, Enum):
    """Kind of change recorded against a scenario."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class FieldChange(BaseModel):
    """Old and new value of one field."""
    field: str
    old_value: Any = None
    new_value: Any = None


class ScenarioModification(BaseModel):
    """
    One recorded change to a scenario's data.

    Attributes:
        id: Unique identifier
        timestamp: When the change was made
        type: create, update or delete
        entity_type: Collection name of the changed entity
        entity_id: Changed entity id
        entity_name: Changed entity name, when it has one
        description: Human-readable summary
        changes: Per-field old/new values
    """
    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.now)
    type: ModificationType
    entity_type: str
    entity_id: str
    entity_name: Optional[str] = None
    description: str = ""
    changes: List[FieldChange] = Field(default_factory=list)


class ScenarioMetadata(BaseModel):
    """Bookkeeping about a scenario's origin and use."""
    created_from_live_state: bool = True
    live_state_snapshot_date: datetime = Field(default_factory=datetime.now)
    total_modifications: int = 0
    last_access_date: datetime = Field(default_factory=datetime.now)


class Scenario(BaseModel):
    """
    A named, expiring snapshot of planning data used for what-if analysis.

    Attributes:
        id: Unique identifier (UUID)
        name: User-provided name
        description: Optional notes
        created_date: Creation timestamp
        last_modified: Last modification timestamp
        expires_at: After this time the scenario is removed by cleanup
        template_id: Template the scenario was created from
        template_name: Name of that template
        data: The snapshot
        modifications: Changes applied since the snapshot was taken
        metadata: Origin and usage bookkeeping
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: Optional[str] = None
    created_date: datetime = Field(default_factory=datetime.now)
    last_modified: datetime = Field(default_factory=datetime.now)
    expires_at: datetime
    template_id: Optional[str] = None
    template_name: Optional[str] = None
    data: ScenarioData = Field(default_factory=ScenarioData)
    modifications: List[ScenarioModification] = Field(default_factory=list)
    metadata: ScenarioMetadata = Field(default_factory=ScenarioMetadata)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether the scenario expired before ``now``."""
        return self.expires_at < (now or datetime.now())

    def to_dict(self) -> dict:
        """Convert scenario to a JSON-compatible dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> "Scenario":
        """Create scenario from dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation."""
        return (
            f"Scenario '{self.name}' ({self.id[:8]}) - "
            f"{len(self.modifications)} modifications, expires {self.expires_at:%Y-%m-%d}"
        )
