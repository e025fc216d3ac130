"""Work data models: projects, epics, cycles, run work and goals."""

from datetime import date as Date
from enum import Enum
from typing import Optional
from pydantic import Field, model_validator

from .base import PlanningEntity


class ProjectStatus(str, Enum):
    """Lifecycle state of a project."""
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"
    CANCELLED = "cancelled"


class CycleType(str, Enum):
    """Granularity of a planning cycle."""
    ANNUAL = "annual"
    QUARTERLY = "quarterly"
    ITERATION = "iteration"


class Project(PlanningEntity):
    """
    A funded body of work made up of epics.

    Attributes:
        description: Optional notes
        status: Lifecycle state
        start_date: Planned start
        end_date: Planned end
        budget: Approved budget
        priority: Free-form priority label
    """
    description: str = ""
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    budget: Optional[float] = None
    priority: Optional[str] = None


class Epic(PlanningEntity):
    """
    A deliverable within a project that teams are allocated to.

    Attributes:
        project_id: Parent project (None for unassigned epics)
        description: Optional notes
        status: Free-form status
        effort: Estimated effort in story points
        target_date: Planned completion
    """
    project_id: Optional[str] = None
    description: str = ""
    status: str = "planning"
    effort: float = 0
    target_date: Optional[Date] = None


class Cycle(PlanningEntity):
    """
    A planning period: a quarter, or an iteration inside a quarter.

    Attributes:
        type: annual, quarterly or iteration
        start_date: First day of the period
        end_date: Last day of the period
        parent_cycle_id: Quarter owning an iteration
    """
    type: CycleType = CycleType.QUARTERLY
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    parent_cycle_id: Optional[str] = None

    @model_validator(mode='after')
    def validate_dates(self):
        """End date may not precede start date."""
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError(
                f"Cycle {self.id}: end_date {self.end_date} before start_date {self.start_date}"
            )
        return self

    def duration_days(self) -> int:
        """Days between start and end date (0 without dates)."""
        if self.start_date is None or self.end_date is None:
            return 0
        return (self.end_date - self.start_date).days

    def contains(self, day: Date) -> bool:
        """Whether ``day`` falls inside the cycle."""
        if self.start_date is None or self.end_date is None:
            return False
        return self.start_date <= day <= self.end_date


class RunWorkCategory(PlanningEntity):
    """Operational or maintenance work that is not tied to an epic."""
    description: Optional[str] = None
    color: Optional[str] = None


class Release(PlanningEntity):
    """A planned release grouping epics."""
    target_date: Optional[Date] = None
    status: Optional[str] = None


class Goal(PlanningEntity):
    """A strategic goal tracked alongside projects."""
    description: Optional[str] = None
    status: Optional[str] = None
    target_date: Optional[Date] = None
    cycle_id: Optional[str] = None
