"""Allocation data models for planned and actual capacity assignment."""

from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Allocation(BaseModel):
    """
    A percentage of a team's capacity assigned to an epic or run-work category
    within one iteration of a quarter.

    Attributes:
        id: Unique identifier
        team_id: Team whose capacity is allocated
        cycle_id: Quarter the allocation belongs to
        iteration_number: Iteration within the quarter (1-based)
        epic_id: Target epic, for project work
        run_work_category_id: Target category, for run work
        project_id: Direct project allocation without an epic
        percentage: Share of the team's capacity (0-100)
        notes: Free-form notes
    """
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Unique identifier")
    team_id: str = Field(..., description="Team ID")
    cycle_id: str = Field(..., description="Quarter cycle ID")
    iteration_number: int = Field(default=1, ge=1)
    epic_id: Optional[str] = None
    run_work_category_id: Optional[str] = None
    project_id: Optional[str] = None
    percentage: float = Field(..., description="Allocated percentage of team capacity")
    notes: str = ""

    @property
    def is_run_work(self) -> bool:
        """True when the allocation targets a run-work category."""
        return self.run_work_category_id is not None and self.epic_id is None

    def __str__(self) -> str:
        """String representation."""
        target = self.epic_id or self.run_work_category_id or self.project_id or "unassigned"
        return (
            f"{self.team_id} -> {target}: {self.percentage:.0f}% "
            f"({self.cycle_id} iteration {self.iteration_number})"
        )


class ActualAllocation(BaseModel):
    """
    Capacity actually spent by a team in an iteration, recorded for variance tracking.

    Attributes:
        id: Unique identifier
        team_id: Team ID
        cycle_id: Quarter cycle ID
        iteration_number: Iteration within the quarter
        actual_percentage: Share of capacity actually spent
        actual_epic_id: Epic worked on
        actual_run_work_category_id: Run-work category worked on
        variance_reason: Explanation when actual differs from plan
        entered_date: When the actual was recorded
    """
    model_config = ConfigDict(extra="allow")

    id: str
    team_id: str
    cycle_id: str
    iteration_number: int = Field(default=1, ge=1)
    actual_percentage: float
    actual_epic_id: Optional[str] = None
    actual_run_work_category_id: Optional[str] = None
    variance_reason: Optional[str] = None
    entered_date: datetime = Field(default_factory=datetime.now)

    @model_validator(mode='after')
    def validate_target(self):
        """An actual allocation records at most one target."""
        if self.actual_epic_id and self.actual_run_work_category_id:
            raise ValueError(
                f"Actual allocation {self.id} references both an epic and a run work category"
            )
        return self


class IterationReview(BaseModel):
    """
    Outcome of an iteration: status plus the epics and milestones completed in it.

    Attributes:
        id: Unique identifier
        cycle_id: Quarter cycle ID
        iteration_number: Iteration within the quarter
        review_date: Day of the review
        status: Review status, e.g. not-started, in-progress, completed
        completed_epics: IDs of epics finished in the iteration
        completed_milestones: IDs of projects whose milestone was reached
        notes: Free-form notes
        completed_by: Who recorded the review
    """
    model_config = ConfigDict(extra="allow")

    id: str
    cycle_id: str
    iteration_number: int = Field(default=1, ge=1)
    review_date: date = Field(default_factory=date.today)
    status: str = "not-started"
    completed_epics: List[str] = Field(default_factory=list)
    completed_milestones: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    completed_by: str = "import"
