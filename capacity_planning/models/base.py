"""Shared base model for planning entities."""

from pydantic import BaseModel, ConfigDict, Field


class PlanningEntity(BaseModel):
    """
    Base for every record stored in a scenario snapshot.

    Extra fields are kept so that templates and imports can attach attributes
    the concrete model does not declare.

    Attributes:
        id: Unique identifier
        name: Human-readable name
    """
    model_config = ConfigDict(extra="allow", use_enum_values=True)

    id: str = Field(..., description="Unique identifier")
    name: str = Field(..., description="Display name")

    def __str__(self) -> str:
        """String representation."""
        return f"{self.name} ({self.id})"
