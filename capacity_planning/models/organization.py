"""Organisation data models: divisions, teams, roles and people."""

from datetime import date as Date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .base import PlanningEntity


class EmploymentType(str, Enum):
    """How a person is employed."""
    PERMANENT = "permanent"
    CONTRACTOR = "contractor"


class RateType(str, Enum):
    """Billing basis of a role's default rate."""
    HOURLY = "hourly"
    DAILY = "daily"
    ANNUAL = "annual"


class Division(PlanningEntity):
    """
    A group of teams sharing a budget.

    Attributes:
        description: Optional notes
        budget: Optional annual budget
    """
    description: Optional[str] = None
    budget: Optional[float] = Field(None, description="Annual division budget")


class Team(PlanningEntity):
    """
    A delivery team whose capacity is allocated to work.

    Attributes:
        capacity: Weekly capacity in hours
        division_id: Owning division
        description: Optional notes
    """
    capacity: float = Field(default=40.0, description="Weekly capacity in hours", ge=0)
    division_id: Optional[str] = None
    description: Optional[str] = None

    def __str__(self) -> str:
        """String representation."""
        return f"{self.name} ({self.id}) - {self.capacity:.0f}h/week"


class Role(PlanningEntity):
    """
    A job role with default cost rates.

    ``default_rate`` is the legacy hourly rate kept for older data.
    """
    rate_type: RateType = RateType.HOURLY
    default_rate: Optional[float] = Field(None, ge=0)
    default_hourly_rate: Optional[float] = Field(None, ge=0)
    default_daily_rate: Optional[float] = Field(None, ge=0)
    default_annual_salary: Optional[float] = Field(None, ge=0)


class ContractDetails(BaseModel):
    """Contractor billing rates."""
    model_config = ConfigDict(extra="allow")

    hourly_rate: Optional[float] = Field(None, ge=0)
    daily_rate: Optional[float] = Field(None, ge=0)
    contract_end_date: Optional[Date] = None


class Person(PlanningEntity):
    """
    A team member.

    Attributes:
        email: Contact address
        role_id: Role determining default rates
        team_id: Team the person belongs to
        is_active: Inactive people are excluded from cost calculations
        employment_type: Permanent or contractor
        annual_salary: Salary for permanent staff
        contract_details: Rates for contractors
        start_date: First working day
        end_date: Last working day
    """
    email: str = ""
    role_id: str = ""
    team_id: str = ""
    is_active: bool = True
    employment_type: EmploymentType = EmploymentType.PERMANENT
    annual_salary: Optional[float] = Field(None, ge=0)
    contract_details: Optional[ContractDetails] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
