"""Configuration for financial calculations and scenario storage.

Working-time constants drive every cost rate in ``capacity_planning.costs``.
Scenario settings control storage location, expiry and the thresholds used
when grading the impact of scenario changes.
"""

import os
from typing import Optional
from pydantic import BaseModel, Field


class FinancialConstants(BaseModel):
    """Constants used for team cost rates and project burn.

    Attributes:
        working_hours_per_week: Hours per person-week used for team hourly cost
        weeks_per_iteration: Length of one planning iteration in weeks
        weeks_per_quarter: Length of one quarter in weeks
        weeks_per_year: Working weeks per year
        default_overhead_multiplier: Salary multiplier covering benefits/overhead
        default_project_management_rate: Fraction of salary added for PM overhead
        default_salary: Annual salary for roles without cost configuration
        default_licensing_per_person: Annual licensing for roles without configuration
    """
    working_hours_per_week: float = Field(default=40.0, gt=0)
    weeks_per_iteration: float = Field(default=2.0, gt=0)
    weeks_per_quarter: float = Field(default=13.0, gt=0)
    weeks_per_year: float = Field(default=52.0, gt=0)
    default_overhead_multiplier: float = Field(default=1.4, ge=1.0)
    default_project_management_rate: float = Field(default=0.1, ge=0)
    default_salary: float = Field(default=80000.0, ge=0)
    default_licensing_per_person: float = Field(default=4000.0, ge=0)

    @property
    def iterations_per_quarter(self) -> float:
        """Number of iterations in one quarter."""
        return self.weeks_per_quarter / self.weeks_per_iteration


class ScenarioSettings(BaseModel):
    """Scenario store behaviour.

    Attributes:
        storage_dir: Directory for scenario JSON files
        expiry_days: Days until a new scenario expires
        budget_high_threshold: Budget delta above which a change is high impact
        budget_medium_threshold: Budget delta above which a change is medium impact
        capacity_high_threshold: Capacity delta (hours) above which a change is high impact
        capacity_medium_threshold: Capacity delta (hours) above which a change is medium impact
        timeline_high_days: Date shift (days) above which a change is high impact
        timeline_medium_days: Date shift (days) above which a change is medium impact
        high_impact_count: More high-impact changes than this make the scenario high impact
        medium_impact_count: More high-impact changes than this make the scenario medium impact
    """
    storage_dir: str = ".scenarios"
    expiry_days: int = Field(default=60, ge=1)
    budget_high_threshold: float = 100000.0
    budget_medium_threshold: float = 50000.0
    capacity_high_threshold: float = 20.0
    capacity_medium_threshold: float = 10.0
    timeline_high_days: int = 30
    timeline_medium_days: int = 7
    high_impact_count: int = 5
    medium_impact_count: int = 2


class PlanningConfig(BaseModel):
    """Top-level configuration for person cost rates and scenario handling.

    The first group of fields mirrors the per-person rate configuration
    (hours per day, days per week, and so on) used when converting salaries
    and contract rates into hourly/daily/monthly figures.

    Example:
        >>> config = PlanningConfig(currency_symbol="€")
        >>> config.work_hours_per_day
        8.0
    """
    work_hours_per_day: float = Field(default=8.0, gt=0)
    work_days_per_week: float = Field(default=5.0, gt=0)
    work_days_per_month: float = Field(default=22.0, gt=0)
    work_days_per_year: float = Field(default=260.0, gt=0)
    currency_symbol: str = "$"
    financial: FinancialConstants = Field(default_factory=FinancialConstants)
    scenarios: ScenarioSettings = Field(default_factory=ScenarioSettings)

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "PlanningConfig":
        """Build a configuration, overriding scenario settings from the environment.

        Reads ``PLANNING_SCENARIO_DIR`` and ``PLANNING_SCENARIO_EXPIRY_DAYS``.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            PlanningConfig instance
        """
        env = os.environ if environ is None else environ
        scenario_kwargs = {}
        if env.get("PLANNING_SCENARIO_DIR"):
            scenario_kwargs["storage_dir"] = env["PLANNING_SCENARIO_DIR"]
        if env.get("PLANNING_SCENARIO_EXPIRY_DAYS"):
            scenario_kwargs["expiry_days"] = int(env["PLANNING_SCENARIO_EXPIRY_DAYS"])
        return cls(scenarios=ScenarioSettings(**scenario_kwargs))


DEFAULT_CONFIG = PlanningConfig()
FINANCIAL_CONSTANTS = DEFAULT_CONFIG.financial
