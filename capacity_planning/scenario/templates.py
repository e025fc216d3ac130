"""Scenario templates: parameterised bulk changes applied to a snapshot.

A template lists modifications (create/update/delete/bulk-update against a
collection) whose change values may contain ``{{parameter}}`` placeholders.
Parameters are validated and extended with derived multipliers before the
modification engine substitutes them.
"""

import logging
import re
from copy import deepcopy
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import TemplateParameterError

logger = logging.getLogger(__name__)


class TemplateCategory(str, Enum):
    """Grouping shown when choosing a template."""
    BUDGET = "budget"
    TEAM_CHANGES = "team-changes"
    PROJECT_TIMELINE = "project-timeline"
    RESOURCE_ALLOCATION = "resource-allocation"
    STRATEGIC_PLANNING = "strategic-planning"
    RISK_MITIGATION = "risk-mitigation"


class ParameterType(str, Enum):
    """Input type of a template parameter."""
    NUMBER = "number"
    PERCENTAGE = "percentage"
    TEXT = "text"
    DATE = "date"
    SELECT = "select"


class FilterOperator(str, Enum):
    """Comparison used to select entities."""
    EQUALS = "equals"
    NOT_EQUALS = "not-equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater-than"
    LESS_THAN = "less-than"
    IN_RANGE = "in-range"


class ModificationOperation(str, Enum):
    """What a template modification does to a collection."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    BULK_UPDATE = "bulk-update"


class ChangeOperation(str, Enum):
    """How a change combines with the current field value."""
    SET = "set"
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"


class TemplateFilter(BaseModel):
    """Selects entities whose ``field`` satisfies ``operator`` against ``value``."""
    model_config = ConfigDict(use_enum_values=True)

    field: str
    operator: FilterOperator
    value: Any = None
    second_value: Any = None


class TemplateChange(BaseModel):
    """A single field change; ``value`` may contain placeholders."""
    model_config = ConfigDict(use_enum_values=True)

    field: str
    operation: ChangeOperation = ChangeOperation.SET
    value: Any = None


class TemplateModification(BaseModel):
    """A change set applied to one collection."""
    model_config = ConfigDict(use_enum_values=True)

    entity_type: str
    operation: ModificationOperation
    filter: Optional[TemplateFilter] = None
    changes: List[TemplateChange] = Field(default_factory=list)


class RuleCondition(TemplateFilter):
    """Condition met when any entity in ``entity_type`` matches the filter."""
    entity_type: str


class ConditionalRule(BaseModel):
    """Modifications applied only when the condition is met."""
    condition: RuleCondition
    actions: List[TemplateModification] = Field(default_factory=list)


class TemplateParameter(BaseModel):
    """
    A user input consumed by a template.

    Attributes:
        id: Placeholder name used as ``{{id}}``
        name: Display name
        description: Help text
        type: number, percentage, text, date or select
        required: Whether a value must be supplied (or defaulted)
        default_value: Value used when nothing is supplied
        options: Allowed values for select parameters (empty = unrestricted)
        min: Lower bound for numeric parameters
        max: Upper bound for numeric parameters
        pattern: Regular expression text parameters must match
    """
    model_config = ConfigDict(use_enum_values=True)

    id: str
    name: str
    description: str = ""
    type: ParameterType = ParameterType.NUMBER
    required: bool = False
    default_value: Any = None
    options: List[Any] = Field(default_factory=list)
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None


class ScenarioTemplate(BaseModel):
    """
    A reusable what-if recipe.

    Attributes:
        id: Unique identifier
        name: Display name
        description: What the template does
        category: Grouping for selection
        modifications: Change sets applied in order
        parameters: Inputs the modifications reference
        conditional_logic: Rules evaluated after the modifications
        usage_count: Number of scenarios created from this template
        last_used: When the template was last used
    """
    model_config = ConfigDict(use_enum_values=True)

    id: str
    name: str
    description: str = ""
    category: TemplateCategory = TemplateCategory.STRATEGIC_PLANNING
    modifications: List[TemplateModification] = Field(default_factory=list)
    parameters: List[TemplateParameter] = Field(default_factory=list)
    conditional_logic: List[ConditionalRule] = Field(default_factory=list)
    usage_count: int = 0
    last_used: Optional[datetime] = None

    def get_parameter(self, parameter_id: str) -> Optional[TemplateParameter]:
        """Find a parameter definition by id."""
        for parameter in self.parameters:
            if parameter.id == parameter_id:
                return parameter
        return None

    def __str__(self) -> str:
        """String representation."""
        return (
            f"Template '{self.name}' ({self.id}) - {len(self.modifications)} modifications, "
            f"used {self.usage_count} times"
        )


# Derived parameter -> (source parameter, function of source value)
DERIVED_PARAMETERS = {
    "budget_multiplier": ("budget_reduction", lambda v: (100 - v) / 100),
    "capacity_multiplier": ("capacity_increase", lambda v: (100 + v) / 100),
    "remote_productivity_multiplier": ("productivity_change", lambda v: (100 + v) / 100),
    "learning_curve_multiplier": ("learning_curve_impact", lambda v: (100 - v) / 100),
    "risk_buffer_multiplier": ("risk_buffer", lambda v: (100 + v) / 100),
    "delay_days": ("delay_weeks", lambda v: v * 7),
}


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def resolve_parameters(
    template: ScenarioTemplate,
    supplied: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Validate supplied parameters and add defaults and derived values.

    Derived multipliers are computed from their source parameter whenever the
    source is present, overriding any default for the derived value.

    Args:
        template: Template whose parameters are resolved
        supplied: Parameter values keyed by parameter id

    Returns:
        Complete parameter mapping ready for placeholder substitution

    Raises:
        TemplateParameterError: If any parameter is missing or out of range

    Example:
        >>> params = resolve_parameters(budget_template, {"budget_reduction": 20})
        >>> params["budget_multiplier"]
        0.8
    """
    resolved = dict(supplied or {})
    errors = []

    for parameter in template.parameters:
        value = resolved.get(parameter.id)
        if _is_missing(value):
            if parameter.default_value is not None:
                resolved[parameter.id] = deepcopy(parameter.default_value)
                continue
            if parameter.required and parameter.id not in DERIVED_PARAMETERS:
                errors.append(f"{parameter.name} is required")
            continue

        if parameter.type in (ParameterType.NUMBER.value, ParameterType.PERCENTAGE.value):
            number = _as_number(value)
            if number is None:
                errors.append(f"{parameter.name} must be a number, got {value!r}")
                continue
            if parameter.min is not None and number < parameter.min:
                errors.append(f"{parameter.name} must be at least {parameter.min:g}")
            if parameter.max is not None and number > parameter.max:
                errors.append(f"{parameter.name} must be at most {parameter.max:g}")
            resolved[parameter.id] = number
        elif parameter.type == ParameterType.SELECT.value:
            if parameter.options and value not in parameter.options:
                errors.append(f"{parameter.name} must be one of {parameter.options}")
        elif parameter.type == ParameterType.TEXT.value:
            if parameter.pattern and not re.fullmatch(parameter.pattern, str(value)):
                errors.append(f"{parameter.name} does not match pattern {parameter.pattern}")

    if errors:
        raise TemplateParameterError(errors)

    for derived_id, (source_id, derive) in DERIVED_PARAMETERS.items():
        source = _as_number(resolved.get(source_id))
        if source is not None:
            resolved[derived_id] = derive(source)

    logger.debug(f"Resolved parameters for template {template.id}: {resolved}")
    return resolved


BUILTIN_TEMPLATES: List[ScenarioTemplate] = [
    ScenarioTemplate(
        id="budget-cut-10",
        name="Budget Reduction",
        description="Reduce project budgets by a specified percentage",
        category=TemplateCategory.BUDGET,
        modifications=[
            TemplateModification(
                entity_type="projects",
                operation=ModificationOperation.BULK_UPDATE,
                filter=TemplateFilter(field="budget", operator=FilterOperator.GREATER_THAN, value=0),
                changes=[
                    TemplateChange(
                        field="budget",
                        operation=ChangeOperation.MULTIPLY,
                        value="{{budget_multiplier}}",
                    ),
                ],
            ),
        ],
        parameters=[
            TemplateParameter(
                id="budget_reduction",
                name="Budget Reduction %",
                description="Percentage to reduce budgets by",
                type=ParameterType.PERCENTAGE,
                required=True,
                default_value=10,
                min=0,
                max=50,
            ),
            TemplateParameter(
                id="budget_multiplier",
                name="Budget Multiplier",
                description="Calculated from budget reduction",
                type=ParameterType.NUMBER,
                default_value=0.9,
            ),
        ],
    ),
    ScenarioTemplate(
        id="team-expansion",
        name="Team Expansion",
        description="Add new team members to specific teams",
        category=TemplateCategory.TEAM_CHANGES,
        modifications=[
            TemplateModification(
                entity_type="people",
                operation=ModificationOperation.CREATE,
                changes=[
                    TemplateChange(field="name", value="{{new_person_name}}"),
                    TemplateChange(field="team_id", value="{{target_team_id}}"),
                    TemplateChange(field="role_id", value="{{role_id}}"),
                ],
            ),
        ],
        parameters=[
            TemplateParameter(
                id="target_team_id",
                name="Target Team",
                description="Which team to add the person to",
                type=ParameterType.SELECT,
                required=True,
            ),
            TemplateParameter(
                id="role_id",
                name="Role",
                description="Role for the new team member",
                type=ParameterType.SELECT,
                required=True,
            ),
            TemplateParameter(
                id="new_person_name",
                name="New Person Name",
                description="Name for the new team member",
                type=ParameterType.TEXT,
                required=True,
                default_value="New Team Member",
            ),
        ],
    ),
    ScenarioTemplate(
        id="project-delay",
        name="Project Timeline Delay",
        description="Delay project timelines by a specified number of weeks",
        category=TemplateCategory.PROJECT_TIMELINE,
        modifications=[
            TemplateModification(
                entity_type="projects",
                operation=ModificationOperation.BULK_UPDATE,
                changes=[
                    TemplateChange(field="start_date", operation=ChangeOperation.ADD, value="{{delay_days}}"),
                    TemplateChange(field="end_date", operation=ChangeOperation.ADD, value="{{delay_days}}"),
                ],
            ),
        ],
        parameters=[
            TemplateParameter(
                id="delay_weeks",
                name="Delay (weeks)",
                description="Number of weeks to delay projects",
                type=ParameterType.NUMBER,
                required=True,
                default_value=2,
                min=1,
                max=26,
            ),
        ],
    ),
    ScenarioTemplate(
        id="capacity-increase",
        name="Capacity Increase",
        description="Increase team capacity by a specified percentage",
        category=TemplateCategory.RESOURCE_ALLOCATION,
        modifications=[
            TemplateModification(
                entity_type="teams",
                operation=ModificationOperation.BULK_UPDATE,
                changes=[
                    TemplateChange(
                        field="capacity",
                        operation=ChangeOperation.MULTIPLY,
                        value="{{capacity_multiplier}}",
                    ),
                ],
            ),
        ],
        parameters=[
            TemplateParameter(
                id="capacity_increase",
                name="Capacity Increase %",
                description="Percentage to increase team capacity by",
                type=ParameterType.PERCENTAGE,
                required=True,
                default_value=10,
                min=0,
                max=100,
            ),
            TemplateParameter(
                id="capacity_multiplier",
                name="Capacity Multiplier",
                description="Calculated from capacity increase",
                type=ParameterType.NUMBER,
                default_value=1.1,
            ),
        ],
    ),
]


def get_builtin_templates() -> List[ScenarioTemplate]:
    """Fresh copies of the built-in templates with zero usage."""
    return [template.model_copy(deep=True) for template in BUILTIN_TEMPLATES]
