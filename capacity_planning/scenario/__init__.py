"""Scenario management for what-if capacity planning.

Snapshots of live planning data are stored as scenarios, modified through
templates, compared with live data and expired after a retention period.
"""

from .snapshot import (
    ENTITY_MODELS,
    FieldChange,
    ModificationType,
    Scenario,
    ScenarioData,
    ScenarioMetadata,
    ScenarioModification,
)
from .templates import (
    BUILTIN_TEMPLATES,
    ChangeOperation,
    ConditionalRule,
    FilterOperator,
    ModificationOperation,
    ParameterType,
    RuleCondition,
    ScenarioTemplate,
    TemplateCategory,
    TemplateChange,
    TemplateFilter,
    TemplateModification,
    TemplateParameter,
    get_builtin_templates,
    resolve_parameters,
)
from .modification_engine import (
    ModificationContext,
    ModificationResult,
    apply_change,
    evaluate_condition,
    evaluate_filter,
    execute_modification,
    execute_scenario_template,
    resolve_parameter_value,
)
from .diff import (
    ChangeCategory,
    ChangeDetail,
    ChangeType,
    ImpactLevel,
    ScenarioChange,
    ScenarioComparison,
    ScenarioDiffEngine,
    compare_scenario_data,
)
from .manager import ScenarioManager

__all__ = [
    "ENTITY_MODELS",
    "FieldChange",
    "ModificationType",
    "Scenario",
    "ScenarioData",
    "ScenarioMetadata",
    "ScenarioModification",
    "BUILTIN_TEMPLATES",
    "ChangeOperation",
    "ConditionalRule",
    "FilterOperator",
    "ModificationOperation",
    "ParameterType",
    "RuleCondition",
    "ScenarioTemplate",
    "TemplateCategory",
    "TemplateChange",
    "TemplateFilter",
    "TemplateModification",
    "TemplateParameter",
    "get_builtin_templates",
    "resolve_parameters",
    "ModificationContext",
    "ModificationResult",
    "apply_change",
    "evaluate_condition",
    "evaluate_filter",
    "execute_modification",
    "execute_scenario_template",
    "resolve_parameter_value",
    "ChangeCategory",
    "ChangeDetail",
    "ChangeType",
    "ImpactLevel",
    "ScenarioChange",
    "ScenarioComparison",
    "ScenarioDiffEngine",
    "compare_scenario_data",
    "ScenarioManager",
]
