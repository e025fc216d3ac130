"""Scenario modification engine.

Applies template modifications (create, update, delete, bulk-update) and
conditional rules to scenario data, records each change as a
ScenarioModification and reports the financial impact of the result.

Modifications operate on plain dicts dumped from the entity models and are
validated back into the model afterwards, so a change that produces an
invalid entity fails the modification instead of corrupting the snapshot.
"""

import logging
import math
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..costs.cost_breakdown import FinancialAnalysis, FinancialImpact
from ..costs.scenario_financials import calculate_financial_impact
from ..costs.team_cost_calculator import TeamCostCalculator
from ..exceptions import TemplateExecutionError, UnknownEntityTypeError
from .snapshot import (
    ENTITY_MODELS,
    FieldChange,
    ModificationType,
    ScenarioData,
    ScenarioModification,
)
from .templates import (
    ChangeOperation,
    FilterOperator,
    ModificationOperation,
    ScenarioTemplate,
    TemplateFilter,
    TemplateModification,
    resolve_parameters,
)

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")
# Plain finite decimals only; "nan", "inf" and "1_000" stay text
_DECIMAL = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*")


@dataclass
class ModificationContext:
    """Working state shared by the modifications of one template run."""
    scenario_data: ScenarioData
    parameters: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ModificationResult:
    """
    Outcome of applying one modification or a whole template.

    Attributes:
        success: False when any modification failed
        modified_data: Data after the successful modifications
        modifications: Recorded changes
        errors: Failures; a failed modification leaves the data untouched
        warnings: Non-fatal problems such as filters matching nothing
        financial_impact: Cost effect of a template run
        financial_analysis: Financials of the modified data
    """
    success: bool
    modified_data: ScenarioData
    modifications: List[ScenarioModification] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    financial_impact: Optional[FinancialImpact] = None
    financial_analysis: Optional[FinancialAnalysis] = None

    def __str__(self) -> str:
        """String representation."""
        status = "succeeded" if self.success else "failed"
        return (
            f"Modification {status}: {len(self.modifications)} changes, "
            f"{len(self.errors)} errors, {len(self.warnings)} warnings"
        )


def _coerce(text: str) -> Any:
    if _DECIMAL.fullmatch(text):
        try:
            return int(text)
        except ValueError:
            number = float(text)
            if math.isfinite(number):
                return number
    if text == "true":
        return True
    if text == "false":
        return False
    return text


def resolve_parameter_value(value: Any, parameters: Dict[str, Any]) -> Any:
    """Substitute ``{{name}}`` placeholders in a change value.

    When substitution changes the string, the result is converted to a
    number or boolean if it reads as one. Unknown placeholders are left as is.

    Example:
        >>> resolve_parameter_value("{{budget_multiplier}}", {"budget_multiplier": 0.9})
        0.9
    """
    if not isinstance(value, str) or "{{" not in value:
        return value

    def substitute(match):
        name = match.group(1)
        return str(parameters[name]) if name in parameters else match.group(0)

    resolved = _PLACEHOLDER.sub(substitute, value)
    if resolved == value:
        return resolved
    return _coerce(resolved)


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None
    return None


def apply_change(entity: Dict[str, Any], field_name: str, operation: str, value: Any) -> None:
    """Apply one change operation to an entity dict in place.

    Missing values count as 0. Adding to or subtracting from a date shifts it
    by ``value`` days.

    Raises:
        TemplateExecutionError: If the operation is unknown
    """
    current = entity.get(field_name)

    if operation == ChangeOperation.SET.value:
        entity[field_name] = value
        return

    if operation in (ChangeOperation.ADD.value, ChangeOperation.SUBTRACT.value):
        sign = 1 if operation == ChangeOperation.ADD.value else -1
        current_date = _as_date(current)
        if current_date is not None:
            entity[field_name] = current_date + timedelta(days=sign * float(value))
        else:
            entity[field_name] = (current or 0) + sign * value
        return

    if operation == ChangeOperation.MULTIPLY.value:
        entity[field_name] = (current or 0) * value
        return

    raise TemplateExecutionError(f"Unknown change operation: {operation}")


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _ordered(entity_value: Any, filter_value: Any):
    """Comparable pair, as dates when the entity holds a date, else as numbers."""
    if isinstance(entity_value, date):
        return entity_value, _as_date(filter_value)
    return _to_number(entity_value), _to_number(filter_value)


def evaluate_filter(entity: Any, entity_filter: TemplateFilter, parameters: Optional[Dict[str, Any]] = None) -> bool:
    """Whether an entity (model or dict) satisfies a filter.

    Unknown operators and values that cannot be compared never match.
    """
    if isinstance(entity, dict):
        entity_value = entity.get(entity_filter.field)
    else:
        entity_value = getattr(entity, entity_filter.field, None)
    parameters = parameters or {}
    filter_value = resolve_parameter_value(entity_filter.value, parameters)
    operator = entity_filter.operator

    if operator == FilterOperator.EQUALS.value:
        return entity_value == filter_value
    if operator == FilterOperator.NOT_EQUALS.value:
        return entity_value != filter_value
    if operator == FilterOperator.CONTAINS.value:
        text = "" if entity_value is None else str(entity_value)
        return str(filter_value).lower() in text.lower()
    if operator in (FilterOperator.GREATER_THAN.value, FilterOperator.LESS_THAN.value):
        left, right = _ordered(entity_value, filter_value)
        if left is None or right is None:
            return False
        return left > right if operator == FilterOperator.GREATER_THAN.value else left < right
    if operator == FilterOperator.IN_RANGE.value:
        second = resolve_parameter_value(entity_filter.second_value, parameters)
        value, low = _ordered(entity_value, filter_value)
        _, high = _ordered(entity_value, second)
        if value is None or low is None or high is None:
            return False
        return low <= value <= high
    return False


def evaluate_condition(condition, data: ScenarioData, parameters: Optional[Dict[str, Any]] = None) -> bool:
    """A rule condition is met when any entity of its collection matches."""
    try:
        entities = data.entity_collection(condition.entity_type)
    except UnknownEntityTypeError:
        logger.warning(f"Condition references unknown collection {condition.entity_type}")
        return False
    return any(evaluate_filter(entity, condition, parameters) for entity in entities)


def _entity_id(entity: Dict[str, Any]) -> str:
    """The entity id, or its joined reference ids for link records without one."""
    if entity.get("id"):
        return entity["id"]
    return ":".join(str(v) for k, v in entity.items() if k.endswith("_id") and v)


def _entity_name(entity: Dict[str, Any]) -> str:
    return entity.get("name") or _entity_id(entity)


def _is_date_field(model, name: str) -> bool:
    info = model.model_fields.get(name)
    if info is None:
        return False
    return info.annotation is date or date in getattr(info.annotation, "__args__", ())


def _updated_entity(model, entity, modification, context) -> tuple:
    values = entity.model_dump()
    changes = []
    for change in modification.changes:
        old_value = values.get(change.field)
        new_value = resolve_parameter_value(change.value, context.parameters)
        shifts_missing_date = (
            old_value is None
            and change.operation != ChangeOperation.SET.value
            and _is_date_field(model, change.field)
        )
        # An unset date stays unset when shifted
        if not shifts_missing_date:
            apply_change(values, change.field, change.operation, new_value)
        changes.append(FieldChange(field=change.field, old_value=old_value, new_value=values[change.field]))
    values["last_modified"] = context.timestamp
    return model.model_validate(values), values, changes


def execute_modification(modification: TemplateModification, context: ModificationContext) -> ModificationResult:
    """Apply one template modification to the context's data.

    The modification works on a copy of the data. On failure the copy is
    discarded and ``errors`` explains why.

    Args:
        modification: Change set to apply
        context: Current data, resolved parameters and timestamp

    Returns:
        ModificationResult whose ``modified_data`` includes the change on success
    """
    data = context.scenario_data.clone()
    result = ModificationResult(success=True, modified_data=data)
    entity_type = modification.entity_type
    operation = modification.operation

    try:
        entities = data.entity_collection(entity_type)
    except UnknownEntityTypeError:
        result.success = False
        result.errors.append(f"Cannot {operation} entity: {entity_type} is not a known collection")
        return result

    model = ENTITY_MODELS[entity_type]
    parameters = context.parameters

    try:
        if operation == ModificationOperation.CREATE.value:
            values: Dict[str, Any] = {
                "id": str(uuid.uuid4()),
                "created_date": context.timestamp,
                "last_modified": context.timestamp,
            }
            for change in modification.changes:
                apply_change(values, change.field, change.operation,
                             resolve_parameter_value(change.value, parameters))
            entities.append(model.model_validate(values))
            result.modifications.append(ScenarioModification(
                timestamp=context.timestamp,
                type=ModificationType.CREATE,
                entity_type=entity_type,
                entity_id=_entity_id(values),
                entity_name=_entity_name(values),
                description=f"Created new {entity_type}",
                changes=[
                    FieldChange(field=c.field, new_value=resolve_parameter_value(c.value, parameters))
                    for c in modification.changes
                ],
            ))

        elif operation == ModificationOperation.UPDATE.value:
            index = None
            if modification.filter is not None:
                index = next(
                    (i for i, e in enumerate(entities) if evaluate_filter(e, modification.filter, parameters)),
                    None,
                )
            if index is None:
                result.warnings.append(f"No entity found to update for {entity_type}")
                return result
            updated, values, changes = _updated_entity(model, entities[index], modification, context)
            entities[index] = updated
            result.modifications.append(ScenarioModification(
                timestamp=context.timestamp,
                type=ModificationType.UPDATE,
                entity_type=entity_type,
                entity_id=_entity_id(values),
                entity_name=_entity_name(values),
                description=f"Updated {entity_type}",
                changes=changes,
            ))

        elif operation == ModificationOperation.DELETE.value:
            targets = []
            if modification.filter is not None:
                targets = [e for e in entities if evaluate_filter(e, modification.filter, parameters)]
            if not targets:
                result.warnings.append(f"No entities found to delete for {entity_type}")
                return result
            target_ids = {id(e) for e in targets}
            entities[:] = [e for e in entities if id(e) not in target_ids]
            for entity in targets:
                values = entity.model_dump()
                result.modifications.append(ScenarioModification(
                    timestamp=context.timestamp,
                    type=ModificationType.DELETE,
                    entity_type=entity_type,
                    entity_id=_entity_id(values),
                    entity_name=_entity_name(values),
                    description=f"Deleted {entity_type}",
                ))

        elif operation == ModificationOperation.BULK_UPDATE.value:
            if modification.filter is not None:
                indexes = [
                    i for i, e in enumerate(entities)
                    if evaluate_filter(e, modification.filter, parameters)
                ]
            else:
                indexes = list(range(len(entities)))
            if not indexes:
                result.warnings.append(f"No entities found for bulk update of {entity_type}")
                return result
            for index in indexes:
                updated, values, changes = _updated_entity(model, entities[index], modification, context)
                entities[index] = updated
                result.modifications.append(ScenarioModification(
                    timestamp=context.timestamp,
                    type=ModificationType.UPDATE,
                    entity_type=entity_type,
                    entity_id=_entity_id(values),
                    entity_name=_entity_name(values),
                    description=f"Bulk updated {entity_type}",
                    changes=changes,
                ))

        else:
            result.success = False
            result.errors.append(f"Unknown operation: {operation}")

    except (TemplateExecutionError, ValidationError, KeyError, TypeError, ValueError) as e:
        result.success = False
        result.modifications = []
        result.errors.append(f"Modification failed: {e}")

    if not result.success:
        result.modified_data = context.scenario_data
    return result


def execute_scenario_template(
    template: ScenarioTemplate,
    parameters: Optional[Dict[str, Any]],
    data: ScenarioData,
    calculator: Optional[TeamCostCalculator] = None,
) -> ModificationResult:
    """Apply a template to a copy of ``data``.

    Modifications run in order, then conditional rules whose condition is met.
    When everything succeeds the financial impact is computed by comparing
    financials before and after. ``data`` is never mutated.

    Args:
        template: Template to execute
        parameters: User-supplied parameter values
        data: Snapshot to modify
        calculator: Cost calculator for the financial impact

    Returns:
        ModificationResult

    Raises:
        TemplateParameterError: If parameters fail validation

    Example:
        >>> result = execute_scenario_template(budget_template, {"budget_reduction": 20}, live)
        >>> result.success
        True
    """
    context = ModificationContext(
        scenario_data=data.clone(),
        parameters=resolve_parameters(template, parameters),
    )
    result = ModificationResult(success=True, modified_data=context.scenario_data)

    def run(modification: TemplateModification) -> None:
        outcome = execute_modification(modification, context)
        result.warnings.extend(outcome.warnings)
        if not outcome.success:
            result.success = False
            result.errors.extend(outcome.errors)
        else:
            result.modifications.extend(outcome.modifications)
            context.scenario_data = outcome.modified_data

    for modification in template.modifications:
        run(modification)

    for rule in template.conditional_logic:
        if evaluate_condition(rule.condition, context.scenario_data, context.parameters):
            logger.debug(f"Condition on {rule.condition.entity_type} met for template {template.id}")
            for action in rule.actions:
                run(action)

    result.modified_data = context.scenario_data

    if result.success:
        calculator = calculator or TeamCostCalculator()
        before = calculator.calculate_financials(data)
        after = calculator.calculate_financials(context.scenario_data)
        result.financial_analysis = after
        result.financial_impact = calculate_financial_impact(before, after)
        logger.info(
            f"Template {template.id} applied {len(result.modifications)} modifications "
            f"({len(result.warnings)} warnings)"
        )
    else:
        logger.warning(f"Template {template.id} failed: {'; '.join(result.errors)}")

    return result
