"""Tests for scenario templates and parameter resolution."""

import pytest

from capacity_planning.exceptions import TemplateParameterError
from capacity_planning.scenario import (
    BUILTIN_TEMPLATES,
    ParameterType,
    ScenarioTemplate,
    TemplateParameter,
    get_builtin_templates,
    resolve_parameters,
)


def _template(template_id):
    return next(t for t in get_builtin_templates() if t.id == template_id)


class TestBuiltinTemplates:
    """Tests for the built-in template set."""

    def test_ids(self):
        """Four built-in templates are registered."""
        ids = [t.id for t in BUILTIN_TEMPLATES]
        assert ids == ["budget-cut-10", "team-expansion", "project-delay", "capacity-increase"]

    def test_copies_are_independent(self):
        """Changing a copy never changes the registered template."""
        copy = get_builtin_templates()[0]
        copy.usage_count = 7
        assert BUILTIN_TEMPLATES[0].usage_count == 0

    def test_budget_template_targets_positive_budgets(self):
        """Budget reduction multiplies budgets greater than zero."""
        modification = _template("budget-cut-10").modifications[0]
        assert modification.entity_type == "projects"
        assert modification.operation == "bulk-update"
        assert modification.filter.operator == "greater-than"
        assert modification.changes[0].value == "{{budget_multiplier}}"

    def test_get_parameter(self):
        """Parameters are found by id."""
        template = _template("project-delay")
        assert template.get_parameter("delay_weeks").max == 26
        assert template.get_parameter("missing") is None


class TestResolveParameters:
    """Tests for resolve_parameters."""

    def test_budget_multiplier_derived(self):
        """Budget multiplier is derived from the reduction percentage."""
        params = resolve_parameters(_template("budget-cut-10"), {"budget_reduction": 20})
        assert params["budget_reduction"] == 20
        assert params["budget_multiplier"] == pytest.approx(0.8)

    def test_defaults_applied(self):
        """Missing parameters take their defaults before derivation."""
        params = resolve_parameters(_template("budget-cut-10"), {})
        assert params["budget_reduction"] == 10
        assert params["budget_multiplier"] == pytest.approx(0.9)

    def test_capacity_multiplier_derived(self):
        """Capacity multiplier is derived from the increase percentage."""
        params = resolve_parameters(_template("capacity-increase"), {"capacity_increase": 25})
        assert params["capacity_multiplier"] == pytest.approx(1.25)

    def test_delay_days_derived(self):
        """Delay in days is seven times the delay in weeks."""
        params = resolve_parameters(_template("project-delay"), {"delay_weeks": 3})
        assert params["delay_days"] == 21

    def test_numeric_strings_accepted(self):
        """Numbers supplied as text are converted."""
        params = resolve_parameters(_template("project-delay"), {"delay_weeks": "4"})
        assert params["delay_weeks"] == 4.0
        assert params["delay_days"] == 28

    def test_above_max_rejected(self):
        """Values above the maximum are rejected."""
        with pytest.raises(TemplateParameterError) as exc_info:
            resolve_parameters(_template("budget-cut-10"), {"budget_reduction": 60})
        assert "Budget Reduction % must be at most 50" in exc_info.value.errors

    def test_below_min_rejected(self):
        """Values below the minimum are rejected."""
        with pytest.raises(TemplateParameterError):
            resolve_parameters(_template("project-delay"), {"delay_weeks": 0})

    def test_non_numeric_rejected(self):
        """Numeric parameters must parse as numbers."""
        with pytest.raises(TemplateParameterError):
            resolve_parameters(_template("project-delay"), {"delay_weeks": "soon"})

    def test_required_parameters_reported_together(self):
        """Every missing required parameter is reported."""
        with pytest.raises(TemplateParameterError) as exc_info:
            resolve_parameters(_template("team-expansion"), {})
        assert exc_info.value.errors == ["Target Team is required", "Role is required"]

    def test_error_is_value_error(self):
        """Parameter errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            resolve_parameters(_template("team-expansion"), {})

    def test_select_options(self):
        """Select parameters with options only accept listed values."""
        template = ScenarioTemplate(
            id="custom",
            name="Custom",
            parameters=[TemplateParameter(id="level", name="Level", type=ParameterType.SELECT,
                                          options=["low", "high"], required=True)],
        )
        assert resolve_parameters(template, {"level": "high"})["level"] == "high"
        with pytest.raises(TemplateParameterError):
            resolve_parameters(template, {"level": "medium"})

    def test_text_pattern(self):
        """Text parameters must match their pattern."""
        template = ScenarioTemplate(
            id="custom",
            name="Custom",
            parameters=[TemplateParameter(id="code", name="Code", type=ParameterType.TEXT,
                                          pattern=r"[A-Z]{3}")],
        )
        assert resolve_parameters(template, {"code": "ABC"})["code"] == "ABC"
        with pytest.raises(TemplateParameterError):
            resolve_parameters(template, {"code": "abcd"})

    def test_supplied_mapping_not_mutated(self):
        """The caller's mapping is left untouched."""
        supplied = {"budget_reduction": 20}
        resolve_parameters(_template("budget-cut-10"), supplied)
        assert supplied == {"budget_reduction": 20}
