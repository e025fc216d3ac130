"""Tests for the scenario modification engine."""

import pytest
from datetime import date

from capacity_planning.exceptions import TemplateExecutionError, TemplateParameterError
from capacity_planning.scenario import (
    ConditionalRule,
    ModificationContext,
    RuleCondition,
    ScenarioTemplate,
    TemplateChange,
    TemplateFilter,
    TemplateModification,
    apply_change,
    evaluate_filter,
    execute_modification,
    execute_scenario_template,
    get_builtin_templates,
    resolve_parameter_value,
)


def _template(template_id):
    return next(t for t in get_builtin_templates() if t.id == template_id)


class TestResolveParameterValue:
    """Tests for placeholder substitution."""

    def test_whole_value_becomes_number(self):
        """A value that is just a placeholder takes the parameter's type."""
        assert resolve_parameter_value("{{m}}", {"m": 0.9}) == 0.9
        assert resolve_parameter_value("{{n}}", {"n": 3}) == 3

    def test_embedded_placeholder(self):
        """Placeholders inside text are substituted."""
        assert resolve_parameter_value("Team {{name}}", {"name": "A"}) == "Team A"

    def test_boolean_text(self):
        """Substituted true/false text becomes a boolean."""
        assert resolve_parameter_value("{{flag}}", {"flag": "false"}) is False

    def test_unknown_placeholder_kept(self):
        """Placeholders without a parameter are left alone."""
        assert resolve_parameter_value("{{missing}}", {}) == "{{missing}}"

    def test_non_string_passthrough(self):
        """Non-string values are returned unchanged."""
        assert resolve_parameter_value(5, {"m": 1}) == 5

    def test_only_plain_decimals_become_numbers(self):
        """Text that merely parses as a float special value stays text."""
        for text in ("Nan", "nan", "inf", "Infinity", "1_000", "1e999"):
            assert resolve_parameter_value("{{v}}", {"v": text}) == text
        assert resolve_parameter_value("{{v}}", {"v": "-2.5"}) == -2.5
        assert resolve_parameter_value("{{v}}", {"v": "1e3"}) == 1000.0


class TestApplyChange:
    """Tests for apply_change."""

    def test_set(self):
        entity = {"status": "planning"}
        apply_change(entity, "status", "set", "active")
        assert entity["status"] == "active"

    def test_add_and_subtract(self):
        """Missing values count as zero."""
        entity = {"capacity": 10}
        apply_change(entity, "capacity", "add", 5)
        apply_change(entity, "effort", "subtract", 5)
        assert entity == {"capacity": 15, "effort": -5}

    def test_multiply_missing(self):
        entity = {}
        apply_change(entity, "budget", "multiply", 0.9)
        assert entity["budget"] == 0

    def test_date_shift(self):
        """Adding to a date shifts it by days."""
        entity = {"start_date": date(2024, 1, 1), "end_date": "2024-02-01"}
        apply_change(entity, "start_date", "add", 14.0)
        apply_change(entity, "end_date", "subtract", 1)
        assert entity["start_date"] == date(2024, 1, 15)
        assert entity["end_date"] == date(2024, 1, 31)

    def test_unknown_operation(self):
        with pytest.raises(TemplateExecutionError):
            apply_change({}, "budget", "divide", 2)


class TestEvaluateFilter:
    """Tests for evaluate_filter."""

    def test_numeric_comparisons(self):
        entity = {"budget": 100}
        assert evaluate_filter(entity, TemplateFilter(field="budget", operator="greater-than", value=50))
        assert not evaluate_filter(entity, TemplateFilter(field="budget", operator="less-than", value=50))
        assert evaluate_filter(entity, TemplateFilter(field="budget", operator="equals", value=100))
        assert evaluate_filter(entity, TemplateFilter(field="budget", operator="not-equals", value=5))

    def test_contains_is_case_insensitive(self, live_data):
        """Contains matches substrings ignoring case on models too."""
        entity_filter = TemplateFilter(field="name", operator="contains", value="AUTH")
        assert evaluate_filter(live_data.projects[0], entity_filter)
        assert not evaluate_filter(live_data.projects[1], entity_filter)

    def test_in_range_inclusive(self):
        entity_filter = TemplateFilter(field="percentage", operator="in-range", value=10, second_value=20)
        assert evaluate_filter({"percentage": 10}, entity_filter)
        assert evaluate_filter({"percentage": 20}, entity_filter)
        assert not evaluate_filter({"percentage": 21}, entity_filter)

    def test_date_comparison(self, live_data):
        """Dates compare against ISO date text."""
        entity_filter = TemplateFilter(field="start_date", operator="greater-than", value="2024-01-15")
        matches = [p.id for p in live_data.projects if evaluate_filter(p, entity_filter)]
        assert matches == ["proj-api"]

    def test_placeholder_in_filter(self):
        entity_filter = TemplateFilter(field="budget", operator="greater-than", value="{{limit}}")
        assert evaluate_filter({"budget": 100}, entity_filter, {"limit": 50})
        assert not evaluate_filter({"budget": 100}, entity_filter, {"limit": 150})

    def test_uncomparable_never_matches(self):
        """Missing values do not satisfy ordering comparisons."""
        entity_filter = TemplateFilter(field="budget", operator="greater-than", value=0)
        assert not evaluate_filter({"budget": None}, entity_filter)

    def test_unknown_operator(self):
        entity_filter = TemplateFilter.model_construct(field="budget", operator="between", value=1)
        assert not evaluate_filter({"budget": 1}, entity_filter)


class TestExecuteModification:
    """Tests for execute_modification."""

    def test_create(self, live_data):
        """Create appends a new entity with a generated id."""
        modification = TemplateModification(
            entity_type="people",
            operation="create",
            changes=[
                TemplateChange(field="name", value="{{name}}"),
                TemplateChange(field="team_id", value="team-backend"),
                TemplateChange(field="role_id", value="senior-engineer"),
            ],
        )
        context = ModificationContext(scenario_data=live_data, parameters={"name": "Eve"})
        result = execute_modification(modification, context)

        assert result.success
        assert len(result.modified_data.people) == 5
        new_person = result.modified_data.people[-1]
        assert new_person.name == "Eve"
        assert result.modifications[0].type == "create"
        assert result.modifications[0].entity_id == new_person.id
        assert len(live_data.people) == 4

    def test_update_first_match(self, live_data):
        """Update changes the first matching entity and records old values."""
        modification = TemplateModification(
            entity_type="projects",
            operation="update",
            filter=TemplateFilter(field="id", operator="equals", value="proj-api"),
            changes=[TemplateChange(field="status", value="on-hold")],
        )
        result = execute_modification(modification, ModificationContext(scenario_data=live_data))

        assert result.modified_data.projects[1].status == "on-hold"
        change = result.modifications[0].changes[0]
        assert change.old_value == "planning"
        assert change.new_value == "on-hold"

    def test_update_without_match_warns(self, live_data):
        modification = TemplateModification(
            entity_type="projects",
            operation="update",
            filter=TemplateFilter(field="id", operator="equals", value="missing"),
            changes=[TemplateChange(field="status", value="on-hold")],
        )
        result = execute_modification(modification, ModificationContext(scenario_data=live_data))

        assert result.success
        assert result.warnings == ["No entity found to update for projects"]
        assert result.modifications == []

    def test_delete(self, live_data):
        """Delete removes every matching entity."""
        modification = TemplateModification(
            entity_type="epics",
            operation="delete",
            filter=TemplateFilter(field="project_id", operator="equals", value="proj-api"),
        )
        result = execute_modification(modification, ModificationContext(scenario_data=live_data))

        assert [e.id for e in result.modified_data.epics] == ["epic-login"]
        assert result.modifications[0].type == "delete"
        assert result.modifications[0].entity_name == "API Development"

    def test_delete_without_filter_does_nothing(self, live_data):
        modification = TemplateModification(entity_type="epics", operation="delete")
        result = execute_modification(modification, ModificationContext(scenario_data=live_data))

        assert len(result.modified_data.epics) == 2
        assert result.warnings

    def test_bulk_update_all(self, live_data):
        """Bulk update without a filter changes every entity."""
        modification = TemplateModification(
            entity_type="teams",
            operation="bulk-update",
            changes=[TemplateChange(field="capacity", operation="add", value=10)],
        )
        result = execute_modification(modification, ModificationContext(scenario_data=live_data))

        assert [t.capacity for t in result.modified_data.teams] == [170, 210]
        assert len(result.modifications) == 2

    def test_invalid_result_leaves_data_untouched(self, live_data):
        """A change producing an invalid entity fails without partial changes."""
        modification = TemplateModification(
            entity_type="teams",
            operation="bulk-update",
            changes=[TemplateChange(field="capacity", value=-5)],
        )
        context = ModificationContext(scenario_data=live_data)
        result = execute_modification(modification, context)

        assert not result.success
        assert result.errors[0].startswith("Modification failed")
        assert result.modified_data is live_data
        assert result.modifications == []
        assert live_data.teams[0].capacity == 160

    def test_update_link_record(self, live_data):
        """Person skills have no id; they are identified by person and skill."""
        modification = TemplateModification(
            entity_type="person_skills",
            operation="update",
            filter=TemplateFilter(field="skill_id", operator="equals", value="skill-python"),
            changes=[TemplateChange(field="proficiency_level", value="expert")],
        )
        result = execute_modification(modification, ModificationContext(scenario_data=live_data))

        assert result.success
        assert result.modified_data.person_skills[2].proficiency_level == "expert"
        assert result.modifications[0].entity_id == "person-carol:skill-python"
        assert result.modifications[0].entity_name == "person-carol:skill-python"

    def test_delete_link_records(self, live_data):
        modification = TemplateModification(
            entity_type="person_skills",
            operation="delete",
            filter=TemplateFilter(field="skill_id", operator="equals", value="skill-react"),
        )
        result = execute_modification(modification, ModificationContext(scenario_data=live_data))

        assert result.success
        assert [s.person_id for s in result.modified_data.person_skills] == ["person-carol", "person-dan"]
        assert [m.entity_id for m in result.modifications] == [
            "person-alice:skill-react",
            "person-bob:skill-react",
        ]

    def test_unknown_collection(self, live_data):
        modification = TemplateModification(entity_type="widgets", operation="create")
        result = execute_modification(modification, ModificationContext(scenario_data=live_data))

        assert not result.success
        assert result.errors == ["Cannot create entity: widgets is not a known collection"]


class TestExecuteScenarioTemplate:
    """Tests for execute_scenario_template."""

    def test_budget_reduction(self, live_data):
        """Budgets are reduced on a copy and the variance change is reported."""
        result = execute_scenario_template(_template("budget-cut-10"), {"budget_reduction": 20}, live_data)

        assert result.success
        assert result.modified_data.projects[0].budget == pytest.approx(400000)
        assert result.modified_data.projects[1].budget == pytest.approx(160000)
        assert live_data.projects[0].budget == 500000
        assert len(result.modifications) == 2

        impact = result.financial_impact
        assert impact.team_cost_changes == pytest.approx(0)
        assert impact.budget_variance_changes == pytest.approx(140000)
        assert impact.affected_projects == ["proj-auth", "proj-api"]

    def test_project_delay_shifts_dates(self, live_data):
        """The default delay is two weeks."""
        result = execute_scenario_template(_template("project-delay"), {}, live_data)

        assert result.modified_data.projects[0].start_date == date(2024, 1, 15)
        assert result.modified_data.projects[0].end_date == date(2024, 7, 14)
        assert result.financial_impact.affected_projects == []

    def test_capacity_increase(self, live_data):
        result = execute_scenario_template(_template("capacity-increase"), {"capacity_increase": 50}, live_data)
        assert result.modified_data.teams[0].capacity == pytest.approx(240)

    def test_team_expansion_changes_costs(self, live_data):
        """A new senior engineer adds their loaded cost to the team."""
        result = execute_scenario_template(
            _template("team-expansion"),
            {"target_team_id": "team-backend", "role_id": "senior-engineer"},
            live_data,
        )

        added = result.modified_data.people[-1]
        assert added.name == "New Team Member"
        assert added.team_id == "team-backend"
        assert result.financial_impact.team_cost_changes == pytest.approx(185000)
        assert result.financial_impact.affected_projects == ["proj-api"]

    def test_team_expansion_name_reading_as_nan(self, live_data):
        """A person name like "Nan" is kept as text."""
        result = execute_scenario_template(
            _template("team-expansion"),
            {"target_team_id": "team-backend", "role_id": "senior-engineer", "new_person_name": "Nan"},
            live_data,
        )

        assert result.success
        assert result.modified_data.people[-1].name == "Nan"

    def test_invalid_parameters_raise(self, live_data):
        with pytest.raises(TemplateParameterError):
            execute_scenario_template(_template("team-expansion"), {}, live_data)

    def test_conditional_rules(self, live_data):
        """Rule actions run only when their condition matches an entity."""
        def rule(capacity_limit, status):
            return ConditionalRule(
                condition=RuleCondition(entity_type="teams", field="capacity",
                                        operator="greater-than", value=capacity_limit),
                actions=[TemplateModification(
                    entity_type="projects",
                    operation="bulk-update",
                    changes=[TemplateChange(field="status", value=status)],
                )],
            )

        template = ScenarioTemplate(
            id="pause-projects",
            name="Pause Projects",
            conditional_logic=[rule(180, "on-hold"), rule(500, "cancelled")],
        )
        result = execute_scenario_template(template, {}, live_data)

        assert [p.status for p in result.modified_data.projects] == ["on-hold", "on-hold"]

    def test_failed_modification(self, live_data):
        """A failing modification marks the run failed without financials."""
        template = ScenarioTemplate(
            id="broken",
            name="Broken",
            modifications=[TemplateModification(entity_type="widgets", operation="create")],
        )
        result = execute_scenario_template(template, {}, live_data)

        assert not result.success
        assert result.errors
        assert result.financial_impact is None
