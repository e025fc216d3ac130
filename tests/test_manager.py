"""Tests for the scenario manager."""

import pytest
from datetime import datetime, timedelta
from openpyxl import load_workbook

from capacity_planning.exceptions import (
    ScenarioNotFoundError,
    TemplateExecutionError,
    TemplateNotFoundError,
    UnknownEntityTypeError,
)
from capacity_planning.scenario import (
    FieldChange,
    ScenarioManager,
    ScenarioTemplate,
    TemplateChange,
    TemplateModification,
)


class TestCreateScenario:
    """Tests for creating scenarios."""

    def test_create_snapshot(self, scenario_manager, live_data, tmp_path):
        """A new scenario holds a copy of live data and is written to disk."""
        scenario = scenario_manager.create_scenario("Plan B", live_data, description="What if")

        assert scenario.data == live_data
        assert scenario.data is not live_data
        assert scenario.template_id is None
        assert scenario.metadata.total_modifications == 0
        assert (tmp_path / "scenarios" / "planning-scenarios" / f"{scenario.id}.json").exists()

    def test_default_expiry(self, scenario_manager, live_data):
        """Scenarios expire after 60 days by default."""
        scenario = scenario_manager.create_scenario("Plan B", live_data)
        lifetime = scenario.expires_at - scenario.created_date
        assert lifetime == timedelta(days=60)

    def test_from_template(self, scenario_manager, live_data):
        """Template scenarios are named after the template and record its changes."""
        scenario = scenario_manager.create_scenario_from_template(
            "budget-cut-10", {"budget_reduction": 20}, live_data
        )

        assert scenario.name == "Budget Reduction Scenario"
        assert scenario.template_name == "Budget Reduction"
        assert scenario.data.projects[0].budget == pytest.approx(400000)
        assert scenario.metadata.total_modifications == 2
        assert live_data.projects[0].budget == 500000

    def test_template_usage_persisted(self, scenario_manager, live_data, tmp_path):
        """Usage counts survive a new manager on the same storage."""
        scenario_manager.create_scenario_from_template("project-delay", {}, live_data)

        reloaded = ScenarioManager(storage_dir=tmp_path / "scenarios")
        template = reloaded.get_template("project-delay")
        assert template.usage_count == 1
        assert template.last_used is not None

    def test_unknown_template(self, scenario_manager, live_data):
        with pytest.raises(TemplateNotFoundError):
            scenario_manager.create_scenario_from_template("missing", {}, live_data)

    def test_failed_template_not_stored(self, scenario_manager, live_data):
        """A template that cannot be applied raises and stores nothing."""
        scenario_manager.save_template(ScenarioTemplate(
            id="broken",
            name="Broken",
            modifications=[TemplateModification(entity_type="widgets", operation="create")],
        ))

        with pytest.raises(TemplateExecutionError) as exc_info:
            scenario_manager.create_scenario("Broken", live_data, template_id="broken")
        assert exc_info.value.errors
        assert scenario_manager.list_scenarios() == []


    def test_template_on_person_skills(self, scenario_manager, live_data):
        """Templates may bulk-update collections whose records have no id."""
        scenario_manager.save_template(ScenarioTemplate(
            id="upskill",
            name="Upskill",
            modifications=[TemplateModification(
                entity_type="person_skills",
                operation="bulk-update",
                changes=[TemplateChange(field="proficiency_level", value="expert")],
            )],
        ))

        scenario = scenario_manager.create_scenario("Upskill", live_data, template_id="upskill")

        assert {s.proficiency_level for s in scenario.data.person_skills} == {"expert"}
        assert scenario.modifications[0].entity_id == "person-alice:skill-react"
        assert scenario.metadata.total_modifications == 4


class TestScenarioMode:
    """Tests for switching between live and scenario mode."""

    def test_switch_and_current_data(self, scenario_manager, live_data):
        scenario = scenario_manager.create_scenario_from_template(
            "capacity-increase", {"capacity_increase": 50}, live_data
        )

        assert scenario_manager.get_current_data(live_data) is live_data
        scenario_manager.switch_to_scenario(scenario.id)

        assert scenario_manager.is_scenario_mode
        assert scenario_manager.get_current_data(live_data).teams[0].capacity == pytest.approx(240)

        scenario_manager.switch_to_live()
        assert not scenario_manager.is_scenario_mode
        assert scenario_manager.get_current_data(live_data) is live_data

    def test_active_scenario_restored(self, scenario_manager, live_data, tmp_path):
        scenario = scenario_manager.create_scenario("Plan B", live_data)
        scenario_manager.switch_to_scenario(scenario.id)

        reloaded = ScenarioManager(storage_dir=tmp_path / "scenarios")
        assert reloaded.active_scenario.id == scenario.id

    def test_switch_to_missing(self, scenario_manager):
        with pytest.raises(ScenarioNotFoundError):
            scenario_manager.switch_to_scenario("missing")

    def test_get_missing(self, scenario_manager):
        """Missing scenarios raise a KeyError subclass."""
        with pytest.raises(KeyError):
            scenario_manager.get_scenario("missing")


class TestRecordModification:
    """Tests for recording edits against the active scenario."""

    def test_live_mode_ignored(self, scenario_manager):
        """Edits made in live mode are not recorded."""
        assert scenario_manager.record_modification("teams", "team-frontend", "update", "Changed") is None

    def test_record_and_save(self, scenario_manager, live_data, tmp_path):
        scenario = scenario_manager.create_scenario("Plan B", live_data)
        scenario_manager.switch_to_scenario(scenario.id)

        data = scenario_manager.get_current_data(live_data).clone()
        data.teams[0].capacity = 120
        modification = scenario_manager.record_modification(
            "teams", "team-frontend", "update", "Reduced capacity",
            changes=[FieldChange(field="capacity", old_value=160, new_value=120)],
            entity_name="Frontend Team",
            data=data,
        )

        assert modification.type == "update"
        assert scenario_manager.has_unsaved_changes
        assert scenario_manager.active_scenario.metadata.total_modifications == 1

        scenario_manager.save_current_scenario()
        assert not scenario_manager.has_unsaved_changes

        stored = ScenarioManager(storage_dir=tmp_path / "scenarios").get_scenario(scenario.id)
        assert stored.data.teams[0].capacity == 120
        assert stored.modifications[0].description == "Reduced capacity"

    def test_discard_changes(self, scenario_manager, live_data):
        scenario = scenario_manager.create_scenario("Plan B", live_data)
        scenario_manager.switch_to_scenario(scenario.id)
        scenario_manager.record_modification("projects", "proj-api", "delete", "Dropped project")

        restored = scenario_manager.discard_changes()

        assert restored.modifications == []
        assert not scenario_manager.has_unsaved_changes

    def test_unknown_collection(self, scenario_manager, live_data):
        scenario = scenario_manager.create_scenario("Plan B", live_data)
        scenario_manager.switch_to_scenario(scenario.id)

        with pytest.raises(UnknownEntityTypeError):
            scenario_manager.record_modification("widgets", "w1", "update", "Changed")


class TestLifecycle:
    """Tests for updating, listing, deleting and expiring scenarios."""

    def test_update(self, scenario_manager, live_data):
        scenario = scenario_manager.create_scenario("Plan B", live_data)
        updated = scenario_manager.update_scenario(scenario.id, name="Plan C")

        assert updated.name == "Plan C"
        assert scenario_manager.get_scenario(scenario.id).name == "Plan C"

    def test_update_rejects_unknown_fields(self, scenario_manager, live_data):
        scenario = scenario_manager.create_scenario("Plan B", live_data)
        with pytest.raises(ValueError):
            scenario_manager.update_scenario(scenario.id, id="other")

    def test_list_sorted_by_name(self, scenario_manager, live_data):
        for name in ("beta", "Alpha", "gamma"):
            scenario_manager.create_scenario(name, live_data)

        names = [s.name for s in scenario_manager.list_scenarios(sort_by="name", reverse=False)]
        assert names == ["Alpha", "beta", "gamma"]

    def test_delete_active_returns_to_live(self, scenario_manager, live_data):
        scenario = scenario_manager.create_scenario("Plan B", live_data)
        scenario_manager.switch_to_scenario(scenario.id)

        assert scenario_manager.delete_scenario(scenario.id)
        assert not scenario_manager.is_scenario_mode
        assert not scenario_manager.delete_scenario(scenario.id)

    def test_cleanup_expired(self, scenario_manager, live_data):
        """Only scenarios past their expiry are removed."""
        old = scenario_manager.create_scenario("Old", live_data, expires_at=datetime(2024, 1, 1))
        current = scenario_manager.create_scenario("Current", live_data)

        assert scenario_manager.cleanup_expired_scenarios() == 1
        assert [s.id for s in scenario_manager.list_scenarios()] == [current.id]
        with pytest.raises(ScenarioNotFoundError):
            scenario_manager.get_scenario(old.id)


class TestTemplates:
    """Tests for template registration."""

    def test_builtins_seeded(self, scenario_manager, tmp_path):
        assert [t.id for t in scenario_manager.templates] == [
            "budget-cut-10", "team-expansion", "project-delay", "capacity-increase",
        ]
        assert (tmp_path / "scenarios" / "planning-scenario-templates.json").exists()

    def test_refresh_keeps_usage_and_custom(self, scenario_manager, live_data):
        scenario_manager.create_scenario_from_template("budget-cut-10", {}, live_data)
        scenario_manager.save_template(ScenarioTemplate(id="custom", name="Custom"))

        refreshed = scenario_manager.refresh_templates()

        assert [t.id for t in refreshed][-1] == "custom"
        assert scenario_manager.get_template("budget-cut-10").usage_count == 1


class TestComparison:
    """Tests for comparing scenarios with live data."""

    def test_scenario_comparison(self, scenario_manager, live_data):
        scenario = scenario_manager.create_scenario_from_template(
            "budget-cut-10", {"budget_reduction": 20}, live_data
        )
        comparison = scenario_manager.get_scenario_comparison(scenario.id, live_data)

        assert comparison.summary.categorized_changes["financial"] == 2
        assert comparison.financial_impact.budget_variance == pytest.approx(-140000)

    def test_financial_comparison(self, scenario_manager, live_data):
        scenario = scenario_manager.create_scenario_from_template(
            "team-expansion", {"target_team_id": "team-backend", "role_id": "senior-engineer"}, live_data
        )
        comparison = scenario_manager.get_financial_comparison(scenario.id, live_data)

        assert comparison.summary.total_cost_difference == pytest.approx(185000)
        assert comparison.detailed_breakdown[0].headcount_change == 1

    def test_compare_scenarios(self, scenario_manager, live_data):
        """Later scenarios carry deltas against the first."""
        base = scenario_manager.create_scenario("Base", live_data)
        cut = scenario_manager.create_scenario(
            "Cut", live_data, template_id="budget-cut-10", template_parameters={"budget_reduction": 20}
        )

        df = scenario_manager.compare_scenarios([base.id, cut.id], live_data)

        assert list(df["Scenario"]) == ["Base", "Cut"]
        assert list(df["Total Changes"]) == [0, 2]
        assert df.loc[1, "Financial"] == 2
        assert df.loc[1, "Budget Variance"] == "$-140,000.00"
        assert df.loc[0, "Δ Budget vs Base"] == ""
        assert df.loc[1, "Δ Budget vs Base"] == "-140,000.00"
        assert df.loc[1, "Δ Changes vs Base"] == "+2"


class TestExportImport:
    """Tests for exporting and importing scenarios."""

    def test_json_round_trip(self, scenario_manager, live_data, tmp_path):
        """An imported scenario is a copy with a new id."""
        scenario = scenario_manager.create_scenario_from_template("project-delay", {}, live_data)
        path = scenario_manager.export_scenario(scenario.id, tmp_path / "export.json")

        imported = scenario_manager.import_scenario(path)

        assert imported.id != scenario.id
        assert imported.name == scenario.name
        assert imported.data.projects[0].start_date == scenario.data.projects[0].start_date
        assert imported.data.counts() == scenario.data.counts()
        assert len(scenario_manager.list_scenarios()) == 2

    def test_excel_export(self, scenario_manager, live_data, tmp_path):
        """Excel export has a summary sheet and one sheet per non-empty collection."""
        scenario = scenario_manager.create_scenario("Plan B", live_data)
        path = scenario_manager.export_scenario(scenario.id, tmp_path / "export.xlsx", format="excel")

        sheets = load_workbook(path).sheetnames
        assert sheets[0] == "Scenario Summary"
        assert "projects" in sheets
        assert "allocations" in sheets
        assert "releases" not in sheets

    def test_unsupported_format(self, scenario_manager, live_data, tmp_path):
        scenario = scenario_manager.create_scenario("Plan B", live_data)
        with pytest.raises(ValueError):
            scenario_manager.export_scenario(scenario.id, tmp_path / "export.csv", format="csv")

    def test_import_missing_file(self, scenario_manager, tmp_path):
        with pytest.raises(FileNotFoundError):
            scenario_manager.import_scenario(tmp_path / "missing.json")
