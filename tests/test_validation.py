"""Tests for planning data validation."""

import logging
from datetime import date

from capacity_planning.models import Allocation, Person, Role, Team
from capacity_planning.validation import ScenarioDataValidator, ValidationSeverity


def _issues(data):
    return {issue.id: issue for issue in ScenarioDataValidator(data).validate_all()}


class TestCleanData:
    """Tests for data without problems."""

    def test_no_issues(self, live_data):
        validator = ScenarioDataValidator(live_data)

        assert validator.validate_all() == []
        assert not validator.has_errors_or_critical()
        assert validator.get_summary_stats() == {
            "total_issues": 0,
            "by_severity": {"info": 0, "warning": 0, "error": 0, "critical": 0},
            "by_category": {},
        }

    def test_rerun_resets(self, live_data):
        """Issues from an earlier run are not carried over."""
        validator = ScenarioDataValidator(live_data)
        live_data.teams[0].capacity = 0
        assert len(validator.validate_all()) == 1

        live_data.teams[0].capacity = 160
        assert validator.validate_all() == []


class TestReferences:
    """Tests for cross-collection reference checks."""

    def test_allocation_to_unknown_team(self, live_data):
        live_data.allocations.append(Allocation(
            id="alloc-ghost", team_id="team-ghost", cycle_id="q1-2024", epic_id="epic-login", percentage=10,
        ))
        issue = _issues(live_data)["REF_001"]

        assert issue.severity == ValidationSeverity.ERROR
        assert issue.category == "Consistency"
        assert issue.metadata["missing_ids"] == ["team-ghost"]
        assert issue.affected_data["id"].tolist() == ["alloc-ghost"]

    def test_person_with_unknown_role(self, live_data):
        live_data.people[0].role_id = "ghost-role"
        issues = _issues(live_data)

        assert issues["REF_007"].severity == ValidationSeverity.WARNING
        assert "RATE_001" not in issues

    def test_team_with_unknown_division(self, live_data):
        live_data.teams[1].division_id = "div-missing"
        issue = _issues(live_data)["REF_009"]
        assert issue.metadata["missing_ids"] == ["div-missing"]

    def test_epic_without_project_allowed(self, live_data):
        """Epics may be unassigned; only unknown project ids are reported."""
        live_data.epics[1].project_id = None
        assert "REF_008" not in _issues(live_data)


class TestAllocations:
    """Tests for allocation checks."""

    def test_over_allocation(self, live_data):
        live_data.allocations.append(Allocation(
            id="alloc-5", team_id="team-frontend", cycle_id="q1-2024", iteration_number=1,
            epic_id="epic-login", percentage=30,
        ))
        issue = _issues(live_data)["ALLOC_002"]

        assert issue.severity == ValidationSeverity.WARNING
        assert issue.metadata["team_ids"] == ["team-frontend"]
        assert "max 130%" in issue.description
        assert issue.affected_data.loc[0, "total_percentage"] == 130

    def test_other_iteration_not_over_allocated(self, live_data):
        live_data.allocations.append(Allocation(
            id="alloc-5", team_id="team-frontend", cycle_id="q1-2024", iteration_number=2,
            epic_id="epic-login", percentage=100,
        ))
        assert _issues(live_data) == {}

    def test_out_of_range(self, live_data):
        live_data.allocations[0].percentage = -10
        issues = _issues(live_data)

        assert issues["ALLOC_001"].affected_data["id"].tolist() == ["alloc-1"]
        assert "ALLOC_002" not in issues


class TestValues:
    """Tests for capacity, date, budget and rate checks."""

    def test_zero_capacity(self, live_data):
        live_data.teams.append(Team(id="team-empty", name="Empty", capacity=0, division_id="div-digital"))
        issue = _issues(live_data)["CAP_001"]
        assert issue.metadata["team_ids"] == ["team-empty"]

    def test_dates(self, live_data):
        live_data.projects[0].end_date = date(2023, 12, 1)
        live_data.people[0].end_date = date(2022, 1, 1)
        issues = _issues(live_data)

        assert issues["DATE_001"].severity == ValidationSeverity.ERROR
        assert issues["DATE_002"].severity == ValidationSeverity.WARNING

    def test_negative_budgets(self, live_data):
        live_data.projects[1].budget = -5
        live_data.divisions[0].budget = -1
        issue = _issues(live_data)["BUDGET_001"]
        assert issue.affected_data["collection"].tolist() == ["projects", "divisions"]

    def test_missing_rates_are_informational(self, live_data):
        live_data.roles.append(Role(id="intern", name="Intern"))
        live_data.people.append(Person(id="person-ivy", name="Ivy", role_id="intern", team_id="team-backend"))
        validator = ScenarioDataValidator(live_data)
        issues = validator.validate_all()

        assert [i.id for i in issues] == ["RATE_001"]
        assert issues[0].severity == ValidationSeverity.INFO
        assert not validator.has_errors_or_critical()

    def test_inactive_people_skipped(self, live_data):
        live_data.roles.append(Role(id="intern", name="Intern"))
        live_data.people.append(Person(id="person-ivy", name="Ivy", role_id="intern",
                                       team_id="team-backend", is_active=False))
        assert _issues(live_data) == {}


class TestIntegrity:
    """Tests for duplicate ids and summary statistics."""

    def test_duplicate_ids(self, live_data):
        live_data.teams.append(live_data.teams[0].model_copy())
        validator = ScenarioDataValidator(live_data)
        issues = validator.validate_all()

        assert issues[0].id == "DUP_001"
        assert issues[0].metadata == {"collection": "teams", "duplicate_ids": ["team-frontend"]}
        assert validator.has_errors_or_critical()
        assert not validator.has_critical_issues()

    def test_issues_logged(self, live_data, caplog):
        live_data.projects[1].budget = -5
        with caplog.at_level(logging.WARNING):
            ScenarioDataValidator(live_data).validate_all()

        assert "Validation found 1 issues (1 errors or critical)" in caplog.text

    def test_summary_stats(self, live_data):
        live_data.teams[0].capacity = 0
        live_data.projects[1].budget = -5
        validator = ScenarioDataValidator(live_data)
        validator.validate_all()

        stats = validator.get_summary_stats()
        assert stats["total_issues"] == 2
        assert stats["by_severity"]["warning"] == 1
        assert stats["by_severity"]["error"] == 1
        assert stats["by_category"] == {"Capacity": 1, "Budget": 1}
