"""Tests for the scenario diff engine."""

import pytest
from datetime import date

from capacity_planning.config import ScenarioSettings
from capacity_planning.models import Allocation, Person, Project
from capacity_planning.scenario import (
    ChangeCategory,
    ChangeType,
    ImpactLevel,
    ScenarioDiffEngine,
    compare_scenario_data,
)


def _compare(live, scenario):
    return compare_scenario_data(live, scenario, "scn-1", "What If")


class TestUnchanged:
    """Tests for identical snapshots."""

    def test_no_changes(self, live_data):
        comparison = _compare(live_data, live_data.clone())

        assert comparison.summary.total_changes == 0
        assert comparison.summary.categorized_changes == {
            "financial": 0, "resources": 0, "timeline": 0, "scope": 0, "organizational": 0,
        }
        assert comparison.summary.impact_level == ImpactLevel.LOW
        assert comparison.scenario_name == "What If"


class TestProjectChanges:
    """Tests for project budget, date and scope changes."""

    def test_budget_change(self, live_data):
        """Budget cuts above the high threshold are high impact."""
        scenario = live_data.clone()
        scenario.projects[0].budget = 380000
        scenario.projects[1].budget = 160000

        comparison = _compare(live_data, scenario)
        financial = comparison.changes_in(ChangeCategory.FINANCIAL)

        assert [c.id for c in financial] == ["project-budget-proj-auth", "project-budget-proj-api"]
        assert financial[0].description == "Budget changed from 500,000 to 380,000"
        assert financial[0].impact == ImpactLevel.HIGH
        assert financial[1].impact == ImpactLevel.LOW
        assert comparison.financial_impact.total_cost_difference == -160000
        assert comparison.financial_impact.project_cost_changes[0].percentage_change == pytest.approx(-24)

    def test_date_shift(self, live_data):
        """A two-week slip is a medium timeline change."""
        scenario = live_data.clone()
        scenario.projects[0].start_date = date(2024, 1, 15)
        scenario.projects[0].end_date = date(2024, 7, 14)

        comparison = _compare(live_data, scenario)
        timeline = comparison.changes_in("timeline")

        assert len(timeline) == 1
        assert timeline[0].description == "Project dates shifted by 14 days"
        assert timeline[0].impact == ImpactLevel.MEDIUM
        assert [d.field for d in timeline[0].details] == ["start_date", "end_date"]

        date_change = comparison.timeline_impact.project_date_changes[0]
        assert date_change.start_date_change == 14
        assert date_change.end_date_change == 14

    def test_added_and_removed(self, live_data):
        scenario = live_data.clone()
        scenario.projects.pop()
        scenario.projects.append(Project(id="proj-new", name="Data Platform"))

        comparison = _compare(live_data, scenario)
        scope = {c.id: c for c in comparison.changes_in(ChangeCategory.SCOPE)}

        assert scope["project-added-proj-new"].impact == ImpactLevel.MEDIUM
        assert scope["project-added-proj-new"].change_type == ChangeType.ADDED
        assert scope["project-removed-proj-api"].impact == ImpactLevel.HIGH
        assert scope["project-removed-proj-api"].description == 'Project "API Modernisation" removed'


class TestTeamChanges:
    """Tests for team capacity and organisation changes."""

    def test_capacity_change(self, live_data):
        scenario = live_data.clone()
        scenario.teams[0].capacity = 190

        comparison = _compare(live_data, scenario)
        change = comparison.changes_in(ChangeCategory.RESOURCES)[0]

        assert change.description == "Team capacity changed from 160h to 190h"
        assert change.impact == ImpactLevel.HIGH
        assert comparison.resource_impact.team_capacity_changes[0].capacity_difference == 30

    def test_capacity_thresholds_configurable(self, live_data):
        scenario = live_data.clone()
        scenario.teams[0].capacity = 190

        engine = ScenarioDiffEngine(ScenarioSettings(capacity_high_threshold=50, capacity_medium_threshold=25))
        comparison = engine.compare(live_data, scenario, "scn-1", "What If")

        assert comparison.changes[0].impact == ImpactLevel.MEDIUM

    def test_team_removed(self, live_data):
        scenario = live_data.clone()
        scenario.teams.pop()

        change = _compare(live_data, scenario).changes_in(ChangeCategory.ORGANIZATIONAL)[0]
        assert change.id == "team-removed-team-backend"
        assert change.impact == ImpactLevel.HIGH


class TestEpicChanges:
    """Tests for epic changes."""

    def test_status_and_target(self, live_data):
        scenario = live_data.clone()
        scenario.epics[0].status = "completed"
        scenario.epics[0].target_date = date(2024, 5, 31)

        comparison = _compare(live_data, scenario)
        ids = [c.id for c in comparison.changes]

        assert ids == ["epic-status-epic-login", "epic-target-epic-login"]
        assert comparison.changes[1].description == "Epic target date shifted by 61 days"
        assert comparison.changes[1].impact == ImpactLevel.HIGH


class TestPeopleAndAllocations:
    """Tests for people and allocation changes."""

    def test_people_changes(self, live_data):
        scenario = live_data.clone()
        scenario.people[2].team_id = "team-frontend"
        scenario.people.pop()
        scenario.people.append(Person(id="person-eve", name="Eve Adams", team_id="team-backend"))

        people = _compare(live_data, scenario).resource_impact.people_changes

        assert people.added == 1
        assert people.removed == 1
        assert people.reallocated == 1

    def test_allocation_modified(self, live_data):
        scenario = live_data.clone()
        scenario.allocations[0].percentage = 30

        comparison = _compare(live_data, scenario)
        change = comparison.changes[0]

        assert change.description == "Frontend Team allocation to epic-login changed from 60% to 30%"
        assert change.impact == ImpactLevel.LOW
        team_change = comparison.resource_impact.team_capacity_changes[0]
        assert team_change.team_id == "team-frontend"
        assert team_change.allocation_changes == 1

    def test_allocation_moved_between_teams(self, live_data):
        """Moving an allocation counts against both the old and the new team."""
        scenario = live_data.clone()
        scenario.allocations[0].team_id = "team-backend"

        comparison = _compare(live_data, scenario)

        assert comparison.changes[0].details[0].field == "team_id"
        counts = {c.team_id: c.allocation_changes for c in comparison.resource_impact.team_capacity_changes}
        assert counts == {"team-backend": 1, "team-frontend": 1}

    def test_allocation_added(self, live_data):
        """Large new allocations are medium impact."""
        scenario = live_data.clone()
        scenario.allocations.append(Allocation(
            id="alloc-5", team_id="team-backend", cycle_id="q1-2024", iteration_number=2,
            epic_id="epic-api", percentage=50,
        ))

        change = _compare(live_data, scenario).changes[0]
        assert change.description == "Backend Team allocated 50% to epic-api"
        assert change.impact == ImpactLevel.MEDIUM


class TestOverallImpact:
    """Tests for the scenario-level impact grade."""

    def test_medium_when_more_than_two_high(self, live_data):
        scenario = live_data.clone()
        scenario.projects.pop()
        scenario.epics.pop()
        scenario.teams.pop()

        comparison = _compare(live_data, scenario)
        assert comparison.summary.impact_level == ImpactLevel.MEDIUM
        assert comparison.summary.categorized_changes["scope"] == 2
        assert comparison.summary.categorized_changes["organizational"] == 1
