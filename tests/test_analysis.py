"""Tests for project/team matching."""

import logging
import pytest
from datetime import date

from capacity_planning.analysis import analyze_project_team_availability, find_active_cycle
from capacity_planning.exceptions import EntityNotFoundError
from capacity_planning.models import Cycle, CycleType, ProjectSkill

IN_Q1 = date(2024, 2, 15)
AFTER_Q2 = date(2024, 7, 15)


class TestFindActiveCycle:
    """Tests for find_active_cycle."""

    def test_quarter_preferred(self, cycles):
        """A quarter wins over an iteration that also contains the day."""
        assert find_active_cycle(cycles, date(2024, 1, 10)).id == "q1-2024"

    def test_first_containing_cycle(self):
        iteration = Cycle(id="it", name="Iteration", type=CycleType.ITERATION,
                          start_date=date(2024, 1, 1), end_date=date(2024, 1, 14))
        assert find_active_cycle([iteration], date(2024, 1, 5)) is iteration

    def test_none(self, cycles):
        assert find_active_cycle(cycles, AFTER_Q2) is None


class TestTeamMatching:
    """Tests for analyze_project_team_availability."""

    def test_partial_skill_match(self, live_data):
        """Frontend covers React but nobody covers Security."""
        analysis = analyze_project_team_availability("proj-auth", live_data, today=IN_Q1)

        assert analysis.project_name == "User Authentication Platform"
        assert analysis.required_skills == ["skill-react", "skill-security"]
        assert analysis.active_cycle_id == "q1-2024"

        best = analysis.best_match
        assert best.team_id == "team-frontend"
        assert best.skill_match_percentage == 50
        assert best.availability_percentage == 0
        assert best.used_capacity == 100
        assert best.overall_score == pytest.approx(35)
        assert len(best.conflicting_allocations) == 2

        react = best.skill_breakdown[0]
        assert react.has_skill
        assert react.proficiency_level == "expert"
        assert react.person_ids == ["person-alice", "person-bob"]

    def test_gaps_and_recommendations(self, live_data):
        analysis = analyze_project_team_availability("proj-auth", live_data, today=IN_Q1)

        assert [g.skill_name for g in analysis.skill_gaps] == ["Security"]
        assert analysis.skill_gaps[0].importance == "critical"
        assert analysis.recommended_actions == [
            "Critical skill gaps identified: Security. Consider training or hiring.",
            "High utilization detected in 2 teams. Consider resource balancing.",
        ]

    def test_right_skills_limited_availability(self, live_data):
        analysis = analyze_project_team_availability("proj-api", live_data, today=IN_Q1)

        assert analysis.best_match.team_id == "team-backend"
        assert analysis.best_match.overall_score == pytest.approx(70)
        assert analysis.recommended_actions[0] == (
            "Backend Team has the right skills but limited availability. Consider adjusting timelines."
        )

    def test_no_active_cycle(self, live_data, caplog):
        """Without a current cycle every team is fully available."""
        with caplog.at_level(logging.WARNING):
            analysis = analyze_project_team_availability("proj-api", live_data, today=AFTER_Q2)

        assert analysis.active_cycle_id is None
        assert "No cycle contains" in caplog.text
        assert [m.availability_percentage for m in analysis.team_matches] == [100, 100]
        assert analysis.best_match.overall_score == pytest.approx(100)
        assert analysis.team_matches[1].overall_score == pytest.approx(30)
        assert analysis.recommended_actions == [
            "Consider Backend Team - excellent match (100% overall score)",
        ]

    def test_inactive_members_ignored(self, live_data):
        for person in live_data.people[:2]:
            person.is_active = False
        analysis = analyze_project_team_availability("proj-auth", live_data, today=IN_Q1)

        frontend = next(m for m in analysis.team_matches if m.team_id == "team-frontend")
        assert frontend.skill_match_percentage == 0
        assert frontend.available_people == []
        assert [g.skill_id for g in analysis.skill_gaps] == ["skill-react", "skill-security"]

    def test_unknown_and_duplicate_skills_skipped(self, live_data):
        live_data.project_skills.append(ProjectSkill(project_id="proj-api", skill_id="skill-missing"))
        live_data.project_skills.append(ProjectSkill(project_id="proj-api", skill_id="skill-python"))

        analysis = analyze_project_team_availability("proj-api", live_data, today=IN_Q1)
        assert analysis.required_skills == ["skill-python"]

    def test_no_required_skills(self, live_data):
        """Every team fully matches a project without skill requirements."""
        live_data.project_skills = []
        analysis = analyze_project_team_availability("proj-api", live_data, today=AFTER_Q2)

        assert all(m.skill_match_percentage == 100 for m in analysis.team_matches)
        assert analysis.skill_gaps == []

    def test_dataframe(self, live_data):
        df = analyze_project_team_availability("proj-auth", live_data, today=IN_Q1).to_dataframe()

        assert list(df.columns) == [
            "Team", "Skill Match %", "Availability %", "Overall Score", "Members", "Capacity (h/week)",
        ]
        assert df.loc[0, "Team"] == "Frontend Team"
        assert df.loc[0, "Members"] == 2

    def test_unknown_project(self, live_data):
        with pytest.raises(EntityNotFoundError):
            analyze_project_team_availability("missing", live_data)
