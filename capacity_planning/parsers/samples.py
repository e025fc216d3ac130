"""Sample CSV content for each import type, and allocation export."""

from typing import List, Sequence

from ..models import Allocation, Cycle, Epic, RunWorkCategory, Team
from .csv_reader import to_csv_text

SIMPLE_ALLOCATION_SAMPLE = [
    ["teamName", "epicName", "epicType", "sprintNumber", "percentage", "quarter"],
    ["Frontend Team", "User Authentication", "Project Epic", "1", "60", "Q1 2024"],
    ["Frontend Team", "Production Support", "Run Work", "1", "40", "Q1 2024"],
    ["Backend Team", "API Development", "Project Epic", "1", "80", "Q1 2024"],
    ["Backend Team", "Technical Debt", "Run Work", "1", "20", "Q1 2024"],
]

PLANNING_ALLOCATION_SAMPLE = [
    ["Team Name", "Quarter", "Iteration Number", "Epic Name", "Epic Type", "Allocation Percentage", "Notes"],
    ["Mortgage Origination", "Q1 2024", "1", "User Authentication", "Project", "60", "Core authentication system"],
    ["Mortgage Origination", "Q1 2024", "1", "Support Tickets", "Run Work", "40", "Ongoing support work"],
    ["Personal Loans Platform", "Q1 2024", "1", "Payments Integration", "Project", "80", "Payment gateway integration"],
    ["Personal Loans Platform", "Q1 2024", "1", "Technical Debt", "Run Work", "20", ""],
]

ACTUAL_ALLOCATION_SAMPLE = [
    ["Team Name", "Quarter", "Iteration Number", "Epic Name", "Epic Type", "Actual Percentage",
     "Variance Reason", "Notes"],
    ["Frontend Team", "Q1 2024", "1", "User Authentication", "Epic", "65", "scope-change",
     "Additional security requirements"],
    ["Frontend Team", "Q1 2024", "1", "Production Support", "Run Work", "35", "none", ""],
    ["Backend Team", "Q1 2024", "1", "API Development", "Epic", "80", "none", ""],
    ["Backend Team", "Q1 2024", "1", "Technical Debt", "Run Work", "20", "priority-shift",
     "Urgent tech debt items"],
]

ITERATION_REVIEW_SAMPLE = [
    ["Quarter", "Iteration Number", "Review Date", "Status", "Completed Epics", "Completed Milestones", "Notes"],
    ["Q1 2024", "1", "2024-01-15", "completed", "User Authentication", "", "Login flow shipped"],
    ["Q1 2024", "2", "2024-01-29", "completed", "User Authentication, API Development",
     "User Authentication Platform", ""],
]

BULK_TRACKING_SAMPLE = [
    ["Data Type", "Team Name", "Quarter", "Iteration Number", "Epic/Work Name", "Actual Percentage",
     "Variance Reason", "Review Date", "Status", "Completed Epics", "Completed Milestones", "Notes"],
    ["allocation", "Frontend Team", "Q1 2024", "1", "User Authentication", "70", "scope-change",
     "", "", "", "", ""],
    ["allocation", "Frontend Team", "Q1 2024", "1", "Production Support", "30", "", "", "", "", "", ""],
    ["review", "", "Q1 2024", "1", "", "", "", "2024-01-15", "completed", "User Authentication", "",
     "Sprint goals met"],
]

TEAMS_SAMPLE = [
    ["team_id", "team_name", "division_id", "division_name", "capacity", "division_budget"],
    ["team-frontend", "Frontend Team", "div-digital", "Digital", "160", "2000000"],
    ["team-backend", "Backend Team", "div-digital", "Digital", "200", "2000000"],
    ["team-data", "Data Team", "div-platform", "Platform", "120", "1500000"],
]

PEOPLE_SAMPLE = [
    ["name", "email", "role", "team_name", "team_id", "employment_type", "annual_salary", "hourly_rate"],
    ["Alice Smith", "alice@example.com", "Senior Engineer", "Frontend Team", "team-frontend", "permanent",
     "120000", ""],
    ["Bob Jones", "bob@example.com", "Designer", "Frontend Team", "team-frontend", "contractor", "", "95"],
    ["Carol White", "carol@example.com", "Tech Lead", "Backend Team", "team-backend", "permanent", "140000", ""],
]


def sample_allocation_csv() -> str:
    """Sample for the simple allocation import."""
    return to_csv_text(SIMPLE_ALLOCATION_SAMPLE)


def sample_planning_allocation_csv() -> str:
    """Sample for the mapped planning allocation import."""
    return to_csv_text(PLANNING_ALLOCATION_SAMPLE)


def sample_actual_allocation_csv() -> str:
    """Sample for the mapped actual allocation import."""
    return to_csv_text(ACTUAL_ALLOCATION_SAMPLE)


def sample_iteration_review_csv() -> str:
    """Sample for the iteration review import."""
    return to_csv_text(ITERATION_REVIEW_SAMPLE)


def sample_bulk_tracking_csv() -> str:
    """Sample for the bulk tracking import."""
    return to_csv_text(BULK_TRACKING_SAMPLE)


def sample_teams_csv() -> str:
    """Sample for the teams-with-divisions import."""
    return to_csv_text(TEAMS_SAMPLE)


def sample_people_csv() -> str:
    """Sample for the people import."""
    return to_csv_text(PEOPLE_SAMPLE)


def export_allocations_csv(
    allocations: Sequence[Allocation],
    teams: Sequence[Team],
    cycles: Sequence[Cycle],
    epics: Sequence[Epic],
    run_work_categories: Sequence[RunWorkCategory],
) -> str:
    """Export allocations in the planning import layout.

    Ids are written as names so the output can be imported again; unknown
    references fall back to the raw id.
    """
    team_names = {t.id: t.name for t in teams}
    cycle_names = {c.id: c.name for c in cycles}
    epic_names = {e.id: e.name for e in epics}
    run_work_names = {r.id: r.name for r in run_work_categories}

    rows: List[List[object]] = [PLANNING_ALLOCATION_SAMPLE[0]]
    for allocation in allocations:
        if allocation.run_work_category_id:
            work_name = run_work_names.get(allocation.run_work_category_id, allocation.run_work_category_id)
            work_type = "Run Work"
        else:
            work_name = epic_names.get(allocation.epic_id, allocation.epic_id or "")
            work_type = "Project"
        rows.append([
            team_names.get(allocation.team_id, allocation.team_id),
            cycle_names.get(allocation.cycle_id, allocation.cycle_id),
            allocation.iteration_number,
            work_name,
            work_type,
            f"{allocation.percentage:g}",
            allocation.notes,
        ])
    return to_csv_text(rows)
