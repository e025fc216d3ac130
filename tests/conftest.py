"""Pytest configuration and shared fixtures."""

import pytest
from datetime import date

from capacity_planning.models import (
    Allocation,
    ContractDetails,
    Cycle,
    CycleType,
    Division,
    EmploymentType,
    Epic,
    Person,
    PersonSkill,
    Project,
    ProjectSkill,
    ProjectStatus,
    Role,
    RunWorkCategory,
    Skill,
    Team,
)
from capacity_planning.scenario import ScenarioData, ScenarioManager


@pytest.fixture
def divisions():
    """Fixture for divisions."""
    return [Division(id="div-digital", name="Digital", budget=2000000)]


@pytest.fixture
def roles():
    """Fixture for roles; ids match the default role cost configuration."""
    return [
        Role(id="senior-engineer", name="Senior Engineer", default_annual_salary=120000),
        Role(id="tech-lead", name="Tech Lead", default_annual_salary=140000),
        Role(id="contract-developer", name="Contract Developer", default_hourly_rate=100),
    ]


@pytest.fixture
def teams():
    """Fixture for teams."""
    return [
        Team(id="team-frontend", name="Frontend Team", capacity=160, division_id="div-digital"),
        Team(id="team-backend", name="Backend Team", capacity=200, division_id="div-digital"),
    ]


@pytest.fixture
def people():
    """Fixture for people: two per team, one contractor."""
    return [
        Person(id="person-alice", name="Alice Smith", email="alice@example.com",
               role_id="senior-engineer", team_id="team-frontend", annual_salary=120000,
               start_date=date(2022, 3, 1)),
        Person(id="person-bob", name="Bob Jones", email="bob@example.com",
               role_id="tech-lead", team_id="team-frontend"),
        Person(id="person-carol", name="Carol White", email="carol@example.com",
               role_id="senior-engineer", team_id="team-backend", annual_salary=130000),
        Person(id="person-dan", name="Dan Brown", email="dan@example.com",
               role_id="contract-developer", team_id="team-backend",
               employment_type=EmploymentType.CONTRACTOR,
               contract_details=ContractDetails(hourly_rate=110)),
    ]


@pytest.fixture
def projects():
    """Fixture for projects."""
    return [
        Project(id="proj-auth", name="User Authentication Platform", status=ProjectStatus.ACTIVE,
                start_date=date(2024, 1, 1), end_date=date(2024, 6, 30), budget=500000),
        Project(id="proj-api", name="API Modernisation", status=ProjectStatus.PLANNING,
                start_date=date(2024, 2, 1), end_date=date(2024, 9, 30), budget=200000),
    ]


@pytest.fixture
def epics():
    """Fixture for epics, one per project."""
    return [
        Epic(id="epic-login", name="User Authentication", project_id="proj-auth",
             status="in-progress", effort=40, target_date=date(2024, 3, 31)),
        Epic(id="epic-api", name="API Development", project_id="proj-api", effort=60),
    ]


@pytest.fixture
def cycles():
    """Fixture for two quarters and the first quarter's iterations."""
    return [
        Cycle(id="q1-2024", name="Q1 2024", type=CycleType.QUARTERLY,
              start_date=date(2024, 1, 1), end_date=date(2024, 3, 31)),
        Cycle(id="q2-2024", name="Q2 2024", type=CycleType.QUARTERLY,
              start_date=date(2024, 4, 1), end_date=date(2024, 6, 30)),
        Cycle(id="q1-2024-it1", name="Q1 2024 Iteration 1", type=CycleType.ITERATION,
              start_date=date(2024, 1, 1), end_date=date(2024, 1, 15), parent_cycle_id="q1-2024"),
        Cycle(id="q1-2024-it2", name="Q1 2024 Iteration 2", type=CycleType.ITERATION,
              start_date=date(2024, 1, 15), end_date=date(2024, 1, 29), parent_cycle_id="q1-2024"),
    ]


@pytest.fixture
def run_work_categories():
    """Fixture for run-work categories."""
    return [
        RunWorkCategory(id="rw-support", name="Production Support"),
        RunWorkCategory(id="rw-debt", name="Technical Debt"),
    ]


@pytest.fixture
def allocations():
    """Fixture for first-iteration allocations; each team totals 100%."""
    return [
        Allocation(id="alloc-1", team_id="team-frontend", cycle_id="q1-2024", iteration_number=1,
                   epic_id="epic-login", percentage=60),
        Allocation(id="alloc-2", team_id="team-frontend", cycle_id="q1-2024", iteration_number=1,
                   run_work_category_id="rw-support", percentage=40),
        Allocation(id="alloc-3", team_id="team-backend", cycle_id="q1-2024", iteration_number=1,
                   epic_id="epic-api", percentage=80),
        Allocation(id="alloc-4", team_id="team-backend", cycle_id="q1-2024", iteration_number=1,
                   run_work_category_id="rw-debt", percentage=20),
    ]


@pytest.fixture
def live_data(divisions, roles, teams, people, projects, epics, cycles, run_work_categories, allocations):
    """Complete live planning snapshot."""
    return ScenarioData(
        divisions=divisions,
        roles=roles,
        teams=teams,
        people=people,
        projects=projects,
        epics=epics,
        cycles=cycles,
        run_work_categories=run_work_categories,
        allocations=allocations,
        skills=[
            Skill(id="skill-react", name="React", category="frontend"),
            Skill(id="skill-python", name="Python", category="backend"),
            Skill(id="skill-security", name="Security", category="security"),
        ],
        person_skills=[
            PersonSkill(person_id="person-alice", skill_id="skill-react", proficiency_level="expert"),
            PersonSkill(person_id="person-bob", skill_id="skill-react", proficiency_level="intermediate"),
            PersonSkill(person_id="person-carol", skill_id="skill-python", proficiency_level="advanced"),
            PersonSkill(person_id="person-dan", skill_id="skill-python", proficiency_level="beginner"),
        ],
        project_skills=[
            ProjectSkill(project_id="proj-auth", skill_id="skill-react", importance="high"),
            ProjectSkill(project_id="proj-auth", skill_id="skill-security", importance="critical"),
            ProjectSkill(project_id="proj-api", skill_id="skill-python", importance="medium"),
        ],
    )


@pytest.fixture
def scenario_manager(tmp_path):
    """Scenario manager with temporary storage."""
    return ScenarioManager(storage_dir=tmp_path / "scenarios")
