"""Team, division, role and people import from header-keyed CSV."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from pydantic import ValidationError

from ..models import ContractDetails, Division, EmploymentType, Person, RateType, Role, Team
from .csv_reader import read_csv_frame
from .mapped_import import slugify
from .numbers import parse_float

logger = logging.getLogger(__name__)

DEFAULT_TEAM_CAPACITY = 40.0


@dataclass
class TeamImport:
    """Teams and divisions read from a teams CSV."""
    teams: List[Team] = field(default_factory=list)
    divisions: List[Division] = field(default_factory=list)


@dataclass
class PeopleImport:
    """People plus the teams, divisions and roles they reference."""
    people: List[Person] = field(default_factory=list)
    teams: List[Team] = field(default_factory=list)
    divisions: List[Division] = field(default_factory=list)
    roles: List[Role] = field(default_factory=list)


def _header_key(header: str) -> str:
    return "_".join(header.lower().split())


def _records(text: str) -> List[Dict[str, str]]:
    frame = read_csv_frame(text)
    frame.columns = [_header_key(c) for c in frame.columns]
    return frame.to_dict("records")


def _positive(value: str) -> Optional[float]:
    number = parse_float(value)
    return number if number is not None and number > 0 else None


def _division_id(record: Dict[str, str]) -> Optional[str]:
    if record.get("division_id"):
        return record["division_id"]
    if record.get("division_name"):
        return f"division-{slugify(record['division_name'])}"
    return None


def _add_division(record: Dict[str, str], division_id: Optional[str], divisions: Dict[str, Division]) -> None:
    if not record.get("division_name") or division_id is None or division_id in divisions:
        return
    divisions[division_id] = Division(
        id=division_id,
        name=record["division_name"],
        description=record.get("division_description") or None,
        budget=parse_float(record.get("division_budget", "")),
    )


def parse_teams_with_divisions_csv(text: str) -> TeamImport:
    """Parse teams with their divisions.

    Headers are matched case-insensitively with spaces read as underscores
    (``team_id, team_name, division_id, division_name, capacity,
    division_budget, division_description``). A division without an id gets
    ``division-<slug>``; a team without an id gets ``team-<slug>``; capacity
    defaults to 40. Rows with fewer than two filled cells or no team name are
    skipped. A later row with the same team id replaces the earlier one.

    Raises:
        CsvImportError: If the text is not parseable CSV
    """
    teams: Dict[str, Team] = {}
    divisions: Dict[str, Division] = {}

    for record in _records(text):
        if sum(1 for v in record.values() if v) < 2 or not record.get("team_name"):
            continue

        division_id = _division_id(record)
        _add_division(record, division_id, divisions)

        team_id = record.get("team_id") or f"team-{slugify(record['team_name'])}"
        capacity = parse_float(record.get("capacity", ""))
        teams[team_id] = Team(
            id=team_id,
            name=record["team_name"],
            division_id=division_id,
            capacity=capacity if capacity is not None else DEFAULT_TEAM_CAPACITY,
        )

    return TeamImport(teams=list(teams.values()), divisions=list(divisions.values()))


def parse_people_csv(text: str) -> PeopleImport:
    """Parse people together with their teams, divisions and roles.

    Roles are keyed ``role-<slug>`` and carry default rates from the
    ``role_default_*`` columns (falling back to the person's own rate
    columns). Permanent staff get ``annual_salary``; contractors get
    contract hourly/daily rates. Rows without a name are skipped, as are rows
    whose values fail model validation (logged as warnings).

    Raises:
        CsvImportError: If the text is not parseable CSV
    """
    people: List[Person] = []
    teams: Dict[str, Team] = {}
    divisions: Dict[str, Division] = {}
    roles: Dict[str, Role] = {}

    for index, record in enumerate(_records(text)):
        if not record.get("name"):
            continue

        team_name = record.get("team_name") or "Unknown Team"
        team_id = record.get("team_id") or f"team-{slugify(team_name)}"
        division_id = _division_id(record)
        role_name = record.get("role", "")
        role_id = f"role-{slugify(role_name)}" if role_name else ""

        try:
            if role_name and role_id not in roles:
                hourly = _positive(record.get("role_default_hourly_rate") or record.get("hourly_rate", ""))
                daily = _positive(record.get("role_default_daily_rate") or record.get("daily_rate", ""))
                annual = _positive(record.get("role_default_annual_salary") or record.get("annual_salary", ""))
                legacy = parse_float(record.get("role_default_rate", ""))
                roles[role_id] = Role(
                    id=role_id,
                    name=role_name,
                    rate_type=RateType.DAILY if daily and not hourly else RateType.HOURLY,
                    default_rate=legacy if legacy is not None else (hourly or 100.0),
                    default_hourly_rate=hourly,
                    default_daily_rate=daily,
                    default_annual_salary=annual,
                )

            _add_division(record, division_id, divisions)

            if team_id not in teams:
                capacity = parse_float(record.get("team_capacity", ""))
                teams[team_id] = Team(
                    id=team_id,
                    name=team_name,
                    division_id=division_id,
                    capacity=capacity if capacity is not None else DEFAULT_TEAM_CAPACITY,
                )

            employment = (
                EmploymentType.CONTRACTOR
                if record.get("employment_type", "").lower() == "contractor"
                else EmploymentType.PERMANENT
            )
            person = Person(
                id=f"person-{index + 1}",
                name=record["name"],
                email=record.get("email", ""),
                role_id=role_id,
                team_id=team_id,
                is_active=record.get("is_active", "").lower() not in ("false", "0"),
                employment_type=employment,
                start_date=record.get("start_date") or date.today(),
                end_date=record.get("end_date") or None,
            )
            if employment == EmploymentType.PERMANENT:
                person.annual_salary = _positive(record.get("annual_salary", ""))
            else:
                hourly = _positive(record.get("hourly_rate", ""))
                daily = _positive(record.get("daily_rate", ""))
                if hourly or daily:
                    person.contract_details = ContractDetails(hourly_rate=hourly, daily_rate=daily)
        except ValidationError as e:
            logger.warning(f"Skipping person row {index + 2}: {e}")
            continue

        people.append(person)

    return PeopleImport(
        people=people,
        teams=list(teams.values()),
        divisions=list(divisions.values()),
        roles=list(roles.values()),
    )
