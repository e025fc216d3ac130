"""Simple allocation import.

Parses the compact allocation CSV (``teamName, epicName, epicType,
sprintNumber, percentage, quarter``), validates rows against existing
entities and converts valid rows into Allocation records.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..models import Allocation, Cycle, Epic, RunWorkCategory, Team
from .csv_reader import read_csv_frame
from .entity_resolver import EntityNameResolver, normalize_name
from .numbers import parse_float, parse_int

logger = logging.getLogger(__name__)

RUN_WORK_TYPE = "run work"
IMPORT_NOTES = "Imported from CSV"


@dataclass
class AllocationImportRow:
    """One parsed row of the simple allocation CSV."""
    team_name: str
    epic_name: str
    epic_type: str = ""
    sprint_number: int = 1
    percentage: float = 0.0
    quarter: str = ""

    @property
    def is_run_work(self) -> bool:
        """True when the row targets a run-work category instead of an epic."""
        return normalize_name(self.epic_type) == RUN_WORK_TYPE


def parse_allocation_csv(text: str) -> List[AllocationImportRow]:
    """Parse the simple allocation CSV.

    Rows without a team name or epic name are dropped. An unparseable sprint
    number becomes 1 and an unparseable percentage becomes 0.

    Args:
        text: CSV content with a header row

    Returns:
        Parsed rows in file order

    Raises:
        CsvImportError: If the text is not parseable CSV
    """
    frame = read_csv_frame(text)
    rows = []
    for record in frame.to_dict("records"):
        team_name = record.get("teamName", "")
        epic_name = record.get("epicName", "")
        if not team_name or not epic_name:
            continue
        sprint = parse_int(record.get("sprintNumber", ""))
        percentage = parse_float(record.get("percentage", ""))
        rows.append(AllocationImportRow(
            team_name=team_name,
            epic_name=epic_name,
            epic_type=record.get("epicType", ""),
            sprint_number=sprint if sprint is not None else 1,
            percentage=percentage if percentage is not None else 0.0,
            quarter=record.get("quarter", ""),
        ))
    return rows


def validate_allocation_import(
    rows: Sequence[AllocationImportRow],
    teams: Sequence[Team],
    epics: Sequence[Epic],
    run_work_categories: Sequence[RunWorkCategory],
    cycles: Sequence[Cycle],
) -> Tuple[List[AllocationImportRow], List[str]]:
    """Check parsed rows against existing entities.

    Every problem with a row is reported; a row is valid only when it has
    none. The first data row is row 2.

    Returns:
        (valid rows, error messages prefixed with "Row N:")
    """
    team_resolver = EntityNameResolver(teams)
    epic_resolver = EntityNameResolver(epics)
    run_work_resolver = EntityNameResolver(run_work_categories)
    cycle_resolver = EntityNameResolver.for_cycles(cycles)

    valid = []
    errors = []
    for index, row in enumerate(rows):
        prefix = f"Row {index + 2}:"
        row_errors = []

        if not team_resolver.is_known(row.team_name):
            row_errors.append(f'{prefix} Team "{row.team_name}" not found')
        if not cycle_resolver.is_known(row.quarter):
            row_errors.append(f'{prefix} Quarter "{row.quarter}" not found')
        if row.is_run_work:
            if not run_work_resolver.is_known(row.epic_name):
                row_errors.append(f'{prefix} Run work category "{row.epic_name}" not found')
        elif not epic_resolver.is_known(row.epic_name):
            row_errors.append(f'{prefix} Epic "{row.epic_name}" not found')
        if row.percentage < 1 or row.percentage > 100:
            row_errors.append(f"{prefix} Invalid percentage {row.percentage:g}. Must be between 1-100")

        if row_errors:
            errors.extend(row_errors)
        else:
            valid.append(row)

    return valid, errors


def convert_import_to_allocations(
    rows: Sequence[AllocationImportRow],
    teams: Sequence[Team],
    epics: Sequence[Epic],
    run_work_categories: Sequence[RunWorkCategory],
    cycles: Sequence[Cycle],
) -> List[Allocation]:
    """Build allocations from validated rows.

    Rows whose team, quarter or epic/run-work category no longer resolves
    are skipped with a warning.
    """
    team_resolver = EntityNameResolver(teams)
    epic_resolver = EntityNameResolver(epics)
    run_work_resolver = EntityNameResolver(run_work_categories)
    cycle_resolver = EntityNameResolver.for_cycles(cycles)
    millis = int(time.time() * 1000)

    allocations = []
    for row in rows:
        team = team_resolver.resolve(row.team_name)
        cycle = cycle_resolver.resolve(row.quarter)
        target = (run_work_resolver if row.is_run_work else epic_resolver).resolve(row.epic_name)
        if team is None or cycle is None or target is None:
            logger.warning(f"Skipping unresolvable allocation row for {row.team_name} / {row.epic_name}")
            continue

        allocations.append(Allocation(
            id=f"imported-{millis}-{uuid.uuid4().hex[:9]}",
            team_id=team.id,
            cycle_id=cycle.id,
            iteration_number=max(row.sprint_number, 1),
            epic_id=None if row.is_run_work else target.id,
            run_work_category_id=target.id if row.is_run_work else None,
            percentage=row.percentage,
            notes=IMPORT_NOTES,
        ))

    logger.info(f"Converted {len(allocations)} of {len(rows)} imported allocation rows")
    return allocations
