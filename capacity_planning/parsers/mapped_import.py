"""Mapped allocation and tracking imports.

Planning, actual, iteration review and bulk tracking CSVs exported from
other tools rarely use our headers or our names. A *mapping* tells the
importer which header holds each field, and *value mappings* translate raw
cell values into system values before matching. A translated value of
``NEW:<name>`` asks the importer to create the team or epic instead of
matching an existing one.

Bulk tracking files carry a "Data Type" column selecting, per row, an actual
allocation or an iteration review.

Each row is processed independently: a problem with one row is recorded as
an ImportIssue and the remaining rows are still imported.
"""

import logging
import re
import time
from datetime import date, datetime
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from ..models import (
    ActualAllocation,
    Allocation,
    Cycle,
    Epic,
    IterationReview,
    Project,
    RunWorkCategory,
    Team,
)
from .csv_reader import read_csv_frame
from .entity_resolver import EntityNameResolver
from .import_result import ImportIssue, ImportResult
from .numbers import parse_float, parse_int

logger = logging.getLogger(__name__)

NEW_ENTITY_PREFIX = "NEW:"

PLANNING_DEFAULT_MAPPING = {
    "team_name": "Team Name",
    "quarter": "Quarter",
    "iteration_number": "Iteration Number",
    "epic_name": "Epic Name",
    "epic_type": "Epic Type",
    "percentage": "Allocation Percentage",
    "notes": "Notes",
}

ACTUAL_DEFAULT_MAPPING = {
    "team_name": "Team Name",
    "quarter": "Quarter",
    "iteration_number": "Iteration Number",
    "epic_name": "Epic/Work Name",
    "epic_type": "Epic Type",
    "actual_percentage": "Actual Percentage",
    "variance_reason": "Variance Reason",
    "notes": "Notes",
}

REVIEW_DEFAULT_MAPPING = {
    "quarter": "Quarter",
    "iteration_number": "Iteration Number",
    "review_date": "Review Date",
    "status": "Status",
    "completed_epics": "Completed Epics",
    "completed_milestones": "Completed Milestones",
    "notes": "Notes",
}

BULK_TRACKING_DEFAULT_MAPPING = {
    "data_type": "Data Type",
    "team_name": "Team Name",
    "quarter": "Quarter",
    "iteration_number": "Iteration Number",
    "epic_name": "Epic/Work Name",
    "actual_percentage": "Actual Percentage",
    "variance_reason": "Variance Reason",
    "review_date": "Review Date",
    "status": "Status",
    "completed_epics": "Completed Epics",
    "completed_milestones": "Completed Milestones",
    "notes": "Notes",
}

ValueMappings = Mapping[str, Mapping[str, object]]


class _RowError(Exception):
    """Rejects the current row with a message."""


def slugify(name: str) -> str:
    """Lower-case name with runs of non-alphanumerics replaced by '-'."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class _MappedImporter:
    """Shared row handling for the mapped allocation and tracking imports.

    ``data_kind`` names the kind of row in bulk tracking files ("allocation"
    or "review"); it is added to "required" messages and drops the format
    hints from "invalid" messages.
    """

    def __init__(
        self,
        mapping: Mapping[str, str],
        teams: Sequence[Team],
        cycles: Sequence[Cycle],
        epics: Sequence[Epic],
        run_work_categories: Sequence[RunWorkCategory],
        value_mappings: Optional[ValueMappings] = None,
        projects: Optional[Sequence[Project]] = None,
    ):
        self.mapping = dict(mapping)
        self.value_mappings = value_mappings or {}
        self.teams = EntityNameResolver(teams)
        self.quarters = EntityNameResolver.for_cycles(cycles)
        self.epics = EntityNameResolver(epics)
        self.run_work = EntityNameResolver(run_work_categories)
        self.projects = EntityNameResolver(projects or [])
        self.millis = int(time.time() * 1000)
        self.result: ImportResult = ImportResult()

    def translate(self, field_id: str, raw: str) -> str:
        translated = self.value_mappings.get(field_id, {}).get(raw)
        return str(translated) if translated not in (None, "") else raw

    def value(self, record: Dict[str, str], field_id: str) -> str:
        header = self.mapping.get(field_id)
        if header is None:
            return ""
        return str(record.get(header, "")).strip()

    def required(self, record: Dict[str, str], field_id: str, message: str) -> str:
        raw = self.value(record, field_id)
        if not raw:
            raise _RowError(message)
        return self.translate(field_id, raw)

    @staticmethod
    def _required_message(label: str, data_kind: Optional[str]) -> str:
        if data_kind:
            return f"{label} is required for {data_kind} data."
        return f"{label} is required."

    def team(self, record: Dict[str, str], data_kind: Optional[str] = None) -> Team:
        name = self.required(record, "team_name", self._required_message("Team Name", data_kind))
        if name.startswith(NEW_ENTITY_PREFIX):
            return self._new_team(name[len(NEW_ENTITY_PREFIX):].strip())
        team = self.teams.resolve(name)
        if team is None:
            raise _RowError(f'Team "{name}" not found.')
        return team

    def quarter(self, record: Dict[str, str], data_kind: Optional[str] = None) -> Cycle:
        name = self.required(record, "quarter", self._required_message("Quarter", data_kind))
        cycle = self.quarters.resolve(name)
        if cycle is None:
            raise _RowError(f'Quarter "{name}" not found.')
        return cycle

    def iteration(self, record: Dict[str, str], data_kind: Optional[str] = None) -> int:
        text = self.required(
            record, "iteration_number", self._required_message("Iteration Number", data_kind)
        )
        number = parse_int(text)
        if number is None:
            hint = "" if data_kind else " Must be a whole number."
            raise _RowError(f'Invalid iteration number: "{text}".{hint}')
        return number

    def percentage(
        self, record: Dict[str, str], field_id: str, label: str, data_kind: Optional[str] = None
    ) -> float:
        text = self.required(record, field_id, self._required_message(f"{label} Percentage", data_kind))
        number = parse_float(text)
        if number is None:
            hint = "" if data_kind else " Must be a number."
            raise _RowError(f'Invalid {label.lower()} percentage: "{text}".{hint}')
        return number

    def work_target(self, record: Dict[str, str], not_found: Callable[[str], str]):
        """(epic id, run-work category id) for the row; both None without an epic name."""
        raw = self.value(record, "epic_name")
        if not raw:
            return None, None
        name = self.translate("epic_name", raw)
        if name.startswith(NEW_ENTITY_PREFIX):
            return self._new_epic(name[len(NEW_ENTITY_PREFIX):].strip()).id, None
        epic = self.epics.resolve(name)
        if epic is not None:
            return epic.id, None
        run_work = self.run_work.resolve(name)
        if run_work is not None:
            return None, run_work.id
        raise _RowError(not_found(name))

    def completed(
        self,
        record: Dict[str, str],
        field_id: str,
        resolver: EntityNameResolver,
        label: str,
        row_number: int,
    ) -> List[str]:
        """IDs for a comma-separated list of names.

        Unknown names are reported as issues without rejecting the row.
        """
        ids = []
        for raw in self.value(record, field_id).split(","):
            raw = raw.strip()
            if not raw:
                continue
            name = self.translate(field_id, raw)
            entity = resolver.resolve(name)
            if entity is None:
                self.result.errors.append(ImportIssue(row=row_number, message=f'{label} "{name}" not found.'))
                continue
            ids.append(entity.id)
        return ids

    def _new_team(self, name: str) -> Team:
        existing = self.teams.resolve(name)
        if existing is not None:
            return existing
        team = Team(id=f"team-{slugify(name)}-{self.millis}", name=name, capacity=40)
        self.teams.add(team)
        self.result.new_teams.append(team)
        logger.info(f"Creating team '{name}' from import")
        return team

    def _new_epic(self, name: str) -> Epic:
        existing = self.epics.resolve(name)
        if existing is not None:
            return existing
        epic = Epic(
            id=f"epic-{slugify(name)}-{self.millis}",
            name=name,
            description=f"Imported epic: {name}",
            effort=0,
        )
        self.epics.add(epic)
        self.result.new_epics.append(epic)
        logger.info(f"Creating epic '{name}' from import")
        return epic

    def run(self, text: str, build_row: Callable[[int, Dict[str, str]], object]) -> ImportResult:
        """Build every row; rows whose builder returns None are not added to records."""
        frame = read_csv_frame(text)
        for index, record in enumerate(frame.to_dict("records")):
            row_number = index + 2
            try:
                built = build_row(index, record)
            except _RowError as e:
                self.result.errors.append(ImportIssue(row=row_number, message=str(e)))
                continue
            except ValidationError as e:
                self.result.errors.append(ImportIssue(row=row_number, message=f"Error processing row: {e}"))
                continue
            if built is not None:
                self.result.records.append(built)

        if self.result.errors:
            logger.warning(f"Import reported {len(self.result.errors)} row issues")
        return self.result


def _with_epic_header_fallback(mapping: Mapping[str, str], text: str) -> Dict[str, str]:
    """Use "Epic Name" for the epic column when "Epic/Work Name" is absent."""
    mapping = dict(mapping)
    headers = list(read_csv_frame(text).columns)
    if "Epic/Work Name" not in headers and "Epic Name" in headers:
        mapping["epic_name"] = "Epic Name"
    return mapping


def _actual_allocation(
    importer: _MappedImporter,
    index: int,
    record: Dict[str, str],
    entered: datetime,
    data_kind: Optional[str] = None,
) -> ActualAllocation:
    team = importer.team(record, data_kind)
    cycle = importer.quarter(record, data_kind)
    iteration = importer.iteration(record, data_kind)
    percentage = importer.percentage(record, "actual_percentage", "Actual", data_kind)
    epic_id, run_work_id = importer.work_target(
        record, lambda name: f'Epic or run work category "{name}" not found.'
    )
    return ActualAllocation(
        id=f"actual-{importer.millis}-{index}",
        team_id=team.id,
        cycle_id=cycle.id,
        iteration_number=iteration,
        actual_percentage=percentage,
        actual_epic_id=epic_id,
        actual_run_work_category_id=run_work_id,
        variance_reason=importer.value(record, "variance_reason") or None,
        entered_date=entered,
    )


def _review(
    importer: _MappedImporter, index: int, record: Dict[str, str], data_kind: Optional[str] = None
) -> IterationReview:
    row_number = index + 2
    cycle = importer.quarter(record, data_kind)
    iteration = importer.iteration(record, data_kind)
    completed_epics = importer.completed(record, "completed_epics", importer.epics, "Epic", row_number)
    completed_milestones = importer.completed(
        record, "completed_milestones", importer.projects, "Milestone", row_number
    )
    return IterationReview(
        id=f"review-{importer.millis}-{index}",
        cycle_id=cycle.id,
        iteration_number=iteration,
        review_date=importer.value(record, "review_date") or date.today(),
        status=importer.value(record, "status") or "not-started",
        completed_epics=completed_epics,
        completed_milestones=completed_milestones,
        notes=importer.value(record, "notes") or None,
    )


def parse_planning_allocation_csv(
    text: str,
    teams: Sequence[Team],
    cycles: Sequence[Cycle],
    epics: Sequence[Epic],
    run_work_categories: Sequence[RunWorkCategory],
    mapping: Optional[Mapping[str, str]] = None,
    value_mappings: Optional[ValueMappings] = None,
) -> ImportResult:
    """Import planned allocations.

    Args:
        text: CSV content with a header row
        teams, cycles, epics, run_work_categories: Existing entities to match
        mapping: Field id -> CSV header (default PLANNING_DEFAULT_MAPPING)
        value_mappings: Field id -> {raw value: system value}

    Returns:
        ImportResult whose records are Allocation objects

    Raises:
        CsvImportError: If the text is not parseable CSV

    Example:
        >>> result = parse_planning_allocation_csv(text, teams, cycles, epics, run_work)
        >>> [str(e) for e in result.errors]
        ['Row 3: Team "Mobile" not found.']
    """
    importer = _MappedImporter(
        mapping or PLANNING_DEFAULT_MAPPING, teams, cycles, epics, run_work_categories, value_mappings
    )

    def build(index: int, record: Dict[str, str]) -> Allocation:
        team = importer.team(record)
        cycle = importer.quarter(record)
        iteration = importer.iteration(record)
        percentage = importer.percentage(record, "percentage", "Allocation")
        epic_id, run_work_id = importer.work_target(record, lambda name: f'Epic/Work "{name}" not found.')
        return Allocation(
            id=f"planning-{importer.millis}-{index}",
            team_id=team.id,
            cycle_id=cycle.id,
            iteration_number=iteration,
            epic_id=epic_id,
            run_work_category_id=run_work_id,
            percentage=percentage,
            notes=importer.value(record, "notes"),
        )

    return importer.run(text, build)


def parse_actual_allocation_csv(
    text: str,
    teams: Sequence[Team],
    cycles: Sequence[Cycle],
    epics: Sequence[Epic],
    run_work_categories: Sequence[RunWorkCategory],
    mapping: Optional[Mapping[str, str]] = None,
    value_mappings: Optional[ValueMappings] = None,
) -> ImportResult:
    """Import actual (tracked) allocations.

    Without a mapping, the epic column is "Epic/Work Name", falling back to
    "Epic Name" when only that header is present.

    Returns:
        ImportResult whose records are ActualAllocation objects
    """
    if mapping is None:
        mapping = _with_epic_header_fallback(ACTUAL_DEFAULT_MAPPING, text)

    importer = _MappedImporter(mapping, teams, cycles, epics, run_work_categories, value_mappings)
    entered = datetime.now()

    def build(index: int, record: Dict[str, str]) -> ActualAllocation:
        return _actual_allocation(importer, index, record, entered)

    return importer.run(text, build)


def parse_iteration_review_csv(
    text: str,
    cycles: Sequence[Cycle],
    epics: Sequence[Epic],
    projects: Sequence[Project],
    mapping: Optional[Mapping[str, str]] = None,
    value_mappings: Optional[ValueMappings] = None,
) -> ImportResult:
    """Import iteration reviews.

    Completed epics and milestones are comma-separated names; milestones are
    matched against project names. An unknown name is reported in
    ``errors`` but the review is still imported without it.

    Returns:
        ImportResult whose records are IterationReview objects
    """
    importer = _MappedImporter(
        mapping or REVIEW_DEFAULT_MAPPING, [], cycles, epics, [], value_mappings, projects
    )

    def build(index: int, record: Dict[str, str]) -> IterationReview:
        return _review(importer, index, record)

    return importer.run(text, build)


def parse_bulk_tracking_csv(
    text: str,
    teams: Sequence[Team],
    cycles: Sequence[Cycle],
    epics: Sequence[Epic],
    run_work_categories: Sequence[RunWorkCategory],
    projects: Sequence[Project],
    mapping: Optional[Mapping[str, str]] = None,
    value_mappings: Optional[ValueMappings] = None,
) -> ImportResult:
    """Import a file mixing actual allocations and iteration reviews.

    The "data_type" column selects the row kind: ``allocation`` rows become
    ActualAllocation records and ``review`` rows are collected in
    ``reviews``.

    Returns:
        ImportResult with ActualAllocation records and IterationReview reviews
    """
    if mapping is None:
        mapping = _with_epic_header_fallback(BULK_TRACKING_DEFAULT_MAPPING, text)

    importer = _MappedImporter(
        mapping, teams, cycles, epics, run_work_categories, value_mappings, projects
    )
    entered = datetime.now()

    def build(index: int, record: Dict[str, str]) -> Optional[ActualAllocation]:
        raw_type = importer.value(record, "data_type")
        data_type = raw_type.lower()
        if not data_type:
            raise _RowError("Data Type is required.")
        if data_type == "allocation":
            return _actual_allocation(importer, index, record, entered, data_type)
        if data_type == "review":
            importer.result.reviews.append(_review(importer, index, record, data_type))
            return None
        raise _RowError(f'Invalid data type: "{raw_type}". Must be "allocation" or "review".')

    return importer.run(text, build)
