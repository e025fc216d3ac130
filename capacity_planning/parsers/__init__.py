"""CSV parsers for importing allocations, tracking data, teams and people."""

from .csv_reader import PARSE_ERROR_MESSAGE, parse_csv, read_csv_frame, to_csv_text
from .entity_resolver import EntityNameResolver, normalize_name
from .import_result import ImportIssue, ImportResult
from .allocation_import import (
    AllocationImportRow,
    convert_import_to_allocations,
    parse_allocation_csv,
    validate_allocation_import,
)
from .mapped_import import (
    ACTUAL_DEFAULT_MAPPING,
    BULK_TRACKING_DEFAULT_MAPPING,
    NEW_ENTITY_PREFIX,
    PLANNING_DEFAULT_MAPPING,
    REVIEW_DEFAULT_MAPPING,
    parse_actual_allocation_csv,
    parse_bulk_tracking_csv,
    parse_iteration_review_csv,
    parse_planning_allocation_csv,
    slugify,
)
from .team_import import PeopleImport, TeamImport, parse_people_csv, parse_teams_with_divisions_csv
from .samples import (
    export_allocations_csv,
    sample_actual_allocation_csv,
    sample_allocation_csv,
    sample_bulk_tracking_csv,
    sample_iteration_review_csv,
    sample_people_csv,
    sample_planning_allocation_csv,
    sample_teams_csv,
)

__all__ = [
    "PARSE_ERROR_MESSAGE",
    "parse_csv",
    "read_csv_frame",
    "to_csv_text",
    "EntityNameResolver",
    "normalize_name",
    "ImportIssue",
    "ImportResult",
    "AllocationImportRow",
    "convert_import_to_allocations",
    "parse_allocation_csv",
    "validate_allocation_import",
    "ACTUAL_DEFAULT_MAPPING",
    "BULK_TRACKING_DEFAULT_MAPPING",
    "NEW_ENTITY_PREFIX",
    "PLANNING_DEFAULT_MAPPING",
    "REVIEW_DEFAULT_MAPPING",
    "parse_actual_allocation_csv",
    "parse_bulk_tracking_csv",
    "parse_iteration_review_csv",
    "parse_planning_allocation_csv",
    "slugify",
    "PeopleImport",
    "TeamImport",
    "parse_people_csv",
    "parse_teams_with_divisions_csv",
    "export_allocations_csv",
    "sample_actual_allocation_csv",
    "sample_allocation_csv",
    "sample_bulk_tracking_csv",
    "sample_iteration_review_csv",
    "sample_people_csv",
    "sample_planning_allocation_csv",
    "sample_teams_csv",
]
