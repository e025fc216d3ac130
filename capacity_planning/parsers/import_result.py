"""Result types returned by the CSV importers."""

from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

from ..models import Epic, IterationReview, Team

T = TypeVar("T")


@dataclass
class ImportIssue:
    """A problem with one CSV row.

    Attributes:
        row: Row number in the file (header is row 1)
        message: What went wrong
    """
    row: int
    message: str

    def __str__(self) -> str:
        return f"Row {self.row}: {self.message}"


@dataclass
class ImportResult(Generic[T]):
    """Records built from a CSV import plus per-row problems.

    Attributes:
        records: Allocations, actual allocations or iteration reviews built from valid rows
        errors: One issue per rejected row, plus unknown completed epics or
            milestones on reviews that were still imported
        new_teams: Teams synthesised from NEW: values
        new_epics: Epics synthesised from NEW: values
        reviews: Iteration reviews from bulk tracking imports
    """
    records: List[T] = field(default_factory=list)
    errors: List[ImportIssue] = field(default_factory=list)
    new_teams: List[Team] = field(default_factory=list)
    new_epics: List[Epic] = field(default_factory=list)
    reviews: List[IterationReview] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True when no issue was reported."""
        return not self.errors

    def error_messages(self) -> List[str]:
        """Errors formatted as "Row N: message"."""
        return [str(issue) for issue in self.errors]

    def __str__(self) -> str:
        return (
            f"ImportResult({len(self.records)} records, {len(self.errors)} errors, "
            f"{len(self.new_teams)} new teams, {len(self.new_epics)} new epics, "
            f"{len(self.reviews)} reviews)"
        )
