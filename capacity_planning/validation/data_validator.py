"""Integrity checks for planning data.

The models accept any string as a reference id, so a snapshot can hold
allocations for deleted teams, people in removed roles, and so on. This
module reports such problems, together with value-range and over-allocation
checks, before data is used for costing or scenario comparison.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd

from ..costs.person_cost_calculator import PersonCostCalculator
from ..scenario.snapshot import ENTITY_MODELS, ScenarioData

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ValidationIssue:
    """Represents a single validation issue.

    Attributes:
        id: Identifier of the issue type (e.g. "REF_001")
        category: Category of validation (e.g. "Consistency", "Allocation")
        severity: Severity level
        title: Short title describing the issue
        description: Detailed description including affected ids
        impact: How the problem affects costing or comparison
        fix_guidance: How to fix the issue
        affected_data: Optional DataFrame listing the affected records
        metadata: Additional data about the issue
    """
    id: str
    category: str
    severity: ValidationSeverity
    title: str
    description: str
    impact: str
    fix_guidance: str
    affected_data: Optional[pd.DataFrame] = None
    metadata: Optional[Dict[str, Any]] = None


# (issue id, collection, reference field, target collection, severity, title)
_REFERENCE_CHECKS = [
    ("REF_001", "allocations", "team_id", "teams", ValidationSeverity.ERROR,
     "Allocations reference undefined teams"),
    ("REF_002", "allocations", "cycle_id", "cycles", ValidationSeverity.ERROR,
     "Allocations reference undefined cycles"),
    ("REF_003", "allocations", "epic_id", "epics", ValidationSeverity.ERROR,
     "Allocations reference undefined epics"),
    ("REF_004", "allocations", "run_work_category_id", "run_work_categories", ValidationSeverity.ERROR,
     "Allocations reference undefined run work categories"),
    ("REF_005", "allocations", "project_id", "projects", ValidationSeverity.ERROR,
     "Allocations reference undefined projects"),
    ("REF_006", "people", "team_id", "teams", ValidationSeverity.ERROR,
     "People assigned to undefined teams"),
    ("REF_007", "people", "role_id", "roles", ValidationSeverity.WARNING,
     "People assigned to undefined roles"),
    ("REF_008", "epics", "project_id", "projects", ValidationSeverity.WARNING,
     "Epics reference undefined projects"),
    ("REF_009", "teams", "division_id", "divisions", ValidationSeverity.WARNING,
     "Teams reference undefined divisions"),
    ("REF_010", "actual_allocations", "team_id", "teams", ValidationSeverity.WARNING,
     "Actual allocations reference undefined teams"),
]


class ScenarioDataValidator:
    """Validates a planning snapshot (live or scenario).

    Validates:
    - Integrity: Duplicate ids within a collection
    - Consistency: References between collections
    - Allocation: Percentages outside 0-100 and over-allocated iterations
    - Capacity: Teams without capacity
    - Dates: End dates before start dates
    - Budget: Negative budgets
    - Rates: People whose cost cannot be derived from any rate

    Example:
        >>> validator = ScenarioDataValidator(live_data)
        >>> issues = validator.validate_all()
        >>> validator.has_errors_or_critical()
        False
    """

    MAX_ALLOCATION_PERCENTAGE = 100.0

    def __init__(self, data: ScenarioData):
        """Initialize validator with data to validate.

        Args:
            data: Snapshot to validate
        """
        self.data = data
        self.issues: List[ValidationIssue] = []

    def validate_all(self) -> List[ValidationIssue]:
        """Run all validation checks and return list of issues.

        Returns:
            List of ValidationIssue objects found during validation
        """
        self.issues = []

        self.check_duplicate_ids()
        self.check_references()
        self.check_allocation_ranges()
        self.check_over_allocation()
        self.check_team_capacity()
        self.check_dates()
        self.check_budgets()
        self.check_rates()

        if self.issues:
            blocking = sum(
                1 for i in self.issues
                if i.severity in (ValidationSeverity.ERROR, ValidationSeverity.CRITICAL)
            )
            logger.warning(f"Validation found {len(self.issues)} issues ({blocking} errors or critical)")
        else:
            logger.debug("Validation found no issues")

        return self.issues

    def check_duplicate_ids(self):
        """Each collection must not repeat an id."""
        for collection in ENTITY_MODELS:
            ids = [getattr(e, "id", None) for e in getattr(self.data, collection)]
            duplicates = sorted(i for i, n in Counter(i for i in ids if i is not None).items() if n > 1)
            if duplicates:
                self.issues.append(ValidationIssue(
                    id="DUP_001",
                    category="Integrity",
                    severity=ValidationSeverity.ERROR,
                    title=f"Duplicate ids in {collection}",
                    description=f"{len(duplicates)} ids appear more than once: {duplicates[:5]}",
                    impact="Lookups by id return the first match; later records are ignored.",
                    fix_guidance="Give every record in the collection a unique id.",
                    metadata={"collection": collection, "duplicate_ids": duplicates},
                ))

    def check_references(self):
        """Referenced ids must exist in their target collection."""
        for issue_id, collection, field_name, target, severity, title in _REFERENCE_CHECKS:
            known = {e.id for e in getattr(self.data, target)}
            dangling = []
            for entity in getattr(self.data, collection):
                ref = getattr(entity, field_name, None)
                if ref and ref not in known:
                    dangling.append({"id": entity.id, field_name: ref})

            if dangling:
                df = pd.DataFrame(dangling)
                missing = list(df[field_name].unique())
                self.issues.append(ValidationIssue(
                    id=issue_id,
                    category="Consistency",
                    severity=severity,
                    title=title,
                    description=(
                        f"Found {len(dangling)} {collection} referencing {len(missing)} "
                        f"undefined {target}: {missing[:5]}"
                    ),
                    impact=f"These {collection} are ignored when costing and comparing.",
                    fix_guidance=f"Add the missing {target} or correct {field_name} on the affected {collection}.",
                    affected_data=df.head(50),
                    metadata={"missing_ids": missing},
                ))

    def check_allocation_ranges(self):
        """Allocation percentages must lie in 0-100."""
        out_of_range = [
            {"id": a.id, "team_id": a.team_id, "percentage": a.percentage}
            for a in self.data.allocations
            if a.percentage < 0 or a.percentage > self.MAX_ALLOCATION_PERCENTAGE
        ]
        if out_of_range:
            self.issues.append(ValidationIssue(
                id="ALLOC_001",
                category="Allocation",
                severity=ValidationSeverity.ERROR,
                title="Allocation percentages out of range",
                description=f"{len(out_of_range)} allocations are below 0% or above 100%.",
                impact="Team cost spread over projects will be wrong.",
                fix_guidance="Set allocation percentages between 0 and 100.",
                affected_data=pd.DataFrame(out_of_range),
            ))

    def check_over_allocation(self):
        """A team's allocations in one iteration must not exceed 100%."""
        totals: Dict[tuple, float] = defaultdict(float)
        for allocation in self.data.allocations:
            totals[(allocation.team_id, allocation.cycle_id, allocation.iteration_number)] += allocation.percentage

        over = [
            {"team_id": team_id, "cycle_id": cycle_id, "iteration_number": iteration, "total_percentage": total}
            for (team_id, cycle_id, iteration), total in totals.items()
            if total > self.MAX_ALLOCATION_PERCENTAGE
        ]
        if over:
            df = pd.DataFrame(over).sort_values("total_percentage", ascending=False)
            self.issues.append(ValidationIssue(
                id="ALLOC_002",
                category="Allocation",
                severity=ValidationSeverity.WARNING,
                title="Teams over-allocated",
                description=(
                    f"{len(over)} team iterations are allocated above 100% "
                    f"(max {df['total_percentage'].max():.0f}%)."
                ),
                impact="Planned work exceeds team capacity; timelines are at risk.",
                fix_guidance="Reduce allocations or move work to another iteration or team.",
                affected_data=df.reset_index(drop=True),
                metadata={"team_ids": sorted({row["team_id"] for row in over})},
            ))

    def check_team_capacity(self):
        """Teams need positive weekly capacity."""
        no_capacity = [t for t in self.data.teams if t.capacity <= 0]
        if no_capacity:
            self.issues.append(ValidationIssue(
                id="CAP_001",
                category="Capacity",
                severity=ValidationSeverity.WARNING,
                title="Teams without capacity",
                description=f"{len(no_capacity)} teams have zero capacity: {[t.name for t in no_capacity][:5]}",
                impact="Allocations to these teams cannot be delivered.",
                fix_guidance="Set each team's weekly capacity in hours.",
                metadata={"team_ids": [t.id for t in no_capacity]},
            ))

    def check_dates(self):
        """End dates must not precede start dates."""
        bad_projects = [
            {"id": p.id, "name": p.name, "start_date": p.start_date, "end_date": p.end_date}
            for p in self.data.projects
            if p.start_date and p.end_date and p.end_date < p.start_date
        ]
        if bad_projects:
            self.issues.append(ValidationIssue(
                id="DATE_001",
                category="Dates",
                severity=ValidationSeverity.ERROR,
                title="Projects end before they start",
                description=f"{len(bad_projects)} projects have an end date before their start date.",
                impact="Duration-based burn rates for these projects are meaningless.",
                fix_guidance="Correct the start or end date.",
                affected_data=pd.DataFrame(bad_projects),
            ))

        bad_people = [
            {"id": p.id, "name": p.name, "start_date": p.start_date, "end_date": p.end_date}
            for p in self.data.people
            if p.start_date and p.end_date and p.end_date < p.start_date
        ]
        if bad_people:
            self.issues.append(ValidationIssue(
                id="DATE_002",
                category="Dates",
                severity=ValidationSeverity.WARNING,
                title="People end before they start",
                description=f"{len(bad_people)} people have an end date before their start date.",
                impact="Headcount for affected periods may be wrong.",
                fix_guidance="Correct the start or end date.",
                affected_data=pd.DataFrame(bad_people),
            ))

    def check_budgets(self):
        """Budgets must not be negative."""
        negative = [
            {"collection": "projects", "id": p.id, "name": p.name, "budget": p.budget}
            for p in self.data.projects
            if p.budget is not None and p.budget < 0
        ] + [
            {"collection": "divisions", "id": d.id, "name": d.name, "budget": d.budget}
            for d in self.data.divisions
            if d.budget is not None and d.budget < 0
        ]
        if negative:
            self.issues.append(ValidationIssue(
                id="BUDGET_001",
                category="Budget",
                severity=ValidationSeverity.ERROR,
                title="Negative budgets",
                description=f"{len(negative)} projects or divisions have a negative budget.",
                impact="Budget utilisation and variance are wrong for these records.",
                fix_guidance="Enter budgets as positive amounts.",
                affected_data=pd.DataFrame(negative),
            ))

    def check_rates(self):
        """Active people should have a salary or rate to cost them with."""
        roles = {r.id: r for r in self.data.roles}
        missing = []
        for person in self.data.people:
            role = roles.get(person.role_id)
            if not person.is_active or role is None:
                continue
            validation = PersonCostCalculator.validate_rate_configuration(person, role)
            if not validation.is_valid:
                missing.append({
                    "id": person.id,
                    "name": person.name,
                    "warning": "; ".join(validation.warnings),
                    "suggestion": "; ".join(validation.suggestions),
                })
        if missing:
            self.issues.append(ValidationIssue(
                id="RATE_001",
                category="Rates",
                severity=ValidationSeverity.INFO,
                title="People without rate information",
                description=f"{len(missing)} people have no salary or rate.",
                impact="Their cost is counted as zero in person-level cost calculations.",
                fix_guidance="Set a personal salary or rate, or a default on their role.",
                affected_data=pd.DataFrame(missing),
            ))

    def get_summary_stats(self) -> Dict[str, Any]:
        """Get summary statistics of validation results.

        Returns:
            Dictionary with counts by severity and category
        """
        stats = {
            'total_issues': len(self.issues),
            'by_severity': {s.value: 0 for s in ValidationSeverity},
            'by_category': {},
        }
        for issue in self.issues:
            stats['by_severity'][issue.severity.value] += 1
            stats['by_category'][issue.category] = stats['by_category'].get(issue.category, 0) + 1
        return stats

    def has_critical_issues(self) -> bool:
        """Check if any critical issues exist."""
        return any(i.severity == ValidationSeverity.CRITICAL for i in self.issues)

    def has_errors_or_critical(self) -> bool:
        """Check if any errors or critical issues exist."""
        return any(i.severity in (ValidationSeverity.ERROR, ValidationSeverity.CRITICAL)
                   for i in self.issues)
