"""Data validation for planning snapshots."""

from .data_validator import ScenarioDataValidator, ValidationIssue, ValidationSeverity

__all__ = [
    "ScenarioDataValidator",
    "ValidationIssue",
    "ValidationSeverity",
]
