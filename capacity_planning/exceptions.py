"""Exception types raised by the capacity planning package.

Row-level CSV import problems and template warnings are collected on result
objects instead of being raised. The exceptions below cover failures the
caller has to act on.
"""


class PlanningError(Exception):
    """Base class for all capacity planning errors."""


class ScenarioNotFoundError(PlanningError, KeyError):
    """Raised when a scenario id is not present in the store."""

    def __init__(self, scenario_id: str):
        self.scenario_id = scenario_id
        super().__init__(f"Scenario not found: {scenario_id}")

    def __str__(self) -> str:
        return self.args[0]


class TemplateNotFoundError(PlanningError, KeyError):
    """Raised when a template id is not registered."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}")

    def __str__(self) -> str:
        return self.args[0]


class TemplateParameterError(PlanningError, ValueError):
    """Raised when supplied template parameters fail validation."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("Invalid template parameters: " + "; ".join(self.errors))


class TemplateExecutionError(PlanningError):
    """Raised when a template cannot be applied to scenario data."""

    def __init__(self, message: str, errors=None):
        self.errors = list(errors or [message])
        super().__init__(message)


class UnknownEntityTypeError(PlanningError, ValueError):
    """Raised when a collection name does not exist on scenario data."""


class EntityNotFoundError(PlanningError, LookupError):
    """Raised when an entity referenced by id does not exist."""


class CsvImportError(PlanningError, ValueError):
    """Raised when CSV text cannot be read at all."""
