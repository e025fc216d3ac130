"""JSON storage for scenarios, the active scenario and templates."""

from .json_files import read_json, write_json
from .scenario_repository import (
    ACTIVE_SCENARIO_FILE,
    INDEX_FILE,
    SCENARIOS_DIR,
    TEMPLATES_FILE,
    ScenarioRepository,
)

__all__ = [
    "ACTIVE_SCENARIO_FILE",
    "INDEX_FILE",
    "SCENARIOS_DIR",
    "TEMPLATES_FILE",
    "ScenarioRepository",
    "read_json",
    "write_json",
]
