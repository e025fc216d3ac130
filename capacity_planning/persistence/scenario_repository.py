"""File-based storage for scenarios, the active scenario and templates.

Documents are plain JSON-compatible dicts; converting them to and from
models is left to the scenario layer.

Storage structure:
    {storage_dir}/
        planning-scenarios/
            {scenario_id}.json              - One scenario document per file
            index.json                      - Metadata index for fast listing
        planning-active-scenario.json       - Id of the active scenario
        planning-scenario-templates.json    - Templates with usage counts
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..exceptions import ScenarioNotFoundError
from .json_files import read_json, write_json

logger = logging.getLogger(__name__)

SCENARIOS_DIR = "planning-scenarios"
INDEX_FILE = "index.json"
ACTIVE_SCENARIO_FILE = "planning-active-scenario.json"
TEMPLATES_FILE = "planning-scenario-templates.json"

# Document keys copied into the index
INDEX_FIELDS = ("id", "name", "description", "created_date", "last_modified", "expires_at", "template_id")


class ScenarioRepository:
    """Persists scenario documents as JSON files.

    Example:
        >>> repo = ScenarioRepository(".scenarios")
        >>> repo.save(scenario.to_dict())
        >>> repo.load(scenario.id)["name"]
        'Budget cut'
    """

    def __init__(self, storage_dir: Union[str, Path] = ".scenarios"):
        """Initialize repository.

        Args:
            storage_dir: Root directory for all planning files
        """
        self.storage_dir = Path(storage_dir)
        self.scenarios_dir = self.storage_dir / SCENARIOS_DIR
        self.scenarios_dir.mkdir(parents=True, exist_ok=True)
        self.index_file = self.scenarios_dir / INDEX_FILE
        self.active_file = self.storage_dir / ACTIVE_SCENARIO_FILE
        self.templates_file = self.storage_dir / TEMPLATES_FILE

        self._load_index()

    def _load_index(self) -> None:
        """Load scenario index from disk."""
        index = read_json(self.index_file)
        if index is None:
            self._index: Dict[str, dict] = {}
            self._save_index()
        else:
            self._index = index

    def _save_index(self) -> None:
        write_json(self.index_file, self._index)

    def _update_index(self, document: dict) -> None:
        entry = {key: document.get(key) for key in INDEX_FIELDS}
        entry["total_modifications"] = len(document.get("modifications") or [])
        self._index[document["id"]] = entry
        self._save_index()

    def _remove_from_index(self, scenario_id: str) -> None:
        if scenario_id in self._index:
            del self._index[scenario_id]
            self._save_index()

    def _scenario_path(self, scenario_id: str) -> Path:
        return self.scenarios_dir / f"{scenario_id}.json"

    @property
    def index(self) -> Dict[str, dict]:
        """Metadata of every indexed scenario, keyed by id."""
        return dict(self._index)

    def save(self, document: dict) -> None:
        """Write a scenario document and update the index."""
        write_json(self._scenario_path(document["id"]), document)
        self._update_index(document)
        logger.debug(f"Saved scenario {document['id']}")

    def load(self, scenario_id: str) -> dict:
        """Load a scenario document.

        Raises:
            ScenarioNotFoundError: If no file exists for the id
        """
        document = read_json(self._scenario_path(scenario_id))
        if document is None:
            raise ScenarioNotFoundError(scenario_id)
        return document

    def exists(self, scenario_id: str) -> bool:
        """Whether a scenario file exists."""
        return self._scenario_path(scenario_id).exists()

    def load_all(self) -> List[dict]:
        """Load every indexed document, dropping index entries whose file is gone."""
        documents = []
        for scenario_id in list(self._index):
            try:
                documents.append(self.load(scenario_id))
            except ScenarioNotFoundError:
                logger.warning(f"Scenario file for {scenario_id} missing; removing from index")
                self._remove_from_index(scenario_id)
        return documents

    def delete(self, scenario_id: str) -> bool:
        """Delete a scenario file and its index entry.

        Returns:
            True if deleted, False if not found
        """
        path = self._scenario_path(scenario_id)
        self._remove_from_index(scenario_id)
        if path.exists():
            path.unlink()
            return True
        return False

    def load_active_id(self) -> Optional[str]:
        """Id of the active scenario, or None in live mode."""
        data = read_json(self.active_file)
        if not data:
            return None
        return data.get("scenario_id")

    def save_active_id(self, scenario_id: Optional[str]) -> None:
        """Record the active scenario; None removes the record."""
        if scenario_id is None:
            if self.active_file.exists():
                self.active_file.unlink()
            return
        write_json(self.active_file, {"scenario_id": scenario_id})

    def load_templates(self) -> Optional[List[dict]]:
        """Stored template documents, or None when none have been stored yet."""
        return read_json(self.templates_file)

    def save_templates(self, documents: List[dict]) -> None:
        """Store template documents with their usage counts."""
        write_json(self.templates_file, documents)

    def get_storage_size(self) -> int:
        """Total size in bytes of scenario files, the index and the state files."""
        total_size = sum(p.stat().st_size for p in self.scenarios_dir.glob("*.json"))
        for path in (self.active_file, self.templates_file):
            if path.exists():
                total_size += path.stat().st_size
        return total_size

    def cleanup_orphaned_files(self) -> int:
        """Remove scenario files not in the index.

        Returns:
            Number of files removed
        """
        removed = 0
        for path in self.scenarios_dir.glob("*.json"):
            if path.name == INDEX_FILE:
                continue
            if path.stem not in self._index:
                path.unlink()
                removed += 1
        return removed
