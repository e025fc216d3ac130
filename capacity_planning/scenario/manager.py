"""Scenario manager for creating, switching, comparing and expiring scenarios.

This module provides the ScenarioManager class that owns the scenario
lifecycle: snapshotting live data, applying templates, tracking the active
scenario and unsaved changes, and comparing scenarios with live data.
"""

import logging
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from ..config import ScenarioSettings
from ..costs.cost_breakdown import ScenarioFinancialComparison
from ..costs.scenario_financials import compare_scenario_financials
from ..costs.team_cost_calculator import TeamCostCalculator
from ..exceptions import (
    ScenarioNotFoundError,
    TemplateExecutionError,
    TemplateNotFoundError,
    UnknownEntityTypeError,
)
from ..persistence import ScenarioRepository, read_json, write_json
from .diff import ChangeCategory, ScenarioComparison, ScenarioDiffEngine
from .modification_engine import execute_scenario_template
from .snapshot import (
    ENTITY_MODELS,
    FieldChange,
    ModificationType,
    Scenario,
    ScenarioData,
    ScenarioMetadata,
    ScenarioModification,
)
from .templates import ScenarioTemplate, get_builtin_templates

logger = logging.getLogger(__name__)

_SORT_KEYS = {
    "created_date": lambda s: s.created_date,
    "last_modified": lambda s: s.last_modified,
    "name": lambda s: s.name.lower(),
}


class ScenarioManager:
    """Manages scenarios and the live/scenario mode switch.

    Scenarios are persisted through a ScenarioRepository. The active
    scenario is held in memory; edits recorded against it are flagged as
    unsaved until ``save_current_scenario`` writes them back.

    Example:
        >>> manager = ScenarioManager(".scenarios")
        >>>
        >>> # Snapshot live data and apply a template
        >>> scenario = manager.create_scenario_from_template(
        ...     "budget-cut-10", {"budget_reduction": 20}, live_data
        ... )
        >>>
        >>> # Work inside the scenario
        >>> manager.switch_to_scenario(scenario.id)
        >>> data = manager.get_current_data(live_data)
        >>>
        >>> # Compare against live
        >>> comparison = manager.get_scenario_comparison(scenario.id, live_data)
    """

    def __init__(
        self,
        storage_dir: Optional[Union[str, Path]] = None,
        settings: Optional[ScenarioSettings] = None,
        calculator: Optional[TeamCostCalculator] = None,
    ):
        """Initialize scenario manager.

        Args:
            storage_dir: Directory for scenario files (default: settings.storage_dir)
            settings: Expiry and impact thresholds
            calculator: Cost calculator used for template financial impact
        """
        self.settings = settings or ScenarioSettings()
        self.repository = ScenarioRepository(storage_dir or self.settings.storage_dir)
        self.calculator = calculator or TeamCostCalculator()
        self.diff_engine = ScenarioDiffEngine(self.settings)

        self.active_scenario: Optional[Scenario] = None
        self.has_unsaved_changes = False

        self._load_templates()
        self._restore_active_scenario()

    def _store(self, scenario: Scenario) -> None:
        self.repository.save(scenario.to_dict())

    def _fetch(self, scenario_id: str) -> Scenario:
        return Scenario.from_dict(self.repository.load(scenario_id))

    def _fetch_all(self) -> List[Scenario]:
        return [Scenario.from_dict(document) for document in self.repository.load_all()]

    def _load_templates(self) -> None:
        stored = self.repository.load_templates()
        if stored is None:
            self._templates = get_builtin_templates()
            self._save_templates()
        else:
            self._templates = [ScenarioTemplate.model_validate(item) for item in stored]

    def _save_templates(self) -> None:
        self.repository.save_templates([t.model_dump(mode="json") for t in self._templates])

    def _restore_active_scenario(self) -> None:
        active_id = self.repository.load_active_id()
        if active_id is None:
            return
        try:
            self.active_scenario = self._fetch(active_id)
        except ScenarioNotFoundError:
            logger.warning(f"Active scenario {active_id} no longer exists; returning to live mode")
            self.repository.save_active_id(None)

    @property
    def is_scenario_mode(self) -> bool:
        """True while a scenario is active."""
        return self.active_scenario is not None

    # Templates

    @property
    def templates(self) -> List[ScenarioTemplate]:
        """Registered templates."""
        return list(self._templates)

    def get_template(self, template_id: str) -> ScenarioTemplate:
        """Find a template.

        Raises:
            TemplateNotFoundError: If no template has the id
        """
        for template in self._templates:
            if template.id == template_id:
                return template
        raise TemplateNotFoundError(template_id)

    def save_template(self, template: ScenarioTemplate) -> None:
        """Register a custom template, replacing one with the same id."""
        self._templates = [t for t in self._templates if t.id != template.id] + [template]
        self._save_templates()

    def refresh_templates(self) -> List[ScenarioTemplate]:
        """Re-seed the built-in templates, keeping usage counts and custom templates.

        Returns:
            The refreshed template list
        """
        existing = {t.id: t for t in self._templates}
        refreshed = []
        for template in get_builtin_templates():
            previous = existing.pop(template.id, None)
            if previous is not None:
                template.usage_count = previous.usage_count
                template.last_used = previous.last_used
            refreshed.append(template)
        refreshed.extend(existing.values())
        self._templates = refreshed
        self._save_templates()
        logger.info(f"Refreshed {len(refreshed)} scenario templates")
        return self.templates

    # Lifecycle

    def create_scenario(
        self,
        name: str,
        live_data: ScenarioData,
        description: Optional[str] = None,
        template_id: Optional[str] = None,
        template_parameters: Optional[Dict[str, Any]] = None,
        expires_at: Optional[datetime] = None,
    ) -> Scenario:
        """Snapshot live data as a new scenario.

        Args:
            name: Scenario name
            live_data: Live data to snapshot (not modified)
            description: Optional notes
            template_id: Template to apply to the snapshot
            template_parameters: Values for the template's parameters
            expires_at: Expiry (default: settings.expiry_days from now)

        Returns:
            The stored Scenario

        Raises:
            TemplateNotFoundError: If template_id is unknown
            TemplateParameterError: If template parameters fail validation
            TemplateExecutionError: If the template could not be applied
        """
        now = datetime.now()
        data = live_data.clone()
        modifications: List[ScenarioModification] = []
        template = None

        if template_id:
            template = self.get_template(template_id)
            result = execute_scenario_template(template, template_parameters, data, self.calculator)
            if not result.success:
                raise TemplateExecutionError(
                    f"Template '{template.name}' could not be applied: {'; '.join(result.errors)}",
                    result.errors,
                )
            data = result.modified_data
            modifications = result.modifications

        scenario = Scenario(
            name=name,
            description=description,
            created_date=now,
            last_modified=now,
            expires_at=expires_at or now + timedelta(days=self.settings.expiry_days),
            template_id=template.id if template else None,
            template_name=template.name if template else None,
            data=data,
            modifications=modifications,
            metadata=ScenarioMetadata(
                created_from_live_state=True,
                live_state_snapshot_date=now,
                total_modifications=len(modifications),
                last_access_date=now,
            ),
        )
        self._store(scenario)

        if template is not None:
            template.usage_count += 1
            template.last_used = now
            self._save_templates()

        logger.info(f"Created scenario '{scenario.name}' ({scenario.id})")
        return scenario

    def create_scenario_from_template(
        self,
        template_id: str,
        parameters: Optional[Dict[str, Any]],
        live_data: ScenarioData,
    ) -> Scenario:
        """Create a scenario named after a template.

        Raises:
            TemplateNotFoundError: If template_id is unknown
        """
        template = self.get_template(template_id)
        return self.create_scenario(
            name=f"{template.name} Scenario",
            live_data=live_data,
            description=f"Created from {template.name} template",
            template_id=template_id,
            template_parameters=parameters,
        )

    def get_scenario(self, scenario_id: str) -> Scenario:
        """Get a scenario, preferring the in-memory active copy.

        Raises:
            ScenarioNotFoundError: If the scenario does not exist
        """
        if self.active_scenario is not None and self.active_scenario.id == scenario_id:
            return self.active_scenario
        return self._fetch(scenario_id)

    def list_scenarios(self, sort_by: str = "created_date", reverse: bool = True) -> List[Scenario]:
        """List all scenarios.

        Args:
            sort_by: "created_date", "last_modified" or "name"
            reverse: Sort in descending order (newest first)

        Returns:
            List of Scenario objects
        """
        if sort_by not in _SORT_KEYS:
            raise ValueError(f"Unsupported sort field: {sort_by}")
        scenarios = self._fetch_all()
        scenarios.sort(key=_SORT_KEYS[sort_by], reverse=reverse)
        return scenarios

    def switch_to_scenario(self, scenario_id: str) -> Scenario:
        """Make a scenario active.

        Raises:
            ScenarioNotFoundError: If the scenario does not exist
        """
        scenario = self._fetch(scenario_id)
        scenario.metadata.last_access_date = datetime.now()
        self._store(scenario)
        self.repository.save_active_id(scenario.id)
        self.active_scenario = scenario
        self.has_unsaved_changes = False
        logger.info(f"Switched to scenario '{scenario.name}' ({scenario.id})")
        return scenario

    def switch_to_live(self) -> None:
        """Leave scenario mode; unsaved edits to the active scenario are dropped."""
        self.active_scenario = None
        self.has_unsaved_changes = False
        self.repository.save_active_id(None)
        logger.info("Switched to live mode")

    def update_scenario(self, scenario_id: str, **updates) -> Scenario:
        """Update a scenario's name, description, data or modifications.

        Args:
            scenario_id: Scenario to update
            **updates: Fields to replace

        Returns:
            Updated Scenario

        Raises:
            ScenarioNotFoundError: If the scenario does not exist
            ValueError: If an update names a field that cannot be changed
        """
        allowed = {"name", "description", "data", "modifications", "expires_at"}
        unknown = set(updates) - allowed
        if unknown:
            raise ValueError(f"Cannot update scenario fields: {', '.join(sorted(unknown))}")

        scenario = self.get_scenario(scenario_id)
        for key, value in updates.items():
            setattr(scenario, key, value)
        if "modifications" in updates:
            scenario.metadata.total_modifications = len(scenario.modifications)

        now = datetime.now()
        scenario.last_modified = now
        scenario.metadata.last_access_date = now
        self._store(scenario)
        if self.active_scenario is not None and self.active_scenario.id == scenario_id:
            self.has_unsaved_changes = False
        return scenario

    def record_modification(
        self,
        entity_type: str,
        entity_id: str,
        modification_type: Union[ModificationType, str],
        description: str,
        changes: Optional[List[FieldChange]] = None,
        entity_name: Optional[str] = None,
        data: Optional[ScenarioData] = None,
    ) -> Optional[ScenarioModification]:
        """Record an edit made while a scenario is active.

        Args:
            entity_type: Collection of the edited entity
            entity_id: Edited entity id
            modification_type: create, update or delete
            description: Human-readable summary
            changes: Per-field old/new values
            entity_name: Edited entity name
            data: Replacement snapshot reflecting the edit

        Returns:
            The recorded modification, or None in live mode
        """
        if self.active_scenario is None:
            logger.warning(f"Ignoring {entity_type} modification recorded in live mode")
            return None
        if entity_type not in ENTITY_MODELS:
            raise UnknownEntityTypeError(f"Unknown entity type: {entity_type}")

        modification = ScenarioModification(
            id=str(uuid.uuid4()),
            type=ModificationType(modification_type),
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=entity_name,
            description=description,
            changes=list(changes or []),
        )
        scenario = self.active_scenario
        scenario.modifications.append(modification)
        scenario.metadata.total_modifications += 1
        scenario.last_modified = modification.timestamp
        if data is not None:
            scenario.data = data
        self.has_unsaved_changes = True
        return modification

    def delete_scenario(self, scenario_id: str) -> bool:
        """Delete a scenario; deleting the active one returns to live mode.

        Returns:
            True if deleted, False if not found
        """
        if self.active_scenario is not None and self.active_scenario.id == scenario_id:
            self.switch_to_live()
        deleted = self.repository.delete(scenario_id)
        if deleted:
            logger.info(f"Deleted scenario {scenario_id}")
        return deleted

    def get_current_data(self, live_data: ScenarioData) -> ScenarioData:
        """The active scenario's data in scenario mode, otherwise ``live_data``."""
        if self.active_scenario is not None:
            return self.active_scenario.data
        return live_data

    def save_current_scenario(self) -> Optional[Scenario]:
        """Persist the active scenario; no-op in live mode."""
        if self.active_scenario is None:
            return None
        self.active_scenario.last_modified = datetime.now()
        self._store(self.active_scenario)
        self.has_unsaved_changes = False
        logger.info(f"Saved scenario '{self.active_scenario.name}'")
        return self.active_scenario

    def discard_changes(self) -> Optional[Scenario]:
        """Reload the active scenario from storage, dropping unsaved edits."""
        if self.active_scenario is None:
            return None
        self.active_scenario = self._fetch(self.active_scenario.id)
        self.has_unsaved_changes = False
        return self.active_scenario

    def cleanup_expired_scenarios(self, now: Optional[datetime] = None) -> int:
        """Delete scenarios whose expiry is before ``now``.

        Returns:
            Number of scenarios removed
        """
        now = now or datetime.now()
        removed = 0
        for scenario in self._fetch_all():
            if scenario.is_expired(now):
                self.delete_scenario(scenario.id)
                removed += 1
        if removed:
            logger.info(f"Removed {removed} expired scenarios")
        return removed

    # Comparison

    def get_scenario_comparison(self, scenario_id: str, live_data: ScenarioData) -> ScenarioComparison:
        """Compare a scenario with live data.

        Raises:
            ScenarioNotFoundError: If the scenario does not exist
        """
        scenario = self.get_scenario(scenario_id)
        return self.diff_engine.compare(live_data, scenario.data, scenario.id, scenario.name)

    def get_financial_comparison(
        self, scenario_id: str, live_data: ScenarioData
    ) -> ScenarioFinancialComparison:
        """Compare team costs and project burn of a scenario with live data."""
        scenario = self.get_scenario(scenario_id)
        return compare_scenario_financials(scenario.data, live_data, scenario.id, self.calculator)

    def compare_scenarios(self, scenario_ids: List[str], live_data: ScenarioData) -> pd.DataFrame:
        """Compare multiple scenarios against live data.

        Args:
            scenario_ids: Scenarios to compare; the first is the baseline for deltas
            live_data: Live data each scenario is diffed against

        Returns:
            DataFrame with one row per scenario

        Example:
            >>> df = manager.compare_scenarios([id1, id2], live_data)
            >>> df[["Scenario", "Total Changes", "Impact"]]
        """
        scenarios = [self.get_scenario(sid) for sid in scenario_ids]
        comparisons = [
            self.diff_engine.compare(live_data, s.data, s.id, s.name) for s in scenarios
        ]

        data = []
        for scenario, comparison in zip(scenarios, comparisons):
            row = {
                'Scenario': scenario.name,
                'ID': scenario.id[:8] + '...',
                'Created': scenario.created_date.strftime('%Y-%m-%d %H:%M'),
                'Template': scenario.template_name or 'None',
                'Total Changes': comparison.summary.total_changes,
            }
            for category in ChangeCategory:
                row[category.value.title()] = comparison.summary.categorized_changes[category.value]
            row['Impact'] = comparison.summary.impact_level.value
            row['Budget Variance'] = f"${comparison.financial_impact.budget_variance:+,.2f}"
            data.append(row)

        df = pd.DataFrame(data)

        if len(scenarios) >= 2:
            baseline, baseline_cmp = scenarios[0], comparisons[0]
            for i, comparison in enumerate(comparisons[1:], start=1):
                delta = comparison.financial_impact.budget_variance - baseline_cmp.financial_impact.budget_variance
                changes = comparison.summary.total_changes - baseline_cmp.summary.total_changes
                deltas = {
                    f'Δ Budget vs {baseline.name[:15]}': f"{delta:+,.2f}",
                    f'Δ Changes vs {baseline.name[:15]}': f"{changes:+d}",
                }
                for key, value in deltas.items():
                    if key not in df.columns:
                        df[key] = ''
                    df.loc[i, key] = value

        return df

    # Export / import

    def export_scenario(
        self,
        scenario_id: str,
        output_path: Union[str, Path],
        format: str = "json",
    ) -> str:
        """Export a scenario to a file.

        Args:
            scenario_id: Scenario to export
            output_path: Output file path
            format: "json" (full scenario, re-importable) or "excel" (summary
                sheet plus one sheet per non-empty collection)

        Returns:
            Path to exported file

        Raises:
            ValueError: If format not supported
            ScenarioNotFoundError: If scenario doesn't exist
        """
        scenario = self.get_scenario(scenario_id)
        output_path = Path(output_path)

        if format == "json":
            write_json(output_path, scenario.to_dict())

        elif format == "excel":
            summary = pd.DataFrame({
                'Field': [
                    'Scenario ID',
                    'Name',
                    'Description',
                    'Created',
                    'Last Modified',
                    'Expires',
                    'Template',
                    'Modifications',
                ],
                'Value': [
                    scenario.id,
                    scenario.name,
                    scenario.description or '',
                    scenario.created_date.isoformat(),
                    scenario.last_modified.isoformat(),
                    scenario.expires_at.isoformat(),
                    scenario.template_name or '',
                    len(scenario.modifications),
                ],
            })
            dumped = scenario.data.model_dump(mode='json')
            with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
                summary.to_excel(writer, index=False, sheet_name='Scenario Summary')
                for collection in ENTITY_MODELS:
                    records = dumped[collection]
                    if records:
                        pd.json_normalize(records).to_excel(
                            writer, index=False, sheet_name=collection[:31]
                        )

        else:
            raise ValueError(f"Unsupported export format: {format}")

        return str(output_path)

    def import_scenario(self, file_path: Union[str, Path]) -> Scenario:
        """Import a scenario exported as JSON.

        The imported scenario gets a new id, fresh timestamps and a new expiry.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        file_path = Path(file_path)
        data = read_json(file_path)
        if data is None:
            raise FileNotFoundError(f"File not found: {file_path}")

        scenario = Scenario.from_dict(data)
        now = datetime.now()
        scenario.id = str(uuid.uuid4())
        scenario.created_date = now
        scenario.last_modified = now
        scenario.expires_at = now + timedelta(days=self.settings.expiry_days)
        scenario.metadata.last_access_date = now

        self._store(scenario)
        logger.info(f"Imported scenario '{scenario.name}' as {scenario.id}")
        return scenario
