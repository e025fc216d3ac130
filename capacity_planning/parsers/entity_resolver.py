"""Entity name resolver for matching imported names to existing entities."""

from typing import Dict, Generic, Iterable, List, Optional, TypeVar

from ..models import Cycle, CycleType

T = TypeVar("T")


def normalize_name(name: object) -> str:
    """Key used for name matching: trimmed and lower-cased."""
    return str(name).strip().lower()


class EntityNameResolver(Generic[T]):
    """Resolves entity names case-insensitively to entities.

    Imported CSV rows refer to teams, epics, quarters and run-work categories
    by display name. Names are compared after trimming whitespace and
    lower-casing, so "frontend team " matches a team named "Frontend Team".
    When two entities share a name the first one wins.

    Example:
        >>> resolver = EntityNameResolver(teams)
        >>> resolver.resolve("frontend team").id
        'team-frontend'
        >>> resolver.resolve("Unknown")  # No match
        None
    """

    def __init__(self, entities: Iterable[T], name_attr: str = "name"):
        """Initialize resolver.

        Args:
            entities: Entities to match against
            name_attr: Attribute holding the display name
        """
        self.name_attr = name_attr
        self._by_name: Dict[str, T] = {}
        self._entities: List[T] = []
        for entity in entities:
            self.add(entity)

    @classmethod
    def for_cycles(cls, cycles: Iterable[Cycle], cycle_type: Optional[CycleType] = CycleType.QUARTERLY):
        """Resolver over cycles of one type (all cycles when cycle_type is None)."""
        return cls(c for c in cycles if cycle_type is None or c.type == cycle_type)

    def add(self, entity: T) -> None:
        """Make an entity resolvable, unless its name is already taken."""
        self._entities.append(entity)
        key = normalize_name(getattr(entity, self.name_attr))
        self._by_name.setdefault(key, entity)

    def resolve(self, name: Optional[str]) -> Optional[T]:
        """Find the entity with this name.

        Args:
            name: Name to look up

        Returns:
            Matching entity, or None
        """
        if name is None:
            return None
        return self._by_name.get(normalize_name(name))

    def is_known(self, name: Optional[str]) -> bool:
        """Check if a name resolves to an entity."""
        return self.resolve(name) is not None

    @property
    def entities(self) -> List[T]:
        """Every entity added, in insertion order."""
        return list(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def __str__(self) -> str:
        """String representation."""
        return f"EntityNameResolver({len(self._by_name)} names, {len(self._entities)} entities)"
