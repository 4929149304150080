"""In-memory store of the placement entities currently on the map."""

from typing import Iterator, Optional

from .entity import PlacementEntity


class EntityRepository:
    """Enumerable pool of current entities keyed by id.

    Serves as the candidate pool for overlap and cluster checks.
    """

    def __init__(self, entities: Optional[list[PlacementEntity]] = None):
        self._entities: dict[str, PlacementEntity] = {}
        for entity in entities or []:
            self.add(entity)

    def add(self, entity: PlacementEntity) -> None:
        """Add or replace an entity."""
        self._entities[entity.id] = entity

    def get(self, entity_id: str) -> Optional[PlacementEntity]:
        return self._entities.get(entity_id)

    def remove(self, entity_id: str) -> Optional[PlacementEntity]:
        """Remove an entity, returning it if it was present."""
        return self._entities.pop(entity_id, None)

    def others(self, entity_id: str) -> list[PlacementEntity]:
        """All entities except the given one."""
        return [e for e in self._entities.values() if e.id != entity_id]

    def __iter__(self) -> Iterator[PlacementEntity]:
        return iter(list(self._entities.values()))

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities
