"""Placement editing session.

Ties the pieces together for one shared map:
1. Keep the entity pool (repository)
2. Bind new entities to the rule set (fire buffer, area rates)
3. On create/edit, sync the spatial cache and re-run the rule engine
4. On delete, purge cache entries and stored verdicts
5. Summarize verdicts for display
"""

from typing import Any, Optional

import structlog

from .cluster.aggregator import ClusterResult
from .cluster.cache import ClusterCache
from .geometry.capability import ShapelyGeometry
from .models.entity import PlacementEntity
from .models.layers import ReferenceLayers
from .models.repository import EntityRepository
from .models.rules import RuleSet
from .report import DetailLevel, entity_summary
from .rules.engine import RuleEngine
from .rules.loader import load_ruleset
from .rules.rule import Verdict

logger = structlog.get_logger(__name__)


class PlacementSession:
    """Entities, reference layers and the rule engine of one map.

    Args:
        rules: Rule set; the packaged "default" ruleset when omitted
        layers: Reference layers for zone rules
        geometry: Geometry capability shared by every check
    """

    def __init__(
        self,
        rules: Optional[RuleSet] = None,
        layers: Optional[ReferenceLayers] = None,
        geometry: Optional[ShapelyGeometry] = None,
    ):
        self.rules = rules if rules is not None else load_ruleset("default")
        self.layers = layers if layers is not None else ReferenceLayers()
        self.repository = EntityRepository()
        self.cache = ClusterCache()
        self.engine = RuleEngine(
            rules=self.rules,
            layers=self.layers,
            pool=self.repository,
            cache=self.cache,
            geometry=geometry,
        )

    def get_entity(self, entity_id: str) -> PlacementEntity:
        entity = self.repository.get(entity_id)
        if entity is None:
            raise KeyError(f"Unknown entity '{entity_id}'")
        return entity

    def add_entity(self, entity: PlacementEntity | dict[str, Any]) -> list[Verdict]:
        """Place a new entity (or replace one with the same id) and check it."""
        if isinstance(entity, dict):
            entity = PlacementEntity(**entity)
        entity.bind(self.rules)

        if entity.id in self.repository:
            self.cache.invalidate(entity.id)
        self.repository.add(entity)
        logger.info("entity_added", entity_id=entity.id, area=round(entity.area, 1))
        return self.engine.check_all(entity)

    def update_entity(self, entity_id: str, **changes: Any) -> list[Verdict]:
        """Apply attribute or coordinate changes from an edit and re-check.

        All changes are validated together before any is applied, so a
        rejected edit leaves the entity as it was.

        Raises:
            KeyError: If the entity is unknown
            ValueError: If a change fails validation
        """
        entity = self.get_entity(entity_id)
        for key in changes:
            if key == "id" or key not in PlacementEntity.model_fields:
                raise ValueError(f"Cannot update field '{key}'")

        candidate = PlacementEntity.model_validate({**entity.model_dump(), **changes})
        for key in changes:
            setattr(entity, key, getattr(candidate, key))

        if "coordinates" in changes:
            entity.update_buffer()
            self.cache.sync(entity.id, entity.coordinates_snapshot())
            logger.debug("entity_reshaped", entity_id=entity.id, points=entity.point_count)

        return self.engine.check_all(entity)

    def remove_entity(self, entity_id: str) -> bool:
        """Delete an entity; returns False if it was not present."""
        removed = self.repository.remove(entity_id)
        self.cache.invalidate(entity_id)
        self.engine.forget(entity_id)
        if removed is not None:
            logger.info("entity_removed", entity_id=entity_id)
        return removed is not None

    def check(self, entity_id: str) -> list[Verdict]:
        return self.engine.check_all(self.get_entity(entity_id))

    def check_all_entities(self) -> dict[str, list[Verdict]]:
        """Re-check every entity, e.g. after loading a map or new layers."""
        return {entity.id: self.engine.check_all(entity) for entity in self.repository}

    def triggered_rules(self, entity_id: str) -> list[Verdict]:
        return self.engine.triggered_rules(self.get_entity(entity_id))

    def cluster(self, entity_id: str) -> ClusterResult:
        return self.engine.aggregator.cluster(self.get_entity(entity_id))

    def summary(self, entity_id: str, detail_level: DetailLevel = "compact") -> dict[str, Any]:
        entity = self.get_entity(entity_id)
        return entity_summary(entity, self.engine.verdicts(entity), detail_level)
