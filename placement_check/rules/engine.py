"""Rule engine: evaluates the rule catalog against entities and ranks the verdicts."""

from typing import Iterable, Optional

import structlog

from ..cluster.aggregator import ClusterAggregator
from ..cluster.cache import ClusterCache
from ..geometry.capability import ShapelyGeometry
from ..models.entity import PlacementEntity
from ..models.layers import ReferenceLayers
from ..models.rules import RuleSet
from ..models.severity import Severity
from .catalog import build_rules
from .rule import Rule, Verdict, sort_triggered
from .rule import worst_severity as rank_worst

logger = structlog.get_logger(__name__)


class RuleEngine:
    """Holds the ordered rule list and the latest verdicts per entity.

    Args:
        rules: Rule set with limits and zone rule table
        layers: Reference layers queried by zone rules
        pool: Candidate entities for overlap and cluster checks
        cache: Spatial cache to use; a fresh one is created when omitted
        geometry: Geometry capability; defaults to ShapelyGeometry
    """

    def __init__(
        self,
        rules: RuleSet,
        layers: Optional[ReferenceLayers] = None,
        pool: Iterable[PlacementEntity] = (),
        cache: Optional[ClusterCache] = None,
        geometry: Optional[ShapelyGeometry] = None,
    ):
        self.ruleset = rules
        self.layers = layers if layers is not None else ReferenceLayers()
        self.pool = pool
        self.cache = cache if cache is not None else ClusterCache()
        self.aggregator = ClusterAggregator(
            cache=self.cache,
            pool=pool,
            geometry=geometry,
            epsilon=rules.bbox_epsilon_m,
        )
        self.rules: list[Rule] = build_rules(
            rules, self.layers, pool, self.aggregator, self.aggregator.geometry
        )
        self._verdicts: dict[str, list[Verdict]] = {}

    def check_all(self, entity: PlacementEntity) -> list[Verdict]:
        """Evaluate every rule against entity, in catalog order."""
        # invalidation for a moved entity must precede every cache read in this pass
        self.cache.sync(entity.id, entity.coordinates_snapshot())

        verdicts = [rule.evaluate(entity) for rule in self.rules]
        self._verdicts[entity.id] = verdicts

        triggered = [v.rule_id for v in verdicts if v.triggered]
        logger.debug("rules_checked", entity_id=entity.id, triggered=triggered)
        return verdicts

    def verdicts(self, entity: PlacementEntity) -> list[Verdict]:
        """Latest verdicts for entity, checking it first if it never was."""
        if entity.id not in self._verdicts:
            return self.check_all(entity)
        return self._verdicts[entity.id]

    def triggered_rules(self, entity: PlacementEntity) -> list[Verdict]:
        """Triggered verdicts, worst first; equal severities keep catalog order."""
        return sort_triggered(self.verdicts(entity))

    def worst_severity(self, entity: PlacementEntity) -> Severity:
        return rank_worst(self.verdicts(entity))

    def forget(self, entity_id: str) -> None:
        """Drop stored verdicts for an entity that left the map."""
        self._verdicts.pop(entity_id, None)

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        for rule in self.rules:
            if rule.rule_id == rule_id:
                return rule
        return None
