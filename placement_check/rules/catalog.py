"""The placement rule catalog.

Rules are built from static definition tables rather than ad hoc closures:
each definition pairs a severity and messages with a condition builder that
receives the shared reference data (rule set, layers, candidate pool,
cluster aggregator). Zone rules come from the rule set's ``zone_rules``
table and sit between the per-entity rules and the cluster rule.

Message templates may reference the rule set as ``{rules.<field>}``.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

import structlog

from ..cluster.aggregator import ClusterAggregator
from ..geometry.bbox import bounds_intersect, ring_bounds
from ..geometry.capability import ShapelyGeometry
from ..geometry.polygon_ops import is_degenerate
from ..models.entity import PlacementEntity
from ..models.layers import ReferenceLayers
from ..models.rules import RuleSet, ZoneRuleConfig
from ..models.severity import Severity
from .rule import Condition, Outcome, Rule

logger = structlog.get_logger(__name__)


@dataclass
class CatalogContext:
    """Reference data that rule conditions may read."""

    rules: RuleSet
    layers: ReferenceLayers
    pool: Iterable[PlacementEntity]
    aggregator: ClusterAggregator
    geometry: ShapelyGeometry


@dataclass(frozen=True)
class RuleDefinition:
    """Static description of one catalog rule."""

    rule_id: str
    severity: Severity
    short_message: str
    message: str
    build: Callable[[CatalogContext], Condition]

    def instantiate(self, ctx: CatalogContext) -> Rule:
        return Rule(
            rule_id=self.rule_id,
            severity=self.severity,
            short_message=self.short_message.format(rules=ctx.rules),
            message=self.message.format(rules=ctx.rules),
            condition=self.build(ctx),
        )


# ---------------------------------------------------------------------------
# Per-entity conditions
# ---------------------------------------------------------------------------

def _too_big(ctx: CatalogContext) -> Condition:
    return lambda entity: entity.area > ctx.rules.max_sqm_for_entity


def _many_points(ctx: CatalogContext) -> Condition:
    # the stored ring is closed, so its closing point counts too
    return lambda entity: len(entity.coordinates) > ctx.rules.max_points


def _large_power_need(ctx: CatalogContext) -> Condition:
    def condition(entity: PlacementEntity) -> bool:
        return entity.power_need is not None and entity.power_need > ctx.rules.max_power_need
    return condition


def _missing_fields(ctx: CatalogContext) -> Condition:
    def condition(entity: PlacementEntity) -> Outcome:
        missing = [
            label
            for label, value in (
                ("name", entity.name),
                ("description", entity.description),
                ("contact info", entity.contact_info),
            )
            if not (value and value.strip())
        ]
        if entity.power_need is None:
            missing.append("power need")
        if entity.amplified_sound is None:
            missing.append("amplified sound")
        if not missing:
            return Outcome(False)
        return Outcome(True, message=f"Fill in {', '.join(missing)} please.")
    return condition


def _bigger_than_needed(ctx: CatalogContext) -> Condition:
    def condition(entity: PlacementEntity) -> Outcome:
        allowed = ctx.rules.reasonable_allowed_area(entity.calculated_area_needed)
        area = entity.area
        if area <= allowed:
            return Outcome(False)
        return Outcome(
            True,
            message=(
                f"Are you aware that the area is {area - allowed:.0f} m² bigger than "
                f"suggested ({allowed:.0f} m²) for the calculated need?"
            ),
        )
    return condition


def _smaller_than_needed(ctx: CatalogContext) -> Condition:
    return lambda entity: entity.area < entity.calculated_area_needed


def _calculated_need_too_big(ctx: CatalogContext) -> Condition:
    return lambda entity: entity.calculated_area_needed > ctx.rules.max_cluster_size


def _overlapping_placement(ctx: CatalogContext) -> Condition:
    def condition(entity: PlacementEntity) -> Outcome:
        polygon = entity.polygon
        if is_degenerate(polygon):
            return Outcome(False)
        box = ring_bounds(entity.coordinates)
        for other in ctx.pool:
            if other.id == entity.id:
                continue
            if not bounds_intersect(box, ring_bounds(other.coordinates)):
                continue
            if is_degenerate(other.polygon):
                continue
            if ctx.geometry.overlaps_or_contains(polygon, other.polygon):
                label = other.name or other.id
                return Outcome(
                    True,
                    message=f"This area is overlapping '{label}', please adjust one of them.",
                )
        return Outcome(False)
    return condition


# ---------------------------------------------------------------------------
# Cluster condition
# ---------------------------------------------------------------------------

def _cluster_too_big(ctx: CatalogContext) -> Condition:
    def condition(entity: PlacementEntity) -> Outcome:
        result = ctx.aggregator.cluster(entity)
        limit = ctx.rules.max_cluster_size
        if result.total_area <= limit:
            return Outcome(False)
        return Outcome(
            True,
            message=(
                f"{result.size} areas within the fire safety distance add up to "
                f"{result.total_area:.0f} m², max is {limit:.0f} m². "
                f"Move this area further away or make the group smaller."
            ),
        )
    return condition


ENTITY_RULES: tuple[RuleDefinition, ...] = (
    RuleDefinition(
        "too_big", Severity.HIGH, "Too big!",
        "Area is too big! Max size for one area is {rules.max_sqm_for_entity:.0f} m². "
        "Add another so that a fire safety buffer is created in between.",
        _too_big,
    ),
    RuleDefinition(
        "many_points", Severity.LOW, "Many points.",
        "You have added many points to this shape. Bear in mind that you will have "
        "to set this shape up in reality as well :)",
        _many_points,
    ),
    RuleDefinition(
        "large_power_need", Severity.LOW, "Powerful.",
        "You need a lot of power, make sure its not a typo.",
        _large_power_need,
    ),
    RuleDefinition(
        "missing_fields", Severity.MEDIUM, "Missing info",
        "Fill in name, description, contact info, power need and sound please.",
        _missing_fields,
    ),
    RuleDefinition(
        "bigger_than_needed", Severity.MEDIUM, "Bigger than needed.",
        "Are you aware that the area is much bigger than the calculated need?",
        _bigger_than_needed,
    ),
    RuleDefinition(
        "smaller_than_needed", Severity.LOW, "Too small.",
        "Are you aware that the area is smaller than the calculated need? "
        "Consider making it larger.",
        _smaller_than_needed,
    ),
    RuleDefinition(
        "calculated_need_too_big", Severity.HIGH, "Too many ppl/vehicles!",
        "Calculated area need is bigger than the maximum allowed area size! "
        "Make another area to fix this.",
        _calculated_need_too_big,
    ),
    RuleDefinition(
        "overlapping_placement", Severity.MEDIUM, "Overlapping!",
        "This area is overlapping another placement, please adjust one of them.",
        _overlapping_placement,
    ),
)

CLUSTER_RULES: tuple[RuleDefinition, ...] = (
    RuleDefinition(
        "cluster_too_big", Severity.HIGH, "Too close!",
        "Fire safety distance warning! Areas within the dotted lines of each other "
        "may add up to at most {rules.max_cluster_size:.0f} m².",
        _cluster_too_big,
    ),
)


# ---------------------------------------------------------------------------
# Zone rules
# ---------------------------------------------------------------------------

def zone_condition(config: ZoneRuleConfig, ctx: CatalogContext) -> Condition:
    """Build the condition for one reference-layer rule.

    The layer is looked up on every evaluation; an absent layer makes the
    rule vacuously not triggered.
    """
    geometry = ctx.geometry

    def condition(entity: PlacementEntity) -> bool:
        layer = ctx.layers.get(config.layer)
        if layer is None:
            logger.warning(
                "reference_layer_missing",
                rule_id=config.id,
                layer=config.layer,
                entity_id=entity.id,
            )
            return False

        polygon = entity.polygon
        if is_degenerate(polygon):
            return False

        candidates = layer.query(polygon)

        if config.mode == "overlap":
            return any(
                geometry.overlaps(prepared, polygon)
                or geometry.contains(prepared, polygon)
                or geometry.contains(polygon, feature)
                for feature, prepared in candidates
            )

        inside = any(geometry.contains(prepared, polygon) for _, prepared in candidates)
        return inside if config.mode == "inside" else not inside

    return condition


def _literal(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}")


def zone_definition(config: ZoneRuleConfig) -> RuleDefinition:
    # configured messages are plain text, not templates
    return RuleDefinition(
        rule_id=config.id,
        severity=config.severity,
        short_message=_literal(config.short_message),
        message=_literal(config.message),
        build=lambda ctx: zone_condition(config, ctx),
    )


def catalog_definitions(rules: RuleSet) -> list[RuleDefinition]:
    """All rule definitions of a rule set in catalog order, disabled ones removed."""
    definitions = (
        list(ENTITY_RULES)
        + [zone_definition(z) for z in rules.zone_rules]
        + list(CLUSTER_RULES)
    )
    return [d for d in definitions if rules.is_enabled(d.rule_id)]


def build_rules(
    rules: RuleSet,
    layers: ReferenceLayers,
    pool: Iterable[PlacementEntity],
    aggregator: ClusterAggregator,
    geometry: Optional[ShapelyGeometry] = None,
) -> list[Rule]:
    """Instantiate the catalog for a rule set and its reference data."""
    ctx = CatalogContext(
        rules=rules,
        layers=layers,
        pool=pool,
        aggregator=aggregator,
        geometry=geometry or aggregator.geometry,
    )
    return [d.instantiate(ctx) for d in catalog_definitions(rules)]
