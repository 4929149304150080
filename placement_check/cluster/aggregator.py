"""Combined area of the cluster of placements linked by fire-buffer overlap.

Two placements are linked when the fire buffer of one overlaps (or contains,
or lies inside) the other's polygon. A cluster is everything reachable over
such links. The traversal is an explicit depth-first search over this
implicit graph:

1. Pop an entity; skip it if this call already visited it.
2. Add its area (cached per coordinates) to the total.
3. For every unvisited candidate, look up the cached overlap result or
   compute it: first a bounding-box test with the entity's box padded by the
   buffer distance plus an epsilon, then the exact buffered predicate only
   if the boxes meet.
4. Push overlapping candidates.

Every entity is synced with the cache before its entries are read, so a
moved polygon never reuses stale areas or overlap results.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

import structlog
from shapely.errors import ShapelyError

from ..geometry.bbox import Bounds, bounds_intersect, pad_bounds, ring_bounds
from ..geometry.capability import ShapelyGeometry
from ..geometry.polygon_ops import is_degenerate
from ..models.entity import PlacementEntity
from .cache import ClusterCache

logger = structlog.get_logger(__name__)

DEFAULT_BBOX_EPSILON_M = 0.5


@dataclass
class ClusterResult:
    """Outcome of one cluster traversal."""

    total_area: float
    member_ids: list[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.member_ids)


class ClusterAggregator:
    """Sums the areas of a placement's fire-buffer cluster.

    Args:
        cache: Spatial cache owned by the caller
        pool: Default candidate entities (re-iterated on every call)
        geometry: Geometry capability for exact area and overlap tests
        epsilon: Extra bounding-box padding in meters on top of the buffer
    """

    def __init__(
        self,
        cache: ClusterCache,
        pool: Iterable[PlacementEntity] = (),
        geometry: Optional[ShapelyGeometry] = None,
        epsilon: float = DEFAULT_BBOX_EPSILON_M,
    ):
        self.cache = cache
        self.pool = pool
        self.geometry = geometry or ShapelyGeometry()
        self.epsilon = epsilon

    def total_area(
        self,
        entity: PlacementEntity,
        candidates: Optional[Iterable[PlacementEntity]] = None,
    ) -> float:
        """Total m² of the cluster containing entity."""
        return self.cluster(entity, candidates).total_area

    def cluster(
        self,
        entity: PlacementEntity,
        candidates: Optional[Iterable[PlacementEntity]] = None,
    ) -> ClusterResult:
        """Traverse the cluster starting at entity.

        Args:
            entity: Starting placement (need not be part of the pool)
            candidates: Entities to consider; defaults to the whole pool

        Returns:
            ClusterResult with the summed area and the ids reached, each once
        """
        pool = list(self.pool if candidates is None else candidates)
        visited: set[str] = set()
        result = ClusterResult(total_area=0.0)
        stack = [entity]

        while stack:
            current = stack.pop()
            if current.id in visited:
                continue
            visited.add(current.id)
            result.member_ids.append(current.id)

            self.cache.sync(current.id, current.coordinates_snapshot())
            result.total_area += self._area(current)

            if is_degenerate(current.polygon):
                continue

            box = ring_bounds(current.coordinates)
            padded = pad_bounds(box, current.buffer_distance + self.epsilon)

            for other in pool:
                if other.id == current.id or other.id in visited:
                    continue
                if self._linked(current, padded, other):
                    stack.append(other)

        logger.debug(
            "cluster_aggregated",
            entity_id=entity.id,
            members=result.size,
            total_area=round(result.total_area, 2),
        )
        return result

    def _area(self, entity: PlacementEntity) -> float:
        cached = self.cache.get_area(entity.id)
        if cached is not None:
            return cached

        polygon = entity.polygon
        if is_degenerate(polygon):
            logger.warning(
                "degenerate_geometry",
                entity_id=entity.id,
                points=entity.point_count,
                contribution="zero area, no overlaps",
            )
            area = 0.0
        else:
            try:
                area = self.geometry.area(polygon)
            except (ShapelyError, ValueError) as e:
                logger.warning("area_failed", entity_id=entity.id, error=str(e))
                area = 0.0

        self.cache.set_area(entity.id, area)
        return area

    def _linked(
        self,
        current: PlacementEntity,
        padded: Bounds,
        other: PlacementEntity,
    ) -> bool:
        """Whether current's fire buffer reaches other, using the cache when possible."""
        self.cache.sync(other.id, other.coordinates_snapshot())
        cached = self.cache.get_overlap(current.id, other.id)
        if cached is not None:
            return cached

        if not bounds_intersect(padded, ring_bounds(other.coordinates)):
            linked = False
        elif is_degenerate(other.polygon):
            linked = False
        else:
            try:
                linked = self.geometry.overlaps_or_contains(
                    current.buffer_polygon, other.polygon
                )
            except (ShapelyError, ValueError) as e:
                logger.warning(
                    "overlap_failed",
                    entity_id=current.id,
                    other_id=other.id,
                    error=str(e),
                )
                linked = False

        self.cache.set_overlap(current.id, other.id, linked)
        return linked
