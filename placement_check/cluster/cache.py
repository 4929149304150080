"""Memoized per-entity areas and per-pair buffered overlap results.

Entries are only valid for the coordinates they were computed from. Callers
``sync`` (or ``coords_changed`` + ``invalidate``) an entity before reading
any entry keyed by it in an evaluation pass.
"""

import logging
from collections import defaultdict
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

PairKey = tuple[str, str]


def _pair_key(id_a: str, id_b: str) -> PairKey:
    return (id_a, id_b) if id_a <= id_b else (id_b, id_a)


class ClusterCache:
    """Spatial cache owned by one aggregator/engine, never shared globally."""

    def __init__(self) -> None:
        self._area: dict[str, float] = {}
        self._overlap: dict[PairKey, bool] = {}
        self._pairs_by_id: dict[str, set[PairKey]] = defaultdict(set)
        self._last_coords: dict[str, tuple] = {}
        self.hits = 0
        self.misses = 0

    def coords_changed(self, entity_id: str, coords: Sequence) -> bool:
        """True if no snapshot exists for the entity or it differs from coords."""
        snapshot = self._last_coords.get(entity_id)
        return snapshot is None or snapshot != tuple(coords)

    def invalidate(self, entity_id: str) -> None:
        """Drop the area, every overlap pair and the snapshot of an entity."""
        self._area.pop(entity_id, None)
        for key in self._pairs_by_id.pop(entity_id, set()):
            self._overlap.pop(key, None)
            other = key[1] if key[0] == entity_id else key[0]
            other_keys = self._pairs_by_id.get(other)
            if other_keys is not None:
                other_keys.discard(key)
        self._last_coords.pop(entity_id, None)
        logger.debug(f"Invalidated cache entries for {entity_id}")

    def sync(self, entity_id: str, coords: Sequence) -> bool:
        """Invalidate an entity if its coordinates changed and record the new snapshot.

        Returns:
            True if the coordinates had changed
        """
        if not self.coords_changed(entity_id, coords):
            return False
        self.invalidate(entity_id)
        self._last_coords[entity_id] = tuple(coords)
        return True

    def get_area(self, entity_id: str) -> Optional[float]:
        value = self._area.get(entity_id)
        self._count(value is not None)
        return value

    def set_area(self, entity_id: str, value: float) -> None:
        self._area[entity_id] = value

    def get_overlap(self, id_a: str, id_b: str) -> Optional[bool]:
        value = self._overlap.get(_pair_key(id_a, id_b))
        self._count(value is not None)
        return value

    def set_overlap(self, id_a: str, id_b: str, value: bool) -> None:
        key = _pair_key(id_a, id_b)
        self._overlap[key] = value
        self._pairs_by_id[id_a].add(key)
        self._pairs_by_id[id_b].add(key)

    def clear(self) -> None:
        self._area.clear()
        self._overlap.clear()
        self._pairs_by_id.clear()
        self._last_coords.clear()

    def stats(self) -> dict[str, int]:
        """Entry counts and hit/miss counters."""
        return {
            "areas": len(self._area),
            "overlaps": len(self._overlap),
            "snapshots": len(self._last_coords),
            "hits": self.hits,
            "misses": self.misses,
        }

    def _count(self, hit: bool) -> None:
        if hit:
            self.hits += 1
        else:
            self.misses += 1
