"""Named reference layers: static polygons such as borders and hazard zones."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry
from shapely.prepared import PreparedGeometry, prep
from shapely.strtree import STRtree


@dataclass
class ReferenceLayer:
    """A read-only collection of polygons queried by zone rules.

    Polygons are indexed with an STRtree and prepared once, since every
    check cycle tests the same features again.
    """

    name: str
    polygons: list[Polygon] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.polygons = [p for p in self.polygons if p is not None and not p.is_empty]
        self._tree = STRtree(self.polygons) if self.polygons else None
        self._prepared = [prep(p) for p in self.polygons]

    def __len__(self) -> int:
        return len(self.polygons)

    def __iter__(self) -> Iterator[Polygon]:
        return iter(self.polygons)

    def query(self, geometry: BaseGeometry) -> list[tuple[Polygon, PreparedGeometry]]:
        """Features whose bounding boxes intersect the geometry's box.

        Returns:
            List of (polygon, prepared polygon) pairs
        """
        if self._tree is None or geometry is None or geometry.is_empty:
            return []
        indices = self._tree.query(geometry)
        return [(self.polygons[i], self._prepared[i]) for i in sorted(indices)]


class ReferenceLayers:
    """Reference layers by name."""

    def __init__(self, layers: Iterable[ReferenceLayer] = ()):
        self._layers: dict[str, ReferenceLayer] = {}
        for layer in layers:
            self.add(layer)

    def add(self, layer: ReferenceLayer) -> None:
        """Add a layer, merging features into an existing layer of the same name."""
        existing = self._layers.get(layer.name)
        if existing is not None:
            layer = ReferenceLayer(layer.name, existing.polygons + layer.polygons)
        self._layers[layer.name] = layer

    def get(self, name: str) -> Optional[ReferenceLayer]:
        return self._layers.get(name)

    @property
    def names(self) -> list[str]:
        return sorted(self._layers)

    def __contains__(self, name: object) -> bool:
        return name in self._layers

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[ReferenceLayer]:
        return iter(self._layers.values())
