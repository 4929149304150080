"""Spatial predicates and measurements used by rules and cluster aggregation.

``ShapelyGeometry`` is the single seam through which the evaluation core
touches exact geometry. Everything else works on coordinates and bounding
boxes, so counting calls on this class shows how much exact work a check
performed.
"""

from shapely.geometry import Polygon
from shapely.prepared import PreparedGeometry

from .bbox import Bounds
from .polygon_ops import PolygonLike, buffer_polygon, get_polygon_area, get_polygon_bounds

GeometryLike = PolygonLike | PreparedGeometry


class ShapelyGeometry:
    """Geometry capability backed by Shapely.

    Predicates accept prepared geometries as the first argument so layers
    can hand in their cached ``prep()`` results.
    """

    def area(self, polygon: PolygonLike) -> float:
        """Planar area in square units; 0.0 for degenerate input."""
        return get_polygon_area(polygon)

    def overlaps(self, a: GeometryLike, b: PolygonLike) -> bool:
        """True when the interiors meet but neither contains the other."""
        return a.overlaps(b)

    def contains(self, outer: GeometryLike, inner: PolygonLike) -> bool:
        """True when inner lies completely inside outer."""
        return outer.contains(inner)

    def buffer(self, polygon: PolygonLike, distance: float) -> PolygonLike:
        return buffer_polygon(polygon, distance)

    def bounding_box(self, polygon: Polygon) -> Bounds:
        return get_polygon_bounds(polygon)

    def overlaps_or_contains(self, outer: PolygonLike, inner: PolygonLike) -> bool:
        """True when the two polygons overlap or one contains the other.

        For polygons this holds exactly when their interiors meet, which
        makes the relation symmetric.
        """
        if outer.is_empty or inner.is_empty:
            return False
        return (
            self.overlaps(outer, inner)
            or self.contains(outer, inner)
            or self.contains(inner, outer)
        )
