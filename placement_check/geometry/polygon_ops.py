"""Polygon operations using Shapely.

Builds entity polygons from coordinate rings and derives the fire-safety
buffer, area and bounds used by the rule catalog and cluster aggregation.
"""

from __future__ import annotations

import logging
from typing import Sequence

from shapely.geometry import MultiPolygon, Polygon
from shapely.validation import make_valid

logger = logging.getLogger(__name__)

# Type aliases
Coord = tuple[float, float]
Coords = list[Coord]
PolygonLike = Polygon | MultiPolygon


def close_ring(coords: Sequence[Sequence[float]]) -> Coords:
    """Return coords as (x, y) tuples with the first point repeated at the end.

    An empty sequence stays empty.
    """
    ring = [(float(c[0]), float(c[1])) for c in coords]
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def polygon_from_coords(coords: Sequence[Sequence[float]]) -> Polygon:
    """Create Shapely Polygon from coordinate list.

    Rings too short to form a polygon produce an empty Polygon rather than
    an exception, so half-drawn shapes can still be evaluated.

    Args:
        coords: List of (x, y) tuples forming polygon exterior

    Returns:
        Shapely Polygon (possibly empty or invalid)
    """
    ring = close_ring(coords)
    if len(ring) < 4:
        return Polygon()
    try:
        return Polygon(ring)
    except ValueError as e:
        logger.warning(f"Could not build polygon from {len(ring)} points: {e}")
        return Polygon()


def is_degenerate(polygon: PolygonLike | None) -> bool:
    """Check whether a polygon is unusable for area and overlap tests.

    Empty, missing, self-intersecting and otherwise invalid polygons are
    degenerate.
    """
    return polygon is None or polygon.is_empty or not polygon.is_valid


def buffer_polygon(
    polygon: PolygonLike,
    distance: float,
    cap_style: int = 1,  # round
    join_style: int = 1,  # round
) -> PolygonLike:
    """Expand polygon by given distance (buffer).

    Args:
        polygon: Polygon to expand
        distance: Buffer distance (positive = expand)
        cap_style: 1=round, 2=flat, 3=square
        join_style: 1=round, 2=mitre, 3=bevel

    Returns:
        Buffered polygon, empty when the input is empty
    """
    if polygon is None or polygon.is_empty:
        return Polygon()

    if distance <= 0:
        return polygon

    result = polygon.buffer(distance, cap_style=cap_style, join_style=join_style)

    if not result.is_valid:
        result = make_valid(result)

    return result


def get_polygon_area(polygon: PolygonLike) -> float:
    """Get area of polygon in square units.

    Args:
        polygon: Polygon to measure

    Returns:
        Area in square units (e.g., m^2), 0.0 for degenerate polygons
    """
    if is_degenerate(polygon):
        return 0.0
    return polygon.area


def get_polygon_bounds(polygon: PolygonLike) -> tuple[float, float, float, float]:
    """Get bounding box of polygon.

    Args:
        polygon: Polygon to measure

    Returns:
        Tuple of (min_x, min_y, max_x, max_y)
    """
    if polygon is None or polygon.is_empty:
        return (0.0, 0.0, 0.0, 0.0)
    return polygon.bounds
