"""Axis-aligned bounding boxes for cheap overlap pre-filtering."""

from typing import Optional, Sequence

# (min_x, min_y, max_x, max_y)
Bounds = tuple[float, float, float, float]


def ring_bounds(coords: Sequence[Sequence[float]]) -> Optional[Bounds]:
    """Compute the bounding box straight from a coordinate ring.

    Avoids building a Shapely geometry, which is what makes this cheap.

    Returns:
        Bounds, or None for an empty ring
    """
    if not coords:
        return None
    xs = [c[0] for c in coords]
    ys = [c[1] for c in coords]
    return (min(xs), min(ys), max(xs), max(ys))


def pad_bounds(bounds: Bounds, distance: float) -> Bounds:
    """Grow a bounding box by distance on every side."""
    min_x, min_y, max_x, max_y = bounds
    return (min_x - distance, min_y - distance, max_x + distance, max_y + distance)


def bounds_intersect(a: Optional[Bounds], b: Optional[Bounds]) -> bool:
    """Check whether two boxes share at least one point.

    Touching edges count as intersecting. A missing box never intersects.
    """
    if a is None or b is None:
        return False
    return not (a[2] < b[0] or b[2] < a[0] or a[3] < b[1] or b[3] < a[1])
