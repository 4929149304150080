"""Geometry operations for placement checks using Shapely."""

from .bbox import Bounds, bounds_intersect, pad_bounds, ring_bounds
from .capability import ShapelyGeometry
from .polygon_ops import (
    buffer_polygon,
    close_ring,
    get_polygon_area,
    get_polygon_bounds,
    is_degenerate,
    polygon_from_coords,
)

__all__ = [
    # Polygon operations
    "close_ring",
    "polygon_from_coords",
    "buffer_polygon",
    "get_polygon_area",
    "get_polygon_bounds",
    "is_degenerate",
    # Bounding boxes
    "Bounds",
    "ring_bounds",
    "pad_bounds",
    "bounds_intersect",
    # Capability
    "ShapelyGeometry",
]
