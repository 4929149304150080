"""Tests for polygon helpers, bounding boxes and the Shapely geometry capability."""

import pytest
from shapely.geometry import Polygon, box
from shapely.prepared import prep

from placement_check.geometry import (
    ShapelyGeometry,
    bounds_intersect,
    close_ring,
    is_degenerate,
    pad_bounds,
    polygon_from_coords,
    ring_bounds,
)


class TestPolygonOps:
    """Test ring and polygon construction."""

    def test_close_ring(self):
        """Rings are closed and converted to float tuples."""
        assert close_ring([[0, 0], [1, 0], [1, 1]]) == [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 0.0)]
        assert close_ring([]) == []

    def test_short_ring_gives_empty_polygon(self):
        """Two points cannot form a polygon."""
        polygon = polygon_from_coords([(0, 0), (5, 5)])

        assert polygon.is_empty
        assert is_degenerate(polygon)

    def test_degenerate(self):
        """None, empty and self-intersecting polygons are degenerate."""
        bowtie = polygon_from_coords([(0, 0), (10, 10), (10, 0), (0, 10)])

        assert is_degenerate(None)
        assert is_degenerate(Polygon())
        assert is_degenerate(bowtie)
        assert not is_degenerate(box(0, 0, 1, 1))


class TestBoundingBoxes:
    """Test coordinate bounding boxes."""

    def test_ring_bounds(self):
        """Bounds come straight from the coordinates."""
        assert ring_bounds([(3, 1), (-2, 4), (0, -5)]) == (-2, -5, 3, 4)
        assert ring_bounds([]) is None

    def test_pad(self):
        """Padding grows every side."""
        assert pad_bounds((0, 0, 10, 10), 5.5) == (-5.5, -5.5, 15.5, 15.5)

    def test_touching_boxes_intersect(self):
        """Boxes sharing an edge intersect."""
        assert bounds_intersect((0, 0, 10, 10), (10, 0, 20, 10))
        assert not bounds_intersect((0, 0, 10, 10), (10.1, 0, 20, 10))
        assert not bounds_intersect(None, (0, 0, 1, 1))


class TestShapelyGeometry:
    """Test the geometry capability."""

    def test_measurements(self):
        """Area, buffer and bounding box."""
        geometry = ShapelyGeometry()
        square = box(0, 0, 10, 10)

        assert geometry.area(square) == pytest.approx(100.0)
        assert geometry.bounding_box(square) == (0.0, 0.0, 10.0, 10.0)
        assert geometry.bounding_box(geometry.buffer(square, 2)) == pytest.approx((-2, -2, 12, 12))

    def test_overlaps_or_contains(self):
        """Interiors meeting in any arrangement counts; touching does not."""
        geometry = ShapelyGeometry()
        square = box(0, 0, 10, 10)

        assert geometry.overlaps_or_contains(square, box(5, 5, 15, 15))
        assert geometry.overlaps_or_contains(square, box(2, 2, 3, 3))
        assert geometry.overlaps_or_contains(box(2, 2, 3, 3), square)
        assert not geometry.overlaps_or_contains(square, box(10, 0, 20, 10))
        assert not geometry.overlaps_or_contains(square, Polygon())

    def test_prepared_predicates(self):
        """Predicates accept a prepared geometry first."""
        geometry = ShapelyGeometry()
        prepared = prep(box(0, 0, 10, 10))

        assert geometry.contains(prepared, box(2, 2, 3, 3))
        assert geometry.overlaps(prepared, box(5, 5, 15, 15))
