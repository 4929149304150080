"""Tests for fire-buffer cluster aggregation.

Verifies that every reachable placement is counted exactly once, that
results are symmetric and stable across calls, and that bounding boxes
spare the exact geometry tests for far away placements.
"""

import pytest

from placement_check.cluster.aggregator import ClusterAggregator
from placement_check.cluster.cache import ClusterCache
from placement_check.geometry.capability import ShapelyGeometry
from placement_check.models.entity import PlacementEntity
from placement_check.models.rules import RuleSet


def square(entity_id: str, x: float, y: float, size: float = 20.0) -> PlacementEntity:
    return PlacementEntity(
        id=entity_id,
        coordinates=[(x, y), (x + size, y), (x + size, y + size), (x, y + size)],
    )


class CountingGeometry(ShapelyGeometry):
    """Shapely geometry that counts exact work."""

    def __init__(self):
        self.exact_calls = 0
        self.area_calls = 0

    def overlaps_or_contains(self, outer, inner):
        self.exact_calls += 1
        return super().overlaps_or_contains(outer, inner)

    def area(self, polygon):
        self.area_calls += 1
        return super().area(polygon)


def make_aggregator(pool, geometry=None):
    return ClusterAggregator(cache=ClusterCache(), pool=pool, geometry=geometry)


class TestClusterMembership:
    """Test which placements end up in a cluster."""

    def test_isolated_entity(self):
        """A lone placement is its own cluster."""
        a = square("a", 0, 0)
        aggregator = make_aggregator([a])

        result = aggregator.cluster(a)

        assert result.total_area == pytest.approx(400.0)
        assert result.member_ids == ["a"]

    def test_close_neighbours_are_summed(self):
        """Squares 3 m apart are within the 5 m fire buffer."""
        a = square("a", 0, 0)
        b = square("b", 23, 0)
        aggregator = make_aggregator([a, b])

        assert aggregator.total_area(a) == pytest.approx(800.0)

    def test_far_neighbours_are_not_summed(self):
        """Squares 20 m apart are separate clusters."""
        a = square("a", 0, 0)
        b = square("b", 40, 0)
        aggregator = make_aggregator([a, b])

        assert aggregator.total_area(a) == pytest.approx(400.0)

    def test_chain_is_transitive(self):
        """A reaches C through B even though A's buffer does not reach C."""
        a = square("a", 0, 0)
        b = square("b", 23, 0)
        c = square("c", 46, 0)
        aggregator = make_aggregator([a, b, c])

        result = aggregator.cluster(a)

        assert result.total_area == pytest.approx(1200.0)
        assert sorted(result.member_ids) == ["a", "b", "c"]

    def test_cycle_counts_each_entity_once(self):
        """Three mutually linked squares are summed without double counting."""
        a = square("a", 0, 0)
        b = square("b", 23, 0)
        c = square("c", 0, 23)
        aggregator = make_aggregator([a, b, c])

        result = aggregator.cluster(a)

        assert result.total_area == pytest.approx(1200.0)
        assert len(result.member_ids) == len(set(result.member_ids)) == 3

    def test_contained_entity_is_linked(self):
        """A placement inside another one is part of its cluster; areas are added, not unioned."""
        outer = square("outer", 0, 0, size=30)
        inner = square("inner", 10, 10, size=5)
        aggregator = make_aggregator([outer, inner])

        assert aggregator.total_area(outer) == pytest.approx(925.0)
        assert aggregator.total_area(inner) == pytest.approx(925.0)

    def test_symmetric_totals(self):
        """Every member of a cluster sees the same total."""
        a = square("a", 0, 0)
        b = square("b", 23, 0)
        c = square("c", 46, 0)
        far = square("far", 200, 200)
        pool = [a, b, c, far]

        totals = {e.id: make_aggregator(pool).total_area(e) for e in pool}

        assert totals["a"] == pytest.approx(totals["b"])
        assert totals["b"] == pytest.approx(totals["c"])
        assert totals["far"] == pytest.approx(400.0)

    def test_start_entity_outside_pool(self):
        """The starting placement does not have to be part of the pool."""
        a = square("a", 0, 0)
        b = square("b", 23, 0)
        aggregator = make_aggregator([b])

        assert aggregator.total_area(a) == pytest.approx(800.0)

    def test_explicit_candidates_replace_pool(self):
        """Passing candidates ignores the default pool."""
        a = square("a", 0, 0)
        b = square("b", 23, 0)
        aggregator = make_aggregator([a, b])

        assert aggregator.total_area(a, candidates=[a]) == pytest.approx(400.0)

    def test_buffer_distance_from_ruleset(self):
        """A 2 m fire buffer does not bridge a 3 m gap."""
        rules = RuleSet(fire_buffer_m=2.0)
        a = square("a", 0, 0).bind(rules)
        b = square("b", 23, 0).bind(rules)
        aggregator = make_aggregator([a, b])

        assert aggregator.total_area(a) == pytest.approx(400.0)


class TestCaching:
    """Test reuse of cached areas and overlaps."""

    def test_repeat_call_does_no_exact_work(self):
        """Unchanged placements are answered entirely from the cache."""
        geometry = CountingGeometry()
        a = square("a", 0, 0)
        b = square("b", 23, 0)
        aggregator = make_aggregator([a, b], geometry)

        first = aggregator.total_area(a)
        exact, areas = geometry.exact_calls, geometry.area_calls
        second = aggregator.total_area(a)

        assert first == pytest.approx(second)
        assert geometry.exact_calls == exact
        assert geometry.area_calls == areas

    def test_moved_entity_is_recomputed(self):
        """Moving a neighbour away shrinks the cluster on the next call."""
        a = square("a", 0, 0)
        b = square("b", 23, 0)
        aggregator = make_aggregator([a, b])
        assert aggregator.total_area(a) == pytest.approx(800.0)

        b.coordinates = [(100, 0), (120, 0), (120, 20), (100, 20)]

        assert aggregator.total_area(a) == pytest.approx(400.0)

    def test_reshaped_entity_area_is_recomputed(self):
        """Growing the starting placement changes its cached area."""
        a = square("a", 0, 0)
        aggregator = make_aggregator([a])
        assert aggregator.total_area(a) == pytest.approx(400.0)

        a.coordinates = [(0, 0), (30, 0), (30, 20), (0, 20)]

        assert aggregator.total_area(a) == pytest.approx(600.0)


class TestBoundingBoxPruning:
    """Test that far away placements skip the exact predicate."""

    def test_far_entity_skips_exact_test(self):
        """Boxes that do not meet never reach the exact buffered test."""
        geometry = CountingGeometry()
        a = square("a", 0, 0)
        b = square("b", 40, 0)
        aggregator = make_aggregator([a, b], geometry)

        aggregator.total_area(a)

        assert geometry.exact_calls == 0

    def test_near_box_runs_exact_test(self):
        """Padded boxes meeting diagonally still need the exact test, which rejects them."""
        geometry = CountingGeometry()
        a = square("a", 0, 0)
        # corner gap is sqrt(32) ~ 5.66 m, more than the 5 m buffer
        b = square("b", 24, 24)
        aggregator = make_aggregator([a, b], geometry)

        assert aggregator.total_area(a) == pytest.approx(400.0)
        assert geometry.exact_calls == 1


class TestDegenerateGeometry:
    """Test placements whose polygon is unusable."""

    def test_self_intersecting_neighbour_contributes_nothing(self):
        """A bow-tie shape right on top of a placement is neither counted nor linked."""
        a = square("a", 0, 0)
        bowtie = PlacementEntity(id="bowtie", coordinates=[(0, 0), (10, 10), (10, 0), (0, 10)])
        aggregator = make_aggregator([a, bowtie])

        result = aggregator.cluster(a)

        assert result.total_area == pytest.approx(400.0)
        assert result.member_ids == ["a"]

    def test_degenerate_start_entity(self):
        """A half-drawn shape has zero area and no neighbours."""
        line = PlacementEntity(id="line", coordinates=[(0, 0), (10, 0)])
        b = square("b", 0, 0)
        aggregator = make_aggregator([line, b])

        result = aggregator.cluster(line)

        assert result.total_area == 0.0
        assert result.member_ids == ["line"]
