#!/usr/bin/env python3
"""
Tests for path simplification and segment construction.

Tests cover:
- Ramer-Douglas-Peucker on 2D and 3D polylines
- Perpendicular distance
- Heading snap (orthogonalize)
- 2D to 3D lifting, de-duplication, and segment creation
"""

import math

import pytest

from conduitgen.geometry.path_simplifier import (
    create_segments_from_path,
    dedupe_path,
    orthogonalize,
    perpendicular_distance,
    ramer_douglas_peucker,
    to_3d_path,
)
from conduitgen.model.conduit_size import ConduitMaterialType
from conduitgen.model.xyz import XYZ


# =============================================================================
# RAMER-DOUGLAS-PEUCKER TESTS
# =============================================================================


class TestRamerDouglasPeucker:
    """Test polyline simplification."""

    def test_straight_line_returns_endpoints(self):
        points = [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)]
        result = ramer_douglas_peucker(points, 0.5)
        assert result == [(0, 0), (4, 0)]

    def test_l_shape_keeps_corner(self):
        result = ramer_douglas_peucker([(0, 0), (5, 0), (5, 5)], 0.1)
        assert len(result) == 3

    @pytest.mark.parametrize("count", [0, 1, 2])
    def test_short_inputs_unchanged(self, count: int):
        points = [(float(i), float(i)) for i in range(count)]
        assert ramer_douglas_peucker(points, 1.0) == points

    def test_noisy_line(self):
        points = [(i, 0.1 if i % 3 == 0 else -0.05) for i in range(21)]
        assert len(ramer_douglas_peucker(points, 0.5)) <= 3

    def test_within_epsilon_collapses_to_endpoints(self):
        points = [(0, 0), (2, 0.2), (5, -0.3), (7, 0.1), (10, 0)]
        assert ramer_douglas_peucker(points, 0.5) == [(0, 0), (10, 0)]

    def test_returns_original_xyz_objects(self):
        points = [XYZ(0, 0, 0), XYZ(5, 0, 0), XYZ(5, 0, 5), XYZ(5, 0, 10)]
        result = ramer_douglas_peucker(points, 0.01)
        assert result == [points[0], points[1], points[3]]
        assert result[1] is points[1]


class TestPerpendicularDistance:
    """Test point-to-line distance."""

    def test_point_on_line(self):
        assert perpendicular_distance((1, 0), (0, 0), (2, 0)) == pytest.approx(0.0, abs=1e-6)

    def test_point_above_line(self):
        assert perpendicular_distance((1, 1), (0, 0), (2, 0)) == pytest.approx(1.0, abs=1e-6)

    def test_degenerate_line_uses_point_distance(self):
        assert perpendicular_distance((3, 4), (0, 0), (0, 0)) == pytest.approx(5.0)

    def test_3d_points(self):
        d = perpendicular_distance(XYZ(0, 3, 4), XYZ(0, 0, 0), XYZ(10, 0, 0))
        assert d == pytest.approx(5.0)


# =============================================================================
# ORTHOGONALIZE TESTS
# =============================================================================


class TestOrthogonalize:
    """Test heading snap."""

    def test_snaps_to_axes(self):
        result = orthogonalize([(0, 0), (4.9, 0.5), (5.1, 4.8)], ortho_only=True)
        assert result[0][1] == pytest.approx(0.0, abs=0.1)
        assert result[1][1] == pytest.approx(result[0][1], abs=0.1)
        assert result[2][0] == pytest.approx(result[1][0], abs=0.1)

    def test_preserves_segment_length(self):
        points = [(0, 0), (4.9, 0.5)]
        result = orthogonalize(points, ortho_only=True)
        assert math.dist(result[0], result[1]) == pytest.approx(math.dist(*points))

    def test_snaps_to_45_degrees(self):
        result = orthogonalize([(0, 0), (5, 4.5)])
        dx = result[1][0] - result[0][0]
        dy = result[1][1] - result[0][1]
        assert dx == pytest.approx(dy)

    def test_single_point(self):
        assert orthogonalize([(1, 2)]) == [(1.0, 2.0)]


# =============================================================================
# 3D PATH TESTS
# =============================================================================


class TestPaths:
    """Test 3D path helpers and segment creation."""

    def test_to_3d_sets_elevation(self):
        path = to_3d_path([(1, 2), (3, 4)], 10.0)
        assert path[0] == XYZ(1, 2, 10)
        assert path[1].z == 10.0

    def test_to_3d_applies_transform(self):
        path = to_3d_path([(1, 2)], 8.0, doc_to_real_world=lambda p: (p[0] * 2, p[1] * 2))
        assert path[0] == XYZ(2, 4, 8)

    def test_dedupe_path(self):
        path = [XYZ(0, 0, 0), XYZ(0, 0, 0.001), XYZ(5, 0, 0), XYZ(5, 0, 0)]
        assert dedupe_path(path, 0.01) == [XYZ(0, 0, 0), XYZ(5, 0, 0)]

    def test_create_segments(self):
        path = [XYZ(0, 0, 0), XYZ(10, 0, 0), XYZ(10, 10, 0)]
        segments = create_segments_from_path(path, "type1")
        assert len(segments) == 2
        assert segments[0].length == pytest.approx(10.0, abs=1e-3)
        assert segments[0].end_point == segments[1].start_point
        assert sum(s.length for s in segments) == pytest.approx(20.0)

    def test_create_segments_sets_properties(self):
        path = [XYZ(0, 0, 0), XYZ(0, 0, 5)]
        segment = create_segments_from_path(
            path, "t", trade_size="1", material=ConduitMaterialType.RMC, level_id="Roof",
        )[0]
        assert segment.conduit_type_id == "t"
        assert segment.trade_size == "1"
        assert segment.material == ConduitMaterialType.RMC
        assert segment.level_id == "Roof"
        assert segment.diameter == pytest.approx(1.163)

    def test_unknown_trade_size_keeps_default_diameter(self):
        segment = create_segments_from_path([XYZ(0, 0, 0), XYZ(1, 0, 0)], "t", trade_size="7")[0]
        assert segment.diameter == pytest.approx(0.706)

    def test_single_point_gives_no_segments(self):
        assert create_segments_from_path([XYZ(0, 0, 0)], "t") == []
