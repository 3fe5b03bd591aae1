#!/usr/bin/env python3
"""
Tests for the auto-route orchestrator and parallel runs.

Tests cover:
- Routing waypoints into runs with fittings
- Elevation flattening
- Obstacle avoidance and direct-connection fallback
- Rise/drop detection
- Parallel path offsets and concentric radii
"""

import logging

import pytest

from conduitgen.model.conduit_type import ConduitType, FittingType
from conduitgen.model.model_store import ConduitModelStore
from conduitgen.model.xyz import XYZ
from conduitgen.routing.astar_router import ObstacleBox
from conduitgen.routing.auto_route import AutoRouteService, RoutingOptions
from conduitgen.routing.parallel_runs import compute_concentric_radii, generate_parallel_paths


@pytest.fixture
def store() -> ConduitModelStore:
    store = ConduitModelStore()
    store.add_type(ConduitType(id="emt"))
    return store


# =============================================================================
# AUTO-ROUTE TESTS
# =============================================================================


class TestAutoRoute:
    """Test waypoint routing."""

    def test_l_route(self, store: ConduitModelStore):
        service = AutoRouteService(store)
        run = service.auto_route(
            [XYZ(0, 0, 10), XYZ(20, 0, 10), XYZ(20, 15, 10)],
            RoutingOptions(conduit_type_id="emt", trade_size="3/4"),
        )
        assert len(run.segment_ids) == 2
        assert len(run.fitting_ids) == 1
        assert run.trade_size == "3/4"
        assert run.compute_total_length(store) == pytest.approx(35.0)

        fitting = store.get_fitting(run.fitting_ids[0])
        assert fitting.fitting_type == FittingType.ELBOW_90
        # Bend data comes from the bend table
        assert fitting.deduct_length == pytest.approx(6.0)
        assert fitting.bend_radius == pytest.approx(4.5)

    def test_straight_run_coupling_has_no_bend_data(self, store: ConduitModelStore):
        run = AutoRouteService(store).auto_route(
            [XYZ(0, 0, 10), XYZ(10, 0, 10), XYZ(20, 0, 10)],
            RoutingOptions(conduit_type_id="emt", trade_size="3/4"),
        )
        assert len(run.fitting_ids) == 1

        coupling = store.get_fitting(run.fitting_ids[0])
        assert coupling.fitting_type == FittingType.COUPLING
        assert coupling.deduct_length == 0.0
        assert coupling.bend_radius == 0.0

    def test_too_few_waypoints(self, store: ConduitModelStore):
        with pytest.raises(ValueError, match="at least two"):
            AutoRouteService(store).auto_route([XYZ(0, 0, 0)], RoutingOptions())

    def test_collapsed_waypoints(self, store: ConduitModelStore):
        with pytest.raises(ValueError, match="single point"):
            AutoRouteService(store).auto_route([XYZ(1, 1, 1), XYZ(1, 1, 1)], RoutingOptions())

    def test_flatten_when_auto_rise_drop_off(self, store: ConduitModelStore):
        service = AutoRouteService(store)
        run = service.auto_route(
            [XYZ(0, 0, 0), XYZ(10, 0, 5)],
            RoutingOptions(conduit_type_id="emt", elevation=8.0, auto_rise_drop=False),
        )
        for segment in run.get_segments(store):
            assert segment.start_point.z == pytest.approx(8.0)
            assert segment.end_point.z == pytest.approx(8.0)

    def test_duplicate_waypoints_removed(self, store: ConduitModelStore):
        run = AutoRouteService(store).auto_route(
            [XYZ(0, 0, 10), XYZ(0, 0, 10), XYZ(10, 0, 10)],
            RoutingOptions(conduit_type_id="emt"),
        )
        assert len(run.segment_ids) == 1

    def test_unknown_type_resolved(self):
        store = ConduitModelStore()
        run = AutoRouteService(store).auto_route(
            [XYZ(0, 0, 10), XYZ(10, 0, 10)],
            RoutingOptions(conduit_type_id="missing"),
        )
        assert store.get_type(run.conduit_type_id) is not None

    def test_routes_around_obstacle(self, store: ConduitModelStore):
        wall = ObstacleBox(XYZ(9.5, -5, 0), XYZ(10.5, 5, 20))
        options = RoutingOptions(
            conduit_type_id="emt",
            use_pathfinding=True,
            obstacles=[wall],
            voxel_size=1.0,
        )
        run = AutoRouteService(store).auto_route([XYZ(0, 0, 10), XYZ(20, 0, 10)], options)

        segments = run.get_segments(store)
        assert len(segments) > 1
        assert len(run.fitting_ids) == len(segments) - 1
        for segment in segments:
            assert not wall.contains(segment.location_curve.evaluate(0.5))
        assert segments[0].start_point == XYZ(0, 0, 10)
        assert segments[-1].end_point == XYZ(20, 0, 10)

    def test_blocked_pair_falls_back_to_direct(self, store: ConduitModelStore, caplog):
        wall = ObstacleBox(XYZ(9.5, -100, -100), XYZ(10.5, 100, 100))
        options = RoutingOptions(
            conduit_type_id="emt",
            use_pathfinding=True,
            obstacles=[wall],
            routing_bounds=ObstacleBox(XYZ(-1, -1, 9), XYZ(21, 1, 11)),
            voxel_size=1.0,
        )
        with caplog.at_level(logging.WARNING, logger="conduitgen.routing.auto_route"):
            run = AutoRouteService(store).auto_route([XYZ(0, 0, 10), XYZ(20, 0, 10)], options)

        assert len(run.segment_ids) == 1
        assert "direct connection" in caplog.text

    def test_pathfinding_ignored_without_obstacles(self, store: ConduitModelStore):
        options = RoutingOptions(conduit_type_id="emt", use_pathfinding=True)
        run = AutoRouteService(store).auto_route([XYZ(0, 0, 10), XYZ(3.3, 7.1, 10)], options)
        assert len(run.segment_ids) == 1


# =============================================================================
# RISE / DROP TESTS
# =============================================================================


class TestRiseDrops:
    """Test vertical segment detection."""

    def test_rise_and_drop(self, store: ConduitModelStore):
        service = AutoRouteService(store)
        run = service.auto_route(
            [XYZ(0, 0, 0), XYZ(10, 0, 0), XYZ(10, 0, 8), XYZ(20, 0, 8), XYZ(20, 0, 2)],
            RoutingOptions(conduit_type_id="emt"),
        )
        infos = service.detect_rise_drops(run)
        assert len(infos) == 2

        rise, drop = infos
        assert rise.is_rise
        assert rise.vertical_distance == pytest.approx(8.0)
        assert rise.location == XYZ(10, 0, 4)
        assert not drop.is_rise
        assert drop.vertical_distance == pytest.approx(6.0)

    def test_horizontal_run_has_none(self, store: ConduitModelStore):
        service = AutoRouteService(store)
        run = service.auto_route([XYZ(0, 0, 0), XYZ(10, 0, 1)], RoutingOptions(conduit_type_id="emt"))
        assert service.detect_rise_drops(run) == []


# =============================================================================
# PARALLEL RUN TESTS
# =============================================================================


class TestParallelRuns:
    """Test parallel path generation."""

    def test_straight_path_offsets(self):
        paths = generate_parallel_paths([XYZ(0, 0, 0), XYZ(10, 0, 0)], 3, 0.5)
        assert len(paths) == 3
        offsets = [p[0].y for p in paths]
        assert offsets == pytest.approx([0.5, 0.0, -0.5])
        for path in paths:
            assert path[0].y == pytest.approx(path[1].y)

    def test_corner_offsets_use_averaged_perpendicular(self):
        paths = generate_parallel_paths([XYZ(0, 0, 0), XYZ(10, 0, 0), XYZ(10, 10, 0)], 2, 1.0)
        corner = paths[0][1]
        assert corner.x == pytest.approx(10 - 0.5 / 2 ** 0.5)
        assert corner.y == pytest.approx(0.5 / 2 ** 0.5)

    def test_short_path_returns_empty(self):
        assert generate_parallel_paths([XYZ(0, 0, 0)], 3, 1.0) == []

    def test_concentric_radii(self):
        assert compute_concentric_radii(10, 3, 2) == pytest.approx([8, 10, 12])

    def test_concentric_radii_minimum(self):
        assert compute_concentric_radii(1, 3, 4) == pytest.approx([2, 2, 5])
