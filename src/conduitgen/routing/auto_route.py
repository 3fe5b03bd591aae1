#!/usr/bin/env python3
"""
Auto-Route Orchestrator

Turns a waypoint list into a finished conduit run:

    waypoints -> (flatten) -> A* per waypoint pair -> de-duplicate
              -> segments -> ConduitModelStore.create_run_from_segments
              -> fitting bend data from the bend table

A waypoint pair the router cannot solve is joined by a straight leg instead,
so one blocked pair never aborts the whole run.

Example usage:
    store = ConduitModelStore()
    service = AutoRouteService(store)
    run = service.auto_route(
        [XYZ(0, 0, 10), XYZ(20, 0, 10), XYZ(20, 15, 10)],
        RoutingOptions(trade_size="3/4"),
    )
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ..geometry.path_simplifier import create_segments_from_path, dedupe_path
from ..model.conduit_size import ConduitMaterialType
from ..model.elements import ConduitRun
from ..model.model_store import ConduitModelStore
from ..model.xyz import XYZ
from .astar_router import DEFAULT_MAX_ITERATIONS, AStarRouter, ObstacleBox
from .smart_bend import INCHES_PER_FOOT, VERTICAL_ALIGNMENT, SmartBendService

logger = logging.getLogger(__name__)

# Padding (in voxels) around waypoints and obstacles when bounds are derived
BOUNDS_PADDING_VOXELS = 2


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass
class RoutingOptions:
    """
    Options for a single auto-route request.

    Attributes:
        conduit_type_id: Requested conduit type (resolved by the store)
        trade_size: Requested trade size
        material: Requested material
        level_id: Level for the new segments
        elevation: Elevation (feet) used when auto_rise_drop is off
        use_pathfinding: Route around obstacles with A*
        obstacles: Obstacle boxes for pathfinding
        routing_bounds: Search bounds; derived from the waypoints when None
        voxel_size: A* grid resolution (feet)
        auto_rise_drop: Keep waypoint elevations; when False every point is
            flattened to elevation
        max_iterations: A* expansion budget per waypoint pair
    """

    conduit_type_id: str = ""
    trade_size: str = "1/2"
    material: ConduitMaterialType = ConduitMaterialType.EMT
    level_id: str = "Level 1"
    elevation: float = 10.0
    use_pathfinding: bool = False
    obstacles: list[ObstacleBox] = field(default_factory=list)
    routing_bounds: ObstacleBox | None = None
    voxel_size: float = 0.5
    auto_rise_drop: bool = True
    max_iterations: int = DEFAULT_MAX_ITERATIONS

    def __post_init__(self):
        if isinstance(self.material, str):
            self.material = ConduitMaterialType(self.material)


@dataclass(frozen=True)
class RiseDropInfo:
    """A vertical segment, marked in plan view by a rise or drop symbol."""

    segment_id: str
    location: XYZ
    is_rise: bool
    vertical_distance: float


# =============================================================================
# SERVICE
# =============================================================================


class AutoRouteService:
    """Routes waypoint lists into conduit runs held by a model store."""

    def __init__(self, store: ConduitModelStore, bends: SmartBendService | None = None):
        self.store = store
        self.bends = bends or SmartBendService()

    def auto_route(self, pathway: Sequence[XYZ], options: RoutingOptions | None = None) -> ConduitRun:
        """
        Route conduit along a waypoint list.

        Args:
            pathway: Ordered waypoints in feet
            options: Routing options (defaults when None)

        Returns:
            The registered ConduitRun

        Raises:
            ValueError: If fewer than two waypoints are given, or the path
                collapses to a single point
        """
        options = options or RoutingOptions()
        if len(pathway) < 2:
            raise ValueError(f"Auto-route needs at least two waypoints, got {len(pathway)}")

        waypoints = list(pathway)
        if not options.auto_rise_drop:
            waypoints = [XYZ(p.x, p.y, options.elevation) for p in waypoints]

        if options.use_pathfinding and options.obstacles:
            route_path = self._route_around_obstacles(waypoints, options)
        else:
            route_path = waypoints

        defaults = self.store.resolve_routing_defaults(
            options.conduit_type_id, options.trade_size, options.material,
        )
        conduit_type = self.store.get_type(defaults.conduit_type_id)
        min_length_ft = conduit_type.size_settings.min_length_inches / INCHES_PER_FOOT
        route_path = dedupe_path(route_path, min_length_ft)
        if len(route_path) < 2:
            raise ValueError("Waypoints collapse to a single point; nothing to route")

        segments = create_segments_from_path(
            route_path,
            defaults.conduit_type_id,
            defaults.trade_size,
            defaults.material,
            options.level_id,
        )
        run = self.store.create_run_from_segments(segments)
        self._apply_bend_data(run)

        logger.debug(
            "Auto-routed %s through %d waypoint(s) into %d segment(s)",
            run.run_id, len(pathway), len(run.segment_ids),
        )
        return run

    def detect_rise_drops(self, run: ConduitRun) -> list[RiseDropInfo]:
        """Vertical segments of a run (|direction · Z| > 0.7)."""
        result = []
        for segment in run.get_segments(self.store):
            if abs(segment.direction.dot(XYZ.BASIS_Z)) <= VERTICAL_ALIGNMENT:
                continue
            dz = segment.end_point.z - segment.start_point.z
            result.append(RiseDropInfo(
                segment_id=segment.id,
                location=segment.location_curve.evaluate(0.5),
                is_rise=dz > 0,
                vertical_distance=abs(dz),
            ))
        return result

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _route_around_obstacles(self, waypoints: list[XYZ], options: RoutingOptions) -> list[XYZ]:
        bounds = options.routing_bounds
        if bounds is None:
            corners = list(waypoints)
            for obstacle in options.obstacles:
                corners.extend((obstacle.min, obstacle.max))
            bounds = ObstacleBox.enclosing(corners, BOUNDS_PADDING_VOXELS * options.voxel_size)

        router = AStarRouter(bounds, options.voxel_size, options.obstacles, options.max_iterations)
        full_path = [waypoints[0]]
        for start, end in zip(waypoints, waypoints[1:]):
            leg = router.find_path(start, end)
            if leg is not None and len(leg) > 1:
                full_path.extend(leg[1:])
            else:
                logger.warning(
                    "No obstacle-free path from %r to %r, using a direct connection", start, end,
                )
                full_path.append(end)
        return full_path

    def _apply_bend_data(self, run: ConduitRun) -> None:
        """Fill bend radius and deduct of the run's bent fittings from the bend table."""
        for fitting in run.get_fittings(self.store):
            if not fitting.fitting_type.is_bend:
                continue
            entry = self.bends.lookup_deduct(fitting.trade_size, fitting.angle_degrees)
            if entry is None:
                continue
            fitting.bend_radius = entry.bend_radius
            fitting.deduct_length = entry.deduct_inches
