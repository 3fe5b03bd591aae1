"""
Routing Module

Obstacle-avoiding pathfinding, field bend calculations, and the auto-route
orchestrator that turns waypoints into conduit runs.
"""

from .astar_router import AStarRouter, ObstacleBox, simplify_colinear
from .auto_route import AutoRouteService, RiseDropInfo, RoutingOptions
from .parallel_runs import compute_concentric_radii, generate_parallel_paths
from .smart_bend import (
    DEFAULT_EMT_BEND_TABLE,
    OFFSET_MULTIPLIERS,
    OFFSET_SHRINK_PER_INCH,
    BendTableEntry,
    FourPointSaddleMarks,
    OffsetMarks,
    OptimizedStick,
    SaddleMarks45,
    SmartBendService,
    SmartBendType,
)

__all__ = [
    # Pathfinding
    'AStarRouter',
    'ObstacleBox',
    'simplify_colinear',
    # Orchestration
    'AutoRouteService',
    'RoutingOptions',
    'RiseDropInfo',
    # Parallel runs
    'generate_parallel_paths',
    'compute_concentric_radii',
    # Bending
    'SmartBendService',
    'SmartBendType',
    'BendTableEntry',
    'OptimizedStick',
    'OffsetMarks',
    'SaddleMarks45',
    'FourPointSaddleMarks',
    'DEFAULT_EMT_BEND_TABLE',
    'OFFSET_MULTIPLIERS',
    'OFFSET_SHRINK_PER_INCH',
]
