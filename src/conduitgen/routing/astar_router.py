#!/usr/bin/env python3
"""
A* Obstacle Router

Finds an axis-aligned conduit path between two points on a uniform 3D voxel
grid, avoiding axis-aligned obstacle boxes.

Conventions:
- Coordinate system: X=East, Y=North, Z=Up
- All coordinates in feet
- Grid cell = round((coord - bounds.min) / voxel_size) on each axis
- Moves are 6-connected (±X, ±Y, ±Z), each costing voxel_size

Search:
- Priority queue keyed by f = g + h, h = Manhattan distance × voxel_size
- The heuristic is admissible and consistent on this grid, so returned paths
  have the minimum number of voxel steps
- The search gives up (returns None) after max_iterations expansions

Example usage:
    bounds = ObstacleBox(XYZ(0, 0, 0), XYZ(20, 20, 10))
    router = AStarRouter(bounds, voxel_size=0.5)
    router.add_obstacle(ObstacleBox(XYZ(5, -1, 0), XYZ(6, 15, 10)))
    path = router.find_path(XYZ(0, 5, 5), XYZ(12, 5, 5))

References:
- Hart, Nilsson, Raphael (1968). A Formal Basis for the Heuristic
  Determination of Minimum Cost Paths
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass
from typing import Iterable

from ..model.xyz import XYZ

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_MAX_ITERATIONS = 100_000

# Direction tolerance for dropping colinear interior points
COLINEAR_TOLERANCE = 0.01

NEIGHBOR_OFFSETS = (
    (1, 0, 0), (-1, 0, 0),
    (0, 1, 0), (0, -1, 0),
    (0, 0, 1), (0, 0, -1),
)

GridNode = tuple[int, int, int]


# =============================================================================
# OBSTACLES
# =============================================================================


@dataclass(frozen=True)
class ObstacleBox:
    """Axis-aligned box in world coordinates (feet). Containment is inclusive."""

    min: XYZ
    max: XYZ

    def contains(self, point: XYZ) -> bool:
        return (
            self.min.x <= point.x <= self.max.x
            and self.min.y <= point.y <= self.max.y
            and self.min.z <= point.z <= self.max.z
        )

    def expand(self, margin: float) -> ObstacleBox:
        """New box grown by margin on every side."""
        offset = XYZ(margin, margin, margin)
        return ObstacleBox(self.min - offset, self.max + offset)

    @classmethod
    def enclosing(cls, points: Iterable[XYZ], margin: float = 0.0) -> ObstacleBox:
        """
        Smallest box containing every point, grown by margin.

        Raises:
            ValueError: If points is empty
        """
        points = list(points)
        if not points:
            raise ValueError("Cannot build an enclosing box from no points")

        lo = XYZ(min(p.x for p in points), min(p.y for p in points), min(p.z for p in points))
        hi = XYZ(max(p.x for p in points), max(p.y for p in points), max(p.z for p in points))
        return cls(lo, hi).expand(margin)


# =============================================================================
# ROUTER
# =============================================================================


class AStarRouter:
    """A* pathfinding on a 3D voxel grid."""

    def __init__(
        self,
        bounds: ObstacleBox,
        voxel_size: float,
        obstacles: list[ObstacleBox] | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        if voxel_size <= 0:
            raise ValueError(f"voxel_size must be positive, got {voxel_size}")

        self.bounds = bounds
        self.voxel_size = voxel_size
        self.obstacles = list(obstacles or [])
        self.max_iterations = max_iterations

    def add_obstacle(self, obstacle: ObstacleBox) -> None:
        self.obstacles.append(obstacle)

    def find_path(self, start: XYZ, end: XYZ) -> list[XYZ] | None:
        """
        Find an obstacle-free path from start to end.

        Args:
            start: World start point
            end: World end point

        Returns:
            Waypoints beginning at exactly start and ending at exactly end,
            with colinear interior points removed. None when no path exists
            or the iteration budget runs out.
        """
        start_node = self._world_to_grid(start)
        end_node = self._world_to_grid(end)

        if start_node == end_node:
            return [start, end]

        # Counter breaks f-score ties so nodes are never compared directly
        tie = itertools.count()
        open_set: list[tuple[float, int, GridNode]] = []
        heapq.heappush(open_set, (self._heuristic(start_node, end_node), next(tie), start_node))

        came_from: dict[GridNode, GridNode] = {}
        g_score: dict[GridNode, float] = {start_node: 0.0}
        visited: set[GridNode] = set()

        iterations = 0
        while open_set and iterations < self.max_iterations:
            iterations += 1
            _, _, current = heapq.heappop(open_set)

            if current == end_node:
                return self._reconstruct_path(came_from, current, start, end)

            if current in visited:
                continue
            visited.add(current)

            for dx, dy, dz in NEIGHBOR_OFFSETS:
                neighbor = (current[0] + dx, current[1] + dy, current[2] + dz)
                if neighbor in visited or self._is_blocked(neighbor):
                    continue

                tentative_g = g_score[current] + self.voxel_size
                if tentative_g < g_score.get(neighbor, float("inf")):
                    came_from[neighbor] = current
                    g_score[neighbor] = tentative_g
                    f_score = tentative_g + self._heuristic(neighbor, end_node)
                    heapq.heappush(open_set, (f_score, next(tie), neighbor))

        if open_set:
            logger.debug(
                "A* gave up after %d iterations routing %r -> %r", iterations, start, end,
            )
        else:
            logger.debug("A* exhausted the open set routing %r -> %r", start, end)
        return None

    # -------------------------------------------------------------------------
    # Grid helpers
    # -------------------------------------------------------------------------

    def _world_to_grid(self, point: XYZ) -> GridNode:
        origin = self.bounds.min
        return (
            round((point.x - origin.x) / self.voxel_size),
            round((point.y - origin.y) / self.voxel_size),
            round((point.z - origin.z) / self.voxel_size),
        )

    def _grid_to_world(self, node: GridNode) -> XYZ:
        origin = self.bounds.min
        return XYZ(
            origin.x + node[0] * self.voxel_size,
            origin.y + node[1] * self.voxel_size,
            origin.z + node[2] * self.voxel_size,
        )

    def _heuristic(self, a: GridNode, b: GridNode) -> float:
        return (abs(a[0] - b[0]) + abs(a[1] - b[1]) + abs(a[2] - b[2])) * self.voxel_size

    def _is_blocked(self, node: GridNode) -> bool:
        """Outside the routing bounds or inside any obstacle."""
        world = self._grid_to_world(node)
        if not self.bounds.contains(world):
            return True
        return any(obstacle.contains(world) for obstacle in self.obstacles)

    def _reconstruct_path(
        self,
        came_from: dict[GridNode, GridNode],
        current: GridNode,
        world_start: XYZ,
        world_end: XYZ,
    ) -> list[XYZ]:
        grid_path = [current]
        while current in came_from:
            current = came_from[current]
            grid_path.append(current)
        grid_path.reverse()

        world_path = [world_start]
        world_path.extend(self._grid_to_world(node) for node in grid_path[1:-1])
        world_path.append(world_end)
        return simplify_colinear(world_path)


def simplify_colinear(path: list[XYZ], tolerance: float = COLINEAR_TOLERANCE) -> list[XYZ]:
    """Drop interior points whose incoming and outgoing directions match."""
    if len(path) <= 2:
        return list(path)

    simplified = [path[0]]
    for i in range(1, len(path) - 1):
        dir_in = (path[i] - path[i - 1]).normalize()
        dir_out = (path[i + 1] - path[i]).normalize()
        if not dir_in.is_almost_equal_to(dir_out, tolerance):
            simplified.append(path[i])
    simplified.append(path[-1])
    return simplified
