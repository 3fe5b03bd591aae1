"""
Path Simplification

Turns sketched or searched polylines into clean conduit paths:
- Ramer-Douglas-Peucker simplification of noisy polylines
- Heading snap to 90°/45° multiples for axis-aligned runs
- Lifting 2D plan points onto an elevation plane
- Building conduit segments from an ordered 3D path

Points may be 2D/3D tuples or XYZ values. Simplification always returns the
original point objects so callers keep their own types.

References:
- Ramer, U. (1972). An iterative procedure for the polygonal approximation
  of plane curves
- Douglas, D. and Peucker, T. (1973). Algorithms for the reduction of the
  number of points required to represent a digitized line
"""

from __future__ import annotations

import math
from typing import Callable, Sequence

import numpy as np

from ..model.conduit_size import EMT_SIZES, ConduitMaterialType
from ..model.elements import ConduitSegment
from ..model.xyz import XYZ

ZERO_LENGTH_SQUARED = 1e-12


def _as_vector(point) -> np.ndarray:
    """Point as a 3-component numpy vector (2D points get z = 0)."""
    values = np.asarray(tuple(point), dtype=float)
    if values.shape[0] == 2:
        values = np.append(values, 0.0)
    return values


# =============================================================================
# RAMER-DOUGLAS-PEUCKER
# =============================================================================


def perpendicular_distance(p, a, b) -> float:
    """
    Distance from point p to the infinite line through a and b.

    Degenerates to the point distance |p - a| when a and b coincide.
    """
    pv, av, bv = _as_vector(p), _as_vector(a), _as_vector(b)
    ab = bv - av
    length_sq = float(np.dot(ab, ab))
    if length_sq < ZERO_LENGTH_SQUARED:
        return float(np.linalg.norm(pv - av))
    return float(np.linalg.norm(np.cross(ab, av - pv)) / math.sqrt(length_sq))


def ramer_douglas_peucker(points: Sequence, epsilon: float) -> list:
    """
    Simplify a polyline with the Ramer-Douglas-Peucker algorithm.

    Args:
        points: Polyline vertices (2D/3D tuples or XYZ)
        epsilon: Maximum perpendicular distance a dropped point may have

    Returns:
        Simplified polyline made of the original point objects. Inputs with
        fewer than three points are returned unchanged.
    """
    points = list(points)
    if len(points) < 3:
        return points

    start, end = points[0], points[-1]
    max_dist = 0.0
    max_index = 0
    for i in range(1, len(points) - 1):
        dist = perpendicular_distance(points[i], start, end)
        if dist > max_dist:
            max_dist = dist
            max_index = i

    if max_dist <= epsilon:
        return [start, end]

    left = ramer_douglas_peucker(points[: max_index + 1], epsilon)
    right = ramer_douglas_peucker(points[max_index:], epsilon)
    return left + right[1:]


# =============================================================================
# ORTHOGONALIZE
# =============================================================================


def orthogonalize(points: Sequence, ortho_only: bool = False) -> list[tuple[float, float]]:
    """
    Snap each segment heading to the nearest multiple of 45° (or 90°).

    Works in plan (x, y). Segment lengths are preserved, so downstream
    vertices shift away from their sketched positions.

    Args:
        points: Polyline vertices; only x and y are used
        ortho_only: Snap to 90° multiples instead of 45°

    Returns:
        List of (x, y) tuples, starting at the first input point
    """
    xy = [tuple(p)[:2] for p in points]
    if len(xy) < 2:
        return [(float(x), float(y)) for x, y in xy]

    snap = math.pi / 2 if ortho_only else math.pi / 4
    result = [(float(xy[0][0]), float(xy[0][1]))]
    for x, y in xy[1:]:
        prev_x, prev_y = result[-1]
        dx, dy = x - prev_x, y - prev_y
        heading = round(math.atan2(dy, dx) / snap) * snap
        dist = math.hypot(dx, dy)
        result.append((prev_x + dist * math.cos(heading), prev_y + dist * math.sin(heading)))
    return result


# =============================================================================
# 3D PATHS
# =============================================================================


def to_3d_path(
    points_2d: Sequence,
    elevation: float,
    doc_to_real_world: Callable[[tuple[float, float]], tuple[float, float]] | None = None,
) -> list[XYZ]:
    """
    Lift plan points onto the z = elevation plane.

    Args:
        points_2d: Plan points (x, y)
        elevation: Elevation in feet
        doc_to_real_world: Optional transform from document to model units
    """
    path = []
    for point in points_2d:
        xy = tuple(point)[:2]
        if doc_to_real_world is not None:
            xy = doc_to_real_world(xy)
        path.append(XYZ(float(xy[0]), float(xy[1]), elevation))
    return path


def dedupe_path(points: Sequence[XYZ], tolerance: float) -> list[XYZ]:
    """Drop consecutive points closer than tolerance to the last kept point."""
    result: list[XYZ] = []
    for point in points:
        if result and result[-1].distance_to(point) < tolerance:
            continue
        result.append(point)
    return result


def create_segments_from_path(
    path: Sequence[XYZ],
    conduit_type_id: str,
    trade_size: str = "1/2",
    material: ConduitMaterialType = ConduitMaterialType.EMT,
    level_id: str = "Level 1",
) -> list[ConduitSegment]:
    """
    Build one segment per consecutive point pair.

    Diameter comes from the EMT size table; an unknown trade size leaves
    the segment's default diameter in place.

    Returns:
        N-1 segments for N points (empty for fewer than two points)
    """
    size = EMT_SIZES.get(trade_size)
    segments = []
    for start, end in zip(path, path[1:]):
        segment = ConduitSegment(
            start_point=start,
            end_point=end,
            conduit_type_id=conduit_type_id,
            trade_size=trade_size,
            material=material,
            level_id=level_id,
        )
        if size is not None:
            segment.diameter = size.outer_diameter
        segments.append(segment)
    return segments
