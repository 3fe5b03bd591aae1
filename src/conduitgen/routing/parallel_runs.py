"""
Parallel Runs

Offsets a centerline path into evenly spaced parallel paths (racked
conduit) and sizes concentric bend radii so parallel bends nest.

Paths are centred on the centerline: for three runs at spacing s the
offsets are -s, 0 and +s.
"""

from __future__ import annotations

from typing import Sequence

from ..model.xyz import XYZ


def _perpendicular(start: XYZ, end: XYZ, up: XYZ) -> XYZ:
    return (end - start).normalize().cross(up).normalize()


def _offsets(count: int, spacing: float) -> list[float]:
    first = -(count - 1) * spacing / 2.0
    return [first + i * spacing for i in range(count)]


def generate_parallel_paths(
    center_path: Sequence[XYZ],
    count: int,
    spacing: float,
    offset_direction: XYZ | None = None,
) -> list[list[XYZ]]:
    """
    Create count paths parallel to center_path.

    Each vertex is moved along the local perpendicular (path direction ×
    offset_direction). Interior vertices use the average of the two
    adjoining perpendiculars.

    Args:
        center_path: Reference centerline (feet)
        count: Number of parallel paths
        spacing: Center-to-center spacing (feet)
        offset_direction: Normal of the offset plane, Z when None

    Returns:
        One path per run, ordered from most negative offset to most positive.
        Empty when the centerline has fewer than two points.
    """
    if len(center_path) < 2 or count <= 0:
        return []

    up = offset_direction or XYZ.BASIS_Z
    last = len(center_path) - 1

    perpendiculars = []
    for i, point in enumerate(center_path):
        if i == 0:
            perp = _perpendicular(point, center_path[1], up)
        elif i == last:
            perp = _perpendicular(center_path[i - 1], point, up)
        else:
            before = _perpendicular(center_path[i - 1], point, up)
            after = _perpendicular(point, center_path[i + 1], up)
            perp = (before + after).normalize()
        perpendiculars.append(perp)

    return [
        [point + perp * offset for point, perp in zip(center_path, perpendiculars)]
        for offset in _offsets(count, spacing)
    ]


def compute_concentric_radii(base_bend_radius: float, run_count: int, spacing: float) -> list[float]:
    """Bend radius per parallel run, never below half the spacing."""
    return [max(spacing / 2.0, base_bend_radius + offset) for offset in _offsets(run_count, spacing)]
