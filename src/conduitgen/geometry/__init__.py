"""
Path geometry utilities: polyline simplification and segment construction.
"""

from .path_simplifier import (
    create_segments_from_path,
    dedupe_path,
    orthogonalize,
    perpendicular_distance,
    ramer_douglas_peucker,
    to_3d_path,
)

__all__ = [
    'ramer_douglas_peucker',
    'perpendicular_distance',
    'orthogonalize',
    'to_3d_path',
    'dedupe_path',
    'create_segments_from_path',
]
