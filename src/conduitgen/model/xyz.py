#!/usr/bin/env python3
"""
Spatial Primitives

Immutable 3D point/vector and line types used by every other part of the
routing engine.

Conventions:
- Coordinate system: X=East, Y=North, Z=Up
- All model coordinates are in feet
- Equality is tolerance-based (1e-9). Hashing rounds to 6 decimal places,
  so two equal points straddling a rounding boundary hash differently.
  Do not de-duplicate points through sets or dict keys; use
  XYZ.is_almost_equal_to or geometry.path_simplifier.dedupe_path.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, Iterator

import numpy as np

# =============================================================================
# CONSTANTS
# =============================================================================

EQUALITY_TOLERANCE = 1e-9
ZERO_LENGTH = 1e-12


# =============================================================================
# XYZ
# =============================================================================

@dataclass(frozen=True, eq=False)
class XYZ:
    """
    Immutable 3D point/vector in feet.

    Supports vector algebra through operators (+, -, unary -, scalar *).
    Normalizing a near-zero vector returns the zero vector instead of NaN.

    Hashable so it can serve as a frozen dataclass default, but the hash
    only agrees with == away from 6-decimal rounding boundaries. Not for
    use as a set member or dict key when de-duplicating.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    ZERO: ClassVar[XYZ]
    BASIS_X: ClassVar[XYZ]
    BASIS_Y: ClassVar[XYZ]
    BASIS_Z: ClassVar[XYZ]

    @classmethod
    def from_array(cls, values) -> XYZ:
        """Build an XYZ from any 3-element sequence or numpy array."""
        return cls(float(values[0]), float(values[1]), float(values[2]))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    # -------------------------------------------------------------------------
    # Magnitude
    # -------------------------------------------------------------------------

    @property
    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    @property
    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    def normalize(self) -> XYZ:
        """Unit vector in the same direction, or the zero vector if near zero."""
        length = self.length
        if length < ZERO_LENGTH:
            return XYZ.ZERO
        return XYZ(self.x / length, self.y / length, self.z / length)

    def distance_to(self, other: XYZ) -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return math.sqrt(dx * dx + dy * dy + dz * dz)

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    def dot(self, other: XYZ) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: XYZ) -> XYZ:
        return XYZ(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    @staticmethod
    def angle_between(a: XYZ, b: XYZ) -> float:
        """
        Angle between two vectors in radians, in [0, pi].

        Both vectors are normalized first and the dot product is clamped to
        [-1, 1] so rounding never pushes acos out of its domain.
        """
        dot = a.normalize().dot(b.normalize())
        dot = max(-1.0, min(1.0, dot))
        return math.acos(dot)

    # -------------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------------

    def __add__(self, other: XYZ) -> XYZ:
        return XYZ(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: XYZ) -> XYZ:
        return XYZ(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scale: float) -> XYZ:
        return XYZ(self.x * scale, self.y * scale, self.z * scale)

    __rmul__ = __mul__

    def __neg__(self) -> XYZ:
        return XYZ(-self.x, -self.y, -self.z)

    # -------------------------------------------------------------------------
    # Equality
    # -------------------------------------------------------------------------

    def is_almost_equal_to(self, other: XYZ, tolerance: float = EQUALITY_TOLERANCE) -> bool:
        return (
            abs(self.x - other.x) < tolerance
            and abs(self.y - other.y) < tolerance
            and abs(self.z - other.z) < tolerance
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, XYZ):
            return NotImplemented
        return self.is_almost_equal_to(other)

    def __hash__(self) -> int:
        # Equal points within 1e-9 of a rounding boundary can hash apart.
        return hash((round(self.x, 6), round(self.y, 6), round(self.z, 6)))

    def __repr__(self) -> str:
        return f"XYZ({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"


XYZ.ZERO = XYZ(0.0, 0.0, 0.0)
XYZ.BASIS_X = XYZ(1.0, 0.0, 0.0)
XYZ.BASIS_Y = XYZ(0.0, 1.0, 0.0)
XYZ.BASIS_Z = XYZ(0.0, 0.0, 1.0)


# =============================================================================
# LINE
# =============================================================================

@dataclass(frozen=True)
class Line:
    """
    Straight segment from start to end; the centerline of a conduit segment.
    """

    start: XYZ
    end: XYZ

    @property
    def direction(self) -> XYZ:
        return (self.end - self.start).normalize()

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)

    def evaluate(self, t: float) -> XYZ:
        """Point at parameter t, where t=0 is start and t=1 is end."""
        return self.start + (self.end - self.start) * t

    def closest_point_to(self, point: XYZ) -> XYZ:
        """Closest point on the segment, with the projection clamped to [0, 1]."""
        ab = self.end - self.start
        length_sq = ab.length_squared
        if length_sq < ZERO_LENGTH:
            return self.start
        t = (point - self.start).dot(ab) / length_sq
        return self.evaluate(max(0.0, min(1.0, t)))
