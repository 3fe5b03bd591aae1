#!/usr/bin/env python3
"""
Smart Bend Service

Field-bending calculations for conduit:
- Bend deduct table lookup with linear interpolation between angles
- Cut lengths for sticks with bends at either end
- Bend classification (stub-up, kick, offset)
- Offset and saddle layout marks using the electrician's trig identities

Conventions:
- Lengths are in inches unless a name says otherwise
- Angles are in degrees
- Offset spacing = depth × multiplier (= depth / sin θ)

The default table covers common EMT hand-bender data for 1/2" through 2".
Other materials or benders load their own table from CSV:

    TradeSize,AngleDegrees,BendRadius,DeductInches,TangentLengthInches,GainInches
    1/2,90,4,5,4,3

Sources:
- Standard EMT hand bender take-up/deduct charts
- Field offset multiplier and shrink-per-inch tables (10° through 60°)
"""

from __future__ import annotations

import csv
import logging
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

from ..model.elements import ConduitSegment
from ..model.xyz import XYZ

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

# Table angles within this distance count as an exact match
ANGLE_LOOKUP_TOLERANCE = 0.5

# Junction angles strictly inside this band are 90° bends
NINETY_MIN_ANGLE = 80.0
NINETY_MAX_ANGLE = 100.0

# |direction · up| above this makes a direction vertical
VERTICAL_ALIGNMENT = 0.7

INCHES_PER_FOOT = 12.0

OFFSET_MULTIPLIERS: dict[float, float] = {
    10.0: 6.0,
    15.0: 3.86,
    22.5: 2.6,
    30.0: 2.0,
    45.0: 1.4,
    60.0: 1.2,
}

OFFSET_SHRINK_PER_INCH: dict[float, float] = {
    10.0: 1.0 / 16.0,
    15.0: 1.0 / 8.0,
    22.5: 3.0 / 16.0,
    30.0: 1.0 / 4.0,
    45.0: 3.0 / 8.0,
    60.0: 1.0 / 2.0,
}


# =============================================================================
# DATA STRUCTURES
# =============================================================================


class SmartBendType(str, Enum):
    """Named bend geometries. SADDLE is laid out separately, never classified."""

    STUB_90 = "Stub90"
    KICK_90 = "Kick90"
    OFFSET = "Offset"
    SADDLE = "Saddle"


@dataclass(frozen=True)
class BendTableEntry:
    """Deduct data for one trade size at one bend angle (inches)."""

    trade_size: str
    angle_degrees: float
    bend_radius: float
    deduct_inches: float
    tangent_length_inches: float
    gain_inches: float


@dataclass(frozen=True)
class OptimizedStick:
    """Several colinear segments fabricated as one stick."""

    raw_length_inches: float
    cut_length_inches: float
    total_deduct_inches: float
    segment_count: int
    bend_count: int


@dataclass(frozen=True)
class OffsetMarks:
    """Layout marks for an offset bent toward an obstruction (inches)."""

    first_mark: float
    second_mark: float
    spacing: float
    shrink: float


@dataclass(frozen=True)
class SaddleMarks45:
    """Rule-of-thumb 22.5/45/22.5 three-point saddle layout (inches)."""

    outer_mark_offset: float
    total_outside_spacing: float


@dataclass(frozen=True)
class FourPointSaddleMarks:
    """
    Four bend marks along the stick, measured from the same end (inches).

    Bends 1-2 form the rising offset, bends 3-4 the falling offset.
    """

    first_mark: float
    second_mark: float
    third_mark: float
    fourth_mark: float
    spacing: float
    total_shrink: float


def _entry(trade_size, angle, radius, deduct, tangent, gain) -> BendTableEntry:
    return BendTableEntry(trade_size, angle, radius, deduct, tangent, gain)


# EMT hand bender data: trade size, angle, bend radius, deduct, tangent, gain
DEFAULT_EMT_BEND_TABLE: tuple[BendTableEntry, ...] = (
    _entry("1/2", 90, 4.0, 5.0, 4.0, 3.0),
    _entry("1/2", 45, 4.0, 2.5, 4.0, 1.5),
    _entry("1/2", 30, 4.0, 1.5, 4.0, 0.75),
    _entry("1/2", 22.5, 4.0, 1.0, 4.0, 0.5),
    _entry("1/2", 10, 4.0, 0.5, 4.0, 0.15),
    _entry("3/4", 90, 4.5, 6.0, 4.5, 3.375),
    _entry("3/4", 45, 4.5, 3.0, 4.5, 1.688),
    _entry("3/4", 30, 4.5, 1.75, 4.5, 0.844),
    _entry("1", 90, 5.75, 8.0, 5.75, 3.5),
    _entry("1", 45, 5.75, 3.625, 5.75, 1.75),
    _entry("1", 30, 5.75, 2.125, 5.75, 0.875),
    _entry("1-1/4", 90, 7.25, 10.0, 7.25, 4.5),
    _entry("1-1/4", 45, 7.25, 4.625, 7.25, 2.25),
    _entry("1-1/2", 90, 8.25, 11.0, 8.25, 5.75),
    _entry("1-1/2", 45, 8.25, 5.25, 8.25, 2.875),
    _entry("2", 90, 9.5, 13.0, 9.5, 6.0),
    _entry("2", 45, 9.5, 6.0, 9.5, 3.0),
)


# =============================================================================
# HELPERS
# =============================================================================


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def _lookup_angle_value(table: dict[float, float], angle_degrees: float) -> float | None:
    """Value of the nearest anchor angle, or None if none is within tolerance."""
    if not table:
        return None
    nearest = min(table, key=lambda anchor: abs(anchor - angle_degrees))
    if abs(nearest - angle_degrees) > ANGLE_LOOKUP_TOLERANCE:
        return None
    return table[nearest]


def _require_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


# =============================================================================
# SERVICE
# =============================================================================


class SmartBendService:
    """Bend deduct table plus bend layout calculations."""

    def __init__(self, table: Iterable[BendTableEntry] | None = None):
        self._table: list[BendTableEntry] = list(DEFAULT_EMT_BEND_TABLE if table is None else table)

    @property
    def bend_table(self) -> list[BendTableEntry]:
        return list(self._table)

    # -------------------------------------------------------------------------
    # Table loading
    # -------------------------------------------------------------------------

    def load_from_csv(self, lines: Iterable[str]) -> None:
        """
        Replace the bend table with rows parsed from CSV text lines.

        The first line is a header and is skipped. Rows with fewer than six
        fields are skipped; columns past the sixth are ignored.

        Raises:
            ValueError: If a numeric field cannot be parsed
        """
        table = []
        reader = csv.reader(lines)
        next(reader, None)
        for row in reader:
            if len(row) < 6:
                continue
            table.append(BendTableEntry(
                trade_size=row[0].strip(),
                angle_degrees=float(row[1]),
                bend_radius=float(row[2]),
                deduct_inches=float(row[3]),
                tangent_length_inches=float(row[4]),
                gain_inches=float(row[5]),
            ))
        self._table = table
        logger.debug("Loaded %d bend table entries", len(table))

    def load_from_file(self, path: str | Path) -> None:
        """Replace the bend table from a CSV file."""
        with open(path, newline="", encoding="utf-8") as f:
            self.load_from_csv(f)

    # -------------------------------------------------------------------------
    # Deducts and cut lengths
    # -------------------------------------------------------------------------

    def lookup_deduct(self, trade_size: str, angle_degrees: float) -> BendTableEntry | None:
        """
        Look up bend data for a trade size and angle.

        An entry within 0.5° is returned as is. Between two table angles all
        four numeric fields are interpolated linearly. Outside the table's
        angle range the nearest boundary entry is returned.

        Returns:
            Matching or interpolated entry, or None for an unknown trade size
        """
        entries = sorted(
            (e for e in self._table if e.trade_size == trade_size),
            key=lambda e: e.angle_degrees,
        )
        if not entries:
            return None

        for entry in entries:
            if abs(entry.angle_degrees - angle_degrees) < ANGLE_LOOKUP_TOLERANCE:
                return entry

        lower = None
        upper = None
        for entry in entries:
            if entry.angle_degrees <= angle_degrees:
                lower = entry
            elif upper is None:
                upper = entry

        if lower is None:
            return upper
        if upper is None:
            return lower

        t = (angle_degrees - lower.angle_degrees) / (upper.angle_degrees - lower.angle_degrees)
        return BendTableEntry(
            trade_size=trade_size,
            angle_degrees=angle_degrees,
            bend_radius=_lerp(lower.bend_radius, upper.bend_radius, t),
            deduct_inches=_lerp(lower.deduct_inches, upper.deduct_inches, t),
            tangent_length_inches=_lerp(lower.tangent_length_inches, upper.tangent_length_inches, t),
            gain_inches=_lerp(lower.gain_inches, upper.gain_inches, t),
        )

    def compute_cut_length(
        self,
        raw_length_inches: float,
        trade_size: str,
        start_angle_degrees: float | None = None,
        end_angle_degrees: float | None = None,
    ) -> float:
        """
        Cut length of a stick with optional bends at each end.

        Each end with an angle subtracts its table deduct; a failed lookup
        subtracts nothing. The result is clamped at zero.
        """
        cut = raw_length_inches
        for angle in (start_angle_degrees, end_angle_degrees):
            if angle is None:
                continue
            entry = self.lookup_deduct(trade_size, angle)
            if entry is not None:
                cut -= entry.deduct_inches
        return max(0.0, cut)

    def merge_colinear_segments(
        self,
        segments: Sequence[ConduitSegment],
        bend_angles: Sequence[float],
    ) -> OptimizedStick:
        """
        Treat segments as one stick and deduct every listed bend.

        Deducts use the first segment's trade size.

        Raises:
            ValueError: If segments is empty
        """
        if not segments:
            raise ValueError("Cannot merge an empty segment list")

        raw = sum(s.length for s in segments) * INCHES_PER_FOOT
        trade_size = segments[0].trade_size
        total_deduct = 0.0
        for angle in bend_angles:
            entry = self.lookup_deduct(trade_size, angle)
            if entry is not None:
                total_deduct += entry.deduct_inches

        return OptimizedStick(
            raw_length_inches=raw,
            cut_length_inches=max(0.0, raw - total_deduct),
            total_deduct_inches=total_deduct,
            segment_count=len(segments),
            bend_count=len(bend_angles),
        )

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    def classify_bend(self, dir1: XYZ, dir2: XYZ, up: XYZ = XYZ.BASIS_Z) -> SmartBendType:
        """
        Classify the bend joining two segment directions.

        90° bends (80°-100°, exclusive) are stubs when either leg is vertical
        and kicks otherwise. Every other angle is an offset bend.
        """
        angle_deg = math.degrees(XYZ.angle_between(dir1, dir2))
        if NINETY_MIN_ANGLE < angle_deg < NINETY_MAX_ANGLE:
            vertical = (
                abs(dir1.dot(up)) > VERTICAL_ALIGNMENT
                or abs(dir2.dot(up)) > VERTICAL_ALIGNMENT
            )
            return SmartBendType.STUB_90 if vertical else SmartBendType.KICK_90
        return SmartBendType.OFFSET

    # -------------------------------------------------------------------------
    # Stubs and offsets
    # -------------------------------------------------------------------------

    def calculate_stub_mark(self, stub_height_inches: float, take_up_inches: float) -> float:
        """Mark distance from the conduit end for a stub-up of the given height."""
        _require_non_negative("stub_height_inches", stub_height_inches)
        _require_non_negative("take_up_inches", take_up_inches)
        return stub_height_inches - take_up_inches

    def get_offset_multiplier(self, angle_degrees: float) -> float | None:
        return _lookup_angle_value(OFFSET_MULTIPLIERS, angle_degrees)

    def get_offset_shrink_per_inch(self, angle_degrees: float) -> float | None:
        return _lookup_angle_value(OFFSET_SHRINK_PER_INCH, angle_degrees)

    def calculate_offset_spacing(self, depth_inches: float, angle_degrees: float) -> float:
        """
        Distance between the two bends of an offset.

        Uses the field multiplier for standard angles, otherwise
        depth / sin(angle).

        Raises:
            ValueError: If depth is negative, or the angle has no multiplier
                and is not strictly between 0° and 90°
        """
        _require_non_negative("depth_inches", depth_inches)

        multiplier = self.get_offset_multiplier(angle_degrees)
        if multiplier is not None:
            return depth_inches * multiplier

        if not 0.0 < angle_degrees < 90.0:
            raise ValueError(f"Angle must be between 0 and 90 degrees, got {angle_degrees}")
        return depth_inches / math.sin(math.radians(angle_degrees))

    def calculate_offset_shrink(self, depth_inches: float, angle_degrees: float) -> float:
        """
        Run shrink caused by an offset.

        Between anchor angles the shrink-per-inch factor is interpolated;
        outside the anchors it is clamped to the nearest end.
        """
        _require_non_negative("depth_inches", depth_inches)

        per_inch = self.get_offset_shrink_per_inch(angle_degrees)
        if per_inch is not None:
            return depth_inches * per_inch

        anchors = sorted(OFFSET_SHRINK_PER_INCH.items())
        if angle_degrees <= anchors[0][0]:
            return depth_inches * anchors[0][1]
        if angle_degrees >= anchors[-1][0]:
            return depth_inches * anchors[-1][1]

        for (left_angle, left_value), (right_angle, right_value) in zip(anchors, anchors[1:]):
            if left_angle <= angle_degrees <= right_angle:
                t = (angle_degrees - left_angle) / (right_angle - left_angle)
                return depth_inches * _lerp(left_value, right_value, t)

        return depth_inches * anchors[-1][1]

    def calculate_offset_marks_toward_obstruction(
        self,
        distance_to_obstruction_inches: float,
        depth_inches: float,
        angle_degrees: float,
    ) -> OffsetMarks:
        """
        Marks for an offset bent toward an obstruction.

        The first mark sits one shrink past the obstruction distance and the
        second mark one spacing back from the first.
        """
        _require_non_negative("distance_to_obstruction_inches", distance_to_obstruction_inches)

        spacing = self.calculate_offset_spacing(depth_inches, angle_degrees)
        shrink = self.calculate_offset_shrink(depth_inches, angle_degrees)
        first = distance_to_obstruction_inches + shrink
        return OffsetMarks(first_mark=first, second_mark=first - spacing, spacing=spacing, shrink=shrink)

    # -------------------------------------------------------------------------
    # Saddles
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_three_point_saddle_center_angle(outer_angle_degrees: float) -> float:
        return outer_angle_degrees * 2.0

    @staticmethod
    def is_symmetric_three_point_saddle(
        center_angle_degrees: float,
        outer_angle_degrees: float,
        tolerance_degrees: float = 0.5,
    ) -> bool:
        return abs(center_angle_degrees - 2.0 * outer_angle_degrees) <= abs(tolerance_degrees)

    def calculate_three_point_saddle_marks_45(self, obstacle_width_inches: float) -> SaddleMarks45:
        """Outer marks sit twice the obstacle width either side of the center mark."""
        _require_non_negative("obstacle_width_inches", obstacle_width_inches)
        outer = obstacle_width_inches * 2.0
        return SaddleMarks45(outer_mark_offset=outer, total_outside_spacing=outer * 2.0)

    def calculate_four_point_saddle_marks(
        self,
        distance_to_obstruction_inches: float,
        obstruction_width_inches: float,
        depth_inches: float,
        angle_degrees: float,
    ) -> FourPointSaddleMarks:
        """
        Four-point saddle as two equal offsets around a box obstruction.

        The rising offset is laid out toward the near face of the obstruction,
        the falling offset starts one obstruction width past it.

        Args:
            distance_to_obstruction_inches: Stick end to the near face
            obstruction_width_inches: Width of the obstruction along the run
            depth_inches: Height of the obstruction (offset depth)
            angle_degrees: Bend angle used for all four bends
        """
        _require_non_negative("obstruction_width_inches", obstruction_width_inches)

        rising = self.calculate_offset_marks_toward_obstruction(
            distance_to_obstruction_inches, depth_inches, angle_degrees,
        )
        third = rising.first_mark + obstruction_width_inches
        return FourPointSaddleMarks(
            first_mark=rising.second_mark,
            second_mark=rising.first_mark,
            third_mark=third,
            fourth_mark=third + rising.spacing,
            spacing=rising.spacing,
            total_shrink=rising.shrink * 2.0,
        )
