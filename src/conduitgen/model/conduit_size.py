"""
Conduit Size Catalog

Trade-size to dimensional lookup tables per material standard.

Sources:
- ANSI C80.3 Electrical Metallic Tubing (EMT) dimensions and weights
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

# =============================================================================
# MATERIAL STANDARDS
# =============================================================================


class ConduitMaterialType(str, Enum):
    """Conduit material/standard designation."""

    EMT = "EMT"    # Electrical Metallic Tubing
    RMC = "RMC"    # Rigid Metal Conduit
    IMC = "IMC"    # Intermediate Metal Conduit
    PVC = "PVC"    # Polyvinyl Chloride
    LFMC = "LFMC"  # Liquidtight Flexible Metal Conduit
    LFNC = "LFNC"  # Liquidtight Flexible Nonmetallic Conduit
    FMC = "FMC"    # Flexible Metal Conduit
    ENT = "ENT"    # Electrical Nonmetallic Tubing


# =============================================================================
# TRADE SIZE PARSING
# =============================================================================


def trade_size_to_float(trade_size: str) -> float:
    """
    Convert a trade size label to a float value for ordering.

    Args:
        trade_size: Trade size string (e.g., "4", "1-1/2", "3/4")

    Returns:
        Float value of the trade size

    Examples:
        >>> trade_size_to_float("4")
        4.0
        >>> trade_size_to_float("1-1/4")
        1.25
        >>> trade_size_to_float("3/4")
        0.75
    """
    label = trade_size.strip()

    if re.match(r"^\d+(\.\d+)?$", label):
        return float(label)

    match = re.match(r"^(\d+)/(\d+)$", label)
    if match:
        return float(match.group(1)) / float(match.group(2))

    match = re.match(r"^(\d+)-(\d+)/(\d+)$", label)
    if match:
        return float(match.group(1)) + float(match.group(2)) / float(match.group(3))

    raise ValueError(f"Cannot parse trade size: {trade_size}")


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass
class ConduitSize:
    """A single trade size entry (diameters in inches, weight in lb/ft)."""

    trade_size: str
    nominal_diameter: float = 0.0
    outer_diameter: float = 0.0
    inner_diameter: float = 0.0
    weight_per_foot: float = 0.0


# EMT dimension table (ANSI C80.3)
EMT_SIZES: dict[str, ConduitSize] = {
    "1/2": ConduitSize("1/2", 0.5, 0.706, 0.622, 0.29),
    "3/4": ConduitSize("3/4", 0.75, 0.922, 0.824, 0.45),
    "1": ConduitSize("1", 1.0, 1.163, 1.049, 0.65),
    "1-1/4": ConduitSize("1-1/4", 1.25, 1.510, 1.380, 0.96),
    "1-1/2": ConduitSize("1-1/2", 1.5, 1.740, 1.610, 1.11),
    "2": ConduitSize("2", 2.0, 2.197, 2.067, 1.43),
    "2-1/2": ConduitSize("2-1/2", 2.5, 2.875, 2.731, 2.68),
    "3": ConduitSize("3", 3.0, 3.500, 3.356, 3.23),
    "4": ConduitSize("4", 4.0, 4.500, 4.334, 4.65),
}


@dataclass
class ConduitSizeSettings:
    """
    Ordered set of available conduit sizes for one material standard.

    Attributes:
        standard: Material standard the sizes belong to
        min_length_inches: Shortest segment length considered buildable
        sizes: Size entries in catalog order
    """

    standard: ConduitMaterialType = ConduitMaterialType.EMT
    min_length_inches: float = 0.1
    sizes: list[ConduitSize] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.standard, str):
            self.standard = ConduitMaterialType(self.standard)
        self.sizes = [
            ConduitSize(**s) if isinstance(s, dict) else s for s in self.sizes
        ]

    def __iter__(self) -> Iterator[ConduitSize]:
        return iter(self.sizes)

    def __len__(self) -> int:
        return len(self.sizes)

    @property
    def trade_sizes(self) -> list[str]:
        return [s.trade_size for s in self.sizes]

    def add_size(self, size: ConduitSize) -> None:
        self.sizes.append(size)

    def remove_size(self, trade_size: str) -> None:
        self.sizes = [s for s in self.sizes if s.trade_size != trade_size]

    def get_size(self, trade_size: str) -> ConduitSize | None:
        """Return the size entry for a trade size, or None if not in the table."""
        for size in self.sizes:
            if size.trade_size == trade_size:
                return size
        return None

    def is_valid_length(self, length_inches: float) -> bool:
        return length_inches >= self.min_length_inches

    @classmethod
    def create_default_emt(cls) -> ConduitSizeSettings:
        """Create the default EMT size table (1/2" through 4")."""
        return cls(
            standard=ConduitMaterialType.EMT,
            sizes=[ConduitSize(**vars(s)) for s in EMT_SIZES.values()],
        )
