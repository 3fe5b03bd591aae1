"""
Conduit Model Elements

Segments, fittings and runs. Segments and fittings own their connectors;
runs are named views over segment and fitting ids held by the model store.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .conduit_size import ConduitMaterialType
from .conduit_type import FittingType
from .connectors import Connector, ConnectorManager
from .xyz import XYZ, Line

if TYPE_CHECKING:
    from .model_store import ConduitModelStore


def _new_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# SEGMENT
# =============================================================================


@dataclass(eq=False)
class ConduitSegment:
    """
    A single straight conduit segment.

    Length and direction are derived from the endpoints every time they are
    read. After moving an endpoint, call initialize_connectors() (or use
    ConduitModelStore.move_segment) so the connectors follow.

    Attributes:
        id: Unique identifier
        start_point: Start of the centerline (feet)
        end_point: End of the centerline (feet)
        level_id: Level this segment belongs to
        conduit_type_id: Conduit type reference
        offset: Elevation offset from level (feet)
        diameter: Outer diameter (inches)
        trade_size: Trade size designation
        material: Material standard
        connectors: Start and end connectors
    """

    start_point: XYZ = XYZ.ZERO
    end_point: XYZ = XYZ.ZERO
    id: str = field(default_factory=_new_id)
    level_id: str = "Level 1"
    conduit_type_id: str = ""
    offset: float = 0.0
    diameter: float = 0.706
    trade_size: str = "1/2"
    material: ConduitMaterialType = ConduitMaterialType.EMT
    connectors: ConnectorManager = field(default_factory=ConnectorManager, repr=False)

    @property
    def location_curve(self) -> Line:
        return Line(self.start_point, self.end_point)

    @property
    def length(self) -> float:
        return self.start_point.distance_to(self.end_point)

    @property
    def direction(self) -> XYZ:
        return self.location_curve.direction

    def initialize_connectors(self) -> None:
        """Rebuild the start and end connectors from the current endpoints."""
        direction = self.direction
        self.connectors = ConnectorManager([
            Connector(
                id=f"{self.id}-start",
                owner_id=self.id,
                origin=self.start_point,
                direction=-direction,
            ),
            Connector(
                id=f"{self.id}-end",
                owner_id=self.id,
                origin=self.end_point,
                direction=direction,
            ),
        ])


# =============================================================================
# FITTING
# =============================================================================


@dataclass(eq=False)
class ConduitFitting:
    """
    A fitting placed at a junction between conduit segments.

    Attributes:
        fitting_type: Kind of fitting
        location: Fitting center, usually the shared segment endpoint
        angle_degrees: Bend angle between the joined segments
        trade_size: Trade size of the joined segments
        bend_radius: Bend radius (inches)
        deduct_length: Deduct length (inches)
        connected_segment_ids: Ids of joined segments, normally two
    """

    fitting_type: FittingType = FittingType.ELBOW_90
    location: XYZ = XYZ.ZERO
    angle_degrees: float = 0.0
    trade_size: str = "1/2"
    bend_radius: float = 0.0
    deduct_length: float = 0.0
    connected_segment_ids: list[str] = field(default_factory=list)
    id: str = field(default_factory=_new_id)
    connectors: ConnectorManager = field(default_factory=ConnectorManager, repr=False)

    def initialize_connectors(self, incoming: XYZ, outgoing: XYZ) -> None:
        """
        Build inlet and outlet connectors at the fitting location.

        Args:
            incoming: Travel direction of the segment entering the fitting
            outgoing: Travel direction of the segment leaving the fitting
        """
        self.connectors = ConnectorManager([
            Connector(
                id=f"{self.id}-in",
                owner_id=self.id,
                origin=self.location,
                direction=-incoming.normalize(),
            ),
            Connector(
                id=f"{self.id}-out",
                owner_id=self.id,
                origin=self.location,
                direction=outgoing.normalize(),
            ),
        ])


# =============================================================================
# RUN
# =============================================================================


@dataclass(eq=False)
class ConduitRun:
    """
    A named, ordered grouping of segments and fittings.

    The run only holds ids; the entities live in the model store. Total
    length is always recomputed from the store so it cannot go stale.
    """

    run_id: str = ""
    segment_ids: list[str] = field(default_factory=list)
    fitting_ids: list[str] = field(default_factory=list)
    start_equipment: str = ""
    end_equipment: str = ""
    voltage: str = ""
    conductor_fill_percent: float = 0.0
    conduit_type_id: str = ""
    trade_size: str = "1/2"
    material: ConduitMaterialType = ConduitMaterialType.EMT
    level_id: str = "Level 1"
    metadata: dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=_new_id)

    def compute_total_length(self, store: ConduitModelStore) -> float:
        """Sum of segment lengths (feet) as currently held by the store."""
        return sum(seg.length for seg in self.get_segments(store))

    def get_segments(self, store: ConduitModelStore) -> list[ConduitSegment]:
        segments = (store.get_segment(sid) for sid in self.segment_ids)
        return [s for s in segments if s is not None]

    def get_fittings(self, store: ConduitModelStore) -> list[ConduitFitting]:
        fittings = (store.get_fitting(fid) for fid in self.fitting_ids)
        return [f for f in fittings if f is not None]
