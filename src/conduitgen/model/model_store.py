#!/usr/bin/env python3
"""
Conduit Model Store

The aggregate root of the conduit model: all types, segments, fittings and
runs, the project settings, and the connectivity graph.

Every mutation keeps the connectivity graph consistent in the same call:
- Adding a segment initializes its connectors and registers them
- Adding a fitting registers its existing connectors
- Removing a segment or fitting disconnects and unregisters its
  connectors before the entity leaves the store

Run construction (create_run_from_segments) is the core orchestration step:

    segments -> resolve type/size/material -> stamp segments -> register
             -> insert fittings at bends -> auto-connect -> register run

Run construction is not atomic. If a late step fails, segments already
registered stay in the store so drawn geometry is not lost.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from .conduit_size import ConduitMaterialType
from .conduit_type import ConduitType, FittingType
from .connectors import ConnectivityGraph, ConnectorManager
from .elements import ConduitFitting, ConduitRun, ConduitSegment
from .settings import ConduitSettings, RoutingDefaults
from .xyz import XYZ

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

# Angles strictly inside this band always get a fitting, even when no rule matches
FALLBACK_MIN_ANGLE = 5.0
FALLBACK_MAX_ANGLE = 170.0

# Above this angle the fallback picks a 90° elbow, otherwise a 45° elbow
FALLBACK_ELBOW_90_THRESHOLD = 60.0


@dataclass(frozen=True)
class StoreChange:
    """
    Result of a store mutation.

    Attributes:
        element_id: Id of the entity the mutation targeted
        applied: False when the mutation was a no-op (e.g. unknown id)
        registered: Connector ids added to the connectivity graph
        released: Connector ids disconnected and removed from the graph
    """

    element_id: str
    applied: bool = True
    registered: tuple[str, ...] = field(default_factory=tuple)
    released: tuple[str, ...] = field(default_factory=tuple)


class ConduitModelStore:
    """Central store for all conduit model objects."""

    def __init__(self, settings: ConduitSettings | None = None):
        self._types: dict[str, ConduitType] = {}
        self._segments: dict[str, ConduitSegment] = {}
        self._fittings: dict[str, ConduitFitting] = {}
        self._runs: dict[str, ConduitRun] = {}
        self.settings = settings or ConduitSettings()
        self.connectivity = ConnectivityGraph()
        self._next_run_number = 1

    # =========================================================================
    # TYPES
    # =========================================================================

    def add_type(self, conduit_type: ConduitType) -> None:
        self._types[conduit_type.id] = conduit_type

    def get_type(self, type_id: str) -> ConduitType | None:
        return self._types.get(type_id)

    def all_types(self) -> list[ConduitType]:
        return list(self._types.values())

    # =========================================================================
    # SEGMENTS
    # =========================================================================

    def add_segment(self, segment: ConduitSegment) -> StoreChange:
        """Register a segment, (re)building and registering its connectors."""
        released: tuple[str, ...] = ()
        if segment.id in self._segments:
            released = self._release_connectors(self._segments[segment.id].connectors)

        segment.initialize_connectors()
        self._segments[segment.id] = segment
        registered = self._register_connectors(segment.connectors)
        return StoreChange(segment.id, registered=registered, released=released)

    def get_segment(self, segment_id: str) -> ConduitSegment | None:
        return self._segments.get(segment_id)

    def all_segments(self) -> list[ConduitSegment]:
        return list(self._segments.values())

    def remove_segment(self, segment_id: str) -> StoreChange:
        segment = self._segments.get(segment_id)
        if segment is None:
            return StoreChange(segment_id, applied=False)

        released = self._release_connectors(segment.connectors)
        del self._segments[segment_id]
        return StoreChange(segment_id, released=released)

    def move_segment(self, segment_id: str, start: XYZ, end: XYZ) -> StoreChange:
        """
        Move a segment's endpoints without leaving stale connectors behind.

        The old connectors are disconnected and unregistered, the endpoints
        updated, fresh connectors registered, and auto-connect run at the
        project tolerance so the moved segment reattaches to neighbours.
        """
        segment = self._segments.get(segment_id)
        if segment is None:
            return StoreChange(segment_id, applied=False)

        released = self._release_connectors(segment.connectors)
        segment.start_point = start
        segment.end_point = end
        segment.initialize_connectors()
        registered = self._register_connectors(segment.connectors)
        self.connectivity.auto_connect(self.settings.connection_tolerance)
        return StoreChange(segment_id, registered=registered, released=released)

    # =========================================================================
    # FITTINGS
    # =========================================================================

    def add_fitting(self, fitting: ConduitFitting) -> StoreChange:
        """Register a fitting and its existing connectors."""
        released: tuple[str, ...] = ()
        previous = self._fittings.get(fitting.id)
        if previous is not None and previous is not fitting:
            released = self._release_connectors(previous.connectors)

        self._fittings[fitting.id] = fitting
        registered = self._register_connectors(fitting.connectors)
        return StoreChange(fitting.id, registered=registered, released=released)

    def get_fitting(self, fitting_id: str) -> ConduitFitting | None:
        return self._fittings.get(fitting_id)

    def all_fittings(self) -> list[ConduitFitting]:
        return list(self._fittings.values())

    def remove_fitting(self, fitting_id: str) -> StoreChange:
        fitting = self._fittings.get(fitting_id)
        if fitting is None:
            return StoreChange(fitting_id, applied=False)

        released = self._release_connectors(fitting.connectors)
        del self._fittings[fitting_id]
        return StoreChange(fitting_id, released=released)

    # =========================================================================
    # RUNS
    # =========================================================================

    def add_run(self, run: ConduitRun) -> None:
        self._runs[run.id] = run

    def get_run(self, run_id: str) -> ConduitRun | None:
        return self._runs.get(run_id)

    def all_runs(self) -> list[ConduitRun]:
        return list(self._runs.values())

    def remove_run(self, run_id: str) -> bool:
        """Remove a run view. Its segments and fittings stay in the store."""
        return self._runs.pop(run_id, None) is not None

    def generate_run_id(self) -> str:
        """Next sequential user-facing run id (CR-001, CR-002, ...)."""
        run_id = f"CR-{self._next_run_number:03d}"
        self._next_run_number += 1
        return run_id

    # =========================================================================
    # ROUTING DEFAULTS
    # =========================================================================

    def resolve_routing_defaults(
        self,
        conduit_type_id: str | None,
        trade_size: str | None,
        material: ConduitMaterialType | None = None,
    ) -> RoutingDefaults:
        """
        Resolve a valid type, trade size and material for a routing request.

        Never fails. Type falls back requested -> settings default -> any
        registered type -> a newly registered default type. Trade size falls
        back requested -> the type's first size -> settings default. The
        material is the resolved type's standard.

        Args:
            conduit_type_id: Requested type id (may be unknown or empty)
            trade_size: Requested trade size (may be invalid for the type)
            material: Requested material

        Returns:
            RoutingDefaults naming a type that exists in this store
        """
        conduit_type = self._resolve_type(conduit_type_id)

        if trade_size and conduit_type.size_settings.get_size(trade_size) is not None:
            resolved_size = trade_size
        elif conduit_type.size_settings.sizes:
            resolved_size = conduit_type.size_settings.sizes[0].trade_size
        else:
            resolved_size = self.settings.default_trade_size

        if trade_size and resolved_size != trade_size:
            logger.debug(
                "Trade size %r not available for type %r, using %r",
                trade_size, conduit_type.name, resolved_size,
            )
        if material is not None and material != conduit_type.standard:
            logger.debug(
                "Material %s overridden by type standard %s",
                material.value, conduit_type.standard.value,
            )

        return RoutingDefaults(
            conduit_type_id=conduit_type.id,
            trade_size=resolved_size,
            material=conduit_type.standard,
        )

    def _resolve_type(self, conduit_type_id: str | None) -> ConduitType:
        if conduit_type_id and conduit_type_id in self._types:
            return self._types[conduit_type_id]

        default_id = self.settings.default_conduit_type_id
        if default_id and default_id in self._types:
            return self._types[default_id]

        if self._types:
            return next(iter(self._types.values()))

        conduit_type = ConduitType()
        self.add_type(conduit_type)
        if not self.settings.default_conduit_type_id:
            self.settings.default_conduit_type_id = conduit_type.id
        logger.debug("No conduit types registered, created default type %s", conduit_type.id)
        return conduit_type

    # =========================================================================
    # RUN CONSTRUCTION
    # =========================================================================

    def create_run_from_segments(
        self,
        segments: list[ConduitSegment],
        run_id: str | None = None,
    ) -> ConduitRun:
        """
        Build a run from an ordered list of segments.

        All segments are stamped with the resolved type, trade size and
        material, registered with the store, joined by fittings at bends
        (when the type and settings allow it), and auto-connected.

        Args:
            segments: Ordered, end-to-end segments
            run_id: User-facing run id; generated when omitted

        Returns:
            The registered ConduitRun

        Raises:
            ValueError: If segments is empty
        """
        if not segments:
            raise ValueError("Cannot create a run from an empty segment list")

        first = segments[0]
        defaults = self.resolve_routing_defaults(first.conduit_type_id, first.trade_size, first.material)
        conduit_type = self._types[defaults.conduit_type_id]
        size = conduit_type.size_settings.get_size(defaults.trade_size)

        run = ConduitRun(
            run_id=run_id or self.generate_run_id(),
            conduit_type_id=defaults.conduit_type_id,
            trade_size=defaults.trade_size,
            material=defaults.material,
            level_id=first.level_id,
        )

        for segment in segments:
            segment.conduit_type_id = defaults.conduit_type_id
            segment.trade_size = defaults.trade_size
            segment.material = defaults.material
            if size is not None:
                segment.diameter = size.outer_diameter
            self.add_segment(segment)
            run.segment_ids.append(segment.id)

        if conduit_type.is_with_fitting and self.settings.auto_insert_fittings:
            for seg1, seg2 in zip(segments, segments[1:]):
                fitting = self._create_fitting_between(seg1, seg2, conduit_type)
                if fitting is None:
                    continue
                self.add_fitting(fitting)
                self._chain_fitting(fitting, seg1, seg2)
                run.fitting_ids.append(fitting.id)

        connected = self.connectivity.auto_connect(self.settings.connection_tolerance)
        self.add_run(run)

        logger.debug(
            "Created run %s: %d segment(s), %d fitting(s), %d auto-connection(s)",
            run.run_id, len(run.segment_ids), len(run.fitting_ids), connected,
        )
        return run

    def _create_fitting_between(
        self,
        seg1: ConduitSegment,
        seg2: ConduitSegment,
        conduit_type: ConduitType,
    ) -> ConduitFitting | None:
        """Create (but do not register) the fitting joining two segments, if any."""
        angle_deg = math.degrees(XYZ.angle_between(seg1.direction, seg2.direction))

        fitting_type = conduit_type.select_fitting(angle_deg)
        if fitting_type is None and FALLBACK_MIN_ANGLE < angle_deg < FALLBACK_MAX_ANGLE:
            if angle_deg > FALLBACK_ELBOW_90_THRESHOLD:
                fitting_type = FittingType.ELBOW_90
            else:
                fitting_type = FittingType.ELBOW_45
            logger.debug("No rule for %.1f°, falling back to %s", angle_deg, fitting_type.value)

        if fitting_type is None:
            return None

        fitting = ConduitFitting(
            fitting_type=fitting_type,
            location=seg1.end_point,
            angle_degrees=angle_deg,
            trade_size=seg1.trade_size,
            connected_segment_ids=[seg1.id, seg2.id],
        )
        fitting.initialize_connectors(seg1.direction, seg2.direction)
        return fitting

    def _chain_fitting(self, fitting: ConduitFitting, seg1: ConduitSegment, seg2: ConduitSegment) -> None:
        """Connect seg1 end -> fitting inlet and fitting outlet -> seg2 start."""
        tolerance = self.settings.connection_tolerance
        if fitting.location.distance_to(seg1.end_point) < tolerance:
            self.connectivity.connect(f"{seg1.id}-end", f"{fitting.id}-in")
        if fitting.location.distance_to(seg2.start_point) < tolerance:
            self.connectivity.connect(f"{fitting.id}-out", f"{seg2.id}-start")

    # =========================================================================
    # CONNECTOR BOOKKEEPING
    # =========================================================================

    def _register_connectors(self, connectors: ConnectorManager) -> tuple[str, ...]:
        for connector in connectors:
            self.connectivity.register(connector)
        return tuple(c.id for c in connectors)

    def _release_connectors(self, connectors: ConnectorManager) -> tuple[str, ...]:
        for connector in connectors:
            self.connectivity.disconnect(connector.id)
            self.connectivity.unregister(connector.id)
        return tuple(c.id for c in connectors)
