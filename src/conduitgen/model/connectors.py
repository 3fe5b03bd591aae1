"""
Connectors and the Connectivity Graph

Every segment and fitting owns a small set of connectors: directional
endpoints used to express physical connectivity. The ConnectivityGraph is
the only place that links connectors belonging to different owners.

Connection invariant:
- A connection is always symmetric. If A.connected_to_id == B.id then
  B.connected_to_id == A.id. Connect and disconnect update both ends in
  the same call.

Scaling:
- auto_connect() compares every pair of open connectors, O(n^2). This is
  fine for the hundreds of connectors of an authoring session; larger
  models would need a spatial index.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from .xyz import XYZ

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_TOLERANCE = 0.01  # feet


# =============================================================================
# CONNECTOR
# =============================================================================


@dataclass(eq=False)
class Connector:
    """
    A directional endpoint on a segment or fitting.

    Attributes:
        id: Unique connector id (e.g. "<segment id>-start")
        owner_id: Id of the owning segment or fitting
        origin: World-space location
        direction: Outward direction from the owner
        basis_y: Up/basis vector for orientation
        connected_to_id: Id of the mated connector, None when open
    """

    id: str
    owner_id: str
    origin: XYZ = XYZ.ZERO
    direction: XYZ = XYZ.BASIS_X
    basis_y: XYZ = XYZ.BASIS_Z
    connected_to_id: str | None = None

    @property
    def is_connected(self) -> bool:
        return self.connected_to_id is not None


# =============================================================================
# CONNECTOR MANAGER
# =============================================================================


class ConnectorManager:
    """Connectors belonging to a single element."""

    def __init__(self, connectors: list[Connector] | None = None):
        self._connectors: list[Connector] = list(connectors or [])

    def __iter__(self) -> Iterator[Connector]:
        return iter(self._connectors)

    def __len__(self) -> int:
        return len(self._connectors)

    @property
    def connectors(self) -> list[Connector]:
        return list(self._connectors)

    def add_connector(self, connector: Connector) -> None:
        self._connectors.append(connector)

    def get_connector(self, connector_id: str) -> Connector | None:
        for connector in self._connectors:
            if connector.id == connector_id:
                return connector
        return None

    def find_nearest(self, point: XYZ, tolerance: float = DEFAULT_CONNECTION_TOLERANCE) -> Connector | None:
        """
        Find the nearest unconnected connector strictly within tolerance.

        Args:
            point: World-space query point
            tolerance: Maximum distance in feet

        Returns:
            Closest open connector, or None if none is close enough
        """
        best = None
        best_dist = tolerance
        for connector in self._connectors:
            if connector.is_connected:
                continue
            dist = connector.origin.distance_to(point)
            if dist < best_dist:
                best_dist = dist
                best = connector
        return best

    def open_connectors(self) -> list[Connector]:
        return [c for c in self._connectors if not c.is_connected]


# =============================================================================
# CONNECTIVITY GRAPH
# =============================================================================


class ConnectivityGraph:
    """Global registry of connectors keyed by id."""

    def __init__(self):
        self._connectors: dict[str, Connector] = {}

    def __len__(self) -> int:
        return len(self._connectors)

    def __contains__(self, connector_id: str) -> bool:
        return connector_id in self._connectors

    def register(self, connector: Connector) -> None:
        """Add a connector, replacing any connector with the same id."""
        self._connectors[connector.id] = connector

    def unregister(self, connector_id: str) -> None:
        self._connectors.pop(connector_id, None)

    def get_connector(self, connector_id: str) -> Connector | None:
        return self._connectors.get(connector_id)

    def connect(self, connector_id_a: str, connector_id_b: str) -> bool:
        """
        Connect two connectors bidirectionally.

        Either connector's previous mate is released first. No check is made
        that the two origins coincide; that is the caller's responsibility.

        Returns:
            False if either id is unknown, True otherwise
        """
        a = self._connectors.get(connector_id_a)
        b = self._connectors.get(connector_id_b)
        if a is None or b is None:
            return False

        self.disconnect(a.id)
        self.disconnect(b.id)
        a.connected_to_id = b.id
        b.connected_to_id = a.id
        return True

    def disconnect(self, connector_id: str) -> None:
        """Disconnect a connector and its mate. Open or unknown ids are a no-op."""
        connector = self._connectors.get(connector_id)
        if connector is None:
            return
        if connector.connected_to_id is not None:
            other = self._connectors.get(connector.connected_to_id)
            if other is not None:
                other.connected_to_id = None
        connector.connected_to_id = None

    def open_connectors(self) -> list[Connector]:
        return [c for c in self._connectors.values() if not c.is_connected]

    def connections(self) -> list[tuple[str, str]]:
        """Each connected pair once, as (id, mate id) in registration order."""
        seen: set[str] = set()
        pairs = []
        for connector in self._connectors.values():
            if connector.connected_to_id is None or connector.id in seen:
                continue
            seen.add(connector.id)
            seen.add(connector.connected_to_id)
            pairs.append((connector.id, connector.connected_to_id))
        return pairs

    def auto_connect(self, tolerance: float = DEFAULT_CONNECTION_TOLERANCE) -> int:
        """
        Connect open connectors of different owners whose origins are within
        tolerance.

        Each connector pairs with the first eligible partner found; once
        connected it is no longer open and drops out of the pass.

        Returns:
            Number of new connections made
        """
        count = 0
        candidates = self.open_connectors()
        for i, a in enumerate(candidates):
            if a.is_connected:
                continue
            for b in candidates[i + 1:]:
                if b.is_connected or a.owner_id == b.owner_id:
                    continue
                if a.origin.distance_to(b.origin) < tolerance:
                    self.connect(a.id, b.id)
                    count += 1
                    break

        if count:
            logger.debug("auto_connect made %d connection(s) at tolerance %.4f", count, tolerance)
        return count
