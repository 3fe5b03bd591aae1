"""
Conduit Model Module

Spatial primitives, catalogs, entities and the model store that owns them.

Usage:
    from conduitgen.model import ConduitModelStore, ConduitSegment, XYZ

    store = ConduitModelStore()
    run = store.create_run_from_segments([
        ConduitSegment(XYZ(0, 0, 10), XYZ(10, 0, 10)),
        ConduitSegment(XYZ(10, 0, 10), XYZ(10, 10, 10)),
    ])
"""

from .conduit_size import (
    EMT_SIZES,
    ConduitMaterialType,
    ConduitSize,
    ConduitSizeSettings,
    trade_size_to_float,
)
from .conduit_type import (
    ConduitType,
    FittingType,
    RoutingPreferenceRule,
    default_routing_preferences,
)
from .connectors import (
    DEFAULT_CONNECTION_TOLERANCE,
    ConnectivityGraph,
    Connector,
    ConnectorManager,
)
from .elements import ConduitFitting, ConduitRun, ConduitSegment
from .model_store import ConduitModelStore, StoreChange
from .settings import ConduitSettings, RoutingDefaults
from .xyz import XYZ, Line

__all__ = [
    # Primitives
    'XYZ',
    'Line',
    # Catalogs
    'ConduitMaterialType',
    'ConduitSize',
    'ConduitSizeSettings',
    'EMT_SIZES',
    'trade_size_to_float',
    'ConduitType',
    'FittingType',
    'RoutingPreferenceRule',
    'default_routing_preferences',
    # Connectivity
    'Connector',
    'ConnectorManager',
    'ConnectivityGraph',
    'DEFAULT_CONNECTION_TOLERANCE',
    # Entities and store
    'ConduitSegment',
    'ConduitFitting',
    'ConduitRun',
    'ConduitSettings',
    'RoutingDefaults',
    'ConduitModelStore',
    'StoreChange',
]
