"""
Project-wide conduit settings and resolved routing defaults.
"""

from dataclasses import dataclass

from .conduit_size import ConduitMaterialType


@dataclass
class ConduitSettings:
    """
    Global conduit settings for a project.

    Attributes:
        size_prefix: Prefix for trade size display (e.g. "TS")
        connector_separator: Separator between connector labels
        connection_tolerance: Auto-connect distance (feet)
        default_conduit_type_id: Type used when a request names none
        default_trade_size: Trade size used when nothing else resolves
        default_elevation: Default routing elevation (feet)
        auto_insert_fittings: Insert fittings at bends when building runs
    """

    size_prefix: str = ""
    connector_separator: str = " - "
    connection_tolerance: float = 0.01
    default_conduit_type_id: str = ""
    default_trade_size: str = "1/2"
    default_elevation: float = 10.0
    auto_insert_fittings: bool = True


@dataclass(frozen=True)
class RoutingDefaults:
    """Type, trade size and material resolved for a run."""

    conduit_type_id: str
    trade_size: str
    material: ConduitMaterialType
