"""
Conduit Types and Fitting Selection Rules

A conduit type names a material standard, its size table, and an ordered
list of routing preference rules. Each rule maps a junction angle range to
the fitting that should be placed there.

Rules are evaluated in list order and the first match wins. Ranges may
overlap; ordering decides which rule applies.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum

from .conduit_size import ConduitMaterialType, ConduitSizeSettings

# =============================================================================
# FITTING TYPES
# =============================================================================


class FittingType(str, Enum):
    """Fitting kinds a routing rule can select."""

    ELBOW_90 = "Elbow90"
    ELBOW_45 = "Elbow45"
    COUPLING = "Coupling"
    OFFSET = "Offset"
    TRANSITION = "Transition"
    TEE = "Tee"
    CROSS = "Cross"
    CAP = "Cap"
    CONNECTOR = "Connector"

    @property
    def is_bend(self) -> bool:
        """True for fittings that are formed by bending conduit."""
        return self in (FittingType.ELBOW_90, FittingType.ELBOW_45, FittingType.OFFSET)


# =============================================================================
# ROUTING PREFERENCE RULES
# =============================================================================


@dataclass
class RoutingPreferenceRule:
    """Maps an inclusive angle range (degrees) to a fitting type."""

    min_angle_degrees: float
    max_angle_degrees: float
    fitting_type: FittingType

    def __post_init__(self):
        if isinstance(self.fitting_type, str):
            self.fitting_type = FittingType(self.fitting_type)

    def matches(self, angle_degrees: float) -> bool:
        return self.min_angle_degrees <= angle_degrees <= self.max_angle_degrees


def default_routing_preferences() -> list[RoutingPreferenceRule]:
    """
    Default rule set.

    Note the gaps (5-35, 55-80 and 100-170 degrees): angles there match no
    rule and fall through to the model store's elbow heuristic.
    """
    return [
        RoutingPreferenceRule(80, 100, FittingType.ELBOW_90),
        RoutingPreferenceRule(35, 55, FittingType.ELBOW_45),
        RoutingPreferenceRule(0, 5, FittingType.COUPLING),
        RoutingPreferenceRule(170, 180, FittingType.COUPLING),
    ]


# =============================================================================
# CONDUIT TYPE
# =============================================================================


@dataclass
class ConduitType:
    """
    A conduit type with name, standard, size table and routing preferences.

    Attributes:
        id: Unique identifier
        name: Display name
        standard: Material standard for conduit of this type
        is_with_fitting: Whether runs of this type get fittings at bends
        size_settings: Trade sizes available for this type
        routing_preferences: Ordered angle-range rules
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "EMT Conduit"
    standard: ConduitMaterialType = ConduitMaterialType.EMT
    is_with_fitting: bool = True
    size_settings: ConduitSizeSettings = field(default_factory=ConduitSizeSettings.create_default_emt)
    routing_preferences: list[RoutingPreferenceRule] = field(default_factory=default_routing_preferences)

    def __post_init__(self):
        # Handle values coming from YAML
        if isinstance(self.standard, str):
            self.standard = ConduitMaterialType(self.standard)
        if isinstance(self.size_settings, dict):
            self.size_settings = ConduitSizeSettings(**self.size_settings)
        self.routing_preferences = [
            RoutingPreferenceRule(**r) if isinstance(r, dict) else r
            for r in self.routing_preferences
        ]

    def select_fitting(self, angle_degrees: float) -> FittingType | None:
        """
        Select the fitting for a junction angle.

        Returns the fitting type of the first rule whose range contains the
        angle, or None if no rule matches.
        """
        for rule in self.routing_preferences:
            if rule.matches(angle_degrees):
                return rule.fitting_type
        return None

    def overlapping_rules(self) -> list[tuple[int, int]]:
        """Index pairs of rules whose angle ranges overlap."""
        overlaps = []
        rules = self.routing_preferences
        for i in range(len(rules)):
            for j in range(i + 1, len(rules)):
                a, b = rules[i], rules[j]
                if a.min_angle_degrees <= b.max_angle_degrees and b.min_angle_degrees <= a.max_angle_degrees:
                    overlaps.append((i, j))
        return overlaps
