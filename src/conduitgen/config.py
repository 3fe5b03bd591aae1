"""
Project configuration for conduit routing.

A project file names the conduit types available, the global settings,
an optional bend table, and the routes to build. The configuration can be:
- Written manually in YAML format
- Saved from code with ProjectConfig.to_yaml

Example:
    version: "1.0"
    name: Level 1 feeders
    bend_table: emt_bender.csv        # relative to this file
    settings:
      default_trade_size: "3/4"
    conduit_types:
      - id: emt
        name: EMT Conduit
        standard: EMT
    routes:
      - name: panel-to-mcc
        conduit_type: emt
        trade_size: "1"
        waypoints:
          - [0, 0, 10]
          - [30, 0, 10]
          - [30, 20, 10]
        start_equipment: LP-1
        end_equipment: MCC-2
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .model.conduit_type import ConduitType
from .model.elements import ConduitRun
from .model.model_store import ConduitModelStore
from .model.settings import ConduitSettings
from .model.xyz import XYZ
from .routing.astar_router import DEFAULT_MAX_ITERATIONS, ObstacleBox
from .routing.auto_route import AutoRouteService, RoutingOptions
from .routing.smart_bend import SmartBendService


def _to_tuple3(value: list | tuple) -> tuple[float, float, float]:
    """Convert a list or tuple to a 3-element float tuple."""
    if len(value) != 3:
        raise ValueError(f"Expected an (x, y, z) triple, got {list(value)}")
    return (float(value[0]), float(value[1]), float(value[2]))


@dataclass
class BoxConfig:
    """
    Axis-aligned box given by two corners (feet).

    Attributes:
        min: Lower corner (x, y, z)
        max: Upper corner (x, y, z)
    """

    min: tuple[float, float, float]
    max: tuple[float, float, float]

    def __post_init__(self):
        self.min = _to_tuple3(self.min)
        self.max = _to_tuple3(self.max)

    def to_box(self) -> ObstacleBox:
        return ObstacleBox(XYZ(*self.min), XYZ(*self.max))


@dataclass
class RouteConfig:
    """
    One route to build.

    Attributes:
        name: Route name, kept in the run metadata
        waypoints: Ordered (x, y, z) waypoints in feet
        conduit_type: Id of a configured conduit type (default type if empty)
        trade_size: Requested trade size
        level_id: Level for the new segments
        elevation: Flattening elevation, settings default if None
        use_pathfinding: Route around obstacles with A*
        obstacles: Obstacle boxes
        bounds: A* search bounds, derived from the route if None
        voxel_size: A* grid resolution (feet)
        auto_rise_drop: Keep waypoint elevations
        max_iterations: A* expansion budget per waypoint pair
        start_equipment: Equipment tag at the start of the run
        end_equipment: Equipment tag at the end of the run
        voltage: Circuit voltage label
        conductor_fill_percent: Conductor fill
    """

    name: str
    waypoints: list[tuple[float, float, float]] = field(default_factory=list)
    conduit_type: str = ""
    trade_size: str = "1/2"
    level_id: str = "Level 1"
    elevation: float | None = None
    use_pathfinding: bool = False
    obstacles: list[BoxConfig] = field(default_factory=list)
    bounds: BoxConfig | None = None
    voxel_size: float = 0.5
    auto_rise_drop: bool = True
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    start_equipment: str = ""
    end_equipment: str = ""
    voltage: str = ""
    conductor_fill_percent: float = 0.0

    def __post_init__(self):
        # Convert lists from YAML loading
        self.waypoints = [_to_tuple3(p) for p in self.waypoints]
        self.obstacles = [
            BoxConfig(**o) if isinstance(o, dict) else o for o in self.obstacles
        ]
        if isinstance(self.bounds, dict):
            self.bounds = BoxConfig(**self.bounds)

    @property
    def points(self) -> list[XYZ]:
        return [XYZ(*p) for p in self.waypoints]

    def to_routing_options(self, default_elevation: float) -> RoutingOptions:
        return RoutingOptions(
            conduit_type_id=self.conduit_type,
            trade_size=self.trade_size,
            level_id=self.level_id,
            elevation=default_elevation if self.elevation is None else self.elevation,
            use_pathfinding=self.use_pathfinding,
            obstacles=[o.to_box() for o in self.obstacles],
            routing_bounds=self.bounds.to_box() if self.bounds else None,
            voxel_size=self.voxel_size,
            auto_rise_drop=self.auto_rise_drop,
            max_iterations=self.max_iterations,
        )


@dataclass
class ProjectConfig:
    """
    Root configuration for a conduit routing project.

    Attributes:
        version: Config file version (currently "1.0")
        name: Project name
        settings: Global conduit settings
        conduit_types: Conduit types to register
        routes: Routes to build
        bend_table: Bend table CSV path (relative to the config file or absolute)
        base_dir: Directory relative paths resolve against; set by from_yaml
    """

    version: str = "1.0"
    name: str = ""
    settings: ConduitSettings = field(default_factory=ConduitSettings)
    conduit_types: list[ConduitType] = field(default_factory=list)
    routes: list[RouteConfig] = field(default_factory=list)
    bend_table: str | None = None
    base_dir: Path | None = field(default=None, repr=False)

    def __post_init__(self):
        # Handle nested dicts from YAML
        if isinstance(self.settings, dict):
            self.settings = ConduitSettings(**self.settings)
        self.conduit_types = [
            ConduitType(**t) if isinstance(t, dict) else t for t in self.conduit_types
        ]
        self.routes = [
            RouteConfig(**r) if isinstance(r, dict) else r for r in self.routes
        ]

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> ProjectConfig:
        """Load a project configuration from a YAML file."""
        yaml_path = Path(yaml_path)
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Project file {yaml_path} must contain a mapping")
        config = cls(**data)
        config.base_dir = yaml_path.parent
        return config

    def to_yaml(self, yaml_path: str | Path) -> None:
        """Save the project configuration to a YAML file."""
        data = self._to_dict()
        with open(yaml_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def build_store(self) -> ConduitModelStore:
        """Model store with this project's settings and conduit types."""
        store = ConduitModelStore(ConduitSettings(**vars(self.settings)))
        for conduit_type in self.conduit_types:
            store.add_type(conduit_type)
        return store

    def build_bend_service(self) -> SmartBendService:
        """Bend service using the project bend table, or the default EMT table."""
        bends = SmartBendService()
        if self.bend_table:
            bends.load_from_file(self.resolve_path(self.bend_table))
        return bends

    def route_all(self, store: ConduitModelStore, bends: SmartBendService | None = None) -> list[ConduitRun]:
        """Build every configured route into store and return the runs in order."""
        service = AutoRouteService(store, bends)
        runs = []
        for route in self.routes:
            run = service.auto_route(route.points, route.to_routing_options(self.settings.default_elevation))
            run.start_equipment = route.start_equipment
            run.end_equipment = route.end_equipment
            run.voltage = route.voltage
            run.conductor_fill_percent = route.conductor_fill_percent
            run.metadata["route"] = route.name
            runs.append(run)
        return runs

    def resolve_path(self, path: str | Path) -> Path:
        path = Path(path)
        if path.is_absolute() or self.base_dir is None:
            return path
        return self.base_dir / path

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def _to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary suitable for YAML serialization."""
        result: dict[str, Any] = {
            "version": self.version,
            "name": self.name,
            "settings": dict(vars(self.settings)),
            "conduit_types": [self._type_to_dict(t) for t in self.conduit_types],
            "routes": [self._route_to_dict(r) for r in self.routes],
        }
        if self.bend_table:
            result["bend_table"] = self.bend_table
        return result

    def _type_to_dict(self, conduit_type: ConduitType) -> dict[str, Any]:
        sizes = conduit_type.size_settings
        return {
            "id": conduit_type.id,
            "name": conduit_type.name,
            "standard": conduit_type.standard.value,
            "is_with_fitting": conduit_type.is_with_fitting,
            "size_settings": {
                "standard": sizes.standard.value,
                "min_length_inches": sizes.min_length_inches,
                "sizes": [dict(vars(s)) for s in sizes],
            },
            "routing_preferences": [
                {
                    "min_angle_degrees": rule.min_angle_degrees,
                    "max_angle_degrees": rule.max_angle_degrees,
                    "fitting_type": rule.fitting_type.value,
                }
                for rule in conduit_type.routing_preferences
            ],
        }

    def _route_to_dict(self, route: RouteConfig) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": route.name,
            "waypoints": [list(p) for p in route.waypoints],
            "conduit_type": route.conduit_type,
            "trade_size": route.trade_size,
            "level_id": route.level_id,
        }
        if route.elevation is not None:
            result["elevation"] = route.elevation
        if route.use_pathfinding:
            result["use_pathfinding"] = True
            result["voxel_size"] = route.voxel_size
            result["max_iterations"] = route.max_iterations
        if route.obstacles:
            result["obstacles"] = [{"min": list(o.min), "max": list(o.max)} for o in route.obstacles]
        if route.bounds:
            result["bounds"] = {"min": list(route.bounds.min), "max": list(route.bounds.max)}
        if not route.auto_rise_drop:
            result["auto_rise_drop"] = False
        for key in ("start_equipment", "end_equipment", "voltage"):
            value = getattr(route, key)
            if value:
                result[key] = value
        if route.conductor_fill_percent:
            result["conductor_fill_percent"] = route.conductor_fill_percent
        return result
