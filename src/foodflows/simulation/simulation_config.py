from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Dict, Mapping, Sequence, Tuple

import yaml

from foodflows.flows.stats import DEFAULT_CATEGORIES

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_COLORS: Dict[str, str] = {
    "cereals": "#e8b63b",
    "fruits": "#e0605a",
    "vegetables": "#5fae57",
    "nuts": "#9c6b3f",
    "oilcrops": "#f28e2b",
    "pulses": "#8e6bbf",
    "other": "#9aa0a6",
}


def hex_to_rgb(value: str) -> Tuple[int, int, int]:
    """Convert ``#rrggbb`` (or ``#rgb``) into an (r, g, b) tuple."""
    if not isinstance(value, str):
        raise TypeError("Colors must be hex strings")
    text = value.strip().lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    if len(text) != 6:
        raise ValueError(f"Invalid hex color: {value!r}")
    try:
        return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)
    except ValueError as exc:
        raise ValueError(f"Invalid hex color: {value!r}") from exc


def _build_params(cls, data: Mapping[str, object] | None, label: str):
    """Instantiate a parameter dataclass from a mapping, rejecting unknown keys."""
    if data is None:
        return cls()
    if not isinstance(data, Mapping):
        raise TypeError(f"'{label}' block must be a mapping")
    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"Unknown keys in '{label}' block: {', '.join(unknown)}")
    kwargs = {}
    for name, value in data.items():
        default = getattr(cls(), name)
        if isinstance(default, bool):
            kwargs[name] = bool(value)
        elif isinstance(default, int):
            kwargs[name] = int(value)
        else:
            kwargs[name] = float(value)
    return cls(**kwargs)


@dataclass(frozen=True)
class FlowParams:
    max_target_counties: int = 100
    scale_constant: float = 2e8

    def __post_init__(self) -> None:
        if self.max_target_counties < 0:
            raise ValueError("max_target_counties must be non-negative")
        if self.scale_constant <= 0:
            raise ValueError("scale_constant must be positive")


@dataclass(frozen=True)
class CurvedPathParams:
    lines_per_link_multiplicator: float = 3.0
    max_lines_per_link: int = 30
    min_waypoints_per_1000km: float = 4.0
    max_waypoints_per_1000km: float = 8.0
    min_deviation_degrees: float = 0.0
    max_deviation_degrees: float = 0.6
    smooth: bool = False
    smooth_resolution: int = 500

    def __post_init__(self) -> None:
        if self.max_lines_per_link < 0:
            raise ValueError("max_lines_per_link must be non-negative")
        if self.min_waypoints_per_1000km < 0 or self.max_waypoints_per_1000km < self.min_waypoints_per_1000km:
            raise ValueError("Waypoint density range must satisfy 0 <= min <= max")
        if self.min_deviation_degrees < 0 or self.max_deviation_degrees < self.min_deviation_degrees:
            raise ValueError("Deviation range must satisfy 0 <= min <= max")


@dataclass(frozen=True)
class SelfLoopParams:
    radius_km: float = 30.0
    steps: int = 20

    def __post_init__(self) -> None:
        if self.radius_km < 0:
            raise ValueError("Self-loop radius must be non-negative")
        if self.steps < 3:
            raise ValueError("Self-loop circles need at least 3 steps")


@dataclass(frozen=True)
class TripParams:
    num_particles_curved_paths_multiplicator: float = 10.0
    num_particles_roads_multiplicator: float = 100.0
    from_timestamp: float = 0.0
    to_timestamp: float = 100.0
    interval_humanize: float = 0.5  # 0: regular emission, 1: fully random
    speed_kps: float = 100.0  # km per timestamp unit
    speed_kps_humanize: float = 0.5  # 0: stable speed, 1: between 0 and 2x
    max_particles: int = 100

    def __post_init__(self) -> None:
        if self.to_timestamp < self.from_timestamp:
            raise ValueError("to_timestamp must not precede from_timestamp")
        if self.speed_kps <= 0:
            raise ValueError("speed_kps must be positive")
        if self.max_particles < 0:
            raise ValueError("max_particles must be non-negative")
        for name in ("interval_humanize", "speed_kps_humanize"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise ValueError(f"{name} must lie in [0, 1]")

    def multiplicator_for(self, roads: bool) -> float:
        if roads:
            return self.num_particles_roads_multiplicator
        return self.num_particles_curved_paths_multiplicator


@dataclass(frozen=True)
class CategoryPalette:
    """Ordered category groups and the color each one is drawn with."""

    categories: Tuple[str, ...] = tuple(DEFAULT_CATEGORIES)
    colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_COLORS))

    def __post_init__(self) -> None:
        if not self.categories:
            raise ValueError("Category palette requires at least one category")
        missing = [name for name in self.categories if name not in self.colors]
        if missing:
            raise ValueError(f"Missing colors for categories: {', '.join(missing)}")
        for name in self.categories:
            hex_to_rgb(self.colors[name])

    @classmethod
    def from_mapping(cls, data: Mapping[str, object] | Sequence[Mapping[str, object]] | None) -> "CategoryPalette":
        """Accept either ``{name: color}`` (ordered) or ``[{name, color}, ...]``."""
        if data is None:
            return cls()
        if isinstance(data, Mapping):
            items = [(str(k), str(v)) for k, v in data.items()]
        elif isinstance(data, list):
            items = []
            for entry in data:
                if not isinstance(entry, Mapping) or "name" not in entry or "color" not in entry:
                    raise TypeError("Category entries must be mappings with 'name' and 'color'")
                items.append((str(entry["name"]), str(entry["color"])))
        else:
            raise TypeError("'categories' must be a mapping or a list")
        return cls(categories=tuple(name for name, _ in items), colors=dict(items))

    def rgba(self, index: int) -> Tuple[int, int, int, int]:
        r, g, b = hex_to_rgb(self.colors[self.categories[index]])
        return r, g, b, 255


@dataclass(frozen=True)
class SimulationConfig:
    flows: FlowParams = field(default_factory=FlowParams)
    curved_paths: CurvedPathParams = field(default_factory=CurvedPathParams)
    self_loop: SelfLoopParams = field(default_factory=SelfLoopParams)
    trips: TripParams = field(default_factory=TripParams)
    palette: CategoryPalette = field(default_factory=CategoryPalette)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object] | None) -> "SimulationConfig":
        data = data or {}
        if not isinstance(data, Mapping):
            raise TypeError("Simulation config must contain a mapping at the top level")
        allowed = {"flows", "curved_paths", "self_loop", "trips", "categories"}
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise ValueError(f"Unknown simulation config sections: {', '.join(unknown)}")
        return cls(
            flows=_build_params(FlowParams, data.get("flows"), "flows"),
            curved_paths=_build_params(CurvedPathParams, data.get("curved_paths"), "curved_paths"),
            self_loop=_build_params(SelfLoopParams, data.get("self_loop"), "self_loop"),
            trips=_build_params(TripParams, data.get("trips"), "trips"),
            palette=CategoryPalette.from_mapping(data.get("categories")),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "SimulationConfig":
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Simulation config YAML not found at {config_path}")
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        config = cls.from_mapping(data)
        logger.debug("Loaded simulation config from %s", config_path)
        return config

    def to_yaml(self, path: str | Path) -> None:
        output: Dict[str, object] = {
            "flows": asdict(self.flows),
            "curved_paths": asdict(self.curved_paths),
            "self_loop": asdict(self.self_loop),
            "trips": asdict(self.trips),
            "categories": [
                {"name": name, "color": self.palette.colors[name]}
                for name in self.palette.categories
            ],
        }
        dest = Path(path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        with dest.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(output, handle, sort_keys=False)


__all__ = [
    "CategoryPalette",
    "CurvedPathParams",
    "FlowParams",
    "SelfLoopParams",
    "SimulationConfig",
    "TripParams",
    "hex_to_rgb",
]
