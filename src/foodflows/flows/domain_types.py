"""Core dataclasses shared across the flows and simulation packages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from foodflows.geo.geo_utils import Coordinate

Color = Tuple[int, int, int, int]

CONSUMER = "consumer"
PRODUCER = "producer"
FLOW_TYPES = (CONSUMER, PRODUCER)


@dataclass(frozen=True)
class RawCountyFlows:
    """Joined per-destination record supplied by the data collaborator."""

    county_id: str
    county_centroid: Coordinate
    flows_by_crop: Dict[str, float] = field(default_factory=dict)
    flows_by_crop_group: Dict[str, float] = field(default_factory=dict)
    route_geometry: Optional[str] = None
    route_direction: Optional[str] = None
    county_name: Optional[str] = None

    @property
    def total(self) -> float:
        return float(sum(self.flows_by_crop.values()))


@dataclass(frozen=True)
class Flow:
    """Directed magnitude between the selected county and one other county."""

    source_id: str
    target_id: str
    source: Coordinate
    target: Coordinate
    value: float
    route_geometry: Optional[Tuple[Coordinate, ...]] = None
    values_ratios_by_category: Optional[Tuple[float, ...]] = None

    @property
    def is_self(self) -> bool:
        return self.source_id == self.target_id

    def to_dict(self) -> Dict[str, object]:
        return {
            "sourceId": self.source_id,
            "targetId": self.target_id,
            "source": list(self.source),
            "target": list(self.target),
            "value": self.value,
            "routeGeometry": (
                [list(c) for c in self.route_geometry] if self.route_geometry is not None else None
            ),
            "valuesRatiosByCategory": (
                list(self.values_ratios_by_category)
                if self.values_ratios_by_category is not None
                else None
            ),
        }


@dataclass(frozen=True)
class Path:
    """One concrete coordinate sequence realising a flow."""

    coordinates: Tuple[Coordinate, ...]
    distances: Tuple[float, ...]
    total_distance: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "coordinates": [list(c) for c in self.coordinates],
            "distances": list(self.distances),
            "totalDistance": self.total_distance,
        }


@dataclass(frozen=True)
class Waypoint:
    coordinates: Coordinate
    timestamp: float


@dataclass(frozen=True)
class Trip:
    """Simulated particle travelling along a path."""

    waypoints: Tuple[Waypoint, ...]
    color: Color
    category: str

    @property
    def timestamp_start(self) -> float:
        return self.waypoints[0].timestamp

    @property
    def timestamp_end(self) -> float:
        return self.waypoints[-1].timestamp

    def to_dict(self) -> Dict[str, object]:
        return {
            "waypoints": [
                {"coordinates": list(w.coordinates), "timestamp": w.timestamp}
                for w in self.waypoints
            ],
            "color": list(self.color),
            "foodGroup": self.category,
        }


@dataclass(frozen=True)
class FlowWithPaths:
    flow: Flow
    paths: Tuple[Path, ...]


@dataclass(frozen=True)
class FlowWithTrips:
    flow: Flow
    paths: Tuple[Path, ...]
    trips: Tuple[Trip, ...]

    def to_dict(self) -> Dict[str, object]:
        payload = self.flow.to_dict()
        payload["paths"] = [p.to_dict() for p in self.paths]
        payload["trips"] = [t.to_dict() for t in self.trips]
        return payload


def flows_to_dicts(flows: List[FlowWithTrips]) -> List[Dict[str, object]]:
    return [flow.to_dict() for flow in flows]
