"""
Path synthesis
==============

Builds the drawable geometry for a ``Flow``. Three modes are supported:

* **Self loop**: flows whose source and target are the same county get a single
  closed circle around the county centroid.
* **Road**: a single path following the decoded route geometry of the flow.
* **Curved**: ``K`` weaving lines between source and target, with ``K`` growing
  with the flow value. Each line gets its own random interior waypoints pushed
  sideways, alternating left and right.

Every path carries its per-segment distance table so trips can be timed by arc
length without recomputing geometry.
"""

from __future__ import annotations

import logging
import math
from typing import List, Sequence

from foodflows.flows.domain_types import Coordinate, Flow, FlowWithPaths, Path
from foodflows.geo.geo_utils import (
    accumulate_distances,
    circle_coordinates,
    distance_between,
    smooth_line,
)

from .random_source import RandomLike, RandomSource, as_random_source, uniform_int
from .simulation_config import CurvedPathParams, SelfLoopParams

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def build_path(coordinates: Sequence[Sequence[float]]) -> Path:
    coords = tuple((float(c[0]), float(c[1])) for c in coordinates)
    distances, total = accumulate_distances(coords)
    return Path(coordinates=coords, distances=tuple(distances), total_distance=total)


def num_lines_for(value: float, params: CurvedPathParams) -> int:
    """
    Number of curved lines drawn for a flow of the given value.

    NaN and non-positive values draw nothing; an infinite value saturates at
    ``max_lines_per_link``.
    """
    if math.isnan(value) or value <= 0:
        return 0
    if math.isinf(value):
        return params.max_lines_per_link
    lines = _round_half_up(value * params.lines_per_link_multiplicator)
    return max(0, min(lines, params.max_lines_per_link))


def self_loop_paths(flow: Flow, params: SelfLoopParams | None = None) -> List[Path]:
    params = params or SelfLoopParams()
    ring = circle_coordinates(flow.source, params.radius_km, params.steps)
    return [build_path(ring)]


def road_paths(flow: Flow) -> List[Path]:
    return [build_path(flow.route_geometry or ())]


def _deviated_waypoint(
    source: Coordinate,
    target: Coordinate,
    ratio: float,
    deviation: float,
) -> Coordinate:
    start_x, start_y = source
    end_x, end_y = target
    mid_x = start_x + (end_x - start_x) * ratio
    mid_y = start_y + (end_y - start_y) * ratio
    angle = math.atan2(end_y - start_y, end_x - start_x)
    # Unit normal to the source→target direction.
    return mid_x - deviation * math.sin(angle), mid_y + deviation * math.cos(angle)


def curved_paths(
    flow: Flow,
    params: CurvedPathParams | None = None,
    rng: RandomLike = None,
) -> List[Path]:
    params = params or CurvedPathParams()
    source_rng: RandomSource = as_random_source(rng)

    dist_km = distance_between(flow.source, flow.target)
    min_waypoints = _round_half_up((dist_km / 1000.0) * params.min_waypoints_per_1000km)
    max_waypoints = _round_half_up((dist_km / 1000.0) * params.max_waypoints_per_1000km)
    num_lines = num_lines_for(flow.value, params)
    deviation_span = params.max_deviation_degrees - params.min_deviation_degrees

    paths: List[Path] = []
    for _line_index in range(num_lines):
        num_waypoints = uniform_int(source_rng, min_waypoints, max_waypoints)
        waypoints: List[Coordinate] = []
        for waypoint_index in range(num_waypoints):
            ratio = (waypoint_index + 1) / (num_waypoints + 1)
            sign = 1.0 if waypoint_index % 2 == 0 else -1.0
            magnitude = params.min_deviation_degrees + source_rng.next() * deviation_span
            waypoints.append(_deviated_waypoint(flow.source, flow.target, ratio, sign * magnitude))

        coordinates: List[Coordinate] = [flow.source, *waypoints, flow.target]
        if params.smooth:
            coordinates = smooth_line(coordinates, resolution=params.smooth_resolution)
        paths.append(build_path(coordinates))

    logger.debug(
        "Built %d curved paths for %s->%s (%.1f km)",
        len(paths),
        flow.source_id,
        flow.target_id,
        dist_km,
    )
    return paths


class PathSynthesizer:
    """Chooses the generation mode per flow and attaches the resulting paths."""

    def __init__(
        self,
        curved: CurvedPathParams | None = None,
        self_loop: SelfLoopParams | None = None,
        rng: RandomLike = None,
    ) -> None:
        self.curved = curved or CurvedPathParams()
        self.self_loop = self_loop or SelfLoopParams()
        self.rng = as_random_source(rng)

    def paths_for(self, flow: Flow, roads: bool = False) -> List[Path]:
        if flow.is_self:
            return self_loop_paths(flow, self.self_loop)
        if roads:
            return road_paths(flow)
        return curved_paths(flow, self.curved, self.rng)

    def with_paths(self, flows: Sequence[Flow], roads: bool = False) -> List[FlowWithPaths]:
        return [FlowWithPaths(flow=flow, paths=tuple(self.paths_for(flow, roads))) for flow in flows]


__all__ = [
    "PathSynthesizer",
    "build_path",
    "curved_paths",
    "num_lines_for",
    "road_paths",
    "self_loop_paths",
]
