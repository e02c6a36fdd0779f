from __future__ import annotations

import logging
import math
from typing import List, Sequence

from foodflows.flows.domain_types import Flow, FlowWithPaths, FlowWithTrips, Path, Trip, Waypoint
from foodflows.flows.stats import category_index_for

from .random_source import RandomLike, RandomSource, as_random_source, signed_unit
from .simulation_config import CategoryPalette, TripParams

logger = logging.getLogger(__name__)

MIN_SPEED_KPS = 1e-6


def particle_budget(value: float, multiplicator: float, max_particles: int) -> float:
    """Particle count for a path, clamped to ``[0, max_particles]``."""
    budget = float(value) * float(multiplicator)
    if math.isnan(budget):
        return 0.0
    return max(0.0, min(budget, float(max_particles)))


def nominal_start_times(from_timestamp: float, to_timestamp: float, num_particles: float) -> List[float]:
    """Evenly spaced emission times before humanization."""
    count = int(math.ceil(num_particles))
    if count <= 0:
        return []
    interval = (to_timestamp - from_timestamp) / num_particles
    return [from_timestamp + index * interval for index in range(count)]


def timed_waypoints(path: Path, timestamp_start: float, timestamp_end: float) -> List[Waypoint]:
    """Spread timestamps over the path proportionally to travelled arc length."""
    delta = timestamp_end - timestamp_start
    total = path.total_distance
    waypoints: List[Waypoint] = []
    travelled = 0.0
    for index, coords in enumerate(path.coordinates):
        ratio = travelled / total if total > 0 else 0.0
        waypoints.append(Waypoint(coordinates=coords, timestamp=timestamp_start + ratio * delta))
        if index < len(path.distances):
            travelled += path.distances[index]
    return waypoints


class TripSimulator:
    """
    Emits particles along the paths of a flow.

    For each particle three values are drawn from the random source, in order:
    the speed jitter, the start-time jitter and the category sample.
    """

    def __init__(
        self,
        params: TripParams | None = None,
        palette: CategoryPalette | None = None,
        rng: RandomLike = None,
    ) -> None:
        self.params = params or TripParams()
        self.palette = palette or CategoryPalette()
        self.rng: RandomSource = as_random_source(rng)

    def path_trips(self, path: Path, flow: Flow, multiplicator: float) -> List[Trip]:
        if not flow.values_ratios_by_category:
            return []
        if len(path.coordinates) < 2:
            return []

        params = self.params
        num_particles = particle_budget(flow.value, multiplicator, params.max_particles)
        if num_particles <= 0:
            return []
        interval = (params.to_timestamp - params.from_timestamp) / num_particles
        ratios = flow.values_ratios_by_category

        trips: List[Trip] = []
        for nominal_start in nominal_start_times(params.from_timestamp, params.to_timestamp, num_particles):
            speed = params.speed_kps + signed_unit(self.rng) * params.speed_kps * params.speed_kps_humanize
            speed = max(speed, MIN_SPEED_KPS)
            duration = path.total_distance / speed

            timestamp_start = nominal_start + signed_unit(self.rng) * interval * params.interval_humanize
            timestamp_end = timestamp_start + duration

            category_index = category_index_for(ratios, self.rng.next())
            if category_index >= len(self.palette.categories):
                category_index = 0
            trips.append(
                Trip(
                    waypoints=tuple(timed_waypoints(path, timestamp_start, timestamp_end)),
                    color=self.palette.rgba(category_index),
                    category=self.palette.categories[category_index],
                )
            )
        return trips

    def flow_trips(self, flow_with_paths: FlowWithPaths, roads: bool = False) -> List[Trip]:
        multiplicator = self.params.multiplicator_for(roads)
        trips: List[Trip] = []
        for path in flow_with_paths.paths:
            trips.extend(self.path_trips(path, flow_with_paths.flow, multiplicator))
        return trips

    def with_trips(self, flows: Sequence[FlowWithPaths], roads: bool = False) -> List[FlowWithTrips]:
        result: List[FlowWithTrips] = []
        for flow_with_paths in flows:
            trips = self.flow_trips(flow_with_paths, roads)
            result.append(
                FlowWithTrips(flow=flow_with_paths.flow, paths=flow_with_paths.paths, trips=tuple(trips))
            )
        logger.debug("Simulated %d trips over %d flows", sum(len(f.trips) for f in result), len(result))
        return result


def generate_trips(
    path: Path,
    flow: Flow,
    params: TripParams | None = None,
    *,
    palette: CategoryPalette | None = None,
    rng: RandomLike = None,
    roads: bool = False,
) -> List[Trip]:
    """Trips for a single path, using the curved or road particle multiplicator."""
    simulator = TripSimulator(params, palette, rng)
    return simulator.path_trips(path, flow, simulator.params.multiplicator_for(roads))


__all__ = [
    "TripSimulator",
    "generate_trips",
    "nominal_start_times",
    "particle_budget",
    "timed_waypoints",
]
