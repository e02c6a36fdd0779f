"""End-to-end recomputation from raw county records to flows with trips."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from foodflows.flows.domain_types import CONSUMER, Flow, FlowWithPaths, FlowWithTrips, RawCountyFlows
from foodflows.flows.flow_normalizer import FlowNormalizer, geometry_centroid

from .path_synthesizer import PathSynthesizer
from .random_source import RandomLike, as_random_source
from .simulation_config import SimulationConfig
from .trip_simulator import TripSimulator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineSummary:
    num_flows: int
    num_paths: int
    num_trips: int


class FlowPipeline:
    """
    Pure recomputation of flows, paths and trips.

    Call ``run`` again whenever the selected county, flow type, tuning
    parameters or road/curved mode change; nothing is cached between runs.
    All random draws share one source so a seeded run is reproducible.
    """

    def __init__(self, config: SimulationConfig | None = None, rng: RandomLike = None):
        self.config = config or SimulationConfig()
        self.rng = as_random_source(rng)
        self.normalizer = FlowNormalizer(
            max_target_counties=self.config.flows.max_target_counties,
            scale_constant=self.config.flows.scale_constant,
            categories=self.config.palette.categories,
        )
        self.path_synthesizer = PathSynthesizer(self.config.curved_paths, self.config.self_loop, self.rng)
        self.trip_simulator = TripSimulator(self.config.trips, self.config.palette, self.rng)

    def normalize(
        self,
        records: Sequence[RawCountyFlows] | None,
        selected_id: Optional[str],
        selected_origin: Optional[Sequence[float] | Mapping[str, object]],
        flow_type: str = CONSUMER,
    ) -> List[Flow]:
        centroid = None
        if isinstance(selected_origin, Mapping):
            centroid = geometry_centroid(selected_origin)
        elif selected_origin is not None:
            centroid = (float(selected_origin[0]), float(selected_origin[1]))
        return self.normalizer.normalize(records, selected_id, centroid, flow_type)

    def with_paths(self, flows: Sequence[Flow], roads: bool = False) -> List[FlowWithPaths]:
        return self.path_synthesizer.with_paths(flows, roads)

    def with_trips(self, flows: Sequence[FlowWithPaths], roads: bool = False) -> List[FlowWithTrips]:
        return self.trip_simulator.with_trips(flows, roads)

    def run(
        self,
        records: Sequence[RawCountyFlows] | None,
        selected_id: Optional[str],
        selected_origin: Optional[Sequence[float] | Mapping[str, object]],
        flow_type: str = CONSUMER,
        roads: bool = False,
    ) -> List[FlowWithTrips]:
        flows = self.normalize(records, selected_id, selected_origin, flow_type)
        result = self.with_trips(self.with_paths(flows, roads), roads)
        summary = summarize(result)
        logger.info(
            "County %s (%s, %s): %d flows, %d paths, %d trips",
            selected_id,
            flow_type,
            "roads" if roads else "curved",
            summary.num_flows,
            summary.num_paths,
            summary.num_trips,
        )
        return result


def summarize(flows: Sequence[FlowWithTrips]) -> PipelineSummary:
    return PipelineSummary(
        num_flows=len(flows),
        num_paths=sum(len(f.paths) for f in flows),
        num_trips=sum(len(f.trips) for f in flows),
    )


__all__ = ["FlowPipeline", "PipelineSummary", "summarize"]
