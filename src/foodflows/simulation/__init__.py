"""Path synthesis, trip simulation and the recomputation pipeline."""

from .path_synthesizer import PathSynthesizer, curved_paths, road_paths, self_loop_paths
from .pipeline import FlowPipeline, PipelineSummary
from .random_source import GeneratorRandomSource, RandomSource, SequenceRandomSource, as_random_source
from .simulation_config import (
    CategoryPalette,
    CurvedPathParams,
    FlowParams,
    SelfLoopParams,
    SimulationConfig,
    TripParams,
)
from .trip_simulator import TripSimulator, generate_trips

__all__ = [
    "CategoryPalette",
    "CurvedPathParams",
    "FlowParams",
    "FlowPipeline",
    "GeneratorRandomSource",
    "PathSynthesizer",
    "PipelineSummary",
    "RandomSource",
    "SelfLoopParams",
    "SequenceRandomSource",
    "SimulationConfig",
    "TripParams",
    "TripSimulator",
    "as_random_source",
    "curved_paths",
    "generate_trips",
    "road_paths",
    "self_loop_paths",
]
