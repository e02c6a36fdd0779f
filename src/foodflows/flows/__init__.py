"""Flow records, normalization and category statistics."""

from .domain_types import (
    CONSUMER,
    PRODUCER,
    Flow,
    FlowWithPaths,
    FlowWithTrips,
    Path,
    RawCountyFlows,
    Trip,
    Waypoint,
)
from .flow_normalizer import FlowNormalizer, decode_route, normalized_value
from .records import group_flows_by_county, load_raw_flows, load_selected_county
from .stats import CategoryStats, aggregate_stats, category_index_for, compute_stats

__all__ = [
    "CONSUMER",
    "CategoryStats",
    "Flow",
    "FlowNormalizer",
    "FlowWithPaths",
    "FlowWithTrips",
    "PRODUCER",
    "Path",
    "RawCountyFlows",
    "Trip",
    "Waypoint",
    "aggregate_stats",
    "category_index_for",
    "compute_stats",
    "decode_route",
    "group_flows_by_county",
    "load_raw_flows",
    "load_selected_county",
    "normalized_value",
]
