"""Turn joined county records into canonical ``Flow`` objects."""

from __future__ import annotations

import logging
import math
from typing import List, Mapping, Optional, Sequence, Tuple

from shapely.geometry import shape

from foodflows.geo.polyline import decode_polyline

from .domain_types import CONSUMER, FLOW_TYPES, Coordinate, Flow, RawCountyFlows
from .stats import DEFAULT_CATEGORIES, compute_stats

logger = logging.getLogger(__name__)

DEFAULT_SCALE_CONSTANT = 2e8
DEFAULT_MAX_TARGET_COUNTIES = 100


def normalized_value(total: Optional[float], scale_constant: float = DEFAULT_SCALE_CONSTANT) -> float:
    """Visual magnitude of a flow, never below 1. Missing or non-finite totals map to 1."""
    if total is None or not math.isfinite(total) or total <= 0:
        return 1.0
    return max(1.0, float(total) / scale_constant)


def geometry_centroid(geometry: Mapping[str, object]) -> Coordinate:
    """(lon, lat) centroid of a GeoJSON feature or geometry mapping."""
    if "geometry" in geometry and geometry.get("type") == "Feature":
        geometry = geometry["geometry"]  # type: ignore[assignment]
    centroid = shape(geometry).centroid
    return float(centroid.x), float(centroid.y)


def decode_route(
    encoded: Optional[str],
    direction: Optional[str] = None,
) -> Optional[Tuple[Coordinate, ...]]:
    """
    Decode an encoded route into (lon, lat) coordinates travelling source→target.

    Routes flagged ``backward`` are reversed. Returns ``None`` when no route is
    available or the string cannot be decoded.
    """
    if not encoded:
        return None
    try:
        decoded = decode_polyline(encoded)
    except ValueError as exc:
        logger.warning("Dropping undecodable route geometry: %s", exc)
        return None
    coordinates = [(lon, lat) for lat, lon in decoded]
    if direction == "backward":
        coordinates.reverse()
    return tuple(coordinates)


class FlowNormalizer:
    """Resolves geometry, magnitude and category shares for the top-N records."""

    def __init__(
        self,
        *,
        max_target_counties: int = DEFAULT_MAX_TARGET_COUNTIES,
        scale_constant: float = DEFAULT_SCALE_CONSTANT,
        categories: Sequence[str] = DEFAULT_CATEGORIES,
    ) -> None:
        self.max_target_counties = max(int(max_target_counties), 0)
        self.scale_constant = float(scale_constant)
        self.categories = tuple(categories)

    def normalize(
        self,
        records: Sequence[RawCountyFlows] | None,
        selected_id: Optional[str],
        selected_centroid: Optional[Sequence[float]],
        flow_type: str = CONSUMER,
    ) -> List[Flow]:
        if flow_type not in FLOW_TYPES:
            raise ValueError(f"Unknown flow type {flow_type!r}; expected one of {FLOW_TYPES}")
        if not records or selected_id is None or selected_centroid is None:
            return []

        selected_key = str(selected_id)
        selected_coords = (float(selected_centroid[0]), float(selected_centroid[1]))
        kept = list(records)[: self.max_target_counties]
        if len(records) > len(kept):
            logger.debug("Dropping %d records beyond the top %d", len(records) - len(kept), len(kept))

        flows = [
            self._normalize_record(record, selected_key, selected_coords, flow_type)
            for record in kept
        ]
        logger.debug("Normalized %d flows for county %s (%s)", len(flows), selected_key, flow_type)
        return flows

    def _normalize_record(
        self,
        record: RawCountyFlows,
        selected_id: str,
        selected_coords: Coordinate,
        flow_type: str,
    ) -> Flow:
        stats = compute_stats(record.flows_by_crop_group, record.flows_by_crop, self.categories)
        county_coords = (float(record.county_centroid[0]), float(record.county_centroid[1]))
        county_id = str(record.county_id)
        ratios: Optional[Tuple[float, ...]] = None
        if record.flows_by_crop_group or record.flows_by_crop:
            ratios = tuple(stats.by_category_group_cumulative)

        if flow_type == CONSUMER:
            source, target = county_coords, selected_coords
            source_id, target_id = county_id, selected_id
        else:
            source, target = selected_coords, county_coords
            source_id, target_id = selected_id, county_id

        return Flow(
            source_id=source_id,
            target_id=target_id,
            source=source,
            target=target,
            value=normalized_value(stats.total, self.scale_constant),
            route_geometry=decode_route(record.route_geometry, record.route_direction),
            values_ratios_by_category=ratios,
        )


__all__ = [
    "DEFAULT_MAX_TARGET_COUNTIES",
    "DEFAULT_SCALE_CONSTANT",
    "FlowNormalizer",
    "decode_route",
    "geometry_centroid",
    "normalized_value",
]
