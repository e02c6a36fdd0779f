"""Utilities for reading joined county flow records."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

import pandas as pd

from .domain_types import Coordinate, RawCountyFlows

logger = logging.getLogger(__name__)

ROW_COLUMNS = ("county_id", "county_centroid", "crop_name", "crop_category", "value")
UNKNOWN_CROP = "unknown"
FALLBACK_CATEGORY = "other"


def _parse_centroid(raw: object) -> Coordinate:
    """Accept a GeoJSON point (mapping or JSON string) or a bare [lon, lat] pair."""
    if isinstance(raw, str):
        raw = json.loads(raw)
    if isinstance(raw, Mapping):
        coords = raw.get("coordinates")
    else:
        coords = raw
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        raise ValueError(f"Invalid county centroid: {raw!r}")
    return float(coords[0]), float(coords[1])


def _numeric_mapping(raw: object) -> Dict[str, float]:
    if not raw:
        return {}
    if not isinstance(raw, Mapping):
        raise TypeError("Category breakdowns must be mappings of name to value")
    return {str(k): float(v or 0.0) for k, v in raw.items()}


def record_from_mapping(entry: Mapping[str, object]) -> RawCountyFlows:
    """Build a ``RawCountyFlows`` from an API-shaped mapping."""
    if "county_id" not in entry:
        raise ValueError("Flow records require a 'county_id'")
    direction = entry.get("route_direction")
    if direction not in (None, "forward", "backward"):
        raise ValueError(f"Invalid route_direction {direction!r}")
    route = entry.get("route_geometry")
    name = entry.get("county_name")
    return RawCountyFlows(
        county_id=str(entry["county_id"]),
        county_centroid=_parse_centroid(entry.get("county_centroid")),
        flows_by_crop=_numeric_mapping(entry.get("flowsByCrop")),
        flows_by_crop_group=_numeric_mapping(entry.get("flowsByCropGroup")),
        route_geometry=str(route) if route else None,
        route_direction=direction,  # type: ignore[arg-type]
        county_name=str(name) if name is not None else None,
    )


def load_raw_flows(path: str | Path) -> List[RawCountyFlows]:
    """
    Read a flows payload (``{"outbound": [...]}``, ``{"inbound": [...]}`` or a list).

    Records keep the order of the payload, which is expected to be sorted by
    descending magnitude.
    """
    payload_path = Path(path)
    if not payload_path.exists():
        raise FileNotFoundError(f"Flows payload not found at {payload_path}")
    with payload_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)

    if isinstance(payload, Mapping):
        entries = payload.get("inbound") or payload.get("outbound") or []
    elif isinstance(payload, list):
        entries = payload
    else:
        raise TypeError("Flows payload must be a mapping or a list")

    records = [record_from_mapping(entry) for entry in entries]
    if not records:
        logger.warning("Flows payload at %s contains no records", payload_path)
    logger.info("Loaded %d county flow records from %s", len(records), payload_path)
    return records


def group_flows_by_county(
    rows: pd.DataFrame,
    routes: Optional[Mapping[str, Tuple[str, Optional[str]]]] = None,
) -> List[RawCountyFlows]:
    """
    Group flat per-crop rows into one record per county, largest total first.

    ``rows`` needs the columns in ``ROW_COLUMNS``; an optional ``county_name``
    column is carried through. ``routes`` maps county ids to
    ``(encoded_polyline, direction)``.
    """
    missing = [col for col in ROW_COLUMNS if col not in rows.columns]
    if missing:
        raise ValueError(f"Flow rows missing columns: {', '.join(missing)}")
    if rows.empty:
        return []

    frame = rows.copy()
    frame["county_id"] = frame["county_id"].astype(str)
    frame["value"] = pd.to_numeric(frame["value"], errors="coerce").fillna(0.0)
    # groupby drops null keys, which would leave a county without breakdowns.
    frame["crop_name"] = frame["crop_name"].fillna(UNKNOWN_CROP).astype(str)
    frame["crop_category"] = frame["crop_category"].fillna(FALLBACK_CATEGORY).astype(str)

    by_crop = frame.groupby(["county_id", "crop_name"], sort=False)["value"].sum()
    by_group = frame.groupby(["county_id", "crop_category"], sort=False)["value"].sum()
    totals = frame.groupby("county_id", sort=False)["value"].sum().sort_values(
        ascending=False, kind="mergesort"
    )
    first_rows = frame.drop_duplicates("county_id").set_index("county_id")

    routes = routes or {}
    records: List[RawCountyFlows] = []
    for county_id in totals.index:
        head = first_rows.loc[county_id]
        route, direction = routes.get(county_id, (None, None))
        name = head.get("county_name") if "county_name" in first_rows.columns else None
        records.append(
            RawCountyFlows(
                county_id=county_id,
                county_centroid=_parse_centroid(head["county_centroid"]),
                flows_by_crop={str(k): float(v) for k, v in by_crop.loc[county_id].items()},
                flows_by_crop_group={str(k): float(v) for k, v in by_group.loc[county_id].items()},
                route_geometry=route,
                route_direction=direction,
                county_name=str(name) if isinstance(name, str) else None,
            )
        )
    logger.debug("Grouped %d rows into %d county records", len(frame), len(records))
    return records


def load_selected_county(path: str | Path, county_id: str) -> Optional[Mapping[str, object]]:
    """Return the GeoJSON feature whose ``geoid`` property matches ``county_id``."""
    counties_path = Path(path)
    if not counties_path.exists():
        raise FileNotFoundError(f"Counties GeoJSON not found at {counties_path}")
    with counties_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    for feature in payload.get("features") or []:
        properties = feature.get("properties") or {}
        if str(properties.get("geoid")) == str(county_id):
            return feature
    logger.warning("County %s not found in %s", county_id, counties_path)
    return None


__all__ = [
    "ROW_COLUMNS",
    "group_flows_by_county",
    "load_raw_flows",
    "load_selected_county",
    "record_from_mapping",
]
