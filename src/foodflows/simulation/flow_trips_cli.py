"""CLI that turns a county flows payload into paths and particle trips."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from foodflows.flows.domain_types import FLOW_TYPES, FlowWithTrips, flows_to_dicts
from foodflows.flows.records import load_raw_flows, load_selected_county
from foodflows.flows.stats import CategoryStats, aggregate_stats
from foodflows.simulation.pipeline import FlowPipeline, summarize
from foodflows.simulation.simulation_config import SimulationConfig

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--flows-json", required=True, help="County flows payload (inbound/outbound JSON).")
    parser.add_argument("--counties-geojson", required=True, help="GeoJSON FeatureCollection of counties.")
    parser.add_argument("--county-id", required=True, help="geoid of the selected county.")
    parser.add_argument("--flow-type", default="consumer", choices=list(FLOW_TYPES))
    parser.add_argument(
        "--roads",
        action="store_true",
        help="Follow encoded road routes instead of drawing synthetic curved lines.",
    )
    parser.add_argument("--config", default=None, help="Optional simulation config YAML.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible output.")
    parser.add_argument("--output-json", default="output/flow_trips.json", help="Destination JSON.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    try:
        config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
        records = load_raw_flows(args.flows_json)
        selected = load_selected_county(args.counties_geojson, args.county_id)
    except (FileNotFoundError, ValueError, TypeError) as exc:
        raise SystemExit(str(exc)) from exc

    pipeline = FlowPipeline(config, rng=args.seed)
    flows = pipeline.normalize(records, args.county_id, selected, args.flow_type)
    result = _simulate_with_progress(pipeline, flows, roads=args.roads)
    stats = aggregate_stats(records, config.palette.categories)
    _write_output(args.output_json, result, stats)
    summary = summarize(result)
    logger.info(
        "Wrote %d flows (%d paths, %d trips) to %s",
        summary.num_flows,
        summary.num_paths,
        summary.num_trips,
        args.output_json,
    )


def _simulate_with_progress(pipeline: FlowPipeline, flows: List, *, roads: bool) -> List[FlowWithTrips]:
    """Generate paths and trips flow by flow while displaying a progress bar."""

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        transient=True,
    )

    with progress:
        task_id = progress.add_task("Simulating flows", total=len(flows))

        def iter_with_progress() -> Iterable:
            for flow in flows:
                yield flow
                progress.advance(task_id)

        result: List[FlowWithTrips] = []
        for flow in iter_with_progress():
            with_paths = pipeline.with_paths([flow], roads)
            result.extend(pipeline.with_trips(with_paths, roads))
        return result


def _write_output(path: str | Path, flows: List[FlowWithTrips], stats: CategoryStats) -> None:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload: Dict[str, object] = {"flows": flows_to_dicts(flows), "stats": stats.to_dict()}
    with output_path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle)


if __name__ == "__main__":
    main()
