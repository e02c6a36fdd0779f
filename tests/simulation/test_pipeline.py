from __future__ import annotations

import json
import textwrap

import pytest

from foodflows.flows.domain_types import RawCountyFlows
from foodflows.geo.polyline import encode_polyline
from foodflows.simulation.flow_trips_cli import main as flow_trips_main
from foodflows.simulation.pipeline import FlowPipeline, summarize
from foodflows.simulation.random_source import (
    GeneratorRandomSource,
    SequenceRandomSource,
    as_random_source,
)
from foodflows.simulation.simulation_config import (
    CategoryPalette,
    CurvedPathParams,
    SimulationConfig,
    TripParams,
    hex_to_rgb,
)

SELECTED_ID = "21137"
SELECTED_FEATURE = {
    "type": "Feature",
    "properties": {"geoid": SELECTED_ID, "name": "Lincoln"},
    "geometry": {
        "type": "Polygon",
        "coordinates": [[[-84.8, 37.2], [-84.4, 37.2], [-84.4, 37.6], [-84.8, 37.6], [-84.8, 37.2]]],
    },
}
ROUTE_LATLON = [(38.2, -85.7), (37.9, -85.1), (37.4, -84.6)]


def _records():
    return [
        RawCountyFlows(
            county_id="21111",
            county_centroid=(-85.7, 38.2),
            flows_by_crop={"wheat": 6e8},
            flows_by_crop_group={"cereals": 6e8},
            route_geometry=encode_polyline(ROUTE_LATLON),
            route_direction="forward",
        ),
        RawCountyFlows(
            county_id=SELECTED_ID,
            county_centroid=(-84.6, 37.4),
            flows_by_crop={"apples": 2e8},
            flows_by_crop_group={"fruits": 2e8},
        ),
        RawCountyFlows(
            county_id="21067",
            county_centroid=(-84.5, 38.0),
            flows_by_crop={"kale": 1e7},
            flows_by_crop_group={"vegetables": 1e7},
        ),
    ]


def test_pipeline_runs_curved_mode():
    result = FlowPipeline(rng=1).run(_records(), SELECTED_ID, SELECTED_FEATURE, "consumer", roads=False)
    assert [f.flow.source_id for f in result] == ["21111", SELECTED_ID, "21067"]
    louisville, own, lexington = result
    assert louisville.flow.target == pytest.approx((-84.6, 37.4))
    assert len(louisville.paths) == 9  # value 3 * multiplicator 3
    assert len(own.paths) == 1
    assert own.paths[0].coordinates[0] == own.paths[0].coordinates[-1]
    assert len(lexington.paths) == 3
    # value 3 * 10 particles per path, 9 paths
    assert len(louisville.trips) == 270
    assert {t.category for t in louisville.trips} == {"cereals"}
    assert {t.category for t in own.trips} == {"fruits"}


def test_pipeline_runs_road_mode():
    result = FlowPipeline(rng=2).run(_records(), SELECTED_ID, (-84.6, 37.4), "consumer", roads=True)
    louisville, own, lexington = result
    assert len(louisville.paths) == 1
    expected = [(lon, lat) for lat, lon in ROUTE_LATLON]
    assert len(louisville.paths[0].coordinates) == len(expected)
    for actual, wanted in zip(louisville.paths[0].coordinates, expected):
        assert actual == pytest.approx(wanted)
    assert len(louisville.trips) == 100  # capped by max_particles
    assert len(own.paths) == 1 and len(own.paths[0].coordinates) == 21
    assert lexington.paths[0].coordinates == ()
    assert lexington.trips == ()


def test_pipeline_is_reproducible_with_seed():
    first = FlowPipeline(rng=99).run(_records(), SELECTED_ID, SELECTED_FEATURE)
    second = FlowPipeline(rng=99).run(_records(), SELECTED_ID, SELECTED_FEATURE)
    assert [f.to_dict() for f in first] == [f.to_dict() for f in second]


def test_pipeline_empty_inputs():
    pipeline = FlowPipeline(rng=0)
    assert pipeline.run([], SELECTED_ID, SELECTED_FEATURE) == []
    assert pipeline.run(_records(), None, SELECTED_FEATURE) == []
    assert pipeline.run(_records(), SELECTED_ID, None) == []
    assert summarize([]).num_trips == 0


def test_as_random_source_accepts_known_inputs():
    assert isinstance(as_random_source(None), GeneratorRandomSource)
    assert isinstance(as_random_source(3), GeneratorRandomSource)
    seq = SequenceRandomSource([0.25, 0.75])
    assert as_random_source(seq) is seq
    assert [seq.next(), seq.next(), seq.next()] == [0.25, 0.75, 0.25]
    assert seq.draws == 3
    with pytest.raises(TypeError):
        as_random_source("seed")
    with pytest.raises(ValueError):
        SequenceRandomSource([1.0])


def test_simulation_config_yaml_roundtrip(tmp_path):
    yaml_text = textwrap.dedent(
        """
        flows:
          max_target_counties: 25
        curved_paths:
          lines_per_link_multiplicator: 1
          smooth: true
        trips:
          max_particles: 500
          speed_kps: 80
        categories:
          - name: grains
            color: '#abcdef'
          - name: produce
            color: '#123'
        """
    ).strip()
    config_path = tmp_path / "sim.yaml"
    config_path.write_text(yaml_text, encoding="utf-8")

    config = SimulationConfig.from_yaml(config_path)
    assert config.flows.max_target_counties == 25
    assert config.flows.scale_constant == pytest.approx(2e8)
    assert config.curved_paths.smooth is True
    assert config.curved_paths.max_lines_per_link == 30
    assert config.trips.max_particles == 500
    assert config.palette.categories == ("grains", "produce")
    assert config.palette.rgba(1) == (17, 34, 51, 255)

    roundtrip_path = tmp_path / "roundtrip.yaml"
    config.to_yaml(roundtrip_path)
    assert SimulationConfig.from_yaml(roundtrip_path) == config


def test_simulation_config_rejects_unknown_keys():
    with pytest.raises(ValueError):
        SimulationConfig.from_mapping({"trips": {"particles": 3}})
    with pytest.raises(ValueError):
        SimulationConfig.from_mapping({"layers": {}})


def test_parameter_validation():
    with pytest.raises(ValueError):
        CurvedPathParams(min_deviation_degrees=1.0, max_deviation_degrees=0.5)
    with pytest.raises(ValueError):
        TripParams(from_timestamp=10, to_timestamp=0)
    with pytest.raises(ValueError):
        TripParams(interval_humanize=1.5)
    with pytest.raises(ValueError):
        CategoryPalette(categories=("a",), colors={})
    with pytest.raises(FileNotFoundError):
        SimulationConfig.from_yaml("does/not/exist.yaml")


def test_hex_to_rgb():
    assert hex_to_rgb("#ff8000") == (255, 128, 0)
    assert hex_to_rgb("0f0") == (0, 255, 0)
    with pytest.raises(ValueError):
        hex_to_rgb("#zzzzzz")


def test_flow_trips_cli_writes_output(tmp_path):
    flows_json = tmp_path / "outbound.json"
    flows_json.write_text(
        json.dumps(
            {
                "outbound": [
                    {
                        "county_id": "21111",
                        "county_centroid": {"type": "Point", "coordinates": [-85.7, 38.2]},
                        "route_geometry": encode_polyline(list(reversed(ROUTE_LATLON))),
                        "route_direction": "backward",
                        "flowsByCrop": {"wheat": 4e8},
                        "flowsByCropGroup": {"cereals": 4e8},
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    counties = tmp_path / "counties.geojson"
    counties.write_text(json.dumps({"type": "FeatureCollection", "features": [SELECTED_FEATURE]}), encoding="utf-8")
    output = tmp_path / "out" / "trips.json"

    flow_trips_main(
        [
            "--flows-json", str(flows_json),
            "--counties-geojson", str(counties),
            "--county-id", SELECTED_ID,
            "--flow-type", "producer",
            "--roads",
            "--seed", "5",
            "--output-json", str(output),
            "--log-level", "WARNING",
        ]
    )

    payload = json.loads(output.read_text(encoding="utf-8"))
    assert len(payload["flows"]) == 1
    flow = payload["flows"][0]
    assert flow["sourceId"] == SELECTED_ID
    assert flow["targetId"] == "21111"
    assert flow["routeGeometry"][0] == pytest.approx([-85.7, 38.2])
    assert len(flow["paths"]) == 1
    assert len(flow["trips"]) == 100
    assert flow["trips"][0]["foodGroup"] == "cereals"
    assert payload["stats"]["total"] == pytest.approx(4e8)
    assert payload["stats"]["byCropGroupCumulative"] == pytest.approx([1.0] * 7)


def test_flow_trips_cli_reports_missing_files(tmp_path):
    with pytest.raises(SystemExit):
        flow_trips_main(
            [
                "--flows-json", str(tmp_path / "missing.json"),
                "--counties-geojson", str(tmp_path / "missing.geojson"),
                "--county-id", SELECTED_ID,
            ]
        )
