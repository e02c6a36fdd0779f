from __future__ import annotations

import math

import pytest

from foodflows.flows import domain_types
from foodflows.geo import geo_utils
from foodflows.geo.geo_utils import (
    accumulate_distances,
    circle_coordinates,
    destination_point,
    distance_between,
    smooth_line,
)
from foodflows.geo.polyline import decode_polyline, encode_polyline

GOOGLE_SAMPLE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"
GOOGLE_SAMPLE_POINTS = [(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)]


def test_distance_between_matches_one_degree_of_longitude_on_equator():
    assert distance_between((0.0, 0.0), (1.0, 0.0)) == pytest.approx(111.195, rel=1e-3)
    assert distance_between((5.0, 45.0), (5.0, 45.0)) == 0.0


def test_distance_between_is_symmetric():
    a = (-84.5, 38.0)
    b = (-73.9, 40.7)
    assert distance_between(a, b) == pytest.approx(distance_between(b, a))
    # Lexington KY to New York is roughly 950 km
    assert 900 < distance_between(a, b) < 1000


def test_distance_between_antipodal_points():
    assert distance_between((0.0, 0.0), (180.0, 0.0)) == pytest.approx(math.pi * geo_utils.EARTH_RADIUS_KM)


def test_coordinate_alias_is_shared():
    assert domain_types.Coordinate is geo_utils.Coordinate


def test_accumulate_distances_sums_segments():
    coords = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (2.0, 2.0)]
    distances, total = accumulate_distances(coords)
    assert len(distances) == len(coords) - 1
    assert sum(distances) == pytest.approx(total)
    assert all(d >= 0 for d in distances)


@pytest.mark.parametrize("coords", [[], [(3.0, 4.0)]])
def test_accumulate_distances_handles_short_sequences(coords):
    assert accumulate_distances(coords) == ([], 0.0)


def test_destination_point_north():
    lon, lat = destination_point((0.0, 0.0), 111.195, 0.0)
    assert lon == pytest.approx(0.0, abs=1e-9)
    assert lat == pytest.approx(1.0, rel=1e-3)


def test_circle_coordinates_is_closed_ring_at_radius():
    center = (-84.5, 38.0)
    ring = circle_coordinates(center, radius_km=30.0, steps=20)
    assert len(ring) == 21
    assert ring[0] == ring[-1]
    for point in ring:
        assert distance_between(center, point) == pytest.approx(30.0, rel=1e-6)


def test_smooth_line_keeps_endpoints_and_densifies():
    coords = [(0.0, 0.0), (1.0, 0.5), (2.0, -0.5), (3.0, 0.0)]
    smoothed = smooth_line(coords, resolution=500)
    assert smoothed[0] == pytest.approx(coords[0])
    assert smoothed[-1] == pytest.approx(coords[-1])
    assert len(smoothed) > len(coords)
    xs = [x for x, _ in smoothed]
    assert xs == sorted(xs)


def test_smooth_line_passes_short_lines_through():
    coords = [(0.0, 0.0), (1.0, 1.0)]
    assert smooth_line(coords) == coords


def test_decode_polyline_reference_sample():
    decoded = decode_polyline(GOOGLE_SAMPLE)
    assert len(decoded) == 3
    for (lat, lon), (exp_lat, exp_lon) in zip(decoded, GOOGLE_SAMPLE_POINTS):
        assert lat == pytest.approx(exp_lat)
        assert lon == pytest.approx(exp_lon)


def test_encode_polyline_reference_sample():
    assert encode_polyline(GOOGLE_SAMPLE_POINTS) == GOOGLE_SAMPLE


def test_decode_polyline_rejects_truncated_input():
    with pytest.raises(ValueError):
        decode_polyline(GOOGLE_SAMPLE[:-1])


def test_decode_polyline_empty_string():
    assert decode_polyline("") == []
