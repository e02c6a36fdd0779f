"""Distance, destination and smoothing helpers on (lon, lat) coordinates."""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np

Coordinate = Tuple[float, float]

EARTH_RADIUS_KM = 6371.0088


def distance_between(a: Sequence[float], b: Sequence[float]) -> float:
    """Great-circle distance in kilometres between two (lon, lat) points."""
    lon_a, lat_a = math.radians(float(a[0])), math.radians(float(a[1]))
    lon_b, lat_b = math.radians(float(b[0])), math.radians(float(b[1]))
    h = math.sin((lat_b - lat_a) / 2) ** 2 + math.cos(lat_a) * math.cos(lat_b) * math.sin((lon_b - lon_a) / 2) ** 2
    # Rounding can push h marginally above 1 for antipodal points.
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(h, 1.0)))


def accumulate_distances(coords: Sequence[Sequence[float]]) -> Tuple[List[float], float]:
    """
    Return per-segment lengths and their sum for a coordinate sequence.

    A sequence of N points yields N-1 segment lengths (km). Sequences with fewer
    than two points produce ``([], 0.0)``.
    """
    if len(coords) < 2:
        return [], 0.0
    distances = [distance_between(start, end) for start, end in zip(coords, coords[1:])]
    return distances, float(sum(distances))


def destination_point(origin: Sequence[float], distance_km: float, bearing_deg: float) -> Coordinate:
    """Point reached from ``origin`` after ``distance_km`` along ``bearing_deg``."""
    lon1 = math.radians(float(origin[0]))
    lat1 = math.radians(float(origin[1]))
    bearing = math.radians(bearing_deg)
    angular = distance_km / EARTH_RADIUS_KM
    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular)
        + math.cos(lat1) * math.sin(angular) * math.cos(bearing)
    )
    lon2 = lon1 + math.atan2(
        math.sin(bearing) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )
    return math.degrees(lon2), math.degrees(lat2)


def circle_coordinates(center: Sequence[float], radius_km: float = 30.0, steps: int = 20) -> List[Coordinate]:
    """Closed ring of ``steps + 1`` points around ``center`` (first == last)."""
    steps = max(int(steps), 3)
    ring = [
        destination_point(center, radius_km, (index * -360.0) / steps)
        for index in range(steps)
    ]
    ring.append(ring[0])
    return ring


def smooth_line(
    coords: Sequence[Sequence[float]],
    resolution: int = 500,
    sharpness: float = 0.85,
) -> List[Coordinate]:
    """
    Smooth a polyline with cubic Bezier segments through every input point.

    Control points follow a cardinal spline: each interior point gets tangent
    handles parallel to the chord joining its neighbours, scaled by
    ``sharpness``. Both endpoints are preserved. ``resolution`` controls the
    total number of samples (``resolution // 10``, at least one per segment).
    """
    points = np.asarray(coords, dtype=float)
    if len(points) < 3:
        return [tuple(map(float, p)) for p in points]

    num_segments = len(points) - 1
    samples_per_segment = max(1, (int(resolution) // 10) // num_segments)

    # Tangents at each point, one-sided at the ends.
    padded = np.vstack([points[0], points, points[-1]])
    tangents = sharpness * (padded[2:] - padded[:-2]) / 2.0

    t = np.linspace(0.0, 1.0, samples_per_segment, endpoint=False)[:, None]
    sampled = []
    for idx in range(num_segments):
        p0 = points[idx]
        p3 = points[idx + 1]
        p1 = p0 + tangents[idx] / 3.0
        p2 = p3 - tangents[idx + 1] / 3.0
        curve = (
            (1 - t) ** 3 * p0
            + 3 * (1 - t) ** 2 * t * p1
            + 3 * (1 - t) * t**2 * p2
            + t**3 * p3
        )
        sampled.append(curve)
    sampled.append(points[-1][None, :])
    stacked = np.vstack(sampled)
    return [(float(x), float(y)) for x, y in stacked]


__all__ = [
    "Coordinate",
    "EARTH_RADIUS_KM",
    "accumulate_distances",
    "circle_coordinates",
    "destination_point",
    "distance_between",
    "smooth_line",
]
