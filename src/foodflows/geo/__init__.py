"""Geographic primitives: distances, circles, smoothing and polylines."""

from .geo_utils import (
    accumulate_distances,
    circle_coordinates,
    destination_point,
    distance_between,
    smooth_line,
)
from .polyline import decode_polyline, encode_polyline

__all__ = [
    "accumulate_distances",
    "circle_coordinates",
    "decode_polyline",
    "destination_point",
    "distance_between",
    "encode_polyline",
    "smooth_line",
]
