"""Encoded polyline codec (Google polyline algorithm, precision 5 by default)."""

from __future__ import annotations

from typing import List, Sequence, Tuple


def decode_polyline(encoded: str, precision: int = 5) -> List[Tuple[float, float]]:
    """
    Decode an encoded polyline string into a list of (lat, lon) coordinates.
    """
    coordinates: List[Tuple[float, float]] = []
    index = 0
    lat = 0
    lon = 0
    factor = 10 ** precision

    while index < len(encoded):
        lat_change, index = _decode_value(encoded, index)
        lon_change, index = _decode_value(encoded, index)
        lat += lat_change
        lon += lon_change
        coordinates.append((lat / factor, lon / factor))

    return coordinates


def _decode_value(encoded: str, index: int) -> Tuple[int, int]:
    result = 0
    shift = 0

    while True:
        if index >= len(encoded):
            raise ValueError("Invalid polyline: buffer exhausted.")
        b = ord(encoded[index]) - 63
        if b < 0:
            raise ValueError(f"Invalid polyline character {encoded[index]!r} at {index}")
        index += 1
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            break

    delta = ~(result >> 1) if (result & 1) else (result >> 1)
    return delta, index


def encode_polyline(coordinates: Sequence[Sequence[float]], precision: int = 5) -> str:
    """Encode (lat, lon) coordinates into a polyline string."""
    factor = 10 ** precision
    chunks: List[str] = []
    prev_lat = 0
    prev_lon = 0
    for lat, lon in coordinates:
        lat_i = int(round(float(lat) * factor))
        lon_i = int(round(float(lon) * factor))
        chunks.append(_encode_value(lat_i - prev_lat))
        chunks.append(_encode_value(lon_i - prev_lon))
        prev_lat, prev_lon = lat_i, lon_i
    return "".join(chunks)


def _encode_value(delta: int) -> str:
    value = ~(delta << 1) if delta < 0 else (delta << 1)
    out = []
    while value >= 0x20:
        out.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    out.append(chr(value + 63))
    return "".join(out)


__all__ = ["decode_polyline", "encode_polyline"]
