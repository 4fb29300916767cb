from __future__ import annotations

import math
from typing import Sequence

from src.domain.models import Geolocation

EARTH_RADIUS_M = 6371000.0


def haversine_distance_m(a: Geolocation, b: Geolocation) -> float:
    """Great-circle distance in meters."""

    lat1 = math.radians(a.lat)
    lon1 = math.radians(a.lng)
    lat2 = math.radians(b.lat)
    lon2 = math.radians(b.lng)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    s = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(s)))


def planar_distance_deg(a: Geolocation, b: Geolocation) -> float:
    """Euclidean distance in raw degree space (no earth model)."""

    return math.hypot(a.lat - b.lat, a.lng - b.lng)


def nearest_vertex_index(
    points: Sequence[Geolocation], target: Geolocation
) -> int | None:
    """Index of the polyline vertex closest to target; first one wins ties."""

    if not points:
        return None

    best_i = 0
    best_d = float("inf")
    for i, p in enumerate(points):
        d = haversine_distance_m(p, target)
        if d < best_d:
            best_d = d
            best_i = i
    return best_i


def cumulative_distances_m(points: Sequence[Geolocation]) -> tuple[float, ...]:
    if len(points) < 2:
        return (0.0,) * len(points)

    out: list[float] = [0.0]
    total = 0.0
    for i in range(1, len(points)):
        total += haversine_distance_m(points[i - 1], points[i])
        out.append(total)
    return tuple(out)


def interpolate_along_polyline(
    points: Sequence[Geolocation], cumulative_m: Sequence[float], distance_m: float
) -> Geolocation | None:
    if not points:
        return None
    if len(points) == 1:
        return points[0]

    total_m = cumulative_m[-1] if cumulative_m else 0.0
    if total_m <= 0.0:
        return points[0]

    d = max(0.0, min(float(distance_m), float(total_m)))

    # Linear scan; route polylines are a few hundred vertices at most.
    for i in range(1, len(points)):
        if cumulative_m[i] >= d:
            d0 = cumulative_m[i - 1]
            d1 = cumulative_m[i]
            denom = max(1e-9, d1 - d0)
            t = (d - d0) / denom
            p0 = points[i - 1]
            p1 = points[i]
            return lerp_location(p0, p1, t)

    return points[-1]


def lerp_location(a: Geolocation, b: Geolocation, t: float) -> Geolocation:
    return Geolocation(
        lat=a.lat + (b.lat - a.lat) * t,
        lng=a.lng + (b.lng - a.lng) * t,
    )


def slice_polyline(
    points: Sequence[Geolocation], start_index: int, end_index: int
) -> tuple[Geolocation, ...]:
    """Vertices from start_index to end_index inclusive, reversed if needed."""

    if start_index <= end_index:
        return tuple(points[start_index : end_index + 1])
    seg = list(points[end_index : start_index + 1])
    seg.reverse()
    return tuple(seg)
