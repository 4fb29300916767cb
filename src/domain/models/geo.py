from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Geolocation:
    """WGS84 coordinate in degrees.

    NaN is let through so that a non-finite projection input surfaces as a
    NaN location instead of an exception.
    """

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not math.isnan(self.lat) and not (-90.0 <= self.lat <= 90.0):
            raise ValueError(f"Invalid latitude: {self.lat}")
        if not math.isnan(self.lng) and not (-180.0 <= self.lng <= 180.0):
            raise ValueError(f"Invalid longitude: {self.lng}")

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lng)


@dataclass(frozen=True, slots=True)
class PixelPoint:
    x: float
    y: float

    def distance_to(self, other: PixelPoint) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True, slots=True)
class TileXY:
    zoom: int
    x: int
    y: int
