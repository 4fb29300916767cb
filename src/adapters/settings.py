from __future__ import annotations

import os
from dataclasses import dataclass

from src.domain.algorithms.projection import DEFAULT_GRID_SIZE, TILE_SIZE, origin_tile
from src.domain.models import DayType, Geolocation, TileXY


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _parse_day_types(raw: str | None) -> tuple[DayType, ...]:
    if raw is None or raw.strip().lower() in {"", "all"}:
        return tuple(DayType)

    day_types: list[DayType] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        day_type = DayType(int(part))
        if day_type not in day_types:
            day_types.append(day_type)
    return tuple(day_types) or tuple(DayType)


@dataclass(frozen=True, slots=True)
class TransitRuntimeConfig:
    proximity_threshold_m: float
    synthesis_day_types: tuple[DayType, ...]
    synthesis_seed: int
    map_zoom: int
    map_grid_size: int
    map_center: Geolocation
    warm_up_on_start: bool

    @staticmethod
    def from_env() -> "TransitRuntimeConfig":
        return TransitRuntimeConfig(
            proximity_threshold_m=_env_float("PROXIMITY_THRESHOLD_M", 50.0),
            synthesis_day_types=_parse_day_types(os.getenv("SYNTHESIS_DAY_TYPES")),
            synthesis_seed=_env_int("SYNTHESIS_SEED", 0),
            map_zoom=_env_int("MAP_ZOOM", 15),
            map_grid_size=_env_int("MAP_GRID_SIZE", DEFAULT_GRID_SIZE),
            map_center=Geolocation(
                lat=_env_float("MAP_CENTER_LAT", 46.557314),
                lng=_env_float("MAP_CENTER_LNG", 15.637771),
            ),
            warm_up_on_start=_env_bool("TRANSIT_WARM_UP", True),
        )

    def tile_origin(self) -> TileXY:
        """Top-left tile of the map grid the pixel coordinates refer to."""

        return origin_tile(self.map_center, self.map_zoom, self.map_grid_size)

    @property
    def map_height(self) -> float:
        return float(TILE_SIZE * self.map_grid_size)
