from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from src.app.services.transit_model_service import TransitModelService
from src.domain.algorithms.clustering import Viewport, cluster_markers
from src.domain.algorithms.positions import (
    active_vehicles,
    active_vehicles_along_path,
    current_day_type,
    minutes_since_midnight,
    upcoming_arrivals,
)
from src.domain.algorithms.projection import geodetic_to_tile_pixel
from src.domain.models import (
    ActiveVehicle,
    Cluster,
    DayType,
    Geolocation,
    PixelPoint,
    Route,
    Stop,
    StopArrival,
    TileXY,
)


@dataclass(slots=True)
class RealtimeViewService:
    """Supports the live map view.

    - Lists routes and stops from the current transit snapshot.
    - Places scheduled vehicles for a wall-clock time.
    - Projects stops to map pixels and clusters them for a zoom level.
    """

    model_service: TransitModelService
    tile_origin: TileXY
    map_height: float | None = None

    def list_routes(self) -> tuple[Route, ...]:
        routes = list(self.model_service.snapshot().routes)
        routes.sort(key=lambda r: (r.line_id, r.variant_id, r.direction))
        return tuple(routes)

    def routes_for_line(self, line_id: int) -> tuple[Route, ...]:
        return tuple(r for r in self.list_routes() if r.line_id == line_id)

    def route(self, line_id: int, variant_id: int, direction: int) -> Route | None:
        key = (line_id, variant_id, direction)
        for r in self.model_service.snapshot().routes:
            if r.key == key:
                return r
        return None

    def list_stops(self) -> tuple[Stop, ...]:
        stops = list(self.model_service.snapshot().stops)
        stops.sort(key=lambda s: (s.name, s.id))
        return tuple(stops)

    def stop(self, stop_id: int) -> Stop | None:
        return self.model_service.snapshot().stop_by_id(stop_id)

    def stop_arrivals(
        self,
        *,
        stop_id: int,
        now: datetime | None = None,
        day_type: DayType | None = None,
        limit: int = 5,
    ) -> tuple[StopArrival, ...] | None:
        snapshot = self.model_service.snapshot()
        stop = snapshot.stop_by_id(stop_id)
        if stop is None:
            return None

        now = now or datetime.now()
        day_type = current_day_type(now.date()) if day_type is None else day_type
        return upcoming_arrivals(
            stop, snapshot.routes, minutes_since_midnight(now), day_type, limit
        )

    def list_vehicles(
        self,
        *,
        now: datetime | None = None,
        day_type: DayType | None = None,
        line_ids: set[int] | None = None,
        along_path: bool = True,
    ) -> tuple[ActiveVehicle, ...]:
        now = now or datetime.now()
        day_type = current_day_type(now.date()) if day_type is None else day_type
        minutes = minutes_since_midnight(now)

        routes: Sequence[Route] = self.model_service.snapshot().routes
        if line_ids:
            routes = [r for r in routes if r.line_id in line_ids]

        if along_path:
            return active_vehicles_along_path(
                routes,
                minutes,
                day_type,
                tile_origin=self.tile_origin,
                map_height=self.map_height,
            )
        return active_vehicles(routes, minutes, day_type)

    def pixel_position(self, location: Geolocation) -> PixelPoint:
        return geodetic_to_tile_pixel(
            location.lat,
            location.lng,
            self.tile_origin.x,
            self.tile_origin.y,
            self.tile_origin.zoom,
            map_height=self.map_height,
        )

    def clusters(
        self,
        *,
        zoom: float,
        viewport: Viewport | None = None,
        previous: Sequence[Cluster] = (),
    ) -> list[Cluster]:
        stops = self.model_service.snapshot().stops
        positions = {s.id: self.pixel_position(s.location) for s in stops}
        return cluster_markers(stops, positions, zoom, viewport, previous)
