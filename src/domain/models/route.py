from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from .geo import Geolocation
from .schedule import Schedule
from .stop import Stop

RouteKey = tuple[int, int, int]


@dataclass(frozen=True, slots=True)
class Route:
    """A line variant in one direction, with its geometry.

    Identity is (line_id, variant_id, direction). `stops` is ordered along
    `path`; `schedules` is attached by the schedule assigner.
    """

    line_id: int
    variant_id: int
    direction: int  # -1 or 1
    length_m: float = 0.0
    name: str = ""
    note: str = ""
    provider_name: str = ""
    provider_link: str = ""
    path: tuple[Geolocation, ...] = ()
    # Raw survey coordinates, kept for debugging only.
    source_coords: tuple[tuple[float, float], ...] = ()
    stops: tuple[Stop, ...] = ()
    schedules: tuple[Schedule, ...] = ()

    @property
    def key(self) -> RouteKey:
        return (self.line_id, self.variant_id, self.direction)

    @property
    def is_urban(self) -> bool:
        return self.line_id < 100

    def with_stops(self, stops: Iterable[Stop]) -> Route:
        return replace(self, stops=tuple(stops))

    def with_schedules(self, schedules: Iterable[Schedule]) -> Route:
        return replace(self, schedules=tuple(schedules))

    def stop_by_id(self, stop_id: int) -> Stop | None:
        for stop in self.stops:
            if stop.id == stop_id:
                return stop
        return None


@dataclass(frozen=True, slots=True)
class StopArrival:
    route: Route
    schedule: Schedule
    arrival_time: int

    def minutes_until(self, current_minutes: float) -> float:
        return self.arrival_time - current_minutes
