from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from .geo import Geolocation


@dataclass(frozen=True, slots=True)
class Stop:
    """A surveyed stop.

    `route_ids` is filled once by the relationship builder (sorted, unique).
    """

    id: int
    external_id: str
    name: str
    source_coord: tuple[float, float]
    location: Geolocation
    route_ids: tuple[int, ...] = ()

    def has_route(self, line_id: int) -> bool:
        return line_id in self.route_ids

    def with_route_ids(self, line_ids: Iterable[int]) -> Stop:
        return replace(self, route_ids=tuple(sorted(set(line_ids))))
