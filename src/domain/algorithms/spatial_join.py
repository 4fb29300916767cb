from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from src.domain.algorithms.geo_utils import haversine_distance_m, nearest_vertex_index
from src.domain.models import Geolocation, Route, Stop

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RelationshipResult:
    routes: tuple[Route, ...]
    stops: tuple[Stop, ...]


def snapped_path_index(location: Geolocation, path: Sequence[Geolocation]) -> int | None:
    return nearest_vertex_index(path, location)


def is_stop_on_route(stop: Stop, route: Route, threshold_m: float) -> bool:
    for point in route.path:
        if haversine_distance_m(stop.location, point) <= threshold_m:
            return True
    return False


def build_relationships(
    routes: Sequence[Route], stops: Sequence[Stop], proximity_threshold_m: float
) -> RelationshipResult:
    """Attach stops to the routes passing within the threshold.

    - A stop belongs to a route when any path vertex lies within
      `proximity_threshold_m` (haversine).
    - Each route's stops are ordered by their nearest path vertex; stops
      snapping to the same vertex keep their input order.
    - Each stop gets the sorted, unique ids of the lines it belongs to.

    Returns new Route/Stop values; the inputs are left untouched.
    """

    line_ids_by_stop: dict[int, set[int]] = {s.id: set() for s in stops}
    stops_by_route: list[list[Stop]] = []

    for route in routes:
        scored: list[tuple[int, int, Stop]] = []
        for input_index, stop in enumerate(stops):
            if not is_stop_on_route(stop, route, proximity_threshold_m):
                continue
            # A match implies a non-empty path, so the snap is never None.
            path_index = snapped_path_index(stop.location, route.path)
            scored.append((path_index or 0, input_index, stop))
            line_ids_by_stop[stop.id].add(route.line_id)

        scored.sort(key=lambda x: (x[0], x[1]))
        stops_by_route.append([s for _, _, s in scored])

        logger.debug(
            "Route %s/%s/%s matched %d stops",
            route.line_id,
            route.variant_id,
            route.direction,
            len(scored),
        )

    updated_stops = tuple(
        stop.with_route_ids(line_ids_by_stop[stop.id]) for stop in stops
    )
    updated_by_id = {s.id: s for s in updated_stops}

    # Routes reference the updated stops so both sides agree on memberships.
    updated_routes = tuple(
        route.with_stops(updated_by_id[s.id] for s in route_stops)
        for route, route_stops in zip(routes, stops_by_route)
    )

    return RelationshipResult(routes=updated_routes, stops=updated_stops)
