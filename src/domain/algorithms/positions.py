from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Sequence

from src.domain.algorithms.geo_utils import (
    cumulative_distances_m,
    interpolate_along_polyline,
    lerp_location,
    nearest_vertex_index,
    slice_polyline,
)
from src.domain.algorithms.projection import geodetic_to_tile_pixel
from src.domain.models import (
    ActiveVehicle,
    DayType,
    Geolocation,
    Heading,
    Route,
    Schedule,
    Stop,
    StopArrival,
    TileXY,
)

logger = logging.getLogger(__name__)

# Below this pixel length a heading vector is treated as "no movement".
MIN_HEADING_VECTOR_PX = 0.1


def minutes_since_midnight(now: datetime) -> float:
    return now.hour * 60 + now.minute + now.second / 60.0


def current_day_type(today: date) -> DayType:
    return DayType.for_date(today)


@dataclass(frozen=True, slots=True)
class _Segment:
    current_index: int
    next_index: int
    fraction: float
    waiting: bool
    progress: float
    minutes_until_next: float


def _locate(schedule: Schedule, current_minutes: float) -> _Segment | None:
    """Where in its stop sequence a trip is at `current_minutes`.

    None when the trip has not started yet or has already finished.
    """

    first = schedule.first_arrival
    last = schedule.last_arrival
    if first is None or last is None:
        return None
    if current_minutes < first or current_minutes > last:
        return None

    stop_times = schedule.stop_times
    next_index = next(
        (i for i, st in enumerate(stop_times) if st.arrival_time > current_minutes),
        None,
    )
    if next_index is None:
        return None

    total = len(stop_times)
    prev_index = next_index - 1
    prev_arrival = stop_times[prev_index].arrival_time
    next_arrival = stop_times[next_index].arrival_time
    duration = next_arrival - prev_arrival
    fraction = (current_minutes - prev_arrival) / duration if duration > 0 else 1.0
    fraction = max(0.0, min(1.0, fraction))

    return _Segment(
        current_index=prev_index,
        next_index=next_index,
        fraction=fraction,
        # departing from the terminus
        waiting=prev_index == 0 and current_minutes == first,
        progress=max(0.0, min(1.0, (prev_index + fraction) / total)),
        minutes_until_next=float(next_arrival - current_minutes),
    )


def _segment_stops(
    route: Route, schedule: Schedule, seg: _Segment
) -> tuple[Stop, Stop] | None:
    a = route.stop_by_id(schedule.stop_times[seg.current_index].stop_id)
    b = route.stop_by_id(schedule.stop_times[seg.next_index].stop_id)
    if a is None or b is None:
        logger.debug(
            "Schedule %s references stops not on route %s",
            schedule.schedule_id,
            route.key,
        )
        return None
    return a, b


def active_vehicles(
    routes: Sequence[Route], current_minutes: float, day_type: DayType
) -> tuple[ActiveVehicle, ...]:
    """Vehicles in service, placed on the straight line between stops."""

    out: list[ActiveVehicle] = []
    for route in routes:
        for schedule in route.schedules:
            if schedule.day_type != day_type:
                continue
            seg = _locate(schedule, current_minutes)
            if seg is None:
                continue
            pair = _segment_stops(route, schedule, seg)
            if pair is None:
                continue
            a, b = pair

            position = a.location if seg.waiting else lerp_location(a.location, b.location, seg.fraction)
            out.append(
                ActiveVehicle(
                    route=route,
                    schedule=schedule,
                    position=position,
                    progress=seg.progress,
                    is_waiting_at_stop=seg.waiting,
                    current_stop_index=seg.current_index,
                    next_stop_index=seg.next_index,
                    segment_progress=seg.fraction,
                    minutes_until_next_stop=seg.minutes_until_next,
                )
            )
    return tuple(out)


def position_along_path(
    path: Sequence[Geolocation], start: Geolocation, end: Geolocation, fraction: float
) -> Geolocation:
    """Point at `fraction` of the path length between two snapped stops.

    Falls back to the straight chord when the path cannot tell them apart.
    """

    if len(path) < 2:
        return lerp_location(start, end, fraction)

    ia = nearest_vertex_index(path, start)
    ib = nearest_vertex_index(path, end)
    if ia is None or ib is None or ia == ib:
        return lerp_location(start, end, fraction)

    seg = list(slice_polyline(path, ia, ib))
    seg[0] = start
    seg[-1] = end
    cum = cumulative_distances_m(seg)
    p = interpolate_along_polyline(seg, cum, cum[-1] * fraction)
    return p if p is not None else lerp_location(start, end, fraction)


def heading_between(
    a: Geolocation,
    b: Geolocation,
    *,
    tile_origin: TileXY,
    map_height: float | None = None,
) -> Heading:
    pa = geodetic_to_tile_pixel(
        a.lat, a.lng, tile_origin.x, tile_origin.y, tile_origin.zoom, map_height=map_height
    )
    pb = geodetic_to_tile_pixel(
        b.lat, b.lng, tile_origin.x, tile_origin.y, tile_origin.zoom, map_height=map_height
    )
    dx = pb.x - pa.x
    dy = pb.y - pa.y
    if not (math.isfinite(dx) and math.isfinite(dy)):
        return Heading.E
    if abs(dx) < MIN_HEADING_VECTOR_PX and abs(dy) < MIN_HEADING_VECTOR_PX:
        return Heading.E
    return Heading.from_angle(math.degrees(math.atan2(dy, dx)))


def active_vehicles_along_path(
    routes: Sequence[Route],
    current_minutes: float,
    day_type: DayType,
    *,
    tile_origin: TileXY,
    map_height: float | None = None,
) -> tuple[ActiveVehicle, ...]:
    """Vehicles in service, following the route geometry, with a heading."""

    out: list[ActiveVehicle] = []
    for route in routes:
        for schedule in route.schedules:
            if schedule.day_type != day_type:
                continue
            seg = _locate(schedule, current_minutes)
            if seg is None:
                continue
            pair = _segment_stops(route, schedule, seg)
            if pair is None:
                continue
            a, b = pair

            if seg.waiting:
                position = a.location
            else:
                position = position_along_path(route.path, a.location, b.location, seg.fraction)

            out.append(
                ActiveVehicle(
                    route=route,
                    schedule=schedule,
                    position=position,
                    progress=seg.progress,
                    is_waiting_at_stop=seg.waiting,
                    current_stop_index=seg.current_index,
                    next_stop_index=seg.next_index,
                    segment_progress=seg.fraction,
                    minutes_until_next_stop=seg.minutes_until_next,
                    heading=heading_between(
                        position, b.location, tile_origin=tile_origin, map_height=map_height
                    ),
                )
            )
    return tuple(out)


def upcoming_arrivals(
    stop: Stop,
    routes: Sequence[Route],
    current_minutes: float,
    day_type: DayType,
    limit: int = 5,
) -> tuple[StopArrival, ...]:
    arrivals: list[StopArrival] = []
    for route in routes:
        if not stop.has_route(route.line_id):
            continue
        for schedule in route.schedules:
            if schedule.day_type != day_type:
                continue
            arrival = schedule.arrival_time_at_stop(stop.id)
            if arrival is not None and arrival >= current_minutes:
                arrivals.append(StopArrival(route=route, schedule=schedule, arrival_time=arrival))

    arrivals.sort(key=lambda a: (a.arrival_time, a.route.line_id, a.schedule.schedule_id))
    return tuple(arrivals[: max(0, limit)])
