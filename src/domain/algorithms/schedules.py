from __future__ import annotations

import logging
import math
import random
from collections import defaultdict
from typing import Any, Iterable, Mapping, Sequence

from src.domain.algorithms.geo_utils import haversine_distance_m, planar_distance_deg
from src.domain.exceptions import MalformedRecordError
from src.domain.models import DayType, Route, RouteKey, Schedule, Stop, StopTime
from src.domain.models.schedule import MINUTES_PER_DAY, parse_time

logger = logging.getLogger(__name__)

# Synthesis model
MIN_STOP_SPACING_DEG = 0.003
VEHICLES_PER_ROUTE = 2
URBAN_HEADWAY_MIN = 20
SUBURBAN_HEADWAY_MIN = 2 * URBAN_HEADWAY_MIN
NOMINAL_SPEED_KMH = 50.0
SHORT_HOP_KM = 1.0
MEDIUM_HOP_KM = 1.5
SHORT_HOP_DWELL_MIN = (0.5, 0.7)
MEDIUM_HOP_FLOOR_MIN = 0.5
LONG_HOP_FLOOR_MIN = 1.0


# --- Loader -------------------------------------------------------------------


def _required(record: Mapping[str, Any], field: str) -> Any:
    value = record.get(field)
    if value is None:
        raise MalformedRecordError(f"Missing required field {field!r}")
    return value


def _as_int(value: Any, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(f"Field {field!r} is not an integer: {value!r}") from exc


def _as_time(value: Any, field: str) -> int:
    if not isinstance(value, str):
        raise MalformedRecordError(f"Field {field!r} is not an 'HH:MM' string: {value!r}")
    try:
        return parse_time(value)
    except ValueError as exc:
        raise MalformedRecordError(f"Field {field!r} has an invalid time: {value!r}") from exc


def parse_schedule_record(record: Mapping[str, Any]) -> Schedule:
    """Parse one schedule entry; raises MalformedRecordError."""

    if not isinstance(record, Mapping):
        raise MalformedRecordError(f"Schedule entry is not an object: {record!r}")

    schedule_id = _as_int(_required(record, "scheduleId"), "scheduleId")
    line_id = _as_int(_required(record, "lineId"), "lineId")
    variant_id = _as_int(record.get("variantId", 0), "variantId")
    direction = _as_int(record.get("direction", 1), "direction")

    raw_day_type = _as_int(record.get("dayType", 0), "dayType")
    try:
        day_type = DayType(raw_day_type)
    except ValueError as exc:
        raise MalformedRecordError(f"Unknown dayType: {raw_day_type!r}") from exc

    departure_time = _as_time(_required(record, "departureTime"), "departureTime")

    raw_stop_times = record.get("stopTimes") or []
    if not isinstance(raw_stop_times, list):
        raise MalformedRecordError("Field 'stopTimes' is not a list")

    stop_times: list[StopTime] = []
    for raw in raw_stop_times:
        if not isinstance(raw, Mapping):
            raise MalformedRecordError(f"Stop time is not an object: {raw!r}")
        stop_times.append(
            StopTime(
                stop_id=_as_int(_required(raw, "stopId"), "stopId"),
                sequence=_as_int(_required(raw, "sequence"), "sequence"),
                arrival_time=_as_time(_required(raw, "arrivalTime"), "arrivalTime"),
            )
        )

    stop_times.sort(key=lambda st: st.sequence)
    for a, b in zip(stop_times, stop_times[1:]):
        if b.arrival_time < a.arrival_time:
            raise MalformedRecordError(
                f"Arrival times decrease between sequence {a.sequence} and {b.sequence}"
            )

    return Schedule(
        schedule_id=schedule_id,
        line_id=line_id,
        variant_id=variant_id,
        direction=direction,
        day_type=day_type,
        departure_time=departure_time,
        stop_times=tuple(stop_times),
    )


def parse_schedules(payload: Mapping[str, Any] | None) -> tuple[Schedule, ...]:
    """Parse a schedules document.

    Malformed entries are logged and skipped. An absent collection yields an
    empty tuple, which callers treat as "synthesize instead".
    """

    if not payload:
        logger.warning("No schedule document available")
        return ()

    entries = payload.get("schedules")
    if not isinstance(entries, list):
        logger.warning("No 'schedules' array in schedule document")
        return ()

    out: list[Schedule] = []
    for index, entry in enumerate(entries):
        try:
            out.append(parse_schedule_record(entry))
        except MalformedRecordError as exc:
            logger.warning("Skipping schedule entry %d: %s", index, exc)

    logger.info("Parsed %d of %d schedule entries", len(out), len(entries))
    return tuple(out)


# --- Synthesizer ----------------------------------------------------------------


def scheduled_stops(stops: Sequence[Stop], min_spacing_deg: float = MIN_STOP_SPACING_DEG) -> list[Stop]:
    """Drop stops closer than `min_spacing_deg` to any stop already kept."""

    kept: list[Stop] = []
    for stop in stops:
        if all(
            planar_distance_deg(stop.location, k.location) > min_spacing_deg
            for k in kept
        ):
            kept.append(stop)
    return kept


def estimated_duration_min(stop_count: int, *, urban: bool) -> float:
    if urban:
        return 5.0 + 1.5 * stop_count
    return 8.0 + 2.0 * stop_count


def trip_interval_min(route: Route, duration_min: float) -> float:
    headway = URBAN_HEADWAY_MIN if route.is_urban else SUBURBAN_HEADWAY_MIN
    # A vehicle cannot start its next trip before finishing the current one.
    return max(float(headway), duration_min)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def hop_minutes(distance_m: float, rng: random.Random) -> int:
    km = distance_m / 1000.0
    minutes = km / NOMINAL_SPEED_KMH * 60.0
    if km < SHORT_HOP_KM:
        minutes = max(minutes, rng.uniform(*SHORT_HOP_DWELL_MIN))
    if km < MEDIUM_HOP_KM:
        minutes = max(minutes, MEDIUM_HOP_FLOOR_MIN)
    else:
        minutes = max(minutes, LONG_HOP_FLOOR_MIN)
    return _round_half_up(minutes)


def _route_rng(route: Route, seed: int, day_type: DayType) -> random.Random:
    # String seeds are hashed deterministically, independent of PYTHONHASHSEED.
    return random.Random(
        f"{seed}:{route.line_id}:{route.variant_id}:{route.direction}:{int(day_type)}"
    )


def _trip_stop_times(
    stops: Sequence[Stop], departure: int, rng: random.Random
) -> list[StopTime]:
    out = [StopTime(stop_id=stops[0].id, sequence=0, arrival_time=departure)]
    t = departure
    for seq in range(1, len(stops)):
        t += hop_minutes(
            haversine_distance_m(stops[seq - 1].location, stops[seq].location), rng
        )
        out.append(StopTime(stop_id=stops[seq].id, sequence=seq, arrival_time=t))
    return out


def _generate_for_route(
    route: Route, day_type: DayType, seed: int
) -> list[Schedule]:
    stops = scheduled_stops(route.stops)
    duration = estimated_duration_min(len(stops), urban=route.is_urban)
    interval = trip_interval_min(route, duration)
    rng = _route_rng(route, seed, day_type)

    out: list[Schedule] = []
    for vehicle in range(VEHICLES_PER_ROUTE):
        start = vehicle * interval / VEHICLES_PER_ROUTE
        while start + duration < MINUTES_PER_DAY:
            departure = int(start)
            stop_times = _trip_stop_times(stops, departure, rng)
            if stop_times[-1].arrival_time >= MINUTES_PER_DAY:
                break
            out.append(
                Schedule(
                    schedule_id=0,
                    line_id=route.line_id,
                    variant_id=route.variant_id,
                    direction=route.direction,
                    day_type=day_type,
                    departure_time=departure,
                    stop_times=tuple(stop_times),
                )
            )
            start += interval
    return out


def generate_schedules(
    routes: Sequence[Route],
    *,
    day_types: Iterable[DayType] = (DayType.SUNDAY_HOLIDAY,),
    seed: int = 0,
    first_schedule_id: int = 1,
) -> tuple[Schedule, ...]:
    """Synthesize a plausible timetable for routes without explicit schedules.

    Deterministic for a given route list, day types and seed.
    """

    day_types = tuple(sorted(set(day_types)))
    generated: list[Schedule] = []
    for route in routes:
        if not route.stops:
            continue
        for day_type in day_types:
            generated.extend(_generate_for_route(route, day_type, seed))

    generated.sort(
        key=lambda s: (
            s.line_id,
            s.variant_id,
            s.direction,
            int(s.day_type),
            s.departure_time,
            s.stop_times[-1].arrival_time,
        )
    )

    out = tuple(
        Schedule(
            schedule_id=first_schedule_id + i,
            line_id=s.line_id,
            variant_id=s.variant_id,
            direction=s.direction,
            day_type=s.day_type,
            departure_time=s.departure_time,
            stop_times=s.stop_times,
        )
        for i, s in enumerate(generated)
    )
    logger.info("Generated %d schedules for %d routes", len(out), len(routes))
    return out


# --- Assigner ---------------------------------------------------------------------


def assign_schedules(
    routes: Sequence[Route], schedules: Iterable[Schedule]
) -> tuple[Route, ...]:
    by_key: dict[RouteKey, list[Schedule]] = defaultdict(list)
    for schedule in schedules:
        by_key[schedule.route_key].append(schedule)

    return tuple(route.with_schedules(by_key.get(route.key, ())) for route in routes)
