from __future__ import annotations

import random

import pytest

from src.domain.algorithms.schedules import (
    estimated_duration_min,
    generate_schedules,
    hop_minutes,
    scheduled_stops,
    trip_interval_min,
)
from src.domain.models import DayType, Geolocation, Route, Stop


def _stop(stop_id: int, lat: float, lng: float) -> Stop:
    return Stop(
        id=stop_id,
        external_id="",
        name=f"Stop {stop_id}",
        source_coord=(0.0, 0.0),
        location=Geolocation(lat=lat, lng=lng),
    )


def _route(line_id: int, stops: tuple[Stop, ...] = ()) -> Route:
    return Route(line_id=line_id, variant_id=1, direction=1, stops=stops)


# Three stops roughly 770 m apart.
STOPS = (
    _stop(1, 46.55, 15.60),
    _stop(2, 46.55, 15.61),
    _stop(3, 46.55, 15.62),
)


def test_scheduled_stops_drops_near_duplicates() -> None:
    stops = [
        _stop(1, 46.55, 15.600),
        _stop(2, 46.55, 15.601),  # 0.001 deg from stop 1
        _stop(3, 46.55, 15.610),
    ]
    assert [s.id for s in scheduled_stops(stops)] == [1, 3]


def test_duration_and_interval() -> None:
    assert estimated_duration_min(4, urban=True) == 11.0
    assert estimated_duration_min(4, urban=False) == 16.0

    assert trip_interval_min(_route(6), 11.0) == 20.0
    assert trip_interval_min(_route(151), 16.0) == 40.0
    # Long trips stretch the interval so a vehicle never overlaps itself.
    assert trip_interval_min(_route(6), 55.0) == 55.0


@pytest.mark.parametrize(
    ("distance_m", "expected"),
    [
        (5_000.0, 6),  # 6.0 min at 50 km/h
        (2_000.0, 2),  # 2.4 min
        (1_200.0, 1),  # 1.44 min
        (900.0, 1),  # 1.08 min, dwell is only a floor
        (100.0, 1),  # 0.12 min, floored by dwell
    ],
)
def test_hop_minutes(distance_m: float, expected: int) -> None:
    assert hop_minutes(distance_m, random.Random(1)) == expected


def test_urban_route_runs_two_vehicles_every_twenty_minutes() -> None:
    schedules = generate_schedules([_route(6, STOPS)])

    # Duration 9.5 min, interval 20: vehicles leave at :00/:20/:40 and :10/:30/:50.
    assert [s.departure_time for s in schedules] == list(range(0, 1440, 10))
    assert all(s.day_type is DayType.SUNDAY_HOLIDAY for s in schedules)


def test_suburban_route_uses_longer_headway() -> None:
    schedules = generate_schedules([_route(151, STOPS)])

    assert [s.departure_time for s in schedules] == list(range(0, 1440, 20))


def test_generated_trips_stay_within_the_day_and_never_go_back() -> None:
    schedules = generate_schedules([_route(6, STOPS), _route(151, STOPS)])

    for s in schedules:
        arrivals = [st.arrival_time for st in s.stop_times]
        assert arrivals == sorted(arrivals)
        assert arrivals[0] == s.departure_time
        assert arrivals[-1] < 1440
        assert [st.stop_id for st in s.stop_times] == [1, 2, 3]
        assert [st.sequence for st in s.stop_times] == [0, 1, 2]


def test_schedule_ids_are_sequential_from_first_id() -> None:
    schedules = generate_schedules(
        [_route(151, STOPS), _route(6, STOPS)], first_schedule_id=100
    )

    assert [s.schedule_id for s in schedules] == list(
        range(100, 100 + len(schedules))
    )
    # Output is ordered by line first.
    assert schedules[0].line_id == 6
    assert schedules[-1].line_id == 151


def test_generation_is_deterministic_for_a_seed() -> None:
    routes = [_route(6, STOPS), _route(151, STOPS)]

    a = generate_schedules(routes, seed=7)
    b = generate_schedules(routes, seed=7)

    assert a == b


def test_routes_without_stops_get_nothing() -> None:
    assert generate_schedules([_route(6)]) == ()


def test_multiple_day_types() -> None:
    schedules = generate_schedules(
        [_route(6, STOPS)], day_types=(DayType.SATURDAY, DayType.WORKDAY)
    )

    per_day = {d: [s for s in schedules if s.day_type is d] for d in DayType}
    assert len(per_day[DayType.WORKDAY]) == 144
    assert len(per_day[DayType.SATURDAY]) == 144
    assert per_day[DayType.SUNDAY_HOLIDAY] == []
    # Workday schedules come first.
    assert schedules[0].day_type is DayType.WORKDAY
