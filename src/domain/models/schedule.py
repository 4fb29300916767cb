from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import IntEnum

MINUTES_PER_DAY = 24 * 60


class DayType(IntEnum):
    WORKDAY = 0
    SATURDAY = 1
    SUNDAY_HOLIDAY = 2

    @classmethod
    def from_weekday(cls, weekday: int) -> DayType:
        """Map a Python weekday (Monday=0 .. Sunday=6) to a day type."""

        if weekday == 6:
            return cls.SUNDAY_HOLIDAY
        if weekday == 5:
            return cls.SATURDAY
        return cls.WORKDAY

    @classmethod
    def for_date(cls, day: date) -> DayType:
        return cls.from_weekday(day.weekday())

    @property
    def label(self) -> str:
        return _DAY_TYPE_LABELS[self]


_DAY_TYPE_LABELS = {
    DayType.WORKDAY: "Workday",
    DayType.SATURDAY: "Saturday",
    DayType.SUNDAY_HOLIDAY: "Sunday/Holiday",
}


def format_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time(raw: str) -> int:
    """Parse 'HH:MM' into minutes since midnight.

    Raises ValueError for malformed strings and times outside the service day.
    """

    hh, mm = raw.strip().split(":")
    hours = int(hh)
    minutes = int(mm)
    if not (0 <= minutes < 60):
        raise ValueError(f"Invalid minutes in time: {raw!r}")
    total = hours * 60 + minutes
    if not (0 <= total < MINUTES_PER_DAY):
        raise ValueError(f"Time outside service day: {raw!r}")
    return total


@dataclass(frozen=True, slots=True)
class StopTime:
    stop_id: int
    sequence: int
    arrival_time: int  # minutes since midnight

    @property
    def arrival_time_formatted(self) -> str:
        return format_time(self.arrival_time)


@dataclass(frozen=True, slots=True)
class Schedule:
    """One scheduled trip of a route variant/direction."""

    schedule_id: int
    line_id: int
    variant_id: int
    direction: int
    day_type: DayType
    departure_time: int
    stop_times: tuple[StopTime, ...] = ()

    @property
    def route_key(self) -> tuple[int, int, int]:
        return (self.line_id, self.variant_id, self.direction)

    @property
    def first_arrival(self) -> int | None:
        return self.stop_times[0].arrival_time if self.stop_times else None

    @property
    def last_arrival(self) -> int | None:
        return self.stop_times[-1].arrival_time if self.stop_times else None

    @property
    def departure_time_formatted(self) -> str:
        return format_time(self.departure_time)

    def stop_time_for(self, stop_id: int) -> StopTime | None:
        for st in self.stop_times:
            if st.stop_id == stop_id:
                return st
        return None

    def arrival_time_at_stop(self, stop_id: int) -> int | None:
        st = self.stop_time_for(stop_id)
        return st.arrival_time if st is not None else None
