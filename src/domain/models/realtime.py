from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .geo import Geolocation
from .route import Route
from .schedule import Schedule


class Heading(Enum):
    """Eight compass sectors, angles counter-clockwise from east."""

    E = 0.0
    NE = 45.0
    N = 90.0
    NW = 135.0
    W = 180.0
    SW = 225.0
    S = 270.0
    SE = 315.0

    @property
    def angle_deg(self) -> float:
        return float(self.value)

    @classmethod
    def from_angle(cls, angle_deg: float) -> Heading:
        """Quantise an angle into the 45° sector centred on a direction."""

        a = angle_deg % 360.0
        sector = int(((a + 22.5) % 360.0) // 45.0)
        return _HEADINGS_BY_SECTOR[sector]


_HEADINGS_BY_SECTOR = (
    Heading.E,
    Heading.NE,
    Heading.N,
    Heading.NW,
    Heading.W,
    Heading.SW,
    Heading.S,
    Heading.SE,
)


@dataclass(frozen=True, slots=True)
class ActiveVehicle:
    """A vehicle derived from a schedule at a point in time (never stored)."""

    route: Route
    schedule: Schedule
    position: Geolocation
    progress: float
    is_waiting_at_stop: bool
    current_stop_index: int
    next_stop_index: int
    segment_progress: float
    minutes_until_next_stop: float = 0.0
    heading: Heading | None = None

    @property
    def key(self) -> str:
        return f"{self.route.line_id}_{self.schedule.schedule_id}_{self.schedule.departure_time}"
