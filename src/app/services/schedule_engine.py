from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Sequence

from src.domain.algorithms.schedules import (
    assign_schedules,
    generate_schedules,
    parse_schedules,
)
from src.domain.models import DayType, Route, Schedule

logger = logging.getLogger(__name__)

ScheduleSource = Literal["file", "synthesized"]


@dataclass(slots=True)
class ScheduleEngine:
    """Loads explicit timetables or synthesizes them, and attaches them to routes.

    `synthesis_day_types` controls which day types a synthesized timetable
    covers; `generate_schedules` on its own covers Sunday/holiday only.
    """

    synthesis_day_types: tuple[DayType, ...] = field(
        default_factory=lambda: tuple(DayType)
    )
    synthesis_seed: int = 0

    def parse(self, payload: Mapping[str, Any] | None) -> tuple[Schedule, ...]:
        return parse_schedules(payload)

    def generate(self, routes: Sequence[Route]) -> tuple[Schedule, ...]:
        return generate_schedules(
            routes, day_types=self.synthesis_day_types, seed=self.synthesis_seed
        )

    def assign(
        self, routes: Sequence[Route], schedules: Sequence[Schedule]
    ) -> tuple[Route, ...]:
        return assign_schedules(routes, schedules)

    def load_or_generate(
        self, payload: Mapping[str, Any] | None, routes: Sequence[Route]
    ) -> tuple[tuple[Route, ...], ScheduleSource]:
        schedules = self.parse(payload)
        source: ScheduleSource = "file"
        if not schedules:
            logger.info("No explicit schedules, synthesizing timetable")
            schedules = self.generate(routes)
            source = "synthesized"

        updated = self.assign(routes, schedules)
        logger.info(
            "Assigned %d %s schedules to %d routes", len(schedules), source, len(updated)
        )
        return updated, source
