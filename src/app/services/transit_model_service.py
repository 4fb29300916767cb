from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.app.ports.output import IScheduleRepository, ISurveyRepository
from src.app.services.schedule_engine import ScheduleEngine, ScheduleSource
from src.domain.algorithms.spatial_join import build_relationships
from src.domain.models import Route, Stop

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransitSnapshot:
    """A complete, read-only generation of the transit model."""

    routes: tuple[Route, ...]
    stops: tuple[Stop, ...]
    schedule_source: ScheduleSource
    built_at: datetime

    def stop_by_id(self, stop_id: int) -> Stop | None:
        for stop in self.stops:
            if stop.id == stop_id:
                return stop
        return None

    def routes_for_line(self, line_id: int) -> tuple[Route, ...]:
        return tuple(r for r in self.routes if r.line_id == line_id)


@dataclass(slots=True)
class TransitModelService:
    """Builds the transit model and publishes it as a whole.

    Pipeline: survey data -> stop/route relationships -> schedules. Readers
    always get either the previous snapshot or the complete new one.
    """

    survey_repository: ISurveyRepository
    schedule_repository: IScheduleRepository
    schedule_engine: ScheduleEngine = field(default_factory=ScheduleEngine)
    proximity_threshold_m: float = 50.0

    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _snapshot: TransitSnapshot | None = field(default=None, init=False, repr=False)

    def build_snapshot(self) -> TransitSnapshot:
        raw_stops = self.survey_repository.load_stops()
        raw_routes = self.survey_repository.load_routes()
        logger.info("Loaded %d stops and %d routes", len(raw_stops), len(raw_routes))

        related = build_relationships(raw_routes, raw_stops, self.proximity_threshold_m)

        routes, source = self.schedule_engine.load_or_generate(
            self.schedule_repository.load_payload(), related.routes
        )

        stops_with_lines = sum(1 for s in related.stops if s.route_ids)
        routes_with_stops = sum(1 for r in routes if r.stops)
        routes_with_schedules = sum(1 for r in routes if r.schedules)
        logger.info("%d/%d stops have lines", stops_with_lines, len(related.stops))
        logger.info("%d/%d lines have stops", routes_with_stops, len(routes))
        logger.info("%d/%d lines have schedules", routes_with_schedules, len(routes))

        return TransitSnapshot(
            routes=routes,
            stops=related.stops,
            schedule_source=source,
            built_at=datetime.now(timezone.utc),
        )

    def refresh(self) -> TransitSnapshot:
        snapshot = self.build_snapshot()
        with self._lock:
            self._snapshot = snapshot
        return snapshot

    async def refresh_in_background(self) -> TransitSnapshot:
        return await asyncio.to_thread(self.refresh)

    def snapshot(self) -> TransitSnapshot:
        with self._lock:
            current = self._snapshot
        if current is not None:
            return current
        return self.refresh()
