from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import Route, Stop


class ISurveyRepository(ABC):
    """Port for loading surveyed stops and route geometries.

    Implementations return geodetic (WGS84) values; routes come without stops
    and schedules, stops without route ids.
    """

    @abstractmethod
    def load_stops(self) -> tuple[Stop, ...]:
        raise NotImplementedError

    @abstractmethod
    def load_routes(self) -> tuple[Route, ...]:
        raise NotImplementedError
