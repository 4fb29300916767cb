from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping


class IScheduleRepository(ABC):
    """Port for fetching the raw timetable document, if one exists."""

    @abstractmethod
    def load_payload(self) -> Mapping[str, Any] | None:
        """Return the decoded document, or None when no timetable is available."""
