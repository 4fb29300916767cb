from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from src.app.ports.output import IScheduleRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class JsonScheduleRepository(IScheduleRepository):
    """Reads the timetable document from a JSON file.

    Env vars:
      - SCHEDULES_PATH: path to the JSON file (default: data/schedules.json)
    """

    path: str | Path | None = None

    def _path(self) -> Path:
        value = self.path or os.getenv("SCHEDULES_PATH") or "data/schedules.json"
        return Path(value)

    def load_payload(self) -> Mapping[str, Any] | None:
        path = self._path()
        if not path.exists():
            logger.warning("Schedule file not found: %s", path)
            return None

        try:
            with path.open("r", encoding="utf-8") as fp:
                payload = json.load(fp)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read schedule file %s: %s", path, exc)
            return None

        if not isinstance(payload, Mapping):
            logger.warning("Schedule file %s is not a JSON object", path)
            return None
        return payload
