from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from src.app.ports.output import ISurveyRepository
from src.domain.algorithms.projection import projected_to_geodetic
from src.domain.exceptions import MalformedRecordError
from src.domain.models import Geolocation, Route, Stop

logger = logging.getLogger(__name__)


def _opt_int(props: Mapping[str, Any], key: str, default: int) -> int:
    value = props.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _opt_float(props: Mapping[str, Any], key: str, default: float) -> float:
    value = props.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _opt_str(props: Mapping[str, Any], key: str) -> str:
    value = props.get(key)
    return "" if value is None else str(value)


def _coord(raw: Any) -> tuple[float, float]:
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        raise MalformedRecordError(f"Invalid coordinate: {raw!r}")
    try:
        x, y = float(raw[0]), float(raw[1])
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(f"Non-numeric coordinate: {raw!r}") from exc
    if not (math.isfinite(x) and math.isfinite(y)):
        raise MalformedRecordError(f"Non-finite coordinate: {raw!r}")
    return x, y


def _geometry(feature: Any) -> tuple[str, Any]:
    if not isinstance(feature, Mapping):
        raise MalformedRecordError("Feature is not an object")
    geometry = feature.get("geometry")
    if not isinstance(geometry, Mapping):
        raise MalformedRecordError("Feature has no geometry")
    return str(geometry.get("type", "")), geometry.get("coordinates")


def _properties(feature: Mapping[str, Any]) -> Mapping[str, Any]:
    props = feature.get("properties")
    return props if isinstance(props, Mapping) else {}


def parse_stop_feature(feature: Any) -> Stop | None:
    """Stop from a GeoJSON `Point` feature; None for other geometries."""

    geom_type, coordinates = _geometry(feature)
    if geom_type.lower() != "point":
        return None

    x, y = _coord(coordinates)
    props = _properties(feature)
    return Stop(
        id=_opt_int(props, "id_avpost", -1),
        external_id=_opt_str(props, "id_marprom"),
        name=_opt_str(props, "ime_postaj"),
        source_coord=(x, y),
        location=projected_to_geodetic(x, y),
    )


def parse_route_feature(feature: Any) -> Route | None:
    """Route from a GeoJSON `LineString` feature; None for other geometries."""

    geom_type, coordinates = _geometry(feature)
    if geom_type.lower() != "linestring":
        return None
    if not isinstance(coordinates, list):
        raise MalformedRecordError("LineString without coordinate list")

    source_coords = tuple(_coord(c) for c in coordinates)
    path: tuple[Geolocation, ...] = tuple(
        projected_to_geodetic(x, y) for x, y in source_coords
    )

    props = _properties(feature)
    return Route(
        line_id=_opt_int(props, "linije_id", -1),
        variant_id=_opt_int(props, "varianta_t", -1),
        direction=_opt_int(props, "smer", 0),
        length_m=_opt_float(props, "dolzina_li", 0.0),
        name=_opt_str(props, "naziv"),
        note=_opt_str(props, "opomba"),
        provider_name=_opt_str(props, "naziv_ponudnik"),
        provider_link=_opt_str(props, "povezava_ponudnik"),
        path=path,
        source_coords=source_coords,
    )


def keep_longest_variants(routes: list[Route]) -> list[Route]:
    """One route per line id: the one with the most path points (first wins ties)."""

    best: dict[int, Route] = {}
    for route in routes:
        existing = best.get(route.line_id)
        if existing is None or len(route.path) > len(existing.path):
            if existing is not None:
                logger.debug(
                    "Replacing line %s variant (%d -> %d points)",
                    route.line_id,
                    len(existing.path),
                    len(route.path),
                )
            best[route.line_id] = route
    return list(best.values())


@dataclass(slots=True)
class LocalSurveyRepository(ISurveyRepository):
    """Loads surveyed stops and route geometries from GeoJSON files.

    Coordinates are D96/TM (EPSG:3794) and are converted to WGS84 on load.

    Env vars:
      - SURVEY_PATH: directory holding the GeoJSON files
      - SURVEY_STOPS_FILE: stops file name (default: stops.geojson)
      - SURVEY_ROUTES_FILE: routes file name (default: routes.geojson)
    """

    base_path: str | Path | None = None
    stops_file: str | None = None
    routes_file: str | None = None
    keep_longest_variant: bool = True

    def _base(self) -> Path:
        value = self.base_path or os.getenv("SURVEY_PATH") or "data/survey"
        return Path(value)

    def _stops_path(self) -> Path:
        name = self.stops_file or os.getenv("SURVEY_STOPS_FILE") or "stops.geojson"
        return self._base() / name

    def _routes_path(self) -> Path:
        name = self.routes_file or os.getenv("SURVEY_ROUTES_FILE") or "routes.geojson"
        return self._base() / name

    def _features(self, path: Path) -> list[Any]:
        if not path.exists():
            logger.error("GeoJSON file not found: %s", path)
            return []

        logger.info("Loading features from %s", path)
        try:
            with path.open("r", encoding="utf-8") as fp:
                root = json.load(fp)
        except (OSError, ValueError) as exc:
            logger.error("Could not read GeoJSON file %s: %s", path, exc)
            return []

        features = root.get("features") if isinstance(root, Mapping) else None
        if not isinstance(features, list):
            logger.error("GeoJSON file has no feature list: %s", path)
            return []
        return features

    def load_stops(self) -> tuple[Stop, ...]:
        path = self._stops_path()
        stops: list[Stop] = []
        for i, feature in enumerate(self._features(path)):
            try:
                stop = parse_stop_feature(feature)
            except MalformedRecordError as exc:
                logger.warning("Skipping stop feature %d in %s: %s", i, path, exc)
                continue
            if stop is not None:
                stops.append(stop)

        logger.info("Loaded %d stops from %s", len(stops), path)
        return tuple(stops)

    def load_routes(self) -> tuple[Route, ...]:
        path = self._routes_path()
        routes: list[Route] = []
        for i, feature in enumerate(self._features(path)):
            try:
                route = parse_route_feature(feature)
            except MalformedRecordError as exc:
                logger.warning("Skipping route feature %d in %s: %s", i, path, exc)
                continue
            if route is not None:
                routes.append(route)

        if self.keep_longest_variant:
            routes = keep_longest_variants(routes)

        line_ids = sorted({r.line_id for r in routes})
        logger.info("Loaded %d routes from %s", len(routes), path)
        logger.info("Line ids (%d): %s", len(line_ids), ", ".join(map(str, line_ids)))
        return tuple(routes)
