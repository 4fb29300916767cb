from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.domain.algorithms.projection import geodetic_to_projected

# A small slice of a city: one east-west line and one north-south line
# crossing at a shared stop.
_EAST_WEST = [(46.5550, 15.6300), (46.5550, 15.6400), (46.5550, 15.6500)]
_NORTH_SOUTH = [(46.5450, 15.6400), (46.5550, 15.6400), (46.5650, 15.6400)]


def _xy(lat: float, lng: float) -> list[float]:
    x, y = geodetic_to_projected(lat, lng)
    return [round(x, 3), round(y, 3)]


def _stop_feature(stop_id: int, name: str, lat: float, lng: float) -> dict[str, object]:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": _xy(lat, lng)},
        "properties": {
            "id_avpost": stop_id,
            "id_marprom": str(500 + stop_id),
            "ime_postaj": name,
        },
    }


def _line_feature(
    line_id: int, variant: int, points: list[tuple[float, float]]
) -> dict[str, object]:
    return {
        "type": "Feature",
        "geometry": {
            "type": "LineString",
            "coordinates": [_xy(lat, lng) for lat, lng in points],
        },
        "properties": {
            "linije_id": line_id,
            "varianta_t": variant,
            "smer": 1,
            "dolzina_li": 1500.0,
            "naziv": f"Linija {line_id}",
            "opomba": "",
            "naziv_ponudnik": "Marprom",
            "povezava_ponudnik": "https://example.invalid/marprom",
        },
    }


@pytest.fixture
def survey_dir(tmp_path: Path) -> Path:
    stops = [
        _stop_feature(1, "Zahod", *_EAST_WEST[0]),
        _stop_feature(2, "Center", *_EAST_WEST[1]),
        _stop_feature(3, "Vzhod", *_EAST_WEST[2]),
        _stop_feature(4, "Jug", *_NORTH_SOUTH[0]),
        _stop_feature(5, "Sever", *_NORTH_SOUTH[2]),
        _stop_feature(6, "Samotna", 46.60, 15.70),
    ]
    routes = [
        _line_feature(6, 1, _EAST_WEST),
        _line_feature(6, 2, _EAST_WEST[:2]),
        _line_feature(151, 1, _NORTH_SOUTH),
    ]

    (tmp_path / "stops.geojson").write_text(
        json.dumps({"type": "FeatureCollection", "features": stops}), encoding="utf-8"
    )
    (tmp_path / "routes.geojson").write_text(
        json.dumps({"type": "FeatureCollection", "features": routes}), encoding="utf-8"
    )
    return tmp_path


@pytest.fixture
def schedules_file(tmp_path: Path) -> Path:
    path = tmp_path / "schedules.json"
    path.write_text(
        json.dumps(
            {
                "schedules": [
                    {
                        "scheduleId": 10,
                        "lineId": 6,
                        "variantId": 1,
                        "direction": 1,
                        "dayType": 0,
                        "departureTime": "07:30",
                        "stopTimes": [
                            {"stopId": 1, "sequence": 0, "arrivalTime": "07:30"},
                            {"stopId": 2, "sequence": 1, "arrivalTime": "07:34"},
                            {"stopId": 3, "sequence": 2, "arrivalTime": "07:38"},
                        ],
                    },
                    {"scheduleId": 11, "lineId": 6},
                ]
            }
        ),
        encoding="utf-8",
    )
    return path
