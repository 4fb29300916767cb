from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import httpx
import pytest

from src.adapters.api.dependencies import (
    get_realtime_view_service,
    get_transit_model_service,
)
from src.app.services.realtime_view_service import RealtimeViewService
from src.app.services.transit_model_service import TransitModelService
from src.domain.algorithms.projection import origin_tile
from src.domain.models import Geolocation, Route, Stop
from src.main import app


@dataclass(slots=True)
class FakeSurveyRepository:
    def load_stops(self) -> tuple[Stop, ...]:
        return (
            Stop(
                id=1,
                external_id="M1",
                name="Glavni trg",
                source_coord=(548800.0, 157700.0),
                location=Geolocation(lat=46.55, lng=15.60),
            ),
            Stop(
                id=2,
                external_id="M2",
                name="Tabor",
                source_coord=(549500.0, 157700.0),
                location=Geolocation(lat=46.55, lng=15.61),
            ),
        )

    def load_routes(self) -> tuple[Route, ...]:
        return (
            Route(
                line_id=6,
                variant_id=1,
                direction=1,
                name="Vzpenjača",
                length_m=766.0,
                path=(
                    Geolocation(lat=46.55, lng=15.60),
                    Geolocation(lat=46.55, lng=15.61),
                ),
            ),
        )


@dataclass(slots=True)
class FakeScheduleRepository:
    def load_payload(self) -> Mapping[str, Any] | None:
        return {
            "schedules": [
                {
                    "scheduleId": 1,
                    "lineId": 6,
                    "variantId": 1,
                    "direction": 1,
                    "dayType": 2,
                    "departureTime": "08:00",
                    "stopTimes": [
                        {"stopId": 1, "sequence": 0, "arrivalTime": "08:00"},
                        {"stopId": 2, "sequence": 1, "arrivalTime": "08:10"},
                    ],
                }
            ]
        }


def _model() -> TransitModelService:
    return TransitModelService(
        survey_repository=FakeSurveyRepository(),
        schedule_repository=FakeScheduleRepository(),
    )


def _view() -> RealtimeViewService:
    return RealtimeViewService(
        model_service=_model(),
        tile_origin=origin_tile(Geolocation(lat=46.557314, lng=15.637771), 15),
    )


async def _get(path: str, **params: Any) -> httpx.Response:
    app.dependency_overrides[get_realtime_view_service] = _view

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get(path, params=params or None)

    app.dependency_overrides.clear()
    return resp


@pytest.mark.unit
@pytest.mark.anyio
async def test_health() -> None:
    resp = await _get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.unit
@pytest.mark.anyio
async def test_list_routes() -> None:
    resp = await _get("/transit/routes")

    assert resp.status_code == 200
    (route,) = resp.json()
    assert route["line_id"] == 6
    assert route["name"] == "Vzpenjača"
    assert route["color"] == "#FFB333"
    assert route["is_urban"] is True
    assert route["stop_count"] == 2
    assert route["schedule_count"] == 1


@pytest.mark.unit
@pytest.mark.anyio
async def test_get_line_details_and_404() -> None:
    resp = await _get("/transit/routes/6")

    assert resp.status_code == 200
    (route,) = resp.json()
    assert [s["id"] for s in route["stops"]] == [1, 2]
    assert route["schedules"][0]["departure_time"] == "08:00"
    assert route["schedules"][0]["day_type_label"] == "Sunday/Holiday"
    assert len(route["path"]) == 2

    missing = await _get("/transit/routes/99")
    assert missing.status_code == 404


@pytest.mark.unit
@pytest.mark.anyio
async def test_list_stops_with_line_filter() -> None:
    resp = await _get("/transit/stops", line_id=6)

    assert resp.status_code == 200
    assert [s["name"] for s in resp.json()] == ["Glavni trg", "Tabor"]
    assert resp.json()[0]["route_ids"] == [6]

    none = await _get("/transit/stops", line_id=7)
    assert none.json() == []


@pytest.mark.unit
@pytest.mark.anyio
async def test_stop_arrivals() -> None:
    resp = await _get("/transit/stops/2/arrivals", at="2026-01-04T08:05:00")

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["day_type"] == 2
    (arrival,) = payload["arrivals"]
    assert arrival["arrival_time"] == "08:10"
    assert arrival["minutes_until"] == 5.0

    missing = await _get("/transit/stops/999/arrivals")
    assert missing.status_code == 404


@pytest.mark.unit
@pytest.mark.anyio
async def test_vehicles_at_time() -> None:
    resp = await _get("/transit/vehicles", at="2026-01-05T08:05:00", day_type=2)

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["day_type"] == 2
    (vehicle,) = payload["vehicles"]
    assert vehicle["line_id"] == 6
    assert vehicle["heading"] == "E"
    assert vehicle["current_stop_id"] == 1
    assert vehicle["next_stop_id"] == 2
    assert vehicle["segment_progress"] == pytest.approx(0.5)
    assert vehicle["position"]["lng"] == pytest.approx(15.605, abs=1e-6)


@pytest.mark.unit
@pytest.mark.anyio
async def test_vehicles_reject_unknown_day_type() -> None:
    resp = await _get("/transit/vehicles", day_type=5)
    assert resp.status_code == 422


@pytest.mark.unit
@pytest.mark.anyio
async def test_map_clusters() -> None:
    resp = await _get("/map/clusters", zoom=2.0)

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["zoom_bucket"] == 5
    assert payload["merge_distance_px"] == 1600.0
    (cluster,) = payload["clusters"]
    assert cluster["stop_ids"] == [1, 2]
    assert cluster["is_cluster"] is True


@pytest.mark.unit
@pytest.mark.anyio
async def test_map_clusters_needs_complete_viewport() -> None:
    resp = await _get("/map/clusters", zoom=0.0, min_x=0.0)
    assert resp.status_code == 422


@pytest.mark.unit
@pytest.mark.anyio
async def test_map_pixel() -> None:
    resp = await _get("/map/pixel", lat=46.557314, lng=15.637771)

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["tile_origin"]["zoom"] == 15
    assert 7168.0 <= payload["pixel"]["x"] < 7680.0


@pytest.mark.unit
@pytest.mark.anyio
async def test_refresh_rebuilds_snapshot() -> None:
    model = _model()
    app.dependency_overrides[get_transit_model_service] = lambda: model

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/transit/refresh")

    app.dependency_overrides.clear()

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["route_count"] == 1
    assert payload["stop_count"] == 2
    assert payload["schedule_source"] == "file"
