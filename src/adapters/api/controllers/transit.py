from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from src.adapters.api.dependencies import (
    get_realtime_view_service,
    get_transit_model_service,
)
from src.adapters.api.line_colors import line_color
from src.adapters.api.schemas.transit import (
    GeolocationSchema,
    RouteDetailSchema,
    RouteSummarySchema,
    ScheduleSchema,
    SnapshotSchema,
    StopArrivalSchema,
    StopArrivalsResponseSchema,
    StopSchema,
    StopTimeSchema,
    VehicleSchema,
    VehiclesResponseSchema,
)
from src.app.services.realtime_view_service import RealtimeViewService
from src.app.services.transit_model_service import TransitModelService
from src.domain.algorithms.positions import minutes_since_midnight
from src.domain.models import (
    ActiveVehicle,
    DayType,
    Geolocation,
    Route,
    Schedule,
    Stop,
)
from src.domain.models.schedule import format_time

router = APIRouter(prefix="/transit", tags=["transit"])


def _location(p: Geolocation) -> GeolocationSchema:
    return GeolocationSchema(lat=p.lat, lng=p.lng)


def _stop_to_schema(stop: Stop) -> StopSchema:
    return StopSchema(
        id=stop.id,
        external_id=stop.external_id,
        name=stop.name,
        location=_location(stop.location),
        route_ids=list(stop.route_ids),
    )


def _schedule_to_schema(schedule: Schedule) -> ScheduleSchema:
    return ScheduleSchema(
        schedule_id=schedule.schedule_id,
        day_type=int(schedule.day_type),
        day_type_label=schedule.day_type.label,
        departure_time=schedule.departure_time_formatted,
        stop_times=[
            StopTimeSchema(
                stop_id=st.stop_id,
                sequence=st.sequence,
                arrival_time=st.arrival_time_formatted,
            )
            for st in schedule.stop_times
        ],
    )


def _route_summary(route: Route) -> dict[str, Any]:
    return dict(
        line_id=route.line_id,
        variant_id=route.variant_id,
        direction=route.direction,
        name=route.name,
        note=route.note or None,
        provider_name=route.provider_name or None,
        provider_link=route.provider_link or None,
        length_m=route.length_m,
        color=line_color(route.line_id),
        is_urban=route.is_urban,
        stop_count=len(route.stops),
        schedule_count=len(route.schedules),
    )


def _vehicle_to_schema(v: ActiveVehicle) -> VehicleSchema:
    stop_times = v.schedule.stop_times
    return VehicleSchema(
        key=v.key,
        line_id=v.route.line_id,
        variant_id=v.route.variant_id,
        direction=v.route.direction,
        schedule_id=v.schedule.schedule_id,
        color=line_color(v.route.line_id),
        position=_location(v.position),
        heading=v.heading.name if v.heading is not None else None,
        progress=v.progress,
        segment_progress=v.segment_progress,
        is_waiting_at_stop=v.is_waiting_at_stop,
        current_stop_id=stop_times[v.current_stop_index].stop_id,
        next_stop_id=stop_times[v.next_stop_index].stop_id,
        minutes_until_next_stop=v.minutes_until_next_stop,
    )


@router.get("/routes", response_model=list[RouteSummarySchema])
def list_routes(
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> list[RouteSummarySchema]:
    return [RouteSummarySchema(**_route_summary(r)) for r in service.list_routes()]


@router.get("/routes/{line_id}", response_model=list[RouteDetailSchema])
def get_line(
    line_id: int,
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> list[RouteDetailSchema]:
    routes = service.routes_for_line(line_id)
    if not routes:
        raise HTTPException(status_code=404, detail="Line not found")

    return [
        RouteDetailSchema(
            **_route_summary(r),
            path=[_location(p) for p in r.path],
            stops=[_stop_to_schema(s) for s in r.stops],
            schedules=[_schedule_to_schema(s) for s in r.schedules],
        )
        for r in routes
    ]


@router.get("/stops", response_model=list[StopSchema])
def list_stops(
    line_id: int | None = Query(default=None),
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> list[StopSchema]:
    stops = service.list_stops()
    if line_id is not None:
        stops = tuple(s for s in stops if s.has_route(line_id))
    return [_stop_to_schema(s) for s in stops]


@router.get("/stops/{stop_id}/arrivals", response_model=StopArrivalsResponseSchema)
def stop_arrivals(
    stop_id: int,
    at: datetime | None = Query(default=None),
    day_type: int | None = Query(default=None, ge=0, le=2),
    limit: int = Query(default=5, ge=1, le=50),
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> StopArrivalsResponseSchema:
    stop = service.stop(stop_id)
    if stop is None:
        raise HTTPException(status_code=404, detail="Stop not found")

    now = at or datetime.now()
    resolved = DayType.for_date(now.date()) if day_type is None else DayType(day_type)
    arrivals = service.stop_arrivals(
        stop_id=stop_id, now=now, day_type=resolved, limit=limit
    ) or ()
    current = minutes_since_midnight(now)

    return StopArrivalsResponseSchema(
        stop=_stop_to_schema(stop),
        day_type=int(resolved),
        arrivals=[
            StopArrivalSchema(
                line_id=a.route.line_id,
                variant_id=a.route.variant_id,
                direction=a.route.direction,
                route_name=a.route.name,
                color=line_color(a.route.line_id),
                schedule_id=a.schedule.schedule_id,
                arrival_time=format_time(a.arrival_time),
                minutes_until=a.minutes_until(current),
            )
            for a in arrivals
        ],
    )


@router.get("/vehicles", response_model=VehiclesResponseSchema)
def list_vehicles(
    line_id: list[int] | None = Query(default=None),
    at: datetime | None = Query(default=None),
    day_type: int | None = Query(default=None, ge=0, le=2),
    along_path: bool = Query(default=True),
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> VehiclesResponseSchema:
    now = at or datetime.now()
    resolved = DayType.for_date(now.date()) if day_type is None else DayType(day_type)
    vehicles = service.list_vehicles(
        now=now,
        day_type=resolved,
        line_ids=set(line_id) if line_id else None,
        along_path=along_path,
    )

    return VehiclesResponseSchema(
        computed_at=datetime.now(timezone.utc),
        day_type=int(resolved),
        vehicles=[_vehicle_to_schema(v) for v in vehicles],
    )


@router.post("/refresh", response_model=SnapshotSchema)
async def refresh(
    model_service: TransitModelService = Depends(get_transit_model_service),
) -> SnapshotSchema:
    snapshot = await model_service.refresh_in_background()
    return SnapshotSchema(
        route_count=len(snapshot.routes),
        stop_count=len(snapshot.stops),
        schedule_source=snapshot.schedule_source,
        built_at=snapshot.built_at,
    )
