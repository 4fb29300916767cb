from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class GeolocationSchema(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class StopSchema(BaseModel):
    id: int
    external_id: str
    name: str
    location: GeolocationSchema
    route_ids: list[int] = []


class StopTimeSchema(BaseModel):
    stop_id: int
    sequence: int
    arrival_time: str


class ScheduleSchema(BaseModel):
    schedule_id: int
    day_type: int
    day_type_label: str
    departure_time: str
    stop_times: list[StopTimeSchema] = []


class RouteSummarySchema(BaseModel):
    line_id: int
    variant_id: int
    direction: int
    name: str
    note: str | None = None
    provider_name: str | None = None
    provider_link: str | None = None
    length_m: float
    color: str
    is_urban: bool
    stop_count: int
    schedule_count: int


class RouteDetailSchema(RouteSummarySchema):
    path: list[GeolocationSchema] = []
    stops: list[StopSchema] = []
    schedules: list[ScheduleSchema] = []


class StopArrivalSchema(BaseModel):
    line_id: int
    variant_id: int
    direction: int
    route_name: str
    color: str
    schedule_id: int
    arrival_time: str
    minutes_until: float


class StopArrivalsResponseSchema(BaseModel):
    stop: StopSchema
    day_type: int
    arrivals: list[StopArrivalSchema]


class VehicleSchema(BaseModel):
    key: str
    line_id: int
    variant_id: int
    direction: int
    schedule_id: int
    color: str
    position: GeolocationSchema
    heading: str | None = None
    progress: float
    segment_progress: float
    is_waiting_at_stop: bool
    current_stop_id: int
    next_stop_id: int
    minutes_until_next_stop: float


class VehiclesResponseSchema(BaseModel):
    computed_at: datetime
    day_type: int
    vehicles: list[VehicleSchema]


class SnapshotSchema(BaseModel):
    route_count: int
    stop_count: int
    schedule_source: Literal["file", "synthesized"]
    built_at: datetime
