from __future__ import annotations

from pydantic import BaseModel

from src.adapters.api.schemas.transit import GeolocationSchema


class PixelSchema(BaseModel):
    x: float
    y: float


class TileSchema(BaseModel):
    zoom: int
    x: int
    y: int


class ClusterSchema(BaseModel):
    cluster_id: str
    count: int
    is_cluster: bool
    position: PixelSchema
    stop_ids: list[int]
    state: str


class ClustersResponseSchema(BaseModel):
    zoom: float
    zoom_bucket: int
    merge_distance_px: float
    clusters: list[ClusterSchema]


class PixelResponseSchema(BaseModel):
    location: GeolocationSchema
    pixel: PixelSchema
    tile_origin: TileSchema
