from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from src.adapters.api.dependencies import get_realtime_view_service
from src.adapters.api.schemas.map import (
    ClusterSchema,
    ClustersResponseSchema,
    PixelResponseSchema,
    PixelSchema,
    TileSchema,
)
from src.adapters.api.schemas.transit import GeolocationSchema
from src.app.services.realtime_view_service import RealtimeViewService
from src.domain.algorithms.clustering import merge_distance, zoom_bucket
from src.domain.models import Geolocation

router = APIRouter(prefix="/map", tags=["map"])


@router.get("/clusters", response_model=ClustersResponseSchema)
def list_clusters(
    zoom: float = Query(default=0.0, ge=0.0),
    min_x: float | None = Query(default=None),
    min_y: float | None = Query(default=None),
    max_x: float | None = Query(default=None),
    max_y: float | None = Query(default=None),
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> ClustersResponseSchema:
    bounds = (min_x, min_y, max_x, max_y)
    if all(b is None for b in bounds):
        viewport = None
    elif any(b is None for b in bounds):
        raise HTTPException(
            status_code=422, detail="Viewport needs min_x, min_y, max_x and max_y"
        )
    else:
        viewport = (min_x, min_y, max_x, max_y)

    clusters = service.clusters(zoom=zoom, viewport=viewport)
    return ClustersResponseSchema(
        zoom=zoom,
        zoom_bucket=zoom_bucket(zoom),
        merge_distance_px=merge_distance(zoom),
        clusters=[
            ClusterSchema(
                cluster_id=c.cluster_id,
                count=c.count,
                is_cluster=c.is_cluster,
                position=PixelSchema(x=c.target_position.x, y=c.target_position.y),
                stop_ids=sorted(c.stop_ids()),
                state=c.state.value,
            )
            for c in clusters
        ],
    )


@router.get("/pixel", response_model=PixelResponseSchema)
def to_pixel(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lng: float = Query(..., ge=-180.0, le=180.0),
    service: RealtimeViewService = Depends(get_realtime_view_service),
) -> PixelResponseSchema:
    p = service.pixel_position(Geolocation(lat=lat, lng=lng))
    origin = service.tile_origin
    return PixelResponseSchema(
        location=GeolocationSchema(lat=lat, lng=lng),
        pixel=PixelSchema(x=p.x, y=p.y),
        tile_origin=TileSchema(zoom=origin.zoom, x=origin.x, y=origin.y),
    )
