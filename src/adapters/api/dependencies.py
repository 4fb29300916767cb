from __future__ import annotations

from functools import lru_cache

from src.adapters.persistence import JsonScheduleRepository, LocalSurveyRepository
from src.adapters.settings import TransitRuntimeConfig
from src.app.services.realtime_view_service import RealtimeViewService
from src.app.services.schedule_engine import ScheduleEngine
from src.app.services.transit_model_service import TransitModelService


def get_runtime_config() -> TransitRuntimeConfig:
    return TransitRuntimeConfig.from_env()


@lru_cache(maxsize=1)
def get_transit_model_service() -> TransitModelService:
    # One model per process; the snapshot is built on first use or at startup.
    cfg = get_runtime_config()
    return TransitModelService(
        survey_repository=LocalSurveyRepository(),
        schedule_repository=JsonScheduleRepository(),
        schedule_engine=ScheduleEngine(
            synthesis_day_types=cfg.synthesis_day_types,
            synthesis_seed=cfg.synthesis_seed,
        ),
        proximity_threshold_m=cfg.proximity_threshold_m,
    )


def get_realtime_view_service() -> RealtimeViewService:
    cfg = get_runtime_config()
    return RealtimeViewService(
        model_service=get_transit_model_service(),
        tile_origin=cfg.tile_origin(),
        map_height=cfg.map_height,
    )
