from .json_schedule_repository import JsonScheduleRepository
from .local_survey_repository import LocalSurveyRepository

__all__ = [
    "JsonScheduleRepository",
    "LocalSurveyRepository",
]
