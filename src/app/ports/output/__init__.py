from .schedule_repository import IScheduleRepository
from .survey_repository import ISurveyRepository

__all__ = [
    "IScheduleRepository",
    "ISurveyRepository",
]
