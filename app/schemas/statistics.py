from datetime import datetime
from typing import Dict, List, Optional

from app.models.survey import SurveyStatus
from app.schemas.common import CamelModel, TimestampedResponse
from app.schemas.survey import SurveySummary


class OptionStatistics(CamelModel):
    id: int
    text: str
    label: Optional[str] = None
    response_count: int = 0
    percentage: float = 0.0


class QuestionStatistics(CamelModel):
    id: int
    text: str
    type: str
    order_index: int
    options: List[OptionStatistics] = []
    total_responses: int = 0


class SurveyStatistics(TimestampedResponse):
    survey_id: int
    survey_title: str
    survey_description: Optional[str] = None
    total_questions: int
    total_responses: int
    unique_users: int
    completion_rate: float
    created_date: Optional[datetime] = None
    status: SurveyStatus
    question_statistics: List[QuestionStatistics] = []


class GlobalStatistics(TimestampedResponse):
    total_surveys: int
    total_surveys_including_deleted: int = 0
    surveys_accepting_responses: int = 0
    surveys_past_end_date: int = 0
    surveys_by_status: Dict[str, int]
    active_users: int
    admin_users: int
    total_responses: int


class CleanupReport(CamelModel):
    """Resultado del barrido de mantenimiento"""
    orphaned_deleted: int = 0
    inactive_creator_soft_deleted: int = 0
    without_questions_soft_deleted: int = 0
    old_without_responses_soft_deleted: int = 0
    expired_closed: int = 0
    scheduled_activated: int = 0
    days_old: int = 30
    total_processed: int = 0
    success: bool = True
    message: str = ""

    def refresh_total(self) -> int:
        self.total_processed = (
            self.orphaned_deleted
            + self.inactive_creator_soft_deleted
            + self.without_questions_soft_deleted
            + self.old_without_responses_soft_deleted
            + self.expired_closed
            + self.scheduled_activated
        )
        return self.total_processed


class CleanupResponse(CamelModel):
    success: bool
    message: str
    users_kept: int
    cleanup_report: CleanupReport


class CleanupCandidates(CamelModel):
    count: int
    surveys: List[SurveySummary]


class CleanupActionResult(CamelModel):
    """Resultado de una sola categoría de limpieza ejecutada por separado"""
    success: bool = True
    message: str
    affected_count: int
    days_old: Optional[int] = None
