"""
Statistics Service

Per-survey and global aggregates. Counts are always derived from the
responses table; nothing is stored.
"""

from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import SurveyNotFoundError
from app.core.timezone_utils import utcnow
from app.models.survey import SurveyStatus
from app.models.user import UserRole
from app.repositories.response import response_repository
from app.repositories.survey import survey_repository
from app.repositories.user import user_repository
from app.schemas.statistics import (
    SurveyStatistics, QuestionStatistics, OptionStatistics, GlobalStatistics
)

logger = logging.getLogger(__name__)


def completion_rate(unique_users: int) -> float:
    # TODO: the denominator (invited or registered users) is still undecided;
    # until then this mirrors the legacy uniqueUsers / uniqueUsers formula.
    if unique_users <= 0:
        return 0.0
    return unique_users / unique_users * 100.0


def percentage(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(part / total * 100.0, 2)


class SurveyStatisticsService:

    def survey_statistics(self, db: Session, survey_id: int) -> SurveyStatistics:
        """
        Estadísticas de una encuesta.

        Raises:
            SurveyNotFoundError: Si la encuesta no existe o está borrada
        """
        survey = survey_repository.get_with_questions(db, survey_id)
        if survey is None:
            raise SurveyNotFoundError(survey_id)

        option_counts = response_repository.counts_by_option_for_survey(db, survey_id=survey_id)
        question_counts = response_repository.counts_by_question_for_survey(db, survey_id=survey_id)
        unique_users = response_repository.count_distinct_users_for_survey(db, survey_id=survey_id)

        question_statistics = []
        for question in survey.active_questions:
            total = question_counts.get(question.id, 0)
            question_statistics.append(QuestionStatistics(
                id=question.id,
                text=question.question_text,
                type=question.question_type.value,
                order_index=question.order_index,
                total_responses=total,
                options=[
                    OptionStatistics(
                        id=option.id,
                        text=option.option_text,
                        label=option.option_label,
                        response_count=option_counts.get(option.id, 0),
                        percentage=percentage(option_counts.get(option.id, 0), total),
                    )
                    for option in question.options if option.is_active
                ],
            ))

        stats = SurveyStatistics(
            survey_id=survey.id,
            survey_title=survey.title,
            survey_description=survey.description,
            total_questions=len(question_statistics),
            total_responses=response_repository.count_for_survey(db, survey_id=survey_id),
            unique_users=unique_users,
            completion_rate=completion_rate(unique_users),
            created_date=survey.created_at,
            status=survey.status,
            question_statistics=question_statistics,
        )
        logger.debug(f"Survey {survey_id}: estadísticas calculadas ({stats.total_responses} respuestas)")
        return stats

    def global_statistics(self, db: Session, now: Optional[datetime] = None) -> GlobalStatistics:
        """
        Totales del sistema. surveysPastEndDate cuenta las ACTIVE cuya fecha
        de cierre ya pasó, es decir, las que el próximo barrido cerrará.
        """
        now = now or utcnow()
        by_status = survey_repository.count_by_status(db)
        return GlobalStatistics(
            total_surveys=sum(by_status.values()),
            total_surveys_including_deleted=survey_repository.count_all(db),
            surveys_accepting_responses=len(survey_repository.get_accepting_responses(db, now=now)),
            surveys_past_end_date=len(survey_repository.get_expired(db, now=now)),
            surveys_by_status={status.value: by_status.get(status, 0) for status in SurveyStatus},
            active_users=user_repository.count(db),
            admin_users=user_repository.count_by_role(db, role=UserRole.ADMIN),
            total_responses=response_repository.count(db),
        )


statistics_service = SurveyStatisticsService()
