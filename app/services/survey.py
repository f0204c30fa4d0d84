"""
Survey Service

This module provides business logic for the survey lifecycle: creation with
nested questions, status transitions, the delete-aggregate operation that
owns the responses -> options -> questions -> survey ordering, question set
replacement and the on-demand maintenance sweep.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple, Union
import logging

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import (
    ValidationError, SurveyNotFoundError, InvalidStatusTransitionError,
    SurveyDeletionError, PermissionDeniedError
)
from app.core.timezone_utils import utcnow, to_naive_utc
from app.models.survey import Survey, Question, SurveyStatus, QuestionType, MIN_OPTIONS, MAX_OPTIONS
from app.models.user import User
from app.repositories.survey import survey_repository
from app.repositories.question import question_repository
from app.repositories.response import response_repository
from app.schemas.survey import SurveyCreate, SurveyUpdate, QuestionInput, SurveySummary
from app.schemas.statistics import CleanupReport
from app.services.user import user_service

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
QUESTION_MIN_LENGTH = 5
QUESTION_MAX_LENGTH = 500
OPTION_MAX_LENGTH = 200


# ============= Transition results =============

@dataclass(frozen=True)
class TransitionOk:
    survey: Survey


@dataclass(frozen=True)
class InvalidTransition:
    current: SurveyStatus
    target: SurveyStatus

    @property
    def message(self) -> str:
        return f"Cannot change survey status from {self.current.value} to {self.target.value}"


TransitionResult = Union[TransitionOk, InvalidTransition]


@dataclass(frozen=True)
class SurveyDeletion:
    deleted_survey_id: int
    responses_deleted: int
    options_deleted: int
    questions_deleted: int


class SurveyService:
    """Service for survey business logic"""

    # ============= Lookups =============

    def get_survey(self, db: Session, survey_id: int, *, include_deleted: bool = False) -> Survey:
        survey = survey_repository.get_with_questions(db, survey_id, include_deleted=include_deleted)
        if survey is None:
            raise SurveyNotFoundError(survey_id)
        return survey

    def ensure_can_modify(self, survey: Survey, user: User) -> None:
        """Solo el creador o un administrador pueden modificar la encuesta"""
        if user.is_admin or survey.creator_id == user.id:
            return
        logger.warning(f"Usuario {user.id} intentó modificar la encuesta {survey.id} sin permiso")
        raise PermissionDeniedError("Only the survey creator or an administrator can modify this survey")

    # ============= Survey Management =============

    def resolve_creator(self, db: Session, current_user: User, creator_email: Optional[str]) -> User:
        """
        El creador es el usuario autenticado; un administrador puede crear
        en nombre de otro usuario mediante creatorEmail.
        """
        if creator_email and creator_email.strip() and current_user.is_admin:
            creator = user_service.get_by_email(db, creator_email)
            if creator is None or not creator.is_active:
                raise ValidationError(f"Creator not found: {creator_email.strip()}")
            return creator
        return current_user

    def create_survey(self, db: Session, survey_in: SurveyCreate, creator: User) -> Survey:
        """
        Crea una encuesta ACTIVE con sus preguntas de opción múltiple.

        Las preguntas u opciones en blanco se omiten; el orden es 1-based y
        contiguo sobre las que quedan.
        """
        title = self._validate_title(survey_in.title)
        now = utcnow()
        survey = Survey(
            title=title,
            description=self._compose_description(survey_in.description, survey_in.category),
            creator=creator,
            status=SurveyStatus.ACTIVE,
            start_date=to_naive_utc(survey_in.start_date) or now,
            end_date=to_naive_utc(survey_in.end_date),
            is_anonymous=True,
            allow_multiple_responses=False,
        )
        if survey.end_date and survey.end_date < survey.start_date:
            raise ValidationError("End date must be after start date")

        try:
            survey_repository.add(db, survey)
            self._add_questions(survey, survey_in.questions)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error creando encuesta: {e}")
            raise
        db.refresh(survey)
        logger.info(f"Survey {survey.id} created by {creator.email} with {survey.question_count} questions")
        return survey

    def update_survey(self, db: Session, survey_id: int, survey_in: SurveyUpdate, user: User) -> Survey:
        """
        Actualiza metadatos y, si se envía questions, reemplaza el conjunto
        completo de preguntas en la misma transacción.
        """
        survey = self.get_survey(db, survey_id)
        self.ensure_can_modify(survey, user)

        try:
            if survey_in.title is not None:
                survey.title = self._validate_title(survey_in.title)
            # Una descripción explícita manda; la categoría sola la sustituye
            if survey_in.description is not None:
                survey.description = self._validate_description(survey_in.description.strip())
            elif survey_in.category and survey_in.category.strip():
                survey.description = self._validate_description(f"Category: {survey_in.category.strip()}")

            if survey_in.questions is not None:
                self._replace_questions(db, survey, survey_in.questions)

            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error actualizando encuesta {survey_id}: {e}")
            raise
        db.refresh(survey)
        logger.info(f"Survey {survey.id} updated")
        return survey

    def _replace_questions(self, db: Session, survey: Survey, questions: List[QuestionInput]) -> None:
        # Las respuestas apuntan a las preguntas antiguas y bloquearían su borrado
        responses = response_repository.delete_for_survey(db, survey_id=survey.id)
        options = question_repository.delete_options_for_survey(db, survey_id=survey.id)
        removed = question_repository.delete_for_survey(db, survey_id=survey.id)
        logger.info(
            f"Survey {survey.id}: reemplazo de preguntas "
            f"({responses} respuestas, {options} opciones, {removed} preguntas eliminadas)"
        )
        for question in list(survey.questions):
            db.expunge(question)
        db.expire(survey, ["questions"])
        self._add_questions(survey, questions)
        db.flush()

    def _add_questions(self, survey: Survey, questions: List[QuestionInput]) -> None:
        order_index = 0
        for question_in in questions or []:
            text = (question_in.question or "").strip()
            if not text:
                continue
            if not QUESTION_MIN_LENGTH <= len(text) <= QUESTION_MAX_LENGTH:
                raise ValidationError(
                    f"Question text must be between {QUESTION_MIN_LENGTH} and {QUESTION_MAX_LENGTH} characters"
                )
            order_index += 1
            question = Question(
                question_text=text,
                question_type=QuestionType.MULTIPLE_CHOICE,
                order_index=order_index,
                is_required=True,
            )
            for option_text in question_in.options:
                option_text = (option_text or "").strip()
                if not option_text:
                    continue
                if len(option_text) > OPTION_MAX_LENGTH:
                    raise ValidationError(f"Option text must be at most {OPTION_MAX_LENGTH} characters")
                question.add_option(option_text)
            if not question.has_valid_option_count():
                raise ValidationError(
                    f"Question {order_index} needs between {MIN_OPTIONS} and {MAX_OPTIONS} options"
                )
            survey.questions.append(question)

    def _validate_title(self, title: Optional[str]) -> str:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Survey title is required")
        if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
            raise ValidationError(
                f"Survey title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters"
            )
        return title

    def _compose_description(self, description: Optional[str], category: Optional[str]) -> str:
        description = (description or "").strip()
        category = (category or "").strip()
        if category:
            category_info = f"Category: {category}"
            description = f"{description} | {category_info}" if description else category_info
        return self._validate_description(description)

    def _validate_description(self, description: str) -> str:
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError(f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters")
        return description

    # ============= Lifecycle =============

    def transition(
        self,
        db: Session,
        survey: Survey,
        target: SurveyStatus,
        now: Optional[datetime] = None
    ) -> TransitionResult:
        """
        Cambia el estado si la tabla de transiciones lo permite.

        Returns:
            TransitionOk con la encuesta actualizada, o InvalidTransition sin
            modificar nada
        """
        current = survey.status
        if not current.can_transition_to(target):
            logger.warning(f"Survey {survey.id}: transición inválida {current.value} -> {target.value}")
            return InvalidTransition(current=current, target=target)

        now = now or utcnow()
        survey.status = target
        if target == SurveyStatus.ACTIVE and survey.start_date is None:
            survey.start_date = now
        if target == SurveyStatus.ACTIVE and survey.end_date is not None and survey.end_date < now:
            # Reabrir una encuesta cerrada: la fecha de cierre anterior ya no aplica
            survey.end_date = None
        if target == SurveyStatus.CLOSED and survey.end_date is None:
            survey.end_date = now
        db.commit()
        db.refresh(survey)
        logger.info(f"Survey {survey.id} status changed {current.value} -> {target.value}")
        return TransitionOk(survey=survey)

    def change_status(self, db: Session, survey_id: int, target: SurveyStatus, user: User) -> Survey:
        survey = self.get_survey(db, survey_id)
        self.ensure_can_modify(survey, user)
        result = self.transition(db, survey, target)
        if isinstance(result, InvalidTransition):
            raise InvalidStatusTransitionError(result.message)
        return result.survey

    # ============= Deletion =============

    def delete_survey(self, db: Session, survey_id: int, user: Optional[User] = None) -> SurveyDeletion:
        """
        Borra la encuesta y todo lo que la referencia, en orden:
        respuestas, opciones, preguntas y la propia encuesta.

        Todo ocurre en una transacción; cualquier fallo la revierte entera.

        Raises:
            SurveyNotFoundError: La encuesta no existe
            SurveyDeletionError: Algún paso falló y se hizo rollback
        """
        survey = survey_repository.get(db, survey_id, include_deleted=True)
        if survey is None:
            raise SurveyNotFoundError(survey_id)
        if user is not None:
            self.ensure_can_modify(survey, user)

        try:
            responses, options, questions = self._delete_aggregates(db, [survey_id])
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error eliminando encuesta {survey_id}: {e}", exc_info=True)
            raise SurveyDeletionError(f"Failed to delete survey {survey_id}: {e}") from e
        db.expire_all()
        logger.info(
            f"Survey {survey_id} deleted ({responses} responses, {options} options, {questions} questions)"
        )
        return SurveyDeletion(
            deleted_survey_id=survey_id,
            responses_deleted=responses,
            options_deleted=options,
            questions_deleted=questions,
        )

    def _delete_aggregates(self, db: Session, survey_ids: List[int]) -> Tuple[int, int, int]:
        responses = response_repository.delete_for_surveys(db, survey_ids=survey_ids)
        options = question_repository.delete_options_for_surveys(db, survey_ids=survey_ids)
        questions = question_repository.delete_for_surveys(db, survey_ids=survey_ids)
        survey_repository.delete_by_ids(db, survey_ids=survey_ids)
        return responses, options, questions

    # ============= Maintenance =============

    def run_cleanup(
        self,
        db: Session,
        days_old: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> CleanupReport:
        """
        Barrido de mantenimiento bajo demanda.

        Cada paso se confirma por separado; si uno falla, los anteriores se
        conservan y el informe vuelve con success=False.
        """
        if days_old is None:
            days_old = get_settings().CLEANUP_DAYS_OLD
        if days_old < 0:
            raise ValidationError("daysOld must be zero or positive")

        now = now or utcnow()
        report = CleanupReport(days_old=days_old)

        try:
            report.orphaned_deleted = self.delete_orphaned(db)
            report.inactive_creator_soft_deleted = self.soft_delete_with_inactive_creator(db)
            report.without_questions_soft_deleted = self.soft_delete_without_questions(db)
            report.old_without_responses_soft_deleted = self.soft_delete_old_without_responses(
                db, days_old=days_old, now=now
            )

            report.expired_closed = survey_repository.close_expired(db, now=now)
            db.commit()

            report.scheduled_activated = survey_repository.activate_scheduled(db, now=now)
            db.commit()

            report.success = True
            report.message = "Database cleanup completed successfully"
        except Exception as e:
            db.rollback()
            logger.error(f"Error en el barrido de limpieza: {e}", exc_info=True)
            report.success = False
            report.message = f"Database cleanup failed: {e}"

        report.refresh_total()
        db.expire_all()
        logger.info(f"Cleanup finalizado: {report.total_processed} encuestas procesadas (success={report.success})")
        return report

    def delete_orphaned(self, db: Session) -> int:
        """Borra físicamente las encuestas sin creador junto con su contenido"""
        orphan_ids = survey_repository.ids_without_creator(db)
        if orphan_ids:
            try:
                self._delete_aggregates(db, orphan_ids)
                db.commit()
            except Exception as e:
                db.rollback()
                logger.error(f"Error eliminando encuestas huérfanas: {e}", exc_info=True)
                raise SurveyDeletionError(f"Failed to delete orphaned surveys: {e}") from e
            db.expire_all()
        logger.info(f"{len(orphan_ids)} encuestas huérfanas eliminadas")
        return len(orphan_ids)

    def soft_delete_with_inactive_creator(self, db: Session) -> int:
        return self._run_soft_delete(db, "con creador inactivo", survey_repository.soft_delete_with_inactive_creator)

    def soft_delete_without_questions(self, db: Session) -> int:
        return self._run_soft_delete(db, "sin preguntas", survey_repository.soft_delete_without_questions)

    def soft_delete_old_without_responses(
        self,
        db: Session,
        days_old: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> int:
        if days_old is None:
            days_old = get_settings().CLEANUP_DAYS_OLD
        if days_old < 0:
            raise ValidationError("daysOld must be zero or positive")
        cutoff = (now or utcnow()) - timedelta(days=days_old)
        return self._run_soft_delete(
            db,
            f"antiguas sin respuestas ({days_old} días)",
            lambda session: survey_repository.soft_delete_old_without_responses(session, cutoff=cutoff),
        )

    def _run_soft_delete(self, db: Session, category: str, statement) -> int:
        try:
            count = statement(db)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error en soft delete de encuestas {category}: {e}", exc_info=True)
            raise
        db.expire_all()
        logger.info(f"{count} encuestas {category} marcadas como borradas")
        return count

    def find_cleanup_candidates(
        self,
        db: Session,
        days_old: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, List[Survey]]:
        """Vista previa de las cuatro categorías del barrido, sin modificar nada"""
        if days_old is None:
            days_old = get_settings().CLEANUP_DAYS_OLD
        cutoff = (now or utcnow()) - timedelta(days=days_old)
        return {
            "orphaned": survey_repository.find_without_creator(db),
            "inactive_creator": survey_repository.find_with_inactive_creator(db),
            "without_questions": survey_repository.find_without_questions(db),
            "old_without_responses": survey_repository.find_old_without_responses(db, cutoff=cutoff),
        }

    # ============= Listings =============

    def list_surveys(
        self,
        db: Session,
        viewer: Optional[User] = None,
        include_deleted: bool = False
    ) -> List[SurveySummary]:
        if include_deleted:
            surveys = survey_repository.get_all_including_deleted(db)
        else:
            surveys = survey_repository.get_active(db)
        return self.summarize(db, surveys, viewer)

    def list_by_status(self, db: Session, status: SurveyStatus) -> List[SurveySummary]:
        return self.summarize(db, survey_repository.get_by_status(db, status=status))

    def search(self, db: Session, term: str) -> List[SurveySummary]:
        return self.summarize(db, survey_repository.search(db, term=term))

    def list_by_creator(self, db: Session, creator: User) -> List[SurveySummary]:
        surveys = survey_repository.get_by_creator(db, creator_id=creator.id)
        return self.summarize(db, surveys, creator)

    def summarize(
        self,
        db: Session,
        surveys: List[Survey],
        viewer: Optional[User] = None
    ) -> List[SurveySummary]:
        distinct_users = response_repository.distinct_users_by_survey(db)
        answered = set(response_repository.surveys_answered_by(db, user_id=viewer.id)) if viewer else set()
        return [
            self.to_summary(
                survey,
                response_count=distinct_users.get(survey.id, 0),
                is_completed=survey.id in answered,
            )
            for survey in surveys
        ]

    def to_summary(self, survey: Survey, response_count: int = 0, is_completed: bool = False) -> SurveySummary:
        return SurveySummary(
            id=survey.id,
            title=survey.title,
            description=survey.description,
            status=survey.status,
            creator_id=survey.creator_id,
            creator_email=survey.creator_email or "NO_CREATOR",
            question_count=survey.question_count,
            response_count=response_count,
            created_date=survey.created_at,
            is_active=survey.is_active,
            is_completed=is_completed,
        )


survey_service = SurveyService()
