"""
Survey Repository

This module provides database operations for surveys: visibility-filtered
lookups, listings, the finders used by the maintenance sweep and the bulk
statements that act on them.
"""

from typing import List, Optional, Dict
from datetime import datetime
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import and_, or_, func, select, exists

from app.models.base import RecordState
from app.models.survey import Survey, Question, Response, SurveyStatus
from app.models.user import User
from app.repositories.base import BaseRepository
import logging

logger = logging.getLogger(__name__)


class SurveyRepository(BaseRepository[Survey]):
    """Repository para operaciones de encuestas"""

    # ============= Lookups =============

    def get_with_questions(
        self,
        db: Session,
        survey_id: int,
        *,
        include_deleted: bool = False
    ) -> Optional[Survey]:
        """Obtener una encuesta con preguntas y opciones cargadas"""
        return (
            self.query(db, include_deleted=include_deleted)
            .filter(Survey.id == survey_id)
            .options(selectinload(Survey.questions).selectinload(Question.options))
            .first()
        )

    def get_active(self, db: Session) -> List[Survey]:
        """Encuestas visibles, más recientes primero"""
        return (
            self.query(db)
            .options(selectinload(Survey.creator), selectinload(Survey.questions))
            .order_by(Survey.created_at.desc(), Survey.id.desc())
            .all()
        )

    def get_all_including_deleted(self, db: Session) -> List[Survey]:
        return (
            self.query(db, include_deleted=True)
            .options(selectinload(Survey.creator), selectinload(Survey.questions))
            .order_by(Survey.created_at.desc(), Survey.id.desc())
            .all()
        )

    def get_by_creator(self, db: Session, *, creator_id: int) -> List[Survey]:
        return (
            self.query(db)
            .options(selectinload(Survey.questions))
            .filter(Survey.creator_id == creator_id)
            .order_by(Survey.created_at.desc(), Survey.id.desc())
            .all()
        )

    def get_by_status(self, db: Session, *, status: SurveyStatus) -> List[Survey]:
        return self.query(db).filter(Survey.status == status).order_by(Survey.id).all()

    def get_accepting_responses(self, db: Session, *, now: datetime) -> List[Survey]:
        """ACTIVE y con la fecha actual dentro de la ventana [start_date, end_date]"""
        return (
            self.query(db)
            .filter(
                Survey.status == SurveyStatus.ACTIVE,
                or_(Survey.start_date.is_(None), Survey.start_date <= now),
                or_(Survey.end_date.is_(None), Survey.end_date >= now),
            )
            .order_by(Survey.id)
            .all()
        )

    def get_expired(self, db: Session, *, now: datetime) -> List[Survey]:
        return (
            self.query(db)
            .filter(Survey.status == SurveyStatus.ACTIVE, Survey.end_date < now)
            .order_by(Survey.id)
            .all()
        )

    def search(self, db: Session, *, term: str) -> List[Survey]:
        """Búsqueda en título y descripción sin distinguir mayúsculas"""
        pattern = f"%{term.strip().lower()}%"
        return (
            self.query(db)
            .filter(or_(
                func.lower(Survey.title).like(pattern),
                func.lower(Survey.description).like(pattern),
            ))
            .order_by(Survey.id)
            .all()
        )

    # ============= Statistics =============

    def count_by_status(self, db: Session) -> Dict[SurveyStatus, int]:
        rows = (
            db.query(Survey.status, func.count(Survey.id))
            .filter(Survey.record_state == RecordState.ACTIVE)
            .group_by(Survey.status)
            .all()
        )
        counts = {status: 0 for status in SurveyStatus}
        counts.update({status: total for status, total in rows})
        return counts

    def count_all(self, db: Session) -> int:
        """Total de encuestas, incluidas las borradas lógicamente"""
        return self.count(db, include_deleted=True)

    # ============= Cleanup finders =============

    def _has_active_questions(self):
        return exists().where(and_(
            Question.survey_id == Survey.id,
            Question.record_state == RecordState.ACTIVE,
        ))

    def _has_responses(self):
        return exists().where(and_(
            Response.survey_id == Survey.id,
            Response.record_state == RecordState.ACTIVE,
        ))

    def _inactive_creator_ids(self):
        return select(User.id).where(User.record_state == RecordState.DELETED)

    def find_without_creator(self, db: Session) -> List[Survey]:
        return (
            db.query(Survey)
            .filter(Survey.creator_id.is_(None))
            .order_by(Survey.id)
            .all()
        )

    def find_with_inactive_creator(self, db: Session) -> List[Survey]:
        return (
            self.query(db)
            .filter(Survey.creator_id.in_(self._inactive_creator_ids()))
            .order_by(Survey.id)
            .all()
        )

    def find_without_questions(self, db: Session) -> List[Survey]:
        return self.query(db).filter(~self._has_active_questions()).order_by(Survey.id).all()

    def find_old_without_responses(self, db: Session, *, cutoff: datetime) -> List[Survey]:
        return (
            self.query(db)
            .filter(Survey.created_at < cutoff, ~self._has_responses())
            .order_by(Survey.id)
            .all()
        )

    # ============= Cleanup bulk statements =============

    def ids_without_creator(self, db: Session) -> List[int]:
        return [row.id for row in db.query(Survey.id).filter(Survey.creator_id.is_(None)).all()]

    def delete_by_ids(self, db: Session, *, survey_ids: List[int]) -> int:
        if not survey_ids:
            return 0
        return (
            db.query(Survey)
            .filter(Survey.id.in_(survey_ids))
            .delete(synchronize_session=False)
        )

    def _soft_delete_where(self, db: Session, *criteria) -> int:
        return (
            db.query(Survey)
            .filter(Survey.record_state == RecordState.ACTIVE, *criteria)
            .update({Survey.record_state: RecordState.DELETED}, synchronize_session=False)
        )

    def soft_delete_with_inactive_creator(self, db: Session) -> int:
        return self._soft_delete_where(db, Survey.creator_id.in_(self._inactive_creator_ids()))

    def soft_delete_without_questions(self, db: Session) -> int:
        return self._soft_delete_where(db, ~self._has_active_questions())

    def soft_delete_old_without_responses(self, db: Session, *, cutoff: datetime) -> int:
        return self._soft_delete_where(db, Survey.created_at < cutoff, ~self._has_responses())

    def close_expired(self, db: Session, *, now: datetime) -> int:
        return (
            db.query(Survey)
            .filter(
                Survey.record_state == RecordState.ACTIVE,
                Survey.status == SurveyStatus.ACTIVE,
                Survey.end_date.isnot(None),
                Survey.end_date < now,
            )
            .update({Survey.status: SurveyStatus.CLOSED}, synchronize_session=False)
        )

    def activate_scheduled(self, db: Session, *, now: datetime) -> int:
        return (
            db.query(Survey)
            .filter(
                Survey.record_state == RecordState.ACTIVE,
                Survey.status == SurveyStatus.DRAFT,
                Survey.start_date.isnot(None),
                Survey.start_date <= now,
            )
            .update({Survey.status: SurveyStatus.ACTIVE}, synchronize_session=False)
        )


survey_repository = SurveyRepository(Survey)
