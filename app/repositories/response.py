from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.base import RecordState
from app.models.survey import Response
from app.repositories.base import BaseRepository


class ResponseRepository(BaseRepository[Response]):

    def count_for_survey(self, db: Session, *, survey_id: int) -> int:
        return self.query(db).filter(Response.survey_id == survey_id).count()

    def count_distinct_users_for_survey(self, db: Session, *, survey_id: int) -> int:
        """Usuarios distintos; las respuestas anónimas (user_id nulo) no cuentan"""
        return (
            db.query(func.count(func.distinct(Response.user_id)))
            .filter(
                Response.survey_id == survey_id,
                Response.user_id.isnot(None),
                Response.record_state == RecordState.ACTIVE,
            )
            .scalar()
        ) or 0

    def distinct_users_by_survey(self, db: Session) -> Dict[int, int]:
        rows = (
            self.query(db)
            .with_entities(Response.survey_id, func.count(func.distinct(Response.user_id)))
            .filter(Response.user_id.isnot(None))
            .group_by(Response.survey_id)
            .all()
        )
        return {survey_id: total for survey_id, total in rows}

    def count_for_question(self, db: Session, *, question_id: int) -> int:
        return self.query(db).filter(Response.question_id == question_id).count()

    def count_for_option(self, db: Session, *, option_id: int) -> int:
        return self.query(db).filter(Response.selected_option_id == option_id).count()

    def counts_by_option_for_survey(self, db: Session, *, survey_id: int) -> Dict[int, int]:
        rows = (
            self.query(db)
            .with_entities(Response.selected_option_id, func.count(Response.id))
            .filter(Response.survey_id == survey_id, Response.selected_option_id.isnot(None))
            .group_by(Response.selected_option_id)
            .all()
        )
        return {option_id: total for option_id, total in rows}

    def counts_by_question_for_survey(self, db: Session, *, survey_id: int) -> Dict[int, int]:
        rows = (
            self.query(db)
            .with_entities(Response.question_id, func.count(Response.id))
            .filter(Response.survey_id == survey_id)
            .group_by(Response.question_id)
            .all()
        )
        return {question_id: total for question_id, total in rows}

    def user_has_responded(self, db: Session, *, user_id: int, survey_id: int) -> bool:
        query = self.query(db).filter(Response.user_id == user_id, Response.survey_id == survey_id)
        return db.query(query.exists()).scalar()

    def session_has_responded(self, db: Session, *, session_id: str, survey_id: int) -> bool:
        query = self.query(db).filter(Response.session_id == session_id, Response.survey_id == survey_id)
        return db.query(query.exists()).scalar()

    def surveys_answered_by(self, db: Session, *, user_id: int) -> List[int]:
        rows = (
            self.query(db)
            .with_entities(Response.survey_id)
            .filter(Response.user_id == user_id)
            .distinct()
            .all()
        )
        return [row.survey_id for row in rows]

    def delete_for_surveys(self, db: Session, *, survey_ids: List[int]) -> int:
        if not survey_ids:
            return 0
        return (
            db.query(Response)
            .filter(Response.survey_id.in_(survey_ids))
            .delete(synchronize_session=False)
        )

    def delete_for_survey(self, db: Session, *, survey_id: int) -> int:
        return self.delete_for_surveys(db, survey_ids=[survey_id])


response_repository = ResponseRepository(Response)
