from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.survey import Question, Option
from app.repositories.base import BaseRepository


class QuestionRepository(BaseRepository[Question]):
    """
    Borrados masivos de preguntas y opciones. Las lecturas van por
    Survey.questions, que ya carga cada pregunta con sus opciones.
    """

    def delete_options_for_surveys(self, db: Session, *, survey_ids: List[int]) -> int:
        if not survey_ids:
            return 0
        question_ids = select(Question.id).where(Question.survey_id.in_(survey_ids))
        return (
            db.query(Option)
            .filter(Option.question_id.in_(question_ids))
            .delete(synchronize_session=False)
        )

    def delete_for_surveys(self, db: Session, *, survey_ids: List[int]) -> int:
        if not survey_ids:
            return 0
        return (
            db.query(Question)
            .filter(Question.survey_id.in_(survey_ids))
            .delete(synchronize_session=False)
        )

    def delete_options_for_survey(self, db: Session, *, survey_id: int) -> int:
        return self.delete_options_for_surveys(db, survey_ids=[survey_id])

    def delete_for_survey(self, db: Session, *, survey_id: int) -> int:
        return self.delete_for_surveys(db, survey_ids=[survey_id])


question_repository = QuestionRepository(Question)
