"""
Response Service

Records answers to a survey. Multiple-choice answers are matched against the
question's option texts; an answer that matches no option is kept as free
text instead of being rejected.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import SurveyNotFoundError, SurveyClosedError, DuplicateResponseError
from app.core.timezone_utils import utcnow
from app.models.survey import Question, Option, Response, QuestionType
from app.models.user import User
from app.repositories.response import response_repository
from app.repositories.survey import survey_repository

logger = logging.getLogger(__name__)

TEXT_RESPONSE_MAX_LENGTH = 1000
NUMERIC_TYPES = (QuestionType.NUMERIC_INPUT, QuestionType.RATING_SCALE)


@dataclass(frozen=True)
class Matched:
    option: Option


@dataclass(frozen=True)
class Unmatched:
    text: str


OptionMatch = Union[Matched, Unmatched]


def match_option(question: Question, value: Any) -> OptionMatch:
    """Busca la opción cuyo texto coincide con la respuesta enviada."""
    raw = str(value) if value is not None else ""
    text = raw.strip()
    for option in question.options:
        if option.is_active and option.option_text.strip() == text:
            return Matched(option)
    return Unmatched(raw)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


@dataclass
class AnswerOutcome:
    question_id: int
    response_id: int
    matched: bool


@dataclass
class SubmissionResult:
    survey_id: int
    outcomes: List[AnswerOutcome] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def response_count(self) -> int:
        return len(self.outcomes)


class ResponseService:

    def submit(
        self,
        db: Session,
        survey_id: int,
        answers: Dict[str, Any],
        user: Optional[User] = None,
        respondent_name: Optional[str] = None,
        session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SubmissionResult:
        """
        Guarda una respuesta por cada pregunta conocida de la encuesta.

        Args:
            answers: {questionId: respuesta}; las claves desconocidas se ignoran
            user: Usuario autenticado, None para respuestas anónimas

        Raises:
            SurveyNotFoundError: La encuesta no existe o está borrada
            SurveyClosedError: La encuesta no acepta respuestas
            DuplicateResponseError: Ya respondió y no se permiten múltiples
        """
        survey = survey_repository.get_with_questions(db, survey_id)
        if survey is None:
            raise SurveyNotFoundError(survey_id)

        now = utcnow()
        if not survey.is_accepting_responses(now):
            raise SurveyClosedError(f"Survey {survey_id} is not accepting responses")

        if not survey.allow_multiple_responses:
            if user is not None and response_repository.user_has_responded(
                db, user_id=user.id, survey_id=survey_id
            ):
                raise DuplicateResponseError("You have already responded to this survey")
            if user is None and session_id and response_repository.session_has_responded(
                db, session_id=session_id, survey_id=survey_id
            ):
                raise DuplicateResponseError("This session has already responded to this survey")

        questions = {q.id: q for q in survey.active_questions}
        result = SubmissionResult(survey_id=survey_id)
        pending = []

        try:
            for key, value in (answers or {}).items():
                question = self._resolve_question(questions, key)
                if question is None:
                    logger.debug(f"Survey {survey_id}: pregunta desconocida '{key}', se omite")
                    result.skipped.append(str(key))
                    continue

                response = Response(
                    user_id=user.id if user else None,
                    survey_id=survey_id,
                    question_id=question.id,
                    response_date=now,
                    ip_address=ip_address[:45] if ip_address else None,
                    user_agent=user_agent[:500] if user_agent else None,
                    session_id=session_id,
                )
                matched = self._apply_answer(response, question, value)
                response_repository.add(db, response)
                pending.append((response, question.id, matched))

            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error guardando respuestas de la encuesta {survey_id}: {e}")
            raise

        result.outcomes = [
            AnswerOutcome(question_id=question_id, response_id=response.id, matched=matched)
            for response, question_id, matched in pending
        ]
        logger.info(
            f"Survey {survey_id}: {result.response_count} respuestas guardadas"
            f" (respondent={respondent_name or 'anonymous'})"
        )
        return result

    def _resolve_question(self, questions: Dict[int, Question], key: Any) -> Optional[Question]:
        try:
            question_id = int(key)
        except (TypeError, ValueError):
            return None
        return questions.get(question_id)

    def _apply_answer(self, response: Response, question: Question, value: Any) -> bool:
        if question.question_type == QuestionType.MULTIPLE_CHOICE:
            match = match_option(question, value)
            if isinstance(match, Matched):
                response.selected_option_id = match.option.id
                return True
            response.text_response = match.text[:TEXT_RESPONSE_MAX_LENGTH]
            return False

        response.text_response = str(value)[:TEXT_RESPONSE_MAX_LENGTH]
        if question.question_type in NUMERIC_TYPES:
            response.numeric_response = _as_number(value)
        return False


response_service = ResponseService()
