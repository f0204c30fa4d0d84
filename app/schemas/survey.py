"""
Survey Schemas

Request and response payloads for survey management. JSON keys are
camelCase; Python attributes stay snake_case.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from app.models.survey import SurveyStatus
from app.schemas.common import CamelModel, TimestampedResponse


# ============= Requests =============

class QuestionInput(CamelModel):
    """Schema para una pregunta de opción múltiple con sus opciones en orden"""
    question: Optional[str] = None
    options: List[Optional[str]] = []

    @field_validator("options", mode="before")
    def none_as_empty(cls, v):
        return v or []


class SurveyCreate(CamelModel):
    """Schema para crear una encuesta con preguntas anidadas"""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    creator_email: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    questions: List[QuestionInput] = []

    @field_validator("questions", mode="before")
    def none_as_empty(cls, v):
        return v or []


class SurveyUpdate(CamelModel):
    """Schema para actualizar; questions=None conserva las preguntas actuales"""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    questions: Optional[List[QuestionInput]] = None


class StatusUpdate(CamelModel):
    status: SurveyStatus


class ResponseSubmit(CamelModel):
    """Schema para enviar respuestas: {questionId: respuesta}"""
    survey_id: int
    responses: Dict[str, Any] = Field(default_factory=dict)
    respondent_name: Optional[str] = None
    session_id: Optional[str] = Field(default=None, max_length=100)


# ============= Responses =============

class SurveySummary(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    status: SurveyStatus
    creator_id: Optional[int] = None
    creator_email: Optional[str] = None
    question_count: int = 0
    response_count: int = 0
    created_date: Optional[datetime] = None
    is_active: bool = True
    is_completed: bool = False


class SurveyList(TimestampedResponse):
    message: str
    total_surveys_count: int
    surveys: List[SurveySummary]


class SurveyMutationResponse(CamelModel):
    success: bool = True
    message: str
    survey: SurveySummary


class SurveyDeleteResponse(CamelModel):
    success: bool = True
    message: str
    deleted_survey_id: int


class QuestionDetail(CamelModel):
    id: int
    question: str
    type: str
    required: bool
    order_index: int
    options: List[str]
    option_labels: List[str] = []


class SurveyDetail(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    status: SurveyStatus
    created_date: Optional[datetime] = None
    creator_email: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_accepting_responses: bool
    questions: List[QuestionDetail]


class SurveyDetailResponse(CamelModel):
    success: bool = True
    survey: SurveyDetail


class SubmissionResponse(CamelModel):
    success: bool = True
    message: str
    survey_id: int
    response_count: int
