"""
Survey System Models

This module defines the database models for the survey system: surveys,
their ordered questions, the lettered options of each question and the
responses users (or anonymous sessions) give to them.
"""

from enum import Enum
from datetime import datetime
from typing import Optional, List
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Float, Enum as SQLEnum
from sqlalchemy.orm import relationship

from app.db.base_class import Base
from app.models.base import AuditMixin
from app.core.timezone_utils import utcnow


class SurveyStatus(str, Enum):
    """Estados posibles de una encuesta"""
    DRAFT = "DRAFT"    # En borrador, editable y no visible
    ACTIVE = "ACTIVE"  # Publicada, acepta respuestas
    CLOSED = "CLOSED"  # Cerrada, visible pero sin nuevas respuestas

    @property
    def display_name(self) -> str:
        return _STATUS_DISPLAY_NAMES[self]

    @property
    def accepts_responses(self) -> bool:
        return self == SurveyStatus.ACTIVE

    @property
    def is_editable(self) -> bool:
        return self == SurveyStatus.DRAFT

    @property
    def is_visible(self) -> bool:
        return self in (SurveyStatus.ACTIVE, SurveyStatus.CLOSED)

    def can_transition_to(self, target: "SurveyStatus") -> bool:
        return target in _ALLOWED_TRANSITIONS[self]


_STATUS_DISPLAY_NAMES = {
    SurveyStatus.DRAFT: "Draft",
    SurveyStatus.ACTIVE: "Active",
    SurveyStatus.CLOSED: "Closed",
}

_ALLOWED_TRANSITIONS = {
    SurveyStatus.DRAFT: frozenset({SurveyStatus.ACTIVE, SurveyStatus.CLOSED}),
    SurveyStatus.ACTIVE: frozenset({SurveyStatus.CLOSED}),
    SurveyStatus.CLOSED: frozenset({SurveyStatus.ACTIVE}),
}


class QuestionType(str, Enum):
    """Tipos de preguntas; solo MULTIPLE_CHOICE está completamente soportado"""
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    MULTIPLE_SELECT = "MULTIPLE_SELECT"
    TEXT_INPUT = "TEXT_INPUT"
    NUMERIC_INPUT = "NUMERIC_INPUT"
    RATING_SCALE = "RATING_SCALE"

    @property
    def is_supported(self) -> bool:
        return self == QuestionType.MULTIPLE_CHOICE

    @property
    def requires_options(self) -> bool:
        return self in (QuestionType.MULTIPLE_CHOICE, QuestionType.MULTIPLE_SELECT)


MIN_OPTIONS = 2
MAX_OPTIONS = 10


def option_label_for(index: Optional[int]) -> str:
    """
    Etiqueta alfabética de una opción a partir de su posición 1-based.

    1..26 -> A..Z, 27 -> AA, 28 -> AB, ..., 53 -> BA.
    """
    if index is None or index <= 0:
        return "A"
    if index <= 26:
        return chr(ord("A") + index - 1)
    first = chr(ord("A") + (index - 1) // 26 - 1)
    second = chr(ord("A") + (index - 1) % 26)
    return first + second


class Survey(AuditMixin, Base):
    """
    Modelo para encuestas
    """
    __tablename__ = "surveys"

    # Nulo solo en datos corruptos; el barrido de limpieza los elimina
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    title = Column(String(200), nullable=False)
    description = Column(String(1000))

    status = Column(SQLEnum(SurveyStatus), default=SurveyStatus.DRAFT, nullable=False, index=True)

    # Control de tiempo
    start_date = Column(DateTime)
    end_date = Column(DateTime)

    # Configuración
    is_anonymous = Column(Boolean, default=True, nullable=False)
    allow_multiple_responses = Column(Boolean, default=False, nullable=False)

    # Relaciones
    creator = relationship("User", back_populates="surveys")
    questions = relationship(
        "Question",
        back_populates="survey",
        order_by="Question.order_index",
        cascade="all, delete-orphan"
    )
    responses = relationship("Response", back_populates="survey")

    @property
    def active_questions(self) -> List["Question"]:
        return [q for q in self.questions if q.is_active]

    @property
    def question_count(self) -> int:
        return len(self.active_questions)

    @property
    def creator_email(self) -> Optional[str]:
        return self.creator.email if self.creator else None

    def is_accepting_responses(self, now: Optional[datetime] = None) -> bool:
        """ACTIVE y dentro de [start_date, end_date]; un límite ausente queda abierto."""
        if self.status != SurveyStatus.ACTIVE:
            return False
        now = now or utcnow()
        if self.start_date and now < self.start_date:
            return False
        if self.end_date and now > self.end_date:
            return False
        return True

    def __repr__(self) -> str:
        return f"<Survey {self.id} '{self.title}' {self.status}>"


class Question(AuditMixin, Base):
    """
    Pregunta de una encuesta, ordenada 1..N dentro de la encuesta
    """
    __tablename__ = "questions"

    survey_id = Column(Integer, ForeignKey("surveys.id"), nullable=False, index=True)

    question_text = Column(String(500), nullable=False)
    question_type = Column(SQLEnum(QuestionType), default=QuestionType.MULTIPLE_CHOICE, nullable=False)
    order_index = Column(Integer, nullable=False)
    is_required = Column(Boolean, default=True, nullable=False)

    # Relaciones
    survey = relationship("Survey", back_populates="questions")
    options = relationship(
        "Option",
        back_populates="question",
        order_by="Option.order_index",
        cascade="all, delete-orphan"
    )

    def add_option(self, text: str, description: Optional[str] = None) -> "Option":
        option = Option(option_text=text, description=description)
        option.set_order(len(self.options) + 1)
        self.options.append(option)
        return option

    def remove_option(self, option: "Option") -> None:
        self.options.remove(option)
        self.reindex_options()

    def reindex_options(self) -> None:
        ordered = sorted(self.options, key=lambda o: o.order_index or 0)
        for position, option in enumerate(ordered, start=1):
            option.set_order(position)

    def has_valid_option_count(self) -> bool:
        if self.question_type != QuestionType.MULTIPLE_CHOICE:
            return True
        return MIN_OPTIONS <= len(self.options) <= MAX_OPTIONS

    def __repr__(self) -> str:
        return f"<Question {self.id} #{self.order_index} survey={self.survey_id}>"


class Option(AuditMixin, Base):
    """
    Opción de respuesta con etiqueta alfabética derivada del orden
    """
    __tablename__ = "options"

    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False, index=True)

    option_text = Column(String(200), nullable=False)
    order_index = Column(Integer, nullable=False)
    option_label = Column(String(5))
    is_correct = Column(Boolean, default=False, nullable=False)
    description = Column(String(500))

    # Relaciones
    question = relationship("Question", back_populates="options")

    def set_order(self, index: int) -> None:
        self.order_index = index
        self.option_label = option_label_for(index)

    def __repr__(self) -> str:
        return f"<Option {self.option_label} '{self.option_text}'>"


class Response(AuditMixin, Base):
    """
    Respuesta a una pregunta; user_id nulo significa respuesta anónima
    """
    __tablename__ = "responses"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    survey_id = Column(Integer, ForeignKey("surveys.id"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False, index=True)
    selected_option_id = Column(Integer, ForeignKey("options.id"), nullable=True, index=True)

    # Valores de respaldo cuando no hay opción seleccionada
    text_response = Column(String(1000))
    numeric_response = Column(Float)

    response_date = Column(DateTime, default=utcnow, nullable=False)

    # Metadatos de la petición
    ip_address = Column(String(45))
    user_agent = Column(String(500))
    session_id = Column(String(100))  # Clave de deduplicación para anónimos

    # Relaciones
    user = relationship("User", back_populates="responses")
    survey = relationship("Survey", back_populates="responses")
    question = relationship("Question")
    selected_option = relationship("Option")

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    def __repr__(self) -> str:
        return f"<Response {self.id} survey={self.survey_id} question={self.question_id}>"
