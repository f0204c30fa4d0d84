from app.models.base import RecordState, AuditMixin
from app.models.user import User, UserRole
from app.models.survey import (
    Survey, Question, Option, Response,
    SurveyStatus, QuestionType, option_label_for
)
