from app.schemas.common import CamelModel, ErrorResponse
from app.schemas.user import (
    LoginRequest, RegisterRequest, UserUpdate, PasswordChange, RoleUpdate,
    UserProfile, CurrentUser, AuthResponse
)
from app.schemas.survey import (
    QuestionInput,
    SurveyCreate,
    SurveyUpdate,
    StatusUpdate,
    ResponseSubmit,
    SurveySummary,
    SurveyList,
    SurveyDetail,
    SurveyDetailResponse,
    SubmissionResponse
)
from app.schemas.statistics import SurveyStatistics, GlobalStatistics, CleanupReport
