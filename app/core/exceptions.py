"""
Domain exceptions

Services raise these on invariant violations; main.py turns them into JSON
error bodies using ``status_code`` and ``error_type``.
"""

from fastapi import status


class SurveyAppError(Exception):
    """Base de todos los errores de dominio."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "INTERNAL_ERROR"

    def __init__(self, message: str, error_type: str = None):
        super().__init__(message)
        self.message = message
        if error_type:
            self.error_type = error_type


class ValidationError(SurveyAppError):
    """Raised when input fails field-level validation."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "VALIDATION_ERROR"


class NotFoundError(SurveyAppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_type = "NOT_FOUND"


class SurveyNotFoundError(NotFoundError):
    error_type = "SURVEY_NOT_FOUND"

    def __init__(self, survey_id: int):
        super().__init__(f"Survey not found: {survey_id}")
        self.survey_id = survey_id


class ConflictError(SurveyAppError):
    status_code = status.HTTP_409_CONFLICT
    error_type = "CONFLICT"


class EmailAlreadyExistsError(ConflictError):
    error_type = "EMAIL_EXISTS"

    def __init__(self, email: str):
        super().__init__(f"This email address is already in use: {email}")


class DuplicateResponseError(ConflictError):
    error_type = "ALREADY_RESPONDED"


class InvalidStatusTransitionError(SurveyAppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "INVALID_TRANSITION"


class SurveyClosedError(SurveyAppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "SURVEY_NOT_ACCEPTING_RESPONSES"


class SurveyDeletionError(SurveyAppError):
    error_type = "DELETE_FAILED"


class AuthenticationError(SurveyAppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "AUTHENTICATION_FAILED"


class UserNotFoundError(AuthenticationError):
    error_type = "USER_NOT_FOUND"


class AccountDisabledError(AuthenticationError):
    error_type = "ACCOUNT_DISABLED"


class InvalidCredentialsError(AuthenticationError):
    error_type = "INVALID_CREDENTIALS"


class PermissionDeniedError(SurveyAppError):
    status_code = status.HTTP_403_FORBIDDEN
    error_type = "ACCESS_DENIED"
