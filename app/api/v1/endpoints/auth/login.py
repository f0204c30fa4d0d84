import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.security import JWTTokenProvider, get_token_provider
from app.db.session import get_db
from app.schemas.user import LoginRequest, RegisterRequest, AuthResponse, UserProfile
from app.services.user import user_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/simple-login", response_model=AuthResponse)
def simple_login(
    *,
    db: Session = Depends(get_db),
    provider: JWTTokenProvider = Depends(get_token_provider),
    login_in: LoginRequest,
) -> AuthResponse:
    """
    Authenticate with email and password and return a bearer token.

    The email is trimmed and lower-cased before lookup.

    Returns:
        AuthResponse: Token plus the user profile

    Raises:
        400 if a field is missing; 401 with errorType USER_NOT_FOUND,
        ACCOUNT_DISABLED or INVALID_CREDENTIALS
    """
    user = user_service.authenticate(db, login_in.email, login_in.password)
    token = provider.create_token(user)
    logger.info(f"Login correcto: {user.email}")
    return AuthResponse(
        message="Login successful",
        token=token,
        user=UserProfile.model_validate(user),
    )


@router.post("/simple-register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def simple_register(
    *,
    db: Session = Depends(get_db),
    provider: JWTTokenProvider = Depends(get_token_provider),
    register_in: RegisterRequest,
) -> AuthResponse:
    """
    Register a new USER account and log it in.

    Raises:
        400 on missing fields, mismatched or short passwords, bad email;
        409 if the email is already registered
    """
    user = user_service.register(db, register_in)
    return AuthResponse(
        message="Registration successful",
        token=provider.create_token(user),
        user=UserProfile.model_validate(user),
    )
