from dataclasses import dataclass, field
from typing import List, Optional
import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.exceptions import PermissionDeniedError
from app.core.security import JWTTokenProvider, TokenError, get_token_provider
from app.db.session import get_db
from app.models.user import User, UserRole
from app.repositories.user import user_repository

logger = logging.getLogger(__name__)

# auto_error=False: la ausencia de token se resuelve en cada dependencia
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Principal:
    """Usuario autenticado y sus authorities (ROLE_USER / ROLE_ADMIN)."""
    user: User
    authorities: List[str] = field(default_factory=list)

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def is_admin(self) -> bool:
        return "ROLE_ADMIN" in self.authorities

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities


def resolve_principal(db: Session, token: str, provider: JWTTokenProvider) -> Principal:
    claims = provider.decode_token(token)
    user = user_repository.get_by_email(db, email=claims["sub"])
    if user is None or not user.is_active:
        logger.warning("Token válido para usuario inexistente o desactivado")
        raise TokenError("User for token not found or disabled", TokenError.INVALID)
    return Principal(user=user, authorities=[user.role.authority])


def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    provider: JWTTokenProvider = Depends(get_token_provider),
) -> Optional[Principal]:
    """
    Principal si hay cabecera Bearer, None si no la hay.
    Un token presente pero inválido sigue siendo un 401.
    """
    if credentials is None:
        return None
    return resolve_principal(db, credentials.credentials, provider)


def get_current_principal(
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> Principal:
    if principal is None:
        raise TokenError("Authentication token is required", TokenError.MISSING)
    return principal


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.has_authority(UserRole.ADMIN.authority):
        raise PermissionDeniedError("Administrator role required")
    return principal
