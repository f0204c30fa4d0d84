from typing import List, Optional

from app.models.user import UserRole
from app.schemas.common import CamelModel


class LoginRequest(CamelModel):
    """Schema para inicio de sesión; los campos se validan en el servicio"""
    email: Optional[str] = None
    password: Optional[str] = None


class RegisterRequest(CamelModel):
    """Schema para registro de usuarios"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None


class UserUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None


class PasswordChange(CamelModel):
    old_password: str
    new_password: str


class RoleUpdate(CamelModel):
    role: UserRole


class UserProfile(CamelModel):
    """Perfil público devuelto tras login/registro"""
    id: int
    first_name: str
    last_name: str
    email: str
    role: UserRole


class CurrentUser(UserProfile):
    full_name: str
    is_active: bool
    authorities: List[str] = []

    @classmethod
    def from_user(cls, user) -> "CurrentUser":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            role=user.role,
            full_name=user.full_name,
            is_active=user.is_active,
            authorities=[user.role.authority],
        )


class AuthResponse(CamelModel):
    success: bool = True
    message: str
    token: str
    type: str = "Bearer"
    user: UserProfile
