from typing import List, Optional
import logging
import re

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import (
    ValidationError, NotFoundError, EmailAlreadyExistsError,
    UserNotFoundError, AccountDisabledError, InvalidCredentialsError
)
from app.core.security import hash_password, verify_password, BCRYPT_MAX_BYTES
from app.models.user import User, UserRole
from app.repositories.user import user_repository
from app.schemas.user import RegisterRequest, UserUpdate

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@(.+)$")
MIN_PASSWORD_LENGTH = 6


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class UserService:

    # ============= Registration & Login =============

    def register(self, db: Session, data: RegisterRequest) -> User:
        """
        Registra un usuario con rol USER.

        Raises:
            ValidationError: Campos ausentes, contraseñas distintas o formato inválido
            EmailAlreadyExistsError: El email ya está registrado
        """
        required = {
            "firstName": data.first_name,
            "lastName": data.last_name,
            "email": data.email,
            "password": data.password,
            "confirmPassword": data.confirm_password,
        }
        missing = [name for name, value in required.items() if not value or not value.strip()]
        if missing:
            raise ValidationError(f"Required fields are missing: {', '.join(missing)}")

        if data.password != data.confirm_password:
            raise ValidationError("Passwords do not match")
        self._validate_password(data.password)

        email = normalize_email(data.email)
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email format")

        if user_repository.email_exists(db, email=email):
            raise EmailAlreadyExistsError(email)

        user = User(
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=email,
            password_hash=hash_password(data.password, get_settings().BCRYPT_ROUNDS),
            role=UserRole.USER,
        )
        try:
            user_repository.add(db, user)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error registrando usuario {email}: {e}")
            raise
        db.refresh(user)
        logger.info(f"Nuevo usuario registrado: {user.email}")
        return user

    def authenticate(self, db: Session, email: Optional[str], password: Optional[str]) -> User:
        """
        Valida email + contraseña.

        Raises:
            ValidationError: Falta email o contraseña
            UserNotFoundError / AccountDisabledError / InvalidCredentialsError
        """
        if not email or not email.strip() or not password:
            raise ValidationError("Email and password are required")

        normalized = normalize_email(email)
        user = user_repository.get_by_email(db, email=normalized)
        if user is None:
            logger.info(f"Login fallido, usuario inexistente: {normalized}")
            raise UserNotFoundError("User not found")
        if not user.is_active:
            logger.info(f"Login rechazado, cuenta desactivada: {normalized}")
            raise AccountDisabledError("User account is disabled")
        if not verify_password(password, user.password_hash):
            logger.info(f"Login fallido, credenciales inválidas: {normalized}")
            raise InvalidCredentialsError("Invalid email or password")
        return user

    # ============= Profile management =============

    def get_by_id(self, db: Session, user_id: int, *, include_deleted: bool = False) -> User:
        user = user_repository.get(db, user_id, include_deleted=include_deleted)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}", "USER_NOT_FOUND")
        return user

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        return user_repository.get_by_email(db, email=email)

    def list_active(
        self,
        db: Session,
        search: Optional[str] = None,
        role: Optional[UserRole] = None
    ) -> List[User]:
        """Usuarios activos, filtrados por texto (nombre o email) y/o rol"""
        if search and search.strip():
            users = user_repository.search(db, term=search)
            return [user for user in users if role is None or user.role == role]
        if role is not None:
            return user_repository.get_by_role(db, role=role)
        return user_repository.get_multi(db)

    def update_user(self, db: Session, user_id: int, data: UserUpdate) -> User:
        user = self.get_by_id(db, user_id)
        if data.first_name is not None:
            user.first_name = data.first_name.strip()
        if data.last_name is not None:
            user.last_name = data.last_name.strip()
        if data.email is not None:
            email = normalize_email(data.email)
            if email != user.email:
                if not EMAIL_PATTERN.match(email):
                    raise ValidationError("Invalid email format")
                if user_repository.email_exists(db, email=email):
                    raise EmailAlreadyExistsError(email)
                user.email = email
        db.commit()
        db.refresh(user)
        logger.info(f"Usuario actualizado: {user.email}")
        return user

    def update_password(self, db: Session, user_id: int, old_password: str, new_password: str) -> User:
        user = self.get_by_id(db, user_id)
        if not verify_password(old_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")
        self._validate_password(new_password)
        user.password_hash = hash_password(new_password, get_settings().BCRYPT_ROUNDS)
        db.commit()
        logger.info(f"Contraseña actualizada para {user.email}")
        return user

    def update_role(self, db: Session, user_id: int, role: UserRole) -> User:
        user = self.get_by_id(db, user_id)
        old_role = user.role
        user.role = role
        db.commit()
        db.refresh(user)
        logger.info(f"Rol actualizado: {user.email} ({old_role} -> {role})")
        return user

    def deactivate(self, db: Session, user_id: int) -> User:
        user = self.get_by_id(db, user_id)
        user_repository.soft_delete(db, user)
        db.commit()
        logger.info(f"Usuario desactivado: {user.email}")
        return user

    def reactivate(self, db: Session, user_id: int) -> User:
        user = self.get_by_id(db, user_id, include_deleted=True)
        user.restore()
        db.commit()
        logger.info(f"Usuario reactivado: {user.email}")
        return user

    def count_active(self, db: Session) -> int:
        return user_repository.count(db)

    def _validate_password(self, password: str) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValidationError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")


user_service = UserService()
