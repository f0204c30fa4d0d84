"""
Password hashing and JWT issuance/validation.

The token provider receives its secret at construction time; nothing here
reads configuration at import time.
"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional
import logging

import bcrypt
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from app.core.config import get_settings
from app.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# bcrypt solo usa los primeros 72 bytes y las versiones recientes rechazan más
BCRYPT_MAX_BYTES = 72


class TokenError(AuthenticationError):
    """Token ausente o inválido; error_type identifica la causa."""
    MISSING = "MISSING_TOKEN"
    EXPIRED = "EXPIRED_TOKEN"
    MALFORMED = "MALFORMED_TOKEN"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    INVALID = "INVALID_TOKEN"


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    rounds = rounds or get_settings().BCRYPT_ROUNDS
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
    except ValueError:
        # Hash almacenado con formato inválido
        logger.warning("Hash de contraseña con formato inválido")
        return False


class JWTTokenProvider:
    """Emite y valida tokens HS256 firmados con un secreto compartido."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_token(self, user, now: Optional[datetime] = None) -> str:
        """
        Genera un token para el usuario.

        Args:
            user: Usuario autenticado (usa email, id y role)
            now: Momento de emisión, útil en tests

        Returns:
            str: Token JWT firmado
        """
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": user.email,
            "userId": user.id,
            "role": user.role.value if hasattr(user.role, "value") else str(user.role),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + timedelta(minutes=self.expire_minutes)).timestamp()),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Valida firma y expiración y devuelve los claims.

        Raises:
            TokenError: Con error_type EXPIRED_TOKEN, MALFORMED_TOKEN,
                INVALID_SIGNATURE o INVALID_TOKEN
        """
        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            raise TokenError("JWT token is malformed", TokenError.MALFORMED)

        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenError("JWT token has expired", TokenError.EXPIRED)
        except JWTClaimsError as e:
            raise TokenError(f"JWT claims are invalid: {e}", TokenError.INVALID)
        except JWTError:
            raise TokenError("JWT signature does not match", TokenError.INVALID_SIGNATURE)

        if not claims.get("sub"):
            raise TokenError("JWT token has no subject", TokenError.INVALID)
        return claims


@lru_cache()
def get_token_provider() -> JWTTokenProvider:
    settings = get_settings()
    return JWTTokenProvider(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
